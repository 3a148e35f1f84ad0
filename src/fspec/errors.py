"""Error types raised by fspec operations.

Degraded extraction (heuristic tier) and partial enrichment are not errors;
they are reported through ``ParseTier``/``Quality`` and ``OutcomeStatus``.
"""

from enum import IntEnum


class FspecError(Exception):
    """Base class for fspec errors."""


class InputNotFound(FspecError, FileNotFoundError):
    """A source, test or document path does not exist."""

    def __init__(self, path: object):
        self.path = str(path)
        super().__init__(f"File not found: {self.path}")


class InputUnreadable(FspecError, OSError):
    """A path exists but cannot be read as UTF-8 text."""

    def __init__(self, path: object, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Could not read {self.path}: {reason}")


class UnparseableDocument(FspecError, ValueError):
    """An existing document has no recognizable title/metadata structure."""

    def __init__(self, path: object, reason: str = "no title line found"):
        self.path = str(path) if path is not None else "<text>"
        self.reason = reason
        super().__init__(f"Document not parseable: {self.path} ({reason})")


class WriteFailure(FspecError, OSError):
    """A composed document could not be written to its destination."""

    def __init__(self, path: object, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Could not write {self.path}: {reason}")


class DocumentExists(FspecError, FileExistsError):
    """A synthesized document would replace an existing one without overwrite."""

    def __init__(self, path: object):
        self.path = str(path)
        super().__init__(f"Spec already exists: {self.path} (use overwrite to replace it)")


class ExitCode(IntEnum):
    """Process exit codes of the fspec CLI."""

    SUCCESS = 0
    PARTIAL = 1  # some files failed or need manual follow-up
    SYSTEM_ERROR = 2
    CONFIG_ERROR = 3
    NOT_FOUND = 4
