"""File discovery for extraction and enrichment batches."""

import fnmatch
from pathlib import Path
from typing import Generator, Optional

from .config import DEFAULT_EXCLUDE_PATTERNS, SOURCE_EXTENSIONS, SPEC_SUFFIX


def should_exclude(path: Path, patterns: list[str]) -> bool:
    """Check if path matches any exclude pattern.

    Patterns are matched against individual path components, so 'lib'
    does not exclude 'libs/'.
    """
    for pattern in patterns:
        if pattern == ".*":
            for part in path.parts:
                if part.startswith('.') and part not in ('.', '..'):
                    return True
            continue

        if any(c in pattern for c in '*?['):
            for part in path.parts:
                if fnmatch.fnmatch(part, pattern):
                    return True
        elif pattern in path.parts:
            return True
    return False


def find_source_files(
    directory: Path,
    exclude_patterns: Optional[list[str]] = None,
    extensions: Optional[list[str]] = None,
) -> Generator[Path, None, None]:
    """Find JavaScript/TypeScript sources under directory in sorted order."""
    if exclude_patterns is None:
        exclude_patterns = DEFAULT_EXCLUDE_PATTERNS
    if extensions is None:
        extensions = SOURCE_EXTENSIONS

    for path in sorted(directory.rglob("*")):
        if not path.is_file() or path.suffix not in extensions:
            continue
        if path.name.endswith(".d.ts"):
            continue
        if not should_exclude(path.relative_to(directory), exclude_patterns):
            yield path


def find_spec_files(
    directory: Path,
    exclude_patterns: Optional[list[str]] = None,
) -> Generator[Path, None, None]:
    """Find *.fspec.md documents under directory in sorted order."""
    if exclude_patterns is None:
        exclude_patterns = [".*", "node_modules"]

    for path in sorted(directory.rglob(f"*{SPEC_SUFFIX}")):
        if path.is_file() and not should_exclude(path.relative_to(directory), exclude_patterns):
            yield path


def expand_inputs(
    target: Path,
    finder,
    **kwargs,
) -> list[Path]:
    """A file target as-is, or every match of ``finder`` under a directory."""
    if target.is_dir():
        return list(finder(target, **kwargs))
    return [target]
