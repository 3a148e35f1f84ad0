"""Pydantic models for fspec records."""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum

from .config import (
    DEFAULT_SPECS_DIR,
    DEFAULT_EXCLUDE_PATTERNS,
    DOC_WINDOW,
    METADATA_SYNONYMS,
    SOURCE_EXTENSIONS,
)


# === Source analysis ===

class ParseTier(str, Enum):
    """Which extraction path produced a SourceUnit."""

    PRECISE = "precise"
    HEURISTIC = "heuristic"


class SymbolKind(str, Enum):
    """Kind of callable symbol."""

    FUNCTION = "function"
    METHOD = "method"
    ARROW = "arrow"


class ParamInfo(BaseModel):
    """Parameter information for a callable."""

    name: str
    optional: bool = False
    rest: bool = False
    destructured: bool = False


class SymbolRecord(BaseModel):
    """A callable symbol found in a source file."""

    name: str  # "Class.method" for class methods
    kind: SymbolKind = SymbolKind.FUNCTION
    is_async: bool = False
    is_generator: bool = False
    is_static: bool = False
    params: list[ParamInfo] = Field(default_factory=list)
    line: int
    end_line: Optional[int] = None
    exported: bool = False
    class_name: Optional[str] = None

    @property
    def short_name(self) -> str:
        """Name without the class prefix."""
        return self.name.rsplit(".", 1)[-1]

    def has_required_params(self) -> bool:
        return any(not p.optional for p in self.params)


class DocParam(BaseModel):
    """A @param entry of a doc comment."""

    name: str
    type_tag: Optional[str] = None
    optional: bool = False
    description: str = ""


class DocReturn(BaseModel):
    """A @returns entry of a doc comment."""

    type_tag: Optional[str] = None
    description: str = ""


class DocComment(BaseModel):
    """A parsed /** ... */ documentation block."""

    description: str = ""
    params: list[DocParam] = Field(default_factory=list)
    returns: Optional[DocReturn] = None
    throws: list[str] = Field(default_factory=list)
    examples: list[str] = Field(default_factory=list)
    tags: dict[str, str] = Field(default_factory=dict)
    line: int = 0
    end_line: int = 0

    def param(self, name: str) -> Optional[DocParam]:
        for p in self.params:
            if p.name == name:
                return p
        return None


class ImportBinding(BaseModel):
    """An ES import or CommonJS require."""

    kind: str  # "import" or "require"
    source: str
    names: list[str] = Field(default_factory=list)


class ExportBindings(BaseModel):
    """Names a module exports."""

    named: list[str] = Field(default_factory=list)
    default: Optional[str] = None
    commonjs: Optional[list[str]] = None

    def names(self) -> set[str]:
        result = set(self.named)
        if self.default:
            result.add(self.default)
        if self.commonjs:
            result.update(self.commonjs)
        return result

    def has_exports(self) -> bool:
        return bool(self.named or self.default or self.commonjs)


class SourceUnit(BaseModel):
    """Everything extracted from one source file. Recomputed on every call."""

    path: str = ""
    tier: ParseTier = ParseTier.HEURISTIC
    symbols: list[SymbolRecord] = Field(default_factory=list)
    doc_comments: list[DocComment] = Field(default_factory=list)
    imports: list[ImportBinding] = Field(default_factory=list)
    exports: ExportBindings = Field(default_factory=ExportBindings)
    doc_window: int = DOC_WINDOW

    def exported_symbols(self) -> list[SymbolRecord]:
        """Exported symbols in file order, first occurrence of each name."""
        seen: set[str] = set()
        result = []
        for symbol in self.symbols:
            if symbol.exported and symbol.name not in seen:
                seen.add(symbol.name)
                result.append(symbol)
        return result

    def doc_for(self, symbol: SymbolRecord, window: Optional[int] = None) -> Optional[DocComment]:
        """Closest doc comment ending at most ``window`` lines above the symbol.

        A comment belongs to the next symbol only; another symbol between
        the comment and this one takes it.
        """
        if window is None:
            window = self.doc_window
        best = None
        for doc in self.doc_comments:
            end = doc.end_line or doc.line
            if end < symbol.line and symbol.line - end <= window:
                if any(end < other.line < symbol.line for other in self.symbols):
                    continue
                if best is None or end > (best.end_line or best.line):
                    best = doc
        return best

    def module_doc(self, window: Optional[int] = None) -> Optional[DocComment]:
        """The file-level doc comment, if any."""
        for doc in self.doc_comments:
            if any(tag in doc.tags for tag in ("module", "file", "fileoverview")):
                return doc

        attributed = {id(self.doc_for(s, window)) for s in self.symbols}
        first_symbol_line = min((s.line for s in self.symbols), default=None)
        for doc in self.doc_comments:
            if first_symbol_line is not None and doc.line >= first_symbol_line:
                break
            if id(doc) not in attributed and doc.description:
                return doc
        return None


# === Test analysis ===

class AssertionKind(str, Enum):
    """Shape of an assertion statement."""

    EQUALITY = "equality"
    DEEP_EQUALITY = "deep_equality"
    TRUTHINESS = "truthiness"
    EXPECTATION = "expectation"
    REJECTION = "rejection"


class Assertion(BaseModel):
    """An assertion line inside a test body."""

    line: int  # 1-based, relative to the test body
    text: str
    kind: AssertionKind


class TestCase(BaseModel):
    """A test(), it() or describe() registration."""

    __test__ = False  # not a pytest class

    description: str
    is_suite: bool = False
    is_async: bool = False
    line: int
    end_line: int
    body: str = ""
    assertions: list[Assertion] = Field(default_factory=list)


class TestAnalysis(BaseModel):
    """Test cases extracted from one test file."""

    __test__ = False

    path: str = ""
    tests: list[TestCase] = Field(default_factory=list)

    def leaf_tests(self) -> list[TestCase]:
        return [t for t in self.tests if not t.is_suite]


class Scenario(BaseModel):
    """Given/When/Then derived from a test case."""

    given: str
    when: str
    then: list[str] = Field(default_factory=list)


class DerivedCriterion(BaseModel):
    """An acceptance criterion derived from a leaf test case."""

    id: str
    title: str
    test_path: str = ""
    line: int = 0
    scenario: Scenario
    verification: str = ""


# === Quality ===

class Quality(str, Enum):
    """Coarse confidence label for extraction completeness."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# === Spec documents ===

class AcceptanceCriterion(BaseModel):
    """A checkbox line in a spec document."""

    id: Optional[str] = None
    completed: bool = False
    description: str
    line: int


class Requirement(BaseModel):
    """A level-3 "ID: title" entry in a spec document."""

    id: str
    title: str
    body: str = ""
    line: int
    acceptance_criteria: list[AcceptanceCriterion] = Field(default_factory=list)


class DerivedOutput(BaseModel):
    """A derived-outputs table row."""

    type: str
    path: str
    description: str = ""


class SpecDocument(BaseModel):
    """Parsed view of a spec document. ``raw`` stays authoritative."""

    path: Optional[str] = None
    frontmatter: dict[str, str] = Field(default_factory=dict)
    metadata: dict[str, str] = Field(default_factory=dict)
    title_label: Optional[str] = None
    title: str
    requirements: list[Requirement] = Field(default_factory=list)
    acceptance_criteria: list[AcceptanceCriterion] = Field(default_factory=list)
    derived_outputs: list[DerivedOutput] = Field(default_factory=list)
    sections: dict[str, str] = Field(default_factory=dict)
    raw: str

    def meta(self, slot: str) -> Optional[str]:
        """Look up a metadata value by logical slot, accepting synonyms.

        Blockquote metadata wins over frontmatter keys of the same slot.
        """
        spellings = METADATA_SYNONYMS.get(slot, [slot])
        for fields in (self.metadata, self.frontmatter):
            for key, value in fields.items():
                if key.strip().lower() in spellings:
                    return value
        return None

    @property
    def status(self) -> Optional[str]:
        return self.meta("status")

    @property
    def version(self) -> Optional[str]:
        return self.meta("version")

    @property
    def quality(self) -> Optional[Quality]:
        value = self.meta("quality")
        if not value:
            return None
        try:
            return Quality(value.split()[0].lower())
        except ValueError:
            return None

    @property
    def source_path(self) -> Optional[str]:
        return self.meta("source")

    @property
    def code_path(self) -> Optional[str]:
        return self.meta("codepath")

    @property
    def is_enriched(self) -> bool:
        return self.meta("enriched") is not None


class CompletionRate(BaseModel):
    """Acceptance-criteria progress of a document."""

    completed: int
    total: int
    percentage: int


class ValidationReport(BaseModel):
    """Structural check of a spec document."""

    valid: bool
    issues: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    stats: dict[str, int] = Field(default_factory=dict)


class RequirementDraft(BaseModel):
    """Requirement prose supplied by an external generator."""

    title: str
    description: str
    acceptance_criteria: list[str] = Field(default_factory=list)


# === Operation results ===

class OutcomeStatus(str, Enum):
    """Per-file outcome of a synthesis or enrichment call."""

    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


class SynthesisStats(BaseModel):
    """Counts reported with a synthesized document."""

    symbols: int = 0
    exported: int = 0
    doc_comments: int = 0
    tests: int = 0


class SynthesisResult(BaseModel):
    """A freshly synthesized spec document."""

    source_path: str
    test_path: Optional[str] = None
    spec_path: Optional[str] = None
    content: str
    quality: Quality
    tier: ParseTier
    stats: SynthesisStats = Field(default_factory=SynthesisStats)


class EnrichmentStats(BaseModel):
    """Per-source counts of an enrichment run."""

    criteria_derived: int = 0
    criteria_added: int = 0
    params_enriched: int = 0
    requirements_generated: int = 0


class EnrichmentResult(BaseModel):
    """Outcome of enriching one document."""

    document_path: Optional[str] = None
    content: str
    changed: bool = False
    status: OutcomeStatus = OutcomeStatus.SUCCESS
    code_path: Optional[str] = None
    test_path: Optional[str] = None
    stats: EnrichmentStats = Field(default_factory=EnrichmentStats)
    skipped: list[str] = Field(default_factory=list)  # stages that had nothing to read

    @property
    def partial(self) -> bool:
        return self.status == OutcomeStatus.PARTIAL


class FileOutcome(BaseModel):
    """One file's result inside a batch."""

    path: str
    status: OutcomeStatus
    reason: Optional[str] = None
    quality: Optional[Quality] = None
    output_path: Optional[str] = None
    stats: dict[str, int] = Field(default_factory=dict)


class BatchReport(BaseModel):
    """Aggregated outcomes of a batch run."""

    outcomes: list[FileOutcome] = Field(default_factory=list)
    started: datetime = Field(default_factory=datetime.now)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    def count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def succeeded(self) -> int:
        return self.count(OutcomeStatus.SUCCESS)

    @property
    def partial(self) -> int:
        return self.count(OutcomeStatus.PARTIAL)

    @property
    def failed(self) -> int:
        return self.count(OutcomeStatus.FAILED)

    def failures(self) -> list[tuple[str, str]]:
        """(path, reason) for every failed file."""
        return [(o.path, o.reason or "") for o in self.outcomes if o.status == OutcomeStatus.FAILED]

    def quality_counts(self) -> dict[str, int]:
        counts = {q.value: 0 for q in Quality}
        for o in self.outcomes:
            if o.quality is not None:
                counts[o.quality.value] += 1
        return counts

    def totals(self) -> dict[str, int]:
        """Sum of per-file stats across the batch."""
        result: dict[str, int] = {}
        for o in self.outcomes:
            for key, value in o.stats.items():
                result[key] = result.get(key, 0) + value
        return result

    def exit_code(self) -> int:
        """0 when every file succeeded, 2 when none did, 1 otherwise."""
        from .errors import ExitCode

        if self.total and self.failed == self.total:
            return ExitCode.SYSTEM_ERROR
        if self.failed or self.partial:
            return ExitCode.PARTIAL
        return ExitCode.SUCCESS

    def summary(self) -> dict:
        """Counts, quality distribution and failures as plain data."""
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "partial": self.partial,
            "failed": self.failed,
            "quality": self.quality_counts(),
            "totals": self.totals(),
            "failures": [{"path": p, "reason": r} for p, r in self.failures()],
        }


# === Config ===

class FspecConfig(BaseModel):
    """Configuration for fspec."""

    version: str = "0.1.0"
    specs_dir: str = DEFAULT_SPECS_DIR
    include_tests: bool = True  # Analyze paired test files during extraction
    extract_tests: bool = True  # Merge test-derived criteria during enrichment
    extract_doc_comments: bool = True  # Fill bare parameter bullets during enrichment
    generate_requirements: bool = False  # External requirement prose (off by default)
    doc_window: int = DOC_WINDOW
    command_logging: bool = True  # Log command invocations to .fspec-logs/
    source_extensions: list[str] = Field(default_factory=lambda: list(SOURCE_EXTENSIONS))
    exclude_patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))


class EnrichOptions(BaseModel):
    """Which enrichment stages run."""

    extract_tests: bool = True
    extract_doc_comments: bool = True
    generate_requirements: bool = False
    prefer_precise: bool = True
    doc_window: int = DOC_WINDOW

    @classmethod
    def from_config(cls, config: "FspecConfig", **overrides) -> "EnrichOptions":
        values = {
            "extract_tests": config.extract_tests,
            "extract_doc_comments": config.extract_doc_comments,
            "generate_requirements": config.generate_requirements,
            "doc_window": config.doc_window,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
