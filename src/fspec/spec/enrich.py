"""Spec enrichment: patch an existing document with fresh analyzer facts.

Enrichment only ever adds. Criteria already in the document are kept as
written, parameter bullets are filled only when they carry no description,
and the enrichment marker is stamped once. Running it twice with the same
inputs leaves the document byte-identical.
"""

import re
from datetime import date
from pathlib import Path
from typing import Callable, Optional, Union

from ..analysis.source import analyze_source
from ..analysis.testcases import extract_criteria, find_test_file
from ..config import (
    OUTPUT_CODE,
    OUTPUT_TEST,
    SECTION_ACCEPTANCE,
    SECTION_REQUIREMENTS,
    SOURCE_EXTENSIONS,
    SPEC_SUFFIX,
)
from ..errors import FspecError
from ..models import (
    BatchReport,
    DerivedCriterion,
    EnrichmentResult,
    EnrichmentStats,
    EnrichOptions,
    FileOutcome,
    OutcomeStatus,
    RequirementDraft,
    SourceUnit,
    SpecDocument,
)
from ..storage import read_text, write_document
from .parser import (
    add_requirement,
    fence_mask,
    highest_ac_number,
    insert_block,
    next_requirement_id,
    parse_criterion,
    parse_spec,
    section_span,
    update_metadata,
)
from .synthesis import format_criterion

RequirementGenerator = Callable[[SpecDocument, Optional[SourceUnit]], list[RequirementDraft]]

CODE_ROW_TYPES = {OUTPUT_CODE, "source", "implementation"}
HEADING_RE = re.compile(r'^#{2,3}\s')
PROVENANCE = "*(from doc comment)*"


# === File linkage ===

def _resolve(candidate: str, document_path: Optional[Path], base_path: Path) -> Optional[Path]:
    """An existing file for a path as written in a document."""
    path = Path(candidate)
    options = [path] if path.is_absolute() else [base_path / path]
    if document_path is not None and not path.is_absolute():
        options.append(document_path.parent / path)
    for option in options:
        if option.is_file():
            return option
    return None


def _document_name(doc: SpecDocument) -> Optional[str]:
    if doc.path:
        name = Path(doc.path).name
        if name.endswith(SPEC_SUFFIX):
            return name[: -len(SPEC_SUFFIX)]
        return Path(doc.path).stem
    return doc.title.strip() or None


def infer_code_path(
    doc: SpecDocument,
    document_path: Optional[Path] = None,
    base_path: Optional[Path] = None,
) -> Optional[Path]:
    """Locate the source file a document describes.

    Order: a derived-outputs code row, the codepath (then source) metadata,
    then conventional guesses from the document name.
    """
    base = base_path or Path.cwd()
    if document_path is None and doc.path:
        document_path = Path(doc.path)

    candidates = []
    for row in doc.derived_outputs:
        kind = row.type.strip().lower()
        if kind == OUTPUT_TEST:
            continue
        if kind in CODE_ROW_TYPES or Path(row.path).suffix in SOURCE_EXTENSIONS:
            candidates.append(row.path)
    for value in (doc.code_path, doc.source_path):
        if value:
            candidates.append(value)

    name = _document_name(doc)
    if name:
        for folder in ("lib", "src", "."):
            for ext in (".js", ".ts"):
                candidates.append(f"{folder}/{name}{ext}")

    for candidate in candidates:
        found = _resolve(candidate, document_path, base)
        if found is not None:
            return found
    return None


def infer_test_path(
    doc: SpecDocument,
    code_path: Optional[Path],
    document_path: Optional[Path] = None,
    base_path: Optional[Path] = None,
) -> Optional[Path]:
    """A derived-outputs test row, else the conventional test file of the code."""
    base = base_path or Path.cwd()
    for row in doc.derived_outputs:
        if row.type.strip().lower() == OUTPUT_TEST:
            found = _resolve(row.path, document_path, base)
            if found is not None:
                return found
    if code_path is not None:
        return find_test_file(code_path)
    return None


def _display(path: Path, base_path: Path) -> str:
    try:
        return path.resolve().relative_to(base_path.resolve()).as_posix()
    except ValueError:
        return path.as_posix()


# === Stages ===

def insert_criteria(content: str, criteria: list[DerivedCriterion]) -> tuple[str, int]:
    """Append criteria not yet in the document.

    A criterion is already present when its title occurs in an existing
    criterion's description. New ones continue the highest AC number.

    Returns:
        (content, number of criteria added)
    """
    lines = content.split("\n")
    mask = fence_mask(lines)
    existing = []
    for i, line in enumerate(lines):
        if mask[i]:
            continue
        criterion = parse_criterion(line, i + 1)
        if criterion is not None:
            existing.append(criterion.description)

    fresh: list[DerivedCriterion] = []
    for criterion in criteria:
        if any(criterion.title in description for description in existing):
            continue
        existing.append(criterion.title)
        fresh.append(criterion)
    if not fresh:
        return content, 0

    start = highest_ac_number(content)
    block: list[str] = []
    for offset, criterion in enumerate(fresh):
        numbered = criterion.model_copy(update={"id": f"AC-{start + offset + 1:03d}"})
        block.extend(format_criterion(numbered))

    span = section_span(lines, SECTION_ACCEPTANCE)
    if span is not None:
        lines = insert_block(lines, span[1], block)
    else:
        block = [f"## {SECTION_ACCEPTANCE}", ""] + block
        requirements = section_span(lines, SECTION_REQUIREMENTS)
        index = requirements[1] if requirements is not None else len(lines)
        lines = insert_block(lines, index, block)

    text = "\n".join(lines)
    if content.endswith("\n") and not text.endswith("\n"):
        text += "\n"
    return text, len(fresh)


def _requirement_range(lines: list[str], mask: list[bool], title: str) -> Optional[tuple[int, int]]:
    """Line range of the requirement headed ``ID: title``."""
    pattern = re.compile(rf'^###\s+[A-Za-z]+[-_]\d+\s*:\s*{re.escape(title)}\s*$')
    for i, line in enumerate(lines):
        if not mask[i] and pattern.match(line):
            end = len(lines)
            for j in range(i + 1, len(lines)):
                if not mask[j] and HEADING_RE.match(lines[j]):
                    end = j
                    break
            return i, end
    return None


def enrich_parameters(content: str, unit: SourceUnit) -> tuple[str, int]:
    """Fill bare ``- `name` (type)`` bullets from doc comment @param entries.

    Bullets are looked up inside the requirement of the documented symbol,
    or anywhere when no such requirement exists. A parameter with no bare
    bullet is left alone.

    Returns:
        (content, number of bullets filled)
    """
    lines = content.split("\n")
    mask = fence_mask(lines)
    owners = {}
    for symbol in unit.symbols:
        doc = unit.doc_for(symbol)
        if doc is not None and id(doc) not in owners:
            owners[id(doc)] = symbol

    filled = 0
    for doc in unit.doc_comments:
        symbol = owners.get(id(doc))
        scope = None
        if symbol is not None:
            scope = _requirement_range(lines, mask, symbol.name)
        start, end = scope if scope is not None else (0, len(lines))

        for param in doc.params:
            if not param.description:
                continue
            bare = re.compile(rf'^(\s*)- `{re.escape(param.name)}` \(([^)]*)\)\s*$')
            for i in range(start, end):
                if mask[i]:
                    continue
                m = bare.match(lines[i])
                if not m:
                    continue
                type_tag = param.type_tag or m.group(2) or "any"
                optional = "(optional) " if param.optional else ""
                lines[i] = f"{m.group(1)}- `{param.name}` ({type_tag}): {optional}{param.description} {PROVENANCE}"
                filled += 1
                break

    return "\n".join(lines), filled


def merge_generated(content: str, doc: SpecDocument, drafts: list[RequirementDraft]) -> tuple[str, int]:
    """Add generated requirements whose titles are not in the document yet."""
    titles = {r.title.strip().lower() for r in doc.requirements}
    added = 0
    for draft in drafts:
        if draft.title.strip().lower() in titles:
            continue
        current = parse_spec(content, doc.path)
        content = add_requirement(
            content,
            next_requirement_id(current),
            draft.title,
            draft.description,
            draft.acceptance_criteria,
        )
        titles.add(draft.title.strip().lower())
        added += 1
    return content, added


def stamp_marker(content: str, doc: SpecDocument, today: date) -> str:
    """Write the enrichment marker slots that are still absent."""
    updates = {}
    if doc.meta("enriched") is None:
        updates["enriched"] = "true"
    if doc.meta("enriched_at") is None:
        updates["enriched_at"] = today.isoformat()
    if not updates:
        return content
    return update_metadata(content, updates)


# === Entry points ===

def enrich_document(
    text: str,
    *,
    document_path: Optional[Union[str, Path]] = None,
    base_path: Optional[Path] = None,
    options: Optional[EnrichOptions] = None,
    generator: Optional[RequirementGenerator] = None,
    today: Optional[date] = None,
) -> EnrichmentResult:
    """Enrich document text from its linked code and test files.

    Raises:
        UnparseableDocument: If the document has no title line.
    """
    options = options or EnrichOptions()
    base = base_path or Path.cwd()
    doc_path = Path(document_path) if document_path is not None else None
    doc = parse_spec(text, str(doc_path) if doc_path is not None else None)

    code_path = infer_code_path(doc, doc_path, base)
    test_path = infer_test_path(doc, code_path, doc_path, base)

    stats = EnrichmentStats()
    skipped: list[str] = []
    status = OutcomeStatus.SUCCESS
    content = text
    unit: Optional[SourceUnit] = None

    if options.extract_tests:
        if test_path is not None:
            criteria = extract_criteria(read_text(test_path), _display(test_path, base))
            stats.criteria_derived = len(criteria)
            content, stats.criteria_added = insert_criteria(content, criteria)
        else:
            skipped.append("tests")

    if code_path is not None and (options.extract_doc_comments or options.generate_requirements):
        unit = analyze_source(
            read_text(code_path),
            _display(code_path, base),
            prefer_precise=options.prefer_precise,
            doc_window=options.doc_window,
        )

    if options.extract_doc_comments:
        if unit is not None:
            content, stats.params_enriched = enrich_parameters(content, unit)
        else:
            skipped.append("doc_comments")

    if options.generate_requirements:
        drafts = generator(doc, unit) if generator is not None else []
        if drafts:
            content, stats.requirements_generated = merge_generated(content, doc, drafts)
        else:
            status = OutcomeStatus.PARTIAL

    content = stamp_marker(content, doc, today or date.today())

    return EnrichmentResult(
        document_path=str(doc_path) if doc_path is not None else None,
        content=content,
        changed=content != text,
        status=status,
        code_path=_display(code_path, base) if code_path is not None else None,
        test_path=_display(test_path, base) if test_path is not None else None,
        stats=stats,
        skipped=skipped,
    )


def enrich_file(
    path: Union[str, Path],
    *,
    options: Optional[EnrichOptions] = None,
    generator: Optional[RequirementGenerator] = None,
    dry_run: bool = False,
    base_path: Optional[Path] = None,
    today: Optional[date] = None,
) -> EnrichmentResult:
    """Enrich one document file in place (unless dry_run).

    Raises:
        InputNotFound: If the document does not exist.
        UnparseableDocument: If it has no title line.
        WriteFailure: If the patched document cannot be written.
    """
    path = Path(path)
    result = enrich_document(
        read_text(path),
        document_path=path,
        base_path=base_path,
        options=options,
        generator=generator,
        today=today,
    )
    if result.changed and not dry_run:
        write_document(path, result.content)
    return result


def enrich_files(paths: list[Path], **kwargs) -> BatchReport:
    """Enrich many documents; failures are recorded per file."""
    report = BatchReport()
    for path in paths:
        try:
            result = enrich_file(path, **kwargs)
        except FspecError as e:
            report.outcomes.append(FileOutcome(path=str(path), status=OutcomeStatus.FAILED, reason=str(e)))
            continue
        reason = None
        if result.partial:
            reason = "requirement generation produced nothing"
        elif result.skipped:
            reason = "skipped: " + ", ".join(result.skipped)
        report.outcomes.append(FileOutcome(
            path=str(path),
            status=result.status,
            reason=reason,
            output_path=str(path) if result.changed else None,
            stats=result.stats.model_dump(),
        ))
    return report
