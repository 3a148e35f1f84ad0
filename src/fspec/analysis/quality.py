"""Extraction quality classification.

Quality is advisory. It never blocks synthesis; it tells the reader how much
of the generated document came from facts versus placeholders.
"""

from typing import Optional

from ..models import ParseTier, Quality, SourceUnit, TestAnalysis

PRECISE_POINTS = 3
DOC_POINTS = 2
EXPORT_POINTS = 1
TEST_POINTS = 2

HIGH_THRESHOLD = 6
MEDIUM_THRESHOLD = 3


def _has_exports(unit: SourceUnit) -> bool:
    return bool(unit.exported_symbols()) or unit.exports.has_exports()


def _has_tests(tests: Optional[TestAnalysis]) -> bool:
    return tests is not None and bool(tests.leaf_tests())


def quality_score(unit: SourceUnit, tests: Optional[TestAnalysis] = None) -> int:
    """Points earned by the extraction signals present."""
    score = 0
    if unit.tier == ParseTier.PRECISE:
        score += PRECISE_POINTS
    if unit.doc_comments:
        score += DOC_POINTS
    if _has_exports(unit):
        score += EXPORT_POINTS
    if _has_tests(tests):
        score += TEST_POINTS
    return score


def classify_quality(unit: SourceUnit, tests: Optional[TestAnalysis] = None) -> Quality:
    """HIGH, MEDIUM or LOW. Adding a signal never lowers the result."""
    score = quality_score(unit, tests)
    if score >= HIGH_THRESHOLD:
        return Quality.HIGH
    if score >= MEDIUM_THRESHOLD:
        return Quality.MEDIUM
    return Quality.LOW


def follow_up_suggestions(unit: SourceUnit, tests: Optional[TestAnalysis] = None) -> list[str]:
    """At most three actions that would raise the quality of a document."""
    suggestions = []
    if unit.tier != ParseTier.PRECISE:
        suggestions.append(
            "Install the `esprima` parser (or unset FSPEC_PARSER) for precise extraction."
        )
    if not unit.doc_comments:
        suggestions.append("Add /** ... */ doc comments to the exported functions.")
    if not _has_tests(tests):
        suggestions.append("Add a test file next to the source so acceptance criteria can be derived.")
    if not _has_exports(unit):
        suggestions.append("Export the public API so requirements can be generated.")
    return suggestions[:3]
