"""Static analysis of source and test files."""

from .source import analyze_source, precise_available
from .testcases import analyze_tests, extract_criteria, find_test_file
from .quality import classify_quality, quality_score

__all__ = [
    "analyze_source",
    "precise_available",
    "analyze_tests",
    "extract_criteria",
    "find_test_file",
    "classify_quality",
    "quality_score",
]
