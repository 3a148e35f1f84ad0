"""Test file analysis: test cases, assertions and derived acceptance criteria."""

import re
import textwrap
from pathlib import Path
from typing import Optional, Union

from ..config import SOURCE_EXTENSIONS
from ..models import (
    Assertion,
    AssertionKind,
    DerivedCriterion,
    Scenario,
    TestAnalysis,
    TestCase,
)

TEST_CALL_RE = re.compile(r'^\s*(test|it|describe)(?:\.only)?\s*\(\s*([\'"`])(.+?)\2')
ASYNC_RE = re.compile(r'\basync\s*(?:\(|function\b|[A-Za-z_$][\w$]*\s*=>)')
REGISTRATION_RE = re.compile(r'^(test|it|describe)(?:\.only)?\s*\(')
PUNCTUATION_ONLY_RE = re.compile(r'^[\s{}();,]*$')

ASSERTION_LINE_RE = re.compile(r'\bassert\b\s*[.(]|\bexpect\s*\(')

# First match wins; rejection before equality so "assert.throws" is not "assertion"
ASSERTION_SHAPES: list[tuple[AssertionKind, re.Pattern]] = [
    (AssertionKind.REJECTION, re.compile(
        r'\bassert\s*\.\s*(?:rejects|throws)\s*\(|\.\s*(?:rejects|toThrow\w*)\b')),
    (AssertionKind.DEEP_EQUALITY, re.compile(
        r'\bassert\s*\.\s*(?:deepStrictEqual|deepEqual|notDeepStrictEqual|notDeepEqual)\s*\('
        r'|\.\s*(?:toEqual|toStrictEqual)\s*\(')),
    (AssertionKind.EQUALITY, re.compile(
        r'\bassert\s*\.\s*(?:strictEqual|equal|notStrictEqual|notEqual)\s*\(|\.\s*toBe\s*\(')),
    (AssertionKind.TRUTHINESS, re.compile(
        r'\bassert\s*\(|\bassert\s*\.\s*ok\s*\('
        r'|\.\s*(?:toBeTruthy|toBeFalsy|toBeDefined|toBeUndefined|toBeNull)\s*\(')),
    (AssertionKind.EXPECTATION, re.compile(r'\bexpect\s*\(|\bassert\s*\.')),
]

THEN_PHRASES = {
    AssertionKind.EQUALITY: "return value matches expectation",
    AssertionKind.TRUTHINESS: "result is present",
    AssertionKind.REJECTION: "expected error is raised",
    AssertionKind.DEEP_EQUALITY: "object deep-equality holds",
    AssertionKind.EXPECTATION: "assertion succeeds",
}
GIVEN_DEFAULT = "system operating normally"
THEN_DEFAULT = "execution completes without error"


def extract_test_body(lines: list[str], start: int) -> tuple[str, int]:
    """Collect a test body by bracket balance.

    Args:
        lines: All lines of the test file.
        start: 0-based index of the registration line.

    Returns:
        (body text, 0-based index of the closing line)
    """
    depth = 0
    started = False
    end = start
    body = []

    for index in range(start, len(lines)):
        line = lines[index]
        for ch in line:
            if ch in "{(":
                depth += 1
                started = True
            elif ch in "})":
                depth -= 1
        body.append(line)
        end = index
        if started and depth <= 0:
            break

    return "\n".join(body), end


def classify_assertion(line: str) -> Optional[AssertionKind]:
    """Shape of an assertion line, or None when the line asserts nothing."""
    if not ASSERTION_LINE_RE.search(line):
        return None
    for kind, pattern in ASSERTION_SHAPES:
        if pattern.search(line):
            return kind
    return AssertionKind.EXPECTATION


def extract_assertions(body: str) -> list[Assertion]:
    """Assertion statements in a test body, in order."""
    assertions = []
    for index, line in enumerate(body.split("\n")):
        text = line.strip()
        if not text or text.startswith("//"):
            continue
        kind = classify_assertion(text)
        if kind is not None:
            assertions.append(Assertion(line=index + 1, text=text, kind=kind))
    return assertions


def extract_test_cases(text: str) -> list[TestCase]:
    """Find test(), it() and describe() registrations in file order."""
    lines = text.split("\n")
    tests = []

    for index, line in enumerate(lines):
        match = TEST_CALL_RE.match(line)
        if not match:
            continue
        body, end = extract_test_body(lines, index)
        is_suite = match.group(1) == "describe"
        tests.append(TestCase(
            description=match.group(3),
            is_suite=is_suite,
            is_async=bool(ASYNC_RE.search(line)),
            line=index + 1,
            end_line=end + 1,
            body=body,
            assertions=[] if is_suite else extract_assertions(body),
        ))

    return tests


def analyze_tests(text: str, path: str = "") -> TestAnalysis:
    return TestAnalysis(path=path, tests=extract_test_cases(text))


def generate_scenario(test: TestCase) -> Scenario:
    """Given/When/Then for a test, one Then phrase per assertion shape."""
    then: list[str] = []
    for assertion in test.assertions:
        phrase = THEN_PHRASES[assertion.kind]
        if phrase not in then:
            then.append(phrase)
    return Scenario(
        given=GIVEN_DEFAULT,
        when=test.description,
        then=then or [THEN_DEFAULT],
    )


def verification_code(test: TestCase) -> str:
    """Test body without its registration line and bracket-only lines."""
    kept = []
    for line in test.body.split("\n"):
        stripped = line.strip()
        if REGISTRATION_RE.match(stripped) or PUNCTUATION_ONLY_RE.match(stripped):
            continue
        kept.append(line)
    return textwrap.dedent("\n".join(kept)).strip()


def test_to_criterion(test: TestCase, test_path: str, index: int) -> DerivedCriterion:
    """Derive an acceptance criterion; the caller owns the numbering."""
    return DerivedCriterion(
        id=f"AC-{index + 1:03d}",
        title=test.description,
        test_path=test_path,
        line=test.line,
        scenario=generate_scenario(test),
        verification=verification_code(test),
    )


# Not a pytest test function
test_to_criterion.__test__ = False


def extract_criteria(text: str, path: str = "") -> list[DerivedCriterion]:
    """Criteria for every leaf test in a test file, numbered from AC-001."""
    leaves = [t for t in extract_test_cases(text) if not t.is_suite]
    return [test_to_criterion(test, path, index) for index, test in enumerate(leaves)]


# === Test file lookup ===

def candidate_test_paths(source: Union[str, Path]) -> list[Path]:
    """Conventional test file locations for a source file, most specific first."""
    source = Path(source)
    stem, ext = source.stem, source.suffix or ".js"
    directory = source.parent

    candidates = [
        directory / f"{stem}.test{ext}",
        directory / f"{stem}.spec{ext}",
        directory / "__tests__" / f"{stem}.test{ext}",
        directory / "__tests__" / f"{stem}.spec{ext}",
    ]

    parts = list(source.parts)
    for folder in ("lib", "src"):
        if folder in parts:
            i = len(parts) - 1 - parts[::-1].index(folder)
            swapped = Path(*parts[:i], "test", *parts[i + 1:-1])
            candidates.append(swapped / f"{stem}.test{ext}")
            candidates.append(Path(*parts[:i], "tests", *parts[i + 1:-1]) / f"{stem}.test{ext}")
            break

    if ext != ".js" and ext in SOURCE_EXTENSIONS:
        candidates.append(directory / f"{stem}.test.js")

    return list(dict.fromkeys(candidates))


def find_test_file(source: Union[str, Path]) -> Optional[Path]:
    """First existing conventional test file for a source file."""
    for candidate in candidate_test_paths(source):
        if candidate.is_file():
            return candidate
    return None
