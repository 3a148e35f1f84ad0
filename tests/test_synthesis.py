"""Tests for spec synthesis."""

import tempfile
from pathlib import Path

import pytest

from fspec.errors import DocumentExists, ExitCode
from fspec.models import ParamInfo, Quality, SymbolKind, SymbolRecord
from fspec.spec.parser import get_completion_rate, parse_spec, update_ac_status
from fspec.spec.synthesis import (
    determine_spec_path,
    module_name,
    render_signature,
    synthesize_file,
    synthesize_files,
    synthesize_source,
    write_spec,
)


BARE_ADD = "function add(a, b) { return a + b; }\n"

DOCUMENTED_ADD = """/**
 * Adds two numbers.
 * Returns their sum.
 */
function add(a, b) {
  return a + b;
}

module.exports = { add };
"""

ADD_TESTS = """const assert = require('assert');
const { add } = require('../lib/add');

describe('add', () => {
  it('adds two numbers', () => {
    assert.strictEqual(add(1, 2), 3);
  });

  it('adds negative numbers', () => {
    assert.strictEqual(add(-1, -2), -3);
  });
});
"""


class TestRendering:
    """Tests for document fragments."""

    def test_module_name(self) -> None:
        """Test titles derived from paths."""
        assert module_name("lib/add.js") == "add"
        assert module_name("lib/math/index.js") == "math"
        assert module_name("src/parser.test.ts") == "parser"

    def test_signatures(self) -> None:
        """Test function, arrow and static method signatures."""
        fetch = SymbolRecord(
            name="fetch",
            is_async=True,
            params=[ParamInfo(name="url"), ParamInfo(name="opts", optional=True)],
            line=1,
        )
        double = SymbolRecord(name="double", kind=SymbolKind.ARROW, params=[ParamInfo(name="n")], line=1)
        create = SymbolRecord(
            name="Store.create",
            kind=SymbolKind.METHOD,
            is_static=True,
            params=[ParamInfo(name="items", rest=True, optional=True)],
            line=1,
        )

        assert render_signature(fetch) == "async function fetch(url, [opts])"
        assert render_signature(double) == "const double = (n) => { … }"
        assert render_signature(create) == "static create(...items)"

    def test_spec_path_mirrors_source_directory(self) -> None:
        """Test that lib/ is dropped and subdirectories are kept."""
        base = Path("/project")

        assert determine_spec_path("lib/math/add.js", "specs", base) == base / "specs" / "math" / "add.fspec.md"
        assert determine_spec_path("util.ts", "specs", base) == base / "specs" / "util.fspec.md"


class TestScenarios:
    """End-to-end synthesis scenarios."""

    def test_unexported_undocumented_is_low(self) -> None:
        """Test a bare function: LOW, no requirements, doc comment hint."""
        result = synthesize_source(BARE_ADD, "lib/add.js", prefer_precise=False)
        doc = parse_spec(result.content)

        assert result.quality == Quality.LOW
        assert doc.requirements == []
        assert doc.quality == Quality.LOW
        assert "## Extraction Quality" in result.content
        assert "doc comments" in result.content

    def test_documented_exported_tested_is_high(self) -> None:
        """Test the fully covered function: HIGH, one requirement, AC-001/AC-002."""
        pytest.importorskip("esprima")

        result = synthesize_source(
            DOCUMENTED_ADD,
            "lib/add.js",
            test_text=ADD_TESTS,
            test_path="test/add.test.js",
        )
        doc = parse_spec(result.content)

        assert result.quality == Quality.HIGH
        assert len(doc.requirements) == 1
        assert [ac.id for ac in doc.requirements[0].acceptance_criteria] == ["AC-001", "AC-002"]
        assert "Adds two numbers. Returns their sum." in result.content
        assert "## Extraction Quality" not in result.content

    def test_completion_after_check(self) -> None:
        """Test toggling AC-001 then computing the completion rate."""
        result = synthesize_source(
            DOCUMENTED_ADD,
            "lib/add.js",
            test_text=ADD_TESTS,
            test_path="test/add.test.js",
        )

        updated = update_ac_status(result.content, "AC-001", True)
        rate = get_completion_rate(parse_spec(updated))

        assert (rate.completed, rate.total, rate.percentage) == (1, 2, 50)

    def test_deterministic(self) -> None:
        """Test that identical input gives identical output."""
        first = synthesize_source(DOCUMENTED_ADD, "lib/add.js", test_text=ADD_TESTS, test_path="test/add.test.js")
        second = synthesize_source(DOCUMENTED_ADD, "lib/add.js", test_text=ADD_TESTS, test_path="test/add.test.js")

        assert first.content == second.content


class TestDocumentContent:
    """Tests for what ends up in a synthesized document."""

    def test_round_trip(self) -> None:
        """Test that parsing reproduces the synthesized fields."""
        result = synthesize_source(DOCUMENTED_ADD, "lib/add.js", test_text=ADD_TESTS, test_path="test/add.test.js")
        doc = parse_spec(result.content)

        assert doc.title == "add"
        assert doc.status == "draft"
        assert doc.version == "1.0.0"
        assert doc.quality == result.quality
        assert doc.source_path == "lib/add.js"
        assert [r.id for r in doc.requirements] == ["REQ-001"]
        assert doc.requirements[0].title == "add"
        assert [(r.type, r.path) for r in doc.derived_outputs] == [
            ("code", "lib/add.js"),
            ("test", "test/add.test.js"),
        ]

    def test_criteria_carry_scenarios(self) -> None:
        """Test the Given/When/Then sub-bullets and verification code."""
        result = synthesize_source(DOCUMENTED_ADD, "lib/add.js", test_text=ADD_TESTS, test_path="test/add.test.js")

        assert "  - Source: `test/add.test.js:5`" in result.content
        assert "  - Given: system operating normally" in result.content
        assert "  - When: adds two numbers" in result.content
        assert "  - Then: return value matches expectation" in result.content
        assert "    assert.strictEqual(add(1, 2), 3);" in result.content

    def test_undocumented_neighbor_gets_no_doc(self) -> None:
        """Test that a function below a documented one keeps TODO placeholders."""
        source = (
            "/**\n"
            " * Adds two numbers.\n"
            " * @param {number} a - first\n"
            " * @param {number} b - second\n"
            " */\n"
            "function add(a, b) { return a + b; }\n"
            "\n"
            "function sub(a, b) { return a - b; }\n"
            "\n"
            "module.exports = { add, sub };\n"
        )

        result = synthesize_source(source, "lib/math.js", prefer_precise=False)
        sub_block = result.content.split("### REQ-002: sub", 1)[1]

        assert "Adds two numbers." not in sub_block
        assert "- `a` (number): first" not in sub_block
        assert "- `a` (any)" in sub_block

    def test_tests_attributed_by_name_with_unique_ids(self) -> None:
        """Test attribution across several exports and placeholder numbering."""
        source = (
            "export function add(a, b) { return a + b; }\n"
            "export function sub(a, b) { return a - b; }\n"
            "export function mul(a, b) { return a * b; }\n"
        )
        tests = (
            "test('add sums', () => { expect(add(1, 2)).toBe(3); });\n"
            "test('sub subtracts', () => { expect(sub(3, 1)).toBe(2); });\n"
            "test('handles strings', () => { expect(String(1)).toBe('1'); });\n"
        )

        result = synthesize_source(source, "lib/ops.js", test_text=tests, test_path="test/ops.test.js", prefer_precise=False)
        doc = parse_spec(result.content)

        assert [r.title for r in doc.requirements] == ["add", "sub", "mul"]
        assert [ac.id for ac in doc.requirements[0].acceptance_criteria] == ["AC-001"]
        assert [ac.id for ac in doc.requirements[1].acceptance_criteria] == ["AC-002"]
        assert [ac.id for ac in doc.requirements[2].acceptance_criteria] == ["AC-004", "AC-005"]
        assert sorted(ac.id for ac in doc.acceptance_criteria) == [f"AC-{n:03d}" for n in range(1, 6)]
        assert "## Acceptance Criteria" in result.content

    def test_doc_comment_params(self) -> None:
        """Test parameter bullets, returns and throws from a doc comment."""
        source = (
            "/**\n"
            " * Divides a by b.\n"
            " * @param {number} a - Dividend\n"
            " * @param {number} b - Divisor\n"
            " * @returns {number} Quotient\n"
            " * @throws {RangeError} When b is zero\n"
            " */\n"
            "export function divide(a, b) {\n"
            "  return a / b;\n"
            "}\n"
        )

        result = synthesize_source(source, "lib/divide.js", prefer_precise=False)

        assert "- `a` (number): Dividend" in result.content
        assert "- `b` (number): Divisor" in result.content
        assert "**Returns**: `number` Quotient" in result.content
        assert "- {RangeError} When b is zero" in result.content

    def test_missing_doc_comment_leaves_bare_bullets(self) -> None:
        """Test the TODO note and bare parameter bullets."""
        result = synthesize_source("export function f(x) { return x; }\n", "lib/f.js", prefer_precise=False)

        assert "> TODO: describe what `f` does." in result.content
        assert "- `x` (any)" in result.content


class TestFileOperations:
    """Tests for file-based synthesis."""

    def _project(self, root: Path) -> Path:
        (root / "lib").mkdir()
        (root / "test").mkdir()
        source = root / "lib" / "add.js"
        source.write_text(DOCUMENTED_ADD)
        (root / "test" / "add.test.js").write_text(ADD_TESTS)
        return source

    def test_synthesize_file_finds_tests(self) -> None:
        """Test that the paired test file is discovered."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            source = self._project(root)

            result = synthesize_file(source, base_path=root)

            assert result.source_path == "lib/add.js"
            assert result.test_path == "test/add.test.js"
            assert result.spec_path == str(root / "specs" / "add.fspec.md")
            assert result.stats.tests == 2

    def test_without_tests(self) -> None:
        """Test include_tests=False."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            source = self._project(root)

            result = synthesize_file(source, include_tests=False, base_path=root)

            assert result.test_path is None
            assert "| test |" not in result.content

    def test_write_refuses_to_overwrite(self) -> None:
        """Test that an existing document is kept unless overwrite is set."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            result = synthesize_file(self._project(root), base_path=root)

            target = write_spec(result)
            target.write_text("# Feature: edited by hand\n")

            with pytest.raises(DocumentExists):
                write_spec(result)
            assert target.read_text() == "# Feature: edited by hand\n"

            write_spec(result, overwrite=True)
            assert target.read_text() == result.content

    def test_batch_records_undecodable_file(self) -> None:
        """Test that a file that is not UTF-8 fails alone."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            source = self._project(root)
            latin = root / "lib" / "latin.js"
            latin.write_bytes("// caf\u00e9\nfunction f() {}\n".encode("latin-1"))

            report = synthesize_files([latin, source], base_path=root)

            assert report.failed == 1
            assert report.succeeded == 1
            assert "UTF-8" in report.failures()[0][1]

    def test_batch_continues_past_failures(self) -> None:
        """Test that a missing file is recorded and the rest still succeed."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            source = self._project(root)

            report = synthesize_files([root / "lib" / "missing.js", source], write=True, base_path=root)

            assert report.total == 2
            assert report.failed == 1
            assert report.succeeded == 1
            assert report.failures()[0][0].endswith("missing.js")
            assert report.exit_code() == ExitCode.PARTIAL
            assert (root / "specs" / "add.fspec.md").exists()
