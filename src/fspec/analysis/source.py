"""Source analysis: callable symbols, imports and exports of a JS/TS file.

Two strategies produce the same ``SourceUnit`` shape:

- ``PreciseStrategy`` walks the syntax tree from the optional ``esprima``
  parser.
- ``HeuristicStrategy`` matches ordered line patterns.

The tier is chosen per file. If the precise parser rejects a file, the whole
file is analyzed heuristically and the unit is tagged accordingly.
"""

import re
from functools import lru_cache
from typing import Optional

from ..config import DOC_WINDOW, forced_heuristic
from ..models import (
    ExportBindings,
    ImportBinding,
    ParamInfo,
    ParseTier,
    SourceUnit,
    SymbolKind,
    SymbolRecord,
)
from .doccomment import extract_doc_comments

IDENT = r'[A-Za-z_$][\w$]*'
NON_METHOD_WORDS = {
    "if", "for", "while", "switch", "catch", "function", "return",
    "with", "else", "do", "try", "new", "typeof", "await", "yield",
}


class ExtractionFailed(Exception):
    """The precise parser could not handle a file."""


@lru_cache(maxsize=1)
def _load_esprima():
    """Import the optional parser once per process."""
    try:
        import esprima
    except ImportError:
        return None
    return esprima


def precise_available() -> bool:
    """Whether the precise tier can be used for this process.

    ``FSPEC_PARSER=heuristic`` forces the heuristic tier.
    """
    if forced_heuristic():
        return False
    return _load_esprima() is not None


# === Parameter handling ===

def _is_operator(text: str, index: int) -> bool:
    """True when the "=" at index belongs to "=>", "==", "!=", "<=" or ">="."""
    following = text[index + 1:index + 2]
    previous = text[index - 1:index] if index else ""
    return following in ("=", ">") or previous in ("=", "!", "<", ">")


def _split_top_level(text: str, sep: str = ",") -> list[str]:
    """Split on ``sep`` outside of brackets and quotes."""
    parts = []
    depth = 0
    quote = None
    current: list[str] = []
    previous = ""
    for index, ch in enumerate(text):
        if quote:
            current.append(ch)
            if ch == quote:
                quote = None
            previous = ch
            continue
        if ch in "'\"`":
            quote = ch
        elif ch in "([{<":
            depth += 1
        elif ch in ")]}" or ch == ">" and previous != "=":
            depth -= 1
        elif ch == sep and depth == 0 and not (sep == "=" and _is_operator(text, index)):
            parts.append("".join(current))
            current = []
            previous = ch
            continue
        current.append(ch)
        previous = ch
    parts.append("".join(current))
    return [p.strip() for p in parts if p.strip()]


def parse_params(text: str) -> list[ParamInfo]:
    """Parse a parameter list as written between the parentheses."""
    params = []
    for part in _split_top_level(text):
        rest = part.startswith("...")
        if rest:
            part = part[3:].strip()
        if not part:
            continue

        pieces = _split_top_level(part, "=")
        has_default = len(pieces) > 1
        # Drop TypeScript annotations: "a?: number", "{ a }: Options"
        target = _split_top_level(pieces[0], ":")[0] if pieces else part
        ts_optional = target.endswith("?")
        if ts_optional:
            target = target[:-1]

        params.append(ParamInfo(
            name=" ".join(target.split()),
            optional=rest or has_default or ts_optional,
            rest=rest,
            destructured=target[:1] in ("{", "["),
        ))
    return params


# === Strategies ===

class ExtractionStrategy:
    """Interface for symbol extraction."""

    tier: ParseTier

    def extract(self, text: str) -> tuple[list[SymbolRecord], list[ImportBinding], ExportBindings]:
        raise NotImplementedError


class PreciseStrategy(ExtractionStrategy):
    """Syntax-tree extraction backed by esprima."""

    tier = ParseTier.PRECISE

    def extract(self, text: str) -> tuple[list[SymbolRecord], list[ImportBinding], ExportBindings]:
        esprima = _load_esprima()
        if esprima is None:
            raise ExtractionFailed("esprima is not installed")

        tree = None
        errors = []
        for parse in (esprima.parseModule, esprima.parseScript):
            try:
                tree = parse(text, {"loc": True, "jsx": True})
                break
            except Exception as e:  # esprima raises its own Error type
                errors.append(str(e))
        if tree is None:
            raise ExtractionFailed("; ".join(errors))

        collector = _TreeCollector()
        try:
            collector.visit(tree)
        except RecursionError as e:
            raise ExtractionFailed("syntax tree too deep") from e
        return collector.symbols, collector.imports, collector.exports


def _node_type(node) -> Optional[str]:
    value = getattr(node, "type", None)
    return value if isinstance(value, str) else None


def _line(node) -> int:
    loc = getattr(node, "loc", None)
    start = getattr(loc, "start", None)
    return getattr(start, "line", None) or 0


def _end_line(node) -> Optional[int]:
    loc = getattr(node, "loc", None)
    end = getattr(loc, "end", None)
    return getattr(end, "line", None)


def _name_of(node) -> Optional[str]:
    """Identifier name or string-literal value of a key node."""
    kind = _node_type(node)
    if kind == "Identifier":
        return node.name
    if kind == "Literal" and isinstance(getattr(node, "value", None), str):
        return node.value
    return None


def _is_async(node) -> bool:
    return bool(getattr(node, "isAsync", False) or getattr(node, "async", False))


def _member_path(node) -> Optional[str]:
    """Dotted path of a non-computed member expression ("module.exports.x")."""
    kind = _node_type(node)
    if kind == "Identifier":
        return node.name
    if kind == "MemberExpression" and not getattr(node, "computed", False):
        head = _member_path(node.object)
        prop = _name_of(node.property)
        if head and prop:
            return f"{head}.{prop}"
    return None


FUNCTION_NODES = {"FunctionExpression", "ArrowFunctionExpression", "FunctionDeclaration"}


class _TreeCollector:
    """Walks an esprima tree collecting symbols, imports and exports."""

    def __init__(self):
        self.symbols: list[SymbolRecord] = []
        self.imports: list[ImportBinding] = []
        self.exports = ExportBindings()

    # --- helpers ---

    def _params(self, fn) -> list[ParamInfo]:
        params = []
        for p in getattr(fn, "params", None) or []:
            kind = _node_type(p)
            if kind == "Identifier":
                params.append(ParamInfo(name=p.name))
            elif kind == "AssignmentPattern":
                left = p.left
                if _node_type(left) == "Identifier":
                    params.append(ParamInfo(name=left.name, optional=True))
                else:
                    params.append(ParamInfo(name=self._pattern_text(left), optional=True, destructured=True))
            elif kind == "RestElement":
                arg = p.argument
                name = arg.name if _node_type(arg) == "Identifier" else self._pattern_text(arg)
                params.append(ParamInfo(name=name, optional=True, rest=True))
            else:
                params.append(ParamInfo(name=self._pattern_text(p), destructured=True))
        return params

    def _pattern_text(self, node) -> str:
        kind = _node_type(node)
        if kind == "ObjectPattern":
            names = []
            for prop in getattr(node, "properties", None) or []:
                key = _name_of(getattr(prop, "key", None)) or _name_of(getattr(prop, "argument", None))
                if key:
                    names.append(key)
            return "{ " + ", ".join(names) + " }"
        if kind == "ArrayPattern":
            names = [e.name for e in getattr(node, "elements", None) or [] if _node_type(e) == "Identifier"]
            return "[ " + ", ".join(names) + " ]"
        return "arg"

    def _add(self, name: str, fn, kind: SymbolKind, exported: bool, line: int,
             class_name: Optional[str] = None, is_static: bool = False) -> None:
        self.symbols.append(SymbolRecord(
            name=name,
            kind=kind,
            is_async=_is_async(fn),
            is_generator=bool(getattr(fn, "generator", False)),
            is_static=is_static,
            params=self._params(fn),
            line=line or _line(fn),
            end_line=_end_line(fn),
            exported=exported,
            class_name=class_name,
        ))

    def _function_kind(self, fn) -> SymbolKind:
        return SymbolKind.ARROW if _node_type(fn) == "ArrowFunctionExpression" else SymbolKind.FUNCTION

    # --- traversal ---

    def visit(self, node, exported: bool = False) -> None:
        kind = _node_type(node)
        if kind is None:
            return
        handler = getattr(self, f"visit_{kind}", None)
        if handler is not None:
            handler(node, exported)
        else:
            self.generic_visit(node)

    def generic_visit(self, node) -> None:
        for key, value in vars(node).items():
            if key in ("loc", "range"):
                continue
            if isinstance(value, list):
                for item in value:
                    if _node_type(item):
                        self.visit(item)
            elif _node_type(value):
                self.visit(value)

    def visit_ExportNamedDeclaration(self, node, exported: bool) -> None:
        declaration = getattr(node, "declaration", None)
        if declaration is not None:
            for name in self._declared_names(declaration):
                self.exports.named.append(name)
            self.visit(declaration, exported=True)
        if getattr(node, "source", None) is None:
            for spec in getattr(node, "specifiers", None) or []:
                local = _name_of(getattr(spec, "local", None))
                if local:
                    self.exports.named.append(local)

    def visit_ExportDefaultDeclaration(self, node, exported: bool) -> None:
        declaration = node.declaration
        kind = _node_type(declaration)
        if kind == "Identifier":
            self.exports.default = declaration.name
            return
        name = _name_of(getattr(declaration, "id", None))
        if name:
            self.exports.default = name
        if kind in ("FunctionDeclaration", "FunctionExpression") and not name:
            self._add("default", declaration, SymbolKind.FUNCTION, True, _line(node))
            self.visit(declaration.body)
            return
        self.visit(declaration, exported=True)

    def _declared_names(self, declaration) -> list[str]:
        kind = _node_type(declaration)
        if kind in ("FunctionDeclaration", "ClassDeclaration"):
            name = _name_of(getattr(declaration, "id", None))
            return [name] if name else []
        if kind == "VariableDeclaration":
            return [d.id.name for d in declaration.declarations if _node_type(d.id) == "Identifier"]
        return []

    def visit_FunctionDeclaration(self, node, exported: bool) -> None:
        name = _name_of(getattr(node, "id", None))
        if name:
            self._add(name, node, SymbolKind.FUNCTION, exported, _line(node))
        self.visit(node.body)

    def visit_VariableDeclaration(self, node, exported: bool) -> None:
        for declarator in node.declarations:
            target = declarator.id
            init = getattr(declarator, "init", None)
            init_kind = _node_type(init)
            if _node_type(target) == "Identifier" and init_kind in FUNCTION_NODES:
                self._add(target.name, init, self._function_kind(init), exported, _line(declarator))
                self.visit(init.body)
                continue
            if init_kind in ("ClassExpression",):
                self._visit_class(init, exported, name=_name_of(target))
                continue
            required = self._require_source(init)
            if required is not None:
                self.imports.append(ImportBinding(
                    kind="require",
                    source=required,
                    names=self._binding_names(target),
                ))
                continue
            if init is not None:
                self.visit(init)

    def _require_source(self, node) -> Optional[str]:
        if _node_type(node) != "CallExpression":
            return None
        if _name_of(node.callee) != "require" or _node_type(node.callee) != "Identifier":
            return None
        args = getattr(node, "arguments", None) or []
        if args and _node_type(args[0]) == "Literal" and isinstance(args[0].value, str):
            return args[0].value
        return None

    def _binding_names(self, target) -> list[str]:
        kind = _node_type(target)
        if kind == "Identifier":
            return [target.name]
        if kind == "ObjectPattern":
            names = []
            for prop in target.properties:
                value = getattr(prop, "value", None)
                name = _name_of(value) if _node_type(value) == "Identifier" else _name_of(getattr(prop, "key", None))
                if name:
                    names.append(name)
            return names
        return []

    def visit_ClassDeclaration(self, node, exported: bool) -> None:
        self._visit_class(node, exported)

    def _visit_class(self, node, exported: bool, name: Optional[str] = None) -> None:
        class_name = _name_of(getattr(node, "id", None)) or name or "default"
        for member in getattr(node.body, "body", None) or []:
            if _node_type(member) != "MethodDefinition":
                continue
            key = None if getattr(member, "computed", False) else _name_of(member.key)
            if not key or getattr(member, "kind", "method") in ("constructor", "get", "set"):
                continue
            self._add(
                f"{class_name}.{key}",
                member.value,
                SymbolKind.METHOD,
                exported,
                _line(member),
                class_name=class_name,
                is_static=bool(getattr(member, "static", False) or getattr(member, "isStatic", False)),
            )
            self.visit(member.value.body)

    def visit_ImportDeclaration(self, node, exported: bool) -> None:
        names = []
        for spec in getattr(node, "specifiers", None) or []:
            local = _name_of(getattr(spec, "local", None))
            if local:
                names.append(local)
        self.imports.append(ImportBinding(kind="import", source=node.source.value, names=names))

    def visit_ExpressionStatement(self, node, exported: bool) -> None:
        expression = node.expression
        if _node_type(expression) != "AssignmentExpression":
            self.generic_visit(node)
            return

        target = _member_path(expression.left)
        value = expression.right
        value_kind = _node_type(value)

        if target == "module.exports":
            if value_kind == "ObjectExpression":
                self._visit_export_object(value)
            elif value_kind == "Identifier":
                self._commonjs().append(value.name)
            elif value_kind in FUNCTION_NODES:
                name = _name_of(getattr(value, "id", None)) or "default"
                self._commonjs().append(name)
                self._add(name, value, self._function_kind(value), True, _line(node))
                self.visit(value.body)
            elif value_kind == "ClassExpression":
                name = _name_of(getattr(value, "id", None)) or "default"
                self._commonjs().append(name)
                self._visit_class(value, True, name=name)
            else:
                self.visit(value)
            return

        if target and (target.startswith("exports.") or target.startswith("module.exports.")):
            name = target.rsplit(".", 1)[-1]
            self._commonjs().append(name)
            if value_kind in FUNCTION_NODES:
                self._add(name, value, self._function_kind(value), True, _line(node))
                self.visit(value.body)
            elif value_kind == "Identifier":
                self._commonjs().append(value.name)
            elif value_kind == "ClassExpression":
                self._visit_class(value, True, name=name)
            else:
                self.visit(value)
            return

        self.generic_visit(node)

    def _commonjs(self) -> list[str]:
        if self.exports.commonjs is None:
            self.exports.commonjs = []
        return self.exports.commonjs

    def _visit_export_object(self, obj) -> None:
        names = self._commonjs()
        for prop in getattr(obj, "properties", None) or []:
            if _node_type(prop) != "Property":
                continue
            key = None if getattr(prop, "computed", False) else _name_of(prop.key)
            value = prop.value
            value_kind = _node_type(value)
            if value_kind == "Identifier":
                names.append(value.name)
            elif key and value_kind in FUNCTION_NODES:
                names.append(key)
                self._add(key, value, SymbolKind.METHOD, True, _line(prop))
                self.visit(value.body)
            elif key:
                names.append(key)


class HeuristicStrategy(ExtractionStrategy):
    """Line-pattern extraction for files the precise tier cannot handle."""

    tier = ParseTier.HEURISTIC

    def extract(self, text: str) -> tuple[list[SymbolRecord], list[ImportBinding], ExportBindings]:
        scanner = _LineScanner(text.split("\n"))
        symbols = scanner.scan()
        imports = _regex_imports(text)
        exports = _regex_exports(text, scanner.block_exports)
        return symbols, imports, exports


FUNC_DECL_RE = re.compile(
    rf'^\s*(export\s+(?:default\s+)?)?(async\s+)?function\s*(\*)?\s*({IDENT})\s*\(([^)]*)\)'
)
ASSIGNED_RE = re.compile(
    rf'^\s*(export\s+)?(?:const|let|var)\s+({IDENT})\s*(?::[^=]+)?=\s*(async\s+)?'
    rf'(?:function\s*(\*)?\s*(?:{IDENT})?\s*\(([^)]*)\)'
    rf'|\(([^)]*)\)\s*(?::\s*[^=]+)?=>'
    rf'|({IDENT})\s*=>)'
)
METHOD_RE = re.compile(
    rf'^\s*(?:(?:public|private|protected|readonly)\s+)*(static\s+)?(async\s+)?(\*\s*)?'
    rf'({IDENT})\s*\(([^)]*)\)\s*(?::\s*[^{{]+)?\{{'
)
PROPERTY_FUNC_RE = re.compile(
    rf'^\s*({IDENT})\s*:\s*(async\s+)?'
    rf'(?:function\s*(\*)?\s*(?:{IDENT})?\s*\(([^)]*)\)'
    rf'|\(([^)]*)\)\s*=>'
    rf'|({IDENT})\s*=>)'
)
CLASS_RE = re.compile(
    rf'^\s*(export\s+(?:default\s+)?|(?:module\.)?exports(?:\.({IDENT}))?\s*=\s*)?'
    rf'class\b(?:\s+(?!extends\b)({IDENT}))?'
)
EXPORT_BLOCK_OPEN_RE = re.compile(r'^\s*(?:module\.exports\s*=|export\s+default)\s*\{')
SHORTHAND_RE = re.compile(rf'^\s*({IDENT})\s*,?\s*$')
ALIAS_RE = re.compile(rf'^\s*({IDENT})\s*:\s*({IDENT})\s*,?\s*$')
EXPORTS_ASSIGN_FUNC_RE = re.compile(
    rf'^\s*(?:module\.)?exports\.({IDENT})\s*=\s*(async\s+)?'
    rf'(?:function\s*(\*)?\s*(?:{IDENT})?\s*\(([^)]*)\)'
    rf'|\(([^)]*)\)\s*=>'
    rf'|({IDENT})\s*=>)'
)

STRING_RE = re.compile(r"'(?:\\.|[^'\\])*'|\"(?:\\.|[^\"\\])*\"|`(?:\\.|[^`\\])*`")


def _code_only(line: str) -> str:
    """Line with string literals and line comments removed."""
    line = STRING_RE.sub("''", line)
    return line.split("//", 1)[0]


class _LineScanner:
    """Per-call state for the heuristic tier."""

    def __init__(self, lines: list[str]):
        self.lines = lines
        self.in_export_block = False
        self.export_depth = 0
        self.in_comment = False
        self.depth = 0
        self.classes: list[tuple[str, int, bool, int]] = []  # (name, depth, exported, line index)
        self.block_exports: list[str] = []
        self.symbols: list[SymbolRecord] = []
        self._seen: set[str] = set()

    def scan(self) -> list[SymbolRecord]:
        for index, line in enumerate(self.lines):
            code = self._strip_comments(line)
            if not code.strip():
                continue
            self._scan_line(index, code)
            self.depth += code.count("{") - code.count("}")
            if self.in_export_block and self.depth <= self.export_depth:
                self.in_export_block = False
            while self.classes and self.classes[-1][3] != index and self.depth <= self.classes[-1][1]:
                self.classes.pop()
        return self.symbols

    def _strip_comments(self, line: str) -> str:
        """Remove block comments, tracking ones that span lines."""
        code = ""
        rest = _code_only(line)
        while rest:
            if self.in_comment:
                end = rest.find("*/")
                if end < 0:
                    return code
                self.in_comment = False
                rest = rest[end + 2:]
            else:
                start = rest.find("/*")
                if start < 0:
                    return code + rest
                code += rest[:start]
                self.in_comment = True
                rest = rest[start + 2:]
        return code

    def _block_end(self, index: int) -> int:
        """1-based line where the block opened on ``index`` closes."""
        depth = 0
        opened = False
        for offset, line in enumerate(self.lines[index:]):
            code = _code_only(line)
            for ch in code:
                if ch == "{":
                    depth += 1
                    opened = True
                elif ch == "}":
                    depth -= 1
            if opened and depth <= 0:
                return index + offset + 1
            if not opened and offset == 0 and "=>" in code:
                return index + 1
        return index + 1

    def _record(self, index: int, name: str, params: Optional[str], kind: SymbolKind, exported: bool,
                is_async: bool = False, is_generator: bool = False, is_static: bool = False,
                class_name: Optional[str] = None) -> None:
        if name in self._seen:
            return
        self._seen.add(name)
        self.symbols.append(SymbolRecord(
            name=name,
            kind=kind,
            is_async=is_async,
            is_generator=is_generator,
            is_static=is_static,
            params=parse_params(params or ""),
            line=index + 1,
            end_line=self._block_end(index),
            exported=exported,
            class_name=class_name,
        ))

    def _scan_line(self, index: int, code: str) -> None:
        at_block_top = self.in_export_block and self.depth == self.export_depth + 1

        if at_block_top:
            alias = ALIAS_RE.match(code)
            if alias:
                self.block_exports.append(alias.group(2))
                return
            short = SHORTHAND_RE.match(code)
            if short:
                self.block_exports.append(short.group(1))
                return

        if not self.in_export_block and EXPORT_BLOCK_OPEN_RE.match(code):
            # Single-line object literals are handled by the export regexes
            if code.count("{") > code.count("}"):
                self.in_export_block = True
                self.export_depth = self.depth
            return

        class_match = CLASS_RE.match(code)
        if class_match:
            name = class_match.group(3) or class_match.group(2) or "default"
            self.classes.append((name, self.depth, bool(class_match.group(1)), index))
            return

        m = FUNC_DECL_RE.match(code)
        if m:
            self._record(
                index, m.group(4), m.group(5), SymbolKind.FUNCTION,
                exported=bool(m.group(1)),
                is_async=bool(m.group(2)), is_generator=bool(m.group(3)),
            )
            return

        m = ASSIGNED_RE.match(code)
        if m:
            is_function = m.group(5) is not None
            params = m.group(5) if is_function else (m.group(6) if m.group(6) is not None else m.group(7))
            self._record(
                index, m.group(2), params,
                SymbolKind.FUNCTION if is_function else SymbolKind.ARROW,
                exported=bool(m.group(1)),
                is_async=bool(m.group(3)), is_generator=bool(m.group(4)),
            )
            return

        m = EXPORTS_ASSIGN_FUNC_RE.match(code)
        if m:
            is_function = m.group(4) is not None
            params = next((g for g in (m.group(4), m.group(5), m.group(6)) if g is not None), "")
            self._record(
                index, m.group(1), params,
                SymbolKind.FUNCTION if is_function else SymbolKind.ARROW,
                exported=True, is_async=bool(m.group(2)), is_generator=bool(m.group(3)),
            )
            return

        current = self.classes[-1] if self.classes else None
        in_class_body = current is not None and self.depth == current[1] + 1

        if at_block_top:
            m = PROPERTY_FUNC_RE.match(code)
            if m:
                params = next((g for g in (m.group(4), m.group(5), m.group(6)) if g is not None), "")
                self._record(
                    index, m.group(1), params, SymbolKind.METHOD, exported=True,
                    is_async=bool(m.group(2)), is_generator=bool(m.group(3)),
                )
                self.block_exports.append(m.group(1))
                return

        if in_class_body or at_block_top:
            m = METHOD_RE.match(code)
            if not m or m.group(4) in NON_METHOD_WORDS or m.group(4) == "constructor":
                return
            name = m.group(4)
            if in_class_body:
                class_name = current[0]
                self._record(
                    index, f"{class_name}.{name}", m.group(5), SymbolKind.METHOD,
                    exported=current[2], is_async=bool(m.group(2)),
                    is_generator=bool(m.group(3)), is_static=bool(m.group(1)),
                    class_name=class_name,
                )
            else:
                self._record(
                    index, name, m.group(5), SymbolKind.METHOD, exported=True,
                    is_async=bool(m.group(2)), is_generator=bool(m.group(3)),
                )
                self.block_exports.append(name)



IMPORT_RE = re.compile(r'^\s*import\s+(.+?)\s+from\s+[\'"]([^\'"]+)[\'"]', re.MULTILINE)
SIDE_EFFECT_IMPORT_RE = re.compile(r'^\s*import\s+[\'"]([^\'"]+)[\'"]', re.MULTILINE)
REQUIRE_RE = re.compile(
    r'(?:(?:const|let|var)\s+(\{[^}]*\}|[A-Za-z_$][\w$]*)\s*=\s*)?require\(\s*[\'"]([^\'"]+)[\'"]\s*\)'
)


def _names_from_clause(clause: str) -> list[str]:
    """Local names bound by an import clause or require pattern."""
    names = []
    clause = clause.strip()
    braced = re.search(r'\{([^}]*)\}', clause)
    if braced:
        for part in braced.group(1).split(","):
            part = part.strip()
            if not part:
                continue
            # "a as b" (import) or "a: b" (destructuring)
            local = re.split(r'\s+as\s+|\s*:\s*', part)[-1].strip()
            names.append(local)
        clause = clause.replace(braced.group(0), "")
    namespace = re.search(rf'\*\s+as\s+({IDENT})', clause)
    if namespace:
        names.append(namespace.group(1))
        clause = clause.replace(namespace.group(0), "")
    for part in clause.split(","):
        part = part.strip()
        if re.fullmatch(IDENT, part):
            names.insert(0, part)
    return names


def _regex_imports(text: str) -> list[ImportBinding]:
    found: list[tuple[int, ImportBinding]] = []
    for m in IMPORT_RE.finditer(text):
        found.append((m.start(), ImportBinding(kind="import", source=m.group(2), names=_names_from_clause(m.group(1)))))
    for m in SIDE_EFFECT_IMPORT_RE.finditer(text):
        found.append((m.start(), ImportBinding(kind="import", source=m.group(1))))
    for m in REQUIRE_RE.finditer(text):
        names = _names_from_clause(m.group(1)) if m.group(1) else []
        found.append((m.start(), ImportBinding(kind="require", source=m.group(2), names=names)))
    return [binding for _, binding in sorted(found, key=lambda item: item[0])]


NAMED_DECL_EXPORT_RE = re.compile(
    rf'^\s*export\s+(?:async\s+)?(?:function\s*\*?|const|let|var|class)\s*({IDENT})', re.MULTILINE
)
EXPORT_LIST_RE = re.compile(r'^\s*export\s*\{([^}]*)\}(\s*from)?', re.MULTILINE)
DEFAULT_EXPORT_RE = re.compile(
    rf'^\s*export\s+default\s+(?:async\s+)?(?:function\s*\*?\s*|class\s+)?({IDENT})', re.MULTILINE
)
CJS_OBJECT_RE = re.compile(r'module\.exports\s*=\s*\{([^{}]*)\}')
CJS_IDENT_RE = re.compile(rf'module\.exports\s*=\s*({IDENT})\s*;?\s*$', re.MULTILINE)
CJS_PROPERTY_RE = re.compile(rf'^\s*(?:module\.)?exports\.({IDENT})\s*=\s*({IDENT})?', re.MULTILINE)
RESERVED_VALUES = {"function", "async", "class", "new", "require"}


def _regex_exports(text: str, block_exports: list[str]) -> ExportBindings:
    exports = ExportBindings()

    for m in NAMED_DECL_EXPORT_RE.finditer(text):
        exports.named.append(m.group(1))
    for m in EXPORT_LIST_RE.finditer(text):
        if m.group(2):
            continue  # re-export from another module
        for part in m.group(1).split(","):
            local = part.strip().split()[0] if part.strip() else ""
            if local and local != "default":
                exports.named.append(local)
    m = DEFAULT_EXPORT_RE.search(text)
    if m and m.group(1) not in ("function", "class"):
        exports.default = m.group(1)

    commonjs: list[str] = []
    for m in CJS_OBJECT_RE.finditer(text):
        for part in m.group(1).split(","):
            part = part.strip()
            if not part:
                continue
            if ":" in part:
                value = part.split(":", 1)[1].strip().split()[0] if part.split(":", 1)[1].strip() else ""
                if re.fullmatch(IDENT, value) and value not in RESERVED_VALUES:
                    commonjs.append(value)
                else:
                    commonjs.append(part.split(":", 1)[0].strip())
            else:
                word = re.match(IDENT, part)
                if word:
                    commonjs.append(word.group(0))
    for m in CJS_IDENT_RE.finditer(text):
        commonjs.append(m.group(1))
    for m in CJS_PROPERTY_RE.finditer(text):
        commonjs.append(m.group(1))
        if m.group(2) and m.group(2) not in RESERVED_VALUES:
            commonjs.append(m.group(2))
    commonjs.extend(block_exports)

    if commonjs:
        exports.commonjs = list(dict.fromkeys(commonjs))
    exports.named = list(dict.fromkeys(exports.named))
    return exports


# === Entry point ===

def _mark_exported(symbols: list[SymbolRecord], exports: ExportBindings) -> None:
    names = exports.names()
    for symbol in symbols:
        if symbol.exported:
            continue
        if symbol.name in names or symbol.class_name and symbol.class_name in names:
            symbol.exported = True


def analyze_source(
    text: str,
    path: str = "",
    *,
    prefer_precise: bool = True,
    doc_window: int = DOC_WINDOW,
) -> SourceUnit:
    """Extract symbols, doc comments, imports and exports from source text.

    Never raises for malformed input: an unparsable file yields whatever the
    heuristic tier finds, possibly nothing.

    Args:
        text: Source text.
        path: Path recorded on the unit.
        prefer_precise: Use the precise tier when it is available.
        doc_window: Max lines between a doc comment and its symbol.

    Returns:
        SourceUnit tagged with the tier that produced it.
    """
    strategy: ExtractionStrategy = HeuristicStrategy()
    result = None

    if prefer_precise and precise_available():
        try:
            result = PreciseStrategy().extract(text)
            strategy = PreciseStrategy()
        except ExtractionFailed:
            result = None

    if result is None:
        strategy = HeuristicStrategy()
        result = strategy.extract(text)

    symbols, imports, exports = result
    _mark_exported(symbols, exports)
    symbols.sort(key=lambda s: s.line)

    return SourceUnit(
        path=path,
        tier=strategy.tier,
        symbols=symbols,
        doc_comments=extract_doc_comments(text),
        imports=imports,
        exports=exports,
        doc_window=doc_window,
    )
