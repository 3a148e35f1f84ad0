"""Doc comment (/** ... */) extraction and parsing."""

import re
from typing import Optional

from ..models import DocComment, DocParam, DocReturn

DOC_BLOCK_RE = re.compile(r'/\*\*(?!/)(.*?)\*/', re.DOTALL)
TAG_RE = re.compile(r'^@(\w+)\s*(.*)$')
# {type} [name=default] - description, type optional
PARAM_RE = re.compile(
    r'^(?:\{(?P<type>[^}]*)\}\s*)?'
    r'(?P<bracket>\[)?(?P<name>[\w$.]+)(?:\s*=\s*[^\]]*)?\]?'
    r'\s*(?:-\s*)?(?P<desc>.*)$'
)
RETURN_RE = re.compile(r'^(?:\{(?P<type>[^}]*)\}\s*)?(?:-\s*)?(?P<desc>.*)$')


def _clean_lines(content: str) -> list[str]:
    """Strip the leading `*` gutter from each comment line."""
    return [re.sub(r'^\s*\*\s?', '', line).rstrip() for line in content.split('\n')]


def parse_doc_comment(content: str, line: int = 0, end_line: int = 0) -> Optional[DocComment]:
    """Parse the inside of a doc comment.

    Args:
        content: Comment text without the opening and closing markers.
        line: 1-based line of the opening marker.
        end_line: 1-based line of the closing marker.

    Returns:
        DocComment, or None when it has neither a description nor params.
    """
    doc = DocComment(line=line, end_line=end_line or line)
    description: list[str] = []
    example: Optional[list[str]] = None
    current: Optional[str] = None

    def close_example() -> None:
        nonlocal example
        if example is not None:
            doc.examples.append("\n".join(example).strip("\n"))
            example = None

    for raw in _clean_lines(content):
        text = raw.strip()
        match = TAG_RE.match(text)
        if match:
            close_example()
            tag, rest = match.group(1), match.group(2).strip()
            current = tag

            if tag in ("param", "arg", "argument"):
                pm = PARAM_RE.match(rest)
                if pm:
                    name = pm.group("name")
                    doc.params.append(DocParam(
                        name=name,
                        type_tag=(pm.group("type") or None),
                        optional=bool(pm.group("bracket")),
                        description=pm.group("desc").strip(),
                    ))
                else:
                    current = None
            elif tag in ("returns", "return"):
                rm = RETURN_RE.match(rest)
                doc.returns = DocReturn(
                    type_tag=(rm.group("type") or None) if rm else None,
                    description=rm.group("desc").strip() if rm else rest,
                )
            elif tag in ("throws", "throw", "exception"):
                doc.throws.append(rest)
            elif tag == "example":
                example = [rest] if rest else []
            else:
                doc.tags[tag] = rest
            continue

        if current is None:
            if text:
                description.append(text)
        elif current == "example" and example is not None:
            example.append(raw)
        elif text and current in ("param", "arg", "argument") and doc.params:
            last = doc.params[-1]
            last.description = f"{last.description} {text}".strip()
        elif text and current in ("returns", "return") and doc.returns:
            doc.returns.description = f"{doc.returns.description} {text}".strip()

    close_example()
    doc.description = " ".join(description).strip()

    if not doc.description and not doc.params:
        # Tag-only blocks still matter for module detection
        if not any(t in doc.tags for t in ("module", "file", "fileoverview")):
            return None
    return doc


def extract_doc_comments(text: str) -> list[DocComment]:
    """Find and parse every /** ... */ block in text, in file order."""
    docs = []
    for match in DOC_BLOCK_RE.finditer(text):
        start = text.count("\n", 0, match.start()) + 1
        end = start + match.group(0).count("\n")
        doc = parse_doc_comment(match.group(1), line=start, end_line=end)
        if doc is not None:
            docs.append(doc)
    return docs
