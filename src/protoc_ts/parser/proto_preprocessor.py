"""Normalize raw .proto text into a flat list of single-statement strings.

Each returned string holds at most one statement. Container openings keep
a trailing `` {`` marker, a closing brace is the statement ``}``, and
``;`` terminators are dropped. Line comments survive as their own
``// ...`` statements (except the one leading the file), so annotations such
as ``// package: common`` after an import reach the classifier.
"""

from __future__ import annotations

import re
from typing import List, Tuple

_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_LEADING_LINE_COMMENT_RE = re.compile(r"\A//[^\n]*")
# rpc Foo (Bar) returns (Baz) {}  ->  rpc Foo (Bar) returns (Baz);
_EMPTY_BODY_RE = re.compile(r"\)[ \t]*\{\s*\}")
_RETURNS_RE = re.compile(r"\)\s*returns\s*\(")
_DELIMITER_RE = re.compile(r"([{};])")
_WHITESPACE_RE = re.compile(r"\s+")


def split_statements(text: str) -> List[str]:
    """Split proto source text into normalized statements."""
    text = _BLOCK_COMMENT_RE.sub("", text.strip()).strip()
    text = _LEADING_LINE_COMMENT_RE.sub("", text)
    text = _EMPTY_BODY_RE.sub(");", text)

    statements: List[str] = []
    pending = ""

    for line in text.splitlines():
        code, sep, comment = _split_line_comment(line)

        for piece in _DELIMITER_RE.split(code):
            if piece == "{":
                _emit(statements, pending + " {")
                pending = ""
            elif piece == "}":
                _emit(statements, pending)
                _emit(statements, "}")
                pending = ""
            elif piece == ";":
                _emit(statements, pending)
                pending = ""
            else:
                pending = f"{pending} {piece}"

        if sep:
            _emit(statements, "// " + comment)

    # Trailing statement without terminator
    _emit(statements, pending)
    return statements


def _split_line_comment(line: str) -> Tuple[str, str, str]:
    """Like ``line.partition("//")`` but skips slashes inside quoted strings."""
    quote = ""
    escaped = False
    for i, ch in enumerate(line):
        if quote:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = ""
        elif ch in "\"'":
            quote = ch
        elif line.startswith("//", i):
            return line[:i], "//", line[i + 2:]
    return line, "", ""


def _emit(statements: List[str], raw: str) -> None:
    normalized = _normalize(raw)
    if normalized:
        statements.append(normalized)


def _normalize(raw: str) -> str:
    text = raw.replace("=", " = ")
    text = _RETURNS_RE.sub(") returns (", text)
    return _WHITESPACE_RE.sub(" ", text).strip()
