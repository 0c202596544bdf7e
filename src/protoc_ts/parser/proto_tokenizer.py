"""Tokenizer and classifier for preprocessed protobuf statements."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import List


class StatementKind(Enum):
    # Keywords
    SYNTAX = auto()
    PACKAGE = auto()
    IMPORT = auto()
    OPTION = auto()
    MESSAGE = auto()
    ENUM = auto()
    SERVICE = auto()
    RPC = auto()
    RESERVED = auto()

    # Delimiters
    CLOSE = auto()

    # Special
    COMMENT = auto()
    BLOCK = auto()  # any other brace-opening statement (oneof, extend, ...)
    FIELD = auto()


_KEYWORDS = {
    "syntax": StatementKind.SYNTAX,
    "package": StatementKind.PACKAGE,
    "import": StatementKind.IMPORT,
    "option": StatementKind.OPTION,
    "message": StatementKind.MESSAGE,
    "enum": StatementKind.ENUM,
    "service": StatementKind.SERVICE,
    "rpc": StatementKind.RPC,
    "reserved": StatementKind.RESERVED,
    "extensions": StatementKind.RESERVED,
}

# Keywords whose statement may legitimately open a braced body.
_OPENERS = {
    StatementKind.MESSAGE,
    StatementKind.ENUM,
    StatementKind.SERVICE,
    StatementKind.RPC,
}

_QUOTES_RE = re.compile(r"[\"']")
_RPC_SPLIT_RE = re.compile(r"[\s()]+")


@dataclass
class Statement:
    kind: StatementKind
    tokens: List[str]
    text: str
    opens_block: bool = False


def tokenize_statement(text: str) -> List[str]:
    """Split a statement on whitespace and strip quote characters."""
    tokens = (_QUOTES_RE.sub("", tok) for tok in text.split())
    return [tok for tok in tokens if tok]


def tokenize_rpc(text: str) -> List[str]:
    """Split an rpc statement on whitespace and parentheses.

    ``stream`` modifiers are dropped; streaming is not modelled.
    """
    tokens = (_QUOTES_RE.sub("", tok) for tok in _RPC_SPLIT_RE.split(text))
    return [tok for tok in tokens if tok and tok not in ("stream", "{")]


def classify_statement(text: str) -> Statement:
    """Tokenize one statement and determine its syntactic category."""
    opens_block = text.endswith("{")
    body = text[:-1].rstrip() if opens_block else text

    if body.startswith("//"):
        return Statement(StatementKind.COMMENT, tokenize_statement(body), text)
    if body == "}":
        return Statement(StatementKind.CLOSE, ["}"], text)

    tokens = tokenize_statement(body)
    kind = _KEYWORDS.get(tokens[0], StatementKind.FIELD) if tokens else StatementKind.FIELD

    if opens_block and kind not in _OPENERS:
        kind = StatementKind.BLOCK

    return Statement(kind, tokens, text, opens_block)
