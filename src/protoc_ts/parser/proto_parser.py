from __future__ import annotations

from pathlib import Path

from .proto_ast import Document
from .proto_ast_parser import ProtoParser
from .proto_preprocessor import split_statements


def parse_proto(text: str) -> Document:
    """Parse .proto source text into a Document."""
    return ProtoParser(split_statements(text)).parse()


def parse_proto_file(file_path: str) -> Document:
    """Parse a .proto file into a Document."""
    text = Path(file_path).read_text(encoding="utf-8")
    return parse_proto(text)
