"""Statement-driven parser for protobuf (.proto) files.

Consumes the statements produced by proto_preprocessor in source order and
assembles a Document in a single pass.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from .document_assembler import DocumentAssembler
from .errors import ProtoParseError, UnbalancedScopeError
from .proto_ast import Document, OptionEntry, RpcMethod
from .proto_tokenizer import Statement, StatementKind, classify_statement, tokenize_rpc
from .scope_tracker import FrameKind

__all__ = ["ProtoParser", "ProtoParseError", "UnbalancedScopeError"]

logger = logging.getLogger(__name__)

_FIELD_MODIFIERS = {"repeated", "optional", "required"}
_TYPE_NAME_RE = re.compile(r"^\.?[A-Za-z_][\w.]*$")
# // package: common   (re-keys the import right before it)
_PACKAGE_ANNOTATION_RE = re.compile(r"^//\s*package\b\s*:?\s*([\w.]+)")

_CONTAINER_FRAMES = {
    StatementKind.MESSAGE: FrameKind.MESSAGE,
    StatementKind.ENUM: FrameKind.ENUM,
    StatementKind.SERVICE: FrameKind.SERVICE,
}


def _parse_int(token: str) -> int:
    try:
        return int(token, 0)
    except ValueError:
        return int(token, 10)


class ProtoParser:
    """Single-pass parser over preprocessed .proto statements.

    All state lives on the instance; use one parser per file.
    """

    def __init__(self, statements: List[str]):
        self._statements = statements
        self._doc = DocumentAssembler()
        self._previous: Optional[StatementKind] = None

    # -- public API --

    def parse(self) -> Document:
        """Parse every statement and return the assembled Document."""
        for index, text in enumerate(self._statements, start=1):
            stmt = classify_statement(text)
            self._dispatch(stmt, index)
            self._previous = stmt.kind
        return self._doc.finalize()

    # -- dispatch --

    def _dispatch(self, stmt: Statement, index: int) -> None:
        kind = stmt.kind
        tokens = stmt.tokens

        if kind == StatementKind.COMMENT:
            self._parse_comment(stmt)
        elif kind == StatementKind.SYNTAX:
            if len(tokens) > 1:
                self._doc.set_syntax(tokens[-1])
        elif kind == StatementKind.PACKAGE:
            if len(tokens) > 1:
                self._doc.set_package(tokens[-1])
        elif kind == StatementKind.IMPORT:
            if len(tokens) > 1:
                self._doc.imports.register(tokens[-1])
        elif kind == StatementKind.OPTION:
            self._parse_option(stmt, index)
        elif kind in _CONTAINER_FRAMES:
            self._parse_container(stmt, index)
        elif kind == StatementKind.RPC:
            self._parse_rpc(stmt, index)
        elif kind == StatementKind.CLOSE:
            self._doc.scopes.close(index, stmt.text)
        elif kind == StatementKind.BLOCK:
            self._doc.scopes.open(FrameKind.OPAQUE, tokens[0] if tokens else "")
        elif kind == StatementKind.RESERVED:
            pass
        else:
            self._parse_member(stmt, index)

    # -- statement parsing --

    def _parse_comment(self, stmt: Statement) -> None:
        """Only a ``package:`` annotation directly after an import is meaningful."""
        if self._previous != StatementKind.IMPORT:
            return
        match = _PACKAGE_ANNOTATION_RE.match(stmt.text)
        if match:
            self._doc.imports.rekey_last(match.group(1))

    def _parse_option(self, stmt: Statement, index: int) -> None:
        """Parse: option name = value"""
        tokens = stmt.tokens
        if len(tokens) < 2:
            self._ignore(stmt, index)
            return
        option = OptionEntry(name=tokens[1], value=tokens[-1])
        if not self._doc.scopes.add_option(option):
            self._ignore(stmt, index)

    def _parse_container(self, stmt: Statement, index: int) -> None:
        """Parse: (message|enum|service) Name {"""
        if not stmt.opens_block:
            self._ignore(stmt, index)
            return
        name = stmt.tokens[1] if len(stmt.tokens) > 1 else ""
        opened = self._doc.scopes.open(_CONTAINER_FRAMES[stmt.kind], name)
        if opened is FrameKind.OPAQUE:
            logger.debug("Statement %d: %r cannot nest here, body dropped", index, stmt.text)

    def _parse_rpc(self, stmt: Statement, index: int) -> None:
        """Parse: rpc Name ( ArgType ) returns ( RetType ) [{]"""
        tokens = tokenize_rpc(stmt.text)
        scopes = self._doc.scopes
        if (
            scopes.current is FrameKind.SERVICE
            and len(tokens) >= 5
            and tokens[3] == "returns"
        ):
            method = RpcMethod(
                name=tokens[1],
                argument=self._doc.imports.resolve(tokens[2]),
                return_type=self._doc.imports.resolve(tokens[4]),
            )
            scopes.add_method(method)
        else:
            self._ignore(stmt, index)

        if stmt.opens_block:
            # rpc options body
            scopes.open(FrameKind.OPAQUE, tokens[1] if len(tokens) > 1 else "rpc")

    def _parse_member(self, stmt: Statement, index: int) -> None:
        current = self._doc.scopes.current
        if current is FrameKind.MESSAGE:
            self._parse_field(stmt, index)
        elif current is FrameKind.ENUM:
            self._parse_enum_value(stmt, index)
        else:
            self._ignore(stmt, index)

    def _parse_field(self, stmt: Statement, index: int) -> None:
        """Parse: [repeated|optional] Type name = number"""
        tokens = stmt.tokens
        offset = 1 if tokens and tokens[0] in _FIELD_MODIFIERS else 0
        if len(tokens) < offset + 4 or tokens[offset + 2] != "=":
            self._ignore(stmt, index)
            return

        type_token, name = tokens[offset], tokens[offset + 1]
        if not _TYPE_NAME_RE.match(type_token):
            self._ignore(stmt, index)
            return
        try:
            number = _parse_int(tokens[offset + 3])
        except ValueError:
            self._ignore(stmt, index)
            return

        self._doc.scopes.add_field(
            name=name,
            type_ref=self._doc.imports.resolve(type_token),
            number=number,
            repeated=tokens[0] == "repeated",
            optional=tokens[0] == "optional",
        )

    def _parse_enum_value(self, stmt: Statement, index: int) -> None:
        """Parse: NAME = number"""
        tokens = stmt.tokens
        if len(tokens) < 3 or tokens[1] != "=":
            self._ignore(stmt, index)
            return
        try:
            value = _parse_int(tokens[2])
        except ValueError:
            self._ignore(stmt, index)
            return
        self._doc.scopes.add_enum_value(tokens[0], value)

    # -- helpers --

    @staticmethod
    def _ignore(stmt: Statement, index: int) -> None:
        logger.debug("Ignoring statement %d: %r", index, stmt.text)
