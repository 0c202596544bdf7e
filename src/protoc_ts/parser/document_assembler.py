"""Accumulates the parts of a Document during the single parse pass."""

from __future__ import annotations

from .errors import UnbalancedScopeError
from .proto_ast import Document
from .reference_resolver import ImportRegistry
from .scope_tracker import ScopeTracker


class DocumentAssembler:
    def __init__(self) -> None:
        self.syntax = ""
        self.package = ""
        self.imports = ImportRegistry()
        self.scopes = ScopeTracker()

    def set_syntax(self, value: str) -> None:
        # First occurrence wins
        if not self.syntax:
            self.syntax = value

    def set_package(self, value: str) -> None:
        if not self.package:
            self.package = value

    def finalize(self) -> Document:
        """Freeze the accumulated state into an immutable Document."""
        if self.scopes.depth:
            open_names = " > ".join(self.scopes.open_names())
            raise UnbalancedScopeError(
                f"Unexpected end of input: {self.scopes.depth} container(s) still open ({open_names})"
            )
        return Document(
            syntax=self.syntax,
            package=self.package,
            imports=self.imports.freeze(),
            top_level=tuple(self.scopes.top_level),
            services=tuple(self.scopes.services),
        )
