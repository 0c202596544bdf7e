from __future__ import annotations


class ProtoParseError(Exception):
    """Raised when the parser encounters input it cannot recover from."""

    def __init__(self, message: str, statement_index: int | None = None, text: str | None = None):
        self.statement_index = statement_index
        self.text = text
        if statement_index is not None:
            super().__init__(f"Statement {statement_index} ({text!r}): {message}")
        else:
            super().__init__(message)


class UnbalancedScopeError(ProtoParseError):
    """A closing brace without an open container, or containers left open at end of input."""
