"""Explicit stack of the containers open at the current point of a parse."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional, Union

from .errors import UnbalancedScopeError
from .proto_ast import (
    EnumDecl,
    EnumValueEntry,
    FieldEntry,
    MessageDecl,
    OptionEntry,
    RpcMethod,
    Service,
    TopLevelEntry,
    TypeRef,
)


class FrameKind(Enum):
    MESSAGE = auto()
    ENUM = auto()
    SERVICE = auto()
    OPAQUE = auto()  # tracked for brace balance only; contents are dropped


@dataclass
class _Frame:
    kind: FrameKind
    name: str
    entries: list = field(default_factory=list)
    field_count: int = 0

    def freeze(self) -> Union[MessageDecl, EnumDecl, Service, None]:
        if self.kind is FrameKind.MESSAGE:
            return MessageDecl(name=self.name, body=tuple(self.entries))
        if self.kind is FrameKind.ENUM:
            return EnumDecl(name=self.name, body=tuple(self.entries))
        if self.kind is FrameKind.SERVICE:
            return Service(name=self.name, methods=tuple(self.entries))
        return None


class ScopeTracker:
    """Routes entries to the innermost open container.

    A frame is frozen into its immutable node when its closing brace is
    seen and appended to the parent frame, or to the root lists when no
    parent is open.
    """

    def __init__(self) -> None:
        self._stack: List[_Frame] = []
        self.top_level: List[TopLevelEntry] = []
        self.services: List[Service] = []

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def current(self) -> Optional[FrameKind]:
        return self._stack[-1].kind if self._stack else None

    def open_names(self) -> List[str]:
        return [frame.name for frame in self._stack]

    # -- opening and closing --

    def open(self, kind: FrameKind, name: str) -> FrameKind:
        """Open a container, demoting it to OPAQUE where it cannot nest.

        Messages and enums nest in the root or in a message; services only
        in the root. Returns the kind actually pushed.
        """
        current = self.current
        if kind in (FrameKind.MESSAGE, FrameKind.ENUM):
            if current not in (None, FrameKind.MESSAGE):
                kind = FrameKind.OPAQUE
        elif kind is FrameKind.SERVICE and current is not None:
            kind = FrameKind.OPAQUE
        self._stack.append(_Frame(kind=kind, name=name))
        return kind

    def close(self, statement_index: Optional[int] = None, text: str = "}") -> None:
        if not self._stack:
            raise UnbalancedScopeError(
                "Closing brace without an open container", statement_index, text
            )
        frame = self._stack.pop()
        node = frame.freeze()
        if node is None:
            return
        if frame.kind is FrameKind.SERVICE:
            self.services.append(node)
        elif self._stack:
            self._stack[-1].entries.append(node)
        else:
            self.top_level.append(node)

    # -- entries --

    def add_option(self, option: OptionEntry) -> bool:
        current = self.current
        if current is None:
            self.top_level.append(option)
            return True
        if current is FrameKind.OPAQUE:
            return False
        self._stack[-1].entries.append(option)
        return True

    def add_field(
        self,
        name: str,
        type_ref: TypeRef,
        number: int,
        repeated: bool = False,
        optional: bool = False,
    ) -> Optional[FieldEntry]:
        if self.current is not FrameKind.MESSAGE:
            return None
        frame = self._stack[-1]
        entry = FieldEntry(
            name=name,
            type_ref=type_ref,
            number=number,
            declaration_order=frame.field_count,
            repeated=repeated,
            optional=optional,
        )
        frame.field_count += 1
        frame.entries.append(entry)
        return entry

    def add_enum_value(self, name: str, value: int) -> Optional[EnumValueEntry]:
        if self.current is not FrameKind.ENUM:
            return None
        entry = EnumValueEntry(name=name, value=value)
        self._stack[-1].entries.append(entry)
        return entry

    def add_method(self, method: RpcMethod) -> bool:
        if self.current is not FrameKind.SERVICE:
            return False
        self._stack[-1].entries.append(method)
        return True
