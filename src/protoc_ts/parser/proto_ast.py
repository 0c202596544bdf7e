"""Document model for parsed protobuf (.proto) files.

Every node is a frozen dataclass; container bodies are tuples so a
``Document`` cannot change once the parser has assembled it. Each node
class carries a ``kind`` discriminator, which is what consumers switch on
instead of probing attributes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import ClassVar, Dict, List, Optional, Tuple, Union


class EntryKind(Enum):
    MESSAGE = auto()
    ENUM = auto()
    OPTION = auto()
    FIELD = auto()
    ENUM_VALUE = auto()
    RPC = auto()


@dataclass(frozen=True)
class TypeRef:
    """A possibly dotted type reference, split at the last dot."""

    local_name: str
    qualifier: Optional[str] = None

    @property
    def dotted(self) -> str:
        if self.qualifier:
            return f"{self.qualifier}.{self.local_name}"
        return self.local_name


@dataclass(frozen=True)
class OptionEntry:
    """option name = value; -- kept opaque, the value is the raw literal."""

    kind: ClassVar[EntryKind] = EntryKind.OPTION

    name: str
    value: str


@dataclass(frozen=True)
class FieldEntry:
    """A field declaration: [repeated|optional] Type name = number;"""

    kind: ClassVar[EntryKind] = EntryKind.FIELD

    name: str
    type_ref: TypeRef
    number: int
    declaration_order: int
    repeated: bool = False
    optional: bool = False


@dataclass(frozen=True)
class EnumValueEntry:
    kind: ClassVar[EntryKind] = EntryKind.ENUM_VALUE

    name: str
    value: int


@dataclass(frozen=True)
class EnumDecl:
    kind: ClassVar[EntryKind] = EntryKind.ENUM

    name: str
    body: Tuple[Union[EnumValueEntry, OptionEntry], ...] = ()

    @property
    def values(self) -> List[EnumValueEntry]:
        return [e for e in self.body if e.kind is EntryKind.ENUM_VALUE]


@dataclass(frozen=True)
class MessageDecl:
    """A message definition, possibly containing nested declarations."""

    kind: ClassVar[EntryKind] = EntryKind.MESSAGE

    name: str
    body: Tuple[BodyEntry, ...] = ()

    @property
    def fields(self) -> List[FieldEntry]:
        return [e for e in self.body if e.kind is EntryKind.FIELD]

    @property
    def nested(self) -> List[Declaration]:
        return [e for e in self.body if e.kind in DECLARATION_KINDS]


Declaration = Union[MessageDecl, EnumDecl]
BodyEntry = Union[FieldEntry, MessageDecl, EnumDecl, OptionEntry]
TopLevelEntry = Union[MessageDecl, EnumDecl, OptionEntry]

DECLARATION_KINDS = frozenset({EntryKind.MESSAGE, EntryKind.ENUM})


@dataclass(frozen=True)
class RpcMethod:
    """rpc Name (Argument) returns (ReturnType);"""

    kind: ClassVar[EntryKind] = EntryKind.RPC

    name: str
    argument: TypeRef
    return_type: TypeRef


@dataclass(frozen=True)
class Service:
    name: str
    methods: Tuple[Union[RpcMethod, OptionEntry], ...] = ()

    @property
    def rpcs(self) -> List[RpcMethod]:
        return [m for m in self.methods if m.kind is EntryKind.RPC]


@dataclass(frozen=True)
class Import:
    """An imported schema and the type names this file uses from it."""

    logical_name: str
    directory_path: str
    raw_import_path: str
    referenced_type_names: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Document:
    """Top-level parsed representation of a .proto file."""

    syntax: str = ""
    package: str = ""
    imports: Tuple[Import, ...] = ()
    top_level: Tuple[TopLevelEntry, ...] = ()
    services: Tuple[Service, ...] = ()

    def import_keys(self) -> List[str]:
        return [imp.logical_name for imp in self.imports]

    def get_import(self, key: str) -> Optional[Import]:
        for imp in self.imports:
            if imp.logical_name == key:
                return imp
        return None

    @property
    def imports_by_key(self) -> Dict[str, Import]:
        return {imp.logical_name: imp for imp in self.imports}

    @property
    def declarations(self) -> List[Declaration]:
        return [e for e in self.top_level if e.kind in DECLARATION_KINDS]
