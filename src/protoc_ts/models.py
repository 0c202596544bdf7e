from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from protoc_ts.parser.proto_ast import EntryKind

FLAT_SEPARATOR = "__"


class Primitive(Enum):
    NUMBER = "number"
    BOOLEAN = "boolean"
    TEXT = "string"


# Proto scalar types. Any type name not in this table is a reference.
SCALAR_TYPES: Dict[str, Primitive] = {
    "double": Primitive.NUMBER,
    "float": Primitive.NUMBER,
    "int32": Primitive.NUMBER,
    "int64": Primitive.NUMBER,
    "uint32": Primitive.NUMBER,
    "uint64": Primitive.NUMBER,
    "sint32": Primitive.NUMBER,
    "sint64": Primitive.NUMBER,
    "fixed32": Primitive.NUMBER,
    "fixed64": Primitive.NUMBER,
    "sfixed32": Primitive.NUMBER,
    "sfixed64": Primitive.NUMBER,
    "bool": Primitive.BOOLEAN,
    "string": Primitive.TEXT,
    "bytes": Primitive.TEXT,
}


def flatten(*parts: str) -> str:
    return FLAT_SEPARATOR.join(parts)


class ResolvedKind(Enum):
    PRIMITIVE = "primitive"
    LOCAL = "local"  # a declaration of this file, by flattened name
    IMPORTED = "imported"  # defined by a matching import
    EXTERNAL = "external"  # qualifier matched no import
    UNRESOLVED = "unresolved"  # unqualified, not a scalar, not declared here


@dataclass(frozen=True)
class ResolvedType:
    kind: ResolvedKind
    name: str
    primitive: Optional[Primitive] = None


@dataclass(frozen=True)
class DeclarationSymbol:
    decl_id: int
    path: Tuple[str, ...]
    flat_name: str
    kind: EntryKind

    @property
    def short_name(self) -> str:
        return self.path[-1]


@dataclass(frozen=True)
class RpcSignature:
    argument: ResolvedType
    return_type: ResolvedType


@dataclass(frozen=True)
class SymbolTable:
    """Flattened names for one Document.

    ``declarations`` is in pre-order, indexed by ``decl_id``. ``fields`` is
    keyed by ``(decl_id, body index)`` and ``rpc_types`` by
    ``(service index, method index)``.
    """

    declarations: Tuple[DeclarationSymbol, ...] = ()
    fields: Dict[Tuple[int, int], ResolvedType] = field(default_factory=dict)
    rpc_types: Dict[Tuple[int, int], RpcSignature] = field(default_factory=dict)

    def flat_name(self, decl_id: int) -> str:
        return self.declarations[decl_id].flat_name

    def lookup(self, *path: str) -> Optional[DeclarationSymbol]:
        for symbol in self.declarations:
            if symbol.path == path:
                return symbol
        return None
