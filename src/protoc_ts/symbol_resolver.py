"""Flattened, collision-free names for nested declarations and type references.

Runs as a second pass over a finished Document. Ancestor chains are computed
by walking down from the top-level declarations; the Document itself is never
touched.
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Sequence, Set, Tuple

from protoc_ts.models import (
    SCALAR_TYPES,
    DeclarationSymbol,
    ResolvedKind,
    ResolvedType,
    RpcSignature,
    SymbolTable,
    flatten,
)
from protoc_ts.parser.proto_ast import (
    DECLARATION_KINDS,
    Declaration,
    Document,
    EntryKind,
    TypeRef,
)

Path = Tuple[str, ...]


def walk_declarations(entries: Sequence, parent: Path = ()) -> Iterator[Tuple[Path, Declaration]]:
    """Yield ``(ancestor path, declaration)`` pairs in pre-order."""
    for entry in entries:
        if entry.kind not in DECLARATION_KINDS:
            continue
        path = parent + (entry.name,)
        yield path, entry
        if entry.kind is EntryKind.MESSAGE:
            yield from walk_declarations(entry.body, path)


def resolve_type_ref(
    ref: TypeRef,
    scope: Path,
    known_names: Set[str],
    import_keys: Set[str],
) -> ResolvedType:
    """Resolve one reference made from inside the declaration at ``scope``.

    ``scope`` is the ancestor path of the declaring message, or ``()`` for
    service methods.
    """
    if ref.qualifier is None:
        primitive = SCALAR_TYPES.get(ref.local_name)
        if primitive is not None:
            return ResolvedType(ResolvedKind.PRIMITIVE, primitive.value, primitive)

        # Closest enclosing scope first, the root last.
        for depth in range(len(scope), -1, -1):
            candidate = flatten(*scope[:depth], ref.local_name)
            if candidate in known_names:
                return ResolvedType(ResolvedKind.LOCAL, candidate)
        return ResolvedType(ResolvedKind.UNRESOLVED, ref.local_name)

    if ref.qualifier in import_keys:
        return ResolvedType(ResolvedKind.IMPORTED, ref.local_name)

    return ResolvedType(
        ResolvedKind.EXTERNAL,
        flatten(*scope, *ref.qualifier.split("."), ref.local_name),
    )


def resolve_symbols(document: Document) -> SymbolTable:
    """Build the flattened-name table for ``document``."""
    walked = list(walk_declarations(document.top_level))
    declarations = tuple(
        DeclarationSymbol(decl_id=decl_id, path=path, flat_name=flatten(*path), kind=decl.kind)
        for decl_id, (path, decl) in enumerate(walked)
    )
    known_names = {symbol.flat_name for symbol in declarations}
    import_keys = set(document.import_keys())

    fields: Dict[Tuple[int, int], ResolvedType] = {}
    for decl_id, (path, decl) in enumerate(walked):
        if decl.kind is not EntryKind.MESSAGE:
            continue
        for index, entry in enumerate(decl.body):
            if entry.kind is EntryKind.FIELD:
                fields[(decl_id, index)] = resolve_type_ref(
                    entry.type_ref, path, known_names, import_keys
                )

    rpc_types: Dict[Tuple[int, int], RpcSignature] = {}
    for service_index, service in enumerate(document.services):
        for method_index, method in enumerate(service.methods):
            if method.kind is not EntryKind.RPC:
                continue
            rpc_types[(service_index, method_index)] = RpcSignature(
                argument=resolve_type_ref(method.argument, (), known_names, import_keys),
                return_type=resolve_type_ref(method.return_type, (), known_names, import_keys),
            )

    return SymbolTable(declarations=declarations, fields=fields, rpc_types=rpc_types)


def post_order(symbols: Sequence[DeclarationSymbol]) -> List[DeclarationSymbol]:
    """Reorder pre-order symbols so every declaration follows its children."""
    ordered: List[DeclarationSymbol] = []
    stack: List[DeclarationSymbol] = []
    for symbol in symbols:
        while stack and len(stack[-1].path) >= len(symbol.path):
            ordered.append(stack.pop())
        stack.append(symbol)
    while stack:
        ordered.append(stack.pop())
    return ordered
