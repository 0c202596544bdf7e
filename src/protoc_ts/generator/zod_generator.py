from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

from jinja2 import Environment, FileSystemLoader

from protoc_ts.config import P2tConfig
from protoc_ts.debug_dump import document_to_json
from protoc_ts.generator.ts_generator import _build_imports
from protoc_ts.models import ResolvedKind, ResolvedType, SymbolTable
from protoc_ts.parser.proto_ast import Document, EntryKind
from protoc_ts.parser.proto_parser import parse_proto_file
from protoc_ts.symbol_resolver import post_order, resolve_symbols, walk_declarations

logger = logging.getLogger(__name__)


def _get_template_env() -> Environment:
    template_dir = Path(__file__).parent.parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def zod_expression(resolved: ResolvedType, repeated: bool = False, optional: bool = False) -> str:
    """Schema expression for one field.

    Scalars become ``z.number()`` and friends; references use the schema
    constant of the same (flattened) name.
    """
    if resolved.kind is ResolvedKind.PRIMITIVE:
        expr = f"z.{resolved.name}()"
    else:
        expr = resolved.name
    if repeated:
        expr = f"z.array({expr})"
    if optional:
        expr += ".optional()"
    return expr


def _build_schemas(document: Document, table: SymbolTable) -> List[Dict]:
    """Template data for every declaration, children before their parent.

    A schema constant must exist before another schema refers to it, so the
    post-order of the declaration tree is also a valid definition order.
    """
    nodes = [decl for _, decl in walk_declarations(document.top_level)]

    schemas = []
    for symbol in post_order(table.declarations):
        decl = nodes[symbol.decl_id]
        if decl.kind is EntryKind.ENUM:
            schemas.append({
                "is_enum": True,
                "name": symbol.flat_name,
                "members": [{"name": v.name, "value": v.value} for v in decl.values],
            })
            continue

        fields = []
        for index, entry in enumerate(decl.body):
            if entry.kind is not EntryKind.FIELD:
                continue
            fields.append({
                "name": entry.name,
                "expr": zod_expression(
                    table.fields[(symbol.decl_id, index)],
                    repeated=entry.repeated,
                    optional=entry.optional,
                ),
            })
        schemas.append({"is_enum": False, "name": symbol.flat_name, "fields": fields})
    return schemas


def generate_zod(
    document: Document,
    table: Optional[SymbolTable] = None,
    config: Optional[P2tConfig] = None,
) -> str:
    """Generate zod schemas for the messages and enums of a Document.

    Services have no zod counterpart and are skipped.
    """
    if table is None:
        table = resolve_symbols(document)
    if config is None:
        config = P2tConfig()

    template = _get_template_env().get_template("zod.ts.j2")
    return template.render(
        header_lines=[line.replace(";", "") for line in config.imports],
        imports=_build_imports(document),
        schemas=_build_schemas(document, table),
    )


def convert_proto_to_zod(
    proto_path: str,
    out_path: str,
    config: Optional[P2tConfig] = None,
    debug: bool = False,
) -> str:
    """Parse ``proto_path`` and write its zod schemas to ``out_path``."""
    document = parse_proto_file(proto_path)
    if debug:
        Path(out_path + ".debug.json").write_text(document_to_json(document), encoding="utf-8")

    Path(out_path).write_text(generate_zod(document, config=config), encoding="utf-8")
    logger.info("Converted %s -> %s", proto_path, out_path)
    return out_path
