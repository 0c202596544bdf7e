from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

from jinja2 import Environment, FileSystemLoader

from protoc_ts.config import P2tConfig
from protoc_ts.debug_dump import document_to_json
from protoc_ts.models import SymbolTable
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


def lower_camel(name: str) -> str:
    """GetUser -> getUser"""
    return name[:1].lower() + name[1:]


def _build_imports(document: Document) -> List[Dict]:
    imports = []
    for imp in document.imports:
        if not imp.referenced_type_names:
            continue
        imports.append({
            "names": list(imp.referenced_type_names),
            "path": f"{imp.directory_path}/{imp.logical_name}",
        })
    return imports


def _build_declarations(document: Document, table: SymbolTable) -> List[Dict]:
    """Template data for every declaration, children before their parent."""
    nodes = [decl for _, decl in walk_declarations(document.top_level)]

    declarations = []
    for symbol in post_order(table.declarations):
        decl = nodes[symbol.decl_id]
        if decl.kind is EntryKind.ENUM:
            declarations.append({
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
                "type": table.fields[(symbol.decl_id, index)].name,
                "optional": entry.optional,
                "repeated": entry.repeated,
            })
        declarations.append({"is_enum": False, "name": symbol.flat_name, "fields": fields})
    return declarations


def _build_services(document: Document, table: SymbolTable, config: P2tConfig) -> List[Dict]:
    services = []
    for service_index, service in enumerate(document.services):
        methods = []
        for method_index, method in enumerate(service.methods):
            if method.kind is not EntryKind.RPC:
                continue
            signature = table.rpc_types[(service_index, method_index)]
            methods.append({
                "name": lower_camel(method.name),
                "argument": signature.argument.name,
                "returns": config.wrap_return(signature.return_type.name),
            })
        services.append({"name": service.name, "methods": methods})
    return services


def generate_ts(
    document: Document,
    table: Optional[SymbolTable] = None,
    config: Optional[P2tConfig] = None,
) -> str:
    """Generate TypeScript declarations for a parsed Document."""
    if table is None:
        table = resolve_symbols(document)
    if config is None:
        config = P2tConfig()

    template = _get_template_env().get_template("typescript.ts.j2")
    return template.render(
        header_lines=[line.replace(";", "") for line in config.imports],
        imports=_build_imports(document),
        declarations=_build_declarations(document, table),
        services=_build_services(document, table, config),
    )


def convert_proto_to_ts(
    proto_path: str,
    out_path: str,
    config: Optional[P2tConfig] = None,
    debug: bool = False,
) -> str:
    """Parse ``proto_path`` and write its TypeScript rendering to ``out_path``.

    With ``debug``, the parsed Document is also written to
    ``<out_path>.debug.json``. Returns ``out_path``.
    """
    document = parse_proto_file(proto_path)
    if debug:
        Path(out_path + ".debug.json").write_text(document_to_json(document), encoding="utf-8")

    Path(out_path).write_text(generate_ts(document, config=config), encoding="utf-8")
    logger.info("Converted %s -> %s", proto_path, out_path)
    return out_path
