"""JSON-ready view of a parsed Document, written next to outputs with --debug."""

from __future__ import annotations

import json
from dataclasses import fields, is_dataclass
from typing import Any, Dict

from protoc_ts.parser.proto_ast import Document


def _to_plain(value: Any) -> Any:
    if is_dataclass(value):
        data: Dict[str, Any] = {}
        kind = getattr(type(value), "kind", None)
        if kind is not None:
            data["kind"] = kind.name.lower()
        for f in fields(value):
            data[f.name] = _to_plain(getattr(value, f.name))
        return data
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    return value


def document_to_dict(document: Document) -> Dict[str, Any]:
    return _to_plain(document)


def document_to_json(document: Document) -> str:
    return json.dumps(document_to_dict(document), indent=2)
