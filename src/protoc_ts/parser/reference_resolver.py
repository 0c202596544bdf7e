"""Import registry and dotted type-reference resolution."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .proto_ast import Import, TypeRef

logger = logging.getLogger(__name__)


@dataclass
class _ImportRecord:
    directory_path: str
    raw_import_path: str
    referenced_type_names: List[str] = field(default_factory=list)


def split_type_name(token: str) -> TypeRef:
    """Split ``a.b.Name`` into qualifier ``a.b`` and local name ``Name``."""
    segments = token.lstrip(".").split(".")
    if len(segments) > 1:
        return TypeRef(local_name=segments[-1], qualifier=".".join(segments[:-1]))
    return TypeRef(local_name=segments[0])


class ImportRegistry:
    """Imports declared by one file, keyed by logical package name.

    Keys keep insertion order. A fresh registry is created for every parse.
    """

    def __init__(self) -> None:
        self._records: Dict[str, _ImportRecord] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)

    def keys(self) -> List[str]:
        return list(self._records)

    def register(self, raw_path: str) -> str:
        """Register ``import "dir/name.proto"`` under the key ``name``."""
        segments = raw_path.split("/")
        key = segments[-1].split(".")[0]
        directory = "/".join(segments[:-1]) if len(segments) > 1 else "."
        self._records[key] = _ImportRecord(directory_path=directory, raw_import_path=raw_path)
        return key

    def rekey_last(self, new_key: str) -> Optional[str]:
        """Move the most recently registered import under ``new_key``.

        An existing entry under ``new_key`` is overwritten. Returns the old
        key, or None when no import has been registered yet.
        """
        if not self._records:
            return None
        old_key = next(reversed(self._records))
        record = self._records.pop(old_key)
        self._records[new_key] = record
        logger.debug("Re-keyed import %r as %r", old_key, new_key)
        return old_key

    def resolve(self, token: str) -> TypeRef:
        """Split a type token and note its use against a matching import."""
        ref = split_type_name(token)
        if ref.qualifier is not None:
            record = self._records.get(ref.qualifier)
            if record is not None and ref.local_name not in record.referenced_type_names:
                record.referenced_type_names.append(ref.local_name)
        return ref

    def freeze(self) -> Tuple[Import, ...]:
        return tuple(
            Import(
                logical_name=key,
                directory_path=record.directory_path,
                raw_import_path=record.raw_import_path,
                referenced_type_names=tuple(record.referenced_type_names),
            )
            for key, record in self._records.items()
        )
