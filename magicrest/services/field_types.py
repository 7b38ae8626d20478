from __future__ import annotations

import enum
import re
import uuid
from collections.abc import Mapping
from types import MappingProxyType

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class FieldType(str, enum.Enum):
    INTEGER = "int"
    UUID = "uuid"
    STRING = "string"

    def coerce(self, raw: str):
        """Return the typed value for `raw` or raise ValueError."""
        if self is FieldType.INTEGER:
            return _coerce_int(raw)
        if self is FieldType.UUID:
            return _coerce_uuid(raw)
        return raw


def _coerce_int(raw: str) -> int:
    if not _INT_RE.fullmatch(raw):
        raise ValueError(f"not an integer: {raw!r}")
    value = int(raw)
    if value < _INT64_MIN or value > _INT64_MAX:
        raise ValueError(f"integer out of range: {raw!r}")
    return value


def _coerce_uuid(raw: str) -> str:
    # Validated only; the caller's spelling is kept so string id columns still match.
    # uuid.UUID also accepts braces, the urn: prefix and bare 32-char hex.
    uuid.UUID(raw)
    return raw


DEFAULT_FIELD_TYPES: Mapping[str, FieldType] = MappingProxyType(
    {
        "id": FieldType.UUID,
        "status": FieldType.STRING,
        "jumlah": FieldType.INTEGER,
        "gudang_id": FieldType.UUID,
    }
)


class FieldTypeRegistry:
    def __init__(self, overrides: Mapping[str, FieldType | str] | None = None):
        merged = dict(DEFAULT_FIELD_TYPES)
        for field, field_type in (overrides or {}).items():
            merged[field] = FieldType(field_type)
        self._types: Mapping[str, FieldType] = MappingProxyType(merged)

    def resolve(self, field: str) -> FieldType:
        return self._types.get(field, FieldType.STRING)
