from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass

from magicrest.services.field_types import FieldTypeRegistry
from magicrest.services.query_params import QueryParams

_LOG = logging.getLogger("magicrest.filters")

_FILTER_KEY_RE = re.compile(r"filter\[(.*)\]", re.DOTALL)
FIELD_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?")


class FilterKind(str, enum.Enum):
    EQUALS = "eq"
    IN = "in"


@dataclass(frozen=True)
class FilterCondition:
    field: str
    kind: FilterKind
    values: tuple

    @property
    def value(self):
        return self.values[0]


@dataclass
class FilterParseResult:
    conditions: list[FilterCondition]
    invalid_fields: list[str]

    @property
    def invalid(self) -> bool:
        return bool(self.invalid_fields)


def filter_field_from_key(key: str) -> str | None:
    match = _FILTER_KEY_RE.fullmatch(key)
    if match is None:
        return None
    return match.group(1)


def _split_filter_value(value: str) -> list[str]:
    if "," not in value:
        return [value]
    return [part.strip() for part in value.split(",")]


def parse_filters(params: QueryParams, registry: FieldTypeRegistry) -> FilterParseResult:
    """Collect `filter[<field>]=<value>` entries as typed conditions.

    Only the first value of a repeated key is used. A comma splits the value
    into a membership list. Parts that do not coerce to the field type are
    dropped and the field is reported in `invalid_fields`; valid parts of the
    same field still produce a condition, the caller decides whether to use it.
    """
    conditions: list[FilterCondition] = []
    invalid_fields: list[str] = []
    for key, values in params.items():
        field = filter_field_from_key(key)
        if not field:
            continue
        if not FIELD_NAME_RE.fullmatch(field):
            _LOG.warning("skipping filter with unsupported field name key=%r", key)
            continue
        if not values:
            continue
        field_type = registry.resolve(field)
        coerced = []
        for part in _split_filter_value(values[0]):
            try:
                coerced.append(field_type.coerce(part))
            except ValueError:
                _LOG.info("invalid filter value field=%s type=%s value=%r", field, field_type.value, part)
                if field not in invalid_fields:
                    invalid_fields.append(field)
        if not coerced:
            continue
        kind = FilterKind.EQUALS if len(coerced) == 1 else FilterKind.IN
        conditions.append(FilterCondition(field=field, kind=kind, values=tuple(coerced)))
    return FilterParseResult(conditions=conditions, invalid_fields=invalid_fields)
