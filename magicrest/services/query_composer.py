from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from magicrest.core.config import settings
from magicrest.schemas.read import ReadOptions
from magicrest.services.filter_parser import FIELD_NAME_RE, FilterCondition, FilterKind
from magicrest.services.query_backend import OrderClause, QueryBackend
from magicrest.services.query_params import QueryParams, first_value, split_list

_LOG = logging.getLogger("magicrest.compose")

_ORDER_ITEM_RE = re.compile(
    r"(?P<column>[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)?)(?:\s+(?P<dir>asc|desc))?",
    re.IGNORECASE,
)


def apply_filters(backend: QueryBackend, conditions: Sequence[FilterCondition]) -> QueryBackend:
    for cond in conditions:
        if cond.kind is FilterKind.EQUALS:
            backend = backend.where_equals(cond.field, cond.value)
        else:
            backend = backend.where_in(cond.field, cond.values)
    return backend


def apply_preload(backend: QueryBackend, params: QueryParams, options: ReadOptions) -> QueryBackend:
    # An explicit ?preload= replaces the configured relations, it does not extend them.
    raw = first_value(params, "preload")
    relations = split_list(raw) if raw else list(options.preload_fields)
    for relation in relations:
        backend = backend.preload(relation)
    return backend


def apply_search(backend: QueryBackend, params: QueryParams, options: ReadOptions) -> QueryBackend:
    term = first_value(params, "search")
    if not options.search_field or not term:
        return backend
    # A dotted field is addressed as relation.column; the caller owns the join.
    return backend.where_contains(options.search_field, term)


def group_by_fields(params: QueryParams, options: ReadOptions) -> list[str]:
    if not options.allow_group_by:
        return []
    fields = []
    for name in split_list(first_value(params, "groupby")):
        if not FIELD_NAME_RE.fullmatch(name):
            _LOG.warning("dropping unsupported groupby field=%r", name)
            continue
        fields.append(name)
    return fields


def apply_group_by(backend: QueryBackend, fields: Sequence[str]) -> QueryBackend:
    if not fields:
        return backend
    return backend.group_latest(fields, settings.GROUP_BY_TIMESTAMP_COLUMN)


def parse_order_expression(raw: str) -> list[OrderClause]:
    clauses: list[OrderClause] = []
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        match = _ORDER_ITEM_RE.fullmatch(item)
        if match is None:
            _LOG.warning("dropping unsupported order item=%r", item)
            continue
        descending = (match.group("dir") or "asc").lower() == "desc"
        clauses.append(OrderClause(match.group("column"), descending=descending))
    return clauses


def resolve_order(params: QueryParams, options: ReadOptions) -> list[OrderClause]:
    for candidate in (first_value(params, "order"), options.order_by, settings.DEFAULT_ORDER):
        if not candidate:
            continue
        clauses = parse_order_expression(candidate)
        if clauses:
            return clauses
    return [OrderClause("created_at", descending=True)]


def apply_order(backend: QueryBackend, params: QueryParams, options: ReadOptions) -> QueryBackend:
    return backend.order_by(resolve_order(params, options))
