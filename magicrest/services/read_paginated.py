from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel

from magicrest.core.errors import InvalidFilterError
from magicrest.schemas.read import ReadOptions, ReadResult
from magicrest.services.field_types import FieldTypeRegistry
from magicrest.services.filter_parser import parse_filters
from magicrest.services.paginator import paginate, resolve_page_window
from magicrest.services.query_backend import QueryBackend
from magicrest.services.query_composer import (
    apply_filters,
    apply_group_by,
    apply_order,
    apply_preload,
    apply_search,
    group_by_fields,
)
from magicrest.services.query_params import RawQueryParams, normalize_query_params

_LOG = logging.getLogger("magicrest.read")


def read_paginated(
    raw_params: RawQueryParams | None,
    backend: QueryBackend,
    options: ReadOptions | None = None,
    *,
    schema: type[BaseModel] | None = None,
) -> ReadResult:
    """Filter, search, group, order and paginate `backend` from query parameters.

    Raises InvalidFilterError when any filter value fails to coerce to its
    field type; nothing is queried in that case. Errors raised by the backend
    while counting or fetching propagate unchanged.
    """
    options = options or ReadOptions()
    params = normalize_query_params(raw_params)
    page, page_size = resolve_page_window(params, options)

    registry = FieldTypeRegistry(options.field_types)
    parsed = parse_filters(params, registry)
    if parsed.invalid:
        raise InvalidFilterError(parsed.invalid_fields)

    query = apply_filters(backend, parsed.conditions)
    query = apply_preload(query, params, options)
    query = apply_search(query, params, options)
    group_fields = group_by_fields(params, options)
    if group_fields:
        # Group mode orders by the aggregate; the regular order step is skipped.
        query = apply_group_by(query, group_fields)
    else:
        query = apply_order(query, params, options)

    rows, pagination = paginate(query, page, page_size)
    if schema is not None:
        rows = [schema.model_validate(row, from_attributes=True) for row in rows]
    _LOG.debug(
        "read page=%s page_size=%s total=%s filters=%s grouped=%s",
        page,
        page_size,
        pagination.total,
        len(parsed.conditions),
        bool(group_fields),
    )
    meta: dict[str, Any] = {"pagination": pagination}
    return ReadResult(data=rows, meta=meta)
