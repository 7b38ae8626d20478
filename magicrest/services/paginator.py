from __future__ import annotations

import re
from typing import Any

from magicrest.core.config import settings
from magicrest.schemas.read import PaginationMeta, ReadOptions
from magicrest.services.query_backend import QueryBackend
from magicrest.services.query_params import QueryParams, first_value

_POSITIVE_INT_RE = re.compile(r"[+-]?[0-9]+")


def _positive_int_or_none(raw: str) -> int | None:
    if not _POSITIVE_INT_RE.fullmatch(raw or ""):
        return None
    value = int(raw)
    return value if value > 0 else None


def _first_positive(*candidates: int) -> int:
    for value in candidates:
        if value > 0:
            return value
    return 1


def resolve_page_window(params: QueryParams, options: ReadOptions) -> tuple[int, int]:
    """Return `(page, page_size)`; bad or non-positive raw values fall back to the defaults."""
    page = _first_positive(options.default_page, settings.DEFAULT_PAGE, 1)
    page_size = _first_positive(options.default_page_size, settings.DEFAULT_PAGE_SIZE, 10)
    raw_page = _positive_int_or_none(first_value(params, "page"))
    if raw_page is not None:
        page = raw_page
    raw_page_size = _positive_int_or_none(first_value(params, "pageSize"))
    if raw_page_size is not None:
        page_size = raw_page_size
    return page, page_size


def build_pagination_meta(total: int, page: int, page_size: int) -> PaginationMeta:
    page_count = (total + page_size - 1) // page_size
    return PaginationMeta(
        page=page,
        page_size=page_size,
        page_count=page_count,
        total=total,
        has_next=page < page_count,
        has_prev=page > 1 and page_count > 0,
    )


def paginate(backend: QueryBackend, page: int, page_size: int) -> tuple[list[Any], PaginationMeta]:
    total = int(backend.count())
    offset = (page - 1) * page_size
    rows = backend.fetch(page_size, offset)
    return rows, build_pagination_meta(total, page, page_size)
