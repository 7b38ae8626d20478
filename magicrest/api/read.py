from __future__ import annotations

from fastapi import HTTPException, Request
from pydantic import BaseModel

from magicrest.core.errors import InvalidFilterError
from magicrest.schemas.read import ReadOptions, ReadResult
from magicrest.services.query_backend import QueryBackend
from magicrest.services.read_paginated import read_paginated


def _bad_filter(exc: InvalidFilterError) -> HTTPException:
    return HTTPException(status_code=400, detail=str(exc))


def read_paginated_from_request(
    request: Request,
    backend: QueryBackend,
    options: ReadOptions | None = None,
    *,
    schema: type[BaseModel] | None = None,
) -> ReadResult:
    """Run read_paginated on the request's query string; the caller builds the response."""
    try:
        return read_paginated(request.query_params, backend, options, schema=schema)
    except InvalidFilterError as exc:
        raise _bad_filter(exc)
