from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Union
from urllib.parse import parse_qs

QueryParams = dict[str, list[str]]
RawQueryParams = Union[str, bytes, Mapping[str, Any]]


def normalize_query_params(raw: RawQueryParams | None) -> QueryParams:
    """Turn a query string or (multi)mapping into an ordered dict of value lists.

    Accepts `"a=1&b=2"`, `parse_qs` output, plain `{key: value}` dicts and
    Starlette `QueryParams` / `MultiDict` objects (anything with `getlist`).
    """
    if raw is None:
        return {}
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        return parse_qs(raw.lstrip("?"), keep_blank_values=True)
    getlist = getattr(raw, "getlist", None)
    out: QueryParams = {}
    for key in raw.keys():
        if key in out:
            continue
        if callable(getlist):
            values = list(getlist(key))
        else:
            value = raw[key]
            values = [str(v) for v in value] if isinstance(value, (list, tuple)) else [str(value)]
        out[str(key)] = [str(v) for v in values]
    return out


def first_value(params: QueryParams, key: str) -> str:
    values = params.get(key) or []
    return values[0] if values else ""


def split_list(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]
