from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, field_validator

from magicrest.services.field_types import FieldType

T = TypeVar("T")


class ReadOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    search_field: str = ""
    order_by: str = ""
    preload_fields: tuple[str, ...] = ()
    field_types: Mapping[str, FieldType] = MappingProxyType({})
    default_page: int = 0
    default_page_size: int = 0
    allow_group_by: bool = False

    @field_validator("field_types", mode="after")
    @classmethod
    def _freeze_field_types(cls, value: Mapping[str, FieldType]) -> Mapping[str, FieldType]:
        return MappingProxyType(dict(value))


@dataclass(frozen=True)
class PaginationMeta:
    page: int
    page_size: int
    page_count: int
    total: int
    has_next: bool
    has_prev: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "pageSize": self.page_size,
            "pageCount": self.page_count,
            "total": self.total,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
        }


@dataclass
class ReadResult(Generic[T]):
    data: list[T] = field(default_factory=list)
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def pagination(self) -> PaginationMeta | None:
        return self.meta.get("pagination")

    def to_dict(self) -> dict[str, Any]:
        meta = {k: (v.to_dict() if isinstance(v, PaginationMeta) else v) for k, v in self.meta.items()}
        data = [row.model_dump(mode="json") if isinstance(row, BaseModel) else row for row in self.data]
        return {"data": data, "meta": meta}
