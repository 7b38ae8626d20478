from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any, Protocol

from sqlalchemy import column, func, literal_column
from sqlalchemy.orm import Query, RelationshipProperty, selectinload

_LOG = logging.getLogger("magicrest.compose")

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


@dataclass(frozen=True)
class OrderClause:
    column: str
    descending: bool = False


class QueryBackend(Protocol):
    """Clause sink the read pipeline talks to.

    Every clause method returns a new backend and leaves the receiver as it
    was, so a base backend can be shared between reads.
    """

    def where_equals(self, field: str, value: Any) -> "QueryBackend":
        ...

    def where_in(self, field: str, values: Sequence[Any]) -> "QueryBackend":
        ...

    def where_contains(self, target: str, term: str) -> "QueryBackend":
        ...

    def preload(self, relation: str) -> "QueryBackend":
        ...

    def group_latest(self, fields: Sequence[str], timestamp_column: str) -> "QueryBackend":
        ...

    def order_by(self, clauses: Sequence[OrderClause]) -> "QueryBackend":
        ...

    def count(self) -> int:
        ...

    def fetch(self, limit: int, offset: int) -> list[Any]:
        ...


def _column_python_type(col) -> type | None:
    try:
        return col.type.python_type
    except (AttributeError, NotImplementedError):
        return None


def _read_attr(row: Any, path: str) -> Any:
    current = row
    for name in path.split("."):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(name)
        else:
            current = getattr(current, name, None)
    return current


def _as_uuid(value: Any) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def _same_value(actual: Any, expected: Any) -> bool:
    if actual == expected:
        return True
    if isinstance(actual, uuid.UUID) or isinstance(expected, uuid.UUID):
        left = _as_uuid(actual)
        return left is not None and left == _as_uuid(expected)
    return False


def _sort_nulls_last(rows: list[Any], clause: OrderClause) -> list[Any]:
    present = [row for row in rows if _read_attr(row, clause.column) is not None]
    missing = [row for row in rows if _read_attr(row, clause.column) is None]
    present.sort(key=lambda row: _read_attr(row, clause.column), reverse=clause.descending)
    return present + missing


@dataclass(frozen=True)
class InMemoryQueryBackend:
    """Evaluates read clauses against rows held in memory (objects or mappings)."""

    rows: tuple = ()
    predicates: tuple = ()
    preloaded: tuple[str, ...] = ()
    group_fields: tuple[str, ...] = ()
    timestamp_column: str = "created_at"
    ordering: tuple[OrderClause, ...] = ()

    def __post_init__(self):
        if not isinstance(self.rows, tuple):
            object.__setattr__(self, "rows", tuple(self.rows))

    def where_equals(self, field: str, value: Any) -> InMemoryQueryBackend:
        return replace(self, predicates=self.predicates + (lambda row: _same_value(_read_attr(row, field), value),))

    def where_in(self, field: str, values: Sequence[Any]) -> InMemoryQueryBackend:
        wanted = tuple(values)

        def _predicate(row: Any) -> bool:
            actual = _read_attr(row, field)
            return any(_same_value(actual, v) for v in wanted)

        return replace(self, predicates=self.predicates + (_predicate,))

    def where_contains(self, target: str, term: str) -> InMemoryQueryBackend:
        needle = term.lower()

        def _predicate(row: Any) -> bool:
            actual = _read_attr(row, target)
            return actual is not None and needle in str(actual).lower()

        return replace(self, predicates=self.predicates + (_predicate,))

    def preload(self, relation: str) -> InMemoryQueryBackend:
        return replace(self, preloaded=self.preloaded + (relation,))

    def group_latest(self, fields: Sequence[str], timestamp_column: str) -> InMemoryQueryBackend:
        return replace(
            self,
            group_fields=tuple(fields),
            timestamp_column=timestamp_column,
            ordering=(OrderClause(timestamp_column, descending=True),),
        )

    def order_by(self, clauses: Sequence[OrderClause]) -> InMemoryQueryBackend:
        return replace(self, ordering=self.ordering + tuple(clauses))

    def _filtered(self) -> list[Any]:
        return [row for row in self.rows if all(p(row) for p in self.predicates)]

    def _grouped(self, rows: Iterable[Any]) -> list[dict[str, Any]]:
        groups: dict[tuple, dict[str, Any]] = {}
        for row in rows:
            key = tuple(_read_attr(row, f) for f in self.group_fields)
            stamp = _read_attr(row, self.timestamp_column)
            current = groups.get(key)
            if current is None:
                groups[key] = {**dict(zip(self.group_fields, key)), self.timestamp_column: stamp}
            elif stamp is not None and (current[self.timestamp_column] is None or stamp > current[self.timestamp_column]):
                current[self.timestamp_column] = stamp
        return list(groups.values())

    def _materialize(self) -> list[Any]:
        rows = self._filtered()
        if self.group_fields:
            rows = self._grouped(rows)
        for clause in reversed(self.ordering):
            rows = _sort_nulls_last(rows, clause)
        return rows

    def count(self) -> int:
        rows = self._filtered()
        if self.group_fields:
            return len(self._grouped(rows))
        return len(rows)

    def fetch(self, limit: int, offset: int) -> list[Any]:
        return self._materialize()[offset : offset + limit]


class SQLAlchemyQueryBackend:
    """Applies read clauses to a SQLAlchemy ORM `Query`.

    Names mapped on the model resolve to its attributes; `relation.column`
    targets become qualified columns, so the caller has to join and alias the
    relation in the base query. Any other name is sent as a quoted identifier.
    """

    def __init__(self, query: Query, model=None, *, load_options: tuple = (), grouped: bool = False):
        self.query = query
        self.model = model if model is not None else query.column_descriptions[0]["entity"]
        self.load_options = load_options
        self.grouped = grouped

    def _derive(self, query: Query, **changes) -> SQLAlchemyQueryBackend:
        state = {"load_options": self.load_options, "grouped": self.grouped}
        state.update(changes)
        return SQLAlchemyQueryBackend(query, self.model, **state)

    def _column(self, name: str):
        parts = name.split(".")
        if len(parts) == 2 and all(_IDENTIFIER_RE.fullmatch(p) for p in parts):
            return literal_column(name)
        attr = getattr(self.model, name, None)
        if attr is not None and hasattr(attr, "property") and not isinstance(attr.property, RelationshipProperty):
            return attr
        return column(name)

    def _bind_value(self, col, value: Any) -> Any:
        # uuid filters arrive as validated strings; Uuid columns bind uuid.UUID objects.
        if isinstance(value, str) and _column_python_type(col) is uuid.UUID:
            return uuid.UUID(value)
        return value

    def where_equals(self, field: str, value: Any) -> SQLAlchemyQueryBackend:
        col = self._column(field)
        return self._derive(self.query.filter(col == self._bind_value(col, value)))

    def where_in(self, field: str, values: Sequence[Any]) -> SQLAlchemyQueryBackend:
        col = self._column(field)
        return self._derive(self.query.filter(col.in_([self._bind_value(col, v) for v in values])))

    def where_contains(self, target: str, term: str) -> SQLAlchemyQueryBackend:
        return self._derive(self.query.filter(self._column(target).ilike(f"%{term}%")))

    def preload(self, relation: str) -> SQLAlchemyQueryBackend:
        entity = self.model
        option = None
        for name in relation.split("."):
            attr = getattr(entity, name, None)
            prop = getattr(attr, "property", None)
            if not isinstance(prop, RelationshipProperty):
                _LOG.warning("skipping unknown relation preload=%s model=%s", relation, getattr(self.model, "__name__", self.model))
                return self
            option = selectinload(attr) if option is None else option.selectinload(attr)
            entity = prop.mapper.class_
        return self._derive(self.query, load_options=self.load_options + (option,))

    def group_latest(self, fields: Sequence[str], timestamp_column: str) -> SQLAlchemyQueryBackend:
        cols = [self._column(f) for f in fields]
        latest = func.max(self._column(timestamp_column))
        query = self.query.with_entities(*cols, latest.label(timestamp_column)).group_by(*cols).order_by(latest.desc())
        return self._derive(query, grouped=True)

    def order_by(self, clauses: Sequence[OrderClause]) -> SQLAlchemyQueryBackend:
        exprs = [self._column(c.column).desc() if c.descending else self._column(c.column).asc() for c in clauses]
        return self._derive(self.query.order_by(*exprs))

    def count(self) -> int:
        return self.query.order_by(None).count()

    def fetch(self, limit: int, offset: int) -> list[Any]:
        query = self.query.limit(limit).offset(offset)
        if self.grouped:
            return [dict(row._mapping) for row in query.all()]
        if self.load_options:
            query = query.options(*self.load_options)
        return query.all()
