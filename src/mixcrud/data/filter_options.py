# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Declarative query request: filters, ordering, projection, paging and more.

Every clause is optional and independent.  The wire shape used by
:meth:`FilterOptions.from_dict` / :meth:`FilterOptions.to_dict` keeps the
camelCase keys callers send (``orderBy``, ``selectFields``, ``includeDeleted``,
``isNull``, ``groupBy``).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal

Direction = Literal["ASC", "DESC"]


@dataclass(frozen=True)
class OrderBy:
    """A single ORDER BY term: field name + direction."""

    field: str
    order: Direction = "ASC"

    def __post_init__(self) -> None:
        normalized = str(self.order).upper()
        if normalized not in ("ASC", "DESC"):
            raise ValueError(f"order must be 'ASC' or 'DESC', got {self.order!r}")
        object.__setattr__(self, "order", normalized)

    @staticmethod
    def asc(field: str) -> OrderBy:
        return OrderBy(field=field, order="ASC")

    @staticmethod
    def desc(field: str) -> OrderBy:
        return OrderBy(field=field, order="DESC")


@dataclass(frozen=True)
class Pagination:
    """LIMIT/OFFSET request.  No limit means unbounded."""

    limit: int | None = None
    offset: int | None = None


@dataclass(frozen=True)
class SearchOptions:
    """Partial-text search of one value across several fields (ORed)."""

    search_fields: tuple[str, ...] = ()
    value: str | None = None


@dataclass(frozen=True)
class DateRange:
    """Inclusive range filter on a date/datetime field."""

    field: str = ""
    from_: Any = None
    to: Any = None


@dataclass(frozen=True)
class NullCheck:
    """``field IS NULL`` when ``is_null`` else ``field IS NOT NULL``."""

    field: str = ""
    is_null: bool = False


@dataclass(frozen=True)
class Having:
    """HAVING clause: trusted condition text followed by a bound threshold.

    Example: ``Having("COUNT(*) >", 10)`` renders ``HAVING COUNT(*) > :having_value``.
    """

    condition: str
    value: Any


@dataclass(frozen=True)
class GroupBy:
    field: str = ""
    having: Having | None = None


@dataclass(frozen=True)
class FilterOptions:
    """Immutable query-shaping request consumed by the query builder."""

    filters: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    order_by: tuple[OrderBy, ...] = ()
    select_fields: tuple[str, ...] = ()
    pagination: Pagination | None = None
    search: SearchOptions | None = None
    date: DateRange | None = None
    include_deleted: bool = False
    is_null: NullCheck | None = None
    group_by: GroupBy | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.filters, MappingProxyType):
            object.__setattr__(self, "filters", MappingProxyType(dict(self.filters)))
        object.__setattr__(self, "order_by", tuple(self.order_by))
        object.__setattr__(self, "select_fields", tuple(dict.fromkeys(self.select_fields)))

    @staticmethod
    def empty() -> FilterOptions:
        return FilterOptions()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> FilterOptions:
        """Build options from the camelCase wire shape.

        Unknown keys are ignored; missing clauses stay empty.
        """
        if not data:
            return cls()

        pagination = data.get("pagination")
        search = data.get("search")
        date = data.get("date")
        is_null = data.get("isNull")
        group_by = data.get("groupBy")
        having = (group_by or {}).get("having")

        return cls(
            filters=dict(data.get("filters") or {}),
            order_by=tuple(
                OrderBy(field=o["field"], order=o.get("order") or "ASC") for o in data.get("orderBy") or ()
            ),
            select_fields=tuple(data.get("selectFields") or ()),
            pagination=(
                Pagination(limit=pagination.get("limit"), offset=pagination.get("offset")) if pagination else None
            ),
            search=(
                SearchOptions(
                    search_fields=tuple(search.get("searchFields") or ()),
                    value=search.get("value"),
                )
                if search
                else None
            ),
            date=DateRange(field=date.get("field", ""), from_=date.get("from"), to=date.get("to")) if date else None,
            include_deleted=bool(data.get("includeDeleted", False)),
            is_null=(
                NullCheck(field=is_null.get("field", ""), is_null=bool(is_null.get("isNull", False)))
                if is_null
                else None
            ),
            group_by=(
                GroupBy(
                    field=group_by.get("field", ""),
                    having=Having(condition=having["condition"], value=having.get("value")) if having else None,
                )
                if group_by
                else None
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """Render the non-empty clauses in the camelCase wire shape."""
        out: dict[str, Any] = {}
        if self.filters:
            out["filters"] = dict(self.filters)
        if self.order_by:
            out["orderBy"] = [{"field": o.field, "order": o.order} for o in self.order_by]
        if self.select_fields:
            out["selectFields"] = list(self.select_fields)
        if self.pagination is not None:
            out["pagination"] = {"limit": self.pagination.limit, "offset": self.pagination.offset}
        if self.search is not None:
            out["search"] = {"searchFields": list(self.search.search_fields), "value": self.search.value}
        if self.date is not None:
            out["date"] = {"field": self.date.field, "from": self.date.from_, "to": self.date.to}
        if self.include_deleted:
            out["includeDeleted"] = True
        if self.is_null is not None:
            out["isNull"] = {"field": self.is_null.field, "isNull": self.is_null.is_null}
        if self.group_by is not None:
            group: dict[str, Any] = {"field": self.group_by.field}
            if self.group_by.having is not None:
                group["having"] = {"condition": self.group_by.having.condition, "value": self.group_by.having.value}
            out["groupBy"] = group
        return out
