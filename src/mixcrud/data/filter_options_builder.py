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
"""Fluent builder for :class:`FilterOptions`."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from mixcrud.data.filter_options import (
    DateRange,
    Direction,
    FilterOptions,
    GroupBy,
    Having,
    NullCheck,
    OrderBy,
    Pagination,
    SearchOptions,
)


class FilterOptionsBuilder:
    """Chainable construction of a :class:`FilterOptions` snapshot.

    Setters may be called in any order and overwrite earlier values.  No
    cross-field validation happens here: an incomplete date range is kept
    as given and simply ignored by the query builder.

    Usage::

        options = (
            FilterOptionsBuilder()
            .set_filters({"status": "active"})
            .add_order_by("created_at", "DESC")
            .set_pagination(limit=10, offset=20)
            .build()
        )
    """

    def __init__(self) -> None:
        self._filters: dict[str, Any] = {}
        self._order_by: list[OrderBy] = []
        self._select_fields: list[str] = []
        self._pagination: Pagination | None = None
        self._search: SearchOptions | None = None
        self._date: DateRange | None = None
        self._include_deleted = False
        self._is_null: NullCheck | None = None
        self._group_by: GroupBy | None = None

    def set_filters(self, filters: Mapping[str, Any]) -> FilterOptionsBuilder:
        self._filters = dict(filters)
        return self

    def set_order_by(self, order_by: Iterable[OrderBy]) -> FilterOptionsBuilder:
        self._order_by = list(order_by)
        return self

    def add_order_by(self, field: str, order: Direction = "ASC") -> FilterOptionsBuilder:
        """Append one ORDER BY term after the ones already set."""
        self._order_by.append(OrderBy(field=field, order=order))
        return self

    def set_select_fields(self, select_fields: Iterable[str]) -> FilterOptionsBuilder:
        self._select_fields = list(select_fields)
        return self

    def set_pagination(self, limit: int | None, offset: int | None = None) -> FilterOptionsBuilder:
        self._pagination = Pagination(limit=limit, offset=offset)
        return self

    def set_search(self, search_fields: Iterable[str], value: str | None) -> FilterOptionsBuilder:
        self._search = SearchOptions(search_fields=tuple(search_fields), value=value)
        return self

    def set_date_range(self, field: str, from_: Any = None, to: Any = None) -> FilterOptionsBuilder:
        self._date = DateRange(field=field, from_=from_, to=to)
        return self

    def set_include_deleted(self, include_deleted: bool) -> FilterOptionsBuilder:
        self._include_deleted = include_deleted
        return self

    def set_is_null(self, field: str, is_null: bool) -> FilterOptionsBuilder:
        self._is_null = NullCheck(field=field, is_null=is_null)
        return self

    def set_group_by(
        self,
        field: str,
        having: Having | None = None,
    ) -> FilterOptionsBuilder:
        self._group_by = GroupBy(field=field, having=having)
        return self

    def build(self) -> FilterOptions:
        """Return an immutable snapshot of the current state."""
        return FilterOptions(
            filters=dict(self._filters),
            order_by=tuple(self._order_by),
            select_fields=tuple(self._select_fields),
            pagination=self._pagination,
            search=self._search,
            date=self._date,
            include_deleted=self._include_deleted,
            is_null=self._is_null,
            group_by=self._group_by,
        )
