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
"""Composes :class:`FilterOptions` onto a SQLAlchemy ``Select``.

Clauses are always applied in the same order, whatever order the caller set
them in::

    filters -> order_by -> select_fields -> pagination -> search
            -> date -> include_deleted -> is_null -> group_by

Every value is a bound parameter.  Field names (and the HAVING condition
text) are the only caller input placed into the statement as-is; names that
do not map to an attribute reach the store as literal columns and are
rejected there.

Example::

    stmt = (
        QueryBuilder.for_entity(User, relations=["profile"])
        .apply(FilterOptions(filters={"status": "active"}, order_by=(OrderBy.desc("id"),)))
        .get_query()
    )
    users = (await session.execute(stmt)).unique().scalars().all()
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, func, select, text
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import contains_eager, defaultload, load_only, selectinload

from mixcrud.core.properties import QueryProperties
from mixcrud.data.entity import SoftDeleteMixin
from mixcrud.data.filter_options import (
    DateRange,
    FilterOptions,
    GroupBy,
    NullCheck,
    OrderBy,
    Pagination,
    SearchOptions,
)
from mixcrud.data.soft_delete import INCLUDE_DELETED
from mixcrud.data.specification import FilterOperator, Specification, collection_of, resolve_column
from mixcrud.kernel.exceptions import InvalidRequestException

T = TypeVar("T")


class QueryBuilder(Generic[T]):
    """Fluent wrapper around a ``Select`` rooted at one entity class.

    Each ``apply_*`` method is a no-op when its clause is absent and returns
    ``self`` for chaining.  ``Select`` is immutable, so the builder keeps the
    latest statement and :meth:`get_query` hands it out.
    """

    def __init__(
        self,
        query: Select[Any],
        root: type[T],
        relations: Iterable[str] = (),
        properties: QueryProperties | None = None,
    ) -> None:
        self._query = query
        self._root = root
        self._relations = tuple(relations)
        self._props = properties or QueryProperties()
        self._ops = FilterOperator(self._props.root_alias)

    @classmethod
    def for_entity(
        cls,
        root: type[T],
        relations: Iterable[str] = (),
        properties: QueryProperties | None = None,
    ) -> QueryBuilder[T]:
        """Start from ``SELECT root`` with every relation eagerly loaded.

        Many-to-one relations are left-joined into the statement, so their
        fields can be filtered and ordered on.  Collections are loaded with a
        separate ``SELECT ... IN`` so that LIMIT/OFFSET count root rows and
        every collection arrives complete.
        """
        relations = tuple(relations)
        stmt = select(root)
        for name in relations:
            attr = getattr(root, name)
            if _is_collection(root, name):
                stmt = stmt.options(selectinload(attr))
            else:
                stmt = stmt.outerjoin(attr).options(contains_eager(attr))
        return cls(stmt, root, relations, properties)

    def apply(self, options: FilterOptions | None) -> QueryBuilder[T]:
        """Apply every clause of *options* in the fixed order."""
        if options is None:
            return self
        return (
            self.apply_filters(options.filters)
            .apply_order_by(options.order_by)
            .apply_select_fields(options.select_fields)
            .apply_pagination(options.pagination)
            .apply_search(options.search)
            .apply_date_filter(options.date)
            .apply_include_deleted(options.include_deleted)
            .apply_is_null(options.is_null)
            .apply_group_by(options.group_by)
        )

    def get_query(self) -> Select[Any]:
        return self._query

    # ------------------------------------------------------------------
    # Clauses
    # ------------------------------------------------------------------

    def apply_filters(self, filters: Mapping[str, Any] | None) -> QueryBuilder[T]:
        """AND one equality predicate per key."""
        if not filters:
            return self
        spec = Specification.all_of(self._ops.eq(field, value) for field, value in filters.items())
        return self._apply_spec(spec)

    def apply_order_by(self, order_by: Sequence[OrderBy] | None) -> QueryBuilder[T]:
        if not order_by:
            return self
        for term in order_by:
            col = self._column(term.field)
            self._query = self._query.order_by(col.desc() if term.order == "DESC" else col.asc())
        return self

    def apply_select_fields(
        self,
        select_fields: Sequence[str] | None,
        relations: Sequence[str] | None = None,
    ) -> QueryBuilder[T]:
        """Narrow the loaded columns.

        The root keeps its primary key plus the requested fields; every
        declared relation keeps the configured relation fields plus any
        requested ``relation.field``.
        """
        if not select_fields:
            return self
        relations = self._relations if relations is None else tuple(relations)
        mapper = sa_inspect(self._root)
        alias = self._props.root_alias

        root_names = [mapper.get_property_by_column(c).key for c in mapper.primary_key]
        requested: dict[str, list[str]] = {}
        for field in select_fields:
            head, _, tail = field.partition(".")
            if not tail or head == alias:
                root_names.append(tail or head)
            else:
                requested.setdefault(head, []).append(tail)

        self._query = self._query.options(
            load_only(*(getattr(self._root, name) for name in dict.fromkeys(root_names)))
        )

        for relation in dict.fromkeys((*relations, *requested)):
            target = mapper.relationships[relation].mapper
            names = [n for n in self._props.relation_select_fields if n in target.attrs]
            names.extend(requested.get(relation, ()))
            if not names:
                continue
            loader = selectinload if _is_collection(self._root, relation) else defaultload
            self._query = self._query.options(
                loader(getattr(self._root, relation)).load_only(
                    *(getattr(target.class_, name) for name in dict.fromkeys(names))
                )
            )
        return self

    def apply_pagination(self, pagination: Pagination | None) -> QueryBuilder[T]:
        """LIMIT/OFFSET, only when a limit is given; offset defaults to 0."""
        if pagination is None or not pagination.limit:
            return self
        limit = pagination.limit
        if self._props.max_limit is not None:
            limit = min(limit, self._props.max_limit)
        self._query = self._query.limit(limit).offset(pagination.offset or 0)
        return self

    def apply_search(self, search: SearchOptions | None) -> QueryBuilder[T]:
        """AND a single ``(f1 LIKE :v OR f2 LIKE :v ...)`` group."""
        if search is None or not search.value or not search.search_fields:
            return self
        spec = Specification.any_of(self._ops.contains(field, search.value) for field in search.search_fields)
        return self._apply_spec(spec)

    def apply_date_filter(self, date: DateRange | None) -> QueryBuilder[T]:
        """Inclusive ``BETWEEN :from AND :to`` when field and both bounds are set."""
        if date is None or not date.field or not date.from_ or not date.to:
            return self
        return self._apply_spec(self._ops.between(date.field, date.from_, date.to))

    def apply_include_deleted(self, include_deleted: bool | None) -> QueryBuilder[T]:
        if include_deleted:
            self._query = self._query.execution_options(**{INCLUDE_DELETED: True})
        return self

    def apply_is_null(self, is_null: NullCheck | None) -> QueryBuilder[T]:
        if is_null is None or not is_null.field:
            return self
        if is_null.is_null:
            return self._apply_spec(self._ops.is_null(is_null.field))
        return self._apply_spec(self._ops.is_not_null(is_null.field))

    def apply_group_by(self, group_by: GroupBy | None) -> QueryBuilder[T]:
        """GROUP BY *field*, plus ``HAVING <condition> :having_value`` when given."""
        if group_by is None or not group_by.field:
            return self
        self._query = self._query.group_by(self._column(group_by.field))
        if group_by.having is not None:
            self._query = self._query.having(
                text(f"{group_by.having.condition} :having_value").bindparams(having_value=group_by.having.value)
            )
        return self

    # ------------------------------------------------------------------
    # Counting
    # ------------------------------------------------------------------

    @classmethod
    def count_for_entity(
        cls,
        root: type[T],
        relations: Iterable[str] = (),
        options: FilterOptions | None = None,
        properties: QueryProperties | None = None,
    ) -> Select[Any]:
        """``SELECT count(*)`` over the distinct roots matching the row-level clauses.

        Ordering, projection, pagination and grouping do not affect the count.
        """
        mapper = sa_inspect(root)
        pk_cols = [getattr(root, mapper.get_property_by_column(c).key) for c in mapper.primary_key]
        stmt = select(*pk_cols).distinct()
        for name in relations:
            if not _is_collection(root, name):
                stmt = stmt.outerjoin(getattr(root, name))

        builder = cls(stmt, root, relations, properties)
        if options is not None:
            builder.apply_filters(options.filters).apply_search(options.search).apply_date_filter(
                options.date
            ).apply_is_null(options.is_null)
        inner = builder.get_query()
        include_deleted = options is not None and options.include_deleted
        if not include_deleted and issubclass(root, SoftDeleteMixin):
            inner = inner.where(root.deleted_at.is_(None))  # type: ignore[attr-defined]

        count = select(func.count()).select_from(inner.subquery())
        if include_deleted:
            count = count.execution_options(**{INCLUDE_DELETED: True})
        return count

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _column(self, field: str) -> Any:
        """Column for ORDER BY / GROUP BY; fields behind a collection are refused."""
        if collection_of(self._root, field, self._props.root_alias) is not None:
            raise InvalidRequestException(
                f"Cannot order or group by collection field {field!r}",
                code="COLLECTION_FIELD",
                context={"field": field},
            )
        return resolve_column(self._root, field, self._props.root_alias)

    def _apply_spec(self, spec: Specification[Any]) -> QueryBuilder[T]:
        self._query = spec.to_predicate(self._root, self._query)
        return self


def _is_collection(root: type[Any], relation: str) -> bool:
    return bool(sa_inspect(root).relationships[relation].uselist)
