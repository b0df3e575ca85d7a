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
"""Composable query predicates over SQLAlchemy ``Select`` statements.

A *Specification* wraps a callable that receives the root entity class and
a ``Select`` and returns the ``Select`` with a WHERE clause added.  They
combine with ``&`` (AND), ``|`` (OR) and ``~`` (NOT).

Example::

    ops = FilterOperator()
    active = ops.eq("status", "active")
    named = ops.contains("name", "ali")

    stmt = (active & ~named).to_predicate(User, select(User))
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from functools import reduce
from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, Select, literal_column, not_, or_, select
from sqlalchemy import inspect as sa_inspect

T = TypeVar("T")

Predicate = Callable[[type[Any], Select[Any]], Select[Any]]


def resolve_column(root: type[Any], field: str, root_alias: str = "entity") -> Any:
    """Resolve *field* to a column expression of *root* or one of its relations.

    ``"name"`` and ``"entity.name"`` address the root entity;
    ``"profile.bio"`` addresses the ``bio`` column of the entity behind the
    ``profile`` relationship.  Names that are not mapped attributes are
    handed to the store as literal column references and fail there.
    """
    head, _, tail = field.partition(".")
    if not tail:
        target, attr = root, head
    elif head == root_alias:
        target, attr = root, tail
    else:
        relationship = sa_inspect(root).relationships.get(head)
        if relationship is None:
            return literal_column(field)
        target, attr = relationship.mapper.class_, tail

    if attr in sa_inspect(target).all_orm_descriptors.keys():
        return getattr(target, attr)
    return literal_column(field)


def collection_of(root: type[Any], field: str, root_alias: str = "entity") -> Any:
    """The one-to-many relationship attribute *field* goes through, else ``None``."""
    head, _, tail = field.partition(".")
    if not tail or head == root_alias:
        return None
    relationship = sa_inspect(root).relationships.get(head)
    if relationship is None or not relationship.uselist:
        return None
    return getattr(root, head)


class Specification(Generic[T]):
    """Composable query predicate for dynamic queries.

    Specifications can be combined using the standard Python operators:

    * ``spec_a & spec_b`` — both predicates must match (AND).
    * ``spec_a | spec_b`` — either predicate may match (OR).
    * ``~spec_a`` — negated predicate (NOT).
    """

    def __init__(self, predicate: Predicate) -> None:
        self._predicate = predicate

    def to_predicate(self, root: type[T], query: Select[Any]) -> Select[Any]:
        """Apply this specification's predicate to *query*."""
        return self._predicate(root, query)

    def clause(self, root: type[T]) -> ColumnElement[bool] | None:
        """The WHERE clause this specification adds to a bare ``select(root)``."""
        return self._predicate(root, select(root)).whereclause

    @staticmethod
    def noop() -> Specification[Any]:
        return Specification(lambda root, q: q)

    @staticmethod
    def all_of(specs: Iterable[Specification[Any]]) -> Specification[Any]:
        """AND-combine *specs*.  Returns a no-op if empty."""
        return reduce(lambda acc, s: acc & s, specs, Specification.noop())

    @staticmethod
    def any_of(specs: Iterable[Specification[Any]]) -> Specification[Any]:
        """OR-combine *specs*.  Returns a no-op if empty."""
        specs = list(specs)
        if not specs:
            return Specification.noop()
        return reduce(lambda acc, s: acc | s, specs[1:], specs[0])

    # ------------------------------------------------------------------
    # Combinators
    # ------------------------------------------------------------------

    def __and__(self, other: Specification[T]) -> Specification[T]:
        """Combine with AND by chaining both predicates on the same statement."""
        left, right = self._predicate, other._predicate
        return Specification(lambda root, q: right(root, left(root, q)))

    def __or__(self, other: Specification[T]) -> Specification[T]:
        """Combine with OR.

        Each side is rendered against a clean ``select(root)`` so that only
        its own conditions end up inside the ``OR`` group.
        """
        left, right = self, other

        def or_predicate(root: type[T], query: Select[Any]) -> Select[Any]:
            clauses = [c for c in (left.clause(root), right.clause(root)) if c is not None]
            if not clauses:
                return query
            return query.where(or_(*clauses))

        return Specification(or_predicate)

    def __invert__(self) -> Specification[T]:
        """Negate this specification: NOT."""
        inner = self

        def not_predicate(root: type[T], query: Select[Any]) -> Select[Any]:
            clause = inner.clause(root)
            if clause is None:
                return query
            return query.where(not_(clause))

        return Specification(not_predicate)


class FilterOperator:
    """Single-column predicates returning :class:`Specification` objects.

    Field names go through :func:`resolve_column`, so relation-qualified
    names (``"profile.bio"``) work everywhere.  A field behind a collection
    (``"books.title"``) matches when any related row matches, via
    ``EXISTS``, so the root rows are never multiplied.  Values are always
    bound parameters.

    Usage::

        ops = FilterOperator()
        spec = ops.eq("status", "active") & ops.between("age", 18, 65)
    """

    def __init__(self, root_alias: str = "entity") -> None:
        self.root_alias = root_alias

    def _where(self, field: str, condition: Callable[[Any], Any]) -> Specification[Any]:
        def predicate(root: type[Any], q: Select[Any]) -> Select[Any]:
            clause = condition(resolve_column(root, field, self.root_alias))
            collection = collection_of(root, field, self.root_alias)
            return q.where(collection.any(clause) if collection is not None else clause)

        return Specification(predicate)

    def eq(self, field: str, value: Any) -> Specification[Any]:
        """Equal to."""
        return self._where(field, lambda col: col == value)

    def neq(self, field: str, value: Any) -> Specification[Any]:
        """Not equal to."""
        return self._where(field, lambda col: col != value)

    def like(self, field: str, pattern: str) -> Specification[Any]:
        """SQL LIKE pattern match."""
        return self._where(field, lambda col: col.like(pattern))

    def contains(self, field: str, value: str) -> Specification[Any]:
        """``LIKE %value%``; case sensitivity follows the store's collation."""
        return self.like(field, f"%{value}%")

    def in_list(self, field: str, values: list[Any]) -> Specification[Any]:
        """Value is in list."""
        return self._where(field, lambda col: col.in_(values))

    def is_null(self, field: str) -> Specification[Any]:
        """Value is NULL."""
        return self._where(field, lambda col: col.is_(None))

    def is_not_null(self, field: str) -> Specification[Any]:
        """Value is NOT NULL."""
        return self._where(field, lambda col: col.is_not(None))

    def between(self, field: str, low: Any, high: Any) -> Specification[Any]:
        """Value is between *low* and *high* (inclusive)."""
        return self._where(field, lambda col: col.between(low, high))
