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
"""Generic async CRUD service built on SQLAlchemy 2.0."""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable, Mapping
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar, cast, get_args, get_origin

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.ext.asyncio import AsyncSession

from mixcrud.core.properties import QueryProperties
from mixcrud.data.entity import EntityMetadata, SoftDeleteMixin, metadata_of
from mixcrud.data.filter_options import FilterOptions
from mixcrud.data.query_builder import QueryBuilder
from mixcrud.data.soft_delete import INCLUDE_DELETED, SoftDeleteCriteria
from mixcrud.kernel.exceptions import (
    ConfigurationMissingException,
    CrudException,
    InvalidRequestException,
    ResourceNotFoundException,
    UnexpectedFailureException,
)
from mixcrud.logging import get_logger

T = TypeVar("T")
ID = TypeVar("ID")
R = TypeVar("R")


def _store_boundary(operation: str) -> Callable[[Callable[..., Awaitable[R]]], Callable[..., Awaitable[R]]]:
    """Let CRUD errors through untouched; log and wrap everything else."""

    def decorator(func: Callable[..., Awaitable[R]]) -> Callable[..., Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(self: CrudService[Any, Any], *args: Any, **kwargs: Any) -> R:
            try:
                return await func(self, *args, **kwargs)
            except CrudException:
                raise
            except Exception as exc:
                self._logger.exception("store_failure", entity=self.entity_name, operation=operation)
                raise UnexpectedFailureException(
                    context={"entity": self.entity_name, "operation": operation},
                ) from exc

        return wrapper

    return decorator


class CrudService(Generic[T, ID]):
    """CRUD operations for one entity type.

    Reads go through :class:`QueryBuilder` with every relation from the
    entity's :class:`EntityMetadata` eagerly loaded.
    Identifiers may be given as strings or numbers; they are coerced to the
    primary key's Python type before lookup.

    Usage::

        class UserService(CrudService[User, int]):
            pass

        service = UserService(session=session)
        user = await service.create({"username": "alice"})
        page = await service.find_all(FilterOptionsBuilder().set_pagination(10).build())
    """

    _entity_type: type | None = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        for base in getattr(cls, "__orig_bases__", []):
            if get_origin(base) is CrudService:
                args = get_args(base)
                if args and not isinstance(args[0], TypeVar):
                    cls._entity_type = args[0]
                break

    def __init__(
        self,
        model: type[T] | None = None,
        session: AsyncSession | None = None,
        *,
        metadata: EntityMetadata | None = None,
        properties: QueryProperties | None = None,
        logger: Any = None,
    ) -> None:
        resolved = model or getattr(type(self), "_entity_type", None)
        if resolved is None:
            raise TypeError(
                f"{type(self).__name__} requires either CrudService[Entity, ID] declaration or explicit model argument"
            )
        self._model: type[T] = cast(type[T], resolved)
        self._session = session
        self._metadata = metadata or metadata_of(self._model)
        self._props = properties or QueryProperties()
        self._logger = logger or get_logger(__name__)

        mapper = sa_inspect(self._model)
        pk_column = mapper.primary_key[0]
        self._pk_attr = getattr(self._model, mapper.get_property_by_column(pk_column).key)
        try:
            self._pk_type: type | None = pk_column.type.python_type
        except NotImplementedError:
            self._pk_type = None
        self._column_names = frozenset(mapper.attrs.keys())
        if issubclass(self._model, SoftDeleteMixin):
            SoftDeleteCriteria().register()

    @property
    def metadata(self) -> EntityMetadata:
        return self._metadata

    @property
    def entity_name(self) -> str:
        return self._metadata.get_entity_name()

    def _require_session(self) -> AsyncSession:
        """Return the session or raise if none is configured."""
        if self._session is None:
            raise ConfigurationMissingException(
                f"No AsyncSession configured for {type(self).__name__}",
                code="SESSION_MISSING",
                context={"entity": self.entity_name},
            )
        return self._session

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    @_store_boundary("create")
    async def create(self, payload: Mapping[str, Any]) -> T:
        """Instantiate, persist and return the new record with its generated id."""
        self._check_fields(payload)
        session = self._require_session()
        entity = self._model(**payload)
        session.add(entity)
        await session.flush()
        id = sa_inspect(self._model).primary_key_from_instance(entity)[0]
        self._logger.info("entity_created", entity=self.entity_name, id=id)
        return await self._get_or_raise(id)

    @_store_boundary("find_all")
    async def find_all(self, options: FilterOptions | None = None) -> list[T]:
        """Return every record matching *options*, relations eagerly loaded."""
        session = self._require_session()
        stmt = self._builder().apply(options).get_query()
        result = await session.execute(stmt)
        items = list(result.unique().scalars().all())
        self._logger.debug("entities_found", entity=self.entity_name, count=len(items))
        return items

    @_store_boundary("find_one")
    async def find_one(self, id: ID | str | int) -> T:
        """Return the record with *id*; raises ResourceNotFoundException when absent."""
        return await self._get_or_raise(id)

    @_store_boundary("update")
    async def update(self, id: ID | str | int, payload: Mapping[str, Any]) -> T:
        """Shallow-merge *payload* onto the record: given fields win, others stay."""
        self._check_fields(payload)
        session = self._require_session()
        entity = await self._get_or_raise(id)
        for key, value in payload.items():
            setattr(entity, key, value)
        await session.flush()
        self._logger.info("entity_updated", entity=self.entity_name, id=id, fields=sorted(payload))
        return await self._get_or_raise(id)

    @_store_boundary("soft_delete")
    async def soft_delete(self, id: ID | str | int) -> None:
        """Mark the record deleted by setting ``deleted_at``; the row stays."""
        if not issubclass(self._model, SoftDeleteMixin):
            raise InvalidRequestException(
                f"Entity {self.entity_name} does not support soft delete",
                code="SOFT_DELETE_UNSUPPORTED",
                context={"entity": self.entity_name},
            )
        session = self._require_session()
        entity = await self._get_or_raise(id)
        entity.deleted_at = datetime.now(UTC)  # type: ignore[attr-defined]
        await session.flush()
        self._logger.info("entity_soft_deleted", entity=self.entity_name, id=id)

    @_store_boundary("restore")
    async def restore(self, id: ID | str | int) -> T:
        """Clear ``deleted_at``.  A record that was never deleted is returned unchanged."""
        session = self._require_session()
        entity = await self._get_or_raise(id, include_deleted=True)
        if getattr(entity, "deleted_at", None) is not None:
            entity.deleted_at = None  # type: ignore[attr-defined]
            await session.flush()
            self._logger.info("entity_restored", entity=self.entity_name, id=id)
        return await self._get_or_raise(id)

    @_store_boundary("delete")
    async def delete(self, id: ID | str | int) -> None:
        """Permanently remove the row.  Soft-deleted rows can be removed too."""
        session = self._require_session()
        entity = await self._get_or_raise(id, include_deleted=True)
        await session.delete(entity)
        await session.flush()
        self._logger.info("entity_deleted", entity=self.entity_name, id=id)

    @_store_boundary("count")
    async def count(self, options: FilterOptions | None = None) -> int:
        """Number of records matching the row-level clauses of *options*."""
        session = self._require_session()
        stmt = QueryBuilder.count_for_entity(self._model, self._metadata.get_relations(), options, self._props)
        result = await session.execute(stmt)
        return int(result.scalar_one())

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _builder(self) -> QueryBuilder[T]:
        return QueryBuilder.for_entity(self._model, self._metadata.get_relations(), self._props)

    def _coerce_id(self, id: Any) -> Any:
        """Coerce *id* to the primary key type; ``None`` when impossible."""
        if isinstance(id, bool):
            return None
        if self._pk_type is None or isinstance(id, self._pk_type):
            return id
        try:
            return self._pk_type(str(id).strip()) if self._pk_type is not str else str(id)
        except (TypeError, ValueError, AttributeError):
            return None

    async def _get_or_raise(self, id: Any, *, include_deleted: bool = False) -> T:
        coerced = self._coerce_id(id)
        if coerced is None:
            raise ResourceNotFoundException.for_entity(self.entity_name, id)

        stmt = (
            self._builder()
            .get_query()
            .where(self._pk_attr == coerced)
            .execution_options(populate_existing=True, **{INCLUDE_DELETED: include_deleted})
        )
        result = await self._require_session().execute(stmt)
        entity = result.unique().scalars().first()
        if entity is None:
            raise ResourceNotFoundException.for_entity(self.entity_name, id)
        return cast(T, entity)

    def _check_fields(self, payload: Mapping[str, Any]) -> None:
        unknown = sorted(set(payload) - self._column_names)
        if unknown:
            raise InvalidRequestException(
                f"Unknown fields for entity {self.entity_name}: {', '.join(unknown)}",
                code="UNKNOWN_FIELDS",
                context={"entity": self.entity_name, "fields": unknown},
            )
