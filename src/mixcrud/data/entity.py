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
"""Declarative base, soft-delete mixin and the per-entity metadata contract."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, TypeVar

from sqlalchemy import DateTime, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from mixcrud.kernel.exceptions import ConfigurationMissingException

T = TypeVar("T")

_METADATA_ATTR = "__mixcrud_metadata__"


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for mixcrud entities."""


class SoftDeleteMixin:
    """Mixin that adds a ``deleted_at`` timestamp for soft-delete support.

    Rows with a non-null ``deleted_at`` are hidden from ORM selects once
    :class:`~mixcrud.data.soft_delete.SoftDeleteCriteria` is registered.
    """

    __abstract__ = True

    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None, nullable=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class CrudEntity(SoftDeleteMixin, Base):
    """Base entity: integer identity, audit timestamps and soft delete."""

    __abstract__ = True

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )


@dataclass(frozen=True)
class EntityMetadata:
    """What the CRUD layer needs to know about an entity type.

    Attributes:
        name: Stable display name used in error messages and logs.
        relations: Relationship attribute names, eagerly left-joined on reads.
    """

    name: str
    relations: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("EntityMetadata.name must be a non-empty string")
        object.__setattr__(self, "relations", tuple(self.relations))

    def get_relations(self) -> tuple[str, ...]:
        return self.relations

    def get_entity_name(self) -> str:
        return self.name


def crud_entity(name: str, relations: Iterable[str] = ()) -> Callable[[type[T]], type[T]]:
    """Attach :class:`EntityMetadata` to an entity class.

    Usage::

        @crud_entity(name="User", relations=["profile", "posts"])
        class User(CrudEntity):
            __tablename__ = "users"
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _METADATA_ATTR, EntityMetadata(name=name, relations=tuple(relations)))
        return cls

    return decorator


def metadata_of(model: type[Any]) -> EntityMetadata:
    """Return the metadata registered on *model* with :func:`crud_entity`."""
    metadata = model.__dict__.get(_METADATA_ATTR)
    if metadata is None:
        raise ConfigurationMissingException(
            f"{model.__name__} has no entity metadata; decorate it with @crud_entity(name=...)",
            code="ENTITY_METADATA_MISSING",
            context={"model": model.__name__},
        )
    return metadata
