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
"""Which input/output schema applies to a controller operation.

Bindings are keyed by ``(owner class, kind, method name)``.  A binding
registered for a method wins over the class-level one; both are looked up
along the owner's MRO.  Keys are write-once: registering the same key twice
is a configuration error.

Registration is explicit::

    registry.bind_create(UserController, CreateUser)
    registry.bind_response(UserController, UserOut, method="get_one", transform=envelope)

or through the decorators, which call :meth:`SchemaRegistry.bind` when the
class is defined::

    @create_schema(CreateUser)
    @response_schema(UserOut)
    class UserController(CrudController[User]):
        @response_schema(UserOut, transform=envelope)
        async def get_one(self, id): ...
"""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from pydantic import BaseModel

from mixcrud.kernel.exceptions import ConfigurationException, ConfigurationMissingException
from mixcrud.logging import get_logger

F = TypeVar("F")

Transform = Callable[[Any], Any]

_MARK_ATTR = "__mixcrud_schema_bindings__"


class SchemaKind(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    RESPONSE = "response"


@dataclass(frozen=True)
class SchemaBinding:
    """Resolved schema for an operation plus an optional response transform."""

    schema: type[BaseModel] | None = None
    transform: Transform | None = None

    @property
    def is_identity(self) -> bool:
        return self.schema is None and self.transform is None


IDENTITY = SchemaBinding()


class SchemaRegistry:
    """Write-once store of schema bindings with method-over-class resolution."""

    def __init__(self, logger: Any = None) -> None:
        self._bindings: dict[tuple[type, SchemaKind, str | None], SchemaBinding] = {}
        self._logger = logger or get_logger(__name__)

    def bind(
        self,
        owner: type,
        kind: SchemaKind | str,
        schema: type[BaseModel] | None = None,
        transform: Transform | None = None,
        method: str | None = None,
    ) -> SchemaBinding:
        """Register *schema* (and *transform* for responses) for *owner*."""
        kind = SchemaKind(kind)
        if schema is None and transform is None:
            raise ConfigurationException(f"A {kind.value} binding for {owner.__name__} needs a schema or a transform")
        if schema is not None and not (isinstance(schema, type) and issubclass(schema, BaseModel)):
            raise ConfigurationException(f"{schema!r} is not a pydantic BaseModel subclass")
        if kind is not SchemaKind.RESPONSE:
            if transform is not None:
                raise ConfigurationException("Transforms can only be bound to response schemas")
            if schema is None:
                raise ConfigurationException(f"A {kind.value} binding for {owner.__name__} needs a schema")
        elif schema is not None and schema.model_config.get("extra") == "allow":
            raise ConfigurationException(f"Response schema {schema.__name__} must not allow extra fields")

        key = (owner, kind, method)
        if key in self._bindings:
            target = f"{owner.__name__}.{method}" if method else owner.__name__
            raise ConfigurationException(
                f"A {kind.value} schema is already registered for {target}",
                code="SCHEMA_ALREADY_BOUND",
                context={"owner": owner.__name__, "kind": kind.value, "method": method},
            )
        binding = SchemaBinding(schema=schema, transform=transform)
        self._bindings[key] = binding
        return binding

    def bind_create(self, owner: type, schema: type[BaseModel], method: str | None = None) -> SchemaBinding:
        return self.bind(owner, SchemaKind.CREATE, schema, method=method)

    def bind_update(self, owner: type, schema: type[BaseModel], method: str | None = None) -> SchemaBinding:
        return self.bind(owner, SchemaKind.UPDATE, schema, method=method)

    def bind_response(
        self,
        owner: type,
        schema: type[BaseModel] | None = None,
        transform: Transform | None = None,
        method: str | None = None,
    ) -> SchemaBinding:
        return self.bind(owner, SchemaKind.RESPONSE, schema, transform, method)

    def lookup(self, owner: Any, kind: SchemaKind | str, method: str | None = None) -> SchemaBinding | None:
        """Return the binding for *owner*, or ``None`` when nothing matches."""
        kind = SchemaKind(kind)
        cls = owner if isinstance(owner, type) else type(owner)
        if method is not None:
            for klass in cls.__mro__:
                binding = self._bindings.get((klass, kind, method))
                if binding is not None:
                    return binding
        for klass in cls.__mro__:
            binding = self._bindings.get((klass, kind, None))
            if binding is not None:
                return binding
        return None

    def resolve(self, owner: Any, kind: SchemaKind | str, method: str | None = None) -> SchemaBinding:
        """Like :meth:`lookup`, applying the fallback rules.

        A missing response binding logs a warning and resolves to the
        identity binding.  A missing create/update binding raises
        :class:`ConfigurationMissingException`.
        """
        kind = SchemaKind(kind)
        binding = self.lookup(owner, kind, method)
        if binding is not None:
            return binding

        name = (owner if isinstance(owner, type) else type(owner)).__name__
        if kind is SchemaKind.RESPONSE:
            self._logger.warning("response_schema_missing", owner=name, method=method)
            return IDENTITY
        raise ConfigurationMissingException(
            f"No {kind.value} schema registered for {name}; bind one with {kind.value}_schema()",
            code="SCHEMA_MISSING",
            context={"owner": name, "kind": kind.value, "method": method},
        )

    def register_marked_methods(self, owner: type) -> None:
        """Bind the schemas that decorators left on *owner*'s own methods."""
        for name, member in vars(owner).items():
            func = getattr(member, "__func__", member)
            for kind, schema, transform, registry in getattr(func, _MARK_ATTR, ()):
                (registry or self).bind(owner, kind, schema, transform, method=name)


default_registry = SchemaRegistry()


def _schema_decorator(
    kind: SchemaKind,
    schema: type[BaseModel] | None,
    transform: Transform | None,
    registry: SchemaRegistry | None,
) -> Callable[[F], F]:
    def decorator(target: F) -> F:
        if isinstance(target, type):
            target_registry = registry or getattr(target, "schema_registry", None) or default_registry
            target_registry.bind(target, kind, schema, transform)
        else:
            marks = list(getattr(target, _MARK_ATTR, ()))
            marks.append((kind, schema, transform, registry))
            setattr(target, _MARK_ATTR, tuple(marks))
        return target

    return decorator


def create_schema(schema: type[BaseModel], registry: SchemaRegistry | None = None) -> Callable[[F], F]:
    """Bind the input schema validated on create, at class or method level."""
    return _schema_decorator(SchemaKind.CREATE, schema, None, registry)


def update_schema(schema: type[BaseModel], registry: SchemaRegistry | None = None) -> Callable[[F], F]:
    """Bind the input schema validated on update, at class or method level."""
    return _schema_decorator(SchemaKind.UPDATE, schema, None, registry)


def response_schema(
    schema: type[BaseModel] | None = None,
    transform: Transform | None = None,
    registry: SchemaRegistry | None = None,
) -> Callable[[F], F]:
    """Bind the output schema and optional transform, at class or method level."""
    return _schema_decorator(SchemaKind.RESPONSE, schema, transform, registry)
