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
"""Per-entity controller wiring the pipeline around a :class:`CrudService`."""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable
from typing import Any, ClassVar, Generic, TypeVar

from mixcrud.data.filter_options import FilterOptions
from mixcrud.data.service import CrudService
from mixcrud.kernel.exceptions import CrudException, UnexpectedFailureException
from mixcrud.logging import get_logger
from mixcrud.schema.pipeline import TransformationPipeline
from mixcrud.schema.registry import SchemaKind, SchemaRegistry, default_registry

T = TypeVar("T")
R = TypeVar("R")


def _operation(name: str) -> Callable[[Callable[..., Awaitable[R]]], Callable[..., Awaitable[R]]]:
    """Let CRUD errors through; log and wrap anything raised while shaping data."""

    def decorator(func: Callable[..., Awaitable[R]]) -> Callable[..., Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(self: CrudController[Any], *args: Any, **kwargs: Any) -> R:
            try:
                return await func(self, *args, **kwargs)
            except CrudException:
                raise
            except Exception as exc:
                self._logger.exception("operation_failed", controller=type(self).__name__, operation=name)
                raise UnexpectedFailureException(
                    context={"entity": self._service.entity_name, "operation": name},
                ) from exc

        return wrapper

    return decorator


class CrudController(Generic[T]):
    """Create, read, update, delete and restore for one entity.

    Input schemas are resolved from :attr:`schema_registry` for every write
    and must be registered.  Response schemas are optional; without one the
    records are returned as they come from the service.

    Usage::

        @create_schema(CreateUser)
        @update_schema(UpdateUser)
        @response_schema(UserOut)
        class UserController(CrudController[User]):
            @response_schema(UserOut, transform=lambda data: {"data": data})
            async def get_one(self, id):
                return await super().get_one(id)

        controller = UserController(UserService(session=session))
    """

    schema_registry: ClassVar[SchemaRegistry] = default_registry
    soft_delete: ClassVar[bool] = True

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.schema_registry.register_marked_methods(cls)

    def __init__(
        self,
        service: CrudService[T, Any],
        pipeline: TransformationPipeline | None = None,
        logger: Any = None,
    ) -> None:
        self._service = service
        self._logger = logger or get_logger(__name__)
        self._pipeline = pipeline or TransformationPipeline(type(self).schema_registry, logger=self._logger)

    @property
    def service(self) -> CrudService[T, Any]:
        return self._service

    def filter_options(self) -> FilterOptions:
        """Options used by :meth:`get_all` when the caller sends none."""
        return FilterOptions.empty()

    @_operation("create")
    async def create(self, payload: Any) -> Any:
        data = self._pipeline.validate_for(self, SchemaKind.CREATE, payload, method="create")
        record = await self._service.create(data)
        return self._pipeline.respond(self, record, method="create")

    @_operation("get_all")
    async def get_all(self, options: FilterOptions | None = None) -> Any:
        records = await self._service.find_all(options if options is not None else self.filter_options())
        return self._pipeline.respond(self, records, method="get_all")

    @_operation("get_one")
    async def get_one(self, id: Any) -> Any:
        record = await self._service.find_one(id)
        return self._pipeline.respond(self, record, method="get_one")

    @_operation("update")
    async def update(self, id: Any, payload: Any) -> Any:
        data = self._pipeline.validate_for(self, SchemaKind.UPDATE, payload, method="update", partial=True)
        record = await self._service.update(id, data)
        return self._pipeline.respond(self, record, method="update")

    @_operation("partial_update")
    async def partial_update(self, id: Any, payload: Any) -> Any:
        data = self._pipeline.validate_for(self, SchemaKind.UPDATE, payload, method="partial_update", partial=True)
        record = await self._service.update(id, data)
        return self._pipeline.respond(self, record, method="partial_update")

    @_operation("delete")
    async def delete(self, id: Any) -> None:
        """Soft delete when :attr:`soft_delete` is set, otherwise remove the row."""
        if self.soft_delete:
            await self._service.soft_delete(id)
        else:
            await self._service.delete(id)

    @_operation("restore")
    async def restore(self, id: Any) -> Any:
        record = await self._service.restore(id)
        return self._pipeline.respond(self, record, method="restore")
