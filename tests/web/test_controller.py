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
"""Tests for CrudController request and response handling."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from mixcrud.data.filter_options import FilterOptions, OrderBy
from mixcrud.kernel.exceptions import (
    ConfigurationMissingException,
    ResourceNotFoundException,
    UnexpectedFailureException,
    ValidationException,
)
from mixcrud.schema.registry import SchemaRegistry, response_schema
from mixcrud.web.controller import CrudController
from tests.models import User
from tests.web.controllers import HardDeleteUserController, UserController, UserService


@pytest.fixture
def controller(session: AsyncSession) -> UserController:
    return UserController(UserService(session=session))


class TestCreate:
    async def test_create_returns_projected_record(self, controller: UserController):
        out = await controller.create({"username": "alice", "email": "alice@example.com"})
        assert out == {"id": out["id"], "username": "alice", "email": "alice@example.com", "status": "active"}

    async def test_invalid_payload_is_not_persisted(self, controller: UserController):
        with pytest.raises(ValidationException) as info:
            await controller.create({"username": "al"})
        assert [v["field"] for v in info.value.errors] == ["username"]
        assert await controller.service.count() == 0

    async def test_unknown_property_rejected(self, controller: UserController):
        with pytest.raises(ValidationException):
            await controller.create({"username": "alice", "deleted_at": "2024-01-01"})
        assert await controller.service.count() == 0

    async def test_missing_create_schema_fails_fast(self, session: AsyncSession):
        class Unbound(CrudController[User]):
            schema_registry = SchemaRegistry()

        with pytest.raises(ConfigurationMissingException):
            await Unbound(UserService(session=session)).create({"username": "alice"})


class TestRead:
    async def test_get_one_uses_method_transform(self, controller: UserController):
        created = await controller.create({"username": "alice"})
        out = await controller.get_one(created["id"])
        assert out == {"data": created}

    async def test_get_one_missing(self, controller: UserController):
        with pytest.raises(ResourceNotFoundException):
            await controller.get_one(999)

    async def test_get_all_with_options(self, controller: UserController):
        for name in ("alice", "bob", "carol"):
            await controller.create({"username": name})
        out = await controller.get_all(FilterOptions(order_by=(OrderBy.desc("id"),)))
        assert [u["username"] for u in out] == ["carol", "bob", "alice"]

    async def test_get_all_uses_default_options(self, session: AsyncSession):
        class NewestFirst(UserController):
            def filter_options(self):
                return FilterOptions(order_by=(OrderBy.desc("id"),))

        controller = NewestFirst(UserService(session=session))
        for name in ("alice", "bob"):
            await controller.create({"username": name})
        assert [u["username"] for u in await controller.get_all()] == ["bob", "alice"]

    async def test_missing_response_schema_returns_records(self, session: AsyncSession):
        registry = SchemaRegistry()

        class Raw(CrudController[User]):
            schema_registry = registry

        user = await UserService(session=session).create({"username": "alice"})
        out = await Raw(UserService(session=session)).get_one(user.id)
        assert isinstance(out, User)

    async def test_transform_failure_is_wrapped(self, session: AsyncSession):
        registry = SchemaRegistry()

        @response_schema(transform=lambda data: 1 / 0, registry=registry)
        class Broken(CrudController[User]):
            schema_registry = registry

        with pytest.raises(UnexpectedFailureException) as info:
            await Broken(UserService(session=session)).get_all()
        assert info.value.context == {"entity": "User", "operation": "get_all"}
        assert isinstance(info.value.__cause__, ZeroDivisionError)


class TestUpdate:
    async def test_update_merges(self, controller: UserController):
        created = await controller.create({"username": "alice", "email": "alice@example.com"})
        out = await controller.update(created["id"], {"status": "banned"})
        assert out["status"] == "banned"
        assert out["email"] == "alice@example.com"
        assert out["username"] == "alice"

    async def test_partial_update_validates(self, controller: UserController):
        created = await controller.create({"username": "alice"})
        with pytest.raises(ValidationException):
            await controller.partial_update(created["id"], {"username": "x"})
        out = await controller.partial_update(str(created["id"]), {"email": "new@example.com"})
        assert out["email"] == "new@example.com"


class TestDeleteAndRestore:
    async def test_delete_is_soft_by_default(self, controller: UserController):
        created = await controller.create({"username": "alice"})
        await controller.delete(created["id"])
        assert await controller.get_all() == []
        assert len(await controller.get_all(FilterOptions(include_deleted=True))) == 1

        restored = await controller.restore(created["id"])
        assert restored["username"] == "alice"
        assert len(await controller.get_all()) == 1

    async def test_hard_delete_controller(self, session: AsyncSession):
        controller = HardDeleteUserController(UserService(session=session))
        created = await controller.create({"username": "alice"})
        await controller.delete(created["id"])
        assert await controller.service.count(FilterOptions(include_deleted=True)) == 0
