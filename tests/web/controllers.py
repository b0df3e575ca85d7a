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
"""Controllers and schemas shared by the web tests."""

from __future__ import annotations

from pydantic import BaseModel, Field

from mixcrud.data.filter_options import FilterOptions, OrderBy, Pagination
from mixcrud.data.service import CrudService
from mixcrud.schema.registry import SchemaRegistry, create_schema, response_schema, update_schema
from mixcrud.web.controller import CrudController
from tests.models import User

registry = SchemaRegistry()


class CreateUser(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: str | None = None


class UpdateUser(BaseModel):
    username: str | None = Field(default=None, min_length=3, max_length=50)
    email: str | None = None
    status: str | None = None


class UserOut(BaseModel):
    id: int
    username: str
    email: str | None = None
    status: str | None = None


def envelope(data):
    return {"data": data}


class UserService(CrudService[User, int]):
    pass


@create_schema(CreateUser)
@update_schema(UpdateUser)
@response_schema(UserOut)
class UserController(CrudController[User]):
    schema_registry = registry

    @response_schema(UserOut, transform=envelope)
    async def get_one(self, id):
        return await super().get_one(id)


@create_schema(CreateUser)
@response_schema(UserOut)
class HardDeleteUserController(CrudController[User]):
    schema_registry = registry
    soft_delete = False


@create_schema(CreateUser)
@response_schema(UserOut)
class FirstUserController(CrudController[User]):
    schema_registry = registry

    def filter_options(self) -> FilterOptions:
        return FilterOptions(order_by=(OrderBy.asc("id"),), pagination=Pagination(limit=1))


@create_schema(CreateUser)
class UnshapedUserController(CrudController[User]):
    schema_registry = registry
