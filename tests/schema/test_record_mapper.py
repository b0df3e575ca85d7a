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
"""Tests for RecordMapper extraction."""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from mixcrud.data.filter_options import FilterOptions
from mixcrud.data.service import CrudService
from mixcrud.schema.mapper import RecordMapper
from tests.models import Profile, User


@dataclass
class Node:
    name: str
    children: list[Node] = field(default_factory=list)
    parent: Node | None = None


class Point(BaseModel):
    x: int
    y: int


class Plain:
    def __init__(self) -> None:
        self.a = 1
        self._hidden = 2


class TestRecordMapper:
    mapper = RecordMapper()

    def test_mapping(self):
        assert self.mapper.extract({"a": 1, "b": {"c": 2}}) == {"a": 1, "b": {"c": 2}}

    def test_pydantic_model(self):
        assert self.mapper.extract(Point(x=1, y=2)) == {"x": 1, "y": 2}

    def test_plain_object_skips_private(self):
        assert self.mapper.extract(Plain()) == {"a": 1}

    def test_none(self):
        assert self.mapper.extract(None) is None

    def test_cycles_are_cut(self):
        root = Node("root")
        child = Node("child", parent=root)
        root.children.append(child)
        assert self.mapper.extract(root) == {
            "name": "root",
            "children": [{"name": "child", "children": []}],
            "parent": None,
        }

    def test_transient_entity(self):
        data = self.mapper.extract(User(username="alice", email="a@example.com"))
        assert data is not None
        assert data["username"] == "alice"
        assert "id" not in data

    def test_extra_names_read_properties(self):
        data = self.mapper.extract(User(username="alice"), extra=["display_name", "missing"])
        assert data is not None
        assert data["display_name"] == "@alice"
        assert "missing" not in data

    async def test_loaded_entity_with_relation(self, session: AsyncSession):
        profile = Profile(bio="hello", avatar="a.png")
        session.add(profile)
        await session.flush()
        user = await CrudService(User, session).create({"username": "alice", "profile_id": profile.id})

        data = self.mapper.extract(user)
        assert data is not None
        assert data["username"] == "alice"
        assert data["profile"] == {"id": profile.id, "bio": "hello", "avatar": "a.png"}

    async def test_unloaded_columns_are_skipped(self, session, session_factory):
        session.add(User(username="alice", email="a@example.com"))
        await session.commit()

        async with session_factory() as fresh:
            [user] = await CrudService(User, fresh).find_all(FilterOptions(select_fields=("username",)))
            data = self.mapper.extract(user)
        assert data is not None
        assert data["username"] == "alice"
        assert "email" not in data
