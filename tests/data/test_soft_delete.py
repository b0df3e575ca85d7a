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
"""Tests for the session-level soft-delete scoping."""

from datetime import UTC, datetime

from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from mixcrud.data.soft_delete import INCLUDE_DELETED, SoftDeleteCriteria, _scope_soft_deleted
from tests.models import Profile, User


async def _seed(session: AsyncSession) -> None:
    session.add_all(
        [
            User(username="alive"),
            User(username="gone", deleted_at=datetime.now(UTC)),
        ]
    )
    await session.commit()


class TestSoftDeleteCriteria:
    def test_register_is_idempotent(self, soft_delete_criteria: SoftDeleteCriteria):
        soft_delete_criteria.register()
        soft_delete_criteria.register()
        assert event.contains(Session, "do_orm_execute", _scope_soft_deleted)

    async def test_hides_deleted_rows(self, session: AsyncSession):
        await _seed(session)
        result = await session.execute(select(User))
        assert [u.username for u in result.scalars()] == ["alive"]

    async def test_include_deleted_option(self, session: AsyncSession):
        await _seed(session)
        stmt = select(User).order_by(User.id).execution_options(**{INCLUDE_DELETED: True})
        result = await session.execute(stmt)
        assert [u.username for u in result.scalars()] == ["alive", "gone"]

    async def test_entities_without_soft_delete_unaffected(self, session: AsyncSession):
        session.add(Profile(bio="hello"))
        await session.commit()
        result = await session.execute(select(Profile))
        assert len(result.scalars().all()) == 1
