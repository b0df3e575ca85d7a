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
"""Default scoping that hides soft-deleted rows from ORM selects.

Statements opt out with ``execution_options(include_deleted=True)``.
"""

from __future__ import annotations

import logging

from sqlalchemy import event
from sqlalchemy.orm import ORMExecuteState, Session, with_loader_criteria

from mixcrud.data.entity import SoftDeleteMixin

logger = logging.getLogger(__name__)

INCLUDE_DELETED = "include_deleted"


class SoftDeleteCriteria:
    """Registers a ``do_orm_execute`` hook adding ``deleted_at IS NULL`` criteria.

    The criteria apply to every :class:`SoftDeleteMixin` entity in the
    statement, including eagerly joined relations.  Call :meth:`register`
    once at startup; repeated calls are ignored.
    """

    def register(self) -> None:
        """Attach the session listener."""
        if event.contains(Session, "do_orm_execute", _scope_soft_deleted):
            return
        event.listen(Session, "do_orm_execute", _scope_soft_deleted)
        logger.info("Registered soft-delete criteria on Session")

    def unregister(self) -> None:
        if event.contains(Session, "do_orm_execute", _scope_soft_deleted):
            event.remove(Session, "do_orm_execute", _scope_soft_deleted)


def _scope_soft_deleted(state: ORMExecuteState) -> None:
    if (
        not state.is_select
        or state.is_column_load
        or state.is_relationship_load
        or state.execution_options.get(INCLUDE_DELETED, False)
    ):
        return
    state.statement = state.statement.options(
        with_loader_criteria(
            SoftDeleteMixin,
            lambda cls: cls.deleted_at.is_(None),
            include_aliases=True,
        )
    )
