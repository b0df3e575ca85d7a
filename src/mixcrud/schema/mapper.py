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
"""Turns persisted records into plain data ready for an output schema.

Supports SQLAlchemy instances, dataclasses, pydantic models, mappings and
plain objects.  For ORM instances only attributes that are already loaded
are read, so narrowed projections never trigger lazy loads.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import InstanceState

_SKIP = object()


class RecordMapper:
    """Extracts field values from records, recursing into relations.

    Usage::

        mapper = RecordMapper()
        data = mapper.extract(user)            # {"id": 1, "profile": {"id": 3, "bio": "..."}}
        data = mapper.extract(user, extra=["is_deleted"])
    """

    def extract(self, record: Any, extra: Iterable[str] = ()) -> dict[str, Any] | None:
        """Return *record*'s fields as a dict.

        Names in *extra* are read with ``getattr`` when they are not mapped
        attributes (e.g. properties on an entity).
        """
        if record is None:
            return None
        result = self._extract(record, frozenset(), tuple(extra))
        return None if result is _SKIP else result

    def to_plain(self, value: Any) -> Any:
        """Convert *value* (a record, a list of records, or plain data) to plain data."""
        return self._value(value, frozenset())

    def _extract(self, record: Any, stack: frozenset[int], extra: tuple[str, ...] = ()) -> Any:
        if id(record) in stack:
            return _SKIP
        stack = stack | {id(record)}

        if isinstance(record, BaseModel):
            return record.model_dump()
        if isinstance(record, Mapping):
            return self._collect(record.items(), stack)
        if dataclasses.is_dataclass(record) and not isinstance(record, type):
            return self._collect(((f.name, getattr(record, f.name)) for f in dataclasses.fields(record)), stack)

        state = sa_inspect(record, raiseerr=False)
        if isinstance(state, InstanceState):
            unloaded = state.unloaded
            keys = [attr.key for attr in state.mapper.attrs if attr.key not in unloaded]
            keys.extend(
                name
                for name in extra
                if name not in state.mapper.attrs and name not in keys and hasattr(record, name)
            )
            return self._collect(((key, getattr(record, key)) for key in keys), stack)

        return self._collect(((k, v) for k, v in vars(record).items() if not k.startswith("_")), stack)

    def _collect(self, items: Iterable[tuple[str, Any]], stack: frozenset[int]) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for key, value in items:
            converted = self._value(value, stack)
            if converted is not _SKIP:
                data[key] = converted
        return data

    def _value(self, value: Any, stack: frozenset[int]) -> Any:
        if isinstance(value, (list, tuple, set, frozenset)):
            items = (self._value(v, stack) for v in value)
            return [v for v in items if v is not _SKIP]
        if self._is_record(value):
            return self._extract(value, stack)
        return value

    @staticmethod
    def _is_record(value: Any) -> bool:
        if isinstance(value, (BaseModel, Mapping)):
            return True
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return True
        return isinstance(sa_inspect(value, raiseerr=False), InstanceState)
