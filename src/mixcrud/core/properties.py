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
"""Typed configuration sections consumed by the CRUD layer."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from mixcrud.core.config import config_properties


@config_properties(prefix="mixcrud.query")
class QueryProperties(BaseModel):
    """Query composition settings.

    Attributes:
        root_alias: Name accepted as the root entity prefix in dotted fields.
        relation_select_fields: Fields of every joined relation kept when
            ``select_fields`` narrows the projection.
        max_limit: Upper bound applied to ``pagination.limit``; ``None`` disables it.
    """

    root_alias: str = "entity"
    relation_select_fields: list[str] = Field(default_factory=lambda: ["id", "bio"])
    max_limit: int | None = Field(default=None, ge=1)


@config_properties(prefix="mixcrud.logging")
class LoggingProperties(BaseModel):
    """Logging settings.

    ``level`` maps logger names to levels; the ``root`` key sets the default.
    ``timestamp_format`` is a strftime pattern or ``"iso"``; empty disables
    timestamps.
    """

    level: dict[str, str] = Field(default_factory=lambda: {"root": "INFO"})
    format: Literal["console", "json"] = "console"
    timestamp_format: str = "iso"
    stream: Literal["stdout", "stderr"] = "stdout"

    @field_validator("format", mode="before")
    @classmethod
    def _lower_format(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value
