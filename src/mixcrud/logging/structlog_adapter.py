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
"""structlog-backed implementation of :class:`~mixcrud.logging.port.LoggingPort`.

CRUD components emit structured events (``entity_created``,
``response_schema_missing``, ``store_failure``...).  This adapter routes them
through stdlib logging so per-module levels from ``mixcrud.logging.level``
apply to them.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from mixcrud.core.config import Config
from mixcrud.core.properties import LoggingProperties


def _level_number(level: str) -> int:
    number = logging.getLevelNamesMapping().get(level.upper())
    if number is None:
        raise ValueError(f"Unknown log level {level!r}")
    return number


def build_processors(props: LoggingProperties) -> list[structlog.types.Processor]:
    """Processor chain for *props*; the renderer comes last."""
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
    ]
    if props.timestamp_format:
        processors.append(structlog.processors.TimeStamper(fmt=props.timestamp_format))
    processors += [
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if props.format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())
    return processors


class StructlogAdapter:
    """Configures structlog from :class:`LoggingProperties` and hands out loggers."""

    def __init__(self) -> None:
        self._props = LoggingProperties()

    @property
    def properties(self) -> LoggingProperties:
        return self._props

    @property
    def root_level(self) -> str:
        return self._props.level.get("root", "INFO").upper()

    @property
    def module_levels(self) -> dict[str, str]:
        return {name: level.upper() for name, level in self._props.level.items() if name != "root"}

    def configure(self, config: Config) -> None:
        """Bind ``mixcrud.logging`` and install the processor chain."""
        props = config.bind(LoggingProperties)
        root = _level_number(props.level.get("root", "INFO"))
        for level in props.level.values():
            _level_number(level)
        self._props = props

        structlog.configure(
            processors=build_processors(props),
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=False,
        )
        logging.basicConfig(
            format="%(message)s",
            stream=sys.stdout if props.stream == "stdout" else sys.stderr,
            level=root,
            force=True,
        )
        for name, level in self.module_levels.items():
            self.set_level(name, level)

    def get_logger(self, name: str, **context: Any) -> Any:
        """Logger for *name*, with *context* (e.g. ``entity="User"``) bound to every event."""
        logger = structlog.get_logger(name)
        return logger.bind(**context) if context else logger

    def set_level(self, name: str, level: str) -> None:
        logging.getLogger(name).setLevel(_level_number(level))
