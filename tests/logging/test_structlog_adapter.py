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
"""Tests for the structlog logging adapter and the default logger factory."""

import logging
from typing import Any

import pytest
import structlog

from mixcrud.core.config import Config
from mixcrud.core.properties import LoggingProperties
from mixcrud.logging import LoggingPort, StructlogAdapter, get_logger
from mixcrud.logging.structlog_adapter import build_processors


class TestLoggingPort:
    def test_adapter_implements_port(self):
        assert isinstance(StructlogAdapter(), LoggingPort)

    def test_partial_implementation_is_rejected(self):
        class OnlyGetLogger:
            def get_logger(self, name: str) -> Any:
                return None

        assert not isinstance(OnlyGetLogger(), LoggingPort)


class TestStructlogAdapterConfigure:
    def test_defaults(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        assert adapter.root_level == "INFO"
        assert adapter.properties.format == "console"
        assert adapter.module_levels == {}

    def test_reads_logging_section(self):
        adapter = StructlogAdapter()
        config = Config(
            {
                "mixcrud": {
                    "logging": {
                        "format": "JSON",
                        "level": {"root": "warning", "mixcrud.data.service": "debug"},
                    }
                }
            }
        )
        adapter.configure(config)
        assert adapter.root_level == "WARNING"
        assert adapter.properties.format == "json"
        assert adapter.module_levels == {"mixcrud.data.service": "DEBUG"}
        assert logging.getLogger("mixcrud.data.service").level == logging.DEBUG

    def test_packaged_defaults(self):
        adapter = StructlogAdapter()
        adapter.configure(Config.defaults())
        assert adapter.properties.format == "console"
        assert adapter.properties.stream == "stdout"

    def test_unknown_level_is_rejected(self):
        adapter = StructlogAdapter()
        config = Config({"mixcrud": {"logging": {"level": {"mixcrud.data": "chatty"}}}})
        with pytest.raises(ValueError, match="chatty"):
            adapter.configure(config)
        assert adapter.module_levels == {}


class TestBuildProcessors:
    def test_json_renderer_is_last(self):
        processors = build_processors(LoggingProperties(format="json"))
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_console_renderer_by_default(self):
        processors = build_processors(LoggingProperties())
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_empty_timestamp_format_skips_stamper(self):
        processors = build_processors(LoggingProperties(timestamp_format=""))
        assert not any(isinstance(p, structlog.processors.TimeStamper) for p in processors)


class TestLoggers:
    def test_adapter_logger_has_structured_methods(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        logger = adapter.get_logger("mixcrud.test")
        assert callable(getattr(logger, "info", None))
        assert callable(getattr(logger, "exception", None))

    def test_bound_context_is_attached(self):
        adapter = StructlogAdapter()
        with structlog.testing.capture_logs() as logs:
            adapter.get_logger("mixcrud.test", entity="User").info("entity_restored", id=3)
        assert logs[0]["entity"] == "User"
        assert logs[0]["id"] == 3

    def test_set_level(self):
        adapter = StructlogAdapter()
        adapter.set_level("mixcrud.schema", "ERROR")
        assert logging.getLogger("mixcrud.schema").level == logging.ERROR

    def test_default_factory_emits_structured_events(self):
        with structlog.testing.capture_logs() as logs:
            get_logger("mixcrud.test").info("entity_created", entity="User", id=1)
        assert logs == [{"event": "entity_created", "entity": "User", "id": 1, "log_level": "info"}]
