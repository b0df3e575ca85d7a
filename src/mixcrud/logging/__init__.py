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
"""mixcrud logging — logging port, structlog adapter and the default logger factory.

Components take their logger as a constructor argument; ``get_logger`` is the
default used when the composition root does not inject one.
"""

from typing import Any

import structlog

from mixcrud.logging.port import LoggingPort
from mixcrud.logging.structlog_adapter import StructlogAdapter


def get_logger(name: str) -> Any:
    """Return the process-wide default structured logger for *name*."""
    return structlog.get_logger(name)


__all__ = ["LoggingPort", "StructlogAdapter", "get_logger"]
