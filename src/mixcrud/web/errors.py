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
"""Exception handler rendering CRUD errors as structured JSON responses."""

from __future__ import annotations

from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse

from mixcrud.kernel.exceptions import (
    BusinessException,
    ConfigurationException,
    CrudException,
    InfrastructureException,
    InvalidRequestException,
    ResourceNotFoundException,
    ValidationException,
)

# Exception -> HTTP status code mapping (most specific first)
_STATUS_MAP: dict[type, int] = {
    ResourceNotFoundException: 404,
    ValidationException: 400,
    InvalidRequestException: 400,
    BusinessException: 400,
    ConfigurationException: 500,
    InfrastructureException: 500,
}


def status_for(exc: Exception) -> int:
    """Map exception type to HTTP status code."""
    for exc_type, status in _STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return status
    return 500


async def crud_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render *exc* as ``{"error": {...}}``.

    Server-side failures keep their code but never expose context, so
    nothing about the store leaks to the caller.
    """
    status = status_for(exc)
    if isinstance(exc, CrudException):
        body: dict[str, Any] = {
            "error": {
                "message": str(exc),
                "code": exc.code or type(exc).__name__,
                "status": status,
                "path": request.url.path,
            }
        }
        if exc.context and status < 500:
            body["error"]["context"] = exc.context
    else:
        body = {
            "error": {
                "message": "Internal server error",
                "code": "INTERNAL_ERROR",
                "status": status,
                "path": request.url.path,
            }
        }
    return JSONResponse(body, status_code=status)
