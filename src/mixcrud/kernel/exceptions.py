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
"""Unified exception hierarchy for mixcrud.

All errors raised by the CRUD layer inherit from CrudException, so callers
can catch one type or target a specific kind.

Categories:
- BusinessException: caller-actionable failures (not found, invalid payload)
- ConfigurationException: programmer errors detected at registration or call time
- InfrastructureException: store and transformation failures
"""

from __future__ import annotations

from typing import Any


# =============================================================================
# Base Exception
# =============================================================================


class CrudException(Exception):
    """Base exception for all mixcrud errors.

    Carries an optional error code and context dict for structured error data.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "NOT_FOUND").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Business Exceptions
# =============================================================================


class BusinessException(CrudException):
    """Recoverable errors the caller can act on."""


class ResourceNotFoundException(BusinessException):
    """Requested record does not exist."""

    @classmethod
    def for_entity(cls, entity_name: str, id: Any) -> ResourceNotFoundException:
        """Build the standard not-found error for ``entity_name`` / ``id``."""
        return cls(
            f"Entity {entity_name} with id {id} not found",
            code="NOT_FOUND",
            context={"entity": entity_name, "id": str(id)},
        )


class ValidationException(BusinessException):
    """Inbound payload failed schema validation.

    ``context["errors"]`` lists every violation as ``{"field", "constraint"}``.
    """

    @property
    def errors(self) -> list[dict[str, Any]]:
        return list(self.context.get("errors", []))


class InvalidRequestException(BusinessException):
    """Request is well-formed but cannot be applied to this entity."""


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationException(CrudException):
    """Invalid wiring detected at registration or call time."""


class ConfigurationMissingException(ConfigurationException):
    """A required schema binding or entity metadata was never registered."""


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(CrudException):
    """Failures of the store or the transformation layer."""


class UnexpectedFailureException(InfrastructureException):
    """Any other failure; the original error is chained, never exposed."""

    def __init__(
        self,
        message: str = "Unexpected error occurred",
        code: str | None = "UNEXPECTED_FAILURE",
        context: dict | None = None,
    ) -> None:
        super().__init__(message, code=code, context=context)
