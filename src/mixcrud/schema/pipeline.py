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
"""Inbound validation and outbound shaping around the CRUD service."""

from __future__ import annotations

from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, ValidationError, create_model

from mixcrud.kernel.exceptions import ConfigurationMissingException, ValidationException
from mixcrud.logging import get_logger
from mixcrud.schema.mapper import RecordMapper
from mixcrud.schema.registry import SchemaBinding, SchemaKind, SchemaRegistry, default_registry


def _allowed_keys(schema: type[BaseModel]) -> set[str]:
    allowed: set[str] = set()
    for name, info in schema.model_fields.items():
        allowed.add(name)
        if info.alias:
            allowed.add(info.alias)
        if isinstance(info.validation_alias, str):
            allowed.add(info.validation_alias)
    return allowed


@lru_cache(maxsize=256)
def _narrowed(schema: type[BaseModel], unloaded: frozenset[str]) -> type[BaseModel]:
    """*schema* with the *unloaded* required fields made optional.

    Records read with a narrowed ``select_fields`` projection lack those
    fields; they are left out of the response instead of failing it.
    """
    overrides: dict[str, Any] = {
        name: (schema.model_fields[name].annotation | None, None) for name in sorted(unloaded)
    }
    return create_model(schema.__name__, __base__=schema, **overrides)

def validate_payload(schema: type[BaseModel], payload: Any, *, partial: bool = False) -> dict[str, Any]:
    """Validate *payload* against *schema* with whitelist enforcement.

    Keys the schema does not declare are violations, never dropped.  All
    violations are reported together.

    Raises:
        ValidationException: with ``context["errors"]`` as ``{"field", "constraint"}`` items.
    """
    if not isinstance(payload, Mapping):
        violations = [{"field": "", "constraint": "payload must be an object"}]
        raise ValidationException(
            "Validation failed: payload must be an object",
            code="VALIDATION_ERROR",
            context={"errors": violations},
        )

    allowed = _allowed_keys(schema)
    violations: list[dict[str, Any]] = [
        {"field": str(key), "constraint": f"property {key} should not exist"} for key in payload if key not in allowed
    ]

    model: BaseModel | None = None
    try:
        model = schema.model_validate({k: v for k, v in payload.items() if k in allowed})
    except ValidationError as exc:
        violations.extend(
            {"field": ".".join(str(loc) for loc in err["loc"]), "constraint": err["msg"]} for err in exc.errors()
        )

    if violations or model is None:
        detail = "; ".join(f"{v['field']}: {v['constraint']}" for v in violations)
        raise ValidationException(
            f"Validation failed: {detail}",
            code="VALIDATION_ERROR",
            context={"errors": violations},
        )
    return model.model_dump(exclude_unset=partial)


class TransformationPipeline:
    """Validates request payloads and shapes responses using registered schemas.

    Usage::

        pipeline = TransformationPipeline(registry)
        payload = pipeline.validate_for(UserController, SchemaKind.CREATE, body, method="create")
        user = await service.create(payload)
        return pipeline.respond(UserController, user, method="create")
    """

    def __init__(
        self,
        registry: SchemaRegistry | None = None,
        mapper: RecordMapper | None = None,
        logger: Any = None,
    ) -> None:
        self._registry = registry or default_registry
        self._mapper = mapper or RecordMapper()
        self._logger = logger or get_logger(__name__)

    @property
    def registry(self) -> SchemaRegistry:
        return self._registry

    def validate(self, schema: type[BaseModel], payload: Any, *, partial: bool = False) -> dict[str, Any]:
        try:
            return validate_payload(schema, payload, partial=partial)
        except ValidationException as exc:
            self._logger.info("payload_rejected", schema=schema.__name__, errors=exc.errors)
            raise

    def validate_for(
        self,
        owner: Any,
        kind: SchemaKind | str,
        payload: Any,
        method: str | None = None,
        *,
        partial: bool = False,
    ) -> dict[str, Any]:
        """Resolve the create/update schema for *owner* and validate *payload* with it."""
        binding = self._registry.resolve(owner, kind, method)
        if binding.schema is None:
            name = owner.__name__ if isinstance(owner, type) else type(owner).__name__
            raise ConfigurationMissingException(
                f"No input schema bound for {SchemaKind(kind).value} on {name}",
                code="SCHEMA_MISSING",
                context={"owner": name, "kind": SchemaKind(kind).value, "method": method},
            )
        return self.validate(binding.schema, payload, partial=partial)

    def respond(self, owner: Any, records: Any, method: str | None = None) -> Any:
        """Resolve the response binding for *owner* and shape *records* with it."""
        return self.to_response(records, self._registry.resolve(owner, SchemaKind.RESPONSE, method))

    def to_response(self, records: Any, binding: SchemaBinding) -> Any:
        """Project one record or a sequence of records, then apply the transform.

        Only fields the schema declares survive projection.  The transform,
        when bound, receives the projected single object or list.
        """
        if binding.is_identity:
            return records

        projected = records
        if binding.schema is not None:
            if isinstance(records, (list, tuple)):
                projected = [self._project(binding.schema, record) for record in records]
            else:
                projected = self._project(binding.schema, records)

        if binding.transform is not None:
            return binding.transform(projected)
        return projected

    def _project(self, schema: type[BaseModel], record: Any) -> dict[str, Any] | None:
        if record is None:
            return None
        fields = schema.model_fields
        data = self._mapper.extract(record, extra=fields.keys()) or {}
        declared = {k: v for k, v in data.items() if k in fields}
        unloaded = frozenset(name for name, info in fields.items() if name not in declared and info.is_required())
        if not unloaded:
            return schema.model_validate(declared).model_dump(mode="json")
        return _narrowed(schema, unloaded).model_validate(declared).model_dump(mode="json", exclude=set(unloaded))
