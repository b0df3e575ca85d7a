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
"""Wire model for filter options sent over HTTP.

``GET /`` accepts either a ``filter`` query parameter holding the full
camelCase JSON document, or the shorthand parameters ``limit``, ``offset``,
``search``, ``searchFields`` (comma separated) and ``includeDeleted``.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from mixcrud.data.filter_options import FilterOptions
from mixcrud.kernel.exceptions import ValidationException

_TRUE = {"1", "true", "yes", "on"}

QUERY_PARAMS = frozenset({"filter", "limit", "offset", "search", "searchFields", "includeDeleted"})


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class OrderByRequest(_WireModel):
    field: str
    order: Literal["ASC", "DESC", "asc", "desc"] = "ASC"


class PaginationRequest(_WireModel):
    limit: int | None = Field(None, ge=0)
    offset: int | None = Field(None, ge=0)


class SearchRequest(_WireModel):
    search_fields: list[str] = Field(default_factory=list, alias="searchFields")
    value: Any = None


class DateRequest(_WireModel):
    field: str
    from_: Any = Field(None, alias="from")
    to: Any = None


class IsNullRequest(_WireModel):
    field: str
    is_null: bool = Field(False, alias="isNull")


class HavingRequest(_WireModel):
    condition: str
    value: Any


class GroupByRequest(_WireModel):
    field: str
    having: HavingRequest | None = None


class FilterOptionsRequest(_WireModel):
    """Validated form of the filter options document."""

    filters: dict[str, Any] = Field(default_factory=dict)
    order_by: list[OrderByRequest] = Field(default_factory=list, alias="orderBy")
    select_fields: list[str] = Field(default_factory=list, alias="selectFields")
    pagination: PaginationRequest | None = None
    search: SearchRequest | None = None
    date: DateRequest | None = None
    include_deleted: bool = Field(False, alias="includeDeleted")
    is_null: IsNullRequest | None = Field(None, alias="isNull")
    group_by: GroupByRequest | None = Field(None, alias="groupBy")

    def to_options(self) -> FilterOptions:
        return FilterOptions.from_dict(self.model_dump(by_alias=True, exclude_none=True))

    @classmethod
    def options_from_query(cls, params: Mapping[str, str]) -> FilterOptions | None:
        """Filter options carried by *params*, or ``None`` when it carries none.

        ``None`` lets the controller fall back to its own default options.
        """
        if not any(key in params for key in QUERY_PARAMS):
            return None
        return cls.from_query(params).to_options()

    @classmethod
    def from_query(cls, params: Mapping[str, str]) -> FilterOptionsRequest:
        """Parse query parameters into a request.

        Raises:
            ValidationException: when the document is not valid JSON or
                does not match the wire shape.
        """
        raw = params.get("filter")
        if raw:
            try:
                document = json.loads(raw)
            except json.JSONDecodeError as exc:
                raise ValidationException(
                    "Validation failed: filter: invalid JSON",
                    code="VALIDATION_ERROR",
                    context={"errors": [{"field": "filter", "constraint": f"invalid JSON: {exc.msg}"}]},
                ) from exc
        else:
            document = cls._shorthand(params)

        try:
            return cls.model_validate(document)
        except ValidationError as exc:
            violations = [
                {"field": ".".join(str(loc) for loc in err["loc"]), "constraint": err["msg"]} for err in exc.errors()
            ]
            detail = "; ".join(f"{v['field']}: {v['constraint']}" for v in violations)
            raise ValidationException(
                f"Validation failed: {detail}",
                code="VALIDATION_ERROR",
                context={"errors": violations},
            ) from exc

    @staticmethod
    def _shorthand(params: Mapping[str, str]) -> dict[str, Any]:
        document: dict[str, Any] = {}
        if "limit" in params or "offset" in params:
            document["pagination"] = {"limit": params.get("limit"), "offset": params.get("offset")}
        if params.get("search"):
            fields = [f.strip() for f in params.get("searchFields", "").split(",") if f.strip()]
            document["search"] = {"searchFields": fields, "value": params["search"]}
        if "includeDeleted" in params:
            document["includeDeleted"] = params["includeDeleted"].lower() in _TRUE
        return document
