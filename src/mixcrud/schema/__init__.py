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
"""mixcrud schema — schema bindings, payload validation and response shaping."""

from mixcrud.schema.mapper import RecordMapper
from mixcrud.schema.pipeline import TransformationPipeline, validate_payload
from mixcrud.schema.registry import (
    IDENTITY,
    SchemaBinding,
    SchemaKind,
    SchemaRegistry,
    create_schema,
    default_registry,
    response_schema,
    update_schema,
)

__all__ = [
    "IDENTITY",
    "RecordMapper",
    "SchemaBinding",
    "SchemaKind",
    "SchemaRegistry",
    "TransformationPipeline",
    "create_schema",
    "default_registry",
    "response_schema",
    "update_schema",
    "validate_payload",
]
