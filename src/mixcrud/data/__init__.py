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
"""mixcrud data — filter options, query composition and the CRUD service.

Everything here runs on the SQLAlchemy 2.0 async ORM.  Entities extend
:class:`CrudEntity` (or :class:`Base` plus :class:`SoftDeleteMixin`) and
declare their name and eagerly joined relations with :func:`crud_entity`.
"""

from mixcrud.data.entity import Base, CrudEntity, EntityMetadata, SoftDeleteMixin, crud_entity, metadata_of
from mixcrud.data.filter_options import (
    DateRange,
    FilterOptions,
    GroupBy,
    Having,
    NullCheck,
    OrderBy,
    Pagination,
    SearchOptions,
)
from mixcrud.data.filter_options_builder import FilterOptionsBuilder
from mixcrud.data.query_builder import QueryBuilder
from mixcrud.data.service import CrudService
from mixcrud.data.soft_delete import INCLUDE_DELETED, SoftDeleteCriteria
from mixcrud.data.specification import FilterOperator, Specification, collection_of, resolve_column

__all__ = [
    # Filter options
    "DateRange",
    "FilterOptions",
    "FilterOptionsBuilder",
    "GroupBy",
    "Having",
    "NullCheck",
    "OrderBy",
    "Pagination",
    "SearchOptions",
    # Entities
    "Base",
    "CrudEntity",
    "EntityMetadata",
    "SoftDeleteMixin",
    "crud_entity",
    "metadata_of",
    # Queries
    "FilterOperator",
    "INCLUDE_DELETED",
    "QueryBuilder",
    "SoftDeleteCriteria",
    "Specification",
    "collection_of",
    "resolve_column",
    # Service
    "CrudService",
]
