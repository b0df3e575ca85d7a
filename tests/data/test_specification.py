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
"""Tests for Specification combinators, FilterOperator and column resolution."""

from sqlalchemy import select
from sqlalchemy.sql.elements import ColumnClause

from mixcrud.data.specification import FilterOperator, Specification, resolve_column
from tests.models import Profile, User


def _sql(spec: Specification) -> str:
    return str(spec.to_predicate(User, select(User)))


class TestResolveColumn:
    def test_plain_name_addresses_root(self):
        assert resolve_column(User, "username") is User.username

    def test_root_alias_prefix(self):
        assert resolve_column(User, "entity.username") is User.username

    def test_custom_root_alias(self):
        assert resolve_column(User, "u.email", root_alias="u") is User.email

    def test_relation_field(self):
        assert resolve_column(User, "profile.bio") is Profile.bio

    def test_unknown_name_becomes_literal_column(self):
        column = resolve_column(User, "nope")
        assert isinstance(column, ColumnClause)
        assert column.name == "nope"


class TestFilterOperator:
    ops = FilterOperator()

    def test_eq(self):
        assert "users.status = :status_1" in _sql(self.ops.eq("status", "active"))

    def test_neq(self):
        assert "users.status != :status_1" in _sql(self.ops.neq("status", "active"))

    def test_contains_binds_wrapped_value(self):
        stmt = self.ops.contains("username", "ali").to_predicate(User, select(User))
        assert "users.username LIKE :username_1" in str(stmt)
        assert "%ali%" in stmt.compile().params.values()

    def test_in_list(self):
        assert "users.status IN" in _sql(self.ops.in_list("status", ["a", "b"]))

    def test_null_checks(self):
        assert "users.email IS NULL" in _sql(self.ops.is_null("email"))
        assert "users.email IS NOT NULL" in _sql(self.ops.is_not_null("email"))

    def test_between(self):
        assert "users.id BETWEEN :id_1 AND :id_2" in _sql(self.ops.between("id", 1, 5))

    def test_relation_predicate(self):
        assert "profiles.bio = :bio_1" in _sql(self.ops.eq("profile.bio", "hi"))


class TestCombinators:
    ops = FilterOperator()

    def test_and(self):
        sql = _sql(self.ops.eq("status", "active") & self.ops.eq("username", "alice"))
        assert "users.status = :status_1 AND users.username = :username_1" in sql

    def test_or_groups_only_its_operands(self):
        spec = self.ops.eq("status", "active") & (self.ops.eq("username", "a") | self.ops.eq("email", "b"))
        sql = _sql(spec)
        assert "users.status = :status_1 AND (users.username = :username_1 OR users.email = :email_1)" in sql

    def test_not(self):
        sql = _sql(~self.ops.contains("username", "bot"))
        assert "users.username NOT LIKE :username_1" in sql

    def test_all_of_empty_is_noop(self):
        assert "WHERE" not in _sql(Specification.all_of([]))

    def test_any_of_empty_is_noop(self):
        assert "WHERE" not in _sql(Specification.any_of([]))

    def test_any_of(self):
        sql = _sql(Specification.any_of([self.ops.eq("username", "a"), self.ops.eq("email", "b")]))
        assert "users.username = :username_1 OR users.email = :email_1" in sql

    def test_clause_of_noop_is_none(self):
        assert Specification.noop().clause(User) is None
