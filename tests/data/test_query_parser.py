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
"""Tests for the derived query method parser."""

from __future__ import annotations

import pytest

from flyaot.data.query_parser import (
    FieldPredicate,
    OrderClause,
    ParsedQuery,
    QueryMethodParser,
)


@pytest.fixture
def parser():
    return QueryMethodParser()


class TestParserSubjects:
    """Test parsing of the subject keyword before ``_by_``."""

    def test_find_by_email(self, parser: QueryMethodParser):
        result = parser.parse("find_by_email")
        assert result.subject == "find"
        assert result.prefix == "find_by"
        assert len(result.predicates) == 1
        assert result.predicates[0].field_name == "email"
        assert result.predicates[0].operator == "eq"
        assert result.connectors == []

    @pytest.mark.parametrize("keyword", ["read", "get", "query"])
    def test_select_aliases(self, parser: QueryMethodParser, keyword: str):
        """read / get / query are synonyms of find."""
        result = parser.parse(f"{keyword}_by_email")
        assert result.subject == "find"

    def test_count_by_active(self, parser: QueryMethodParser):
        result = parser.parse("count_by_active")
        assert result.subject == "count"
        assert result.predicates == [FieldPredicate(field_name="active")]

    def test_exists_by_email(self, parser: QueryMethodParser):
        result = parser.parse("exists_by_email")
        assert result.subject == "exists"
        assert result.predicates[0].field_name == "email"

    def test_delete_and_remove(self, parser: QueryMethodParser):
        assert parser.parse("delete_by_last_name").subject == "delete"
        assert parser.parse("remove_by_last_name").subject == "delete"

    def test_distinct(self, parser: QueryMethodParser):
        result = parser.parse("find_distinct_by_last_name")
        assert result.distinct is True
        assert result.predicates[0].field_name == "last_name"

    def test_first_limits_to_one(self, parser: QueryMethodParser):
        result = parser.parse("find_first_by_last_name")
        assert result.limit == 1

    def test_top_n(self, parser: QueryMethodParser):
        result = parser.parse("find_top_3_by_active")
        assert result.limit == 3
        assert result.predicates[0].field_name == "active"

    def test_top_without_number(self, parser: QueryMethodParser):
        assert parser.parse("find_top_by_age").limit == 1

    def test_distinct_and_top(self, parser: QueryMethodParser):
        result = parser.parse("find_distinct_top_2_by_last_name")
        assert result.distinct is True
        assert result.limit == 2

    def test_no_limit_by_default(self, parser: QueryMethodParser):
        result = parser.parse("find_by_email")
        assert result.limit is None
        assert result.distinct is False

    def test_invalid_subject_raises(self, parser: QueryMethodParser):
        with pytest.raises(ValueError, match="subject one of"):
            parser.parse("fetch_by_name")

    def test_missing_by_raises(self, parser: QueryMethodParser):
        with pytest.raises(ValueError):
            parser.parse("find_all")


class TestParserConnectors:
    """Test parsing of AND/OR connectors."""

    def test_find_by_status_and_role(self, parser: QueryMethodParser):
        result = parser.parse("find_by_status_and_role")
        assert [p.field_name for p in result.predicates] == ["status", "role"]
        assert all(p.operator == "eq" for p in result.predicates)
        assert result.connectors == ["and"]

    def test_find_by_status_or_role(self, parser: QueryMethodParser):
        result = parser.parse("find_by_status_or_role")
        assert [p.field_name for p in result.predicates] == ["status", "role"]
        assert result.connectors == ["or"]

    def test_mixed_connectors(self, parser: QueryMethodParser):
        result = parser.parse("find_by_first_name_and_last_name_or_email")
        assert [p.field_name for p in result.predicates] == ["first_name", "last_name", "email"]
        assert result.connectors == ["and", "or"]


class TestParserOperators:
    """Test parsing of comparison operators."""

    @pytest.mark.parametrize(
        ("method_name", "field_name", "operator"),
        [
            ("find_by_age_greater_than", "age", "gt"),
            ("find_by_age_greater_than_equal", "age", "gte"),
            ("find_by_age_less_than", "age", "lt"),
            ("find_by_age_less_than_equal", "age", "lte"),
            ("find_by_age_between", "age", "between"),
            ("find_by_name_like", "name", "like"),
            ("find_by_name_not_like", "name", "not_like"),
            ("find_by_name_starting_with", "name", "starting_with"),
            ("find_by_name_ending_with", "name", "ending_with"),
            ("find_by_name_containing", "name", "containing"),
            ("find_by_role_in", "role", "in"),
            ("find_by_role_not_in", "role", "not_in"),
            ("find_by_email_is_null", "email", "is_null"),
            ("find_by_email_is_not_null", "email", "is_not_null"),
            ("find_by_active_is_true", "active", "is_true"),
            ("find_by_active_is_false", "active", "is_false"),
            ("find_by_status_not", "status", "not"),
        ],
    )
    def test_operator_suffix(self, parser: QueryMethodParser, method_name: str, field_name: str, operator: str):
        result = parser.parse(method_name)
        assert len(result.predicates) == 1
        assert result.predicates[0].field_name == field_name
        assert result.predicates[0].operator == operator

    def test_operator_with_and_connector(self, parser: QueryMethodParser):
        result = parser.parse("find_by_age_greater_than_and_status")
        assert result.predicates == [
            FieldPredicate(field_name="age", operator="gt"),
            FieldPredicate(field_name="status", operator="eq"),
        ]
        assert result.connectors == ["and"]

    def test_argument_counts(self, parser: QueryMethodParser):
        result = parser.parse("find_by_age_between_and_email_is_null_and_last_name")
        assert [p.argument_count for p in result.predicates] == [2, 0, 1]
        assert result.argument_count == 3


class TestParserOrderBy:
    """Test parsing of order by clauses."""

    def test_order_by_desc(self, parser: QueryMethodParser):
        result = parser.parse("find_by_name_order_by_created_at_desc")
        assert result.predicates[0].field_name == "name"
        assert result.order_clauses == [OrderClause(field_name="created_at", direction="desc")]

    def test_order_by_multiple_fields(self, parser: QueryMethodParser):
        result = parser.parse("find_by_status_order_by_name_asc_price_desc")
        assert result.order_clauses == [
            OrderClause(field_name="name", direction="asc"),
            OrderClause(field_name="price", direction="desc"),
        ]

    def test_order_by_default_asc(self, parser: QueryMethodParser):
        result = parser.parse("find_by_status_order_by_name")
        assert result.order_clauses == [OrderClause(field_name="name", direction="asc")]

    def test_order_without_predicates(self, parser: QueryMethodParser):
        result = parser.parse("find_by_order_by_last_name_desc")
        assert result.predicates == []
        assert result.order_clauses == [OrderClause(field_name="last_name", direction="desc")]


class TestIsDerivable:
    def test_grammar_names(self, parser: QueryMethodParser):
        assert parser.is_derivable("find_by_email")
        assert parser.is_derivable("count_distinct_by_last_name")
        assert parser.is_derivable("exists_by_email")

    def test_other_names(self, parser: QueryMethodParser):
        assert not parser.is_derivable("describe")
        assert not parser.is_derivable("legacy_cleanup")
        assert not parser.is_derivable("find_all")

    def test_parsed_query_defaults(self):
        parsed = ParsedQuery(subject="count")
        assert parsed.prefix == "count_by"
        assert parsed.argument_count == 0
