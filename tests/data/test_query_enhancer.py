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
"""Tests for query enhancers: alias detection, count queries and dynamic sorting."""

from __future__ import annotations

import pytest

from flyaot.data.pageable import Order, Sort
from flyaot.data.query_enhancer import (
    DEFAULT_SELECTOR,
    DeclaredQuery,
    QueryEnhancer,
    RegexQueryEnhancer,
    enhancer_for,
)


def _enhancer(query_string: str, native: bool = True) -> RegexQueryEnhancer:
    return RegexQueryEnhancer(DeclaredQuery(query_string, native=native))


class TestDetectAlias:
    def test_alias(self):
        assert _enhancer("SELECT * FROM people p WHERE p.age > :age").detect_alias() == "p"

    def test_alias_with_as(self):
        assert _enhancer("SELECT x.* FROM people AS x ORDER BY x.age").detect_alias() == "x"

    def test_entity_style_alias(self):
        assert _enhancer("SELECT p FROM Person p", native=False).detect_alias() == "p"

    def test_no_alias_before_where(self):
        assert _enhancer("SELECT * FROM people WHERE age > :age").detect_alias() is None

    def test_no_alias_before_order_by(self):
        assert _enhancer("SELECT * FROM people ORDER BY age").detect_alias() is None

    def test_no_from_clause(self):
        assert _enhancer("VALUES (1)").detect_alias() is None


class TestCreateCountQuery:
    def test_replaces_select_list(self):
        enhancer = _enhancer("SELECT * FROM people WHERE age > :age")
        assert enhancer.create_count_query() == "SELECT COUNT(*) FROM people WHERE age > :age"

    def test_drops_order_by(self):
        enhancer = _enhancer("SELECT * FROM people WHERE age > :age ORDER BY last_name")
        assert enhancer.create_count_query() == "SELECT COUNT(*) FROM people WHERE age > :age"

    def test_distinct_projection(self):
        enhancer = _enhancer("SELECT DISTINCT p.last_name FROM people p")
        assert enhancer.create_count_query() == "SELECT COUNT(DISTINCT p.last_name) FROM people p"

    def test_explicit_count_projection(self):
        enhancer = _enhancer("SELECT p.* FROM people p WHERE p.active = 1")
        assert enhancer.create_count_query("p.id") == "SELECT COUNT(p.id) FROM people p WHERE p.active = 1"

    def test_case_insensitive(self):
        enhancer = _enhancer("select first_name from people where age > 3")
        assert enhancer.create_count_query() == "SELECT COUNT(*) FROM people where age > 3"

    def test_not_a_select_raises(self):
        with pytest.raises(ValueError, match="Cannot derive a count query"):
            _enhancer("UPDATE people SET active = 0").create_count_query()


class TestApplySorting:
    def test_appends_order_by_with_alias(self):
        enhancer = _enhancer("SELECT * FROM people p WHERE p.age > :age")
        assert enhancer.apply_sorting(Sort.by("last_name")) == (
            "SELECT * FROM people p WHERE p.age > :age ORDER BY p.last_name ASC"
        )

    def test_appends_order_by_without_alias(self):
        enhancer = _enhancer("SELECT * FROM people")
        sort = Sort(orders=(Order.desc("age"), Order.asc("last_name")))
        assert enhancer.apply_sorting(sort) == "SELECT * FROM people ORDER BY age DESC, last_name ASC"

    def test_extends_existing_order_by(self):
        enhancer = _enhancer("SELECT * FROM people ORDER BY last_name")
        assert enhancer.apply_sorting(Sort.by("first_name")) == (
            "SELECT * FROM people ORDER BY last_name, first_name ASC"
        )

    def test_extends_order_by_before_limit(self):
        enhancer = _enhancer("SELECT * FROM people ORDER BY last_name LIMIT 5")
        assert enhancer.apply_sorting(Sort.by("first_name")) == (
            "SELECT * FROM people ORDER BY last_name, first_name ASC LIMIT 5"
        )

    def test_qualified_property_keeps_its_prefix(self):
        enhancer = _enhancer("SELECT * FROM people p")
        assert enhancer.apply_sorting(Sort.by("o.reference")) == "SELECT * FROM people p ORDER BY o.reference ASC"

    def test_rejects_expression_as_property(self):
        enhancer = _enhancer("SELECT * FROM people p")
        with pytest.raises(ValueError, match="Invalid sort property"):
            enhancer.apply_sorting(Sort.by("id; DELETE FROM people; --"))

    def test_unsorted_returns_query(self):
        enhancer = _enhancer("SELECT * FROM people;")
        assert enhancer.apply_sorting(Sort.unsorted()) == "SELECT * FROM people"


class TestSelector:
    def test_default_selector_uses_regex_enhancer(self):
        query = DeclaredQuery("SELECT * FROM people", native=True)
        enhancer = enhancer_for(DEFAULT_SELECTOR, query)
        assert isinstance(enhancer, RegexQueryEnhancer)
        assert isinstance(enhancer, QueryEnhancer)
        assert enhancer.query is query

    def test_custom_selector(self):
        class UpperCaseEnhancer(RegexQueryEnhancer):
            def apply_sorting(self, sort: Sort) -> str:
                return super().apply_sorting(sort).upper()

        class Selector:
            def select(self, query):
                return UpperCaseEnhancer

        enhancer = enhancer_for(Selector(), DeclaredQuery("select * from people"))
        assert enhancer.apply_sorting(Sort.by("age")) == "SELECT * FROM PEOPLE ORDER BY AGE ASC"
