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
"""Tests for generated method bodies."""

from __future__ import annotations

import ast

import pytest

from flyaot.aot.code_blocks import CodeBlock, render_method_source
from flyaot.aot.contribution import Generated
from flyaot.data import Page, Repository
from flyaot.kernel.exceptions import QueryCreationException
from tests.aot.models import Person
from tests.aot.repositories import PersonRepository, contributor


def generated(name: str) -> Generated:
    outcome = contributor().contribute_query_method(getattr(PersonRepository, name))
    assert isinstance(outcome, Generated), outcome
    return outcome


def body(name: str) -> tuple[str, ...]:
    return generated(name).body.lines


class TestCodeBlock:
    def test_concatenation_merges_imports(self):
        first = CodeBlock(lines=("a = 1",), imports=frozenset({("sqlalchemy", "text")}))
        second = CodeBlock(lines=("return a",), imports=frozenset({("sqlalchemy", "select")}))
        combined = first + second
        assert combined.lines == ("a = 1", "return a")
        assert combined.import_lines() == ["from sqlalchemy import select, text"]

    def test_empty(self):
        assert CodeBlock().is_empty
        assert not CodeBlock(lines=("pass",)).is_empty

    def test_render_indents_every_line(self):
        block = CodeBlock(lines=("for x in y:", "    pass"))
        assert block.render(indent=4) == "    for x in y:\n        pass"

    def test_import_lines_sorted_by_module(self):
        block = CodeBlock(imports=frozenset({("types", "SimpleNamespace"), ("sqlalchemy", "text")}))
        assert block.import_lines() == ["from sqlalchemy import text", "from types import SimpleNamespace"]


class TestQueryConstruction:
    def test_derived_collection_body(self):
        outcome = generated("find_by_last_name")
        assert outcome.body.lines == (
            "query_string = 'SELECT * FROM people WHERE last_name = :last_name'",
            "statement = text(query_string)",
            "query = select(Person).from_statement(statement)",
            "parameters = {'last_name': last_name}",
            "result = await self._session.execute(query, parameters)",
            "return list(result.scalars().all())",
        )
        assert outcome.body.import_lines() == [
            "from sqlalchemy import select, text",
            "from tests.aot.models import Person",
        ]

    def test_page_query_builds_count_statement(self):
        lines = body("find_by_age_between")
        assert "query_string = self._apply_sorting(query_string, pageable.sort, native=True)" in lines
        assert "query_string = self._apply_pagination(query_string, pageable)" in lines
        assert "count_query_string = 'SELECT COUNT(*) FROM people WHERE age BETWEEN :low AND :high'" in lines
        assert "count_query = text(count_query_string)" in lines
        assert "count_parameters = {'low': low, 'high': high}" in lines
        assert lines[-1] == "return await self._get_page(items, pageable, count_query, count_parameters)"

    def test_slice_fetches_one_extra_row(self):
        lines = body("find_by_active_is_true")
        assert "query_string = self._apply_pagination(query_string, pageable, extra=1)" in lines
        assert lines[-1] == "return self._get_slice(items, pageable)"
        assert not any(line.startswith("count_query") for line in lines)

    def test_static_limit_sort_and_hints(self):
        lines = body("find_top_3_by_age_less_than_order_by_last_name_desc")
        assert "query_string = self._apply_sorting(query_string, sort, native=True)" in lines
        assert "query_string = self._apply_limit(query_string, 3)" in lines
        assert "query = query.execution_options(**{'timeout': 5})" in lines

    def test_limit_parameter_and_tuple_result(self):
        lines = body("find_by_last_name_order_by_first_name_desc")
        assert "query_string = self._apply_limit(query_string, limit)" in lines
        assert lines[-1] == "return tuple(result.scalars().all())"

    def test_expanding_parameter(self):
        lines = body("find_by_id_in")
        assert "statement = text(query_string).bindparams(bindparam('ids', expanding=True))" in lines
        assert ("sqlalchemy", "bindparam") in generated("find_by_id_in").body.imports

    def test_like_parameter_value(self):
        assert "parameters = {'fragment': f\"%{fragment}%\"}" in body("search_email")

    def test_rewriter_applies_to_result_and_count(self):
        outcome = generated("find_adults")
        lines = outcome.body.lines
        assert "query_string = self._apply_sorting(query_string, pageable.sort)" in lines
        assert "query_string = self._rewrite_query(query_string, ActiveOnlyRewriter, pageable.sort)" in lines
        assert (
            "count_query_string = self._rewrite_query(count_query_string, ActiveOnlyRewriter, Sort.unsorted())"
            in lines
        )
        assert lines.index("query_string = self._rewrite_query(query_string, ActiveOnlyRewriter, pageable.sort)") < (
            lines.index("query_string = self._apply_pagination(query_string, pageable)")
        )
        assert ("flyaot.data.pageable", "Sort") in outcome.body.imports
        assert ("tests.aot.models", "ActiveOnlyRewriter") in outcome.body.imports

    def test_fetch_graph_loader_options(self):
        lines = body("find_by_active_is_false")
        assert (
            "query = query.options(selectinload(Person.orders), "
            "selectinload(Person.orders).selectinload(PurchaseOrder.items), raiseload('*'))"
        ) in lines

    def test_load_graph_keeps_default_loading(self):
        assert "query = query.options(selectinload(Person.orders))" in body("find_by_first_name_and_last_name")

    def test_page_without_pageable_rejected(self):
        class Unpaged(Repository[Person, int]):
            async def find_by_age(self, age: int) -> Page[Person]: ...

        with pytest.raises(QueryCreationException, match="require a Pageable parameter"):
            contributor(Unpaged).contribute_query_method(Unpaged.find_by_age)


class TestQueryExecution:
    def test_modifying_returns_row_count(self):
        lines = body("deactivate_older_than")
        assert "query = statement" in lines
        assert lines[-2:] == ("self._session.expunge_all()", "return result.rowcount")

    def test_modifying_flushes_first(self):
        lines = body("activate_all")
        assert lines[-2:] == (
            "await self._session.flush()",
            "result = await self._session.execute(query, parameters)",
        )

    def test_derived_delete_removes_each_entity(self):
        lines = body("delete_by_last_name")
        assert lines[-4:] == (
            "entities = list(result.scalars().all())",
            "for entity in entities:",
            "    await self._session.delete(entity)",
            "return len(entities)",
        )

    def test_count_and_exists(self):
        assert body("count_by_last_name")[-1] == "return result.scalar_one()"
        assert body("exists_by_email")[-1] == "return result.scalar_one() > 0"
        assert "query = statement" in body("exists_by_email")

    def test_interface_projection_rows(self):
        outcome = generated("find_by_last_name_starting_with")
        assert outcome.body.lines[-1] == "return [SimpleNamespace(**row._asdict()) for row in result]"
        assert ("types", "SimpleNamespace") in outcome.body.imports

    def test_dto_projection_single_row(self):
        lines = body("find_first_by_email")
        assert "query_string = self._apply_limit(query_string, 1)" in lines
        assert lines[-2:] == ("row = result.first()", "return None if row is None else PersonName(**row._asdict())")

    def test_named_single_entity(self):
        assert body("find_by_email_named")[-1] == "return result.scalar_one_or_none()"


class TestMethodSource:
    def test_every_generated_method_is_valid_python(self):
        contribution = contributor().contribute()
        assert contribution.generated
        for outcome in contribution.generated:
            source = render_method_source(outcome.method, outcome.body)
            tree = ast.parse(source)
            function = tree.body[0]
            assert isinstance(function, ast.AsyncFunctionDef)
            assert function.name == outcome.method.name

    def test_signature_is_kept(self):
        outcome = generated("find_by_last_name")
        source = render_method_source(outcome.method, outcome.body)
        assert source.splitlines()[0] == "async def find_by_last_name(self, last_name: 'str') -> 'list[Person]':"
        assert source.splitlines()[1] == "    query_string = 'SELECT * FROM people WHERE last_name = :last_name'"
