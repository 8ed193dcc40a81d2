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
"""Tests for the flyaot exception hierarchy."""

import pytest

from flyaot.kernel.exceptions import (
    ConfigurationException,
    EntityGraphResolutionException,
    FlyAotException,
    QueryCreationException,
    RepositoryDefinitionException,
    ResolutionException,
)


class TestFlyAotException:
    def test_basic_creation(self):
        exc = FlyAotException("something went wrong")
        assert str(exc) == "something went wrong"
        assert exc.code is None
        assert exc.context == {}

    def test_with_error_code(self):
        exc = FlyAotException("bad selector", code="AOT_CONFIG")
        assert exc.code == "AOT_CONFIG"

    def test_with_context(self):
        exc = FlyAotException("not found", context={"repository": "PersonRepository"})
        assert exc.context["repository"] == "PersonRepository"

    def test_context_defaults_to_empty_dict(self):
        exc = FlyAotException("test")
        exc.context["key"] = "value"
        assert FlyAotException("test2").context == {}


class TestExceptionHierarchy:
    @pytest.mark.parametrize(
        "exc_type",
        [RepositoryDefinitionException, ConfigurationException, ResolutionException],
    )
    def test_categories_are_flyaot(self, exc_type):
        assert issubclass(exc_type, FlyAotException)

    @pytest.mark.parametrize("exc_type", [QueryCreationException, EntityGraphResolutionException])
    def test_resolution_subtypes(self, exc_type):
        assert issubclass(exc_type, ResolutionException)


class TestRepositoryDefinitionException:
    def test_message_and_context(self):
        exc = RepositoryDefinitionException("PersonRepository", "no domain type")
        assert str(exc) == "Invalid repository definition 'PersonRepository': no domain type"
        assert exc.code == "AOT_REPOSITORY_DEFINITION"
        assert exc.context == {"repository": "PersonRepository"}
        assert exc.reason == "no domain type"


class TestResolutionExceptions:
    def test_query_creation_message(self):
        exc = QueryCreationException("find_by_nickname(nickname: str) -> list[Person]", "PersonRepository", "boom")
        assert str(exc) == (
            "Failed to create query for method 'find_by_nickname(nickname: str) -> list[Person]' "
            "declared on 'PersonRepository': boom"
        )
        assert exc.code == "AOT_QUERY_CREATION"
        assert exc.context == {
            "method": "find_by_nickname(nickname: str) -> list[Person]",
            "repository": "PersonRepository",
        }

    def test_entity_graph_message(self):
        exc = EntityGraphResolutionException("find_by_email(email: str) -> Person", "PersonRepository", "bad path")
        assert str(exc).startswith("Failed to resolve entity graph for method 'find_by_email(email: str) -> Person'")
        assert exc.code == "AOT_ENTITY_GRAPH"
        assert exc.method == "find_by_email(email: str) -> Person"
        assert exc.repository == "PersonRepository"

    def test_generic_resolution(self):
        exc = ResolutionException("m()", "Repo", "why")
        assert exc.code == "AOT_RESOLUTION"
        assert "Failed to resolve for method 'm()'" in str(exc)

    def test_catchable_as_base(self):
        with pytest.raises(FlyAotException):
            raise QueryCreationException("m()", "Repo", "why")
