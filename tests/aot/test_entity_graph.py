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
"""Tests for entity graph resolution."""

from __future__ import annotations

import pytest

from flyaot.aot.context import RepositoryInformation
from flyaot.aot.entity_graph import AotEntityGraph, EntityGraphLookup, GraphEdge
from flyaot.data.annotations import EntityGraphAnnotation, EntityGraphType
from flyaot.kernel.exceptions import EntityGraphResolutionException
from tests.aot.models import OrderItem, Person, PurchaseOrder
from tests.aot.repositories import (
    BadGraphRepository,
    PersonRepository,
    UnnamedGraphRepository,
    metamodel,
    query_method,
)


def find(repository: type, name: str, annotation: EntityGraphAnnotation | None = None) -> AotEntityGraph | None:
    method = query_method(repository, name)
    if annotation is None:
        annotation = method.annotations.entity_graph
    return EntityGraphLookup(metamodel()).find_entity_graph(
        annotation, RepositoryInformation(repository), method.returned_type, method
    )


class TestEntityGraphLookup:
    def test_no_annotation(self):
        assert find(PersonRepository, "find_by_last_name") is None

    def test_named_graph(self):
        graph = find(PersonRepository, "find_by_active_is_false")
        assert graph is not None
        assert graph.name == "Person.with_orders"
        assert graph.is_fetch
        assert graph.attribute_paths == (
            (GraphEdge(Person, "orders", PurchaseOrder),),
            (GraphEdge(Person, "orders", PurchaseOrder), GraphEdge(PurchaseOrder, "items", OrderItem)),
        )

    def test_attribute_paths(self):
        graph = find(PersonRepository, "find_by_first_name_and_last_name")
        assert graph is not None
        assert graph.type is EntityGraphType.LOAD
        assert not graph.is_fetch
        assert graph.name == "Person.find_by_first_name_and_last_name"
        assert graph.attribute_paths == ((GraphEdge(Person, "orders", PurchaseOrder),),)

    def test_unknown_named_graph_is_absent(self):
        assert find(UnnamedGraphRepository, "find_by_age") is None

    def test_projection_return_ignores_graph(self):
        annotation = EntityGraphAnnotation(attribute_paths=("orders",))
        assert find(PersonRepository, "find_by_last_name_starting_with", annotation) is None

    def test_unknown_relationship(self):
        with pytest.raises(
            EntityGraphResolutionException, match="PurchaseOrder has no relationship 'customer'"
        ) as exc_info:
            find(BadGraphRepository, "find_by_last_name")
        assert exc_info.value.code == "AOT_ENTITY_GRAPH"
        assert exc_info.value.context["repository"] == "tests.aot.repositories.BadGraphRepository"

    def test_column_is_not_a_relationship(self):
        annotation = EntityGraphAnnotation(attribute_paths=("orders.reference",))
        with pytest.raises(EntityGraphResolutionException, match="no relationship 'reference'"):
            find(PersonRepository, "find_by_last_name", annotation)
