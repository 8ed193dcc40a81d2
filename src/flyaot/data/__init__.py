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
"""flyaot Data — declarative repository interfaces and their value types.

Repository interfaces subclass :class:`Repository` and declare query method
stubs. Decorators from :mod:`flyaot.data.annotations` attach declared
queries and hints; the AOT contributor turns the stubs into generated code.
"""

from flyaot.data.annotations import (
    EntityGraphType,
    QueryHint,
    QueryRewriter,
    entity_graph,
    modifying,
    native_query,
    procedure,
    query,
    query_hints,
)
from flyaot.data.entity import Base, named_entity_graph, named_query
from flyaot.data.page import Page, Slice, Window
from flyaot.data.pageable import Limit, Order, Pageable, ScrollPosition, Sort
from flyaot.data.projection import projection
from flyaot.data.query_enhancer import DEFAULT_SELECTOR, DeclaredQuery, QueryEnhancer, QueryEnhancerSelector
from flyaot.data.query_parser import QueryMethodParser
from flyaot.data.repository import Repository

__all__ = [
    "DEFAULT_SELECTOR",
    "Base",
    "DeclaredQuery",
    "EntityGraphType",
    "Limit",
    "Order",
    "Page",
    "Pageable",
    "QueryEnhancer",
    "QueryEnhancerSelector",
    "QueryHint",
    "QueryMethodParser",
    "QueryRewriter",
    "Repository",
    "ScrollPosition",
    "Slice",
    "Sort",
    "Window",
    "entity_graph",
    "modifying",
    "named_entity_graph",
    "named_query",
    "native_query",
    "procedure",
    "projection",
    "query",
    "query_hints",
]
