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
"""Code blocks for generated repository method bodies.

A generated body is two fragments rendered from Jinja2 templates:

* **query construction** (:class:`QueryBlockBuilder`): the query text, dynamic
  sorting, rewriting, pagination, the SQLAlchemy statement with expanding
  parameters, entity graph loader options, execution hints and the bound
  parameter values; plus the count statement for page queries.
* **query execution** (:class:`QueryExecutionBlockBuilder`): running the
  statement on ``self._session`` and mapping the result to the declared
  return type, or returning the update count of a modifying query.

Generated code runs inside a subclass of
:class:`~flyaot.aot.support.AotRepositoryFragmentSupport`.
"""

from __future__ import annotations

import inspect
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from flyaot.aot.queries import AotQueries, AotQuery
from flyaot.aot.queries_factory import QueryReturnType
from flyaot.aot.query_method import QueryMethod, RepositoryMethod, returns_modifying
from flyaot.aot.templating import CONSTRUCTION_TEMPLATE, EXECUTION_TEMPLATE, render_fragment, render_method
from flyaot.data.annotations import ModifyingAnnotation, QueryHintsAnnotation, QueryRewriter
from flyaot.kernel.exceptions import QueryCreationException

if TYPE_CHECKING:
    from flyaot.aot.entity_graph import AotEntityGraph

_SQLALCHEMY = "sqlalchemy"
_SQLALCHEMY_ORM = "sqlalchemy.orm"

_COLLECTION_FACTORIES: dict[Any, str] = {tuple: "tuple", set: "set", frozenset: "frozenset"}


@dataclass(frozen=True)
class CodeBlock:
    """Source lines plus the ``(module, name)`` imports they need."""

    lines: tuple[str, ...] = ()
    imports: frozenset[tuple[str, str]] = field(default_factory=frozenset)

    def __add__(self, other: CodeBlock) -> CodeBlock:
        return CodeBlock(lines=self.lines + other.lines, imports=self.imports | other.imports)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def import_lines(self) -> list[str]:
        """``from module import a, b`` statements, sorted by module."""
        by_module: dict[str, set[str]] = {}
        for module, name in self.imports:
            by_module.setdefault(module, set()).add(name)
        return [f"from {module} import {', '.join(sorted(names))}" for module, names in sorted(by_module.items())]

    def render(self, indent: int = 0) -> str:
        prefix = " " * indent
        return "\n".join(prefix + line for line in self.lines)


def render_method_source(method: RepositoryMethod, body: CodeBlock) -> str:
    """The generated method as an ``async def`` with the declared signature."""
    function = method.function
    return render_method(function.__name__, str(inspect.signature(function)), body.lines)


class _Imports:
    def __init__(self) -> None:
        self._imports: set[tuple[str, str]] = set()

    def add(self, module: str, name: str) -> str:
        self._imports.add((module, name))
        return name

    def add_type(self, cls: type) -> str:
        """Import *cls* and return the expression referring to it."""
        self._imports.add((cls.__module__, cls.__qualname__.split(".")[0]))
        return cls.__qualname__

    def frozen(self) -> frozenset[tuple[str, str]]:
        return frozenset(self._imports)


def _dict_literal(entries: Iterable[tuple[str, str]]) -> str:
    return "{" + ", ".join(f"{key!r}: {value}" for key, value in entries) + "}"


def _statement(query: AotQuery, variable: str, imports: _Imports) -> str:
    text = imports.add(_SQLALCHEMY, "text")
    expanding = query.expanding_parameters
    if not expanding:
        return f"{text}({variable})"
    bindparam = imports.add(_SQLALCHEMY, "bindparam")
    params = ", ".join(f"{bindparam}({name!r}, expanding=True)" for name in expanding)
    return f"{text}({variable}).bindparams({params})"


def _parameters(query: AotQuery) -> str:
    return _dict_literal((b.name, b.value_expression()) for b in query.parameter_bindings)


# ---------------------------------------------------------------------------
# Query construction
# ---------------------------------------------------------------------------


class QueryBlockBuilder:
    """Build the query-construction fragment of a generated method body."""

    def __init__(self, query_method: QueryMethod) -> None:
        self._query_method = query_method
        self._queries: AotQueries | None = None
        self._return_type = QueryReturnType.ENTITY
        self._native = False
        self._hints: QueryHintsAnnotation | None = None
        self._entity_graph: AotEntityGraph | None = None
        self._rewriter: type[QueryRewriter] | None = None

    def filter(self, queries: AotQueries) -> QueryBlockBuilder:
        self._queries = queries
        return self

    def query_return_type(self, return_type: QueryReturnType) -> QueryBlockBuilder:
        self._return_type = return_type
        return self

    def native_query(self, native: bool) -> QueryBlockBuilder:
        self._native = native
        return self

    def query_hints(self, hints: QueryHintsAnnotation | None) -> QueryBlockBuilder:
        self._hints = hints
        return self

    def entity_graph(self, entity_graph: AotEntityGraph | None) -> QueryBlockBuilder:
        self._entity_graph = entity_graph
        return self

    def query_rewriter(self, rewriter: type[QueryRewriter] | None) -> QueryBlockBuilder:
        self._rewriter = rewriter
        return self

    def build(self) -> CodeBlock:
        if self._queries is None:
            raise ValueError("queries must be set before building the query block")
        method = self._query_method
        result = self._queries.result
        imports = _Imports()

        sort = None
        if method.sort_parameter is not None:
            sort = method.sort_parameter.name
        elif method.pageable_parameter is not None:
            sort = f"{method.pageable_parameter.name}.sort"

        rewriter = imports.add_type(self._rewriter) if self._rewriter is not None else None
        needs_unsorted = rewriter is not None and (sort is None or self._queries.count is not None)
        if needs_unsorted:
            imports.add("flyaot.data.pageable", "Sort")

        pageable = method.pageable_parameter.name if method.pageable_parameter is not None else None
        if pageable is None and (method.is_page_query or method.is_slice_query):
            raise QueryCreationException(
                method.method.signature,
                method.method.repository,
                "page and slice queries require a Pageable parameter",
            )

        limit = None
        if method.limit_parameter is not None:
            limit = method.limit_parameter.name
        elif result.limit is not None:
            limit = str(result.limit)

        entity = None
        if self._return_type is QueryReturnType.ENTITY and (result.delete or not method.is_modifying_query):
            imports.add(_SQLALCHEMY, "select")
            entity = imports.add_type(method.entity_information.entity_type)

        hints = self._hints.as_dict() if self._hints is not None else {}
        count = self._queries.count if method.is_page_query else None
        context = {
            "query_string": repr(result.query_string),
            "sort": sort,
            "native": self._native,
            "rewriter": rewriter,
            "rewriter_sort": sort or "Sort.unsorted()",
            "pageable": pageable,
            "slice": method.is_slice_query,
            "limit": limit,
            "statement": _statement(result, "query_string", imports),
            "entity": entity,
            "options": self._loader_options(imports) if entity is not None else [],
            "hints": repr(hints) if hints else None,
            "parameters": _parameters(result),
            "count_query_string": repr(count.query_string) if count is not None else None,
            "count_statement": _statement(count, "count_query_string", imports) if count is not None else None,
            "count_hints": repr(hints) if hints and self._hints is not None and self._hints.for_counting else None,
            "count_parameters": _parameters(count) if count is not None else None,
        }
        return CodeBlock(lines=render_fragment(CONSTRUCTION_TEMPLATE, context), imports=imports.frozen())

    def _loader_options(self, imports: _Imports) -> list[str]:
        graph = self._entity_graph
        if graph is None:
            return []
        options = []
        for path in graph.attribute_paths:
            selectinload = imports.add(_SQLALCHEMY_ORM, "selectinload")
            chain = ".".join(
                f"{selectinload}({imports.add_type(edge.owner)}.{edge.attribute})" for edge in path
            )
            options.append(chain)
        if graph.is_fetch:
            options.append(f"{imports.add(_SQLALCHEMY_ORM, 'raiseload')}('*')")
        return options


# ---------------------------------------------------------------------------
# Query execution
# ---------------------------------------------------------------------------


class QueryExecutionBlockBuilder:
    """Build the query-execution fragment of a generated method body."""

    def __init__(self, query_method: QueryMethod) -> None:
        self._query_method = query_method
        self._modifying: ModifyingAnnotation | None = None
        self._queries: AotQueries | None = None
        self._return_type = QueryReturnType.ENTITY

    def modifying(self, annotation: ModifyingAnnotation | None) -> QueryExecutionBlockBuilder:
        self._modifying = annotation
        return self

    def query(self, queries: AotQueries) -> QueryExecutionBlockBuilder:
        self._queries = queries
        return self

    def query_return_type(self, return_type: QueryReturnType) -> QueryExecutionBlockBuilder:
        self._return_type = return_type
        return self

    def build(self) -> CodeBlock:
        if self._queries is None:
            raise ValueError("queries must be set before building the execution block")
        method = self._query_method
        result = self._queries.result
        imports = _Imports()
        return_type = method.return_type

        row_factory = self._row_factory(imports)
        items = self._items(row_factory)
        kind = self._kind(result)

        context = {
            "kind": kind,
            "flush": self._modifying is not None and self._modifying.flush_automatically,
            "clear": self._modifying is not None and self._modifying.clear_automatically,
            "returns_count": returns_modifying(return_type),
            "returns_collection": method.is_collection_query,
            "items": items,
            "pageable": method.pageable_parameter.name if method.pageable_parameter is not None else None,
            "row_factory": row_factory,
        }
        return CodeBlock(lines=render_fragment(EXECUTION_TEMPLATE, context), imports=imports.frozen())

    def _kind(self, result: AotQuery) -> str:
        method = self._query_method
        if result.delete:
            return "delete"
        if self._modifying is not None:
            return "modifying"
        if method.is_page_query:
            return "page"
        if method.is_slice_query:
            return "slice"
        if method.is_collection_query:
            return "collection"
        if method.is_count_query:
            return "count"
        if result.exists:
            return "exists"
        return "single"

    def _row_factory(self, imports: _Imports) -> str | None:
        if self._return_type is not QueryReturnType.PROJECTION:
            return None
        returned_type = self._query_method.returned_type
        if returned_type.is_dto_projection:
            return imports.add_type(returned_type.returned_type)
        return imports.add("types", "SimpleNamespace")

    def _items(self, row_factory: str | None) -> str:
        factory = _COLLECTION_FACTORIES.get(self._query_method.returned_type.wrapper, "list")
        if row_factory is not None:
            if factory == "list":
                return f"[{row_factory}(**row._asdict()) for row in result]"
            return f"{factory}({row_factory}(**row._asdict()) for row in result)"
        return f"{factory}(result.scalars().all())"


def query_builder(query_method: QueryMethod) -> QueryBlockBuilder:
    return QueryBlockBuilder(query_method)


def execution_builder(query_method: QueryMethod) -> QueryExecutionBlockBuilder:
    return QueryExecutionBlockBuilder(query_method)
