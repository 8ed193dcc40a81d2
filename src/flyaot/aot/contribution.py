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
"""Per-method contribution decision.

:class:`ContributionDecider` is one ordered match over the facts of a
:class:`~flyaot.aot.query_method.QueryMethod`:

1. Stored procedure: publish the procedure reference, or give up with
   :class:`Unsupported` when no reference is declared.
2. Resolve the method's queries (always, fallbacks need them too).
3. Scroll position parameter or ``Window`` return: :class:`MetadataOnly`.
4. Dynamic projection parameter: :class:`MetadataOnly`.
5. Modifying query returning something other than an update count or
   ``None``: :class:`MetadataOnly`.
6. Anything else: :class:`Generated`.

Resolution failures raise; :class:`Unsupported` is the only soft failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Union

from flyaot.aot.code_blocks import CodeBlock, execution_builder, query_builder
from flyaot.aot.queries import NamedStoredProcedureMetadata, QueryMetadata, StoredProcedureMetadata
from flyaot.aot.query_method import QueryMethod, RepositoryMethod
from flyaot.data.annotations import ProcedureAnnotation

if TYPE_CHECKING:
    from flyaot.aot.context import RepositoryInformation
    from flyaot.aot.entity_graph import EntityGraphLookup
    from flyaot.aot.queries_factory import QueriesFactory
    from flyaot.data.query_enhancer import QueryEnhancerSelector


@dataclass(frozen=True)
class MetadataOnly:
    """Registered for the runtime fallback: metadata, no generated body."""

    status: ClassVar[str] = "metadata-only"

    method: RepositoryMethod
    metadata: QueryMetadata
    reason: str = ""


@dataclass(frozen=True)
class Generated:
    """A generated method body, with the metadata of the queries it runs."""

    status: ClassVar[str] = "generated"

    method: RepositoryMethod
    metadata: QueryMetadata
    body: CodeBlock


@dataclass(frozen=True)
class Unsupported:
    """Not contributed at all; the method keeps its runtime implementation."""

    status: ClassVar[str] = "unsupported"

    method: RepositoryMethod
    reason: str


ContributionOutcome = Union[MetadataOnly, Generated, Unsupported]


def resolve_procedure_reference(annotation: ProcedureAnnotation) -> QueryMetadata | None:
    """First non-empty of ``name``, ``procedure_name``, ``value``; ``None`` if all are empty."""
    if annotation.name:
        return NamedStoredProcedureMetadata(annotation.name)
    if annotation.procedure_name:
        return StoredProcedureMetadata(annotation.procedure_name)
    if annotation.value:
        return StoredProcedureMetadata(annotation.value)
    return None


class ContributionDecider:
    """Decide between generated code, metadata-only and no contribution."""

    def __init__(
        self,
        repository_information: RepositoryInformation,
        queries_factory: QueriesFactory,
        entity_graph_lookup: EntityGraphLookup,
        selector: QueryEnhancerSelector,
    ) -> None:
        self._repository_information = repository_information
        self._queries_factory = queries_factory
        self._entity_graph_lookup = entity_graph_lookup
        self._selector = selector

    def decide(self, query_method: QueryMethod) -> ContributionOutcome:
        method = query_method.method
        annotations = query_method.annotations

        procedure = annotations.procedure
        if procedure is not None:
            reference = resolve_procedure_reference(procedure)
            if reference is None:
                return Unsupported(method, "stored procedure method declares no procedure name")
            return MetadataOnly(method, reference, "stored procedure")

        returned_type = query_method.returned_type
        queries = self._queries_factory.create_queries(
            self._repository_information, returned_type, self._selector, annotations.query, query_method
        )
        metadata = queries.to_metadata(query_method.is_page_query)

        if query_method.has_scroll_position_parameter or query_method.is_scroll_query:
            return MetadataOnly(method, metadata, "scrolling is resolved at runtime")
        if query_method.has_dynamic_projection:
            return MetadataOnly(method, metadata, "dynamic projection type is chosen by the caller")
        if query_method.is_modifying_query and not (query_method.returns_update_count or query_method.returns_void):
            return MetadataOnly(method, metadata, "modifying query must return an update count or None")

        entity_graph = self._entity_graph_lookup.find_entity_graph(
            annotations.entity_graph, self._repository_information, returned_type, query_method
        )
        return_type = self._queries_factory.get_query_return_type(queries.result, returned_type)

        construction = (
            query_builder(query_method)
            .filter(queries)
            .query_return_type(return_type)
            .native_query(queries.result.native)
            .query_hints(annotations.query_hints)
            .entity_graph(entity_graph)
            .query_rewriter(annotations.query_rewriter)
            .build()
        )
        execution = (
            execution_builder(query_method)
            .modifying(annotations.modifying)
            .query(queries)
            .query_return_type(return_type)
            .build()
        )
        return Generated(method, metadata, construction + execution)
