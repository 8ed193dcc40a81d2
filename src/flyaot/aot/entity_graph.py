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
"""Entity graph resolution against the domain metamodel."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from flyaot.data.annotations import EntityGraphAnnotation, EntityGraphType
from flyaot.kernel.exceptions import EntityGraphResolutionException

if TYPE_CHECKING:
    from flyaot.aot.context import RepositoryInformation
    from flyaot.aot.metamodel import AotMetamodel
    from flyaot.aot.query_method import QueryMethod, ReturnedType


@dataclass(frozen=True)
class GraphEdge:
    """One relationship hop: ``owner.attribute`` leading to ``target``."""

    owner: type
    attribute: str
    target: type


@dataclass(frozen=True)
class AotEntityGraph:
    """A fetch graph resolved at build time.

    Each path is a chain of relationship hops starting at the domain type,
    e.g. ``Person.orders -> Order.items``.
    """

    name: str
    type: EntityGraphType
    attribute_paths: tuple[tuple[GraphEdge, ...], ...]

    @property
    def is_fetch(self) -> bool:
        return self.type is EntityGraphType.FETCH


class EntityGraphLookup:
    """Resolve ``@entity_graph`` declarations to :class:`AotEntityGraph`."""

    def __init__(self, metamodel: AotMetamodel) -> None:
        self._metamodel = metamodel

    def find_entity_graph(
        self,
        annotation: EntityGraphAnnotation | None,
        repository_information: RepositoryInformation,
        returned_type: ReturnedType,
        query_method: QueryMethod,
    ) -> AotEntityGraph | None:
        """Return the resolved graph, or ``None`` when there is none to apply.

        No graph applies when nothing is declared, when the method returns a
        projection or scalar, or when a named graph is not declared on any
        entity.

        Raises:
            EntityGraphResolutionException: If an attribute path names a
                relationship the entity does not have.
        """
        if annotation is None or not returned_type.is_domain_type:
            return None

        domain_type = repository_information.domain_type
        name = annotation.value or f"{domain_type.__name__}.{query_method.name}"
        root = domain_type
        paths = annotation.attribute_paths
        if not paths:
            named = self._metamodel.named_entity_graph(name)
            if named is None:
                return None
            paths, root = named

        resolved = tuple(self._resolve_path(root, path, repository_information, query_method) for path in paths)
        return AotEntityGraph(name=name, type=annotation.type, attribute_paths=resolved)

    def _resolve_path(
        self,
        root: type,
        path: str,
        repository_information: RepositoryInformation,
        query_method: QueryMethod,
    ) -> tuple[GraphEdge, ...]:
        edges: list[GraphEdge] = []
        owner = root
        for attribute in path.split("."):
            if not self._metamodel.is_managed(owner):
                raise EntityGraphResolutionException(
                    query_method.method.signature,
                    repository_information.name,
                    f"{owner.__name__} is not a managed entity (path '{path}')",
                )
            relationship = self._metamodel.entity(owner).relationships.get(attribute)
            if relationship is None:
                raise EntityGraphResolutionException(
                    query_method.method.signature,
                    repository_information.name,
                    f"{owner.__name__} has no relationship '{attribute}' (path '{path}')",
                )
            edges.append(GraphEdge(owner=owner, attribute=attribute, target=relationship.target))
            owner = relationship.target
        return tuple(edges)
