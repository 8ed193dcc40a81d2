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
"""Build-time domain metamodel backed by SQLAlchemy mapper inspection.

The metamodel is created once per build and shared read-only by every
repository and method contribution. It answers three kinds of questions:

* which entity classes are managed, and how they map to tables and columns
  (:class:`EntityInformation`, the persistence-unit view of an entity);
* which relationships an entity has (entity graph resolution);
* which named queries and named entity graphs the entities declare.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from sqlalchemy import inspect
from sqlalchemy.exc import NoInspectionAvailable
from sqlalchemy.orm import DeclarativeBase, Mapper, registry

from flyaot.data.entity import NamedQueryDefinition, entity_graphs_of, named_queries_of


@dataclass(frozen=True)
class RelationshipInformation:
    attribute: str
    target: type
    uselist: bool


@dataclass(frozen=True)
class EntityInformation:
    """Table, column and relationship view of one mapped entity."""

    entity_type: type
    entity_name: str
    table_name: str
    id_attributes: tuple[str, ...]
    columns: MappingProxyType[str, str]
    relationships: MappingProxyType[str, RelationshipInformation]

    @classmethod
    def from_mapper(cls, mapper: Mapper[Any]) -> EntityInformation:
        entity_type = mapper.class_
        columns = {attr.key: attr.columns[0].name for attr in mapper.column_attrs}
        relationships = {
            rel.key: RelationshipInformation(attribute=rel.key, target=rel.mapper.class_, uselist=bool(rel.uselist))
            for rel in mapper.relationships
        }
        return cls(
            entity_type=entity_type,
            entity_name=entity_type.__name__,
            table_name=mapper.local_table.name,  # type: ignore[attr-defined]
            id_attributes=tuple(mapper.get_property_by_column(c).key for c in mapper.primary_key),
            columns=MappingProxyType(columns),
            relationships=MappingProxyType(relationships),
        )

    def column_for(self, attribute: str) -> str | None:
        return self.columns.get(attribute)


class AotMetamodel:
    """Read-only metamodel over a fixed set of managed entity classes."""

    def __init__(self, managed_types: Iterable[type]) -> None:
        entities: dict[type, EntityInformation] = {}
        for entity_type in managed_types:
            try:
                mapper = inspect(entity_type)
            except NoInspectionAvailable as exc:
                raise TypeError(f"{entity_type!r} is not a mapped entity class") from exc
            entities[entity_type] = EntityInformation.from_mapper(mapper)
        self._entities = MappingProxyType(entities)

        named_queries: dict[str, NamedQueryDefinition] = {}
        entity_graphs: dict[str, tuple[tuple[str, ...], type]] = {}
        for entity_type in self._entities:
            named_queries.update(named_queries_of(entity_type))
            for name, paths in entity_graphs_of(entity_type).items():
                entity_graphs[name] = (paths, entity_type)
        self._named_queries = MappingProxyType(named_queries)
        self._entity_graphs = MappingProxyType(entity_graphs)

    @classmethod
    def from_base(cls, base: type[DeclarativeBase]) -> AotMetamodel:
        """Build the metamodel from every class mapped by a declarative base."""
        return cls.from_registry(base.registry)

    @classmethod
    def from_registry(cls, mapper_registry: registry) -> AotMetamodel:
        mapped = [m.class_ for m in mapper_registry.mappers]
        return cls(sorted(mapped, key=lambda t: (t.__module__, t.__qualname__)))

    @classmethod
    def from_entity(cls, entity_type: type) -> AotMetamodel:
        """Build the metamodel from the registry that maps *entity_type*."""
        try:
            mapper = inspect(entity_type)
        except NoInspectionAvailable as exc:
            raise TypeError(f"{entity_type!r} is not a mapped entity class") from exc
        return cls.from_registry(mapper.registry)

    @property
    def managed_types(self) -> tuple[type, ...]:
        return tuple(self._entities)

    def is_managed(self, entity_type: type) -> bool:
        return entity_type in self._entities

    def entity(self, entity_type: type) -> EntityInformation:
        try:
            return self._entities[entity_type]
        except KeyError:
            raise KeyError(f"{entity_type!r} is not managed by this metamodel") from None

    def named_query(self, name: str) -> NamedQueryDefinition | None:
        return self._named_queries.get(name)

    def named_entity_graph(self, name: str) -> tuple[tuple[str, ...], type] | None:
        """Return ``(attribute_paths, root_entity)`` for a declared graph, if any."""
        return self._entity_graphs.get(name)
