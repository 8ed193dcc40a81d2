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
"""Declarative entity base and entity-level query declarations.

Named queries and named entity graphs are declared on the entity class and
become part of the domain metamodel the AOT contributor inspects::

    @named_query("Person.find_by_email", "SELECT * FROM people WHERE email = :email", native=True)
    @named_entity_graph("Person.detail", "addresses", "orders.items")
    class Person(Base):
        __tablename__ = "people"
        ...
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from sqlalchemy.orm import DeclarativeBase

C = TypeVar("C", bound=type)

_NAMED_QUERIES_ATTR = "__flyaot_named_queries__"
_NAMED_GRAPHS_ATTR = "__flyaot_entity_graphs__"


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for flyaot entities."""


@dataclass(frozen=True)
class NamedQueryDefinition:
    name: str
    query: str
    native: bool = False


def named_query(name: str, query: str, *, native: bool = False) -> Callable[[C], C]:
    """Declare a named query on an entity class.

    Repository methods pick it up through ``@query(name=...)`` or by the
    default name ``"<Entity>.<method_name>"``.
    """

    def decorator(cls: C) -> C:
        declared = dict(cls.__dict__.get(_NAMED_QUERIES_ATTR, {}))
        declared[name] = NamedQueryDefinition(name=name, query=query, native=native)
        setattr(cls, _NAMED_QUERIES_ATTR, declared)
        return cls

    return decorator


def named_entity_graph(name: str, *attribute_paths: str) -> Callable[[C], C]:
    """Declare a named entity graph as a set of dotted relationship paths."""

    def decorator(cls: C) -> C:
        declared = dict(cls.__dict__.get(_NAMED_GRAPHS_ATTR, {}))
        declared[name] = tuple(attribute_paths)
        setattr(cls, _NAMED_GRAPHS_ATTR, declared)
        return cls

    return decorator


def named_queries_of(cls: type) -> dict[str, NamedQueryDefinition]:
    return dict(cls.__dict__.get(_NAMED_QUERIES_ATTR, {}))


def entity_graphs_of(cls: type) -> dict[str, tuple[str, ...]]:
    return dict(cls.__dict__.get(_NAMED_GRAPHS_ATTR, {}))
