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
"""Declarative hints for repository query methods.

Decorators attach immutable annotation records to repository method stubs.
They never change the function; the AOT contributor reads the records when
it classifies a method.

Usage::

    class PersonRepository(Repository[Person, int]):

        @query("SELECT p FROM Person p WHERE p.email LIKE :pattern")
        async def find_by_email_pattern(self, pattern: str) -> list[Person]: ...

        @native_query(
            "SELECT * FROM people WHERE age > :age",
            count_query="SELECT COUNT(*) FROM people WHERE age > :age",
        )
        async def find_older(self, age: int, pageable: Pageable) -> Page[Person]: ...

        @modifying(clear_automatically=True)
        @query("UPDATE Person p SET p.active = false WHERE p.last_login < :cutoff")
        async def deactivate_stale(self, cutoff: datetime) -> int: ...

        @entity_graph(attribute_paths=["addresses"])
        async def find_by_last_name(self, last_name: str) -> list[Person]: ...

        @procedure(name="archiveOrders")
        async def archive_orders(self, before: date) -> None: ...
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, TypeVar, runtime_checkable

from flyaot.data.pageable import Sort

F = TypeVar("F", bound=Callable[..., Any])

_QUERY_ATTR = "__flyaot_query__"
_MODIFYING_ATTR = "__flyaot_modifying__"
_ENTITY_GRAPH_ATTR = "__flyaot_entity_graph__"
_PROCEDURE_ATTR = "__flyaot_procedure__"
_QUERY_HINTS_ATTR = "__flyaot_query_hints__"


@runtime_checkable
class QueryRewriter(Protocol):
    """Callback that rewrites the final query string right before it is executed."""

    def rewrite(self, query: str, sort: Sort) -> str: ...


# ---------------------------------------------------------------------------
# Annotation records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class QueryAnnotation:
    """A declared query. An empty ``value`` defers to named query lookup or derivation."""

    value: str = ""
    native: bool = False
    count_query: str = ""
    count_projection: str = ""
    name: str = ""
    count_name: str = ""
    query_rewriter: type[QueryRewriter] | None = None


@dataclass(frozen=True)
class ModifyingAnnotation:
    """Marks a query as INSERT / UPDATE / DELETE that returns an update count."""

    flush_automatically: bool = False
    clear_automatically: bool = False


class EntityGraphType(str, Enum):
    """FETCH loads only the listed relationships; LOAD keeps the mapped defaults for the rest."""

    FETCH = "fetch"
    LOAD = "load"


@dataclass(frozen=True)
class EntityGraphAnnotation:
    value: str = ""
    type: EntityGraphType = EntityGraphType.FETCH
    attribute_paths: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProcedureAnnotation:
    """Stored procedure reference. ``name`` refers to a named procedure declaration."""

    value: str = ""
    procedure_name: str = ""
    name: str = ""
    output_parameter_name: str = ""


@dataclass(frozen=True)
class QueryHint:
    name: str
    value: Any


@dataclass(frozen=True)
class QueryHintsAnnotation:
    hints: tuple[QueryHint, ...] = ()
    for_counting: bool = True

    def as_dict(self) -> dict[str, Any]:
        return {hint.name: hint.value for hint in self.hints}


@dataclass(frozen=True)
class DeclaredAnnotations:
    """Every declarative hint found on one repository method."""

    query: QueryAnnotation | None = None
    modifying: ModifyingAnnotation | None = None
    entity_graph: EntityGraphAnnotation | None = None
    procedure: ProcedureAnnotation | None = None
    query_hints: QueryHintsAnnotation | None = None

    @classmethod
    def of(cls, func: Callable[..., Any]) -> DeclaredAnnotations:
        return cls(
            query=getattr(func, _QUERY_ATTR, None),
            modifying=getattr(func, _MODIFYING_ATTR, None),
            entity_graph=getattr(func, _ENTITY_GRAPH_ATTR, None),
            procedure=getattr(func, _PROCEDURE_ATTR, None),
            query_hints=getattr(func, _QUERY_HINTS_ATTR, None),
        )

    @property
    def native_query(self) -> bool:
        return self.query is not None and self.query.native

    @property
    def query_rewriter(self) -> type[QueryRewriter] | None:
        return self.query.query_rewriter if self.query is not None else None


# ---------------------------------------------------------------------------
# Decorators
# ---------------------------------------------------------------------------


def _annotate(attr: str, annotation: object) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        setattr(func, attr, annotation)
        return func

    return decorator


def query(
    value: str = "",
    *,
    native: bool = False,
    count_query: str = "",
    count_projection: str = "",
    name: str = "",
    count_name: str = "",
    query_rewriter: type[QueryRewriter] | None = None,
) -> Callable[[F], F]:
    """Attach a declared query to a repository method.

    Args:
        value: Query text. Named parameters (``:param``) map to method
            parameter names. Entity-style queries (``SELECT p FROM Person p``)
            are rewritten to SQL unless *native* is set.
        native: Treat *value* as SQL against the mapped tables.
        count_query: Explicit count query for paged methods.
        count_projection: Projection used when deriving the count query.
        name: Named query to look up on the entity instead of *value*.
        count_name: Named count query for paged methods.
        query_rewriter: :class:`QueryRewriter` applied before execution.
    """
    return _annotate(
        _QUERY_ATTR,
        QueryAnnotation(
            value=value,
            native=native,
            count_query=count_query,
            count_projection=count_projection,
            name=name,
            count_name=count_name,
            query_rewriter=query_rewriter,
        ),
    )


def native_query(
    value: str = "",
    *,
    count_query: str = "",
    name: str = "",
    count_name: str = "",
    query_rewriter: type[QueryRewriter] | None = None,
) -> Callable[[F], F]:
    """Shortcut for ``@query(..., native=True)``."""
    return query(
        value,
        native=True,
        count_query=count_query,
        name=name,
        count_name=count_name,
        query_rewriter=query_rewriter,
    )


def modifying(*, flush_automatically: bool = False, clear_automatically: bool = False) -> Callable[[F], F]:
    """Mark a declared query as modifying (INSERT / UPDATE / DELETE)."""
    return _annotate(
        _MODIFYING_ATTR,
        ModifyingAnnotation(flush_automatically=flush_automatically, clear_automatically=clear_automatically),
    )


def entity_graph(
    value: str = "",
    *,
    type: EntityGraphType | str = EntityGraphType.FETCH,
    attribute_paths: Iterable[str] = (),
) -> Callable[[F], F]:
    """Declare which relationships to load eagerly along with the query result.

    Args:
        value: Name of an entity graph declared with
            :func:`~flyaot.data.entity.named_entity_graph`.
        type: ``fetch`` or ``load`` semantics.
        attribute_paths: Dotted relationship paths (``"orders.items"``)
            forming an ad-hoc graph.
    """
    return _annotate(
        _ENTITY_GRAPH_ATTR,
        EntityGraphAnnotation(value=value, type=EntityGraphType(type), attribute_paths=tuple(attribute_paths)),
    )


def procedure(
    value: str = "",
    *,
    procedure_name: str = "",
    name: str = "",
    output_parameter_name: str = "",
) -> Callable[[F], F]:
    """Mark a repository method as a stored procedure call.

    The procedure reference is resolved with the precedence *name*,
    *procedure_name*, *value*; the first non-empty attribute wins.
    """
    return _annotate(
        _PROCEDURE_ATTR,
        ProcedureAnnotation(
            value=value,
            procedure_name=procedure_name,
            name=name,
            output_parameter_name=output_parameter_name,
        ),
    )


def query_hints(
    hints: Mapping[str, Any] | Iterable[QueryHint] = (),
    *,
    for_counting: bool = True,
) -> Callable[[F], F]:
    """Attach execution hints to the query (and its count query when *for_counting*).

    Hints become SQLAlchemy execution options on the generated statements.
    """
    if isinstance(hints, Mapping):
        records = tuple(QueryHint(name=k, value=v) for k, v in hints.items())
    else:
        records = tuple(hints)
    return _annotate(_QUERY_HINTS_ATTR, QueryHintsAnnotation(hints=records, for_counting=for_counting))
