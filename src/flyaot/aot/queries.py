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
"""Resolved queries of a repository method and their serializable metadata."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class LikeType(str, Enum):
    """Wildcard decoration applied to a bound value before execution."""

    STARTING = "starting"
    ENDING = "ending"
    CONTAINING = "containing"

    def wrap(self, expression: str) -> str:
        """Return an f-string expression decorating *expression* with ``%``."""
        if self is LikeType.STARTING:
            return f'f"{{{expression}}}%"'
        if self is LikeType.ENDING:
            return f'f"%{{{expression}}}"'
        return f'f"%{{{expression}}}%"'


@dataclass(frozen=True)
class ParameterBinding:
    """Binds a method parameter to a named placeholder in the query text."""

    name: str
    parameter: str
    like: LikeType | None = None
    expanding: bool = False
    escape: bool = False

    def value_expression(self) -> str:
        if self.like is None:
            return self.parameter
        if self.escape:
            return self.like.wrap(f"self._escape_like({self.parameter})")
        return self.like.wrap(self.parameter)


@dataclass(frozen=True)
class AotQuery:
    """A query resolved at build time, ready to be embedded in generated code."""

    query_string: str
    native: bool = False
    parameter_bindings: tuple[ParameterBinding, ...] = ()
    limit: int | None = None
    delete: bool = False
    exists: bool = False

    @property
    def is_limited(self) -> bool:
        return self.limit is not None

    @property
    def expanding_parameters(self) -> tuple[str, ...]:
        return tuple(b.name for b in self.parameter_bindings if b.expanding)


@dataclass(frozen=True)
class StringAotQuery(AotQuery):
    """Query given by its text: declared on the method or derived from its name."""


@dataclass(frozen=True)
class NamedAotQuery(AotQuery):
    """Query declared by name on an entity class."""

    name: str = ""


@runtime_checkable
class QueryMetadata(Protocol):
    """Serializable description a runtime fallback can execute."""

    def serialize(self) -> dict[str, Any]: ...


@dataclass(frozen=True)
class AotQueryMetadata:
    """Query metadata for query-based (non-procedure) methods.

    Named queries are referenced by name, string queries by their text. The
    count query is only published for paging methods.
    """

    result: AotQuery
    count: AotQuery | None = None
    paging: bool = False

    def serialize(self) -> dict[str, Any]:
        serialized: dict[str, Any] = {}
        _put(serialized, self.result, "name", "query")
        if self.paging and self.count is not None:
            _put(serialized, self.count, "count-name", "count-query")
        return serialized


def _put(target: dict[str, Any], query: AotQuery, name_key: str, query_key: str) -> None:
    if isinstance(query, NamedAotQuery):
        target[name_key] = query.name
    else:
        target[query_key] = query.query_string


@dataclass(frozen=True)
class StoredProcedureMetadata:
    procedure: str

    def serialize(self) -> dict[str, Any]:
        return {"procedure": self.procedure}


@dataclass(frozen=True)
class NamedStoredProcedureMetadata:
    procedure_name: str

    def serialize(self) -> dict[str, Any]:
        return {"procedure-name": self.procedure_name}


@dataclass(frozen=True)
class AotQueries:
    """The result query of a method plus, for page queries, its count query."""

    result: AotQuery
    count: AotQuery | None = None

    @classmethod
    def of(cls, result: AotQuery, count: AotQuery | None = None) -> AotQueries:
        return cls(result=result, count=count)

    def to_metadata(self, paging: bool) -> AotQueryMetadata:
        return AotQueryMetadata(result=self.result, count=self.count, paging=paging)
