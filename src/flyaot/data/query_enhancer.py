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
"""Query enhancers: count query derivation and dynamic sorting on query text.

A :class:`QueryEnhancerSelector` picks the enhancer for a declared query.
The selector is configured once per repository and used both at build time
(count queries) and by generated code at runtime (sorting).
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from flyaot.data.pageable import Sort

_SELECT_RE = re.compile(
    r"^\s*select\s+(?P<distinct>distinct\s+)?(?P<projection>.+?)\s+from\s", re.IGNORECASE | re.DOTALL
)
_KEYWORDS = "where|order|group|limit|offset|join|left|right|inner|outer|full|cross|having|union"
_ALIAS_RE = re.compile(
    rf"\bfrom\s+(?P<table>[\w.\"]+)(?:\s+as)?(?:\s+(?P<alias>(?!(?:{_KEYWORDS})\b)\w+))?",
    re.IGNORECASE,
)
_ORDER_BY_RE = re.compile(r"\border\s+by\s+(?P<orders>.+?)(?=\s+limit\s|\s+offset\s|$)", re.IGNORECASE | re.DOTALL)
_SORT_PROPERTY_RE = re.compile(r"\w+(?:\.\w+)*")


@dataclass(frozen=True)
class DeclaredQuery:
    """Query text plus whether it is native SQL."""

    query_string: str
    native: bool = False


@runtime_checkable
class QueryEnhancer(Protocol):
    def detect_alias(self) -> str | None: ...
    def create_count_query(self, count_projection: str | None = None) -> str: ...
    def apply_sorting(self, sort: Sort) -> str: ...


@runtime_checkable
class QueryEnhancerSelector(Protocol):
    """Strategy choosing the enhancer implementation for a query."""

    def select(self, query: DeclaredQuery) -> Callable[[DeclaredQuery], QueryEnhancer]: ...


class RegexQueryEnhancer:
    """Regular-expression based enhancer for simple ``SELECT ... FROM ...`` statements.

    Handles single-table selects with an optional alias, ``DISTINCT``
    projections and a trailing ``ORDER BY`` / ``LIMIT``. It does not try to
    understand sub-selects in the projection.
    """

    def __init__(self, query: DeclaredQuery) -> None:
        self._query = query

    @property
    def query(self) -> DeclaredQuery:
        return self._query

    def detect_alias(self) -> str | None:
        match = _ALIAS_RE.search(self._query.query_string)
        if match is None:
            return None
        return match.group("alias")

    def create_count_query(self, count_projection: str | None = None) -> str:
        """Rewrite the select list to ``COUNT(...)`` and drop any ORDER BY."""
        query_string = self._strip_order_by(self._query.query_string)
        match = _SELECT_RE.match(query_string)
        if match is None:
            raise ValueError(f"Cannot derive a count query from: {self._query.query_string}")

        if count_projection:
            counted = count_projection
        elif match.group("distinct"):
            counted = f"DISTINCT {match.group('projection').strip()}"
        else:
            counted = "*"
        return f"SELECT COUNT({counted}) FROM " + query_string[match.end() :].strip()

    def apply_sorting(self, sort: Sort) -> str:
        """Append the sort orders, extending an existing ORDER BY clause if present."""
        query_string = self._query.query_string.rstrip().rstrip(";")
        if not sort.is_sorted:
            return query_string

        for o in sort.orders:
            if not _SORT_PROPERTY_RE.fullmatch(o.property):
                raise ValueError(f"Invalid sort property: {o.property!r}")
        alias = self.detect_alias()
        rendered = ", ".join(
            f"{alias + '.' if alias and '.' not in o.property else ''}{o.property} {o.direction.upper()}"
            for o in sort.orders
        )
        existing = _ORDER_BY_RE.search(query_string)
        if existing is not None:
            end = existing.end("orders")
            return f"{query_string[:end]}, {rendered}{query_string[end:]}"
        return f"{query_string} ORDER BY {rendered}"

    @staticmethod
    def _strip_order_by(query_string: str) -> str:
        match = _ORDER_BY_RE.search(query_string)
        if match is None:
            return query_string.strip()
        return (query_string[: match.start()] + query_string[match.end() :]).strip()


class DefaultQueryEnhancerSelector:
    """Use :class:`RegexQueryEnhancer` for both native and entity queries."""

    def select(self, query: DeclaredQuery) -> Callable[[DeclaredQuery], QueryEnhancer]:
        return RegexQueryEnhancer


DEFAULT_SELECTOR: QueryEnhancerSelector = DefaultQueryEnhancerSelector()


def enhancer_for(selector: QueryEnhancerSelector, query: DeclaredQuery) -> QueryEnhancer:
    return selector.select(query)(query)
