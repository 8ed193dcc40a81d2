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
"""Derived query method parser for Spring Data-style repositories.

Parses method names like ``find_top_3_by_status_and_role_order_by_name_desc``
into structured query descriptions. The AOT queries factory turns a
:class:`ParsedQuery` into SQL against the mapped table.

Grammar
-------
**Subjects:** ``find``, ``read``, ``get``, ``query`` (all select),
``count``, ``exists``, ``delete``, ``remove``; optionally followed by
``_distinct`` and/or ``_first`` / ``_top_<n>``, then ``_by_``.

**Connectors:** ``_and_``, ``_or_``

**Operators (suffix on field name):**
    - *(none)* = equals (default)
    - ``_not`` = ``<>``
    - ``_greater_than`` / ``_greater_than_equal`` = ``>`` / ``>=``
    - ``_less_than`` / ``_less_than_equal`` = ``<`` / ``<=``
    - ``_between`` = BETWEEN (takes 2 args)
    - ``_like`` / ``_not_like`` = LIKE / NOT LIKE
    - ``_starting_with`` / ``_ending_with`` / ``_containing`` = LIKE with wildcards
    - ``_in`` / ``_not_in`` = IN / NOT IN (takes a collection arg)
    - ``_is_null`` / ``_is_not_null`` (no arg)
    - ``_is_true`` / ``_is_false`` (no arg)

**Ordering suffix:** ``_order_by_{field}_{asc|desc}`` (can chain multiple)

Example::

    parser = QueryMethodParser()
    parsed = parser.parse("find_first_by_status_order_by_created_at_desc")
    parsed.subject  # "find"
    parsed.limit    # 1
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

# Operator suffixes ordered so that longer suffixes sharing an ending are
# checked first (``_not_in`` before ``_in``, ``_greater_than_equal`` before
# ``_greater_than``).
OPERATORS: dict[str, str] = {
    "_greater_than_equal": "gte",
    "_less_than_equal": "lte",
    "_greater_than": "gt",
    "_less_than": "lt",
    "_is_not_null": "is_not_null",
    "_is_null": "is_null",
    "_is_true": "is_true",
    "_is_false": "is_false",
    "_starting_with": "starting_with",
    "_ending_with": "ending_with",
    "_containing": "containing",
    "_not_like": "not_like",
    "_not_in": "not_in",
    "_between": "between",
    "_not": "not",
    "_like": "like",
    "_in": "in",
}

# Number of method arguments each operator consumes.
ARGUMENT_COUNTS: dict[str, int] = {
    "between": 2,
    "is_null": 0,
    "is_not_null": 0,
    "is_true": 0,
    "is_false": 0,
}

SUBJECTS: dict[str, str] = {
    "find": "find",
    "read": "find",
    "get": "find",
    "query": "find",
    "count": "count",
    "exists": "exists",
    "delete": "delete",
    "remove": "delete",
}

_SUBJECT_RE = re.compile(
    r"^(?P<subject>find|read|get|query|count|exists|delete|remove)"
    r"(?P<distinct>_distinct)?"
    r"(?:_(?P<limiting>first|top)(?:_(?P<max>\d+))?)?"
    r"_by_(?P<body>.+)$"
)

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class FieldPredicate:
    """A single field predicate parsed from a method name."""

    field_name: str
    operator: str = "eq"

    @property
    def argument_count(self) -> int:
        return ARGUMENT_COUNTS.get(self.operator, 1)


@dataclass
class OrderClause:
    """A single order-by clause."""

    field_name: str
    direction: str = "asc"


@dataclass
class ParsedQuery:
    """Result of parsing a query method name."""

    subject: str  # find, count, exists, delete
    predicates: list[FieldPredicate] = field(default_factory=list)
    connectors: list[str] = field(default_factory=list)  # "and" or "or" between predicates
    order_clauses: list[OrderClause] = field(default_factory=list)
    distinct: bool = False
    limit: int | None = None

    @property
    def prefix(self) -> str:
        return f"{self.subject}_by"

    @property
    def argument_count(self) -> int:
        return sum(p.argument_count for p in self.predicates)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class QueryMethodParser:
    """Parse method names into structured query descriptions.

    Examples::

        parse("find_by_email")                         -> find where email = ?
        parse("find_by_status_and_role")               -> find where status = ? AND role = ?
        parse("find_top_5_by_age_greater_than")        -> find where age > ? (limit 5)
        parse("find_by_name_order_by_created_at_desc") -> find where name = ? ORDER BY created_at DESC
        parse("count_by_active")                       -> count where active = ?
        parse("exists_by_email")                       -> exists where email = ?
    """

    def is_derivable(self, method_name: str) -> bool:
        """Whether *method_name* follows the derived query grammar."""
        return _SUBJECT_RE.match(method_name) is not None

    def parse(self, method_name: str) -> ParsedQuery:
        """Parse a method name into a :class:`ParsedQuery`.

        Raises:
            ValueError: If the name does not follow the grammar.
        """
        match = _SUBJECT_RE.match(method_name)
        if match is None:
            raise ValueError(
                f"Method name must look like '<subject>_by_<criteria>' with subject one of "
                f"{tuple(SUBJECTS)}: {method_name}"
            )

        limit: int | None = None
        if match.group("limiting"):
            limit = int(match.group("max")) if match.group("max") else 1

        body = match.group("body")
        order_clauses: list[OrderClause] = []
        if body.startswith("order_by_"):
            order_clauses = self._parse_order(body[len("order_by_") :])
            body = ""
        else:
            order_match = re.search(r"_order_by_(.+)$", body)
            if order_match:
                order_clauses = self._parse_order(order_match.group(1))
                body = body[: order_match.start()]

        predicates, connectors = self._parse_predicates(body)
        for predicate in predicates:
            if not predicate.field_name:
                raise ValueError(f"Empty property name in derived query method: {method_name}")

        return ParsedQuery(
            subject=SUBJECTS[match.group("subject")],
            predicates=predicates,
            connectors=connectors,
            order_clauses=order_clauses,
            distinct=bool(match.group("distinct")),
            limit=limit,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_order(order_body: str) -> list[OrderClause]:
        """Parse ``field_asc_field2_desc`` into a list of :class:`OrderClause`."""
        clauses: list[OrderClause] = []
        parts = order_body.split("_")
        i = 0
        while i < len(parts):
            field_parts: list[str] = []
            while i < len(parts) and parts[i] not in ("asc", "desc"):
                field_parts.append(parts[i])
                i += 1
            field_name = "_".join(field_parts)
            direction = "asc"
            if i < len(parts) and parts[i] in ("asc", "desc"):
                direction = parts[i]
                i += 1
            if field_name:
                clauses.append(OrderClause(field_name=field_name, direction=direction))
        return clauses

    @staticmethod
    def _parse_predicates(body: str) -> tuple[list[FieldPredicate], list[str]]:
        """Split the predicate body by ``_and_`` / ``_or_`` and parse each segment."""
        if not body:
            return [], []

        parts = re.split(r"(_and_|_or_)", body)
        predicates: list[FieldPredicate] = []
        connectors: list[str] = []

        for part in parts:
            if part == "_and_":
                connectors.append("and")
            elif part == "_or_":
                connectors.append("or")
            else:
                predicates.append(QueryMethodParser._parse_single_predicate(part))

        return predicates, connectors

    @staticmethod
    def _parse_single_predicate(segment: str) -> FieldPredicate:
        """Parse a single ``field[_operator]`` segment like ``age_greater_than``."""
        for suffix, op in OPERATORS.items():
            if segment.endswith(suffix) and len(segment) > len(suffix):
                return FieldPredicate(field_name=segment[: -len(suffix)], operator=op)
        return FieldPredicate(field_name=segment, operator="eq")
