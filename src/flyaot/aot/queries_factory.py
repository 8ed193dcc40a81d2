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
"""Build-time query resolution for repository methods.

:class:`QueriesFactory` turns a classified :class:`QueryMethod` into
:class:`AotQueries`. Resolution order for the result query:

1. Declared query text (``@query`` / ``@native_query``). Entity-style text
   (``SELECT p FROM Person p WHERE p.last_name = :name``) is rewritten to SQL
   against the mapped table and column names.
2. Named query, either ``@query(name=...)`` or the default name
   ``"<Entity>.<method_name>"`` declared on the entity.
3. Derivation from the method name
   (:class:`~flyaot.data.query_parser.QueryMethodParser`).

Page queries also get a count query: the declared ``count_query``, then a
named count query (``count_name`` or ``"<name>.count"``), then the derived
count, then the query enhancer's count rewrite of the result query.

Resolution is a pure function of the method and the metamodel, so repeated
builds produce identical query text.
"""

from __future__ import annotations

import re
from collections.abc import Collection, Iterable, Sequence
from enum import Enum
from typing import TYPE_CHECKING, get_origin

from flyaot.aot.queries import AotQueries, AotQuery, LikeType, NamedAotQuery, ParameterBinding, StringAotQuery
from flyaot.aot.query_method import ReturnedType, unwrap_optional
from flyaot.data.annotations import QueryAnnotation
from flyaot.data.entity import NamedQueryDefinition
from flyaot.data.projection import projection_fields
from flyaot.data.query_enhancer import DeclaredQuery, QueryEnhancerSelector, enhancer_for
from flyaot.data.query_parser import FieldPredicate, ParsedQuery, QueryMethodParser
from flyaot.kernel.exceptions import QueryCreationException

if TYPE_CHECKING:
    from flyaot.aot.context import RepositoryInformation
    from flyaot.aot.metamodel import AotMetamodel, EntityInformation
    from flyaot.aot.query_method import QueryMethod

_NAMED_PARAMETER_RE = re.compile(r"(?P<prefix>%)?(?<![:\w]):(?P<name>[A-Za-z_]\w*)(?P<suffix>%)?")
_EXPANDING_ORIGINS = (list, tuple, set, frozenset, Sequence, Collection, Iterable)
_ALIAS_STOP_WORDS = "where|set|order|group|join|left|inner|limit"

# Derived predicate operator -> SQL template; ``{column}`` and ``{p0}``/``{p1}``
# are replaced with the column name and bind parameter placeholders.
_PREDICATE_SQL: dict[str, str] = {
    "eq": "{column} = {p0}",
    "not": "{column} <> {p0}",
    "gt": "{column} > {p0}",
    "gte": "{column} >= {p0}",
    "lt": "{column} < {p0}",
    "lte": "{column} <= {p0}",
    "between": "{column} BETWEEN {p0} AND {p1}",
    "like": "{column} LIKE {p0}",
    "not_like": "{column} NOT LIKE {p0}",
    "starting_with": "{column} LIKE {p0} ESCAPE '\\'",
    "ending_with": "{column} LIKE {p0} ESCAPE '\\'",
    "containing": "{column} LIKE {p0} ESCAPE '\\'",
    "in": "{column} IN {p0}",
    "not_in": "{column} NOT IN {p0}",
    "is_null": "{column} IS NULL",
    "is_not_null": "{column} IS NOT NULL",
    "is_true": "{column} IS TRUE",
    "is_false": "{column} IS FALSE",
}

_LIKE_OPERATORS: dict[str, LikeType] = {
    "starting_with": LikeType.STARTING,
    "ending_with": LikeType.ENDING,
    "containing": LikeType.CONTAINING,
}


class QueryReturnType(str, Enum):
    """How generated code maps result rows."""

    ENTITY = "entity"
    PROJECTION = "projection"
    SCALAR = "scalar"


class QueriesFactory:
    """Resolve the result and count queries of repository methods."""

    def __init__(self, metamodel: AotMetamodel, parser: QueryMethodParser | None = None) -> None:
        self._metamodel = metamodel
        self._parser = parser or QueryMethodParser()

    def create_queries(
        self,
        repository_information: RepositoryInformation,
        returned_type: ReturnedType,
        selector: QueryEnhancerSelector,
        query_annotation: QueryAnnotation | None,
        query_method: QueryMethod,
    ) -> AotQueries:
        """Resolve :class:`AotQueries` for *query_method*.

        Raises:
            QueryCreationException: If no query can be declared, looked up or
                derived, or the query does not fit the method signature.
        """
        entity = query_method.entity_information
        parsed: ParsedQuery | None = None

        if query_annotation is not None and query_annotation.value:
            result: AotQuery = self._declared(
                query_annotation.value, query_annotation.native, entity, query_method, repository_information
            )
        else:
            named = self._named(query_annotation, entity, query_method, repository_information)
            if named is not None:
                result = named
            else:
                parsed = self._parse(query_method, repository_information)
                result = self._derived(parsed, returned_type, entity, query_method, repository_information)

        count: AotQuery | None = None
        if query_method.is_page_query:
            count = self._count(
                result, parsed, query_annotation, selector, entity, query_method, repository_information
            )
        return AotQueries.of(result, count)

    def get_query_return_type(self, query: AotQuery, returned_type: ReturnedType) -> QueryReturnType:
        if query.exists:
            return QueryReturnType.SCALAR
        if query.delete or returned_type.is_domain_type:
            return QueryReturnType.ENTITY
        if returned_type.is_projecting:
            return QueryReturnType.PROJECTION
        return QueryReturnType.SCALAR

    # ------------------------------------------------------------------
    # Result query
    # ------------------------------------------------------------------

    def _declared(
        self,
        query_string: str,
        native: bool,
        entity: EntityInformation,
        query_method: QueryMethod,
        repository_information: RepositoryInformation,
    ) -> StringAotQuery:
        sql = query_string if native else self._to_sql(query_string, entity, query_method, repository_information)
        sql, bindings = self._bind(sql, query_method, repository_information)
        return StringAotQuery(query_string=sql, native=native, parameter_bindings=bindings)

    def _named(
        self,
        query_annotation: QueryAnnotation | None,
        entity: EntityInformation,
        query_method: QueryMethod,
        repository_information: RepositoryInformation,
    ) -> NamedAotQuery | None:
        explicit = query_annotation.name if query_annotation is not None else ""
        name = explicit or f"{entity.entity_name}.{query_method.name}"
        definition = self._metamodel.named_query(name)
        if definition is None:
            if explicit:
                raise self._error(query_method, repository_information, f"no named query '{name}' is declared")
            return None
        return self._named_query(definition, entity, query_method, repository_information)

    def _named_query(
        self,
        definition: NamedQueryDefinition,
        entity: EntityInformation,
        query_method: QueryMethod,
        repository_information: RepositoryInformation,
    ) -> NamedAotQuery:
        declared = self._declared(definition.query, definition.native, entity, query_method, repository_information)
        return NamedAotQuery(
            query_string=declared.query_string,
            native=definition.native,
            parameter_bindings=declared.parameter_bindings,
            name=definition.name,
        )

    def _parse(self, query_method: QueryMethod, repository_information: RepositoryInformation) -> ParsedQuery:
        try:
            return self._parser.parse(query_method.name)
        except ValueError as exc:
            raise self._error(query_method, repository_information, str(exc)) from exc

    def _derived(
        self,
        parsed: ParsedQuery,
        returned_type: ReturnedType,
        entity: EntityInformation,
        query_method: QueryMethod,
        repository_information: RepositoryInformation,
    ) -> StringAotQuery:
        where, bindings = self._where(parsed, entity, query_method, repository_information)

        if parsed.subject == "count" and parsed.distinct:
            select = f"SELECT COUNT(DISTINCT {entity.column_for(entity.id_attributes[0])})"
        elif parsed.subject in ("count", "exists"):
            select = "SELECT COUNT(*)"
        else:
            if returned_type.is_projecting and parsed.subject == "find":
                columns = self._projection_columns(returned_type, entity, query_method, repository_information)
            else:
                columns = "*"
            select = f"SELECT DISTINCT {columns}" if parsed.distinct else f"SELECT {columns}"

        sql = f"{select} FROM {entity.table_name}{where}"
        if parsed.order_clauses and parsed.subject == "find":
            orders = ", ".join(
                f"{self._column(clause.field_name, entity, query_method, repository_information)} "
                f"{clause.direction.upper()}"
                for clause in parsed.order_clauses
            )
            sql = f"{sql} ORDER BY {orders}"

        return StringAotQuery(
            query_string=sql,
            native=True,
            parameter_bindings=bindings,
            limit=parsed.limit if parsed.subject == "find" else None,
            delete=parsed.subject == "delete",
            exists=parsed.subject == "exists",
        )

    def _where(
        self,
        parsed: ParsedQuery,
        entity: EntityInformation,
        query_method: QueryMethod,
        repository_information: RepositoryInformation,
    ) -> tuple[str, tuple[ParameterBinding, ...]]:
        parameters = list(query_method.bindable_parameters)
        if parsed.argument_count != len(parameters):
            raise self._error(
                query_method,
                repository_information,
                f"method name expects {parsed.argument_count} argument(s) but "
                f"{len(parameters)} bindable parameter(s) are declared",
            )
        if not parsed.predicates:
            return "", ()

        clauses: list[str] = []
        bindings: list[ParameterBinding] = []
        consumed = iter(parameters)
        for predicate in parsed.predicates:
            column = self._column(predicate.field_name, entity, query_method, repository_information)
            placeholders: list[str] = []
            for _ in range(predicate.argument_count):
                parameter = next(consumed)
                placeholders.append(f":{parameter.name}")
                bindings.append(self._derived_binding(predicate, parameter.name))
            template = _PREDICATE_SQL[predicate.operator]
            clauses.append(template.format(column=column, p0=_at(placeholders, 0), p1=_at(placeholders, 1)))

        where = clauses[0]
        for connector, clause in zip(parsed.connectors, clauses[1:]):
            where = f"{where} {connector.upper()} {clause}"
        return f" WHERE {where}", tuple(bindings)

    @staticmethod
    def _derived_binding(predicate: FieldPredicate, parameter: str) -> ParameterBinding:
        return ParameterBinding(
            name=parameter,
            parameter=parameter,
            like=_LIKE_OPERATORS.get(predicate.operator),
            expanding=predicate.operator in ("in", "not_in"),
            escape=predicate.operator in _LIKE_OPERATORS,
        )

    def _projection_columns(
        self,
        returned_type: ReturnedType,
        entity: EntityInformation,
        query_method: QueryMethod,
        repository_information: RepositoryInformation,
    ) -> str:
        columns = []
        for attribute in projection_fields(returned_type.returned_type):
            column = self._column(attribute, entity, query_method, repository_information)
            columns.append(column if column == attribute else f"{column} AS {attribute}")
        return ", ".join(columns)

    # ------------------------------------------------------------------
    # Count query
    # ------------------------------------------------------------------

    def _count(
        self,
        result: AotQuery,
        parsed: ParsedQuery | None,
        query_annotation: QueryAnnotation | None,
        selector: QueryEnhancerSelector,
        entity: EntityInformation,
        query_method: QueryMethod,
        repository_information: RepositoryInformation,
    ) -> AotQuery:
        if query_annotation is not None and query_annotation.count_query:
            return self._declared(
                query_annotation.count_query, query_annotation.native, entity, query_method, repository_information
            )

        if isinstance(result, NamedAotQuery):
            explicit = query_annotation.count_name if query_annotation is not None else ""
            count_name = explicit or f"{result.name}.count"
            definition = self._metamodel.named_query(count_name)
            if definition is not None:
                return self._named_query(definition, entity, query_method, repository_information)
            if explicit:
                raise self._error(
                    query_method, repository_information, f"no named count query '{count_name}' is declared"
                )

        if parsed is not None:
            where, bindings = self._where(parsed, entity, query_method, repository_information)
            return StringAotQuery(
                query_string=f"SELECT COUNT(*) FROM {entity.table_name}{where}",
                native=True,
                parameter_bindings=bindings,
            )

        count_projection = query_annotation.count_projection if query_annotation is not None else ""
        enhancer = enhancer_for(selector, DeclaredQuery(result.query_string, result.native))
        try:
            count_string = enhancer.create_count_query(count_projection or None)
        except ValueError as exc:
            raise self._error(query_method, repository_information, str(exc)) from exc
        return StringAotQuery(
            query_string=count_string,
            native=result.native,
            parameter_bindings=tuple(
                b for b in result.parameter_bindings if re.search(rf":{b.name}\b", count_string)
            ),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _to_sql(
        self,
        query_string: str,
        entity: EntityInformation,
        query_method: QueryMethod,
        repository_information: RepositoryInformation,
    ) -> str:
        """Rewrite an entity-style query to SQL against the mapped table.

        ``FROM Person p`` / ``UPDATE Person p`` become the table name,
        ``SELECT p`` becomes ``SELECT *``, ``COUNT(p)`` becomes ``COUNT(*)``
        and ``p.attribute`` becomes the mapped column name.
        """
        entity_name = re.escape(entity.entity_name)
        alias_match = re.search(
            rf"\b(?:from|update)\s+{entity_name}(?:\s+as)?\s+(?!(?:{_ALIAS_STOP_WORDS})\b)(\w+)",
            query_string,
            re.IGNORECASE,
        )
        alias = alias_match.group(1) if alias_match else None

        alias_pattern = rf"(?:(?:\s+as)?\s+{re.escape(alias)}\b)?" if alias else ""
        sql = re.sub(
            rf"\b(from|update)\s+{entity_name}\b{alias_pattern}",
            lambda m: f"{m.group(1)} {entity.table_name}",
            query_string,
            count=1,
            flags=re.IGNORECASE,
        )
        if alias is None:
            return sql

        escaped = re.escape(alias)
        id_column = entity.column_for(entity.id_attributes[0]) if entity.id_attributes else "*"
        sql = re.sub(rf"\bSELECT\s+(DISTINCT\s+)?{escaped}\b(?!\.)", r"SELECT \1*", sql, flags=re.IGNORECASE)
        sql = re.sub(
            rf"\bCOUNT\s*\(\s*DISTINCT\s+{escaped}\s*\)", f"COUNT(DISTINCT {id_column})", sql, flags=re.IGNORECASE
        )
        sql = re.sub(rf"\bCOUNT\s*\(\s*{escaped}\s*\)", "COUNT(*)", sql, flags=re.IGNORECASE)
        return re.sub(
            rf"\b{escaped}\.(\w+)",
            lambda m: self._column(m.group(1), entity, query_method, repository_information),
            sql,
        )

    def _bind(
        self, query_string: str, query_method: QueryMethod, repository_information: RepositoryInformation
    ) -> tuple[str, tuple[ParameterBinding, ...]]:
        """Collect ``:name`` placeholders, stripping ``%`` LIKE decorations around them."""
        parameters = {p.name: p for p in query_method.bindable_parameters}
        bindings: dict[str, ParameterBinding] = {}

        def replace(match: re.Match[str]) -> str:
            name = match.group("name")
            parameter = parameters.get(name)
            if parameter is None:
                raise self._error(
                    query_method, repository_information, f"query parameter ':{name}' has no matching method parameter"
                )
            like = _like_type(bool(match.group("prefix")), bool(match.group("suffix")))
            binding = ParameterBinding(
                name=name,
                parameter=name,
                like=like,
                expanding=_is_collection(parameter.annotation),
            )
            existing = bindings.setdefault(name, binding)
            if existing != binding:
                raise self._error(
                    query_method,
                    repository_information,
                    f"query parameter ':{name}' is bound with conflicting LIKE wildcards",
                )
            return f":{name}"

        return _NAMED_PARAMETER_RE.sub(replace, query_string), tuple(bindings.values())

    def _column(
        self,
        attribute: str,
        entity: EntityInformation,
        query_method: QueryMethod,
        repository_information: RepositoryInformation,
    ) -> str:
        column = entity.column_for(attribute)
        if column is None:
            raise self._error(
                query_method, repository_information, f"no property '{attribute}' found on {entity.entity_name}"
            )
        return column

    @staticmethod
    def _error(
        query_method: QueryMethod, repository_information: RepositoryInformation, reason: str
    ) -> QueryCreationException:
        return QueryCreationException(query_method.method.signature, repository_information.name, reason)


def _is_collection(annotation: object) -> bool:
    annotation = unwrap_optional(annotation)
    return annotation in _EXPANDING_ORIGINS or get_origin(annotation) in _EXPANDING_ORIGINS


def _at(values: list[str], index: int) -> str:
    return values[index] if index < len(values) else ""


def _like_type(prefix: bool, suffix: bool) -> LikeType | None:
    if prefix and suffix:
        return LikeType.CONTAINING
    if prefix:
        return LikeType.ENDING
    if suffix:
        return LikeType.STARTING
    return None
