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
"""Query method classification.

:class:`RepositoryMethod` is the immutable description of a repository stub
as declared: parameters with their roles, return type and declarative
hints. :class:`QueryMethod` wraps it with every fact the contribution
decider branches on, computed once:

* query kind: procedure, modifying, page, slice, scroll, collection, and for
  derived queries count / exists / delete;
* parameter shape: scroll position, dynamic projection, pageable, sort, limit;
* :class:`ReturnedType`: domain type, projection or scalar behind the wrapper.
"""

from __future__ import annotations

import inspect
import types
from collections.abc import Callable, Collection, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import TYPE_CHECKING, Any, TypeVar, Union, get_args, get_origin

from flyaot.data.annotations import DeclaredAnnotations
from flyaot.data.page import Page, Slice, Window
from flyaot.data.pageable import Limit, Pageable, ScrollPosition, Sort
from flyaot.data.projection import is_dto_projection, is_projection
from flyaot.data.query_parser import ParsedQuery, QueryMethodParser
from flyaot.kernel.exceptions import RepositoryDefinitionException

if TYPE_CHECKING:
    from flyaot.aot.context import RepositoryInformation
    from flyaot.aot.metamodel import AotMetamodel, EntityInformation

_NONE_TYPE = type(None)
_COLLECTION_ORIGINS = (list, tuple, set, frozenset, Sequence, Collection, Iterable)

_parser = QueryMethodParser()


class ParameterRole(str, Enum):
    BINDABLE = "bindable"
    PAGEABLE = "pageable"
    SORT = "sort"
    LIMIT = "limit"
    SCROLL_POSITION = "scroll_position"
    DYNAMIC_PROJECTION = "dynamic_projection"


def unwrap_optional(annotation: Any) -> Any:
    """``X | None`` -> ``X``; anything else unchanged."""
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(annotation) if a is not _NONE_TYPE]
        if len(args) == 1:
            return args[0]
    return annotation


def is_void_type(annotation: Any) -> bool:
    return annotation is None or annotation is _NONE_TYPE


def returns_modifying(annotation: Any) -> bool:
    """Whether a modifying query may return this type (an update count)."""
    return unwrap_optional(annotation) is int


def _may_omit_return(name: str, annotations: DeclaredAnnotations) -> bool:
    """Modifying methods, procedures and derived deletes default to returning nothing."""
    if annotations.modifying is not None or annotations.procedure is not None:
        return True
    return _parser.is_derivable(name) and name.startswith(("delete_", "remove_"))


def type_name(annotation: Any) -> str:
    """Short rendering of an annotation for signatures: ``Page[Person]``, ``int | None``."""
    if is_void_type(annotation):
        return "None"
    if annotation is Ellipsis:
        return "..."
    origin = get_origin(annotation)
    args = get_args(annotation)
    if origin is Union or origin is types.UnionType:
        return " | ".join(type_name(a) for a in args)
    if origin is not None and args:
        return f"{type_name(origin)}[{', '.join(type_name(a) for a in args)}]"
    if isinstance(annotation, (type, TypeVar)):
        return annotation.__name__
    return repr(annotation).replace("typing.", "")


def _is_subclass(annotation: Any, base: type) -> bool:
    return isinstance(annotation, type) and issubclass(annotation, base)


def _parameter_role(annotation: Any) -> ParameterRole:
    annotation = unwrap_optional(annotation)
    if _is_subclass(annotation, Pageable):
        return ParameterRole.PAGEABLE
    if _is_subclass(annotation, Sort):
        return ParameterRole.SORT
    if _is_subclass(annotation, Limit):
        return ParameterRole.LIMIT
    if _is_subclass(annotation, ScrollPosition):
        return ParameterRole.SCROLL_POSITION
    if annotation is type or get_origin(annotation) is type:
        return ParameterRole.DYNAMIC_PROJECTION
    return ParameterRole.BINDABLE


# ---------------------------------------------------------------------------
# Declared method
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MethodParameter:
    name: str
    annotation: Any
    index: int
    role: ParameterRole

    @property
    def is_bindable(self) -> bool:
        return self.role is ParameterRole.BINDABLE


@dataclass(frozen=True)
class RepositoryMethod:
    """A repository stub as declared on its interface."""

    name: str
    function: Callable[..., Any]
    repository: str
    domain_type: type
    parameters: tuple[MethodParameter, ...]
    return_type: Any
    annotations: DeclaredAnnotations

    @classmethod
    def from_function(
        cls, function: Callable[..., Any], repository_information: RepositoryInformation
    ) -> RepositoryMethod:
        hints = repository_information.get_type_hints(function)
        parameters: list[MethodParameter] = []
        for index, param in enumerate(list(inspect.signature(function).parameters.values())[1:]):
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                raise RepositoryDefinitionException(
                    repository_information.name,
                    f"query method '{function.__name__}' must not declare *args or **kwargs",
                )
            annotation = hints.get(param.name, Any)
            parameters.append(
                MethodParameter(name=param.name, annotation=annotation, index=index, role=_parameter_role(annotation))
            )
        annotations = DeclaredAnnotations.of(function)
        if "return" not in hints and not _may_omit_return(function.__name__, annotations):
            raise RepositoryDefinitionException(
                repository_information.name,
                f"query method '{function.__name__}' must declare a return type",
            )
        return cls(
            name=function.__name__,
            function=function,
            repository=repository_information.name,
            domain_type=repository_information.domain_type,
            parameters=tuple(parameters),
            return_type=hints.get("return", _NONE_TYPE),
            annotations=annotations,
        )

    @property
    def signature(self) -> str:
        params = ", ".join(f"{p.name}: {type_name(p.annotation)}" for p in self.parameters)
        return f"{self.name}({params}) -> {type_name(self.return_type)}"


# ---------------------------------------------------------------------------
# Returned type
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReturnedType:
    """What a query method hands back once its wrapper is removed."""

    domain_type: type
    returned_type: Any
    wrapper: Any = None

    @classmethod
    def of(cls, return_type: Any, domain_type: type) -> ReturnedType:
        declared = unwrap_optional(return_type)
        origin = get_origin(declared)
        args = get_args(declared)
        wrapper = None
        element = declared
        if origin in (Page, Slice, Window) or origin in _COLLECTION_ORIGINS:
            wrapper = origin
            element = args[0] if args else domain_type
        if isinstance(element, TypeVar):
            element = domain_type
        return cls(domain_type=domain_type, returned_type=element, wrapper=wrapper)

    @property
    def is_domain_type(self) -> bool:
        return self.returned_type is self.domain_type

    @property
    def is_projecting(self) -> bool:
        return not self.is_domain_type and is_projection(self.returned_type)

    @property
    def is_dto_projection(self) -> bool:
        return self.is_projecting and is_dto_projection(self.returned_type)

    @property
    def is_scalar(self) -> bool:
        return not self.is_domain_type and not self.is_projecting


# ---------------------------------------------------------------------------
# Classified view
# ---------------------------------------------------------------------------


class QueryMethod:
    """Classification view over a :class:`RepositoryMethod`."""

    def __init__(self, method: RepositoryMethod, entity_information: EntityInformation) -> None:
        self._method = method
        self._entity_information = entity_information
        self._returned_type = ReturnedType.of(method.return_type, method.domain_type)

    def __repr__(self) -> str:
        return f"QueryMethod({self._method.repository}.{self._method.signature})"

    @property
    def method(self) -> RepositoryMethod:
        return self._method

    @property
    def name(self) -> str:
        return self._method.name

    @property
    def annotations(self) -> DeclaredAnnotations:
        return self._method.annotations

    @property
    def entity_information(self) -> EntityInformation:
        return self._entity_information

    @property
    def returned_type(self) -> ReturnedType:
        return self._returned_type

    @property
    def parameters(self) -> tuple[MethodParameter, ...]:
        return self._method.parameters

    # -- query kind ------------------------------------------------------

    @property
    def is_procedure_query(self) -> bool:
        return self.annotations.procedure is not None

    @property
    def is_modifying_query(self) -> bool:
        return self.annotations.modifying is not None

    @property
    def is_page_query(self) -> bool:
        return self._returned_type.wrapper is Page

    @property
    def is_slice_query(self) -> bool:
        return self._returned_type.wrapper is Slice

    @property
    def is_scroll_query(self) -> bool:
        return self._returned_type.wrapper is Window

    @property
    def is_collection_query(self) -> bool:
        return self._returned_type.wrapper in _COLLECTION_ORIGINS

    @property
    def has_declared_query(self) -> bool:
        query = self.annotations.query
        return query is not None and bool(query.value or query.name)

    @cached_property
    def derived_query(self) -> ParsedQuery | None:
        """Parsed method name, for methods without declared query text."""
        if self.has_declared_query or not _parser.is_derivable(self.name):
            return None
        try:
            return _parser.parse(self.name)
        except ValueError:
            return None

    @property
    def is_count_query(self) -> bool:
        return self.derived_query is not None and self.derived_query.subject == "count"

    @property
    def is_exists_query(self) -> bool:
        return self.derived_query is not None and self.derived_query.subject == "exists"

    @property
    def is_delete_query(self) -> bool:
        return self.derived_query is not None and self.derived_query.subject == "delete"

    # -- return shape ----------------------------------------------------

    @property
    def return_type(self) -> Any:
        return self._method.return_type

    @property
    def returns_update_count(self) -> bool:
        return returns_modifying(self.return_type)

    @property
    def returns_void(self) -> bool:
        return is_void_type(self.return_type)

    # -- parameter shape -------------------------------------------------

    def _parameter(self, role: ParameterRole) -> MethodParameter | None:
        return next((p for p in self.parameters if p.role is role), None)

    @property
    def bindable_parameters(self) -> tuple[MethodParameter, ...]:
        return tuple(p for p in self.parameters if p.is_bindable)

    @property
    def has_scroll_position_parameter(self) -> bool:
        return self._parameter(ParameterRole.SCROLL_POSITION) is not None

    @property
    def has_dynamic_projection(self) -> bool:
        return self._parameter(ParameterRole.DYNAMIC_PROJECTION) is not None

    @property
    def pageable_parameter(self) -> MethodParameter | None:
        return self._parameter(ParameterRole.PAGEABLE)

    @property
    def sort_parameter(self) -> MethodParameter | None:
        return self._parameter(ParameterRole.SORT)

    @property
    def limit_parameter(self) -> MethodParameter | None:
        return self._parameter(ParameterRole.LIMIT)


def classify(
    function: Callable[..., Any],
    repository_information: RepositoryInformation,
    metamodel: AotMetamodel,
) -> QueryMethod:
    """Build the :class:`QueryMethod` view for one repository stub."""
    domain_type = repository_information.domain_type
    if not metamodel.is_managed(domain_type):
        raise RepositoryDefinitionException(
            repository_information.name, f"domain type {domain_type.__name__} is not a managed entity"
        )
    method = RepositoryMethod.from_function(function, repository_information)
    return QueryMethod(method, metamodel.entity(domain_type))
