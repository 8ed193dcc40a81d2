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
"""Repository introspection and the per-repository AOT context."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from functools import cached_property
from typing import Any, get_type_hints

from flyaot.config.properties import AotRepositoryProperties
from flyaot.core.config import Config
from flyaot.data.repository import Repository, is_stub
from flyaot.kernel.exceptions import RepositoryDefinitionException


class RepositoryInformation:
    """Domain type, id type and candidate query methods of a repository interface."""

    def __init__(self, repository_interface: type) -> None:
        name = f"{repository_interface.__module__}.{repository_interface.__qualname__}"
        if not (isinstance(repository_interface, type) and issubclass(repository_interface, Repository)):
            raise RepositoryDefinitionException(name, "not a subclass of Repository")
        domain_type = repository_interface._entity_type
        if domain_type is None:
            raise RepositoryDefinitionException(name, "declare it as Repository[Entity, ID] to expose the domain type")

        self._repository_interface = repository_interface
        self._domain_type: type = domain_type
        self._id_type: type | None = repository_interface._id_type
        self._name = name

    @property
    def repository_interface(self) -> type:
        return self._repository_interface

    @property
    def domain_type(self) -> type:
        return self._domain_type

    @property
    def id_type(self) -> type | None:
        return self._id_type

    @property
    def name(self) -> str:
        return self._name

    def get_query_methods(self) -> list[Callable[..., Any]]:
        """Public stub methods declared on the interface or its repository superclasses.

        Methods are returned in declaration order, base interfaces first; a
        redeclaration in a subclass replaces the inherited one in place.
        """
        methods: dict[str, Callable[..., Any]] = {}
        for klass in reversed(self._repository_interface.__mro__):
            if klass is Repository or not issubclass(klass, Repository):
                continue
            for attr_name, attr in vars(klass).items():
                if attr_name.startswith("_") or not inspect.isfunction(attr):
                    continue
                if is_stub(attr):
                    methods[attr_name] = attr
                else:
                    methods.pop(attr_name, None)
        return list(methods.values())

    def get_type_hints(self, method: Callable[..., Any]) -> dict[str, Any]:
        try:
            return get_type_hints(method)
        except NameError as exc:
            raise RepositoryDefinitionException(
                self._name, f"cannot resolve annotations of '{method.__name__}': {exc}"
            ) from exc


class AotRepositoryContext:
    """Everything the contributor knows about one repository in one build."""

    def __init__(self, repository_interface: type, config: Config | None = None) -> None:
        self._repository_interface = repository_interface
        self._config = config or Config()

    @property
    def repository_interface(self) -> type:
        return self._repository_interface

    @property
    def config(self) -> Config:
        return self._config

    @cached_property
    def repository_information(self) -> RepositoryInformation:
        return RepositoryInformation(self._repository_interface)

    @cached_property
    def properties(self) -> AotRepositoryProperties:
        return self._config.bind(AotRepositoryProperties)
