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
"""Repository contributor: entry point of the AOT pipeline for one repository.

Usage::

    metamodel = AotMetamodel.from_base(Base)
    contributor = RepositoryContributor(AotRepositoryContext(PersonRepository, config), metamodel)
    contribution = contributor.contribute()
    for outcome in contribution.outcomes:
        ...
"""

from __future__ import annotations

import importlib
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog

from flyaot.aot.context import AotRepositoryContext, RepositoryInformation
from flyaot.aot.contribution import ContributionDecider, ContributionOutcome, Generated, MetadataOnly, Unsupported
from flyaot.aot.entity_graph import EntityGraphLookup
from flyaot.aot.metamodel import AotMetamodel, EntityInformation
from flyaot.aot.queries_factory import QueriesFactory
from flyaot.aot.query_method import classify
from flyaot.data.query_enhancer import DEFAULT_SELECTOR, QueryEnhancerSelector
from flyaot.kernel.exceptions import ConfigurationException, RepositoryDefinitionException

logger = structlog.get_logger("flyaot.aot.contributor")


def load_selector(import_path: str) -> QueryEnhancerSelector:
    """Load a :class:`QueryEnhancerSelector` from ``"package.module:Name"`` or ``"package.module.Name"``.

    Classes are instantiated without arguments; other objects are used as-is.
    An empty path selects :data:`~flyaot.data.query_enhancer.DEFAULT_SELECTOR`.
    """
    if not import_path:
        return DEFAULT_SELECTOR
    module_name, sep, attr = import_path.partition(":")
    if not sep:
        module_name, _, attr = import_path.rpartition(".")
    try:
        target = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError, ValueError) as exc:
        raise ConfigurationException(
            f"Cannot load query enhancer selector '{import_path}': {exc}",
            code="AOT_CONFIGURATION",
            context={"query_enhancer_selector": import_path},
        ) from exc
    selector = target() if isinstance(target, type) else target
    if not isinstance(selector, QueryEnhancerSelector):
        raise ConfigurationException(
            f"'{import_path}' is not a QueryEnhancerSelector",
            code="AOT_CONFIGURATION",
            context={"query_enhancer_selector": import_path},
        )
    return selector


@dataclass(frozen=True)
class RepositoryContribution:
    """Per-method outcomes of one repository, in declaration order."""

    repository: str
    domain_type: type
    outcomes: tuple[ContributionOutcome, ...]

    @property
    def generated(self) -> tuple[Generated, ...]:
        return tuple(o for o in self.outcomes if isinstance(o, Generated))

    @property
    def metadata_only(self) -> tuple[MetadataOnly, ...]:
        return tuple(o for o in self.outcomes if isinstance(o, MetadataOnly))

    @property
    def skipped(self) -> tuple[Unsupported, ...]:
        return tuple(o for o in self.outcomes if isinstance(o, Unsupported))

    def outcome(self, method_name: str) -> ContributionOutcome:
        for outcome in self.outcomes:
            if outcome.method.name == method_name:
                return outcome
        raise KeyError(method_name)

    def to_dict(self, include_code: bool = False) -> dict[str, Any]:
        """Stable document: methods sorted by name, metadata as serialized."""
        methods = []
        for outcome in sorted(self.outcomes, key=lambda o: o.method.name):
            entry: dict[str, Any] = {
                "name": outcome.method.name,
                "signature": outcome.method.signature,
                "status": outcome.status,
            }
            if isinstance(outcome, (MetadataOnly, Generated)):
                entry["metadata"] = outcome.metadata.serialize()
            if isinstance(outcome, (MetadataOnly, Unsupported)) and outcome.reason:
                entry["reason"] = outcome.reason
            if include_code and isinstance(outcome, Generated):
                entry["imports"] = outcome.body.import_lines()
                entry["code"] = list(outcome.body.lines)
            methods.append(entry)
        return {
            "repository": self.repository,
            "domain-type": f"{self.domain_type.__module__}.{self.domain_type.__qualname__}",
            "methods": methods,
        }


class RepositoryContributor:
    """Wire the per-repository collaborators and contribute query methods.

    The metamodel, entity information and selector are shared read-only by
    every method contribution of the repository.
    """

    def __init__(
        self,
        repository_context: AotRepositoryContext,
        metamodel: AotMetamodel,
        selector: QueryEnhancerSelector | None = None,
    ) -> None:
        self._context = repository_context
        self._metamodel = metamodel
        self._repository_information = repository_context.repository_information

        domain_type = self._repository_information.domain_type
        if not metamodel.is_managed(domain_type):
            raise RepositoryDefinitionException(
                self._repository_information.name, f"domain type {domain_type.__name__} is not a managed entity"
            )
        self._entity_information = metamodel.entity(domain_type)
        self._selector = selector or load_selector(repository_context.properties.query_enhancer_selector)

        self._queries_factory = QueriesFactory(metamodel)
        self._entity_graph_lookup = EntityGraphLookup(metamodel)
        self._decider = ContributionDecider(
            self._repository_information, self._queries_factory, self._entity_graph_lookup, self._selector
        )

    @property
    def repository_information(self) -> RepositoryInformation:
        return self._repository_information

    @property
    def entity_information(self) -> EntityInformation:
        return self._entity_information

    @property
    def selector(self) -> QueryEnhancerSelector:
        return self._selector

    def get_metamodel(self) -> AotMetamodel:
        return self._metamodel

    def contribute_query_method(self, method: Callable[..., Any]) -> ContributionOutcome:
        """Classify one repository stub and decide its contribution."""
        query_method = classify(method, self._repository_information, self._metamodel)
        outcome = self._decider.decide(query_method)
        log = logger.bind(repository=self._repository_information.name, method=query_method.name)
        if isinstance(outcome, Generated):
            log.debug("aot_method_generated", lines=len(outcome.body.lines))
        elif isinstance(outcome, MetadataOnly):
            log.debug("aot_method_metadata_only", reason=outcome.reason, metadata=outcome.metadata.serialize())
        else:
            log.debug("aot_method_unsupported", reason=outcome.reason)
        return outcome

    def contribute(self) -> RepositoryContribution:
        """Contribute every query method of the repository."""
        outcomes = tuple(self.contribute_query_method(m) for m in self._repository_information.get_query_methods())
        logger.info(
            "aot_repository_contributed",
            repository=self._repository_information.name,
            generated=sum(isinstance(o, Generated) for o in outcomes),
            metadata_only=sum(isinstance(o, MetadataOnly) for o in outcomes),
            unsupported=sum(isinstance(o, Unsupported) for o in outcomes),
        )
        return RepositoryContribution(
            repository=self._repository_information.name,
            domain_type=self._repository_information.domain_type,
            outcomes=outcomes,
        )
