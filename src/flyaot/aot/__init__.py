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
"""flyaot AOT — build-time contribution of repository query methods.

The :class:`RepositoryContributor` classifies each query method of a
repository, resolves its queries against the :class:`AotMetamodel` and decides
between a generated method body, metadata for the runtime fallback, or no
contribution at all.
"""

from flyaot.aot.code_blocks import CodeBlock, QueryBlockBuilder, QueryExecutionBlockBuilder
from flyaot.aot.context import AotRepositoryContext, RepositoryInformation
from flyaot.aot.contribution import ContributionDecider, ContributionOutcome, Generated, MetadataOnly, Unsupported
from flyaot.aot.contributor import RepositoryContribution, RepositoryContributor
from flyaot.aot.entity_graph import AotEntityGraph, EntityGraphLookup
from flyaot.aot.metadata import write_metadata
from flyaot.aot.metamodel import AotMetamodel, EntityInformation
from flyaot.aot.queries import AotQueries, NamedAotQuery, StringAotQuery
from flyaot.aot.queries_factory import QueriesFactory
from flyaot.aot.query_method import QueryMethod, RepositoryMethod, classify
from flyaot.aot.support import AotRepositoryFragmentSupport

__all__ = [
    "AotEntityGraph",
    "AotMetamodel",
    "AotQueries",
    "AotRepositoryContext",
    "AotRepositoryFragmentSupport",
    "CodeBlock",
    "ContributionDecider",
    "ContributionOutcome",
    "EntityGraphLookup",
    "EntityInformation",
    "Generated",
    "MetadataOnly",
    "NamedAotQuery",
    "QueriesFactory",
    "QueryBlockBuilder",
    "QueryExecutionBlockBuilder",
    "QueryMethod",
    "RepositoryContribution",
    "RepositoryContributor",
    "RepositoryInformation",
    "RepositoryMethod",
    "StringAotQuery",
    "Unsupported",
    "classify",
    "write_metadata",
]
