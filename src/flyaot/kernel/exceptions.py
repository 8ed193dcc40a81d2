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
"""Unified exception hierarchy for flyaot.

All build-time errors inherit from FlyAotException so that a build tool can
catch one type and report the offending repository declaration.

Categories:
- RepositoryDefinitionException: the repository interface itself is malformed
- ResolutionException: a query or entity graph cannot be resolved for a method
- ConfigurationException: invalid contributor configuration
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class FlyAotException(Exception):
    """Base exception for all flyaot errors.

    Carries an optional error code and context dict for structured error data.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "AOT_QUERY_CREATION").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Definition Exceptions
# =============================================================================


class RepositoryDefinitionException(FlyAotException):
    """A repository interface cannot be introspected (no domain type, unmanaged entity, ...)."""

    def __init__(self, repository: str, reason: str) -> None:
        self.repository = repository
        self.reason = reason
        super().__init__(
            message=f"Invalid repository definition '{repository}': {reason}",
            code="AOT_REPOSITORY_DEFINITION",
            context={"repository": repository},
        )


class ConfigurationException(FlyAotException):
    """Contributor configuration is invalid (e.g. unknown selector import path)."""


# =============================================================================
# Resolution Exceptions
# =============================================================================


class ResolutionException(FlyAotException):
    """A query method could not be resolved at build time.

    The message names the method signature and its declaring interface so the
    build output points at the offending declaration.
    """

    error_code = "AOT_RESOLUTION"
    subject = "resolve"

    def __init__(self, method: str, repository: str, reason: str) -> None:
        self.method = method
        self.repository = repository
        self.reason = reason
        super().__init__(
            message=f"Failed to {self.subject} for method '{method}' declared on '{repository}': {reason}",
            code=self.error_code,
            context={"method": method, "repository": repository},
        )


class QueryCreationException(ResolutionException):
    """The query for a repository method cannot be declared, looked up or derived."""

    error_code = "AOT_QUERY_CREATION"
    subject = "create query"


class EntityGraphResolutionException(ResolutionException):
    """A declared entity graph references attributes the metamodel does not know."""

    error_code = "AOT_ENTITY_GRAPH"
    subject = "resolve entity graph"
