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
"""Projection marker and utilities for interface and DTO projections."""

from __future__ import annotations

import dataclasses
from typing import get_type_hints

_PROJECTION_MARKER = "__flyaot_projection__"


def projection(cls: type) -> type:
    """Mark a Protocol (interface projection) or dataclass (DTO projection).

    Projections declare a subset of entity fields. Derived queries select
    only those columns and map each row onto the projection.

    Usage::

        @projection
        class PersonSummary(Protocol):
            first_name: str
            last_name: str
    """
    setattr(cls, _PROJECTION_MARKER, True)
    return cls


def is_projection(cls: object) -> bool:
    """Check if a type is marked as a projection."""
    return isinstance(cls, type) and getattr(cls, _PROJECTION_MARKER, False) is True


def is_dto_projection(cls: type) -> bool:
    """A DTO projection is a projection dataclass that can be instantiated from a row."""
    return is_projection(cls) and dataclasses.is_dataclass(cls)


def projection_fields(cls: type) -> list[str]:
    """Get the field names declared on a projection type, in declaration order."""
    if dataclasses.is_dataclass(cls):
        return [f.name for f in dataclasses.fields(cls)]
    hints = get_type_hints(cls)
    return [name for name in hints if not name.startswith("_")]
