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
"""Result wrapper types for paginated, sliced and scrolled queries.

The wrapper a repository method declares as its return type decides how the
query is executed: a :class:`Page` needs an additional count query, a
:class:`Slice` fetches one extra row to detect a next slice, and a
:class:`Window` is assembled from a scroll position.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, TypeVar

from flyaot.data.pageable import ScrollPosition

T = TypeVar("T")


@dataclass(frozen=True)
class Slice(Generic[T]):
    """A chunk of results that knows whether more results follow."""

    items: list[T]
    page: int
    size: int
    has_next: bool

    @property
    def has_previous(self) -> bool:
        return self.page > 1


@dataclass(frozen=True)
class Page(Generic[T]):
    """A page of results from a paginated query.

    Attributes:
        items: The items on this page.
        total: Total number of items across all pages.
        page: Current page number (1-based).
        size: Maximum items per page.
    """

    items: list[T]
    total: int
    page: int
    size: int

    @property
    def total_pages(self) -> int:
        if self.total == 0:
            return 0
        return math.ceil(self.total / self.size)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1


@dataclass(frozen=True)
class Window(Generic[T]):
    """A scrolled window of results with the positions to continue from."""

    items: list[T]
    positions: list[ScrollPosition]
    has_next: bool

    def position_at(self, index: int) -> ScrollPosition:
        return self.positions[index]
