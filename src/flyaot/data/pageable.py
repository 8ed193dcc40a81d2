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
"""Special repository method parameter types: Pageable, Sort, Limit and ScrollPosition.

Parameters annotated with one of these types are never bound into a query as
values; they shape the query instead (ordering, pagination, result limits,
keyset scrolling).
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Any, Literal


@dataclass(frozen=True)
class Order:
    """A single sort order: property name + direction."""

    property: str
    direction: Literal["asc", "desc"] = "asc"

    def __post_init__(self) -> None:
        if self.direction not in ("asc", "desc"):
            raise ValueError(f"direction must be 'asc' or 'desc', got {self.direction!r}")

    @staticmethod
    def asc(property: str) -> Order:
        return Order(property=property, direction="asc")

    @staticmethod
    def desc(property: str) -> Order:
        return Order(property=property, direction="desc")


@dataclass(frozen=True)
class Sort:
    """Collection of sort orders."""

    orders: tuple[Order, ...] = ()

    @staticmethod
    def by(*properties: str) -> Sort:
        """Create ascending sort by properties."""
        return Sort(orders=tuple(Order.asc(p) for p in properties))

    @staticmethod
    def unsorted() -> Sort:
        return Sort()

    @property
    def is_sorted(self) -> bool:
        return bool(self.orders)

    def and_then(self, other: Sort) -> Sort:
        """Combine sorts, appending *other*'s orders after this sort's orders."""
        return Sort(orders=self.orders + other.orders)


_UNPAGED_SENTINEL_SIZE = sys.maxsize


@dataclass(frozen=True)
class Pageable:
    """Pagination request: page number (1-based), size, and sort criteria."""

    page: int = 1
    size: int = 20
    sort: Sort = field(default_factory=Sort)

    def __post_init__(self) -> None:
        if self.size != _UNPAGED_SENTINEL_SIZE:
            if self.page < 1:
                raise ValueError(f"page must be >= 1, got {self.page}")
            if self.size < 1:
                raise ValueError(f"size must be >= 1, got {self.size}")

    @staticmethod
    def of(page: int, size: int, sort: Sort | None = None) -> Pageable:
        return Pageable(page=page, size=size, sort=sort or Sort())

    @staticmethod
    def unpaged(sort: Sort | None = None) -> Pageable:
        """No pagination (fetch all)."""
        return Pageable(page=1, size=_UNPAGED_SENTINEL_SIZE, sort=sort or Sort())

    @property
    def is_paged(self) -> bool:
        return self.size != _UNPAGED_SENTINEL_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


@dataclass(frozen=True)
class Limit:
    """Maximum number of results a query may return. ``None`` means unlimited."""

    max: int | None = None

    def __post_init__(self) -> None:
        if self.max is not None and self.max < 1:
            raise ValueError(f"limit must be >= 1, got {self.max}")

    @staticmethod
    def of(max: int) -> Limit:
        return Limit(max=max)

    @staticmethod
    def unlimited() -> Limit:
        return Limit()

    @property
    def is_limited(self) -> bool:
        return self.max is not None


class ScrollPosition:
    """Position within a scrolled result.

    Scrolling is resolved by the runtime repository support; generated
    repository code never assembles a :class:`~flyaot.data.page.Window`.
    """

    @staticmethod
    def offset(offset: int = 0) -> OffsetScrollPosition:
        return OffsetScrollPosition(offset=offset)

    @staticmethod
    def keyset(**keys: Any) -> KeysetScrollPosition:
        return KeysetScrollPosition(keys=tuple(sorted(keys.items())))


@dataclass(frozen=True)
class OffsetScrollPosition(ScrollPosition):
    """Scroll position expressed as a row offset."""

    offset: int = 0

    @property
    def is_initial(self) -> bool:
        return self.offset == 0


@dataclass(frozen=True)
class KeysetScrollPosition(ScrollPosition):
    """Scroll position expressed as the sort-key values of the last row seen."""

    keys: tuple[tuple[str, Any], ...] = ()

    @property
    def is_initial(self) -> bool:
        return not self.keys
