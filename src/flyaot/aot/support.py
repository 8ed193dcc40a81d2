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
"""Runtime base class for generated repository fragments."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Executable

from flyaot.data.annotations import QueryRewriter
from flyaot.data.page import Page, Slice
from flyaot.data.pageable import Limit, Order, Pageable, Sort
from flyaot.data.query_enhancer import DEFAULT_SELECTOR, DeclaredQuery, QueryEnhancerSelector, enhancer_for

T = TypeVar("T")


class AotRepositoryFragmentSupport(Generic[T]):
    """Helpers shared by generated query method bodies.

    Generated methods build SQL text, so sort properties are translated
    from entity attribute names to mapped column names here, using the same
    query enhancer selector the build used for count queries.
    """

    def __init__(
        self,
        session: AsyncSession,
        model: type[T],
        selector: QueryEnhancerSelector | None = None,
    ) -> None:
        self._session = session
        self._model = model
        self._selector = selector or DEFAULT_SELECTOR
        self._columns = {attr.key: attr.columns[0].name for attr in inspect(model).column_attrs}

    def _apply_sorting(self, query_string: str, sort: Sort | None, native: bool = False) -> str:
        if sort is None or not sort.is_sorted:
            return query_string
        mapped = Sort(orders=tuple(Order(self._column(o.property), o.direction) for o in sort.orders))
        return enhancer_for(self._selector, DeclaredQuery(query_string, native)).apply_sorting(mapped)

    def _column(self, property: str) -> str:
        """Resolve a sort property to its mapped column; only mapped attributes may be sorted on."""
        try:
            return self._columns[property]
        except KeyError:
            raise ValueError(f"No property '{property}' found on {self._model.__name__}") from None

    @staticmethod
    def _apply_pagination(query_string: str, pageable: Pageable, extra: int = 0) -> str:
        if not pageable.is_paged:
            return query_string
        return f"{query_string} LIMIT {int(pageable.size) + extra} OFFSET {int(pageable.offset)}"

    @staticmethod
    def _apply_limit(query_string: str, limit: Limit | int | None) -> str:
        if isinstance(limit, Limit):
            limit = limit.max
        if limit is None:
            return query_string
        return f"{query_string} LIMIT {int(limit)}"

    @staticmethod
    def _escape_like(value: Any) -> str:
        """Escape LIKE wildcards so the value matches literally; pairs with ``ESCAPE '\\'``."""
        return str(value).replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

    @staticmethod
    def _rewrite_query(query_string: str, rewriter: type[QueryRewriter], sort: Sort) -> str:
        return rewriter().rewrite(query_string, sort)

    async def _get_page(
        self,
        items: list[Any],
        pageable: Pageable,
        count_query: Executable,
        count_parameters: dict[str, Any],
    ) -> Page[Any]:
        """Assemble a page, skipping the count query when the total is already known."""
        if not pageable.is_paged:
            return Page(items=items, total=len(items), page=1, size=max(len(items), 1))
        if pageable.offset == 0 and len(items) < pageable.size:
            total = len(items)
        elif items and len(items) < pageable.size:
            total = pageable.offset + len(items)
        else:
            total = (await self._session.execute(count_query, count_parameters)).scalar_one()
        return Page(items=items, total=total, page=pageable.page, size=pageable.size)

    @staticmethod
    def _get_slice(items: list[Any], pageable: Pageable) -> Slice[Any]:
        """Trim the look-ahead row fetched to detect a following slice."""
        if not pageable.is_paged:
            return Slice(items=items, page=1, size=max(len(items), 1), has_next=False)
        has_next = len(items) > pageable.size
        return Slice(items=items[: pageable.size], page=pageable.page, size=pageable.size, has_next=has_next)
