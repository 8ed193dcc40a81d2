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
"""Declarative repository base class.

A repository interface subclasses ``Repository[Entity, ID]`` and declares
query methods as stubs::

    class PersonRepository(Repository[Person, int]):
        async def find_by_last_name(self, last_name: str) -> list[Person]: ...

The AOT contributor reads the generic arguments for the domain and id types
and treats every public stub as a candidate query method.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar, get_args, get_origin

T = TypeVar("T")
ID = TypeVar("ID")


class Repository(Generic[T, ID]):
    """Marker base for declarative repository interfaces.

    Type Parameters:
        T: The entity type (a SQLAlchemy mapped class).
        ID: The primary key type (e.g. int, UUID, str).
    """

    _entity_type: type | None = None
    _id_type: type | None = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        for base in getattr(cls, "__orig_bases__", []):
            if get_origin(base) is Repository:
                args = get_args(base)
                if args and not isinstance(args[0], TypeVar):
                    cls._entity_type = args[0]
                if len(args) > 1 and not isinstance(args[1], TypeVar):
                    cls._id_type = args[1]
                break


def is_stub(method: Any) -> bool:
    """Return ``True`` if *method* is a stub (body is ``...`` or ``pass``).

    A stub compiled from ``...`` or ``pass`` carries no constants beyond
    ``None``, ``Ellipsis`` and its own docstring.
    """
    func = method
    if isinstance(func, (staticmethod, classmethod)):
        func = func.__func__
    if hasattr(func, "__wrapped__"):
        func = func.__wrapped__

    code = getattr(func, "__code__", None)
    if code is None:
        return False

    consts = set(code.co_consts)
    consts.discard(None)
    consts.discard(Ellipsis)
    consts.discard(func.__doc__)
    return len(consts) == 0
