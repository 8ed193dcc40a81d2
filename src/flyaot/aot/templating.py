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
"""Jinja2-based renderer for generated repository method code."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from jinja2 import Environment, PackageLoader, StrictUndefined

CONSTRUCTION_TEMPLATE = "query_construction.py.j2"
EXECUTION_TEMPLATE = "query_execution.py.j2"
METHOD_TEMPLATE = "method.py.j2"


def _get_env() -> Environment:
    """Create the Jinja2 template environment."""
    return Environment(
        loader=PackageLoader("flyaot.aot", "templates"),
        keep_trailing_newline=True,
        lstrip_blocks=True,
        trim_blocks=True,
        undefined=StrictUndefined,
        autoescape=False,
    )


_ENV = _get_env()


def render_fragment(template_name: str, context: Mapping[str, object]) -> tuple[str, ...]:
    """Render a body fragment template into its non-blank source lines."""
    rendered = _ENV.get_template(template_name).render(context)
    return tuple(line for line in rendered.splitlines() if line.strip())


def render_method(name: str, signature: str, lines: Sequence[str]) -> str:
    """Render a complete ``async def`` around generated body lines."""
    return _ENV.get_template(METHOD_TEMPLATE).render(name=name, signature=signature, lines=lines)
