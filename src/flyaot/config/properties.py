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
"""Repository contribution configuration properties."""

from __future__ import annotations

from dataclasses import dataclass

from flyaot.core.config import config_properties


@config_properties(prefix="flyaot.repositories")
@dataclass
class AotRepositoryProperties:
    """Configuration for AOT repository contribution (flyaot.repositories.*).

    query_enhancer_selector is an import path (package.module:Class or
    package.module.Class); empty selects the default selector.
    """

    query_enhancer_selector: str = ""
    output_dir: str = "build/flyaot"
    include_code: bool = False
