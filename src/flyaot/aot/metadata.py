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
"""Repository metadata documents written next to the build output."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flyaot.aot.contributor import RepositoryContribution


def metadata_file_name(contribution: RepositoryContribution) -> str:
    return f"{contribution.repository}.json"


def dumps(contribution: RepositoryContribution, include_code: bool = False) -> str:
    """Serialize with sorted keys so identical input gives byte-identical output."""
    return json.dumps(contribution.to_dict(include_code=include_code), indent=2, sort_keys=True) + "\n"


def write_metadata(contribution: RepositoryContribution, output_dir: str | Path, include_code: bool = False) -> Path:
    """Write ``<module>.<Repository>.json`` into *output_dir* and return its path."""
    path = Path(output_dir) / metadata_file_name(contribution)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps(contribution, include_code=include_code))
    return path
