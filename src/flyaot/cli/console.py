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
"""Shared Rich console for CLI output."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table
from rich.theme import Theme

if TYPE_CHECKING:
    from flyaot.aot.contributor import RepositoryContribution

FLYAOT_THEME = Theme({
    "info": "cyan",
    "success": "bold green",
    "warning": "bold yellow",
    "error": "bold red",
    "flyaot": "bold magenta",
    "dim": "dim",
})

_STATUS_STYLES = {
    "generated": "success",
    "metadata-only": "warning",
    "unsupported": "dim",
}

console = Console(theme=FLYAOT_THEME)


def print_banner() -> None:
    """Print the flyaot ASCII banner with colors."""
    from flyaot import __version__

    banner = (
        "[flyaot]"
        "    ______      ___   ____  ______\n"
        "   / __/ /_ __ / _ | / __ \\/_  __/\n"
        "  / _// / // // __ |/ /_/ / / /\n"
        " /_/ /_/\\_, //_/ |_|\\____/ /_/\n"
        "       /___/[/flyaot]"
    )
    console.print(banner)
    console.print(f"  [dim]:: flyaot :: ahead-of-time repositories (v{__version__})[/dim]")
    console.print("  [dim]Copyright 2026 Firefly Software Solutions Inc. | Apache 2.0 License[/dim]\n")


def print_contribution_table(contribution: RepositoryContribution) -> None:
    """Print one row per query method with its contribution status."""
    table = Table(title=f"[flyaot]{contribution.repository}[/flyaot]", border_style="dim")
    table.add_column("Method", style="bold")
    table.add_column("Status")
    table.add_column("Metadata / Reason", style="dim")

    for outcome in contribution.outcomes:
        style = _STATUS_STYLES[outcome.status]
        detail = ""
        metadata = getattr(outcome, "metadata", None)
        if metadata is not None:
            detail = ", ".join(f"{k}={v}" for k, v in sorted(metadata.serialize().items()))
        reason = getattr(outcome, "reason", "")
        if reason:
            detail = f"{detail} ({reason})" if detail else reason
        table.add_row(escape(outcome.method.signature), f"[{style}]{outcome.status}[/{style}]", escape(detail))

    console.print(table)
    console.print(
        f"  [success]{len(contribution.generated)} generated[/success], "
        f"[warning]{len(contribution.metadata_only)} metadata-only[/warning], "
        f"[dim]{len(contribution.skipped)} unsupported[/dim]\n"
    )


def print_code(source: str) -> None:
    """Print generated Python source with syntax highlighting."""
    console.print(Syntax(source, "python", theme="ansi_dark", background_color="default"))
