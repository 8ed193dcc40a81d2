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
"""'flyaot contribute' — contribute the query methods of one repository."""

from __future__ import annotations

import importlib
from pathlib import Path

import click
from rich.markup import escape

from flyaot.aot.code_blocks import render_method_source
from flyaot.aot.context import AotRepositoryContext
from flyaot.aot.contributor import RepositoryContributor
from flyaot.aot.metadata import write_metadata
from flyaot.aot.metamodel import AotMetamodel
from flyaot.cli.console import console, print_code, print_contribution_table
from flyaot.core.config import Config
from flyaot.kernel.exceptions import FlyAotException
from flyaot.logging import StructlogAdapter


def _import_repository(target: str) -> type:
    """Resolve ``package.module:RepositoryName``."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise click.BadParameter("expected 'package.module:RepositoryName'", param_hint="REPOSITORY")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise click.BadParameter(f"cannot import module '{module_name}': {exc}", param_hint="REPOSITORY") from exc
    try:
        return getattr(module, attr)
    except AttributeError:
        raise click.BadParameter(f"module '{module_name}' has no attribute '{attr}'", param_hint="REPOSITORY") from None


@click.command()
@click.argument("repository")
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (YAML or TOML). Defaults to flyaot.yaml / flyaot.toml in the current directory.",
)
@click.option(
    "--output",
    "output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Write the repository metadata document into this directory (implies --write).",
)
@click.option(
    "--write",
    "write",
    is_flag=True,
    default=False,
    help="Write the metadata document to flyaot.repositories.output-dir.",
)
@click.option("--show-code", is_flag=True, default=False, help="Print the generated method bodies.")
def contribute_command(
    repository: str, config_file: Path | None, output_dir: Path | None, write: bool, show_code: bool
) -> None:
    """Contribute the query methods of REPOSITORY (package.module:Repository)."""
    config = Config.from_file(config_file) if config_file else Config.from_sources(Path.cwd())
    StructlogAdapter().configure(config)

    repository_interface = _import_repository(repository)
    context = AotRepositoryContext(repository_interface, config)
    try:
        metamodel = AotMetamodel.from_entity(context.repository_information.domain_type)
        contributor = RepositoryContributor(context, metamodel)
        contribution = contributor.contribute()
    except (FlyAotException, TypeError) as exc:
        console.print(f"[error]✗[/error] {escape(str(exc))}")
        raise SystemExit(1) from None

    print_contribution_table(contribution)

    if show_code:
        for outcome in contribution.generated:
            for line in outcome.body.import_lines():
                console.print(f"[dim]{line}[/dim]")
            print_code(render_method_source(outcome.method, outcome.body))

    if write or output_dir is not None:
        properties = context.properties
        target = output_dir if output_dir is not None else Path(properties.output_dir)
        path = write_metadata(contribution, target, include_code=properties.include_code)
        console.print(f"[success]✓[/success] Wrote {path}")
