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
"""'flycors policies' — list the effective CORS policy table."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import click
from rich.table import Table

from flycors.cli.console import config_option, console, load_config, load_provider, profile_option


def _join(values: Sequence[str]) -> str:
    return ", ".join(values) if values else "[dim]-[/dim]"


@click.command()
@config_option
@profile_option
def policies_command(config_path: Path | None, profiles: tuple[str, ...]) -> None:
    """Show the CORS policies in evaluation order."""
    provider = load_provider(load_config(config_path, profiles))

    if not provider.policies:
        console.print("[warning]CORS handling is disabled or no mappings are configured.[/warning]")
        return

    table = Table(title="[flycors]CORS Policies[/flycors]", border_style="dim", show_lines=True)
    table.add_column("#", style="dim")
    table.add_column("Path", style="info")
    table.add_column("Origins")
    table.add_column("Methods")
    table.add_column("Headers")
    table.add_column("Credentials")
    table.add_column("Max Age", justify="right")

    for index, policy in enumerate(provider.policies, start=1):
        origins = [*policy.allowed_origins, *policy.allowed_origin_patterns]
        table.add_row(
            str(index),
            policy.path_pattern,
            "\n".join(origins) if origins else "[dim]-[/dim]",
            _join(policy.allowed_methods),
            _join(policy.allowed_headers),
            "[success]yes[/success]" if policy.allow_credentials else "no",
            str(policy.max_age),
        )

    console.print(table)
