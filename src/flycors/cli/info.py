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
"""'flycors info' — display version, environment, and configuration sources."""

from __future__ import annotations

import platform
import sys
from pathlib import Path

import click
from rich.table import Table

from flycors import __version__
from flycors.cli.console import config_option, console, load_config, load_provider, profile_option


@click.command()
@config_option
@profile_option
def info_command(config_path: Path | None, profiles: tuple[str, ...]) -> None:
    """Display flycors and environment information."""
    config = load_config(config_path, profiles)
    provider = load_provider(config)

    console.print(f"\n[flycors]flycors[/flycors] [dim]v{__version__}[/dim]\n")

    env_table = Table(title="Environment", show_header=False, border_style="dim")
    env_table.add_column("Key", style="info")
    env_table.add_column("Value")
    env_table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    env_table.add_row("Platform", platform.platform())
    env_table.add_row("Application", str(config.get("flycors.app.name", "-")))
    env_table.add_row("CORS policies", str(len(provider.policies)))
    console.print(env_table)

    sources_table = Table(title="\nConfiguration Sources", border_style="dim")
    sources_table.add_column("#", style="dim")
    sources_table.add_column("Source", style="info")
    for index, source in enumerate(config.loaded_sources, start=1):
        sources_table.add_row(str(index), source)
    console.print(sources_table)
    console.print()
