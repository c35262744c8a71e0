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
"""Shared Rich console and loading helpers for CLI commands."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import click
from rich.console import Console
from rich.theme import Theme

from flycors.config.properties.cors import load_cors_policies
from flycors.core.config import Config
from flycors.cors.processor import CorsPolicyProvider
from flycors.kernel.exceptions import CorsConfigurationException

FLYCORS_THEME = Theme({
    "info": "cyan",
    "success": "bold green",
    "warning": "bold yellow",
    "error": "bold red",
    "flycors": "bold magenta",
    "dim": "dim",
})

console = Console(theme=FLYCORS_THEME)


def load_config(config_path: Path | None, profiles: Sequence[str]) -> Config:
    if config_path is not None and not config_path.is_file():
        raise click.BadParameter(f"{config_path} does not exist", param_hint="--config")
    return Config.from_file(config_path, active_profiles=list(profiles))


def load_provider(config: Config) -> CorsPolicyProvider:
    """Build the policy table, turning configuration errors into a clean CLI failure."""
    try:
        return CorsPolicyProvider(load_cors_policies(config))
    except CorsConfigurationException as exc:
        raise click.ClickException(f"Invalid CORS configuration: {exc}") from exc


config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="flycors.yaml / flycors.toml to load on top of the bundled defaults.",
)
profile_option = click.option(
    "--profile",
    "profiles",
    multiple=True,
    help="Active profile; loads <config>-<profile>.yaml as an overlay. Repeatable.",
)
