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
"""'flycors check' — evaluate one request against the configured policies."""

from __future__ import annotations

from pathlib import Path

import click
from rich.table import Table

from flycors.cli.console import config_option, console, load_config, load_provider, profile_option
from flycors.cors.processor import CorsRequest


@click.command()
@click.argument("path")
@click.option("--origin", default=None, help="Origin header value; omit for a same-origin request.")
@click.option("--method", default="GET", show_default=True, help="HTTP method of the request.")
@click.option(
    "--preflight",
    "request_method",
    default=None,
    help="Send an OPTIONS preflight asking for this method (Access-Control-Request-Method).",
)
@click.option(
    "--request-headers",
    default="",
    help="Comma-separated Access-Control-Request-Headers for a preflight.",
)
@config_option
@profile_option
def check_command(
    path: str,
    origin: str | None,
    method: str,
    request_method: str | None,
    request_headers: str,
    config_path: Path | None,
    profiles: tuple[str, ...],
) -> None:
    """Evaluate a request to PATH and print the CORS decision.

    Exits with status 1 when the request is not allowed.
    """
    if request_method and not origin:
        raise click.UsageError("--preflight requires --origin; a preflight always carries an Origin header")

    provider = load_provider(load_config(config_path, profiles))

    request = CorsRequest(
        path=path,
        method="OPTIONS" if request_method else method.upper(),
        origin=origin,
        request_method=request_method.upper() if request_method else None,
        request_headers=tuple(h.strip() for h in request_headers.split(",") if h.strip()),
    )
    decision = provider.evaluate(request)

    kind = "preflight" if request.is_preflight else "actual"
    if decision.allowed:
        console.print(f"\n[success]ALLOWED[/success] [dim]({kind} request)[/dim]")
    else:
        reason = decision.reason.value if decision.reason else "unknown"
        console.print(f"\n[error]REJECTED[/error] [dim]({kind} request, {reason})[/dim]")

    if decision.policy is not None:
        console.print(f"  [dim]policy:[/dim] {decision.policy.path_pattern}")

    headers = decision.to_headers()
    if headers:
        table = Table(title="Response Headers", show_header=False, border_style="dim")
        table.add_column("Header", style="info")
        table.add_column("Value")
        for name, value in headers.items():
            table.add_row(name, value)
        console.print(table)
    elif decision.allowed:
        console.print("  [dim]no CORS headers required[/dim]")

    if not decision.allowed:
        raise click.exceptions.Exit(1)
