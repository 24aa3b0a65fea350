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
"""'edugate info': Display the effective request-gate configuration."""

from __future__ import annotations

from pathlib import Path

import click
from rich.table import Table

from edugate.cli.console import console
from edugate.cli.serve import load_config
from edugate.config.properties.app import AppProperties
from edugate.config.properties.csrf import CsrfProperties
from edugate.config.properties.rate_limit import RateLimitProperties
from edugate.ratelimit.adapters.memory import InMemoryRateLimitStore
from edugate.ratelimit.factory import detect_backend
from edugate.ratelimit.limiter import RateLimiter
from edugate.security.csrf import cookie_is_secure


@click.command()
@click.option("--config", "config_path", default=None, type=click.Path(path_type=Path), help="Config file.")
def info_command(config_path: Path | None) -> None:
    """Show CSRF and rate-limit settings after defaults, files and env overrides."""
    config = load_config(config_path)
    app_props = config.bind(AppProperties)
    csrf_props = config.bind(CsrfProperties)
    rate_props = config.bind(RateLimitProperties)

    csrf_table = Table(title="CSRF", show_header=False, border_style="dim")
    csrf_table.add_column("Key", style="info")
    csrf_table.add_column("Value")
    csrf_table.add_row("Environment", app_props.environment)
    csrf_table.add_row("Cookie", csrf_props.cookie_name)
    csrf_table.add_row("Header", csrf_props.header_name)
    csrf_table.add_row("Max age", f"{csrf_props.max_age}s")
    csrf_table.add_row("SameSite", csrf_props.same_site)
    csrf_table.add_row("Secure", str(cookie_is_secure(csrf_props, app_props.is_development)))
    csrf_table.add_row("Token endpoint", csrf_props.token_path)
    csrf_table.add_row("Exempt", ", ".join(csrf_props.exempt_paths) or "-")
    console.print(csrf_table)

    limiter = RateLimiter.from_properties(rate_props, InMemoryRateLimitStore())
    presets_table = Table(title=f"\nRate limits ({detect_backend(rate_props)})", border_style="dim")
    presets_table.add_column("Preset", style="info")
    presets_table.add_column("Requests", justify="right")
    presets_table.add_column("Window", justify="right")
    for name in ("AUTH", "API", "UPLOAD", "READ", "WRITE"):
        preset = limiter.preset(name)
        presets_table.add_row(preset.name, str(preset.max_requests), f"{preset.window_seconds}s")
    console.print(presets_table)

    if not rate_props.enabled:
        console.print("[warning]Rate limiting is disabled.[/warning]")
    console.print()
