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
"""'edugate serve': Run the EduGate application under uvicorn."""

from __future__ import annotations

from pathlib import Path

import click

from edugate.cli.console import console
from edugate.core.config import Config
from edugate.kernel.exceptions import ConfigurationException


def load_config(config_path: Path | None) -> Config:
    """Load *config_path* if given, else discover edugate.yaml/.toml in the working directory."""
    if config_path is not None:
        return Config.from_file(config_path)
    return Config.from_sources(Path.cwd())


@click.command()
@click.option("--host", default=None, help="Bind address (default: edugate.server.host).")
@click.option("--port", default=None, type=int, help="Port number (default: edugate.server.port).")
@click.option("--config", "config_path", default=None, type=click.Path(path_type=Path), help="Config file.")
def serve_command(host: str | None, port: int | None, config_path: Path | None) -> None:
    """Start the EduGate application server."""
    import uvicorn

    from edugate.config.properties.server import ServerProperties
    from edugate.logging.structlog_adapter import StructlogAdapter
    from edugate.web.adapters.starlette.app import create_app

    try:
        config = load_config(config_path)
        StructlogAdapter().configure(config)
        server = config.bind(ServerProperties)
        app = create_app(config)
    except ConfigurationException as exc:
        console.print(f"[error]{exc}[/error]")
        raise SystemExit(1) from None

    host = host or server.host
    port = port or server.port
    console.print(f"[success]Serving EduGate on http://{host}:{port}[/success]")
    uvicorn.run(
        app,
        host=host,
        port=port,
        proxy_headers=server.proxy_headers,
        forwarded_allow_ips=server.forwarded_allow_ips,
    )
