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
"""EduGate CLI: token tooling, configuration inspection, and the dev server."""

from __future__ import annotations

import click

from edugate.cli.console import print_banner


class EduGateCLI(click.Group):
    """Custom Click group that shows the EduGate banner on help."""

    def format_help(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        print_banner()
        super().format_help(ctx, formatter)


@click.group(cls=EduGateCLI)
@click.version_option(package_name="edugate")
def cli() -> None:
    """EduGate: CSRF and rate-limit request gate."""


from edugate.cli.info import info_command  # noqa: E402
from edugate.cli.serve import serve_command  # noqa: E402
from edugate.cli.tokens import token_command  # noqa: E402

cli.add_command(token_command, name="token")
cli.add_command(info_command, name="info")
cli.add_command(serve_command, name="serve")
