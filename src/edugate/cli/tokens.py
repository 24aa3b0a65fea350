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
"""'edugate token': Print freshly generated CSRF tokens."""

from __future__ import annotations

import click

from edugate.security.csrf import CSRF_TOKEN_BYTES, generate_csrf_token


@click.command()
@click.option("--count", "-n", default=1, show_default=True, type=click.IntRange(min=1), help="Tokens to print.")
@click.option(
    "--bytes",
    "nbytes",
    default=CSRF_TOKEN_BYTES,
    show_default=True,
    type=click.IntRange(min=16),
    help="Random bytes per token.",
)
def token_command(count: int, nbytes: int) -> None:
    """Generate CSRF tokens, one per line."""
    for _ in range(count):
        click.echo(generate_csrf_token(nbytes))
