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
"""CSRF subsystem configuration properties."""

from __future__ import annotations

from dataclasses import dataclass, field

from edugate.core.config import config_properties


@config_properties(prefix="edugate.csrf")
@dataclass
class CsrfProperties:
    """Configuration for double-submit cookie CSRF protection (edugate.csrf.*).

    ``secure`` left as ``None`` means the cookie is marked ``Secure`` everywhere
    except in a development environment.
    """

    cookie_name: str = "csrf-token"
    header_name: str = "x-csrf-token"
    token_bytes: int = 32
    max_age: int = 60 * 60 * 24
    same_site: str = "lax"
    secure: bool | None = None
    token_path: str = "/api/csrf-token"
    exempt_paths: list[str] = field(default_factory=lambda: ["/api/health"])
