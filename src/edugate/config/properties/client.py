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
"""Client-side token cache configuration properties."""

from __future__ import annotations

from pydantic import BaseModel, Field

from edugate.core.config import config_properties


@config_properties(prefix="edugate.client")
class ClientProperties(BaseModel):
    """Configuration for the CSRF-aware HTTP client (edugate.client.*)."""

    base_url: str = "http://localhost:8000"
    token_path: str = "/api/csrf-token"
    cache_ttl: float = Field(default=240.0, gt=0)
    fetch_timeout: float = Field(default=3.0, gt=0)
    channel: str = "csrf-token"
    redis_url: str | None = None
