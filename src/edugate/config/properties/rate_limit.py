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
"""Rate-limit subsystem configuration properties."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from edugate.core.config import config_properties


class PresetOverride(BaseModel):
    """Overrides one built-in preset or declares a new one."""

    max_requests: int = Field(ge=1)
    window_seconds: int = Field(ge=1)


class RouteRule(BaseModel):
    """Routes matching ``pattern`` (glob) are counted against ``preset``."""

    pattern: str
    preset: str
    methods: list[str] = Field(default_factory=list)
    per_endpoint: bool = False


@config_properties(prefix="edugate.rate_limit")
class RateLimitProperties(BaseModel):
    """Configuration for request rate limiting (edugate.rate_limit.*)."""

    enabled: bool = True
    backend: Literal["memory", "redis", "auto"] = "memory"
    redis_url: str | None = None
    key_prefix: str = "ratelimit"
    fail_open: bool = True
    presets: dict[str, PresetOverride] = Field(default_factory=dict)
    rules: list[RouteRule] = Field(default_factory=list)
    exclude_paths: list[str] = Field(default_factory=lambda: ["/api/health"])
