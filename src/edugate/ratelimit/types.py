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
"""Rate-limit presets and results."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitPreset:
    """A ``max_requests`` per ``window_seconds`` budget, named by category."""

    name: str
    max_requests: int
    window_seconds: int

    def __post_init__(self) -> None:
        if self.max_requests < 1:
            raise ValueError(f"Preset '{self.name}': max_requests must be >= 1")
        if self.window_seconds < 1:
            raise ValueError(f"Preset '{self.name}': window_seconds must be >= 1")


class RateLimitPresets:
    """Built-in presets.  Read-heavy endpoints get a larger budget than writes."""

    AUTH = RateLimitPreset("AUTH", max_requests=5, window_seconds=60)
    API = RateLimitPreset("API", max_requests=100, window_seconds=60)
    UPLOAD = RateLimitPreset("UPLOAD", max_requests=30, window_seconds=60)
    READ = RateLimitPreset("READ", max_requests=200, window_seconds=60)
    WRITE = RateLimitPreset("WRITE", max_requests=50, window_seconds=60)

    @classmethod
    def all(cls) -> dict[str, RateLimitPreset]:
        return {p.name: p for p in (cls.AUTH, cls.API, cls.UPLOAD, cls.READ, cls.WRITE)}


@dataclass(frozen=True)
class WindowCount:
    """Counter state returned by a store after an atomic increment."""

    count: int
    reset_at: float
    """Epoch seconds at which the current window ends."""


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single rate-limit check."""

    success: bool
    limit: int
    remaining: int
    reset: int
    """Epoch seconds at which the window resets."""
    retry_after_seconds: int | None = None
