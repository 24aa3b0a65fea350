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
"""Rate-limit store protocol."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from edugate.ratelimit.types import WindowCount


@runtime_checkable
class RateLimitStore(Protocol):
    """Per-key windowed counters.

    ``increment`` must be atomic: two concurrent callers sharing a key never
    observe the same count.
    """

    async def increment(self, key: str, window_seconds: int) -> WindowCount: ...

    async def reset(self, key: str) -> None: ...

    async def cleanup_expired(self) -> int: ...
