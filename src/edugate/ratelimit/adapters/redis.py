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
"""Redis-backed counter store for multi-instance deployments."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from edugate.kernel.exceptions import RateLimitStoreException
from edugate.ratelimit.types import WindowCount

# INCR and PEXPIRE run in one script so concurrent instances can never both
# observe the same count.  A key found without a TTL gets its expiry restored.
_INCREMENT_SCRIPT = """
local count = redis.call('INCR', KEYS[1])
if count == 1 then
    redis.call('PEXPIRE', KEYS[1], ARGV[1])
end
local ttl = redis.call('PTTL', KEYS[1])
if ttl < 0 then
    redis.call('PEXPIRE', KEYS[1], ARGV[1])
    ttl = tonumber(ARGV[1])
end
return {count, ttl}
"""


class RedisRateLimitStore:
    """Rate-limit store that delegates to a ``redis.asyncio.Redis``-like client.

    Windows are Redis keys with a TTL, so expired counters disappear on
    their own and :meth:`cleanup_expired` has nothing to do.
    """

    def __init__(self, client: Any, clock: Callable[[], float] = time.time) -> None:
        self._client = client
        self._clock = clock

    async def increment(self, key: str, window_seconds: int) -> WindowCount:
        """Atomically count one hit for *key*."""
        result = await self._client.eval(_INCREMENT_SCRIPT, 1, key, str(window_seconds * 1000))
        try:
            count, ttl_ms = int(result[0]), int(result[1])
        except (TypeError, ValueError, IndexError) as exc:
            raise RateLimitStoreException(
                f"Unexpected reply from rate-limit script: {result!r}",
                context={"key": key},
            ) from exc
        return WindowCount(count=count, reset_at=self._clock() + ttl_ms / 1000)

    async def reset(self, key: str) -> None:
        await self._client.delete(key)

    async def cleanup_expired(self) -> int:
        return 0

    async def start(self) -> None:
        """Validate connectivity by pinging Redis."""
        await self._client.ping()

    async def stop(self) -> None:
        """Close the underlying Redis connection."""
        await self._client.aclose()
