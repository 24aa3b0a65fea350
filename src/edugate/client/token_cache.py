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
"""Client-side CSRF token cache with request coalescing."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import structlog

from edugate.client.broadcast import BroadcastChannel
from edugate.kernel.types import ErrorCode

logger = structlog.get_logger("edugate.client.token_cache")

TOKEN_MESSAGE_TYPE = "csrf-token"

TokenFetcher = Callable[[], Awaitable[str]]


class CsrfTokenCache:
    """Keeps the current CSRF token in memory and refreshes it on demand.

    Concurrent callers that miss the cache share one in-flight fetch.  A
    fetch that outlives ``fetch_timeout`` resolves to ``None`` so callers
    never hang.  Fetched tokens are published on ``channel`` and tokens
    published by sibling caches are adopted without a fetch of our own.

    Args:
        fetcher: Coroutine function returning a token from the server.
        ttl: Seconds a cached token is served before refetching.  Must be
            shorter than ``cookie_max_age`` so the cache never outlives
            the cookie it mirrors.
        fetch_timeout: Upper bound in seconds for a single fetch.
        channel: Optional broadcast channel shared with sibling caches.
        cookie_max_age: Lifetime of the server-side cookie, in seconds.
        clock: Monotonic seconds; injectable for tests.
    """

    def __init__(
        self,
        fetcher: TokenFetcher,
        ttl: float = 240.0,
        fetch_timeout: float = 3.0,
        channel: BroadcastChannel | None = None,
        cookie_max_age: int = 86400,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        if fetch_timeout <= 0:
            raise ValueError("fetch_timeout must be positive")
        if ttl >= cookie_max_age:
            raise ValueError(f"ttl ({ttl}s) must be shorter than the cookie max age ({cookie_max_age}s)")
        self._fetcher = fetcher
        self._ttl = ttl
        self._fetch_timeout = fetch_timeout
        self._channel = channel
        self._clock = clock
        self._token: str | None = None
        self._expires_at = 0.0
        self._pending: asyncio.Future[str | None] | None = None
        self._fetch_task: asyncio.Task[None] | None = None
        self._subscribed = False

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def fetch_in_flight(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def peek(self) -> str | None:
        """Return the cached token if it has not expired.  Never performs I/O."""
        if self._token is not None and self._clock() < self._expires_at:
            return self._token
        return None

    async def start(self) -> None:
        """Begin listening for tokens broadcast by sibling caches."""
        if self._channel is not None and not self._subscribed:
            await self._channel.subscribe(self._on_message)
            self._subscribed = True

    async def get_cached_or_fetch(self) -> str | None:
        """Return a usable token, fetching at most once across concurrent callers.

        Returns ``None`` when the fetch times out or the server cannot be
        reached; callers proceed without a token and the server rejects.
        """
        token = self.peek()
        if token is not None:
            return token

        await self.start()

        if self._pending is None or self._pending.done():
            self._pending = asyncio.get_running_loop().create_future()
            self._fetch_task = asyncio.create_task(self._fetch(self._pending))

        return await asyncio.shield(self._pending)

    def invalidate(self) -> None:
        """Forget the cached token so the next call fetches a fresh one."""
        self._token = None
        self._expires_at = 0.0

    async def close(self) -> None:
        """Stop listening and cancel any in-flight fetch."""
        if self._fetch_task is not None and not self._fetch_task.done():
            self._fetch_task.cancel()
            await asyncio.gather(self._fetch_task, return_exceptions=True)
        if self._pending is not None and not self._pending.done():
            self._pending.set_result(None)
        if self._channel is not None:
            await self._channel.close()
            self._subscribed = False

    def _store(self, token: str) -> None:
        self._token = token
        self._expires_at = self._clock() + self._ttl

    async def _fetch(self, future: asyncio.Future[str | None]) -> None:
        try:
            token = await asyncio.wait_for(self._fetcher(), timeout=self._fetch_timeout)
        except TimeoutError:
            logger.warning(
                "csrf_token_fetch_timeout",
                code=ErrorCode.FETCH_TIMEOUT.value,
                timeout_seconds=self._fetch_timeout,
            )
            token = None
        except (httpx.HTTPError, ValueError, KeyError) as exc:
            logger.warning("csrf_token_fetch_failed", error=str(exc), error_type=type(exc).__name__)
            token = None
        except Exception as exc:
            if not future.done():
                future.set_exception(exc)
            return

        # a broadcast may have resolved the future while the fetch was running
        if future.done():
            return
        if token is None:
            future.set_result(None)
            return

        self._store(token)
        future.set_result(token)
        logger.debug("csrf_token_fetched", ttl_seconds=self._ttl)
        await self._broadcast(token)

    async def _broadcast(self, token: str) -> None:
        if self._channel is None:
            return
        try:
            await self._channel.publish({"type": TOKEN_MESSAGE_TYPE, "token": token})
        except Exception as exc:
            logger.warning("csrf_token_broadcast_failed", error=str(exc), error_type=type(exc).__name__)

    async def _on_message(self, message: dict[str, Any]) -> None:
        if message.get("type") != TOKEN_MESSAGE_TYPE:
            return
        token = message.get("token")
        if not isinstance(token, str) or not token:
            return

        self._store(token)
        logger.debug("csrf_token_adopted")

        if self._pending is not None and not self._pending.done():
            self._pending.set_result(token)
            if self._fetch_task is not None and not self._fetch_task.done():
                self._fetch_task.cancel()
