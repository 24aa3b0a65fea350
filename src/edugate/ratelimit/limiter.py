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
"""Fixed-window rate limiter over a pluggable counter store."""

from __future__ import annotations

import functools
import math
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import structlog

from edugate.config.properties.rate_limit import RateLimitProperties
from edugate.kernel.exceptions import RateLimitException
from edugate.ratelimit.ports.outbound import RateLimitStore
from edugate.ratelimit.types import RateLimitPreset, RateLimitPresets, RateLimitResult

logger = structlog.get_logger("edugate.ratelimit")


class RateLimiter:
    """Counts requests per key and preset and decides whether to admit them.

    Each ``(key, preset)`` pair owns one window.  The first hit opens the
    window with a count of 1; hits up to ``preset.max_requests`` are admitted
    and later ones are rejected until the window elapses.

    Args:
        store: Counter backend; must increment atomically.
        presets: Named presets available to :meth:`preset`.  Defaults to the
            built-in :class:`RateLimitPresets`.
        key_prefix: Namespace for store keys.
        fail_open: Admit requests when the store fails (``True``) or reject
            them (``False``).
        clock: Returns epoch seconds; injectable for tests.
    """

    def __init__(
        self,
        store: RateLimitStore,
        presets: Mapping[str, RateLimitPreset] | None = None,
        key_prefix: str = "ratelimit",
        fail_open: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._presets: dict[str, RateLimitPreset] = dict(presets or RateLimitPresets.all())
        self._key_prefix = key_prefix
        self._fail_open = fail_open
        self._clock = clock

    @classmethod
    def from_properties(
        cls,
        props: RateLimitProperties,
        store: RateLimitStore,
        clock: Callable[[], float] = time.time,
    ) -> RateLimiter:
        """Build a limiter whose presets are the built-ins merged with configured overrides."""
        presets = RateLimitPresets.all()
        for name, override in props.presets.items():
            presets[name.upper()] = RateLimitPreset(
                name=name.upper(),
                max_requests=override.max_requests,
                window_seconds=override.window_seconds,
            )
        return cls(
            store,
            presets=presets,
            key_prefix=props.key_prefix,
            fail_open=props.fail_open,
            clock=clock,
        )

    @property
    def store(self) -> RateLimitStore:
        return self._store

    def preset(self, name: str) -> RateLimitPreset:
        """Look up a preset by name (case-insensitive)."""
        try:
            return self._presets[name.upper()]
        except KeyError:
            raise KeyError(f"Unknown rate-limit preset '{name}'") from None

    def _store_key(self, key: str, preset: RateLimitPreset) -> str:
        return f"{self._key_prefix}:{key}:{preset.name}:{preset.window_seconds}"

    async def check(self, key: str, preset: RateLimitPreset) -> RateLimitResult:
        """Count one request for *key* against *preset*.

        Returns:
            A result whose ``retry_after_seconds`` is set (1 to the window
            length) when the request is rejected.
        """
        now = self._clock()
        try:
            window = await self._store.increment(self._store_key(key, preset), preset.window_seconds)
        except Exception as exc:
            logger.error(
                "rate_limit_store_error",
                key=key,
                preset=preset.name,
                fail_open=self._fail_open,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            if self._fail_open:
                return RateLimitResult(
                    success=True,
                    limit=preset.max_requests,
                    remaining=preset.max_requests - 1,
                    reset=math.ceil(now + preset.window_seconds),
                )
            return RateLimitResult(
                success=False,
                limit=preset.max_requests,
                remaining=0,
                reset=math.ceil(now + preset.window_seconds),
                retry_after_seconds=preset.window_seconds,
            )

        reset = math.ceil(window.reset_at)
        if window.count <= preset.max_requests:
            return RateLimitResult(
                success=True,
                limit=preset.max_requests,
                remaining=preset.max_requests - window.count,
                reset=reset,
            )

        retry_after = min(preset.window_seconds, max(1, math.ceil(window.reset_at - now)))
        logger.warning(
            "rate_limit_exceeded",
            key=key,
            preset=preset.name,
            count=window.count,
            limit=preset.max_requests,
            retry_after_seconds=retry_after,
        )
        return RateLimitResult(
            success=False,
            limit=preset.max_requests,
            remaining=0,
            reset=reset,
            retry_after_seconds=retry_after,
        )

    async def enforce(self, key: str, preset: RateLimitPreset) -> RateLimitResult:
        """Like :meth:`check`, but raise :class:`RateLimitException` on rejection."""
        result = await self.check(key, preset)
        if not result.success:
            retry_after = result.retry_after_seconds or preset.window_seconds
            raise RateLimitException(
                rate_limit_message(retry_after),
                retry_after_seconds=retry_after,
                context={"preset": preset.name, "limit": preset.max_requests},
            )
        return result

    async def reset(self, key: str, preset: RateLimitPreset) -> None:
        """Forget the current window for *key* under *preset*."""
        await self._store.reset(self._store_key(key, preset))

    async def cleanup_expired(self) -> int:
        """Evict expired windows from the store.  Returns the number removed."""
        removed = await self._store.cleanup_expired()
        if removed:
            logger.debug("rate_limit_cleanup", removed=removed)
        return removed


def rate_limit_message(retry_after_seconds: int) -> str:
    unit = "second" if retry_after_seconds == 1 else "seconds"
    return f"Too many requests. Please wait {retry_after_seconds} {unit} and try again."


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Build the ``X-RateLimit-*`` (and, on rejection, ``Retry-After``) response headers."""
    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset),
    }
    if result.retry_after_seconds is not None:
        headers["Retry-After"] = str(result.retry_after_seconds)
    return headers


def rate_limited(
    limiter: RateLimiter,
    preset: RateLimitPreset,
    key: Callable[..., str] | str = "global",
) -> Callable[[Callable[..., Awaitable[Any]]], Callable[..., Awaitable[Any]]]:
    """Decorator that applies rate limiting to an async function.

    Args:
        limiter: The RateLimiter instance to use.
        preset: Budget to count calls against.
        key: A fixed key, or a callable receiving the wrapped function's
            arguments and returning the key (e.g. ``client_identifier``).
    """

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            resolved = key(*args, **kwargs) if callable(key) else key
            await limiter.enforce(resolved, preset)
            return await func(*args, **kwargs)

        return wrapper

    return decorator
