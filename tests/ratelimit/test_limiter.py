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
"""Tests for RateLimiter: fixed-window admission over a counter store."""

from __future__ import annotations

import asyncio

import pytest
from structlog.testing import capture_logs

from edugate.config.properties.rate_limit import PresetOverride, RateLimitProperties
from edugate.kernel.exceptions import RateLimitException
from edugate.ratelimit.adapters.memory import InMemoryRateLimitStore
from edugate.ratelimit.limiter import RateLimiter, rate_limit_headers, rate_limit_message, rate_limited
from edugate.ratelimit.types import RateLimitPreset, RateLimitPresets, RateLimitResult, WindowCount


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class BrokenStore:
    """Store whose every call fails, as an unreachable backend would."""

    async def increment(self, key: str, window_seconds: int) -> WindowCount:
        raise ConnectionError("store unreachable")

    async def reset(self, key: str) -> None:
        raise ConnectionError("store unreachable")

    async def cleanup_expired(self) -> int:
        return 0


def _limiter(clock: FakeClock, **kwargs) -> RateLimiter:
    return RateLimiter(InMemoryRateLimitStore(clock=clock), clock=clock, **kwargs)


class TestPresets:
    def test_built_in_presets(self):
        presets = RateLimitPresets.all()
        assert presets["AUTH"] == RateLimitPreset("AUTH", 5, 60)
        assert presets["API"] == RateLimitPreset("API", 100, 60)
        assert presets["UPLOAD"] == RateLimitPreset("UPLOAD", 30, 60)
        assert presets["READ"] == RateLimitPreset("READ", 200, 60)
        assert presets["WRITE"] == RateLimitPreset("WRITE", 50, 60)

    @pytest.mark.parametrize(("max_requests", "window"), [(0, 60), (10, 0), (-1, -1)])
    def test_invalid_preset_rejected(self, max_requests, window):
        with pytest.raises(ValueError):
            RateLimitPreset("BAD", max_requests, window)

    def test_lookup_is_case_insensitive(self):
        limiter = RateLimiter(InMemoryRateLimitStore())
        assert limiter.preset("auth") is RateLimitPresets.AUTH

    def test_unknown_preset(self):
        with pytest.raises(KeyError, match="NOPE"):
            RateLimiter(InMemoryRateLimitStore()).preset("NOPE")

    def test_from_properties_merges_overrides(self):
        props = RateLimitProperties(
            key_prefix="edu",
            fail_open=False,
            presets={"read": PresetOverride(max_requests=100, window_seconds=60)},
        )
        limiter = RateLimiter.from_properties(props, InMemoryRateLimitStore())
        assert limiter.preset("READ").max_requests == 100
        assert limiter.preset("WRITE").max_requests == 50


class TestRateLimiterCheck:
    @pytest.mark.asyncio
    async def test_first_request_opens_window(self):
        clock = FakeClock()
        result = await _limiter(clock).check("ip:1.2.3.4", RateLimitPresets.AUTH)
        assert result == RateLimitResult(success=True, limit=5, remaining=4, reset=int(clock.now) + 60)

    @pytest.mark.asyncio
    async def test_admits_exactly_max_requests(self):
        clock = FakeClock()
        limiter = _limiter(clock)
        results = [await limiter.check("user:1", RateLimitPresets.AUTH) for _ in range(6)]
        assert [r.success for r in results] == [True] * 5 + [False]
        assert [r.remaining for r in results] == [4, 3, 2, 1, 0, 0]

    @pytest.mark.asyncio
    async def test_read_preset_101st_request_rejected(self):
        clock = FakeClock()
        props = RateLimitProperties(presets={"READ": PresetOverride(max_requests=100, window_seconds=60)})
        limiter = RateLimiter.from_properties(props, InMemoryRateLimitStore(clock=clock), clock=clock)
        preset = limiter.preset("READ")

        for i in range(100):
            assert (await limiter.check("ip:10.0.0.1", preset)).success
            clock.advance(0.5)
        result = await limiter.check("ip:10.0.0.1", preset)

        assert result.success is False
        assert result.remaining == 0
        assert 0 < result.retry_after_seconds <= 60

    @pytest.mark.asyncio
    async def test_retry_after_counts_down(self):
        clock = FakeClock()
        limiter = _limiter(clock)
        for _ in range(5):
            await limiter.check("k", RateLimitPresets.AUTH)
        clock.advance(45)
        result = await limiter.check("k", RateLimitPresets.AUTH)
        assert result.retry_after_seconds == 15

    @pytest.mark.asyncio
    async def test_window_resets_after_expiry(self):
        clock = FakeClock()
        limiter = _limiter(clock)
        for _ in range(6):
            await limiter.check("k", RateLimitPresets.AUTH)
        clock.advance(60)
        result = await limiter.check("k", RateLimitPresets.AUTH)
        assert result.success is True
        assert result.remaining == 4

    @pytest.mark.asyncio
    async def test_keys_and_presets_are_independent(self):
        clock = FakeClock()
        limiter = _limiter(clock)
        for _ in range(5):
            await limiter.check("a", RateLimitPresets.AUTH)
        assert not (await limiter.check("a", RateLimitPresets.AUTH)).success
        assert (await limiter.check("b", RateLimitPresets.AUTH)).success
        assert (await limiter.check("a", RateLimitPresets.WRITE)).success

    @pytest.mark.asyncio
    async def test_concurrent_checks_never_over_admit(self):
        limiter = RateLimiter(InMemoryRateLimitStore())
        results = await asyncio.gather(*(limiter.check("burst", RateLimitPresets.AUTH) for _ in range(50)))
        assert sum(r.success for r in results) == 5

    @pytest.mark.asyncio
    async def test_rejection_is_logged(self):
        clock = FakeClock()
        limiter = _limiter(clock)
        with capture_logs() as logs:
            for _ in range(6):
                await limiter.check("ip:9.9.9.9", RateLimitPresets.AUTH)
        entry = next(e for e in logs if e["event"] == "rate_limit_exceeded")
        assert entry["log_level"] == "warning"
        assert entry["key"] == "ip:9.9.9.9"
        assert entry["preset"] == "AUTH"

    @pytest.mark.asyncio
    async def test_reset_forgets_window(self):
        clock = FakeClock()
        limiter = _limiter(clock)
        for _ in range(6):
            await limiter.check("k", RateLimitPresets.AUTH)
        await limiter.reset("k", RateLimitPresets.AUTH)
        assert (await limiter.check("k", RateLimitPresets.AUTH)).success

    @pytest.mark.asyncio
    async def test_cleanup_expired(self):
        clock = FakeClock()
        limiter = _limiter(clock)
        await limiter.check("a", RateLimitPresets.AUTH)
        await limiter.check("b", RateLimitPresets.AUTH)
        clock.advance(61)
        assert await limiter.cleanup_expired() == 2


class TestRateLimiterStoreFailure:
    @pytest.mark.asyncio
    async def test_fails_open_by_default(self):
        with capture_logs() as logs:
            result = await RateLimiter(BrokenStore()).check("k", RateLimitPresets.API)
        assert result.success is True
        assert result.limit == 100
        entry = next(e for e in logs if e["event"] == "rate_limit_store_error")
        assert entry["log_level"] == "error"
        assert entry["error_type"] == "ConnectionError"

    @pytest.mark.asyncio
    async def test_fails_closed_when_configured(self):
        result = await RateLimiter(BrokenStore(), fail_open=False).check("k", RateLimitPresets.API)
        assert result.success is False
        assert result.retry_after_seconds == 60


class TestEnforceAndDecorator:
    @pytest.mark.asyncio
    async def test_enforce_raises_when_exceeded(self):
        clock = FakeClock()
        limiter = _limiter(clock)
        for _ in range(5):
            await limiter.enforce("k", RateLimitPresets.AUTH)
        with pytest.raises(RateLimitException) as exc_info:
            await limiter.enforce("k", RateLimitPresets.AUTH)
        assert exc_info.value.retry_after_seconds == 60
        assert exc_info.value.code == "RATE_LIMITED"
        assert str(exc_info.value) == "Too many requests. Please wait 60 seconds and try again."

    @pytest.mark.asyncio
    async def test_decorator_with_fixed_key(self):
        limiter = RateLimiter(InMemoryRateLimitStore())
        calls = []

        @rate_limited(limiter, RateLimitPreset("TINY", 2, 60))
        async def send_invite(email: str) -> str:
            calls.append(email)
            return email

        assert await send_invite("a@example.edu") == "a@example.edu"
        await send_invite("b@example.edu")
        with pytest.raises(RateLimitException):
            await send_invite("c@example.edu")
        assert calls == ["a@example.edu", "b@example.edu"]

    @pytest.mark.asyncio
    async def test_decorator_with_key_function(self):
        limiter = RateLimiter(InMemoryRateLimitStore())

        @rate_limited(limiter, RateLimitPreset("ONE", 1, 60), key=lambda user_id: f"user:{user_id}")
        async def upload(user_id: str) -> str:
            return user_id

        await upload("1")
        await upload("2")
        with pytest.raises(RateLimitException):
            await upload("1")


class TestHeaders:
    def test_headers_on_success(self):
        result = RateLimitResult(success=True, limit=100, remaining=99, reset=1_700_000_060)
        assert rate_limit_headers(result) == {
            "X-RateLimit-Limit": "100",
            "X-RateLimit-Remaining": "99",
            "X-RateLimit-Reset": "1700000060",
        }

    def test_headers_on_rejection_include_retry_after(self):
        result = RateLimitResult(success=False, limit=5, remaining=0, reset=1_700_000_060, retry_after_seconds=30)
        assert rate_limit_headers(result)["Retry-After"] == "30"

    def test_message(self):
        assert rate_limit_message(1) == "Too many requests. Please wait 1 second and try again."
        assert rate_limit_message(42) == "Too many requests. Please wait 42 seconds and try again."
