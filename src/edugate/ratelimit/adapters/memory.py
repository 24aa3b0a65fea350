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
"""In-process fixed-window counter store."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from edugate.ratelimit.types import WindowCount


@dataclass
class _Window:
    count: int
    started_at: float
    window_seconds: int

    @property
    def reset_at(self) -> float:
        return self.started_at + self.window_seconds


class InMemoryRateLimitStore:
    """Fixed-window counters held in a dict.

    Suitable for development, testing, and single-instance deployments only:
    every process keeps its own counters, so N instances admit N times the
    configured rate.  The critical section contains no ``await`` so a plain
    lock makes increments atomic across coroutines and threads alike.

    Expired windows are swept from :meth:`increment` at most once per
    elapsed window, so the map only holds keys seen in the current window.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()
        self._next_sweep: float | None = None

    async def increment(self, key: str, window_seconds: int) -> WindowCount:
        """Count one hit for *key*, starting a new window if the old one elapsed."""
        now = self._clock()
        with self._lock:
            if self._next_sweep is None or now >= self._next_sweep:
                self._evict_expired(now)
                self._next_sweep = now + window_seconds
            else:
                self._next_sweep = min(self._next_sweep, now + window_seconds)

            window = self._windows.get(key)
            if window is None or now >= window.reset_at:
                window = _Window(count=1, started_at=now, window_seconds=window_seconds)
                self._windows[key] = window
            else:
                window.count += 1
            return WindowCount(count=window.count, reset_at=window.reset_at)

    async def reset(self, key: str) -> None:
        with self._lock:
            self._windows.pop(key, None)

    async def cleanup_expired(self) -> int:
        """Evict elapsed windows.  Returns the number of entries removed."""
        now = self._clock()
        with self._lock:
            return self._evict_expired(now)

    def _evict_expired(self, now: float) -> int:
        # caller holds the lock
        expired = [k for k, w in self._windows.items() if now >= w.reset_at]
        for k in expired:
            del self._windows[k]
        return len(expired)

    def __len__(self) -> int:
        return len(self._windows)
