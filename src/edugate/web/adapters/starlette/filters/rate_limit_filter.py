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
"""RateLimitFilter: rejects clients that exceed their request budget with 429."""

from __future__ import annotations

from collections.abc import Callable
from fnmatch import fnmatch
from typing import Any

from prometheus_client import Counter

from edugate.config.properties.rate_limit import RateLimitProperties
from edugate.ratelimit.identity import client_identifier
from edugate.ratelimit.limiter import RateLimiter, rate_limit_headers
from edugate.ratelimit.types import RateLimitPreset
from edugate.web.adapters.starlette.responses import rate_limit_response
from edugate.web.filters import OncePerRequestFilter
from edugate.web.ordering import HIGHEST_PRECEDENCE, order
from edugate.web.ports.filter import CallNext

_READ_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

_RATE_LIMIT_CHECKS = Counter(
    "edugate_rate_limit_checks_total",
    "Rate-limit decisions taken by the request gate",
    ["preset", "result"],
)


@order(HIGHEST_PRECEDENCE + 400)
class RateLimitFilter(OncePerRequestFilter):
    """Counts each request against a preset chosen from its method and path.

    Configured rules (first glob match wins) pick the preset; otherwise
    read methods use ``READ`` and everything else ``WRITE``.  Requests are
    keyed by client identity, plus the path for ``per_endpoint`` rules.
    """

    def __init__(
        self,
        limiter: RateLimiter,
        props: RateLimitProperties | None = None,
        identify: Callable[[Any], str] = client_identifier,
    ) -> None:
        self._limiter = limiter
        self._props = props or RateLimitProperties()
        self._identify = identify
        self.exclude_patterns = list(self._props.exclude_paths)

    def resolve(self, request: Any) -> tuple[str, RateLimitPreset]:
        """Return the ``(key, preset)`` pair *request* is counted under."""
        method = request.method.upper()
        path = request.url.path
        identity = self._identify(request)

        for rule in self._props.rules:
            if rule.methods and method not in {m.upper() for m in rule.methods}:
                continue
            if fnmatch(path, rule.pattern):
                key = f"{identity}:{path}" if rule.per_endpoint else identity
                return key, self._limiter.preset(rule.preset)

        preset_name = "READ" if method in _READ_METHODS else "WRITE"
        return identity, self._limiter.preset(preset_name)

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        key, preset = self.resolve(request)
        result = await self._limiter.check(key, preset)

        if not result.success:
            _RATE_LIMIT_CHECKS.labels(preset=preset.name, result="blocked").inc()
            return rate_limit_response(result)

        _RATE_LIMIT_CHECKS.labels(preset=preset.name, result="allowed").inc()
        response = await call_next(request)
        for name, value in rate_limit_headers(result).items():
            response.headers[name] = value
        return response
