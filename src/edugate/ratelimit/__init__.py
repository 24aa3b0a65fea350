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
"""EduGate Rate Limiting: fixed-window counters over memory or Redis."""

from edugate.ratelimit.adapters.memory import InMemoryRateLimitStore
from edugate.ratelimit.adapters.redis import RedisRateLimitStore
from edugate.ratelimit.factory import create_rate_limit_store
from edugate.ratelimit.identity import client_identifier
from edugate.ratelimit.limiter import RateLimiter, rate_limit_headers, rate_limit_message, rate_limited
from edugate.ratelimit.ports.outbound import RateLimitStore
from edugate.ratelimit.types import RateLimitPreset, RateLimitPresets, RateLimitResult, WindowCount

__all__ = [
    "InMemoryRateLimitStore",
    "RateLimitPreset",
    "RateLimitPresets",
    "RateLimitResult",
    "RateLimitStore",
    "RateLimiter",
    "RedisRateLimitStore",
    "WindowCount",
    "client_identifier",
    "create_rate_limit_store",
    "rate_limit_headers",
    "rate_limit_message",
    "rate_limited",
]
