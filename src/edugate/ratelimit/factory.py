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
"""Select the rate-limit store backend from configuration."""

from __future__ import annotations

import redis.asyncio as aioredis
import structlog

from edugate.config.properties.rate_limit import RateLimitProperties
from edugate.kernel.exceptions import ConfigurationException
from edugate.ratelimit.adapters.memory import InMemoryRateLimitStore
from edugate.ratelimit.adapters.redis import RedisRateLimitStore
from edugate.ratelimit.ports.outbound import RateLimitStore

logger = structlog.get_logger("edugate.ratelimit")


def detect_backend(props: RateLimitProperties) -> str:
    """Resolve ``auto``: redis when a URL is configured, memory otherwise."""
    if props.backend != "auto":
        return props.backend
    return "redis" if props.redis_url else "memory"


def create_rate_limit_store(props: RateLimitProperties) -> RateLimitStore:
    """Build the store the configuration asks for."""
    backend = detect_backend(props)

    if backend == "redis":
        if not props.redis_url:
            raise ConfigurationException(
                "edugate.rate_limit.backend is 'redis' but edugate.rate_limit.redis_url is not set"
            )
        client = aioredis.from_url(props.redis_url)
        logger.info("rate_limit_store_selected", backend="redis")
        return RedisRateLimitStore(client=client)

    logger.info("rate_limit_store_selected", backend="memory")
    return InMemoryRateLimitStore()
