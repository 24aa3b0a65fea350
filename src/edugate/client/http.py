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
"""CSRF-aware HTTP client for calling EduGate-protected APIs."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import redis.asyncio as aioredis
import structlog

from edugate.client.broadcast import BroadcastChannel, InMemoryBroadcastChannel, RedisBroadcastChannel
from edugate.client.token_cache import CsrfTokenCache
from edugate.config.properties.client import ClientProperties
from edugate.kernel.types import ErrorCode
from edugate.security.csrf import CSRF_HEADER_NAME

logger = structlog.get_logger("edugate.client")

AuthTokenProvider = Callable[[], Awaitable[str | None] | str | None]


class CsrfHttpClient:
    """HTTP client that attaches the CSRF token (and bearer token) to every request.

    The underlying ``httpx.AsyncClient`` keeps the ``csrf-token`` cookie set
    by the token endpoint; the cached token is echoed in the
    ``x-csrf-token`` header.  A 403 carrying a CSRF error code invalidates
    the cache and the request is retried once with a fresh token.
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        token_path: str = "/api/csrf-token",
        header_name: str = CSRF_HEADER_NAME,
        cache_ttl: float = 240.0,
        fetch_timeout: float = 3.0,
        channel: BroadcastChannel | None = None,
        auth_token_provider: AuthTokenProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(base_url=base_url, transport=transport)
        self._token_path = token_path
        self._header_name = header_name
        self._auth_token_provider = auth_token_provider
        self._cache = CsrfTokenCache(
            self.fetch_token,
            ttl=cache_ttl,
            fetch_timeout=fetch_timeout,
            channel=channel,
        )

    @classmethod
    def from_properties(
        cls,
        props: ClientProperties,
        *,
        auth_token_provider: AuthTokenProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> CsrfHttpClient:
        channel: BroadcastChannel
        if props.redis_url:
            channel = RedisBroadcastChannel(aioredis.from_url(props.redis_url), props.channel)
        else:
            channel = InMemoryBroadcastChannel(props.channel)
        return cls(
            props.base_url,
            token_path=props.token_path,
            cache_ttl=props.cache_ttl,
            fetch_timeout=props.fetch_timeout,
            channel=channel,
            auth_token_provider=auth_token_provider,
            transport=transport,
        )

    @property
    def token_cache(self) -> CsrfTokenCache:
        return self._cache

    async def fetch_token(self) -> str:
        """GET the token endpoint and return ``token`` from its JSON body."""
        response = await self._client.get(self._token_path, headers={"Cache-Control": "no-store"})
        response.raise_for_status()
        token = response.json()["token"]
        if not isinstance(token, str) or not token:
            raise ValueError("Token endpoint returned an empty token")
        return token

    async def _auth_token(self) -> str | None:
        if self._auth_token_provider is None:
            return None
        result = self._auth_token_provider()
        if inspect.isawaitable(result):
            result = await result
        return result

    async def prepare_headers(self, headers: dict[str, str] | None = None) -> dict[str, str]:
        """Return *headers* plus ``Authorization`` and the CSRF header where available."""
        prepared = dict(headers or {})
        auth_token = await self._auth_token()
        if auth_token:
            prepared["Authorization"] = f"Bearer {auth_token}"
        csrf_token = await self._cache.get_cached_or_fetch()
        if csrf_token:
            prepared[self._header_name] = csrf_token
        return prepared

    @staticmethod
    def _is_csrf_rejection(response: httpx.Response) -> bool:
        if response.status_code != 403:
            return False
        try:
            body = response.json()
        except ValueError:
            return False
        if not isinstance(body, dict):
            return False
        try:
            return ErrorCode(body.get("error")).is_csrf
        except ValueError:
            return False

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        headers = kwargs.pop("headers", None)
        response = await self._client.request(method, url, headers=await self.prepare_headers(headers), **kwargs)
        if self._is_csrf_rejection(response):
            logger.info("csrf_rejected_retrying", method=method, url=url)
            self._cache.invalidate()
            response = await self._client.request(method, url, headers=await self.prepare_headers(headers), **kwargs)
        return response

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def patch(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PATCH", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)

    async def start(self) -> None:
        await self._cache.start()

    async def stop(self) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the token cache and the underlying HTTP client."""
        await self._cache.close()
        await self._client.aclose()

    async def __aenter__(self) -> CsrfHttpClient:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
