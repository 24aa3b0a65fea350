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
"""EduGate web application factory built on Starlette."""

from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator, Sequence
from typing import Any

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import BaseRoute, Route

from edugate.config.properties.app import AppProperties
from edugate.config.properties.csrf import CsrfProperties
from edugate.config.properties.rate_limit import RateLimitProperties
from edugate.core.config import Config
from edugate.kernel.exceptions import EduGateException
from edugate.ratelimit.factory import create_rate_limit_store
from edugate.ratelimit.limiter import RateLimiter
from edugate.security.csrf import get_or_create_csrf_token, set_csrf_cookie
from edugate.web.adapters.starlette.errors import global_exception_handler
from edugate.web.adapters.starlette.filter_chain import WebFilterChainMiddleware
from edugate.web.adapters.starlette.filters import (
    CsrfFilter,
    RateLimitFilter,
    RequestLoggingFilter,
    TransactionIdFilter,
)
from edugate.web.ports.filter import WebFilter

HEALTH_PATH = "/api/health"


def make_csrf_token_endpoint(props: CsrfProperties, development: bool) -> Any:
    """GET endpoint returning ``{"token": ...}`` and (re)setting the cookie."""

    async def csrf_token_endpoint(request: Request) -> JSONResponse:
        token = get_or_create_csrf_token(request, props)
        response = JSONResponse({"token": token}, headers={"Cache-Control": "no-store"})
        set_csrf_cookie(response, token, props, development=development)
        return response

    return csrf_token_endpoint


async def health_endpoint(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


def create_app(
    config: Config | None = None,
    *,
    rate_limiter: RateLimiter | None = None,
    extra_routes: Sequence[BaseRoute] = (),
    extra_filters: Sequence[WebFilter] = (),
    debug: bool = False,
) -> Starlette:
    """Create a Starlette application guarded by the EduGate request gate.

    Includes:
    - WebFilter chain (transaction ID, request logging, rate limiting, CSRF, + extra filters)
    - Global exception handler for EduGate exceptions
    - ``GET {csrf.token_path}`` token endpoint and ``GET /api/health``
    - Caller-supplied routes (the application's own handlers)
    """
    config = config or Config()
    app_props = config.bind(AppProperties)
    csrf_props = config.bind(CsrfProperties)
    rate_props = config.bind(RateLimitProperties)
    development = app_props.is_development

    filters: list[WebFilter] = [
        TransactionIdFilter(),
        RequestLoggingFilter(),
        CsrfFilter(csrf_props, development=development),
    ]

    if rate_props.enabled:
        if rate_limiter is None:
            rate_limiter = RateLimiter.from_properties(rate_props, create_rate_limit_store(rate_props))
        filters.append(RateLimitFilter(rate_limiter, rate_props))

    filters.extend(extra_filters)

    routes: list[BaseRoute] = [
        Route(HEALTH_PATH, health_endpoint, methods=["GET"]),
        Route(csrf_props.token_path, make_csrf_token_endpoint(csrf_props, development), methods=["GET"]),
    ]
    routes.extend(extra_routes)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        store = rate_limiter.store if rate_limiter is not None else None
        start = getattr(store, "start", None)
        if start is not None:
            await start()
        yield
        stop = getattr(store, "stop", None)
        if stop is not None:
            await stop()

    app = Starlette(
        debug=debug,
        routes=routes,
        middleware=[Middleware(WebFilterChainMiddleware, filters=filters)],
        exception_handlers={EduGateException: global_exception_handler},
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.rate_limiter = rate_limiter
    return app
