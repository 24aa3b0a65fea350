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
"""Tests for the global exception handler."""

from __future__ import annotations

from starlette.routing import Route
from starlette.testclient import TestClient

from edugate.core.config import Config
from edugate.kernel.exceptions import (
    ConfigurationException,
    CsrfMismatchException,
    InfrastructureException,
    RateLimitException,
    TokenFetchTimeoutException,
)
from edugate.web.adapters.starlette.app import create_app


def _raiser(exc: Exception):
    async def endpoint(request):
        raise exc

    return endpoint


def make_test_app():
    routes = [
        Route("/csrf", _raiser(CsrfMismatchException("Token mismatch"))),
        Route("/limited", _raiser(RateLimitException("Too many requests. Please wait 12 seconds", 12))),
        Route("/timeout", _raiser(TokenFetchTimeoutException("Token fetch timed out"))),
        Route("/upstream", _raiser(InfrastructureException("Store unreachable", code="STORE_DOWN"))),
        Route("/config", _raiser(ConfigurationException("bad config"))),
    ]
    config = Config({"edugate": {"rate_limit": {"enabled": False}}})
    return create_app(config, extra_routes=routes)


class TestGlobalExceptionHandler:
    def setup_method(self):
        self.client = TestClient(make_test_app(), raise_server_exceptions=False)

    def test_csrf_exception_returns_403(self):
        resp = self.client.get("/csrf")
        assert resp.status_code == 403
        assert resp.json() == {"error": "CSRF_MISMATCH", "message": "Token mismatch"}

    def test_rate_limit_exception_returns_429(self):
        resp = self.client.get("/limited")
        assert resp.status_code == 429
        assert resp.headers["Retry-After"] == "12"
        assert resp.json()["retry_after_seconds"] == 12
        assert resp.json()["error"] == "RATE_LIMITED"

    def test_timeout_returns_504(self):
        resp = self.client.get("/timeout")
        assert resp.status_code == 504
        assert resp.json()["error"] == "FETCH_TIMEOUT"

    def test_infrastructure_returns_502(self):
        resp = self.client.get("/upstream")
        assert resp.status_code == 502
        assert resp.json() == {"error": "STORE_DOWN", "message": "Store unreachable"}

    def test_uncoded_exception_uses_class_name(self):
        resp = self.client.get("/config")
        assert resp.status_code == 500
        assert resp.json()["error"] == "ConfigurationException"
