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
"""CsrfFilter: double-submit cookie CSRF protection.

Implements the `double-submit cookie`_ pattern:

* **Read-only methods** (GET, HEAD, OPTIONS, TRACE) pass through.  If the
  request carries no well-formed ``csrf-token`` cookie, one is provisioned
  on the response.
* **State-changing methods** (POST, PUT, PATCH, DELETE) must carry the
  cookie token in the ``x-csrf-token`` header as well.  A missing or
  mismatched token stops the request with a 403 before any handler runs.
  Paths under ``exempt_paths`` (health checks) are not checked.

.. _double-submit cookie:
   https://cheatsheetseries.owasp.org/cheatsheets/Cross-Site_Request_Forgery_Prevention_Cheat_Sheet.html#double-submit-cookie
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog
from prometheus_client import Counter

from edugate.config.properties.csrf import CsrfProperties
from edugate.kernel.types import ErrorCode, ErrorResponse
from edugate.security.csrf import (
    CSRF_REJECTION_MESSAGE,
    attach_csrf_token,
    get_csrf_token_from_cookie,
    get_csrf_token_from_header,
    inspect_csrf_tokens,
    is_well_formed,
    requires_csrf_check,
)
from edugate.web.adapters.starlette.responses import error_response
from edugate.web.filters import OncePerRequestFilter
from edugate.web.ordering import HIGHEST_PRECEDENCE, order
from edugate.web.ports.filter import CallNext

logger = structlog.get_logger("edugate.security.csrf")

_CSRF_REJECTIONS = Counter(
    "edugate_csrf_rejections_total",
    "Requests rejected by CSRF validation",
    ["code"],
)


@dataclass(frozen=True)
class PassResult:
    """The request may proceed.  ``checked`` is False when the classifier exempted it."""

    checked: bool


@dataclass(frozen=True)
class RejectResult:
    """The request must be stopped with ``status``."""

    code: ErrorCode
    status: int = 403
    message: str = CSRF_REJECTION_MESSAGE

    def to_error(self) -> ErrorResponse:
        return ErrorResponse(error=self.code.value, message=self.message, status=self.status)


def _sets_cookie(response: Any, cookie_name: str) -> bool:
    prefix = f"{cookie_name}="
    return any(value.startswith(prefix) for value in response.headers.getlist("set-cookie"))


@order(HIGHEST_PRECEDENCE + 500)
class CsrfFilter(OncePerRequestFilter):
    """Double-submit cookie CSRF gate.

    Runs last in the chain, immediately before the route handler.
    """

    def __init__(self, props: CsrfProperties | None = None, development: bool = False) -> None:
        self._props = props or CsrfProperties()
        self._development = development

    @property
    def props(self) -> CsrfProperties:
        return self._props

    def enforce(self, request: Any) -> PassResult | RejectResult:
        """Decide whether *request* may reach business logic.

        Reads the request only; never touches application state.
        """
        method: str = request.method
        path: str = request.url.path

        if not requires_csrf_check(method, path, self._props.exempt_paths):
            return PassResult(checked=False)

        cookie_token = get_csrf_token_from_cookie(request, self._props)
        header_token = get_csrf_token_from_header(request, self._props)
        code = inspect_csrf_tokens(cookie_token, header_token)

        if code is not None:
            logger.warning(
                "csrf_validation_failed",
                endpoint=path,
                method=method,
                code=code.value,
                has_cookie_token=cookie_token is not None,
                has_header_token=header_token is not None,
            )
            return RejectResult(code=code)

        logger.debug("csrf_token_validated", endpoint=path, method=method)
        return PassResult(checked=True)

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        result = self.enforce(request)
        if isinstance(result, RejectResult):
            _CSRF_REJECTIONS.labels(code=result.code.value).inc()
            return error_response(result.to_error())

        response = await call_next(request)

        cookie_token = get_csrf_token_from_cookie(request, self._props)
        if not is_well_formed(cookie_token, self._props.token_bytes) and not _sets_cookie(
            response, self._props.cookie_name
        ):
            attach_csrf_token(response, request, self._props, development=self._development)
        return response
