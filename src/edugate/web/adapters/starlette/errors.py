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
"""Global exception handler: maps EduGate exceptions to ``{error, message}`` JSON."""

from __future__ import annotations

import structlog
from starlette.requests import Request
from starlette.responses import JSONResponse

from edugate.kernel.exceptions import (
    CsrfException,
    EduGateException,
    InfrastructureException,
    OperationTimeoutException,
    RateLimitException,
    SecurityException,
)
from edugate.kernel.types import ErrorCode, ErrorResponse
from edugate.web.adapters.starlette.responses import error_response

logger = structlog.get_logger("edugate.web")

_STATUS_MAP: dict[type, int] = {
    CsrfException: 403,
    SecurityException: 403,
    RateLimitException: 429,
    OperationTimeoutException: 504,
    InfrastructureException: 502,
}


def _get_status_code(exc: Exception) -> int:
    """Map exception type to HTTP status code."""
    for exc_type, status in _STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return status
    return 500


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle EduGate exceptions raised by route handlers."""
    status = _get_status_code(exc)

    if isinstance(exc, EduGateException):
        code = exc.code or type(exc).__name__
        retry_after = exc.retry_after_seconds if isinstance(exc, RateLimitException) else None
        body = ErrorResponse(error=code, message=str(exc), status=status, retry_after_seconds=retry_after)
    else:
        body = ErrorResponse(error=ErrorCode.INTERNAL_ERROR.value, message="Internal server error", status=status)

    log = logger.warning if status < 500 else logger.error
    log("request_rejected", path=request.url.path, method=request.method, status=status, code=body.error)

    headers = {"Retry-After": str(body.retry_after_seconds)} if body.retry_after_seconds is not None else None
    return error_response(body, headers=headers)
