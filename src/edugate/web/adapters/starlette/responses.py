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
"""JSON error response helpers shared by filters and exception handlers."""

from __future__ import annotations

from starlette.responses import JSONResponse

from edugate.kernel.types import ErrorCode, ErrorResponse
from edugate.ratelimit.limiter import rate_limit_headers, rate_limit_message
from edugate.ratelimit.types import RateLimitResult


def error_response(error: ErrorResponse, headers: dict[str, str] | None = None) -> JSONResponse:
    """Render *error* as ``{error, message}`` JSON with its status code."""
    return JSONResponse(error.to_dict(), status_code=error.status, headers=headers)


def rate_limit_response(result: RateLimitResult) -> JSONResponse:
    """429 response carrying ``Retry-After`` and the ``X-RateLimit-*`` headers."""
    retry_after = result.retry_after_seconds or 1
    error = ErrorResponse(
        error=ErrorCode.RATE_LIMITED.value,
        message=rate_limit_message(retry_after),
        status=429,
        retry_after_seconds=retry_after,
    )
    return error_response(error, headers=rate_limit_headers(result))
