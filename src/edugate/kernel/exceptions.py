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
"""Unified exception hierarchy for EduGate.

All request-validation errors inherit from EduGateException so that the web
layer can map them to structured JSON responses in one place.

Categories:
- SecurityException: CSRF rejections
- InfrastructureException: rate limiting, store failures, client fetch timeouts
- ConfigurationException: invalid configuration detected at startup
"""

from __future__ import annotations

from edugate.kernel.types import ErrorCode

# =============================================================================
# Base Exception
# =============================================================================


class EduGateException(Exception):
    """Base exception for all EduGate errors.

    Carries an optional error code and context dict for structured error data.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. ``CSRF_MISSING``).
        context: Arbitrary key-value pairs for error context and debugging.
    """

    default_code: ErrorCode | None = None

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        if code is None and self.default_code is not None:
            code = self.default_code.value
        self.code = code
        self.context: dict = context if context is not None else {}


class ConfigurationException(EduGateException):
    """Configuration is missing or invalid."""


# =============================================================================
# Security Exceptions
# =============================================================================


class SecurityException(EduGateException):
    """Request failed a security check."""


class CsrfException(SecurityException):
    """CSRF double-submit validation failed."""

    default_code = ErrorCode.CSRF_INVALID


class CsrfMissingException(CsrfException):
    """The cookie token or the submitted token is absent."""

    default_code = ErrorCode.CSRF_MISSING


class CsrfMismatchException(CsrfException):
    """Both tokens are present but do not match."""

    default_code = ErrorCode.CSRF_MISMATCH


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(EduGateException):
    """Infrastructure failures: shared stores, network, timeouts."""


class RateLimitException(InfrastructureException):
    """Request rate limit exceeded."""

    default_code = ErrorCode.RATE_LIMITED

    def __init__(
        self,
        message: str,
        retry_after_seconds: int,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message, code=code, context=context)
        self.retry_after_seconds = retry_after_seconds


class RateLimitStoreException(InfrastructureException):
    """The rate-limit counter store could not be reached or returned garbage."""


class OperationTimeoutException(InfrastructureException):
    """Operation exceeded its allowed time limit."""


class TokenFetchTimeoutException(OperationTimeoutException):
    """Fetching a CSRF token from the token endpoint took too long."""

    default_code = ErrorCode.FETCH_TIMEOUT
