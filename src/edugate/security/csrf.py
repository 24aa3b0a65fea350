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
"""CSRF token utilities: double-submit cookie pattern.

The server mints a random token, stores it in an HTTP-only cookie, and the
client echoes it back in the ``x-csrf-token`` header on state-changing
requests.  The cookie is the only source of truth: nothing is persisted
server-side, so every request is validated independently.
"""

from __future__ import annotations

import re
import secrets
from collections.abc import Iterable
from typing import Any

import structlog

from edugate.config.properties.csrf import CsrfProperties
from edugate.kernel.types import ErrorCode

logger = structlog.get_logger("edugate.security.csrf")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
CSRF_TOKEN_BYTES: int = 32
"""Random bytes per token (64 hex characters)."""

CSRF_COOKIE_NAME: str = "csrf-token"
"""Name of the cookie that carries the CSRF token."""

CSRF_HEADER_NAME: str = "x-csrf-token"
"""Name of the request header that carries the submitted token."""

CSRF_TOKEN_MAX_AGE: int = 60 * 60 * 24
"""Cookie lifetime in seconds."""

STATE_CHANGING_METHODS: frozenset[str] = frozenset({"POST", "PUT", "PATCH", "DELETE"})
"""HTTP methods that require CSRF validation."""

CSRF_REJECTION_MESSAGE = "Invalid or missing CSRF token. Please refresh the page and try again."

_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")


# ---------------------------------------------------------------------------
# Token generator
# ---------------------------------------------------------------------------
def generate_csrf_token(nbytes: int = CSRF_TOKEN_BYTES) -> str:
    """Generate a cryptographically-secure CSRF token.

    Returns:
        A hex string of ``2 * nbytes`` characters.
    """
    return secrets.token_hex(nbytes)


def is_well_formed(token: Any, nbytes: int = CSRF_TOKEN_BYTES) -> bool:
    """Return ``True`` if *token* looks like something :func:`generate_csrf_token` produced."""
    return isinstance(token, str) and len(token) == nbytes * 2 and bool(_HEX_RE.match(token))


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------
def validate_csrf_token(cookie_token: Any, submitted_token: Any) -> bool:
    """Validate a submitted token against the cookie token.

    Both values must be non-empty strings of equal length; the content
    comparison runs in constant time.  Never raises.

    Args:
        cookie_token: The token value from the cookie.
        submitted_token: The token value from the request header.

    Returns:
        ``True`` if both tokens are present and match; ``False`` otherwise.
    """
    # both sides must be present
    if not isinstance(cookie_token, str) or not isinstance(submitted_token, str):
        return False
    if not cookie_token or not submitted_token:
        return False
    # tokens are fixed length
    if len(cookie_token) != len(submitted_token):
        return False
    return secrets.compare_digest(cookie_token.encode("utf-8"), submitted_token.encode("utf-8"))


def inspect_csrf_tokens(cookie_token: Any, submitted_token: Any) -> ErrorCode | None:
    """Classify a token pair.

    Returns:
        ``CSRF_MISSING`` if either side is absent or empty, ``CSRF_MISMATCH``
        if both are present but do not validate, ``None`` if valid.
    """
    if not cookie_token or not submitted_token:
        return ErrorCode.CSRF_MISSING
    if not validate_csrf_token(cookie_token, submitted_token):
        return ErrorCode.CSRF_MISMATCH
    return None


# ---------------------------------------------------------------------------
# Request classifier
# ---------------------------------------------------------------------------
def requires_csrf_check(method: str, path: str, exempt_paths: Iterable[str] = ()) -> bool:
    """Return ``True`` if a request with *method* to *path* must carry a valid token.

    Read-only methods never need a token.  State-changing methods do, unless
    the path falls under one of *exempt_paths* (prefix match).
    """
    if method.upper() not in STATE_CHANGING_METHODS:
        return False
    return not any(path.startswith(prefix) for prefix in exempt_paths)


# ---------------------------------------------------------------------------
# Cookie binder
# ---------------------------------------------------------------------------
def cookie_is_secure(props: CsrfProperties, development: bool) -> bool:
    """Resolve the ``Secure`` attribute: explicit setting wins, else off only in development."""
    if props.secure is not None:
        return props.secure
    return not development


def get_csrf_token_from_cookie(request: Any, props: CsrfProperties) -> str | None:
    return request.cookies.get(props.cookie_name) or None


def get_csrf_token_from_header(request: Any, props: CsrfProperties) -> str | None:
    return request.headers.get(props.header_name) or None


def get_or_create_csrf_token(request: Any, props: CsrfProperties) -> str:
    """Return the request's cookie token if well-formed, otherwise a fresh one."""
    existing = get_csrf_token_from_cookie(request, props)
    if is_well_formed(existing, props.token_bytes):
        return existing  # type: ignore[return-value]
    return generate_csrf_token(props.token_bytes)


def set_csrf_cookie(response: Any, token: str, props: CsrfProperties, *, development: bool = False) -> None:
    """Set the CSRF cookie on *response*.  Only response headers are touched."""
    response.set_cookie(
        key=props.cookie_name,
        value=token,
        max_age=props.max_age,
        path="/",
        httponly=True,
        samesite=props.same_site,
        secure=cookie_is_secure(props, development),
    )


def attach_csrf_token(
    response: Any,
    request: Any,
    props: CsrfProperties,
    *,
    development: bool = False,
) -> str:
    """Issue-or-reuse the request's token and bind it to *response*.

    Returns:
        The token the client should echo back in the CSRF header.
    """
    token = get_or_create_csrf_token(request, props)
    set_csrf_cookie(response, token, props, development=development)
    logger.debug("csrf_token_attached", endpoint=request.url.path, method=request.method)
    return token


def rotate_csrf_token(response: Any, props: CsrfProperties, *, development: bool = False) -> str:
    """Mint a brand-new token and bind it to *response*, replacing any existing one."""
    token = generate_csrf_token(props.token_bytes)
    set_csrf_cookie(response, token, props, development=development)
    logger.debug("csrf_token_rotated")
    return token
