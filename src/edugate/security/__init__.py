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
"""EduGate Security: CSRF double-submit cookie protection."""

from edugate.security.csrf import (
    CSRF_COOKIE_NAME,
    CSRF_HEADER_NAME,
    CSRF_REJECTION_MESSAGE,
    CSRF_TOKEN_BYTES,
    CSRF_TOKEN_MAX_AGE,
    STATE_CHANGING_METHODS,
    attach_csrf_token,
    generate_csrf_token,
    get_or_create_csrf_token,
    inspect_csrf_tokens,
    is_well_formed,
    requires_csrf_check,
    rotate_csrf_token,
    set_csrf_cookie,
    validate_csrf_token,
)

__all__ = [
    "CSRF_COOKIE_NAME",
    "CSRF_HEADER_NAME",
    "CSRF_REJECTION_MESSAGE",
    "CSRF_TOKEN_BYTES",
    "CSRF_TOKEN_MAX_AGE",
    "STATE_CHANGING_METHODS",
    "attach_csrf_token",
    "generate_csrf_token",
    "get_or_create_csrf_token",
    "inspect_csrf_tokens",
    "is_well_formed",
    "requires_csrf_check",
    "rotate_csrf_token",
    "set_csrf_cookie",
    "validate_csrf_token",
]
