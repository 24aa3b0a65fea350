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
"""Error codes and the wire-level error body.

All types use only the Python standard library.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Machine-readable error codes returned in the ``error`` field."""

    CSRF_INVALID = "CSRF_INVALID"
    CSRF_MISSING = "CSRF_MISSING"
    CSRF_MISMATCH = "CSRF_MISMATCH"
    RATE_LIMITED = "RATE_LIMITED"
    FETCH_TIMEOUT = "FETCH_TIMEOUT"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    @property
    def is_csrf(self) -> bool:
        return self in (ErrorCode.CSRF_INVALID, ErrorCode.CSRF_MISSING, ErrorCode.CSRF_MISMATCH)


@dataclass(frozen=True)
class ErrorResponse:
    """Structured error body: ``{"error": <code>, "message": <text>}``.

    ``retry_after_seconds`` is only serialized when set, which is the case for
    rate-limit rejections.
    """

    error: str
    message: str
    status: int
    retry_after_seconds: int | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"error": self.error, "message": self.message}
        if self.retry_after_seconds is not None:
            result["retry_after_seconds"] = self.retry_after_seconds
        return result
