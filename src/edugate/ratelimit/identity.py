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
"""Resolve the identity a request is rate limited under."""

from __future__ import annotations

from typing import Any


def _user_id(user: Any) -> str | None:
    for attr in ("user_id", "id", "sub"):
        value = user.get(attr) if isinstance(user, dict) else getattr(user, attr, None)
        if value:
            return str(value)
    return None


def client_identifier(request: Any) -> str:
    """Return ``user:<id>`` for authenticated requests, ``ip:<address>`` otherwise.

    The user is read from ``request.state.user``, which only the
    authentication layer sets.  Anonymous requests are keyed on the peer
    address.  Forwarding headers are never read here: behind a trusted proxy
    the server (uvicorn ``proxy_headers`` with ``forwarded_allow_ips``)
    has already rewritten ``request.client`` to the real client.
    """
    state = getattr(request, "state", None)
    user = getattr(state, "user", None) if state is not None else None
    if user:
        user_id = _user_id(user)
        if user_id:
            return f"user:{user_id}"

    client = getattr(request, "client", None)
    if client is not None and getattr(client, "host", None):
        return f"ip:{client.host}"

    return "ip:unknown"
