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
"""EduGate Client: CSRF token cache and CSRF-aware HTTP client."""

from edugate.client.broadcast import BroadcastChannel, InMemoryBroadcastChannel, RedisBroadcastChannel
from edugate.client.http import CsrfHttpClient
from edugate.client.token_cache import TOKEN_MESSAGE_TYPE, CsrfTokenCache

__all__ = [
    "BroadcastChannel",
    "CsrfHttpClient",
    "CsrfTokenCache",
    "InMemoryBroadcastChannel",
    "RedisBroadcastChannel",
    "TOKEN_MESSAGE_TYPE",
]
