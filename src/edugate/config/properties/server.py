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
"""Application server configuration properties."""

from __future__ import annotations

from dataclasses import dataclass

from edugate.core.config import config_properties


@config_properties(prefix="edugate.server")
@dataclass
class ServerProperties:
    """Configuration for the uvicorn server (edugate.server.*).

    ``forwarded_allow_ips`` lists the proxies whose ``X-Forwarded-For``
    header uvicorn applies to the client address.  Headers from any other
    peer are ignored.
    """

    host: str = "127.0.0.1"
    port: int = 8000
    proxy_headers: bool = True
    forwarded_allow_ips: str = "127.0.0.1"
