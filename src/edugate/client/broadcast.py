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
"""Cross-instance broadcast of freshly fetched CSRF tokens.

Instances that share a channel name hear each other's messages but never
their own, so one fetch can serve every sibling instance.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from collections.abc import Awaitable, Callable
from typing import Any, ClassVar, Protocol, runtime_checkable

import structlog

logger = structlog.get_logger("edugate.client.broadcast")

BroadcastHandler = Callable[[dict[str, Any]], Awaitable[None]]


@runtime_checkable
class BroadcastChannel(Protocol):
    """Abstract interface for a named publish/subscribe channel."""

    async def publish(self, message: dict[str, Any]) -> None: ...

    async def subscribe(self, handler: BroadcastHandler) -> None: ...

    async def close(self) -> None: ...


class InMemoryBroadcastChannel:
    """Process-local channel.  Every open instance with the same name is a peer."""

    _registry: ClassVar[dict[str, list[InMemoryBroadcastChannel]]] = {}

    def __init__(self, name: str) -> None:
        self._name = name
        self._handlers: list[BroadcastHandler] = []
        self._closed = False
        self._registry.setdefault(name, []).append(self)

    @property
    def name(self) -> str:
        return self._name

    async def publish(self, message: dict[str, Any]) -> None:
        if self._closed:
            raise RuntimeError(f"Broadcast channel '{self._name}' is closed")
        for peer in list(self._registry.get(self._name, [])):
            if peer is self:
                continue
            for handler in list(peer._handlers):
                await handler(dict(message))

    async def subscribe(self, handler: BroadcastHandler) -> None:
        self._handlers.append(handler)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._handlers.clear()
        peers = self._registry.get(self._name, [])
        if self in peers:
            peers.remove(self)
        if not peers:
            self._registry.pop(self._name, None)


class RedisBroadcastChannel:
    """Channel carried over Redis pub/sub, for peers in different processes.

    Messages travel as JSON envelopes ``{"origin": ..., "message": ...}``;
    envelopes bearing this instance's origin are dropped on receipt.
    """

    def __init__(self, client: Any, name: str) -> None:
        self._client = client
        self._name = name
        self._origin = uuid.uuid4().hex
        self._handlers: list[BroadcastHandler] = []
        self._pubsub: Any = None
        self._listener: asyncio.Task[None] | None = None

    @property
    def name(self) -> str:
        return self._name

    async def publish(self, message: dict[str, Any]) -> None:
        payload = json.dumps({"origin": self._origin, "message": message})
        await self._client.publish(self._name, payload)

    async def subscribe(self, handler: BroadcastHandler) -> None:
        self._handlers.append(handler)
        if self._listener is None:
            self._pubsub = self._client.pubsub()
            await self._pubsub.subscribe(self._name)
            self._listener = asyncio.create_task(self._listen())

    async def close(self) -> None:
        if self._listener is not None:
            self._listener.cancel()
            await asyncio.gather(self._listener, return_exceptions=True)
            self._listener = None
        if self._pubsub is not None:
            await self._pubsub.unsubscribe(self._name)
            await self._pubsub.aclose()
            self._pubsub = None
        self._handlers.clear()

    def _decode(self, raw: Any) -> dict[str, Any] | None:
        data = raw.get("data")
        if isinstance(data, bytes):
            data = data.decode("utf-8", errors="replace")
        try:
            envelope = json.loads(data)
        except (TypeError, ValueError):
            logger.debug("broadcast_message_undecodable", channel=self._name)
            return None
        if not isinstance(envelope, dict) or envelope.get("origin") == self._origin:
            return None
        message = envelope.get("message")
        return message if isinstance(message, dict) else None

    async def _listen(self) -> None:
        try:
            async for raw in self._pubsub.listen():
                if raw.get("type") != "message":
                    continue
                message = self._decode(raw)
                if message is None:
                    continue
                for handler in list(self._handlers):
                    try:
                        await handler(message)
                    except Exception as exc:
                        logger.error(
                            "broadcast_handler_failed",
                            channel=self._name,
                            error=str(exc),
                            error_type=type(exc).__name__,
                        )
        except asyncio.CancelledError:
            pass
