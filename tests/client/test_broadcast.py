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
"""Tests for the in-memory and Redis broadcast channels."""

from __future__ import annotations

import asyncio
import json

import pytest

from edugate.client.broadcast import BroadcastChannel, InMemoryBroadcastChannel, RedisBroadcastChannel


class FakePubSub:
    """Stub of redis.asyncio.client.PubSub backed by an asyncio.Queue."""

    def __init__(self, bus: dict[str, list[FakePubSub]]) -> None:
        self._bus = bus
        self._queue: asyncio.Queue[dict] = asyncio.Queue()
        self.closed = False

    def deliver(self, message: dict) -> None:
        self._queue.put_nowait(message)

    async def subscribe(self, *channels: str) -> None:
        for channel in channels:
            self._bus.setdefault(channel, []).append(self)
            self.deliver({"type": "subscribe", "channel": channel.encode(), "data": 1})

    async def unsubscribe(self, *channels: str) -> None:
        for channel in channels:
            self._bus.get(channel, []).remove(self)

    async def listen(self):
        while True:
            yield await self._queue.get()

    async def aclose(self) -> None:
        self.closed = True


class FakeRedis:
    """Stub of redis.asyncio.Redis supporting publish and pubsub."""

    def __init__(self, bus: dict[str, list[FakePubSub]] | None = None) -> None:
        self.bus = bus if bus is not None else {}
        self.published: list[tuple[str, str]] = []

    async def publish(self, channel: str, data: str) -> int:
        self.published.append((channel, data))
        subscribers = self.bus.get(channel, [])
        for pubsub in subscribers:
            pubsub.deliver({"type": "message", "channel": channel.encode(), "data": data.encode()})
        return len(subscribers)

    def pubsub(self) -> FakePubSub:
        return FakePubSub(self.bus)


class Inbox:
    def __init__(self) -> None:
        self.messages: list[dict] = []

    async def __call__(self, message: dict) -> None:
        self.messages.append(message)


class TestInMemoryBroadcastChannel:
    def test_protocol_compliance(self):
        channel = InMemoryBroadcastChannel("proto")
        assert isinstance(channel, BroadcastChannel)

    @pytest.mark.asyncio
    async def test_peers_receive_but_sender_does_not(self):
        sender = InMemoryBroadcastChannel("tabs-1")
        peer = InMemoryBroadcastChannel("tabs-1")
        sender_inbox, peer_inbox = Inbox(), Inbox()
        await sender.subscribe(sender_inbox)
        await peer.subscribe(peer_inbox)

        await sender.publish({"type": "csrf-token", "token": "t"})

        assert peer_inbox.messages == [{"type": "csrf-token", "token": "t"}]
        assert sender_inbox.messages == []
        await sender.close()
        await peer.close()

    @pytest.mark.asyncio
    async def test_names_are_isolated(self):
        a = InMemoryBroadcastChannel("tabs-2a")
        b = InMemoryBroadcastChannel("tabs-2b")
        inbox = Inbox()
        await b.subscribe(inbox)
        await a.publish({"type": "csrf-token", "token": "t"})
        assert inbox.messages == []
        await a.close()
        await b.close()

    @pytest.mark.asyncio
    async def test_closed_peer_stops_receiving(self):
        sender = InMemoryBroadcastChannel("tabs-3")
        peer = InMemoryBroadcastChannel("tabs-3")
        inbox = Inbox()
        await peer.subscribe(inbox)
        await peer.close()
        await sender.publish({"type": "csrf-token", "token": "t"})
        assert inbox.messages == []
        await sender.close()

    @pytest.mark.asyncio
    async def test_publish_after_close_raises(self):
        channel = InMemoryBroadcastChannel("tabs-4")
        await channel.close()
        with pytest.raises(RuntimeError, match="closed"):
            await channel.publish({"type": "csrf-token", "token": "t"})


class TestRedisBroadcastChannel:
    @pytest.mark.asyncio
    async def test_publish_wraps_message_in_envelope(self):
        redis = FakeRedis()
        channel = RedisBroadcastChannel(redis, "csrf-token")
        await channel.publish({"type": "csrf-token", "token": "t"})
        (name, payload), = redis.published
        assert name == "csrf-token"
        envelope = json.loads(payload)
        assert envelope["message"] == {"type": "csrf-token", "token": "t"}
        assert envelope["origin"]

    @pytest.mark.asyncio
    async def test_peer_receives_and_echo_is_dropped(self):
        bus: dict = {}
        sender = RedisBroadcastChannel(FakeRedis(bus), "csrf-token")
        receiver = RedisBroadcastChannel(FakeRedis(bus), "csrf-token")
        sender_inbox, receiver_inbox = Inbox(), Inbox()
        await sender.subscribe(sender_inbox)
        await receiver.subscribe(receiver_inbox)

        await sender.publish({"type": "csrf-token", "token": "t"})
        await asyncio.sleep(0.01)

        assert receiver_inbox.messages == [{"type": "csrf-token", "token": "t"}]
        assert sender_inbox.messages == []
        await sender.close()
        await receiver.close()

    @pytest.mark.asyncio
    async def test_undecodable_messages_are_skipped(self):
        bus: dict = {}
        redis = FakeRedis(bus)
        receiver = RedisBroadcastChannel(redis, "csrf-token")
        inbox = Inbox()
        await receiver.subscribe(inbox)

        await redis.publish("csrf-token", "not json")
        await redis.publish("csrf-token", json.dumps({"origin": "other", "message": "not a dict"}))
        await redis.publish("csrf-token", json.dumps({"origin": "other", "message": {"type": "csrf-token"}}))
        await asyncio.sleep(0.01)

        assert inbox.messages == [{"type": "csrf-token"}]
        await receiver.close()

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_stop_listener(self):
        bus: dict = {}
        redis = FakeRedis(bus)
        receiver = RedisBroadcastChannel(redis, "csrf-token")
        inbox = Inbox()

        async def broken(message: dict) -> None:
            raise RuntimeError("handler bug")

        await receiver.subscribe(broken)
        await receiver.subscribe(inbox)

        for i in range(2):
            await redis.publish("csrf-token", json.dumps({"origin": "other", "message": {"n": i}}))
        await asyncio.sleep(0.01)

        assert inbox.messages == [{"n": 0}, {"n": 1}]
        await receiver.close()

    @pytest.mark.asyncio
    async def test_close_unsubscribes(self):
        bus: dict = {}
        channel = RedisBroadcastChannel(FakeRedis(bus), "csrf-token")
        await channel.subscribe(Inbox())
        assert len(bus["csrf-token"]) == 1
        await channel.close()
        assert bus["csrf-token"] == []
