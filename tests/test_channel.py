"""Tests for mdviewer.channel module."""

import asyncio

import pytest

from mdviewer.channel import Channel, ChannelEndpoint


class TestDelivery:
    def test_messages_arrive_in_send_order(self, channel, settle):
        received = []
        channel.content.on("ping", received.append)

        for i in range(5):
            channel.control.send("ping", i)
        settle()

        assert received == [0, 1, 2, 3, 4]

    def test_multiple_payload_values(self, channel, settle):
        received = []
        channel.control.on("reply", lambda *args: received.append(args))

        channel.content.send("reply", True, "UTF-8", 12.5)
        settle()

        assert received == [(True, "UTF-8", 12.5)]

    def test_coroutine_handlers_are_awaited(self, channel, settle):
        received = []

        async def handler(value):
            await asyncio.sleep(0)
            received.append(value)

        channel.content.on("ping", handler)
        channel.control.send("ping", 1)
        channel.control.send("ping", 2)
        settle()

        assert received == [1, 2]

    def test_replies_are_delivered_by_settle(self, channel, settle):
        log = []
        channel.content.on("ping", lambda: channel.content.send("pong"))
        channel.control.on("pong", lambda: log.append("pong"))

        channel.control.send("ping")
        delivered = settle()

        assert log == ["pong"]
        assert delivered == 2

    def test_unhandled_message_is_dropped(self, channel, settle, caplog):
        channel.control.send("unknown")
        settle()
        assert channel.content.pending == 0
        assert "No handler for unknown" in caplog.text

    def test_later_registration_replaces(self, channel, settle):
        received = []
        channel.content.on("ping", lambda: received.append("old"))
        channel.content.on("ping", lambda: received.append("new"))

        channel.control.send("ping")
        settle()

        assert received == ["new"]

    def test_off(self, channel, settle):
        received = []
        channel.content.on("ping", lambda: received.append(1))
        channel.content.off("ping")

        channel.control.send("ping")
        settle()

        assert received == []


class TestEndpoint:
    def test_unconnected_send_raises(self):
        with pytest.raises(RuntimeError):
            ChannelEndpoint("lonely").send("ping")

    def test_pending_counts_inbox(self, channel):
        channel.control.send("a")
        channel.control.send("b")
        assert channel.content.pending == 2
        assert channel.control.pending == 0

    def test_reset_drops_handlers_and_messages(self, channel, settle):
        received = []
        channel.content.on("ping", received.append)
        channel.control.send("ping", 1)

        channel.reset()
        channel.control.send("ping", 2)
        settle()

        assert received == []
        assert channel.content.pending == 0

    def test_serve_handles_messages(self):
        async def scenario():
            channel = Channel()
            received = []
            done = asyncio.Event()

            def handler(value):
                received.append(value)
                if value == 3:
                    done.set()

            channel.content.on("ping", handler)
            task = asyncio.create_task(channel.content.serve())
            for i in (1, 2, 3):
                channel.control.send("ping", i)
            await asyncio.wait_for(done.wait(), timeout=1)
            task.cancel()
            return received

        assert asyncio.run(scenario()) == [1, 2, 3]


class TestSettle:
    def test_endless_ping_pong_raises(self, channel):
        channel.content.on("ping", lambda: channel.content.send("pong"))
        channel.control.on("pong", lambda: channel.control.send("ping"))
        channel.control.send("ping")

        with pytest.raises(RuntimeError):
            asyncio.run(channel.settle(max_rounds=10))
