"""
Tests for the gateway event table (unobot/events/gateway_events.py).
"""

from unittest.mock import AsyncMock

import pytest

from unobot.events.gateway_events import EventTable, GatewayEvent


class TestEventTable:
    @pytest.mark.asyncio
    async def test_publish_reaches_subscribers_in_order(self):
        calls = []

        async def first(*args):
            calls.append(("first", args))

        async def second(*args):
            calls.append(("second", args))

        table = EventTable()
        table.subscribe(GatewayEvent.GUILD_JOINED, first)
        table.subscribe(GatewayEvent.GUILD_JOINED, second)
        await table.publish(GatewayEvent.GUILD_JOINED, "guild")

        assert calls == [("first", ("guild",)), ("second", ("guild",))]

    @pytest.mark.asyncio
    async def test_other_events_untouched(self):
        subscriber = AsyncMock()
        table = EventTable()
        table.subscribe(GatewayEvent.GUILD_LEFT, subscriber)
        await table.publish(GatewayEvent.GUILD_JOINED, "guild")
        subscriber.assert_not_awaited()

    def test_frozen_table_rejects_subscribers(self):
        table = EventTable().freeze()
        with pytest.raises(RuntimeError):
            table.subscribe(GatewayEvent.SHARD_READY, AsyncMock())

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_skip_the_rest(self, caplog):
        after = AsyncMock()
        table = EventTable()
        table.subscribe(GatewayEvent.SHARD_READY, AsyncMock(side_effect=RuntimeError("boom")))
        table.subscribe(GatewayEvent.SHARD_READY, after)

        await table.publish(GatewayEvent.SHARD_READY, 0)

        after.assert_awaited_once_with(0)
        assert any(record.name == "UnoBot.Events" for record in caplog.records)
