"""
Unit Tests: Order event broker and SSE stream
"""

import asyncio

import pytest

from nursery.services.order_events import OrderEventBroker, broker, format_sse, order_event_stream, publish_order_event


class TestBroker:

    def test_publish_reaches_every_subscriber(self):
        local = OrderEventBroker()
        first, second = local.subscribe(), local.subscribe()

        local.publish({"order_id": 1})

        assert first.get_nowait() == {"order_id": 1}
        assert second.get_nowait() == {"order_id": 1}

    def test_unsubscribed_queue_gets_nothing(self):
        local = OrderEventBroker()
        queue = local.subscribe()
        local.unsubscribe(queue)

        local.publish({"order_id": 1})

        assert queue.empty()
        assert local.subscriber_count == 0

    def test_full_queue_drops_event(self):
        local = OrderEventBroker()
        queue = local.subscribe()
        for i in range(queue.maxsize):
            local.publish({"order_id": i})

        local.publish({"order_id": "overflow"})

        assert queue.qsize() == queue.maxsize


def test_format_sse():
    assert format_sse({"order_id": 3}) == 'event: order\ndata: {"order_id": 3}\n\n'


@pytest.mark.asyncio
class TestEventStream:

    async def test_retry_then_event_then_keepalive(self):
        stream = order_event_stream(keepalive=0.05)

        assert await stream.__anext__() == "retry: 3000\n\n"
        publish_order_event("created", 42, "Paid", 7)
        event = await stream.__anext__()
        keepalive = await stream.__anext__()
        await stream.aclose()

        assert event.startswith("event: order\n")
        assert '"order_id": 42' in event
        assert keepalive == ": keep-alive\n\n"
        assert broker.subscriber_count == 0

    async def test_stops_when_client_disconnects(self):
        async def disconnected():
            return True

        chunks = [chunk async for chunk in order_event_stream(keepalive=0.05, is_disconnected=disconnected)]

        assert chunks == ["retry: 3000\n\n"]
        await asyncio.sleep(0)
        assert broker.subscriber_count == 0
