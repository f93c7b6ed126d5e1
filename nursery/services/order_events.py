"""
In-process broker for order change notifications.

Order writes call `publish_order_event` after their commit; every open
`GET /orders/events` stream gets its own queue and relays each event as
server-sent events. Clients treat an event as a hint to re-fetch.
"""
import asyncio
import json
import logging
from typing import Optional, Set

from nursery.core.config import ORDER_EVENTS_KEEPALIVE_SECONDS

logger = logging.getLogger(__name__)

QUEUE_SIZE = 100


class OrderEventBroker:
    def __init__(self):
        self._subscribers: Set[asyncio.Queue] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=QUEUE_SIZE)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    def publish(self, payload: dict) -> None:
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(payload)
            except asyncio.QueueFull:
                # slow consumer; it re-fetches on the next event anyway
                logger.warning("Dropping order event for a slow subscriber")


broker = OrderEventBroker()


def publish_order_event(action: str, order_id: int, status: Optional[str] = None, user_id: Optional[int] = None):
    payload = {"action": action, "order_id": order_id, "status": status, "user_id": user_id}
    broker.publish(payload)
    logger.debug("Order event published: %s", payload)


def format_sse(payload: dict, event: str = "order") -> str:
    return f"event: {event}\ndata: {json.dumps(payload)}\n\n"


async def order_event_stream(keepalive: float = ORDER_EVENTS_KEEPALIVE_SECONDS, is_disconnected=None):
    queue = broker.subscribe()
    # Advise client on retry
    yield "retry: 3000\n\n"
    try:
        while True:
            if is_disconnected is not None and await is_disconnected():
                break
            try:
                payload = await asyncio.wait_for(queue.get(), timeout=keepalive)
                yield format_sse(payload)
            except asyncio.TimeoutError:
                # Keep-alive to prevent closes by proxies
                yield ": keep-alive\n\n"
    finally:
        broker.unsubscribe(queue)
