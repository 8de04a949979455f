import asyncio
import json

import pytest

from database import SessionLocal
from live_feed import FeedEvent, InventoryFeed
from routers.inventory_items import _enqueue_event, inventory_event_stream


class StubRequest:
    def __init__(self):
        self.disconnected = False

    async def is_disconnected(self):
        return self.disconnected


@pytest.fixture
def feed(db_session):
    feed = InventoryFeed(session_factory=SessionLocal)
    feed.start()
    try:
        yield feed
    finally:
        feed.stop()


def test_stream_subscribes_while_open_and_unsubscribes_on_close(db_session, make_item, feed):
    async def scenario():
        stream = inventory_event_stream(StubRequest(), feed, keepalive=0.01)
        assert feed.subscriber_count == 0

        assert await stream.__anext__() == ": keep-alive\n\n"
        assert feed.subscriber_count == 1

        item = make_item(name="Gauze")
        message = await stream.__anext__()
        while message.startswith(":"):
            message = await stream.__anext__()

        await stream.aclose()
        return item.id, message

    item_id, message = asyncio.run(scenario())

    payload = json.loads(message[len("data: "):])
    assert payload["collection"] == "inventory"
    assert payload["item_id"] == item_id
    assert feed.subscriber_count == 0


def test_stream_ends_when_client_disconnects(db_session, feed):
    async def scenario():
        request = StubRequest()
        request.disconnected = True
        return [chunk async for chunk in inventory_event_stream(request, feed, keepalive=0.01)]

    assert asyncio.run(scenario()) == []
    assert feed.subscriber_count == 0


def test_full_queue_drops_new_events():
    async def scenario():
        queue = asyncio.Queue(maxsize=1)
        _enqueue_event(queue, FeedEvent(collection="inventory", item_id="first"))
        _enqueue_event(queue, FeedEvent(collection="inventory", item_id="second"))
        return queue.qsize(), (await queue.get()).item_id

    assert asyncio.run(scenario()) == (1, "first")
