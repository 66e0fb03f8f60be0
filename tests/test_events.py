import json
from decimal import Decimal

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from food_delivery.core.exceptions import InvalidInputError
from food_delivery.services.events import (
    ORDER_NEW,
    ORDER_UPDATE,
    InMemoryEventSink,
    RedisEventSink,
)


class FakeRedis:
    def __init__(self, receivers=2, fail=False):
        self.receivers = receivers
        self.fail = fail
        self.published = []

    async def publish(self, channel, message):
        if self.fail:
            raise RedisConnectionError("connection refused")
        self.published.append((channel, message))
        return self.receivers

    async def ping(self):
        if self.fail:
            raise RedisConnectionError("connection refused")
        return True


@pytest.mark.anyio
async def test_memory_sink_records_events():
    sink = InMemoryEventSink()
    result = await sink.publish(ORDER_NEW, {"id": "o1"})
    await sink.publish(ORDER_UPDATE, {"id": "o1", "status": "preparing"})

    assert result.success
    assert [e.event_name for e in sink.events] == [ORDER_NEW, ORDER_UPDATE]
    assert sink.events_named(ORDER_UPDATE)[0].payload["status"] == "preparing"


@pytest.mark.anyio
async def test_memory_sink_is_bounded():
    sink = InMemoryEventSink(max_events=2)
    for n in range(3):
        await sink.publish(ORDER_UPDATE, {"id": f"o{n}"})
    assert [e.payload["id"] for e in sink.events] == ["o1", "o2"]


@pytest.mark.anyio
async def test_unknown_event_name_rejected():
    with pytest.raises(InvalidInputError):
        await InMemoryEventSink().publish("order:deleted", {"id": "o1"})


@pytest.mark.anyio
async def test_redis_sink_publishes_envelope():
    fake = FakeRedis(receivers=3)
    sink = RedisEventSink(channel="orders-test", client=fake)

    result = await sink.publish(ORDER_NEW, {"id": "o1", "total_amount": Decimal("344.00")})

    assert result.success and result.receivers == 3
    channel, message = fake.published[0]
    assert channel == "orders-test"
    envelope = json.loads(message)
    assert envelope["event"] == ORDER_NEW
    assert envelope["payload"] == {"id": "o1", "total_amount": "344.00"}
    assert "published_at" in envelope


@pytest.mark.anyio
async def test_redis_sink_failure_is_reported_not_raised():
    sink = RedisEventSink(channel="orders-test", client=FakeRedis(fail=True))

    result = await sink.publish(ORDER_UPDATE, {"id": "o1"})

    assert not result.success
    assert "connection refused" in result.error_message
    assert not await sink.health_check()
