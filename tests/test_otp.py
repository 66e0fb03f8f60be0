import json
from datetime import datetime, timedelta, timezone

import pytest

from food_delivery.core.exceptions import InvalidInputError
from food_delivery.services.otp import (
    InMemoryOtpStore,
    OtpRecord,
    OtpService,
    RedisOtpStore,
    is_expired,
)

T0 = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += timedelta(seconds=seconds)


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the OTP store."""

    def __init__(self):
        self.data = {}
        self.ttls = {}

    async def set(self, key, value, ex=None):
        self.data[key] = value
        self.ttls[key] = ex

    async def get(self, key):
        return self.data.get(key)

    async def delete(self, key):
        self.data.pop(key, None)


@pytest.fixture
def clock():
    return FakeClock(T0)


@pytest.fixture
def store():
    return InMemoryOtpStore()


@pytest.fixture
def otp(store, clock):
    return OtpService(store, length=6, ttl_seconds=300, max_attempts=3, clock=clock)


def test_is_expired_is_a_pure_time_comparison():
    record = OtpRecord(code="123456", issued_at=T0, ttl_seconds=60)
    assert not is_expired(record, T0)
    assert not is_expired(record, T0 + timedelta(seconds=59))
    assert is_expired(record, T0 + timedelta(seconds=60))


@pytest.mark.anyio
async def test_issue_stores_numeric_code(otp, store):
    record = await otp.issue("9876543210")
    assert len(record.code) == 6 and record.code.isdigit()
    assert record.issued_at == T0
    assert record.expires_at == T0 + timedelta(seconds=300)
    assert await store.get("9876543210") == record


@pytest.mark.anyio
async def test_code_is_single_use(otp):
    record = await otp.issue("asha@example.com")
    assert await otp.verify("asha@example.com", record.code)
    assert not await otp.verify("asha@example.com", record.code)


@pytest.mark.anyio
async def test_keys_are_normalized(otp):
    record = await otp.issue("  Asha@Example.com ")
    assert await otp.verify("asha@example.com", record.code)


@pytest.mark.anyio
async def test_expired_code_is_rejected_and_removed(otp, store, clock):
    record = await otp.issue("9876543210")
    clock.advance(301)
    assert not await otp.verify("9876543210", record.code)
    assert len(store) == 0


@pytest.mark.anyio
async def test_reissue_replaces_previous_code(otp, store):
    first = await otp.issue("9876543210")
    second = await otp.issue("9876543210")
    assert len(store) == 1
    if first.code != second.code:
        assert not await otp.verify("9876543210", first.code)
    assert await otp.verify("9876543210", second.code)


@pytest.mark.anyio
async def test_too_many_wrong_codes_discard_the_record(otp, store):
    record = await otp.issue("9876543210")
    wrong = "000000" if record.code != "000000" else "111111"

    assert not await otp.verify("9876543210", wrong)
    assert (await store.get("9876543210")).attempts == 1
    assert not await otp.verify("9876543210", wrong)
    assert not await otp.verify("9876543210", wrong)
    assert await store.get("9876543210") is None
    assert not await otp.verify("9876543210", record.code)


@pytest.mark.anyio
async def test_blank_key_rejected(otp):
    with pytest.raises(InvalidInputError):
        await otp.issue("   ")


@pytest.mark.anyio
async def test_redis_store_round_trip_with_ttl():
    fake = FakeRedis()
    store = RedisOtpStore(client=fake)
    record = OtpRecord(code="424242", issued_at=T0, ttl_seconds=120, attempts=2)

    await store.put("9876543210", record)
    assert fake.ttls["otp:9876543210"] == 120
    assert json.loads(fake.data["otp:9876543210"])["code"] == "424242"
    assert await store.get("9876543210") == record

    await store.delete("9876543210")
    assert await store.get("9876543210") is None
