"""Tests for bounded-concurrency enrichment and the capability latch."""

import asyncio

import pytest

from backoffice.enrich.bounded import CapabilityLatch, enrich
from backoffice.upstream.models import ApiResult


class InFlightGauge:
    """Counts concurrently running fetches."""

    def __init__(self):
        self.active = 0
        self.peak = 0
        self.calls = []

    async def fetch(self, key):
        self.calls.append(key)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(0.01)
        finally:
            self.active -= 1
        return ApiResult.ok(f"value-{key}")


@pytest.mark.asyncio
@pytest.mark.parametrize("max_concurrent,count", [(1, 5), (3, 10), (5, 40)])
async def test_never_exceeds_max_in_flight(max_concurrent, count):
    gauge = InFlightGauge()

    results = await enrich(range(count), gauge.fetch, max_concurrent)

    assert gauge.peak == max_concurrent
    assert gauge.active == 0
    assert len(results) == count


@pytest.mark.asyncio
async def test_only_successes_are_present():
    async def fetch(key):
        if key == 3:
            raise RuntimeError("connection reset")
        if key % 2 == 0:
            return ApiResult.fail("All endpoints failed for get_order_details")
        if key == 5:
            return ApiResult(success=True, data=None)
        return ApiResult.ok([key])

    results = await enrich([1, 2, 3, 4, 5, 6, 7], fetch, 2)

    assert results == {1: [1], 7: [7]}


@pytest.mark.asyncio
async def test_unsuccessful_envelope_with_data_is_absent():
    async def fetch(key):
        return ApiResult(success=False, data=["stale"])

    assert await enrich(["a"], fetch, 1) == {}


@pytest.mark.asyncio
async def test_duplicate_keys_fetched_once():
    gauge = InFlightGauge()

    results = await enrich(["a", "b", "a", "a"], gauge.fetch, 4)

    assert sorted(gauge.calls) == ["a", "b"]
    assert results == {"a": "value-a", "b": "value-b"}


@pytest.mark.asyncio
async def test_empty_keys():
    gauge = InFlightGauge()
    assert await enrich([], gauge.fetch, 3) == {}
    assert gauge.calls == []


@pytest.mark.asyncio
async def test_invalid_max_concurrent():
    gauge = InFlightGauge()
    with pytest.raises(ValueError):
        await enrich(["a"], gauge.fetch, 0)


@pytest.mark.asyncio
async def test_cancellation_propagates():
    started = []
    cancelled = []
    release = asyncio.Event()

    async def fetch(key):
        started.append(key)
        try:
            await release.wait()
        except asyncio.CancelledError:
            cancelled.append(key)
            raise
        return ApiResult.ok(key)

    task = asyncio.create_task(enrich(range(10), fetch, 3))
    while len(started) < 3:
        await asyncio.sleep(0)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    # Queued workers never got a slot
    assert sorted(started) == [0, 1, 2]
    assert sorted(cancelled) == [0, 1, 2]


class TestCapabilityLatch:
    """Test the capability latch."""

    def test_starts_available(self):
        latch = CapabilityLatch("test_capability")
        assert latch.available is True
        assert latch.status()["reason"] is None

    def test_trip_and_reset(self):
        latch = CapabilityLatch("test_capability")

        latch.trip("All endpoints failed for get_order_details")
        latch.trip("All endpoints failed for get_order_details")

        assert latch.available is False
        status = latch.status()
        assert status["available"] is False
        assert status["reason"] == "All endpoints failed for get_order_details"
        assert status["tripped_at"] is not None

        latch.reset()
        assert latch.available is True
        assert latch.status()["tripped_at"] is None
