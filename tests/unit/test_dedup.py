import asyncio
import pytest

from reride.cache.ttl_cache import TTLCache
from reride.errors import FetchError
from reride.fetch.cached_fetch import CachedFetcher
from reride.fetch.dedup import DedupFetcher, SingleFlight
from tests.helpers.fake_transport import FakeTransport

VEHICLES = [{"id": 7, "make": "Kia", "price": 950000}]


def make(routes, delay=0.05):
    t = FakeTransport(routes, delay=delay)
    return DedupFetcher(CachedFetcher(TTLCache(), t)), t


@pytest.mark.asyncio
async def test_two_simultaneous_vehicle_fetches_share_one_request():
    d, t = make({"/api/vehicles": VEHICLES}, delay=0.05)
    a, b = await asyncio.gather(
        d.fetch("/api/vehicles", cache_key="vehicles"),
        d.fetch("/api/vehicles", cache_key="vehicles"),
    )
    assert t.count() == 1
    assert a == b == VEHICLES

@pytest.mark.asyncio
async def test_many_concurrent_callers_one_network_call():
    d, t = make({"/api/vehicles": VEHICLES}, delay=0.02)
    results = await asyncio.gather(*[d.fetch("/api/vehicles") for _ in range(50)])
    assert t.count() == 1
    assert all(r == VEHICLES for r in results)
    # same object fanned out to every waiter
    assert all(r is results[0] for r in results)

@pytest.mark.asyncio
async def test_failure_fans_out_to_all_waiters_and_is_not_replayed():
    d, t = make({"/api/vehicles": 500}, delay=0.02)
    results = await asyncio.gather(*[d.fetch("/api/vehicles") for _ in range(5)], return_exceptions=True)
    assert t.count() == 1
    assert all(isinstance(r, FetchError) for r in results)
    assert all(r is results[0] for r in results)
    assert d.single_flight.pending_count() == 0

    # immediately after failure, a fresh call goes back to the network
    t.routes["/api/vehicles"] = VEHICLES
    assert await d.fetch("/api/vehicles") == VEHICLES
    assert t.count() == 2

@pytest.mark.asyncio
async def test_different_keys_do_not_share():
    d, t = make({"/api/vehicles/1": {"id": 1}, "/api/vehicles/2": {"id": 2}})
    one, two = await asyncio.gather(d.fetch("/api/vehicles/1"), d.fetch("/api/vehicles/2"))
    assert (one["id"], two["id"]) == (1, 2)
    assert t.count() == 2

@pytest.mark.asyncio
async def test_after_settle_next_call_hits_cache_not_network():
    d, t = make({"/api/users": [{"email": "a@b.c"}]}, delay=0.01)
    await d.fetch("/api/users")
    await d.fetch("/api/users")
    assert t.count() == 1

@pytest.mark.asyncio
async def test_registration_removed_after_settle():
    sf = SingleFlight()
    gate = asyncio.Event()

    async def work():
        await gate.wait()
        return 42

    task = asyncio.create_task(sf.run("k", work))
    await asyncio.sleep(0)
    assert sf.is_pending("k")
    gate.set()
    assert await task == 42
    assert not sf.is_pending("k")

@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_cancel_shared_call():
    sf = SingleFlight()
    calls = {"n": 0}

    async def work():
        calls["n"] += 1
        await asyncio.sleep(0.05)
        return "done"

    first = asyncio.create_task(sf.run("k", work))
    second = asyncio.create_task(sf.run("k", work))
    await asyncio.sleep(0.01)
    first.cancel()
    assert await second == "done"
    assert calls["n"] == 1
    with pytest.raises(asyncio.CancelledError):
        await first

@pytest.mark.asyncio
async def test_caller_right_after_failure_starts_fresh():
    sf = SingleFlight()
    gate = asyncio.Event()
    calls = {"n": 0}

    async def failing():
        calls["n"] += 1
        await gate.wait()
        raise FetchError("down", url="/api/vehicles", status=503)

    async def ok():
        calls["n"] += 1
        return "fresh"

    async def late():
        # wakes on the same set() as failing(), after it raised
        await gate.wait()
        return await sf.run("k", ok)

    first = asyncio.create_task(sf.run("k", failing))
    for _ in range(3):
        await asyncio.sleep(0)
    assert sf.is_pending("k")
    second = asyncio.create_task(late())
    await asyncio.sleep(0)

    gate.set()
    with pytest.raises(FetchError):
        await first
    assert await second == "fresh"
    assert calls["n"] == 2
    assert sf.pending_count() == 0
