from __future__ import annotations

import asyncio

import pytest

from app.jobs.price_refresher import APPLIED, DISCARDED, FAILED, PriceRefresher
from app.schemas.market import PriceQuote
from app.services.price_errors import DecodeFailure, NetworkFailure
from app.services.price_store import PriceSnapshotStore


def _quote(asset_id: str, price: float = 1.0) -> PriceQuote:
    return PriceQuote(
        id=asset_id,
        name=asset_id.title(),
        price=price,
        price_change_24h=0.0,
        market_cap=1.0,
        volume=1.0,
        circulating_supply=1.0,
    )


class _ScriptedSource:
    """Returns (or raises) the scripted results in order, repeating the last one."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    async def fetch(self):
        result = self.results[min(self.calls, len(self.results) - 1)]
        self.calls += 1
        if isinstance(result, Exception):
            raise result
        return result


class _BlockingSource:
    def __init__(self, quotes):
        self.quotes = quotes
        self.calls = 0
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.cancelled = False

    async def fetch(self):
        self.calls += 1
        self.started.set()
        try:
            await self.release.wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return self.quotes


class _RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def _refresher(source, store=None, **kwargs):
    kwargs.setdefault("sleep", _RecordingSleep())
    return PriceRefresher(source, store or PriceSnapshotStore(), **kwargs)


@pytest.mark.asyncio
async def test_refresh_once_replaces_snapshot():
    refresher = _refresher(_ScriptedSource([_quote("bitcoin"), _quote("ethereum")]))

    assert await refresher.refresh_once() == APPLIED
    assert [q.id for q in refresher.store.quotes] == ["bitcoin", "ethereum"]
    assert refresher.last_outcome == APPLIED


@pytest.mark.asyncio
async def test_decode_failure_keeps_snapshot_and_is_not_retried():
    source = _ScriptedSource([_quote("bitcoin")], DecodeFailure("bad body"))
    refresher = _refresher(source)

    await refresher.refresh_once()
    assert await refresher.refresh_once() == FAILED

    assert source.calls == 2
    assert [q.id for q in refresher.store.quotes] == ["bitcoin"]
    assert refresher.store.consecutive_failures == 1
    assert refresher._sleep.delays == []


@pytest.mark.asyncio
async def test_network_failure_is_retried_with_backoff():
    source = _ScriptedSource(NetworkFailure("down"), NetworkFailure("down"), [_quote("bitcoin")])
    refresher = _refresher(source, max_retries=2, backoff_base_s=0.5, jitter_s=0.0)

    assert await refresher.refresh_once() == APPLIED
    assert source.calls == 3
    assert refresher._sleep.delays == [0.5, 1.0]


@pytest.mark.asyncio
async def test_retries_are_bounded():
    source = _ScriptedSource(NetworkFailure("down"))
    refresher = _refresher(source, max_retries=2, jitter_s=0.0)

    assert await refresher.refresh_once() == FAILED
    assert source.calls == 3
    assert len(refresher._sleep.delays) == 2


@pytest.mark.asyncio
async def test_client_errors_are_not_retried():
    source = _ScriptedSource(NetworkFailure("not found", status_code=404))
    refresher = _refresher(source, max_retries=3)

    assert await refresher.refresh_once() == FAILED
    assert source.calls == 1


@pytest.mark.asyncio
async def test_unexpected_errors_are_recorded():
    refresher = _refresher(_ScriptedSource(RuntimeError("boom")))

    assert await refresher.refresh_once() == FAILED
    assert "boom" in refresher.store.last_error


@pytest.mark.asyncio
async def test_trigger_skips_while_in_flight():
    source = _BlockingSource([_quote("bitcoin")])
    refresher = _refresher(source)

    task = refresher.trigger()
    await source.started.wait()

    assert refresher.in_flight
    assert refresher.trigger() is None
    assert refresher.skipped_ticks == 1

    source.release.set()
    assert await task == APPLIED
    assert source.calls == 1
    assert not refresher.in_flight


@pytest.mark.asyncio
async def test_refresh_now_joins_in_flight_refresh():
    source = _BlockingSource([_quote("bitcoin")])
    refresher = _refresher(source)

    task = refresher.trigger()
    await source.started.wait()
    waiter = asyncio.create_task(refresher.refresh_now())
    await asyncio.sleep(0)

    source.release.set()
    assert await waiter == APPLIED
    assert await task == APPLIED
    assert source.calls == 1


@pytest.mark.asyncio
async def test_late_result_is_discarded():
    store = PriceSnapshotStore()
    slow = _BlockingSource([_quote("bitcoin", 1.0)])
    slow_refresher = _refresher(slow, store)
    fast_refresher = _refresher(_ScriptedSource([_quote("bitcoin", 2.0)]), store)

    slow_task = slow_refresher.trigger()
    await slow.started.wait()
    assert await fast_refresher.refresh_once() == APPLIED

    slow.release.set()
    assert await slow_task == DISCARDED
    assert store.get("bitcoin").price == 2.0


@pytest.mark.asyncio
async def test_start_fires_immediately_and_stop_tears_down():
    source = _BlockingSource([_quote("bitcoin")])
    source.release.set()
    refresher = _refresher(source, interval_s=60.0)

    refresher.start()
    await asyncio.wait_for(source.started.wait(), timeout=1.0)
    assert refresher.running
    assert refresher.ticks == 1

    await refresher.stop()
    assert not refresher.running
    assert refresher.info()["running"] is False


@pytest.mark.asyncio
async def test_slow_fetch_does_not_delay_ticks():
    source = _BlockingSource([_quote("bitcoin")])
    refresher = _refresher(source, interval_s=0.01)

    refresher.start()
    await asyncio.wait_for(source.started.wait(), timeout=1.0)
    await asyncio.sleep(0.1)

    assert refresher.ticks > 1
    assert refresher.skipped_ticks == refresher.ticks - 1
    assert source.calls == 1

    await refresher.stop()


@pytest.mark.asyncio
async def test_stop_cancels_in_flight_refresh():
    source = _BlockingSource([_quote("bitcoin")])
    refresher = _refresher(source, interval_s=60.0)

    refresher.start()
    await asyncio.wait_for(source.started.wait(), timeout=1.0)
    await refresher.stop()

    assert source.cancelled
    assert not refresher.in_flight
    assert refresher.store.quotes == ()
    assert refresher.store.generation == 0


@pytest.mark.parametrize("interval_s", [0.0, -1.0])
def test_non_positive_interval_is_rejected(interval_s):
    with pytest.raises(ValueError):
        _refresher(_ScriptedSource([]), interval_s=interval_s)
