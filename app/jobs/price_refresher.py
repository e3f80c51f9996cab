# app/jobs/price_refresher.py
from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol

from app.schemas.market import PriceQuote
from app.services.price_errors import NetworkFailure, PriceFetchError
from app.services.price_store import PriceSnapshotStore
from app.utils.time import iso_z_from_epoch

logger = logging.getLogger("crypto_prices.refresher")

APPLIED = "applied"
DISCARDED = "discarded"
FAILED = "failed"


class QuoteSource(Protocol):
    async def fetch(self) -> List[PriceQuote]:
        ...


class PriceRefresher:
    """
    Fires a refresh on start and then every ``interval_s`` until stopped.

    Ticks never wait for the fetch: each refresh runs as its own task. A tick
    that lands while a refresh is still in flight is skipped, so at most one
    request is outstanding.
    """

    def __init__(
        self,
        source: QuoteSource,
        store: PriceSnapshotStore,
        *,
        interval_s: float = 2.0,
        max_retries: int = 2,
        backoff_base_s: float = 0.25,
        jitter_s: float = 0.1,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if not interval_s > 0:
            raise ValueError(f"interval_s must be positive, got {interval_s!r}")
        self.source = source
        self.store = store
        self.interval_s = interval_s
        self.max_retries = max_retries
        self.backoff_base_s = backoff_base_s
        self.jitter_s = jitter_s
        self._sleep = sleep

        self._stop_event: Optional[asyncio.Event] = None
        self._loop_task: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Task] = None

        self.started_at: Optional[float] = None
        self.ticks = 0
        self.skipped_ticks = 0
        self.last_outcome: Optional[str] = None
        self.last_run_ts: Optional[float] = None
        self.last_run_ms: Optional[int] = None

    @property
    def running(self) -> bool:
        return bool(
            self._loop_task is not None
            and not self._loop_task.done()
            and self._stop_event is not None
            and not self._stop_event.is_set()
        )

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    # ----------------------------
    # one refresh
    # ----------------------------
    async def _fetch_with_retries(self) -> List[PriceQuote]:
        attempt = 0
        while True:
            try:
                return await self.source.fetch()
            except NetworkFailure as e:
                attempt += 1
                if not e.retryable or attempt > self.max_retries:
                    raise
                backoff = (self.backoff_base_s * (2 ** (attempt - 1))) + random.uniform(0.0, self.jitter_s)
                logger.warning(
                    "price fetch failed | attempt=%s/%s | err=%s | sleep=%.2fs",
                    attempt,
                    self.max_retries,
                    e,
                    backoff,
                )
                await self._sleep(backoff)

    async def refresh_once(self) -> str:
        generation = self.store.next_generation()
        self.last_run_ts = time.time()
        t0 = time.perf_counter()

        try:
            quotes = await self._fetch_with_retries()
        except asyncio.CancelledError:
            raise
        except PriceFetchError as e:
            self.store.record_failure(generation, e)
            logger.warning("price refresh failed | gen=%s | %s | %s", generation, e.code, e)
            outcome = FAILED
        except Exception as e:
            self.store.record_failure(generation, e)
            logger.exception("price refresh error | gen=%s", generation)
            outcome = FAILED
        else:
            if self.store.apply(generation, quotes):
                outcome = APPLIED
                logger.debug("snapshot replaced | gen=%s | quotes=%s", generation, len(quotes))
            else:
                outcome = DISCARDED

        self.last_run_ms = int((time.perf_counter() - t0) * 1000)
        self.last_outcome = outcome
        return outcome

    def trigger(self) -> Optional[asyncio.Task]:
        """Start a refresh unless one is already running. Does not wait for it."""
        if self.in_flight:
            self.skipped_ticks += 1
            logger.debug("refresh still in flight, tick skipped | skipped=%s", self.skipped_ticks)
            return None

        self._inflight = asyncio.create_task(self.refresh_once(), name="price-refresh")
        return self._inflight

    async def refresh_now(self) -> str:
        """Run a refresh and wait for its outcome, joining one already in flight."""
        task = self._inflight if self.in_flight else self.trigger()
        # the caller going away must not cancel a refresh the loop also relies on
        return await asyncio.shield(task)

    # ----------------------------
    # loop
    # ----------------------------
    async def _loop(self, stop_event: asyncio.Event) -> None:
        next_tick = time.monotonic()  # run immediately once

        while not stop_event.is_set():
            now = time.monotonic()
            if now < next_tick:
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=(next_tick - now))
                except asyncio.TimeoutError:
                    pass
                continue

            self.ticks += 1
            self.trigger()

            next_tick += self.interval_s
            if next_tick < time.monotonic() - self.interval_s:
                next_tick = time.monotonic() + self.interval_s

    def start(self) -> None:
        if self.running:
            logger.warning("price refresher already started")
            return

        self._stop_event = asyncio.Event()
        self.started_at = time.time()
        self._loop_task = asyncio.create_task(self._loop(self._stop_event), name="price-refresher")
        logger.info("price refresher started | interval_s=%s", self.interval_s)

    async def stop(self, timeout_s: float = 2.0) -> None:
        if self._loop_task is None and self._inflight is None:
            return

        if self._stop_event:
            self._stop_event.set()

        # an in-flight refresh must not land after teardown
        if self.in_flight:
            self._inflight.cancel()

        tasks = [t for t in (self._loop_task, self._inflight) if t is not None]
        try:
            await asyncio.wait_for(asyncio.gather(*tasks, return_exceptions=True), timeout=timeout_s)
        except asyncio.TimeoutError:
            for t in tasks:
                if not t.done():
                    t.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
        finally:
            self._loop_task = None
            self._inflight = None
            self._stop_event = None
            self.started_at = None

        logger.info("price refresher stopped")

    def info(self) -> Dict[str, Any]:
        return {
            "running": self.running,
            "interval_s": self.interval_s,
            "in_flight": self.in_flight,
            "ticks": self.ticks,
            "skipped_ticks": self.skipped_ticks,
            "started_at_iso": iso_z_from_epoch(self.started_at),
            "uptime_s": int(time.time() - self.started_at) if self.started_at else None,
            "last_outcome": self.last_outcome,
            "last_run_iso": iso_z_from_epoch(self.last_run_ts),
            "last_run_ms": self.last_run_ms,
            "discarded_snapshots": self.store.discarded,
        }
