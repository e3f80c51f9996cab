from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

from app.schemas.market import PriceQuote, RefreshStatus
from app.utils.time import from_epoch

logger = logging.getLogger("crypto_prices.store")


@dataclass
class PriceSnapshotStore:
    """
    Single owner of the snapshot list.

    Every refresh takes a generation number before it starts and hands it
    back with its result; a result older than the applied snapshot is
    dropped. Only touched from the event loop, so no locking.
    """

    stale_after_s: float = 6.0
    _quotes: Tuple[PriceQuote, ...] = field(default=(), init=False)
    _issued: int = field(default=0, init=False)
    _applied: int = field(default=0, init=False)
    last_success_ts: Optional[float] = None
    last_error: Optional[str] = None
    last_error_ts: Optional[float] = None
    consecutive_failures: int = 0
    discarded: int = 0

    @property
    def quotes(self) -> Tuple[PriceQuote, ...]:
        return self._quotes

    @property
    def generation(self) -> int:
        return self._applied

    def get(self, asset_id: str) -> Optional[PriceQuote]:
        for quote in self._quotes:
            if quote.id == asset_id:
                return quote
        return None

    def next_generation(self) -> int:
        self._issued += 1
        return self._issued

    def apply(self, generation: int, quotes: Sequence[PriceQuote], now: Optional[float] = None) -> bool:
        if generation <= self._applied:
            self.discarded += 1
            logger.debug("stale snapshot discarded | gen=%s applied=%s", generation, self._applied)
            return False

        self._quotes = tuple(quotes)
        self._applied = generation
        self.last_success_ts = time.time() if now is None else now
        self.consecutive_failures = 0
        return True

    def record_failure(self, generation: int, error: BaseException, now: Optional[float] = None) -> None:
        # older failures say nothing about a snapshot that is already newer
        if generation <= self._applied:
            return
        self.last_error = repr(error)[:300]
        self.last_error_ts = time.time() if now is None else now
        self.consecutive_failures += 1

    def is_stale(self, now: Optional[float] = None) -> bool:
        if self.last_success_ts is None:
            return True
        ref = time.time() if now is None else now
        return (ref - self.last_success_ts) > self.stale_after_s

    def status(self, now: Optional[float] = None) -> RefreshStatus:
        ref = time.time() if now is None else now
        age = None if self.last_success_ts is None else round(max(ref - self.last_success_ts, 0.0), 3)
        return RefreshStatus(
            stale=self.is_stale(ref),
            quotes=len(self._quotes),
            generation=self._applied,
            last_success_at=from_epoch(self.last_success_ts),
            age_s=age,
            consecutive_failures=self.consecutive_failures,
            last_error=self.last_error,
            last_error_at=from_epoch(self.last_error_ts),
        )
