# app/state.py
from __future__ import annotations

from dataclasses import dataclass

import httpx
from fastapi import Request

from app.config.settings import Settings, get_settings
from app.jobs.price_refresher import PriceRefresher
from app.services.auth import Authenticator, SimulatedAuthenticator
from app.services.coingecko import PriceFetcher
from app.services.holdings import HoldingsStore
from app.services.price_store import PriceSnapshotStore


@dataclass
class AppState:
    """Everything the routes share. Built on startup, torn down on shutdown."""

    settings: Settings
    store: PriceSnapshotStore
    holdings: HoldingsStore
    fetcher: PriceFetcher
    refresher: PriceRefresher
    authenticator: Authenticator

    async def aclose(self) -> None:
        await self.refresher.stop()
        await self.fetcher.aclose()


def build_app_state(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    authenticator: Authenticator | None = None,
) -> AppState:
    s = settings or get_settings()
    store = PriceSnapshotStore(stale_after_s=s.PRICE_STALE_AFTER_SECONDS)
    fetcher = PriceFetcher(s, transport=transport)
    refresher = PriceRefresher(
        fetcher,
        store,
        interval_s=s.REFRESH_INTERVAL_SECONDS,
        max_retries=s.PRICE_MAX_RETRIES,
        backoff_base_s=s.PRICE_BACKOFF_BASE_SECONDS,
        jitter_s=s.PRICE_JITTER_SECONDS,
    )
    return AppState(
        settings=s,
        store=store,
        holdings=HoldingsStore(),
        fetcher=fetcher,
        refresher=refresher,
        authenticator=authenticator or SimulatedAuthenticator(delay_s=s.LOGIN_DELAY_SECONDS),
    )


def get_app_state(request: Request) -> AppState:
    return request.app.state.prices
