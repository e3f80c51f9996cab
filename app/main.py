# app/main.py
from __future__ import annotations

import logging

from fastapi import FastAPI

from app.api.auth import router as auth_router
from app.api.health import router as health_router
from app.api.portfolio import router as portfolio_router
from app.api.prices import router as prices_router
from app.config.logging_config import setup_logging
from app.config.settings import get_settings
from app.state import build_app_state

logger = logging.getLogger("crypto_prices.main")

app = FastAPI(title="Crypto Prices API")

# Routers
app.include_router(health_router)
app.include_router(prices_router)
app.include_router(portfolio_router)
app.include_router(auth_router)


@app.get("/")
def root() -> dict[str, str]:
    return {"message": "Crypto Prices"}


@app.on_event("startup")
async def on_startup() -> None:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    app.state.prices = build_app_state(settings)

    if settings.REFRESH_ENABLED:
        app.state.prices.refresher.start()
    else:
        logger.info("price refresh disabled (REFRESH_ENABLED=false)")


@app.on_event("shutdown")
async def on_shutdown() -> None:
    state = getattr(app.state, "prices", None)
    if state is not None:
        await state.aclose()
    app.state.prices = None
