# app/config/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List

DEFAULT_PRICE_API_URL = "https://api.coingecko.com/api/v3/simple/price"
DEFAULT_ASSET_IDS = [
    "bitcoin",
    "ethereum",
    "ripple",
    "litecoin",
    "cardano",
    "dogecoin",
    "binancecoin",
    "solana",
]


def parse_csv(value: str | None, default: List[str]) -> List[str]:
    if not value:
        return default
    items = [x.strip() for x in value.split(",")]
    return [x for x in items if x]


def parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def parse_int(value: str | None, default: int) -> int:
    if value is None or value.strip() == "":
        return default
    return int(value)


def parse_float(value: str | None, default: float) -> float:
    if value is None or value.strip() == "":
        return default
    return float(value)


def parse_positive_float(value: str | None, default: float) -> float:
    parsed = parse_float(value, default)
    if not parsed > 0:
        raise ValueError(f"expected a positive number, got {value!r}")
    return parsed


@dataclass(frozen=True)
class Settings:
    PRICE_API_URL: str = DEFAULT_PRICE_API_URL
    PRICE_ASSET_IDS: List[str] = field(default_factory=lambda: list(DEFAULT_ASSET_IDS))
    PRICE_VS_CURRENCY: str = "usd"
    REFRESH_ENABLED: bool = True
    REFRESH_INTERVAL_SECONDS: float = 2.0
    PRICE_HTTP_TIMEOUT_SECONDS: float = 5.0
    PRICE_MAX_RETRIES: int = 2
    PRICE_BACKOFF_BASE_SECONDS: float = 0.25
    PRICE_JITTER_SECONDS: float = 0.1
    PRICE_STALE_AFTER_SECONDS: float = 6.0
    LOGIN_DELAY_SECONDS: float = 1.0
    LOG_LEVEL: str = "INFO"

    @staticmethod
    def from_env() -> "Settings":
        return Settings(
            PRICE_API_URL=os.getenv("PRICE_API_URL", DEFAULT_PRICE_API_URL),
            PRICE_ASSET_IDS=parse_csv(os.getenv("PRICE_ASSET_IDS"), list(DEFAULT_ASSET_IDS)),
            PRICE_VS_CURRENCY=os.getenv("PRICE_VS_CURRENCY", "usd"),
            REFRESH_ENABLED=parse_bool(os.getenv("REFRESH_ENABLED"), True),
            REFRESH_INTERVAL_SECONDS=parse_positive_float(os.getenv("REFRESH_INTERVAL_SECONDS"), 2.0),
            PRICE_HTTP_TIMEOUT_SECONDS=parse_float(os.getenv("PRICE_HTTP_TIMEOUT_SECONDS"), 5.0),
            PRICE_MAX_RETRIES=parse_int(os.getenv("PRICE_MAX_RETRIES"), 2),
            PRICE_BACKOFF_BASE_SECONDS=parse_float(os.getenv("PRICE_BACKOFF_BASE_SECONDS"), 0.25),
            PRICE_JITTER_SECONDS=parse_float(os.getenv("PRICE_JITTER_SECONDS"), 0.1),
            PRICE_STALE_AFTER_SECONDS=parse_float(os.getenv("PRICE_STALE_AFTER_SECONDS"), 6.0),
            LOGIN_DELAY_SECONDS=parse_float(os.getenv("LOGIN_DELAY_SECONDS"), 1.0),
            LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings
