"""Helpers for interacting with the public CoinGecko simple-price API."""

from __future__ import annotations

import logging
import math
from typing import Any, Sequence

import httpx

from app.config.settings import Settings
from app.schemas.market import PriceQuote
from app.services.price_errors import DecodeFailure, InvalidConfiguration, NetworkFailure

logger = logging.getLogger("crypto_prices.coingecko")

COINGECKO_SIMPLE_PRICE_URL = "https://api.coingecko.com/api/v3/simple/price"

# Not fetched; shown on the detail view as-is.
PLACEHOLDER_MARKET_CAP = 1_000_000_000.0
PLACEHOLDER_VOLUME = 5_000_000.0
PLACEHOLDER_CIRCULATING_SUPPLY = 100_000_000.0


def _validate_url(url: str) -> httpx.URL:
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError) as exc:
        raise InvalidConfiguration(f"Invalid price API URL: {url!r}") from exc
    if parsed.scheme not in {"http", "https"} or not parsed.host:
        raise InvalidConfiguration(f"Invalid price API URL: {url!r}")
    return parsed


async def fetch_simple_prices(
    client: httpx.AsyncClient,
    asset_ids: Sequence[str],
    *,
    url: str = COINGECKO_SIMPLE_PRICE_URL,
    vs_currency: str = "usd",
) -> Any:
    """Return the decoded JSON body of one simple-price request."""

    target = _validate_url(url)
    params = {
        "ids": ",".join(asset_ids),
        "vs_currencies": vs_currency,
        "include_24hr_change": "true",
    }

    try:
        response = await client.get(target, params=params)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        raise NetworkFailure(f"CoinGecko responded {status}", status_code=status) from exc
    except httpx.HTTPError as exc:
        raise NetworkFailure(f"Unable to reach CoinGecko: {exc!r}") from exc

    try:
        return response.json()
    except ValueError as exc:
        raise DecodeFailure("CoinGecko response is not valid JSON") from exc


def _as_number(asset_id: str, key: str, value: Any) -> float:
    # bool is an int subclass; the API never sends one for a price
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeFailure(f"{asset_id}.{key} is not a number: {value!r}")
    try:
        number = float(value)
    except OverflowError as exc:
        raise DecodeFailure(f"{asset_id}.{key} is out of range") from exc
    # httpx parses the NaN and Infinity literals
    if not math.isfinite(number):
        raise DecodeFailure(f"{asset_id}.{key} is not finite: {value!r}")
    return number


def display_name(asset_id: str) -> str:
    """``bitcoin-cash`` -> ``Bitcoin-Cash``; letters after digits stay lowercase."""
    return "-".join(part.capitalize() for part in asset_id.split("-"))


def decode_simple_prices(payload: Any, asset_ids: Sequence[str]) -> list[PriceQuote]:
    """
    Turn ``{"bitcoin": {"usd": 50000.0, "usd_24h_change": 2.0}, ...}`` into quotes.

    The whole body is rejected if any entry is malformed. Requested ids missing
    from the body are left out; ids that were not requested are ignored.
    """
    if not isinstance(payload, dict):
        raise DecodeFailure(f"Expected a JSON object, got {type(payload).__name__}")

    entries: dict[str, dict[str, float]] = {}
    for asset_id, values in payload.items():
        if not isinstance(values, dict):
            raise DecodeFailure(f"{asset_id} is not an object: {values!r}")
        entries[asset_id] = {k: _as_number(asset_id, k, v) for k, v in values.items()}

    unexpected = set(entries) - set(asset_ids)
    if unexpected:
        logger.debug("ignoring unrequested ids | %s", sorted(unexpected))

    quotes: list[PriceQuote] = []
    for asset_id in dict.fromkeys(asset_ids):
        values = entries.get(asset_id)
        if values is None:
            continue

        price = values.get("usd", 0.0)
        if price < 0:
            raise DecodeFailure(f"{asset_id}.usd is negative: {price}")

        quotes.append(
            PriceQuote(
                id=asset_id,
                name=display_name(asset_id),
                price=price,
                price_change_24h=values.get("usd_24h_change", 0.0),
                market_cap=PLACEHOLDER_MARKET_CAP,
                volume=PLACEHOLDER_VOLUME,
                circulating_supply=PLACEHOLDER_CIRCULATING_SUPPLY,
            )
        )
    return quotes


class PriceFetcher:
    """Owns the HTTP client used for price refreshes."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.settings.PRICE_HTTP_TIMEOUT_SECONDS,
                transport=self._transport,
            )
        return self._client

    async def fetch(self) -> list[PriceQuote]:
        asset_ids = self.settings.PRICE_ASSET_IDS
        payload = await fetch_simple_prices(
            self._get_client(),
            asset_ids,
            url=self.settings.PRICE_API_URL,
            vs_currency=self.settings.PRICE_VS_CURRENCY,
        )
        return decode_simple_prices(payload, asset_ids)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
