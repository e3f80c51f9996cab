from __future__ import annotations

import httpx
import pytest

from app.config.settings import Settings
from app.services.coingecko import (
    PLACEHOLDER_MARKET_CAP,
    PriceFetcher,
    decode_simple_prices,
    display_name,
    fetch_simple_prices,
)
from app.services.price_errors import DecodeFailure, InvalidConfiguration, NetworkFailure

IDS = ["bitcoin", "ethereum", "solana"]

PAYLOAD = {
    "bitcoin": {"usd": 50000.0, "usd_24h_change": 2.0},
    "ethereum": {"usd": 3000, "usd_24h_change": -1.5},
}


def test_decode_builds_quotes_in_requested_order():
    quotes = decode_simple_prices(PAYLOAD, IDS)

    assert [q.id for q in quotes] == ["bitcoin", "ethereum"]
    btc, eth = quotes
    assert btc.name == "Bitcoin"
    assert btc.price == 50000.0
    assert btc.price_change_24h == 2.0
    assert btc.market_cap == PLACEHOLDER_MARKET_CAP
    assert eth.price == 3000.0
    assert eth.price_change_24h == -1.5


def test_decode_omits_missing_and_ignores_unrequested_ids():
    payload = dict(PAYLOAD, dogecoin={"usd": 0.1, "usd_24h_change": 1.0})
    quotes = decode_simple_prices(payload, IDS)
    assert [q.id for q in quotes] == ["bitcoin", "ethereum"]


def test_decode_defaults_missing_keys_to_zero():
    quotes = decode_simple_prices({"bitcoin": {"usd": 10.0}}, ["bitcoin"])
    assert quotes[0].price_change_24h == 0.0


def test_decode_capitalizes_hyphenated_ids():
    quotes = decode_simple_prices({"bitcoin-cash": {"usd": 1.0}}, ["bitcoin-cash"])
    assert quotes[0].name == "Bitcoin-Cash"


def test_display_name_keeps_letters_after_digits_lowercase():
    assert display_name("bitcoin2x") == "Bitcoin2x"
    assert display_name("usd-coin") == "Usd-Coin"


@pytest.mark.parametrize(
    "payload",
    [
        [],
        "oops",
        {"bitcoin": 5},
        {"bitcoin": {"usd": "50000"}},
        {"bitcoin": {"usd": None}},
        {"bitcoin": {"usd": True}},
        {"bitcoin": {"usd": -1.0}},
        {"bitcoin": {"usd": float("nan")}},
        {"bitcoin": {"usd": float("inf")}},
        {"bitcoin": {"usd": 1.0, "usd_24h_change": float("nan")}},
        {"bitcoin": {"usd": 1.0, "usd_24h_change": float("-inf")}},
        {"bitcoin": {"usd": 10**400}},
        # one bad entry spoils the whole body
        {"bitcoin": {"usd": 1.0}, "ethereum": {"usd": "x"}},
    ],
)
def test_decode_rejects_malformed_bodies(payload):
    with pytest.raises(DecodeFailure):
        decode_simple_prices(payload, IDS)


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_fetch_sends_expected_query():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        return httpx.Response(200, json=PAYLOAD)

    async with _client(handler) as client:
        body = await fetch_simple_prices(client, IDS)

    assert body == PAYLOAD
    assert seen["url"].path == "/api/v3/simple/price"
    assert seen["url"].params["ids"] == "bitcoin,ethereum,solana"
    assert seen["url"].params["vs_currencies"] == "usd"
    assert seen["url"].params["include_24hr_change"] == "true"


@pytest.mark.asyncio
async def test_fetch_maps_server_errors_to_retryable_network_failure():
    async with _client(lambda request: httpx.Response(503)) as client:
        with pytest.raises(NetworkFailure) as excinfo:
            await fetch_simple_prices(client, IDS)
    assert excinfo.value.status_code == 503
    assert excinfo.value.retryable is True


@pytest.mark.asyncio
async def test_fetch_client_errors_are_not_retryable():
    async with _client(lambda request: httpx.Response(404)) as client:
        with pytest.raises(NetworkFailure) as excinfo:
            await fetch_simple_prices(client, IDS)
    assert excinfo.value.retryable is False


@pytest.mark.asyncio
async def test_fetch_rate_limit_is_retryable():
    async with _client(lambda request: httpx.Response(429)) as client:
        with pytest.raises(NetworkFailure) as excinfo:
            await fetch_simple_prices(client, IDS)
    assert excinfo.value.retryable is True


@pytest.mark.asyncio
async def test_fetch_maps_transport_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(NetworkFailure) as excinfo:
            await fetch_simple_prices(client, IDS)
    assert excinfo.value.status_code is None
    assert excinfo.value.retryable is True


@pytest.mark.asyncio
async def test_fetch_rejects_non_json_body():
    async with _client(lambda request: httpx.Response(200, text="<html>")) as client:
        with pytest.raises(DecodeFailure):
            await fetch_simple_prices(client, IDS)


@pytest.mark.asyncio
@pytest.mark.parametrize("url", ["not a url", "ftp://api.example.com/price", "https://"])
async def test_fetch_rejects_bad_url(url):
    async with _client(lambda request: httpx.Response(200, json={})) as client:
        with pytest.raises(InvalidConfiguration):
            await fetch_simple_prices(client, IDS, url=url)


@pytest.mark.asyncio
async def test_price_fetcher_uses_settings():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["host"] = request.url.host
        seen["ids"] = request.url.params["ids"]
        return httpx.Response(200, json=PAYLOAD)

    settings = Settings(PRICE_API_URL="https://prices.example.test/simple/price", PRICE_ASSET_IDS=["ethereum"])
    fetcher = PriceFetcher(settings, transport=httpx.MockTransport(handler))
    try:
        quotes = await fetcher.fetch()
    finally:
        await fetcher.aclose()

    assert seen == {"host": "prices.example.test", "ids": "ethereum"}
    assert [q.id for q in quotes] == ["ethereum"]


@pytest.mark.asyncio
async def test_fetch_rejects_non_finite_literals_on_the_wire():
    body = '{"bitcoin": {"usd": 1.0, "usd_24h_change": 5.0}, "ethereum": {"usd": 2.0, "usd_24h_change": NaN}}'

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text=body, headers={"content-type": "application/json"})

    fetcher = PriceFetcher(Settings(PRICE_ASSET_IDS=["bitcoin", "ethereum"]), transport=httpx.MockTransport(handler))
    try:
        with pytest.raises(DecodeFailure):
            await fetcher.fetch()
    finally:
        await fetcher.aclose()
