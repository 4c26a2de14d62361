"""Tests for DeFiLlama native price fetching."""

import httpx

from lp_portfolio_tracker.core.models import Network
from lp_portfolio_tracker.pricing import DeFiLlamaPricing


def _pricing(handler) -> DeFiLlamaPricing:
    return DeFiLlamaPricing(base_url="https://coins.test", client=httpx.Client(transport=httpx.MockTransport(handler)))


def test_get_native_prices():
    """Networks sharing a coin id share one lookup; feedless networks are skipped."""
    requested = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(request.url.path)
        return httpx.Response(200, json={"coins": {"coingecko:ethereum": {"price": 1850.25, "symbol": "ETH"}}})

    with _pricing(handler) as pricing:
        prices = pricing.get_native_prices([Network.MAINNET, Network.ARBITRUM, Network.POLYGON])

    assert requested == ["/prices/current/coingecko:ethereum"]
    assert prices == {Network.MAINNET: 1850.25, Network.ARBITRUM: 1850.25, Network.POLYGON: None}


def test_missing_coin_is_none():
    """Coins absent from the response have no price."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"coins": {}})

    with _pricing(handler) as pricing:
        assert pricing.get_native_prices([Network.OPTIMISM]) == {Network.OPTIMISM: None}


def test_http_error_is_none():
    """Failed requests leave every price unavailable."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502)

    with _pricing(handler) as pricing:
        assert pricing.get_native_prices([Network.MAINNET]) == {Network.MAINNET: None}


def test_no_request_without_feeds():
    """Only feedless networks means no request at all."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("unexpected request")

    with _pricing(handler) as pricing:
        assert pricing.get_native_prices([Network.POLYGON]) == {Network.POLYGON: None}
