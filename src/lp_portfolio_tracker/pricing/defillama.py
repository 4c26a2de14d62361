"""DeFiLlama pricing service for native-asset USD prices."""

import logging
from collections.abc import Iterable
from typing import Protocol

import httpx

from lp_portfolio_tracker.core.models import Network
from lp_portfolio_tracker.data import get_network_config

logger = logging.getLogger(__name__)


class NativePriceSource(Protocol):
    """Interface of a live native-asset price collaborator."""

    def get_native_prices(self, networks: Iterable[Network]) -> dict[Network, float | None]:
        """Return the native-asset USD price per network, None where unavailable."""
        ...


class DeFiLlamaPricing:
    """
    Fetches native-asset USD prices from DeFiLlama API.

    Networks flagged without a live price feed are not queried; their
    conversions use the network's fallback rate instead.

    Parameters
    ----------
    base_url : str
        DeFiLlama API base URL
    client : httpx.Client | None
        Preconfigured HTTP client (e.g., with a mock transport)

    """

    def __init__(self, base_url: str = "https://coins.llama.fi", client: httpx.Client | None = None) -> None:
        self.base_url = base_url
        self.client = client or httpx.Client(timeout=30.0)

    def get_native_prices(self, networks: Iterable[Network]) -> dict[Network, float | None]:
        """
        Fetch native-asset USD prices for multiple networks.

        Parameters
        ----------
        networks : Iterable[Network]
            Networks to price

        Returns
        -------
        dict[Network, float | None]
            Mapping of network to USD price; None when unavailable

        Examples
        --------
        >>> pricing = DeFiLlamaPricing()
        >>> prices = pricing.get_native_prices([Network.MAINNET, Network.ARBITRUM])

        """
        networks = list(networks)
        coin_ids = {
            network: get_network_config(network).native_coin_id
            for network in networks
            if get_network_config(network).native_price_feed
        }

        prices_data = self._fetch_batch_prices(sorted(set(coin_ids.values()))) if coin_ids else {}

        result: dict[Network, float | None] = {}
        for network in networks:
            price_info = prices_data.get(coin_ids.get(network, ""))
            if price_info and "price" in price_info:
                result[network] = float(price_info["price"])
            else:
                result[network] = None

        return result

    def _fetch_batch_prices(self, coin_ids: list[str]) -> dict:
        """
        Fetch prices from DeFiLlama API.

        Parameters
        ----------
        coin_ids : list[str]
            Coin identifiers (e.g., "coingecko:ethereum")

        Returns
        -------
        dict
            Price data keyed by coin id; empty on failure

        """
        try:
            coins_param = ",".join(coin_ids)
            url = f"{self.base_url}/prices/current/{coins_param}"

            response = self.client.get(url)
            response.raise_for_status()

            data = response.json()
            return data.get("coins", {}) if isinstance(data, dict) else {}

        except httpx.HTTPError as e:
            logger.warning("DeFiLlama price request failed: %s", e)
            return {}
        except ValueError as e:
            logger.warning("DeFiLlama returned invalid JSON: %s", e)
            return {}

    def close(self) -> None:
        """Close HTTP client."""
        self.client.close()

    def __enter__(self) -> "DeFiLlamaPricing":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        """Context manager exit."""
        self.close()
