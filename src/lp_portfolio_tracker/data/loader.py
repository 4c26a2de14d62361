"""Network token table loader."""

import functools
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict

from lp_portfolio_tracker.core.models import Network, Token


class NetworkConfig(BaseModel):
    """
    Token tables and pricing metadata for one network.

    Attributes
    ----------
    network : Network
        Network these tables belong to
    name : str
        Network name as used in configuration and on the CLI
    display_symbol : str
        Symbol shown for values denominated in ether
    native_coin_id : str
        Price-feed identifier of the native asset (DeFiLlama coin id)
    native_price_feed : bool
        Whether a live native-asset price is available for this network
    fallback_native_usd_rate : float | None
        Approximate native-asset USD price used when there is no live feed
    wrapped_native : Token
        Wrapped native asset (e.g., WETH, WMATIC)
    eth_token : Token
        Token the ``eth`` global currency resolves to; the wrapped native
        asset on ether-native networks, bridged WETH elsewhere
    stable_reference : Token
        Designated stable-value asset (USDC)
    stablecoins : frozenset[Token]
        Tokens treated as at parity with the stable reference, including it

    """

    model_config = ConfigDict(frozen=True)

    network: Network
    name: str
    display_symbol: str
    native_coin_id: str
    native_price_feed: bool = True
    fallback_native_usd_rate: float | None = None
    wrapped_native: Token
    eth_token: Token
    stable_reference: Token
    stablecoins: frozenset[Token]

    @property
    def native_is_ether(self) -> bool:
        return self.eth_token == self.wrapped_native

    def is_stablecoin(self, token: Token) -> bool:
        return token in self.stablecoins


def load_networks_file() -> dict[str, Any]:
    """
    Load the raw network tables from networks.yaml.

    Returns
    -------
    dict[str, Any]
        Parsed YAML document

    """
    path = Path(__file__).parent / "networks.yaml"
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)


def _parse_network(name: str, raw: dict[str, Any]) -> NetworkConfig:
    network = Network(raw["chain_id"])

    def token(entry: dict[str, Any]) -> Token:
        return Token(network=network, **entry)

    wrapped_native = token(raw["wrapped_native"])
    stable_reference = token(raw["stable_reference"])
    stablecoins = frozenset([stable_reference, *(token(entry) for entry in raw.get("stablecoins", []))])

    return NetworkConfig(
        network=network,
        name=name,
        display_symbol=raw["display_symbol"],
        native_coin_id=raw["native_coin_id"],
        native_price_feed=raw.get("native_price_feed", True),
        fallback_native_usd_rate=raw.get("fallback_native_usd_rate"),
        wrapped_native=wrapped_native,
        eth_token=token(raw["eth_token"]) if "eth_token" in raw else wrapped_native,
        stable_reference=stable_reference,
        stablecoins=stablecoins,
    )


@functools.cache
def load_networks() -> dict[Network, NetworkConfig]:
    """
    Load and parse all network tables.

    Returns
    -------
    dict[Network, NetworkConfig]
        Configuration for every network in networks.yaml

    """
    raw = load_networks_file()
    configs = [_parse_network(name, entry) for name, entry in raw["networks"].items()]
    return {config.network: config for config in configs}


def get_network_config(network: Network) -> NetworkConfig:
    """
    Get the tables for a specific network.

    Parameters
    ----------
    network : Network
        Network to look up

    Returns
    -------
    NetworkConfig
        Network tables

    Raises
    ------
    KeyError
        If the network has no entry in networks.yaml

    """
    return load_networks()[network]


def get_network_by_name(name: str) -> Network:
    """
    Resolve a configured network name (e.g., 'arbitrum') to a Network.

    Raises
    ------
    KeyError
        If no network is configured under that name

    """
    for config in load_networks().values():
        if config.name == name.lower():
            return config.network
    raise KeyError(name)


def get_all_supported_networks() -> list[Network]:
    """
    Get all configured networks, in file order.

    Returns
    -------
    list[Network]
        Configured networks

    """
    return list(load_networks().keys())


def get_stablecoins(network: Network) -> frozenset[Token]:
    """Get the stablecoin equivalence class for a network."""
    return get_network_config(network).stablecoins
