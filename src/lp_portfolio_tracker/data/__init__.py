"""Network token tables and configuration loading."""

from lp_portfolio_tracker.data.loader import (
    NetworkConfig,
    get_all_supported_networks,
    get_network_by_name,
    get_network_config,
    get_stablecoins,
    load_networks,
    load_networks_file,
)

__all__ = [
    "NetworkConfig",
    "get_all_supported_networks",
    "get_network_by_name",
    "get_network_config",
    "get_stablecoins",
    "load_networks",
    "load_networks_file",
]
