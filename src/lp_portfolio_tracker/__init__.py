"""Aggregate concentrated-liquidity positions across networks into one portfolio view."""

from lp_portfolio_tracker.core.pipeline import derive_network_pools, derive_portfolio
from lp_portfolio_tracker.settings import AppSettings, GlobalCurrency

__version__ = "0.1.0"

__all__ = [
    "AppSettings",
    "GlobalCurrency",
    "derive_network_pools",
    "derive_portfolio",
]
