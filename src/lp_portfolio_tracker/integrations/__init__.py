"""Fetch collaborators for position, pool and fee data."""

from lp_portfolio_tracker.integrations.collector import NetworkCollector
from lp_portfolio_tracker.integrations.positions_api import (
    PositionsAPIClient,
    PositionsAPIError,
    PositionSource,
    parse_pool,
)
from lp_portfolio_tracker.integrations.retry import RetryConfig, with_retry

__all__ = [
    "NetworkCollector",
    "PositionSource",
    "PositionsAPIClient",
    "PositionsAPIError",
    "RetryConfig",
    "parse_pool",
    "with_retry",
]
