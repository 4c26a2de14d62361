"""Core models, position ledger and pool grouping."""

from lp_portfolio_tracker.core.ledger import build_position, net_liquidity
from lp_portfolio_tracker.core.models import (
    DEFAULT_NETWORK,
    FetchResult,
    Network,
    NetworkPools,
    NetworkSnapshot,
    Pool,
    PoolKey,
    PoolState,
    PortfolioSnapshot,
    PortfolioView,
    Position,
    Token,
    TokenAmount,
    Transaction,
    TransactionType,
)
from lp_portfolio_tracker.core.pools import filter_closed_positions, group_positions, pool_key

__all__ = [
    "DEFAULT_NETWORK",
    "FetchResult",
    "Network",
    "NetworkPools",
    "NetworkSnapshot",
    "Pool",
    "PoolKey",
    "PoolState",
    "PortfolioSnapshot",
    "PortfolioView",
    "Position",
    "Token",
    "TokenAmount",
    "Transaction",
    "TransactionType",
    "build_position",
    "filter_closed_positions",
    "group_positions",
    "net_liquidity",
    "pool_key",
]
