"""Canonical pool keys and grouping of positions by pool."""

from collections.abc import Iterable

from lp_portfolio_tracker.core.models import PoolKey, Position, Token


def pool_key(token_a: Token | str, token_b: Token | str, fee: int) -> PoolKey:
    """
    Compute the canonical key of a pool.

    Token addresses are lower-cased and ordered lexicographically, so
    ``pool_key(a, b, fee) == pool_key(b, a, fee)``.

    Parameters
    ----------
    token_a : Token | str
        One token of the pair, or its address
    token_b : Token | str
        The other token of the pair, or its address
    fee : int
        Fee tier

    Returns
    -------
    PoolKey
        Order-independent pool identity

    """
    return PoolKey.from_tokens(token_a, token_b, fee)


def filter_closed_positions(positions: Iterable[Position]) -> list[Position]:
    """Drop positions whose net liquidity is exactly zero."""
    return [position for position in positions if not position.is_closed]


def group_positions(positions: Iterable[Position]) -> dict[PoolKey, list[Position]]:
    """
    Partition positions by canonical pool key.

    Parameters
    ----------
    positions : Iterable[Position]
        Flat sequence of positions, already filtered

    Returns
    -------
    dict[PoolKey, list[Position]]
        Positions sharing each key, in input order

    """
    positions_by_pool: dict[PoolKey, list[Position]] = {}
    for position in positions:
        positions_by_pool.setdefault(position.pool_key, []).append(position)
    return positions_by_pool
