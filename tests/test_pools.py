"""Tests for canonical pool keys and position grouping."""

import pytest

from lp_portfolio_tracker.core.models import PoolKey, TransactionType
from lp_portfolio_tracker.core.pools import filter_closed_positions, group_positions, pool_key

ADDRESSES = [
    "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
    "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
    "0x6B175474E89094C44Da98b954EedeAC495271d0F",
    "0xdAC17F958D2ee523a2206206994597C13D831ec7",
]


@pytest.mark.parametrize("token_a", ADDRESSES)
@pytest.mark.parametrize("token_b", ADDRESSES)
@pytest.mark.parametrize("fee", [100, 500, 3000, 10000])
def test_pool_key_is_symmetric(token_a, token_b, fee):
    """pool_key(A, B, f) == pool_key(B, A, f)."""
    assert pool_key(token_a, token_b, fee) == pool_key(token_b, token_a, fee)


def test_pool_key_ignores_address_case():
    """Checksummed and lower-case addresses resolve to the same key."""
    assert pool_key(ADDRESSES[0], ADDRESSES[1], 500) == pool_key(ADDRESSES[1].lower(), ADDRESSES[0].lower(), 500)


def test_pool_key_distinguishes_fee():
    """The fee tier is part of the pool identity."""
    assert pool_key(ADDRESSES[0], ADDRESSES[1], 500) != pool_key(ADDRESSES[0], ADDRESSES[1], 3000)


def test_pool_key_orders_tokens(weth, usdc):
    """Keys list the lower address first."""
    key = pool_key(weth, usdc, 500)

    assert key.token0 == usdc.address
    assert key.token1 == weth.address
    assert str(key) == f"{usdc.address}-{weth.address}-500"


def test_pool_key_rejects_unordered_construction():
    """Building a key directly with tokens out of order fails validation."""
    with pytest.raises(ValueError):
        PoolKey(token0="0xb", token1="0xa", fee=500)


def test_swapped_positions_group_together(make_position, weth, usdc):
    """Positions on (A, B, 500) and (B, A, 500) share one group."""
    first = make_position(position_id="1", token0=weth, token1=usdc)
    second = make_position(position_id="2", token0=usdc, token1=weth)

    groups = group_positions([first, second])

    assert len(groups) == 1
    assert [p.id for p in next(iter(groups.values()))] == ["1", "2"]


def test_grouping_preserves_multiplicity(make_position, weth, usdc, dai):
    """Every position lands in exactly one group."""
    positions = [
        make_position(position_id="1", token0=usdc, token1=weth, fee=500),
        make_position(position_id="2", token0=usdc, token1=weth, fee=3000),
        make_position(position_id="3", token0=dai, token1=usdc, fee=100),
        make_position(position_id="4", token0=weth, token1=usdc, fee=500),
    ]

    groups = group_positions(positions)

    assert len(groups) == 3
    assert sorted(p.id for group in groups.values() for p in group) == ["1", "2", "3", "4"]
    for key, group in groups.items():
        assert all(position.pool_key == key for position in group)


def test_group_empty():
    """No positions, no groups."""
    assert group_positions([]) == {}


def test_filter_closed_positions(make_position):
    """Only positions with exactly zero net liquidity are removed."""
    open_position = make_position(position_id="1")
    closed = make_position(position_id="2", ledger=[(TransactionType.ADD, 50), (TransactionType.REMOVE, 50)])
    negative = make_position(position_id="3", ledger=[(TransactionType.REMOVE, 50)])

    kept = filter_closed_positions([open_position, closed, negative])

    assert [p.id for p in kept] == ["1", "3"]
