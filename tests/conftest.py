"""Pytest configuration and shared fixtures for lp-portfolio-tracker tests."""

from decimal import Decimal

import pytest

from lp_portfolio_tracker.core.ledger import net_liquidity
from lp_portfolio_tracker.core.liquidity_math import get_sqrt_ratio_at_tick
from lp_portfolio_tracker.core.models import (
    Network,
    Pool,
    PoolState,
    Position,
    Token,
    TokenAmount,
    Transaction,
    TransactionType,
)
from lp_portfolio_tracker.data import get_network_config
from lp_portfolio_tracker.pricing.normalizer import CurrencyNormalizer
from lp_portfolio_tracker.settings import AppSettings, GlobalCurrency

ETH_PRICE = 2000.0

# USDC (token0) / WETH (token1) on mainnet, ETH at roughly 2000 USDC
WETH_USDC_TICK = 200310


@pytest.fixture
def weth() -> Token:
    return get_network_config(Network.MAINNET).wrapped_native


@pytest.fixture
def usdc() -> Token:
    return get_network_config(Network.MAINNET).stable_reference


@pytest.fixture
def dai() -> Token:
    return Token(
        network=Network.MAINNET,
        address="0x6B175474E89094C44Da98b954EedeAC495271d0F",
        symbol="DAI",
        decimals=18,
    )


@pytest.fixture
def usdt() -> Token:
    return Token(
        network=Network.MAINNET,
        address="0xdAC17F958D2ee523a2206206994597C13D831ec7",
        symbol="USDT",
        decimals=6,
    )


@pytest.fixture
def uni() -> Token:
    return Token(
        network=Network.MAINNET,
        address="0x1f9840a85d5aF5bf1D1762F925BDADdC4201F984",
        symbol="UNI",
        decimals=18,
    )


@pytest.fixture
def usd_settings() -> AppSettings:
    return AppSettings()


@pytest.fixture
def eth_settings() -> AppSettings:
    return AppSettings(global_currency=GlobalCurrency.ETH)


@pytest.fixture
def native_prices() -> dict[Network, float | None]:
    return {Network.MAINNET: ETH_PRICE, Network.OPTIMISM: ETH_PRICE, Network.ARBITRUM: ETH_PRICE}


@pytest.fixture
def normalizer(usd_settings, native_prices) -> CurrencyNormalizer:
    return CurrencyNormalizer(usd_settings, native_prices)


@pytest.fixture
def make_position(weth, usdc):
    """Factory for positions with a ledger of (type, liquidity) pairs."""

    def _make(
        position_id: str = "1",
        token0: Token | None = None,
        token1: Token | None = None,
        fee: int = 500,
        ledger: list[tuple[int, int]] | None = None,
        tick_lower: int = 190000,
        tick_upper: int = 210000,
        fees: tuple[int, int] = (0, 0),
    ) -> Position:
        token0 = token0 or usdc
        token1 = token1 or weth
        ledger = ledger if ledger is not None else [(TransactionType.ADD, 10**15)]
        transactions = tuple(Transaction(transaction_type=kind, liquidity=amount) for kind, amount in ledger)
        return Position(
            id=position_id,
            network=token0.network,
            token0=token0,
            token1=token1,
            fee=fee,
            tick_lower=tick_lower,
            tick_upper=tick_upper,
            owner="0xowner",
            transactions=transactions,
            liquidity=net_liquidity(transactions, position_id),
            uncollected_fees0=fees[0],
            uncollected_fees1=fees[1],
        )

    return _make


@pytest.fixture
def make_pool(weth, usdc):
    """Factory for pool contract states."""

    def _make(
        token0: Token | None = None,
        token1: Token | None = None,
        fee: int = 500,
        tick: int = WETH_USDC_TICK,
        address: str = "0x88e6a0c2ddd26feeb64f039a2c41296fcb3f5640",
    ) -> Pool:
        token0 = token0 or usdc
        token1 = token1 or weth
        if token1.address < token0.address:
            token0, token1 = token1, token0
        return Pool(
            address=address,
            network=token0.network,
            token0=token0,
            token1=token1,
            fee=fee,
            tick_spacing=10,
            tick=tick,
            sqrt_price_x96=get_sqrt_ratio_at_tick(tick),
            liquidity=10**20,
        )

    return _make


@pytest.fixture
def make_pool_state(make_pool):
    """Factory for pool states with fixed liquidity and fee values."""

    def _make(quote_token: Token, liquidity: str, fees: str = "0", address: str = "0xpool") -> PoolState:
        pool = make_pool(address=address) if quote_token.network == Network.MAINNET else None
        if pool is None:
            config = get_network_config(quote_token.network)
            pool = Pool(
                address=address,
                network=quote_token.network,
                token0=config.stable_reference,
                token1=config.wrapped_native,
                fee=500,
                tick=0,
                sqrt_price_x96=get_sqrt_ratio_at_tick(0),
            )
        return PoolState(
            pool=pool,
            positions=(),
            quote_token=quote_token,
            liquidity_value=TokenAmount(token=quote_token, amount=Decimal(liquidity)),
            uncollected_fees_value=TokenAmount(token=quote_token, amount=Decimal(fees)),
        )

    return _make
