"""Pool state aggregator: merge on-chain pool state with grouped positions."""

import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal, InvalidOperation

from lp_portfolio_tracker.core.liquidity_math import get_amounts_for_liquidity, token0_price
from lp_portfolio_tracker.core.models import Pool, PoolKey, PoolState, Position, Token, TokenAmount
from lp_portfolio_tracker.data import get_network_config
from lp_portfolio_tracker.pricing.normalizer import CurrencyNormalizer

logger = logging.getLogger(__name__)


class PoolStateAggregator:
    """
    Builds one PoolState per canonical pool key with matched contract state.

    Workflow:
    1. Match each group of positions to its pool by canonical key
    2. Pick the token the pool's values are denominated in
    3. Value every position's liquidity and uncollected fees at the pool price

    Parameters
    ----------
    normalizer : CurrencyNormalizer
        Normalizer whose settings pick the global currency token

    """

    def __init__(self, normalizer: CurrencyNormalizer) -> None:
        self.normalizer = normalizer

    def aggregate(
        self,
        positions_by_pool: Mapping[PoolKey, list[Position]],
        pools: Iterable[Pool],
    ) -> list[PoolState]:
        """
        Build pool states for all groups with a matched pool.

        Groups without a matched pool are skipped; their contract state is
        expected on a later refresh.

        Parameters
        ----------
        positions_by_pool : Mapping[PoolKey, list[Position]]
            Positions grouped by canonical key
        pools : Iterable[Pool]
            On-chain pool states fetched for those keys

        Returns
        -------
        list[PoolState]
            One state per matched pool, in grouping order

        """
        pools_by_key = {pool.key: pool for pool in pools}
        pool_states = []

        for key, positions in positions_by_pool.items():
            pool = pools_by_key.get(key)
            if pool is None:
                logger.debug("No pool state yet for %s, skipping %d positions", key, len(positions))
                continue

            pool_state = self.build_pool_state(pool, positions)
            if pool_state is not None:
                pool_states.append(pool_state)

        return pool_states

    def build_pool_state(self, pool: Pool, positions: Iterable[Position]) -> PoolState | None:
        """
        Summarize one pool and its positions.

        Positions whose values cannot be computed are dropped; if none are
        left the pool yields no state.

        Parameters
        ----------
        pool : Pool
            Matched pool contract state
        positions : Iterable[Position]
            Positions sharing the pool's key

        Returns
        -------
        PoolState | None
            Pool summary, or None if no position could be valued

        """
        quote_token = self.choose_quote_token(pool)
        liquidity_value = TokenAmount.zero(quote_token)
        fees_value = TokenAmount.zero(quote_token)
        kept = []

        for position in positions:
            try:
                position_liquidity, position_fees = self.value_position(pool, position, quote_token)
            except (ValueError, ArithmeticError) as e:
                logger.warning("Dropping position %s from pool %s: %s", position.id, pool.address, e)
                continue
            liquidity_value += position_liquidity
            fees_value += position_fees
            kept.append(position)

        if not kept:
            return None

        return PoolState(
            pool=pool,
            positions=tuple(kept),
            quote_token=quote_token,
            liquidity_value=liquidity_value,
            uncollected_fees_value=fees_value,
        )

    def choose_quote_token(self, pool: Pool) -> Token:
        """
        Pick the token a pool's values are denominated in.

        Preference: the global currency token, a stablecoin, the wrapped
        native asset, the network's ETH token, then the pool's token1.

        """
        config = get_network_config(pool.network)
        pair = (pool.token0, pool.token1)
        global_token = self.normalizer.settings.get_global_currency_token(pool.network)

        if global_token in pair:
            return global_token
        for token in pair:
            if config.is_stablecoin(token):
                return token
        if config.wrapped_native in pair:
            return config.wrapped_native
        if config.eth_token in pair:
            return config.eth_token
        return pool.token1

    def value_position(
        self,
        pool: Pool,
        position: Position,
        quote_token: Token,
    ) -> tuple[TokenAmount, TokenAmount]:
        """
        Value a position's liquidity and uncollected fees in the quote token.

        Returns
        -------
        tuple[TokenAmount, TokenAmount]
            (liquidity value, uncollected fees value)

        Raises
        ------
        ValueError
            If the ticks or pool price are out of range
        ArithmeticError
            If the pool price is numerically unusable

        """
        amount0, amount1 = get_amounts_for_liquidity(
            pool.tick,
            pool.sqrt_price_x96,
            position.tick_lower,
            position.tick_upper,
            position.liquidity,
        )

        fees0, fees1 = position.uncollected_fees0, position.uncollected_fees1
        if position.token0 != pool.token0:
            fees0, fees1 = fees1, fees0

        price = token0_price(pool.sqrt_price_x96, pool.token0.decimals, pool.token1.decimals)
        if price <= 0:
            msg = f"Pool price underflows for sqrt price {pool.sqrt_price_x96}"
            raise InvalidOperation(msg)

        def in_quote(raw0: int, raw1: int) -> TokenAmount:
            human0 = Decimal(raw0).scaleb(-pool.token0.decimals)
            human1 = Decimal(raw1).scaleb(-pool.token1.decimals)
            if quote_token == pool.token0:
                return TokenAmount(token=quote_token, amount=human0 + human1 / price)
            return TokenAmount(token=quote_token, amount=human1 + human0 * price)

        return in_quote(amount0, amount1), in_quote(fees0, fees1)
