"""Combine per-network pool states into one sorted portfolio view."""

from collections.abc import Iterable

from lp_portfolio_tracker.core.models import NetworkPools, PoolState, PortfolioView
from lp_portfolio_tracker.pricing.normalizer import CurrencyNormalizer


def combine_networks(results: Iterable[NetworkPools], normalizer: CurrencyNormalizer) -> PortfolioView:
    """
    Merge per-network pool lists, sort them and fold totals.

    Pools are sorted by normalized liquidity, descending; ties keep input
    order. Values that cannot be normalized count as zero.

    Parameters
    ----------
    results : Iterable[NetworkPools]
        Aggregated pool states and loading flag per network
    normalizer : CurrencyNormalizer
        Normalizer for the user's global currency

    Returns
    -------
    PortfolioView
        Combined pools, totals and loading/empty flags

    """
    results = list(results)
    loading = any(result.loading for result in results)
    pools: list[PoolState] = [pool for result in results for pool in result.pools]

    def normalized(pool: PoolState) -> tuple[float, float]:
        liquidity = normalizer.convert_to_global(pool.liquidity_value) or 0.0
        fees = normalizer.convert_to_global(pool.uncollected_fees_value) or 0.0
        return liquidity, fees

    values = {id(pool): normalized(pool) for pool in pools}
    sorted_pools = sorted(pools, key=lambda pool: values[id(pool)][0], reverse=True)

    total_liquidity = 0.0
    total_uncollected_fees = 0.0
    for pool in sorted_pools:
        liquidity, fees = values[id(pool)]
        total_liquidity += liquidity
        total_uncollected_fees += fees

    return PortfolioView(
        pools=sorted_pools,
        total_liquidity=total_liquidity,
        total_uncollected_fees=total_uncollected_fees,
        loading=loading,
        empty=not loading and not sorted_pools,
        normalizer=normalizer,
    )
