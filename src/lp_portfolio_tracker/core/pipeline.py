"""Pure re-derivation pipeline from network snapshots to a portfolio view."""

import logging
from collections.abc import Iterable, Mapping

from lp_portfolio_tracker.core.aggregator import PoolStateAggregator
from lp_portfolio_tracker.core.combiner import combine_networks
from lp_portfolio_tracker.core.models import Network, NetworkPools, NetworkSnapshot, PortfolioView
from lp_portfolio_tracker.core.pools import filter_closed_positions, group_positions
from lp_portfolio_tracker.pricing.normalizer import CurrencyNormalizer
from lp_portfolio_tracker.settings import AppSettings

logger = logging.getLogger(__name__)


def derive_network_pools(
    snapshot: NetworkSnapshot,
    settings: AppSettings,
    normalizer: CurrencyNormalizer,
) -> NetworkPools:
    """
    Filter, group and aggregate the positions of one network.

    Parameters
    ----------
    snapshot : NetworkSnapshot
        Positions and pool states currently exposed for the network
    settings : AppSettings
        User preferences (closed-position filter)
    normalizer : CurrencyNormalizer
        Normalizer for the user's global currency

    Returns
    -------
    NetworkPools
        Pool states for the network, with the snapshot's loading flag

    """
    positions = list(snapshot.positions)
    if settings.filter_closed:
        positions = filter_closed_positions(positions)

    positions_by_pool = group_positions(positions)
    pool_states = PoolStateAggregator(normalizer).aggregate(positions_by_pool, snapshot.pools)

    logger.debug(
        "%s: %d positions in %d groups -> %d pool states",
        snapshot.network.name,
        len(positions),
        len(positions_by_pool),
        len(pool_states),
    )
    return NetworkPools(network=snapshot.network, loading=snapshot.loading, pools=tuple(pool_states))


def derive_portfolio(
    snapshots: Iterable[NetworkSnapshot],
    settings: AppSettings,
    native_prices: Mapping[Network, float | None] | None = None,
) -> PortfolioView:
    """
    Derive the combined portfolio view from scratch.

    Called again on every input change (new snapshot, price or settings);
    nothing is cached between calls.

    Parameters
    ----------
    snapshots : Iterable[NetworkSnapshot]
        One snapshot per network
    settings : AppSettings
        User preferences
    native_prices : Mapping[Network, float | None] | None
        Live native-asset USD price per network

    Returns
    -------
    PortfolioView
        Combined, sorted portfolio with totals

    """
    normalizer = CurrencyNormalizer(settings, native_prices)
    results = [derive_network_pools(snapshot, settings, normalizer) for snapshot in snapshots]
    return combine_networks(results, normalizer)
