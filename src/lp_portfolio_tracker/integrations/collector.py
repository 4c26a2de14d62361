"""Concurrent per-network collection of position and pool snapshots."""

import logging
from collections.abc import Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed

from lp_portfolio_tracker.core.ledger import with_uncollected_fees
from lp_portfolio_tracker.core.models import Network, NetworkSnapshot
from lp_portfolio_tracker.core.pools import group_positions
from lp_portfolio_tracker.data import get_all_supported_networks
from lp_portfolio_tracker.integrations.positions_api import PositionSource

logger = logging.getLogger(__name__)


class NetworkCollector:
    """
    Fetches every network independently and concurrently.

    Workflow per network:
    1. Fetch positions (ledgers folded into net liquidity)
    2. Fetch pool contract state for the positions' canonical keys
    3. Fetch uncollected fee estimates for matched pools
    4. Publish a NetworkSnapshot with ``loading=False``

    A network whose fetches fail still resolves, with empty data.

    Parameters
    ----------
    source : PositionSource
        Fetch collaborator
    networks : Sequence[Network] | None
        Networks to collect; defaults to every configured network
    max_workers : int
        Upper bound on concurrent network fetches

    """

    def __init__(
        self,
        source: PositionSource,
        networks: Sequence[Network] | None = None,
        max_workers: int = 4,
    ) -> None:
        self.source = source
        self.networks = list(networks) if networks is not None else get_all_supported_networks()
        self.max_workers = max_workers

    def collect_network(self, network: Network, addresses: Sequence[str]) -> NetworkSnapshot:
        """
        Collect one network's snapshot.

        Parameters
        ----------
        network : Network
            Network to fetch
        addresses : Sequence[str]
            Owner addresses

        Returns
        -------
        NetworkSnapshot
            Resolved snapshot

        """
        positions = self.source.fetch_positions(network, addresses).data
        if not positions:
            return NetworkSnapshot(network=network, loading=False)

        positions_by_pool = group_positions(positions)
        pools = self.source.fetch_pools(network, list(positions_by_pool)).data

        pools_with_positions = [
            (pool, positions_by_pool[pool.key]) for pool in pools if pool.key in positions_by_pool
        ]
        fees = self.source.fetch_uncollected_fees(network, pools_with_positions).data
        positions = [with_uncollected_fees(position, fees) for position in positions]

        logger.debug("%s: %d positions, %d pools, %d fee rows", network.name, len(positions), len(pools), len(fees))
        return NetworkSnapshot(network=network, loading=False, positions=tuple(positions), pools=tuple(pools))

    def stream(self, addresses: Sequence[str]) -> Iterator[list[NetworkSnapshot]]:
        """
        Yield the current snapshots each time a network resolves.

        The first yield has every network loading; the last has none.

        Parameters
        ----------
        addresses : Sequence[str]
            Owner addresses

        Yields
        ------
        list[NetworkSnapshot]
            One snapshot per network, in configured order

        """
        snapshots = {network: NetworkSnapshot(network=network, loading=True) for network in self.networks}
        yield list(snapshots.values())

        if not self.networks:
            return

        with ThreadPoolExecutor(max_workers=min(len(self.networks), self.max_workers)) as executor:
            future_to_network = {
                executor.submit(self.collect_network, network, addresses): network for network in self.networks
            }

            for future in as_completed(future_to_network):
                network = future_to_network[future]
                try:
                    snapshots[network] = future.result()
                except Exception:
                    # Continue with other networks even if one fails
                    logger.warning("Collecting %s failed", network.name, exc_info=True)
                    snapshots[network] = NetworkSnapshot(network=network, loading=False)

                yield list(snapshots.values())

    def collect(self, addresses: Sequence[str]) -> list[NetworkSnapshot]:
        """Collect every network and return the final snapshots."""
        snapshots: list[NetworkSnapshot] = []
        for snapshots in self.stream(addresses):
            pass
        return snapshots
