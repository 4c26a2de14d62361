"""Client for the positions, pools and uncollected-fees endpoints."""

import logging
from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from lp_portfolio_tracker.core.ledger import build_position
from lp_portfolio_tracker.core.models import FetchResult, Network, Pool, PoolKey, Position, Token
from lp_portfolio_tracker.integrations.retry import RetryConfig, with_retry

logger = logging.getLogger(__name__)


class PositionsAPIError(Exception):
    """Exception raised for positions API errors."""


class PositionSource(Protocol):
    """
    Interface of a per-network fetch collaborator.

    Implementations never leave a call "loading" on failure: they return an
    empty result with ``loading=False`` instead.

    """

    def fetch_positions(self, network: Network, addresses: Sequence[str]) -> FetchResult:
        """Fetch positions owned by ``addresses``; data is ``list[Position]``."""
        ...

    def fetch_pools(self, network: Network, keys: Iterable[PoolKey]) -> FetchResult:
        """Fetch pool contract state for ``keys``; data is ``list[Pool]``."""
        ...

    def fetch_uncollected_fees(
        self,
        network: Network,
        pools_with_positions: Sequence[tuple[Pool, Sequence[Position]]],
    ) -> FetchResult:
        """Fetch fee estimates; data is ``dict[str, tuple[int, int]]`` keyed by position id."""
        ...


def parse_pool(record: Mapping[str, Any], network: Network) -> Pool | None:
    """
    Build a Pool from a raw pool record.

    Records with missing fields or unparseable price data are dropped.

    Parameters
    ----------
    record : Mapping[str, Any]
        Raw record with ``address``, ``token0``, ``token1``, ``fee``,
        ``tickSpacing``, ``tick``, ``sqrtPriceX96`` and ``liquidity``
    network : Network
        Network the record was fetched from

    Returns
    -------
    Pool | None
        The pool, or None if the record is malformed

    """
    try:
        return Pool(
            address=str(record["address"]).lower(),
            network=network,
            token0=Token.from_record(record["token0"], network),
            token1=Token.from_record(record["token1"], network),
            fee=int(record["fee"]),
            tick_spacing=int(record.get("tickSpacing", 0)),
            tick=int(record["tick"]),
            sqrt_price_x96=int(record["sqrtPriceX96"]),
            liquidity=int(record.get("liquidity", 0)),
        )
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        logger.warning("Dropping malformed pool %s on %s: %s", record.get("address"), network.name, e)
        return None


def _to_raw_amount(value: Any) -> int:
    return int(Decimal(str(value)))


class PositionsAPIClient:
    """
    Client for the positions API.

    Every public method resolves to a FetchResult with ``loading=False``;
    transport errors and non-success responses produce empty data.

    Parameters
    ----------
    base_url : str
        API base URL
    timeout : float
        Request timeout in seconds
    retry_config : RetryConfig | None
        Backoff for transport errors
    client : httpx.Client | None
        Preconfigured HTTP client (e.g., with a mock transport)

    """

    BASE_URL = "https://ql2p37n7rb.execute-api.us-east-2.amazonaws.com"

    def __init__(
        self,
        base_url: str = BASE_URL,
        timeout: float = 30.0,
        retry_config: RetryConfig | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.retry_config = retry_config or RetryConfig()
        self.client = client or httpx.Client(timeout=timeout)

    def _post(self, path: str, payload: dict[str, Any]) -> Any:
        """
        POST a JSON payload and return the decoded body.

        Raises
        ------
        PositionsAPIError
            If the request fails, the response is not a success, or the body
            is not JSON

        """

        @with_retry(self.retry_config, retry_on=(httpx.TransportError,))
        def send() -> httpx.Response:
            return self.client.post(f"{self.base_url}/{path}", json=payload)

        try:
            response = send()
            response.raise_for_status()
            return response.json()

        except httpx.HTTPStatusError as e:
            msg = f"HTTP {e.response.status_code} from /{path}"
            raise PositionsAPIError(msg) from e
        except httpx.HTTPError as e:
            msg = f"Request to /{path} failed: {e}"
            raise PositionsAPIError(msg) from e
        except ValueError as e:
            msg = f"Invalid JSON from /{path}: {e}"
            raise PositionsAPIError(msg) from e

    def fetch_positions(self, network: Network, addresses: Sequence[str]) -> FetchResult:
        """
        Fetch positions for a list of owner addresses.

        Parameters
        ----------
        network : Network
            Network to query
        addresses : Sequence[str]
            Owner addresses

        Returns
        -------
        FetchResult
            ``list[Position]`` with net liquidity folded from each ledger

        """
        if not addresses:
            return FetchResult(data=[])

        try:
            results = self._post("positions", {"chainId": int(network), "addresses": list(addresses)})
        except PositionsAPIError as e:
            logger.warning("Positions fetch failed on %s: %s", network.name, e)
            return FetchResult(data=[])

        if not isinstance(results, list):
            logger.warning("Unexpected positions response on %s", network.name)
            return FetchResult(data=[])

        positions: list[Position] = []
        for owner, records in zip(addresses, results, strict=False):
            for record in records if isinstance(records, list) else []:
                if not isinstance(record, dict):
                    continue
                position = build_position(record, network, owner=owner)
                if position is not None:
                    positions.append(position)
        return FetchResult(data=positions)

    def fetch_pools(self, network: Network, keys: Iterable[PoolKey]) -> FetchResult:
        """
        Fetch pool contract state for canonical pool keys.

        Parameters
        ----------
        network : Network
            Network to query
        keys : Iterable[PoolKey]
            Pools to look up

        Returns
        -------
        FetchResult
            ``list[Pool]``; malformed records are dropped

        """
        payload_keys = [{"token0": key.token0, "token1": key.token1, "fee": key.fee} for key in keys]
        if not payload_keys:
            return FetchResult(data=[])

        try:
            records = self._post("pools", {"chainId": int(network), "pools": payload_keys})
        except PositionsAPIError as e:
            logger.warning("Pools fetch failed on %s: %s", network.name, e)
            return FetchResult(data=[])

        if not isinstance(records, list):
            logger.warning("Unexpected pools response on %s", network.name)
            return FetchResult(data=[])

        pools: list[Pool] = []
        for record in records:
            pool = parse_pool(record, network) if isinstance(record, dict) else None
            if pool is not None:
                pools.append(pool)
        return FetchResult(data=pools)

    def fetch_uncollected_fees(
        self,
        network: Network,
        pools_with_positions: Sequence[tuple[Pool, Sequence[Position]]],
    ) -> FetchResult:
        """
        Fetch uncollected fee estimates for positions.

        Parameters
        ----------
        network : Network
            Network to query
        pools_with_positions : Sequence[tuple[Pool, Sequence[Position]]]
            Pools with the positions to estimate

        Returns
        -------
        FetchResult
            ``dict[str, tuple[int, int]]`` of raw (fees0, fees1) by position id

        """
        payload_pools = [
            {
                "address": pool.address,
                "currentTick": pool.tick,
                "positions": [
                    {"tokenId": position.id, "tickLower": position.tick_lower, "tickUpper": position.tick_upper}
                    for position in positions
                ],
            }
            for pool, positions in pools_with_positions
        ]
        if not payload_pools:
            return FetchResult(data={})

        try:
            results = self._post("fees", {"chainId": int(network), "pools": payload_pools})
        except PositionsAPIError as e:
            logger.warning("Fees fetch failed on %s: %s", network.name, e)
            return FetchResult(data={})

        fees: dict[str, tuple[int, int]] = {}
        for rows in results if isinstance(results, list) else []:
            for row in rows if isinstance(rows, list) else []:
                try:
                    fees[str(row["tokenId"])] = (_to_raw_amount(row["amount0"]), _to_raw_amount(row["amount1"]))
                except (KeyError, TypeError, ArithmeticError, ValueError) as e:
                    logger.warning("Dropping malformed fee row on %s: %s", network.name, e)
        return FetchResult(data=fees)

    def close(self) -> None:
        """Close HTTP client."""
        self.client.close()

    def __enter__(self) -> "PositionsAPIClient":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        """Context manager exit."""
        self.close()
