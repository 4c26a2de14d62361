"""Position ledger: fold a position's event history into net liquidity."""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from lp_portfolio_tracker.core.models import Network, Position, Token, Transaction, TransactionType

logger = logging.getLogger(__name__)


def net_liquidity(transactions: Iterable[Transaction], position_id: str = "?") -> int:
    """
    Fold a transaction history into net liquidity.

    Adds contribute ``+liquidity`` and removes ``-liquidity``. Other event
    types are skipped and logged. The result is not floored at zero.

    Parameters
    ----------
    transactions : Iterable[Transaction]
        Ledger in the order delivered by the source
    position_id : str
        Position id, used in log messages only

    Returns
    -------
    int
        Signed sum of liquidity deltas

    """
    liquidity = 0
    for tx in transactions:
        if tx.transaction_type == TransactionType.ADD:
            liquidity += tx.liquidity
        elif tx.transaction_type == TransactionType.REMOVE:
            liquidity -= tx.liquidity
        else:
            logger.warning(
                "Ignoring transaction %s of unknown type %s on position %s",
                tx.transaction_hash,
                tx.transaction_type,
                position_id,
            )

    if liquidity < 0:
        logger.warning("Position %s has negative net liquidity %d", position_id, liquidity)

    return liquidity


def build_position(
    record: Mapping[str, Any],
    network: Network,
    owner: str = "",
    fees: Mapping[str, tuple[int, int]] | None = None,
) -> Position | None:
    """
    Build a Position from a raw position record.

    Parameters
    ----------
    record : Mapping[str, Any]
        Raw record with ``positionId``, ``token0``, ``token1``, ``fee``,
        ``tickLower``, ``tickUpper`` and ``transactions``
    network : Network
        Network the record was fetched from
    owner : str
        Owning address; the record's own ``owner`` field wins if present
    fees : Mapping[str, tuple[int, int]] | None
        Uncollected fees by position id, as estimated by the fee endpoint

    Returns
    -------
    Position | None
        The position, or None if the record is malformed

    """
    position_id = str(record.get("positionId", record.get("id", "?")))
    try:
        transactions = tuple(Transaction.model_validate(tx) for tx in record.get("transactions", []))
        fees0, fees1 = (fees or {}).get(position_id, (0, 0))
        return Position(
            id=position_id,
            network=network,
            token0=Token.from_record(record["token0"], network),
            token1=Token.from_record(record["token1"], network),
            fee=int(record["fee"]),
            tick_lower=int(record["tickLower"]),
            tick_upper=int(record["tickUpper"]),
            owner=(record.get("owner") or owner).lower(),
            transactions=transactions,
            liquidity=net_liquidity(transactions, position_id),
            uncollected_fees0=fees0,
            uncollected_fees1=fees1,
        )
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        logger.warning("Dropping malformed position %s on %s: %s", position_id, network.name, e)
        return None


def with_uncollected_fees(position: Position, fees: Mapping[str, tuple[int, int]]) -> Position:
    """Return a copy of ``position`` carrying the fees estimated for it, if any."""
    if position.id not in fees:
        return position
    fees0, fees1 = fees[position.id]
    return position.model_copy(update={"uncollected_fees0": fees0, "uncollected_fees1": fees1})
