"""Conversion of gas spent on position transactions into a base token."""

from collections.abc import Iterable
from decimal import Decimal

from lp_portfolio_tracker.core.models import Position, Token, TokenAmount
from lp_portfolio_tracker.data import get_network_config
from lp_portfolio_tracker.pricing.normalizer import CurrencyNormalizer

GAS_PRECISION = Decimal("0.00001")


def convert_gas_cost(cost: Decimal, base_token: Token, normalizer: CurrencyNormalizer) -> TokenAmount | None:
    """
    Convert a gas cost in native units into ``base_token``.

    Parameters
    ----------
    cost : Decimal
        Gas cost in units of the base token network's native asset
    base_token : Token
        Token to express the cost in
    normalizer : CurrencyNormalizer
        Source of the native-asset and base-token USD prices

    Returns
    -------
    TokenAmount | None
        Cost in the base token, or None if either price is unavailable

    """
    config = get_network_config(base_token.network)
    if base_token == config.wrapped_native:
        return TokenAmount(token=base_token, amount=cost)

    native_usd = normalizer.native_price(base_token.network)
    base_usd = normalizer.usd_price(base_token)
    if native_usd is None or base_usd is None:
        return None
    amount = (cost * Decimal(str(native_usd)) / Decimal(str(base_usd))).quantize(GAS_PRECISION)
    return TokenAmount(token=base_token, amount=amount)


def positions_gas_cost(
    positions: Iterable[Position],
    base_token: Token,
    normalizer: CurrencyNormalizer,
) -> TokenAmount | None:
    """Total gas spent on all transactions of ``positions``, in ``base_token``."""
    cost = sum((tx.gas_cost for position in positions for tx in position.transactions), Decimal(0))
    return convert_gas_cost(cost, base_token, normalizer)
