"""Currency normalization and price services."""

from lp_portfolio_tracker.pricing.defillama import DeFiLlamaPricing, NativePriceSource
from lp_portfolio_tracker.pricing.gas import convert_gas_cost, positions_gas_cost
from lp_portfolio_tracker.pricing.normalizer import CurrencyNormalizer, format_currency

__all__ = [
    "CurrencyNormalizer",
    "DeFiLlamaPricing",
    "NativePriceSource",
    "convert_gas_cost",
    "format_currency",
    "positions_gas_cost",
]
