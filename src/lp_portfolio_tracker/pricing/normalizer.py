"""Conversion of token-denominated amounts into the user's global currency."""

import logging
import math
from collections.abc import Mapping

from lp_portfolio_tracker.core.models import Network, Token, TokenAmount
from lp_portfolio_tracker.data import get_network_config, load_networks
from lp_portfolio_tracker.settings import AppSettings

logger = logging.getLogger(__name__)

STABLE_DISPLAY_SYMBOL = "$"
UNAVAILABLE_DISPLAY = "-"


class CurrencyNormalizer:
    """
    Converts token amounts into the global currency selected in settings.

    Stablecoins are treated as at parity with the stable reference token.
    The wrapped native asset is priced with the live native-asset USD price
    of its network, or with the documented fallback rate when the network has
    no live feed. WETH is priced with the live ether price, borrowed from an
    ether-native network where the native asset is not ether.
    Conversions that cannot be made return None instead of raising.

    Parameters
    ----------
    settings : AppSettings
        User preferences (global currency)
    native_prices : Mapping[Network, float | None] | None
        Live native-asset USD price per network; missing or zero entries
        mean no price is available

    """

    def __init__(
        self,
        settings: AppSettings,
        native_prices: Mapping[Network, float | None] | None = None,
    ) -> None:
        self.settings = settings
        self.native_prices = dict(native_prices or {})

    def native_price(self, network: Network) -> float | None:
        """
        Native-asset USD price used for conversions on a network.

        Parameters
        ----------
        network : Network
            Network to price

        Returns
        -------
        float | None
            Live price, the fallback rate for networks without a live feed,
            or None if no usable price exists

        """
        config = get_network_config(network)
        if not config.native_price_feed:
            return config.fallback_native_usd_rate
        return self._live_price(network)

    def eth_price(self, network: Network) -> float | None:
        """
        Ether USD price used for conversions on a network.

        Networks whose native asset is ether use their own live price. Others
        borrow the first usable live price of an ether-native network.

        """
        if get_network_config(network).native_is_ether:
            return self.native_price(network)
        for config in load_networks().values():
            if config.native_is_ether and config.native_price_feed:
                price = self._live_price(config.network)
                if price is not None:
                    return price
        return None

    def usd_price(self, token: Token) -> float | None:
        """USD price of one unit of ``token``, or None when it cannot be priced."""
        config = get_network_config(token.network)
        if config.is_stablecoin(token):
            return 1.0
        if token == config.wrapped_native:
            return self.native_price(token.network)
        if token == config.eth_token:
            return self.eth_price(token.network)
        return None

    def _live_price(self, network: Network) -> float | None:
        price = self.native_prices.get(network)
        if price is None or math.isnan(price) or price <= 0:
            return None
        return float(price)

    def convert_to_global(self, value: TokenAmount) -> float | None:
        """
        Convert an amount into the global currency.

        Amounts are converted through their USD price, so any two tokens with
        a known price on the same network can be converted into each other.

        Parameters
        ----------
        value : TokenAmount
            Amount to convert

        Returns
        -------
        float | None
            Converted scalar, or None if the value is unavailable

        """
        token = value.token
        network = token.network
        global_token = self.settings.get_global_currency_token(network)
        amount = float(value.amount)

        if token == global_token:
            return amount

        token_price = self.usd_price(token)
        global_price = self.usd_price(global_token)
        if token_price is None or global_price is None:
            logger.debug("No conversion from %s to %s on %s", token.symbol, global_token.symbol, network.name)
            return None
        return amount * token_price / global_price

    def currency_symbol(self, network: Network) -> str:
        config = get_network_config(network)
        if self.settings.get_global_currency_token(network) == config.stable_reference:
            return STABLE_DISPLAY_SYMBOL
        return config.display_symbol

    def format_with_symbol(self, value: float | None, network: Network) -> str:
        """
        Format a global-currency scalar for display.

        Parameters
        ----------
        value : float | None
            Converted value; None renders as a neutral placeholder
        network : Network
            Network whose global token decides the symbol

        Returns
        -------
        str
            Display string (e.g., '$1,234.56', 'Ξ0.50')

        """
        if value is None or math.isnan(value):
            return UNAVAILABLE_DISPLAY
        return format_currency(value, self.currency_symbol(network))

    def convert_to_global_formatted(self, value: TokenAmount) -> str:
        return self.format_with_symbol(self.convert_to_global(value), value.token.network)


def format_currency(value: float, symbol: str) -> str:
    """Format a value with a currency symbol, two decimals and thousands separators."""
    sign = "-" if value < 0 else ""
    number = f"{abs(value):,.2f}"
    if len(symbol) > 1:
        return f"{sign}{number} {symbol}"
    return f"{sign}{symbol}{number}"
