"""User preferences read by the aggregation pipeline."""

import logging
from enum import StrEnum
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, field_validator

from lp_portfolio_tracker.core.models import Network, Token
from lp_portfolio_tracker.data import get_network_config

logger = logging.getLogger(__name__)


class GlobalCurrency(StrEnum):
    """Display currency choices."""

    USD = "usd"
    ETH = "eth"


class AppSettings(BaseModel):
    """
    User preferences.

    Attributes
    ----------
    global_currency : GlobalCurrency
        Currency all values are normalized into; ``eth`` means WETH on the
        network (bridged WETH where the native asset is not ether)
    filter_closed : bool
        Hide positions whose net liquidity is zero

    """

    model_config = ConfigDict(frozen=True)

    global_currency: GlobalCurrency = GlobalCurrency.USD
    filter_closed: bool = False

    @field_validator("global_currency", mode="before")
    @classmethod
    def _default_unknown_currency(cls, value: object) -> GlobalCurrency:
        if isinstance(value, str) and value.lower() in {c.value for c in GlobalCurrency}:
            return GlobalCurrency(value.lower())
        logger.warning("Unknown global currency %r, using %s", value, GlobalCurrency.USD.value)
        return GlobalCurrency.USD

    def get_global_currency_token(self, network: Network) -> Token:
        """
        Resolve the global currency to a concrete token on a network.

        Parameters
        ----------
        network : Network
            Network to resolve for

        Returns
        -------
        Token
            Stable reference token for ``usd``, the network's ETH token for ``eth``

        """
        config = get_network_config(network)
        if self.global_currency == GlobalCurrency.ETH:
            return config.eth_token
        return config.stable_reference

    @classmethod
    def load(cls, path: Path) -> "AppSettings":
        """
        Load preferences from a YAML file.

        Missing files yield default settings.

        """
        if not path.exists():
            return cls()
        with open(path, encoding="utf-8") as f:
            return cls.model_validate(yaml.safe_load(f) or {})
