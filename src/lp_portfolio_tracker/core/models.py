"""Data models for networks, tokens, positions, pools and portfolio views."""

import logging
from decimal import Decimal
from enum import IntEnum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Network(IntEnum):
    """Supported networks, keyed by chain id."""

    MAINNET = 1
    OPTIMISM = 10
    POLYGON = 137
    ARBITRUM = 42161

    @classmethod
    def resolve(cls, chain_id: int) -> "Network":
        """
        Resolve a chain id to a network, falling back to ``DEFAULT_NETWORK``.

        Parameters
        ----------
        chain_id : int
            Numeric chain identifier

        Returns
        -------
        Network
            Matching network, or the default network for unknown ids

        """
        try:
            return cls(chain_id)
        except ValueError:
            logger.warning("Unknown chain id %s, falling back to %s", chain_id, DEFAULT_NETWORK.name)
            return DEFAULT_NETWORK


DEFAULT_NETWORK = Network.MAINNET


class TransactionType(IntEnum):
    """Position ledger event types."""

    ADD = 0
    REMOVE = 1


class Token(BaseModel):
    """
    ERC-20 token on a specific network.

    Two tokens are equal when they share network and address; symbol and
    name are informational only.

    Attributes
    ----------
    network : Network
        Network the contract lives on
    address : str
        Contract address, lower-cased
    symbol : str
        Token symbol (e.g., 'WETH', 'USDC')
    decimals : int
        Number of decimal places
    name : str, optional
        Full token name

    """

    model_config = ConfigDict(frozen=True)

    network: Network
    address: str
    symbol: str = ""
    decimals: int = Field(ge=0, le=255)
    name: str | None = None

    @field_validator("address")
    @classmethod
    def _lower_address(cls, value: str) -> str:
        return value.lower()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Token):
            return NotImplemented
        return self.network == other.network and self.address == other.address

    def __hash__(self) -> int:
        return hash((self.network, self.address))

    @classmethod
    def from_record(cls, record: dict[str, Any], network: Network) -> "Token":
        """Build a token from an API record with ``id``, ``symbol``, ``decimals`` and ``name``."""
        return cls(
            network=network,
            address=record["id"],
            symbol=record.get("symbol") or "",
            decimals=int(record["decimals"]),
            name=record.get("name"),
        )


class TokenAmount(BaseModel):
    """
    Amount of a token in human units.

    Attributes
    ----------
    token : Token
        Denominating token
    amount : Decimal
        Amount scaled by the token's decimals

    """

    model_config = ConfigDict(frozen=True)

    token: Token
    amount: Decimal

    @classmethod
    def from_raw(cls, token: Token, raw_amount: int) -> "TokenAmount":
        """Build an amount from an integer amount in the token's smallest unit."""
        return cls(token=token, amount=Decimal(raw_amount).scaleb(-token.decimals))

    @classmethod
    def zero(cls, token: Token) -> "TokenAmount":
        return cls(token=token, amount=Decimal(0))

    def __add__(self, other: "TokenAmount") -> "TokenAmount":
        if other.token != self.token:
            msg = f"Cannot add {other.token.symbol} amount to {self.token.symbol} amount"
            raise ValueError(msg)
        return TokenAmount(token=self.token, amount=self.amount + other.amount)


class Transaction(BaseModel):
    """
    One liquidity event of a position. Immutable once fetched.

    ``transaction_type`` stays a raw integer so that event types other than
    add/remove can be reported instead of failing validation.

    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    transaction_type: int = Field(alias="transactionType")
    liquidity: int = Field(ge=0)
    timestamp: int = 0
    transaction_hash: str | None = Field(default=None, alias="transactionHash")
    gas: int = 0
    gas_price: int = Field(default=0, alias="gasPrice")
    amount0: Decimal = Decimal(0)
    amount1: Decimal = Decimal(0)

    @property
    def gas_cost(self) -> Decimal:
        """Gas spent, in units of the network's native asset."""
        return Decimal(self.gas * self.gas_price).scaleb(-18)


class PoolKey(BaseModel):
    """
    Canonical, order-independent pool identity.

    Attributes
    ----------
    token0 : str
        Lower of the two token addresses
    token1 : str
        Higher of the two token addresses
    fee : int
        Fee tier in hundredths of a basis point (e.g., 500, 3000)

    """

    model_config = ConfigDict(frozen=True)

    token0: str
    token1: str
    fee: int

    @model_validator(mode="after")
    def _check_order(self) -> "PoolKey":
        if self.token0 > self.token1:
            msg = f"PoolKey tokens out of order: {self.token0} > {self.token1}"
            raise ValueError(msg)
        return self

    @classmethod
    def from_tokens(cls, token_a: "Token | str", token_b: "Token | str", fee: int) -> "PoolKey":
        """Build the key for a pair supplied in either order."""
        address_a = token_a.address if isinstance(token_a, Token) else token_a.lower()
        address_b = token_b.address if isinstance(token_b, Token) else token_b.lower()
        if address_b < address_a:
            address_a, address_b = address_b, address_a
        return cls(token0=address_a, token1=address_b, fee=fee)

    def __str__(self) -> str:
        return f"{self.token0}-{self.token1}-{self.fee}"


class Position(BaseModel):
    """
    A single liquidity-provision stake.

    Attributes
    ----------
    id : str
        Position (NFT token) id
    network : Network
        Network the position lives on
    token0 : Token
        First token of the pair, as supplied by the source
    token1 : Token
        Second token of the pair, as supplied by the source
    fee : int
        Pool fee tier
    tick_lower : int
        Lower tick of the range
    tick_upper : int
        Upper tick of the range
    owner : str
        Owning wallet address
    transactions : tuple[Transaction, ...]
        Ledger in chronological order
    liquidity : int
        Net liquidity folded from ``transactions``; negative values indicate
        inconsistent upstream data and are kept as-is
    uncollected_fees0 : int
        Uncollected fees of token0 in raw units, as estimated externally
    uncollected_fees1 : int
        Uncollected fees of token1 in raw units, as estimated externally

    """

    model_config = ConfigDict(frozen=True)

    id: str
    network: Network
    token0: Token
    token1: Token
    fee: int = Field(ge=0)
    tick_lower: int
    tick_upper: int
    owner: str = ""
    transactions: tuple[Transaction, ...] = ()
    liquidity: int = 0
    uncollected_fees0: int = 0
    uncollected_fees1: int = 0

    @model_validator(mode="after")
    def _check_range(self) -> "Position":
        if self.tick_lower >= self.tick_upper:
            msg = f"Invalid tick range [{self.tick_lower}, {self.tick_upper}]"
            raise ValueError(msg)
        return self

    @property
    def pool_key(self) -> PoolKey:
        return PoolKey.from_tokens(self.token0, self.token1, self.fee)

    @property
    def is_closed(self) -> bool:
        return self.liquidity == 0

    @property
    def is_consistent(self) -> bool:
        """False when more liquidity was removed than added."""
        return self.liquidity >= 0


class Pool(BaseModel):
    """
    On-chain pool contract state.

    Attributes
    ----------
    address : str
        Pool contract address
    network : Network
        Network the pool lives on
    token0 : Token
        Pool token0
    token1 : Token
        Pool token1
    fee : int
        Fee tier
    tick_spacing : int
        Tick spacing of the fee tier
    tick : int
        Current tick
    sqrt_price_x96 : int
        Current sqrt price in Q64.96
    liquidity : int
        In-range liquidity held by the contract

    """

    model_config = ConfigDict(frozen=True)

    address: str
    network: Network
    token0: Token
    token1: Token
    fee: int = Field(ge=0)
    tick_spacing: int = 0
    tick: int
    sqrt_price_x96: int = Field(gt=0)
    liquidity: int = 0

    @property
    def key(self) -> PoolKey:
        return PoolKey.from_tokens(self.token0, self.token1, self.fee)


class PoolState(BaseModel):
    """
    Summary of one pool and the user's positions in it.

    ``liquidity_value`` and ``uncollected_fees_value`` stay denominated in
    ``quote_token``; conversion into the global currency happens when pools
    are combined.

    """

    model_config = ConfigDict(frozen=True)

    pool: Pool
    positions: tuple[Position, ...]
    quote_token: Token
    liquidity_value: TokenAmount
    uncollected_fees_value: TokenAmount

    @property
    def network(self) -> Network:
        return self.pool.network

    @property
    def key(self) -> PoolKey:
        return self.pool.key


class NetworkSnapshot(BaseModel):
    """Data currently exposed by one network's fetch collaborator."""

    model_config = ConfigDict(frozen=True)

    network: Network
    loading: bool = True
    positions: tuple[Position, ...] = ()
    pools: tuple[Pool, ...] = ()


class NetworkPools(BaseModel):
    """Aggregated pool states for one network."""

    model_config = ConfigDict(frozen=True)

    network: Network
    loading: bool = False
    pools: tuple[PoolState, ...] = ()


class PortfolioSnapshot(BaseModel):
    """
    Saved inputs of one derivation.

    Attributes
    ----------
    networks : list[NetworkSnapshot]
        One snapshot per network
    native_prices : dict[int, float | None]
        Native-asset USD price keyed by chain id

    """

    networks: list[NetworkSnapshot] = Field(default_factory=list)
    native_prices: dict[int, float | None] = Field(default_factory=dict)

    def prices_by_network(self) -> dict[Network, float | None]:
        """Prices keyed by network; chain ids that are not configured networks are dropped."""
        prices: dict[Network, float | None] = {}
        for chain_id, price in self.native_prices.items():
            try:
                prices[Network(chain_id)] = price
            except ValueError:
                logger.warning("Ignoring native price for unknown chain id %s", chain_id)
        return prices


class FetchResult(BaseModel, Generic[T]):
    """Result of a fetch collaborator call."""

    loading: bool = False
    data: T


class PortfolioView(BaseModel):
    """
    Combined portfolio across all networks.

    Attributes
    ----------
    pools : list[PoolState]
        All pool states, sorted by normalized liquidity descending
    total_liquidity : float
        Sum of normalized pool liquidity
    total_uncollected_fees : float
        Sum of normalized uncollected fees
    loading : bool
        True while any network is still loading
    empty : bool
        True when nothing is loading and there are no pools

    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    pools: list[PoolState] = Field(default_factory=list)
    total_liquidity: float = 0.0
    total_uncollected_fees: float = 0.0
    loading: bool = False
    empty: bool = True
    normalizer: Any = Field(default=None, exclude=True, repr=False)

    def convert_to_global(self, value: TokenAmount) -> float | None:
        return self.normalizer.convert_to_global(value)

    def convert_to_global_formatted(self, value: TokenAmount) -> str:
        return self.normalizer.convert_to_global_formatted(value)

    def format_with_symbol(self, value: float | None, network: Network) -> str:
        return self.normalizer.format_with_symbol(value, network)
