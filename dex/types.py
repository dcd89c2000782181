"""
Core data types for cross-DEX reserve scanning.

Every record is a frozen dataclass. Fields that a pipeline stage could not
fill are ``None`` rather than absent, so a row for a missing pool is still
distinguishable from a pool that was never requested.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class TokenRef:
    """
    Token as supplied by the venue registry.

    Attributes:
        address: Token contract address, any letter case
        symbol: Optional ticker used only for labels
        decimals: Optional decimals hint from config (on-chain value wins)
    """

    address: str
    symbol: Optional[str] = None
    decimals: Optional[int] = None

    @property
    def key(self) -> str:
        return self.address.lower()


@dataclass(frozen=True)
class PairSpec:
    """Pair to check on every venue of a chain, in caller-supplied token order."""

    token0: TokenRef
    token1: TokenRef
    pair_key: Optional[str] = None

    @property
    def label(self) -> str:
        if self.pair_key:
            return self.pair_key
        if self.token0.symbol and self.token1.symbol:
            return f"{self.token0.symbol}-{self.token1.symbol}"
        return f"{self.token0.address}-{self.token1.address}"


@dataclass(frozen=True)
class ReserveSnapshot:
    """
    Raw reserves of one pool observed against a shared reference block.

    Attributes:
        reserve0: Reserve of on-chain token0 in its smallest unit
        reserve1: Reserve of on-chain token1 in its smallest unit
        block_number: Reference block read once per fetch
        block_timestamp: Timestamp of the reference block
        pair_timestamp_last: blockTimestampLast reported by the pair, if non-zero
    """

    reserve0: int
    reserve1: int
    block_number: int
    block_timestamp: int
    pair_timestamp_last: Optional[int] = None


@dataclass(frozen=True)
class PairTokens:
    """On-chain token0/token1 of a pool contract."""

    token0: str
    token1: str


@dataclass(frozen=True)
class NormalizedReserve:
    """One assembled row per requested pair on one venue."""

    chain: int
    venue: str
    pair_key: str
    pair_address: Optional[str]
    token0: Optional[str]
    token1: Optional[str]
    reserve0: Optional[int]
    reserve1: Optional[int]
    decimals0: Optional[int]
    decimals1: Optional[int]
    block_number: Optional[int]
    block_timestamp: Optional[int]
    pair_timestamp_last: Optional[int] = None

    @property
    def is_complete(self) -> bool:
        return None not in (
            self.pair_address,
            self.token0,
            self.token1,
            self.reserve0,
            self.reserve1,
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe view; raw reserves are rendered as decimal strings."""
        return {
            "chain": self.chain,
            "venue": self.venue,
            "pairKey": self.pair_key,
            "pairAddress": self.pair_address,
            "token0": self.token0,
            "token1": self.token1,
            "reserve0": None if self.reserve0 is None else str(self.reserve0),
            "reserve1": None if self.reserve1 is None else str(self.reserve1),
            "decimals0": self.decimals0,
            "decimals1": self.decimals1,
            "blockNumber": self.block_number,
            "blockTimestamp": self.block_timestamp,
            "pairTimestampLast": self.pair_timestamp_last,
        }


@dataclass(frozen=True)
class ReserveWithFee:
    """A normalized reserve row paired with the fee of the venue it came from."""

    reserve: NormalizedReserve
    fee: Decimal

    @property
    def chain(self) -> int:
        return self.reserve.chain

    @property
    def venue(self) -> str:
        return self.reserve.venue

    @property
    def pair_key(self) -> str:
        return self.reserve.pair_key

    @property
    def pair_address(self) -> Optional[str]:
        return self.reserve.pair_address

    @property
    def token0(self) -> Optional[str]:
        return self.reserve.token0

    @property
    def token1(self) -> Optional[str]:
        return self.reserve.token1


@dataclass(frozen=True)
class ArbitrageOpportunity:
    """
    Profitable two-venue round trip.

    Token A (``token0`` here) is the lower address of the market. The trade
    starts with ``trade_size`` of token A, sells it on ``sell_to`` and buys it
    back on ``buy_from``. Prices are quoted as token B per token A.
    """

    chain: int
    pair_key: str
    buy_from: str
    sell_to: str
    price_buy: Decimal
    price_sell: Decimal
    profit: Decimal
    profit_percent: Decimal
    token0: str
    token1: str
    trade_size: Decimal
    buy_pair_address: Optional[str] = None
    sell_pair_address: Optional[str] = None
    block_number: Optional[int] = None
    block_timestamp: Optional[int] = None
    profit_raw: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chain": self.chain,
            "pairKey": self.pair_key,
            "buyFrom": self.buy_from,
            "sellTo": self.sell_to,
            "priceBuy": str(self.price_buy),
            "priceSell": str(self.price_sell),
            "profit": str(self.profit),
            "profitPercent": str(self.profit_percent),
            "token0": self.token0,
            "token1": self.token1,
            "tradeSize": str(self.trade_size),
            "buyPairAddress": self.buy_pair_address,
            "sellPairAddress": self.sell_pair_address,
            "blockNumber": self.block_number,
            "blockTimestamp": self.block_timestamp,
            "profitRaw": None if self.profit_raw is None else str(self.profit_raw),
        }


@dataclass(frozen=True)
class VenueConfig:
    """
    A DEX deployment on one chain.

    Attributes:
        name: Venue name used in opportunities (e.g., "UniswapV2")
        chain_id: EVM chain id
        factory: Factory contract address
        fee: Swap fee as a fraction (e.g., 0.003 for 30 bps)
    """

    name: str
    chain_id: int
    factory: str
    fee: Decimal
