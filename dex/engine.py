"""
Cross-venue arbitrage detection on assembled reserve rows.

Rows quoting the same unordered token pair on the same chain are compared
venue against venue. Each comparison simulates a round trip that starts and
ends in token A (the lower address of the pair): sell token A on one venue,
buy it back on the other. Only strictly positive round trips are emitted.
"""

from collections import OrderedDict
from decimal import Decimal
from itertools import combinations
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from .adapters.v2 import RawLeg, simulate_round_trip_raw, spot_price, swap_out
from .types import ArbitrageOpportunity, ReserveWithFee
from .utils import get_logger

logger = get_logger(__name__)

DEFAULT_TRADE_SIZE = Decimal("1000")
DEFAULT_DECIMALS = 18


class NormalizedMarket(NamedTuple):
    """A venue's view of a market with token A as the lower address."""

    record: ReserveWithFee
    token_a: str
    token_b: str
    raw_a: int
    raw_b: int
    decimals_a: int
    decimals_b: int
    reserve_a: Decimal
    reserve_b: Decimal
    price: Decimal

    @property
    def market_key(self) -> Tuple[int, str, str]:
        return (self.record.chain, self.token_a.lower(), self.token_b.lower())


def normalize_market(
    record: ReserveWithFee, default_decimals: int = DEFAULT_DECIMALS
) -> Optional[NormalizedMarket]:
    """
    Reorder a row so the lower address is token A and scale reserves to human units.

    Returns None for rows that cannot be priced (missing data, empty pool).
    """
    r = record.reserve
    if not r.is_complete:
        return None
    if r.reserve0 <= 0 or r.reserve1 <= 0:
        return None

    dec0 = r.decimals0 if r.decimals0 is not None else default_decimals
    dec1 = r.decimals1 if r.decimals1 is not None else default_decimals

    if r.token0.lower() < r.token1.lower():
        token_a, token_b = r.token0, r.token1
        raw_a, raw_b, dec_a, dec_b = r.reserve0, r.reserve1, dec0, dec1
    else:
        token_a, token_b = r.token1, r.token0
        raw_a, raw_b, dec_a, dec_b = r.reserve1, r.reserve0, dec1, dec0

    reserve_a = Decimal(raw_a).scaleb(-dec_a)
    reserve_b = Decimal(raw_b).scaleb(-dec_b)
    return NormalizedMarket(
        record=record,
        token_a=token_a,
        token_b=token_b,
        raw_a=raw_a,
        raw_b=raw_b,
        decimals_a=dec_a,
        decimals_b=dec_b,
        reserve_a=reserve_a,
        reserve_b=reserve_b,
        price=spot_price(reserve_a, reserve_b),
    )


def is_same_market(x: ReserveWithFee, y: ReserveWithFee) -> bool:
    """True if both rows quote the same unordered token pair (case-insensitive)."""
    if None in (x.token0, x.token1, y.token0, y.token1):
        return False
    return {x.token0.lower(), x.token1.lower()} == {y.token0.lower(), y.token1.lower()}


class ArbitrageEngine:
    """
    Pure, stateless detector of two-venue round trips.

    Args:
        trade_size: Fixed round-trip size in token A human units
        default_decimals: Decimals assumed for tokens whose decimals are unknown
    """

    def __init__(
        self,
        trade_size: Decimal = DEFAULT_TRADE_SIZE,
        default_decimals: int = DEFAULT_DECIMALS,
    ):
        trade_size = Decimal(str(trade_size))
        if trade_size <= 0:
            raise ValueError(f"trade_size must be positive: {trade_size}")
        self.trade_size = trade_size
        self.default_decimals = default_decimals

    def group_markets(
        self, records: Iterable[ReserveWithFee]
    ) -> Dict[Tuple[int, str, str], List[NormalizedMarket]]:
        groups: Dict[Tuple[int, str, str], List[NormalizedMarket]] = OrderedDict()
        for record in records:
            market = normalize_market(record, self.default_decimals)
            if market is None:
                continue
            groups.setdefault(market.market_key, []).append(market)
        return groups

    def find_opportunities(
        self, records: Iterable[ReserveWithFee]
    ) -> List[ArbitrageOpportunity]:
        """
        Compare every pair of venues quoting the same market.

        Returns:
            Profitable opportunities sorted by profit_percent descending
        """
        opportunities: List[ArbitrageOpportunity] = []
        comparisons = 0

        for markets in self.group_markets(records).values():
            for x, y in combinations(markets, 2):
                if x.record.venue == y.record.venue:
                    continue
                comparisons += 1
                if x.price == y.price:
                    logger.debug(
                        f"{x.record.pair_key}: {x.record.venue} and {y.record.venue} "
                        f"quote identical price {x.price}"
                    )
                    continue
                for buy, sell in ((x, y), (y, x)):
                    opp = self.simulate(buy, sell)
                    if opp is not None:
                        opportunities.append(opp)

        opportunities.sort(key=lambda o: o.profit_percent, reverse=True)
        logger.info(
            f"Arbitrage scan: {comparisons} venue comparisons, "
            f"{len(opportunities)} profitable"
        )
        return opportunities

    def simulate(
        self, buy: NormalizedMarket, sell: NormalizedMarket
    ) -> Optional[ArbitrageOpportunity]:
        """
        Sell ``trade_size`` token A on ``sell`` and buy it back on ``buy``.

        Returns:
            ArbitrageOpportunity if the round trip ends with more token A
        """
        amount_b = swap_out(
            self.trade_size, sell.reserve_a, sell.reserve_b, sell.record.fee
        )
        amount_back = swap_out(amount_b, buy.reserve_b, buy.reserve_a, buy.record.fee)
        profit = amount_back - self.trade_size

        logger.debug(
            f"{buy.record.pair_key}: sell on {sell.record.venue} @ {sell.price:.6f}, "
            f"buy on {buy.record.venue} @ {buy.price:.6f}: "
            f"{self.trade_size} -> {amount_b:.6f} -> {amount_back:.6f} "
            f"(profit {profit:.6f})"
        )

        if profit <= 0:
            return None

        return ArbitrageOpportunity(
            chain=buy.record.chain,
            pair_key=buy.record.pair_key,
            buy_from=buy.record.venue,
            sell_to=sell.record.venue,
            price_buy=buy.price,
            price_sell=sell.price,
            profit=profit,
            profit_percent=profit / self.trade_size * 100,
            token0=buy.token_a,
            token1=buy.token_b,
            trade_size=self.trade_size,
            buy_pair_address=buy.record.pair_address,
            sell_pair_address=sell.record.pair_address,
            block_number=buy.record.reserve.block_number,
            block_timestamp=buy.record.reserve.block_timestamp,
            profit_raw=self._raw_profit(buy, sell),
        )

    def _raw_profit(self, buy: NormalizedMarket, sell: NormalizedMarket) -> int:
        """Same round trip in integer arithmetic on raw reserves (token A units)."""
        amount_in = int(self.trade_size.scaleb(sell.decimals_a))
        back = simulate_round_trip_raw(
            amount_in,
            RawLeg(sell.raw_a, sell.raw_b, sell.record.fee),
            RawLeg(buy.raw_b, buy.raw_a, buy.record.fee),
        )
        return back - amount_in


def calculate_arbitrage(
    records: Iterable[ReserveWithFee], trade_size: Decimal = DEFAULT_TRADE_SIZE
) -> List[ArbitrageOpportunity]:
    """Convenience wrapper: run a fresh ArbitrageEngine over ``records``."""
    return ArbitrageEngine(trade_size=trade_size).find_opportunities(records)
