"""
Destinations for detected opportunities.
"""

import json
from pathlib import Path
from typing import Protocol, Sequence, Union, runtime_checkable

from .types import ArbitrageOpportunity
from .utils import format_profit, get_logger

logger = get_logger(__name__)


@runtime_checkable
class OpportunitySink(Protocol):
    """Protocol for anything that stores or forwards opportunities."""

    def emit(self, opportunities: Sequence[ArbitrageOpportunity]) -> None:
        ...


class LoggingOpportunitySink:
    """Logs one line per opportunity."""

    def emit(self, opportunities: Sequence[ArbitrageOpportunity]) -> None:
        if not opportunities:
            logger.info("No profitable arbitrage opportunities found.")
            return
        for idx, opp in enumerate(opportunities, start=1):
            logger.info(
                f"{idx}. {opp.pair_key} (chain {opp.chain}): buy on {opp.buy_from} "
                f"@ {opp.price_buy:.6f}, sell on {opp.sell_to} @ {opp.price_sell:.6f} | "
                f"profit {opp.profit:.6f} ({format_profit(opp.profit_percent / 100)})"
            )


class JsonlOpportunitySink:
    """Appends each opportunity as one JSON object per line."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def emit(self, opportunities: Sequence[ArbitrageOpportunity]) -> None:
        if not opportunities:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a") as f:
            for opp in opportunities:
                f.write(json.dumps(opp.to_dict()) + "\n")
        logger.debug(f"Wrote {len(opportunities)} opportunities to {self.path}")
