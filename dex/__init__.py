"""
Cross-DEX reserve scanner.

Resolves V2 pools for configured pairs on every venue, fetches reserves and
token metadata through Multicall2 batches, and detects two-venue round-trip
arbitrage with constant-product math.
"""

__version__ = "0.1.0"

from .assembler import assemble_results, fetch_pairs_and_reserves
from .engine import ArbitrageEngine, calculate_arbitrage
from .pipeline import CycleReport, ScanPipeline
from .types import (
    ArbitrageOpportunity,
    NormalizedReserve,
    PairSpec,
    ReserveWithFee,
    TokenRef,
    VenueConfig,
)

__all__ = [
    "ArbitrageEngine",
    "ArbitrageOpportunity",
    "CycleReport",
    "NormalizedReserve",
    "PairSpec",
    "ReserveWithFee",
    "ScanPipeline",
    "TokenRef",
    "VenueConfig",
    "assemble_results",
    "calculate_arbitrage",
    "fetch_pairs_and_reserves",
]
