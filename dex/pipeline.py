"""
One detection cycle across every configured (chain, venue) unit.

Each unit runs the blocking fetch pipeline in an executor thread; a semaphore
bounds how many hit the RPC endpoints at once. Once every venue of a chain is
assembled, the engine compares them.
"""

import asyncio
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from .assembler import fetch_pairs_and_reserves
from .cache import ADDRESS_CACHE, DECIMALS_CACHE, AddressCache, DecimalsCache
from .engine import ArbitrageEngine
from .exceptions import ConfigurationError, InfrastructureError
from .multicall import BatchTransport, CountingTransport
from .types import ArbitrageOpportunity, PairSpec, ReserveWithFee, VenueConfig
from .utils import get_logger

logger = get_logger(__name__)

TransportFactory = Callable[[int], BatchTransport]

DEFAULT_MAX_CONCURRENCY = 5


@dataclass
class UnitError:
    """A (chain, venue) unit that produced no data this cycle."""

    chain_id: int
    venue: str
    error: Exception

    @property
    def retryable(self) -> bool:
        return getattr(self.error, "retryable", False)


@dataclass
class CycleReport:
    """Outcome of one cycle; partial failures leave other units intact."""

    reserves: List[ReserveWithFee] = field(default_factory=list)
    opportunities: List[ArbitrageOpportunity] = field(default_factory=list)
    errors: List[UnitError] = field(default_factory=list)
    duration_sec: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.errors


class ScanPipeline:
    """
    Runs fetch -> assemble for each venue, then the engine for each chain.

    Args:
        venues: Venue registry
        pairs: Pairs to check, keyed by chain id
        transport_factory: Returns the BatchTransport for a chain id; may raise
            ConfigurationError for an unconfigured chain
        engine: Arbitrage engine (default trade size if omitted)
        max_concurrency: Max units fetching at the same time
        address_cache: Shared pool address cache
        decimals_cache: Shared decimals cache
    """

    def __init__(
        self,
        venues: Sequence[VenueConfig],
        pairs: Dict[int, List[PairSpec]],
        transport_factory: TransportFactory,
        engine: Optional[ArbitrageEngine] = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        address_cache: AddressCache = ADDRESS_CACHE,
        decimals_cache: DecimalsCache = DECIMALS_CACHE,
    ):
        self.venues = list(venues)
        self.pairs = pairs
        self.transport_factory = transport_factory
        self.engine = engine or ArbitrageEngine()
        self.max_concurrency = max_concurrency
        self.address_cache = address_cache
        self.decimals_cache = decimals_cache

    def fetch_venue(self, venue: VenueConfig) -> List[ReserveWithFee]:
        """
        Fetch and assemble one venue, attaching its fee to every row.

        Raises:
            ConfigurationError: If the venue's chain has no transport
            InfrastructureError: If a batch or the block read fails
        """
        transport = CountingTransport(self.transport_factory(venue.chain_id))
        rows = fetch_pairs_and_reserves(
            transport,
            venue.chain_id,
            venue.name,
            venue.factory,
            self.pairs.get(venue.chain_id, []),
            address_cache=self.address_cache,
            decimals_cache=self.decimals_cache,
        )
        logger.debug(
            f"{venue.name} (chain {venue.chain_id}): {transport.round_trips} round trips, "
            f"{transport.calls_sent} calls"
        )
        return [ReserveWithFee(reserve=row, fee=venue.fee) for row in rows]

    def _active_venues(self) -> List[VenueConfig]:
        active = []
        for venue in self.venues:
            if not self.pairs.get(venue.chain_id):
                logger.warning(
                    f"No pairs configured for chain {venue.chain_id} ({venue.name})"
                )
                continue
            active.append(venue)
        return active

    async def run_cycle(self) -> CycleReport:
        """
        Run one full cycle.

        Configuration and infrastructure failures are recorded per unit in
        the report. Any other exception (including InvariantViolation)
        propagates.
        """
        started = time.perf_counter()
        report = CycleReport()
        venues = self._active_venues()

        loop = asyncio.get_running_loop()
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run_unit(venue: VenueConfig) -> List[ReserveWithFee]:
            async with semaphore:
                return await loop.run_in_executor(None, self.fetch_venue, venue)

        results = await asyncio.gather(
            *[run_unit(v) for v in venues], return_exceptions=True
        )

        by_chain: Dict[int, List[ReserveWithFee]] = OrderedDict()
        for venue, result in zip(venues, results):
            if isinstance(result, (ConfigurationError, InfrastructureError)):
                logger.warning(
                    f"Skipping {venue.name} on chain {venue.chain_id} this cycle: {result}"
                )
                report.errors.append(UnitError(venue.chain_id, venue.name, result))
                continue
            if isinstance(result, BaseException):
                raise result
            by_chain.setdefault(venue.chain_id, []).extend(result)
            report.reserves.extend(result)

        for rows in by_chain.values():
            report.opportunities.extend(self.engine.find_opportunities(rows))
        report.opportunities.sort(key=lambda o: o.profit_percent, reverse=True)

        report.duration_sec = time.perf_counter() - started
        logger.info(
            f"Cycle finished in {report.duration_sec:.2f}s: {len(report.reserves)} rows, "
            f"{len(report.opportunities)} opportunities, {len(report.errors)} failed units"
        )
        return report

    def run_cycle_sync(self) -> CycleReport:
        """Run one cycle from synchronous code."""
        return asyncio.run(self.run_cycle())
