"""
Polling runner: builds per-chain transports from config and runs cycles.
"""

import threading
import time
from typing import Dict, List, Optional, Sequence

from web3 import Web3

from .cache import ADDRESS_CACHE, DECIMALS_CACHE
from .config import ScanConfig
from .engine import ArbitrageEngine
from .exceptions import ConfigurationError
from .multicall import BatchTransport, MulticallTransport, connect
from .pipeline import CycleReport, ScanPipeline
from .sinks import JsonlOpportunitySink, LoggingOpportunitySink, OpportunitySink
from .utils import get_logger

logger = get_logger(__name__)

CHAIN_NAMES = {
    1: "Ethereum Mainnet",
    8453: "Base",
    42161: "Arbitrum",
    10: "Optimism",
    137: "Polygon",
    56: "BSC",
}


class TransportRegistry:
    """
    Lazily creates one MulticallTransport per chain.

    Called from executor threads; creation is serialized so each chain gets
    exactly one web3 client.
    """

    def __init__(self, config: ScanConfig):
        self.config = config
        self._lock = threading.Lock()
        self._transports: Dict[int, BatchTransport] = {}

    def __call__(self, chain_id: int) -> BatchTransport:
        with self._lock:
            transport = self._transports.get(chain_id)
            if transport is None:
                transport = self._create(chain_id)
                self._transports[chain_id] = transport
            return transport

    def _create(self, chain_id: int) -> BatchTransport:
        # Both raise ConfigurationError scoped to this chain
        rpc_url = self.config.rpc_url_for(chain_id)
        multicall = self.config.multicall_for(chain_id)
        # A malformed URL or multicall address only disables this chain
        try:
            web3: Web3 = connect(rpc_url)
            transport = MulticallTransport(web3, multicall, chain_id=chain_id)
        except ValueError as e:
            raise ConfigurationError(str(e), chain_id=chain_id) from e
        chain_name = CHAIN_NAMES.get(chain_id, f"Chain {chain_id}")
        logger.info(f"Using {chain_name} RPC with Multicall2 at {multicall}")
        return transport


class DexScanRunner:
    """
    Cross-DEX reserve scanner.

    Runs one ScanPipeline cycle every ``poll_sec`` seconds and hands the
    resulting opportunities to every sink.
    """

    def __init__(
        self,
        config: ScanConfig,
        sinks: Optional[Sequence[OpportunitySink]] = None,
        pipeline: Optional[ScanPipeline] = None,
    ):
        self.config = config
        ADDRESS_CACHE.negative_ttl_sec = config.negative_ttl_sec

        if sinks is None:
            sinks = [LoggingOpportunitySink()]
            if config.output_path:
                sinks.append(JsonlOpportunitySink(config.output_path))
        self.sinks: List[OpportunitySink] = list(sinks)

        self.pipeline = pipeline or ScanPipeline(
            venues=config.venues,
            pairs=config.pairs,
            transport_factory=TransportRegistry(config),
            engine=ArbitrageEngine(trade_size=config.trade_size),
            max_concurrency=config.max_concurrency,
            address_cache=ADDRESS_CACHE,
            decimals_cache=DECIMALS_CACHE,
        )
        self.cycle_count = 0

    def run_once(self) -> CycleReport:
        """Run a single cycle and emit its opportunities."""
        self.cycle_count += 1
        report = self.pipeline.run_cycle_sync()
        for sink in self.sinks:
            sink.emit(report.opportunities)
        for err in report.errors:
            logger.warning(
                f"Cycle {self.cycle_count}: {err.venue} on chain {err.chain_id} failed "
                f"({'retryable' if err.retryable else 'not retryable'}): {err.error}"
            )
        return report

    def run(self) -> None:
        """Run until interrupted (or once, if configured)."""
        logger.info(
            f"Scanning {len(self.config.venues)} venues on "
            f"{len(self.config.chain_ids)} chains every {self.config.poll_sec}s"
        )
        for chain_id in self.config.chain_ids:
            chain_name = CHAIN_NAMES.get(chain_id, f"Chain {chain_id}")
            venues = ", ".join(v.name for v in self.config.venues_for(chain_id))
            logger.info(
                f"  {chain_name}: {len(self.config.pairs_for(chain_id))} pairs on {venues}"
            )
        while True:
            started = time.time()
            self.run_once()
            if self.config.once:
                return
            elapsed = time.time() - started
            time.sleep(max(0.0, self.config.poll_sec - elapsed))
