"""
Batched read transport over a Multicall2 helper contract.

The pipeline depends only on the ``BatchTransport`` protocol: one
``batch_call`` is one network round trip no matter how many calls it carries.
"""

from typing import List, NamedTuple, Optional, Protocol, Sequence, Union, runtime_checkable

from web3 import Web3

from .abi import MULTICALL2_ABI
from .exceptions import InfrastructureError
from .utils import get_logger

logger = get_logger(__name__)

BlockIdentifier = Union[int, str]


class Call(NamedTuple):
    target: str
    call_data: bytes


class CallResult(NamedTuple):
    success: bool
    return_data: bytes


class BlockRef(NamedTuple):
    number: int
    timestamp: int


@runtime_checkable
class BatchTransport(Protocol):
    """Protocol for chain access used by every pipeline stage."""

    def batch_call(
        self, calls: Sequence[Call], block_identifier: Optional[BlockIdentifier] = None
    ) -> List[CallResult]:
        """Execute all calls in one round trip; results are aligned with calls."""
        ...

    def current_block(self) -> BlockRef:
        """Read the latest block number and timestamp."""
        ...


class MulticallTransport:
    """
    BatchTransport backed by Multicall2 ``tryAggregate(false, calls)``.

    Individual reverts come back as ``success=False``; only a failure of the
    whole eth_call (network, RPC error, bad response) raises.
    """

    def __init__(self, web3: Web3, multicall_address: str, chain_id: Optional[int] = None):
        self.web3 = web3
        self.chain_id = chain_id
        self.multicall_address = Web3.to_checksum_address(multicall_address)
        self.contract = web3.eth.contract(
            address=self.multicall_address, abi=MULTICALL2_ABI
        )

    def batch_call(
        self, calls: Sequence[Call], block_identifier: Optional[BlockIdentifier] = None
    ) -> List[CallResult]:
        if not calls:
            return []

        payload = [(Web3.to_checksum_address(c.target), c.call_data) for c in calls]
        try:
            raw = self.contract.functions.tryAggregate(False, payload).call(
                block_identifier=block_identifier or "latest"
            )
        except Exception as e:
            raise InfrastructureError(
                f"tryAggregate failed for {len(calls)} calls: {e}",
                chain_id=self.chain_id,
                details={"multicall": self.multicall_address},
            ) from e

        if len(raw) != len(calls):
            raise InfrastructureError(
                f"tryAggregate returned {len(raw)} results for {len(calls)} calls",
                chain_id=self.chain_id,
            )
        return [CallResult(bool(ok), bytes(data)) for ok, data in raw]

    def current_block(self) -> BlockRef:
        try:
            block = self.web3.eth.get_block("latest")
        except Exception as e:
            raise InfrastructureError(
                f"Failed to read latest block: {e}", chain_id=self.chain_id
            ) from e
        if not block or block.get("number") is None:
            raise InfrastructureError(
                "Latest block has no number", chain_id=self.chain_id
            )
        return BlockRef(int(block["number"]), int(block["timestamp"]))


class CountingTransport:
    """Wraps a transport and counts round trips (batches and block reads)."""

    def __init__(self, inner: BatchTransport):
        self.inner = inner
        self.batch_calls = 0
        self.block_reads = 0
        self.calls_sent = 0

    @property
    def round_trips(self) -> int:
        return self.batch_calls + self.block_reads

    def batch_call(
        self, calls: Sequence[Call], block_identifier: Optional[BlockIdentifier] = None
    ) -> List[CallResult]:
        self.batch_calls += 1
        self.calls_sent += len(calls)
        return self.inner.batch_call(calls, block_identifier=block_identifier)

    def current_block(self) -> BlockRef:
        self.block_reads += 1
        return self.inner.current_block()


def connect(rpc_url: str, timeout: int = 10) -> Web3:
    """Create an HTTP web3 client; raises ValueError on a malformed URL."""
    if not rpc_url or not rpc_url.startswith(("http://", "https://")):
        raise ValueError(f"Invalid RPC URL format: {rpc_url}")
    logger.debug(f"Connecting to RPC: {rpc_url}")
    return Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
