"""
Reserve fetching for resolved V2 pairs.

All reserves of one fetch are read against a single reference block so the
engine compares venues at the same instant.
"""

from typing import List, Optional, Sequence

from .abi import GET_RESERVES
from .exceptions import InfrastructureError
from .multicall import BatchTransport, BlockRef, Call, CallResult
from .types import ReserveSnapshot
from .utils import get_logger

logger = get_logger(__name__)


def decode_reserves(
    result: Optional[CallResult], block: BlockRef, index: int
) -> Optional[ReserveSnapshot]:
    if result is None or not result.success or not result.return_data:
        return None
    try:
        r0, r1, ts_last = GET_RESERVES.decode(result.return_data)
    except Exception as e:
        logger.warning(f"fetch_reserves: decode error for pair index {index}: {e}")
        return None
    return ReserveSnapshot(
        reserve0=int(r0),
        reserve1=int(r1),
        block_number=block.number,
        block_timestamp=block.timestamp,
        pair_timestamp_last=int(ts_last) if ts_last else None,
    )


def fetch_reserves(
    transport: BatchTransport, pair_addresses: Sequence[Optional[str]]
) -> List[Optional[ReserveSnapshot]]:
    """
    Fetch reserves for every non-null pair address in one batch.

    Args:
        transport: Batched chain access
        pair_addresses: Output of resolve_pair_addresses (None = no pool)

    Returns:
        List aligned with ``pair_addresses``: snapshot or None

    Raises:
        InfrastructureError: If the reference block or the batch cannot be read
    """
    out: List[Optional[ReserveSnapshot]] = [None] * len(pair_addresses)
    existing = [(i, a) for i, a in enumerate(pair_addresses) if a is not None]
    if not existing:
        return out

    block = transport.current_block()
    if block is None:
        raise InfrastructureError("fetch_reserves: reference block unavailable")

    calls = [Call(addr, GET_RESERVES.encode()) for _, addr in existing]
    results = transport.batch_call(calls, block_identifier=block.number)

    for pos, (i, addr) in enumerate(existing):
        result = results[pos] if pos < len(results) else None
        snapshot = decode_reserves(result, block, i)
        if snapshot is None:
            logger.warning(f"fetch_reserves: no reserves for {addr} (index {i})")
        out[i] = snapshot

    return out
