"""
Pool address resolution against a V2 factory.

Resolves every requested pair with a single batched ``getPair`` round trip
and returns addresses aligned index-for-index with the input pairs.
"""

from typing import List, Optional, Sequence

from .abi import GET_PAIR
from .cache import ADDRESS_CACHE, MISS, AddressCache
from .multicall import BatchTransport, Call, CallResult
from .types import PairSpec
from .utils import ZERO_ADDRESS, canonical_pair, get_logger, is_zero_address, safe_address

logger = get_logger(__name__)


def lookup_tokens(pair: PairSpec) -> tuple:
    """
    Token addresses used for the factory call, in canonical order.

    Malformed addresses are replaced with the zero address so one bad entry
    cannot abort the batch; the factory answers zero for it.
    """
    a = safe_address(pair.token0.address) or ZERO_ADDRESS
    b = safe_address(pair.token1.address) or ZERO_ADDRESS
    return canonical_pair(a, b)


def decode_pair_address(result: Optional[CallResult], index: int) -> Optional[str]:
    """Decode one getPair result; anything but a non-zero address is None."""
    if result is None:
        logger.warning(f"resolve_pair_addresses: missing result for index {index}")
        return None
    if not result.success or not result.return_data:
        return None
    try:
        (decoded,) = GET_PAIR.decode(result.return_data)
    except Exception as e:
        logger.warning(f"resolve_pair_addresses: decode error for index {index}: {e}")
        return None
    if is_zero_address(decoded):
        return None
    checksummed = safe_address(decoded)
    if checksummed is None:
        logger.warning(
            f"resolve_pair_addresses: decoded pair not a valid address at index {index}"
        )
    return checksummed


def resolve_pair_addresses(
    transport: BatchTransport,
    factory: str,
    pairs: Sequence[PairSpec],
    cache: AddressCache = ADDRESS_CACHE,
    use_cache: bool = True,
) -> List[Optional[str]]:
    """
    Resolve pool addresses for ``pairs`` on one factory.

    Args:
        transport: Batched chain access
        factory: Factory contract address
        pairs: Pairs in caller order
        cache: Address cache to read and populate
        use_cache: If False, query every pair even when cached

    Returns:
        List aligned with ``pairs``: checksummed pool address or None

    Raises:
        InfrastructureError: If the batch itself fails (nothing is cached)
    """
    out: List[Optional[str]] = [None] * len(pairs)
    tokens = [lookup_tokens(p) for p in pairs]

    pending: List[int] = []
    for i, (a, b) in enumerate(tokens):
        if use_cache:
            cached = cache.get(factory, a, b)
            if cached is not MISS:
                out[i] = cached
                continue
        pending.append(i)

    if not pending:
        logger.debug(f"All {len(pairs)} pair addresses served from cache ({factory})")
        return out

    calls = [Call(factory, GET_PAIR.encode(*tokens[i])) for i in pending]
    results = transport.batch_call(calls)

    for pos, i in enumerate(pending):
        result = results[pos] if pos < len(results) else None
        addr = decode_pair_address(result, i)
        out[i] = addr
        cache.set(factory, *tokens[i], addr)

    resolved = sum(1 for a in out if a is not None)
    logger.debug(
        f"Resolved {resolved}/{len(pairs)} pairs on {factory} "
        f"({len(pending)} queried, {len(pairs) - len(pending)} cached)"
    )
    return out
