"""
Token metadata for resolved pairs: on-chain token ordering and decimals.

Decimals are immutable per token contract, so each token is queried at most
once per process per chain; later lookups are served from DECIMALS_CACHE.
"""

from typing import Dict, List, Optional, Sequence

from .abi import DECIMALS, TOKEN0, TOKEN1, ContractFunction
from .cache import DECIMALS_CACHE, MISS, UNKNOWN, DecimalsCache
from .multicall import BatchTransport, Call, CallResult
from .types import PairTokens
from .utils import get_logger, is_zero_address

logger = get_logger(__name__)


def _decode_address(
    fn: ContractFunction, result: Optional[CallResult], index: int
) -> Optional[str]:
    if result is None or not result.success or not result.return_data:
        return None
    try:
        (decoded,) = fn.decode(result.return_data)
    except Exception as e:
        logger.warning(f"fetch_pair_tokens: {fn.name} decode error for index {index}: {e}")
        return None
    if is_zero_address(decoded):
        return None
    return decoded


def fetch_pair_tokens(
    transport: BatchTransport, pair_addresses: Sequence[Optional[str]]
) -> List[Optional[PairTokens]]:
    """
    Fetch token0/token1 for every non-null pair address.

    Both lookups for all pairs travel in one aggregated batch (token0 calls
    first, then token1 calls). A pair is kept only if both decode.

    Returns:
        List aligned with ``pair_addresses``: PairTokens or None
    """
    out: List[Optional[PairTokens]] = [None] * len(pair_addresses)
    existing = [(i, a) for i, a in enumerate(pair_addresses) if a is not None]
    if not existing:
        return out

    calls = [Call(addr, TOKEN0.encode()) for _, addr in existing]
    calls += [Call(addr, TOKEN1.encode()) for _, addr in existing]
    results = transport.batch_call(calls)

    n = len(existing)
    for pos, (i, _) in enumerate(existing):
        t0 = _decode_address(TOKEN0, results[pos] if pos < len(results) else None, i)
        t1 = _decode_address(
            TOKEN1, results[n + pos] if n + pos < len(results) else None, i
        )
        if t0 and t1:
            out[i] = PairTokens(token0=t0, token1=t1)

    return out


def _decode_decimals(result: Optional[CallResult]):
    if result is None or not result.success or not result.return_data:
        return UNKNOWN
    try:
        (dec,) = DECIMALS.decode(result.return_data)
    except Exception:
        return UNKNOWN
    dec = int(dec)
    if not 0 <= dec <= 255:
        return UNKNOWN
    return dec


def fetch_token_decimals(
    transport: BatchTransport,
    chain_id: int,
    pair_tokens: Sequence[Optional[PairTokens]],
    cache: DecimalsCache = DECIMALS_CACHE,
) -> Dict[str, Optional[int]]:
    """
    Resolve decimals for every distinct token across ``pair_tokens``.

    Only cache misses are queried, all in one batch. Failed lookups are
    cached as UNKNOWN before returning. A failure of the whole batch
    propagates and leaves the cache untouched.

    Returns:
        Map of lower-cased token address -> decimals, or None if unknown
    """
    tokens: List[str] = []
    seen = set()
    for pt in pair_tokens:
        if pt is None:
            continue
        for token in (pt.token0, pt.token1):
            key = token.lower()
            if key not in seen:
                seen.add(key)
                tokens.append(key)

    with cache.fetch_lock(chain_id):
        misses = [t for t in tokens if cache.get(chain_id, t) is MISS]
        if misses:
            calls = [Call(t, DECIMALS.encode()) for t in misses]
            results = transport.batch_call(calls)
            for pos, token in enumerate(misses):
                value = _decode_decimals(results[pos] if pos < len(results) else None)
                if value is UNKNOWN:
                    logger.warning(f"decimals() unavailable for {token} on chain {chain_id}")
                cache.set(chain_id, token, value)
            logger.debug(
                f"Fetched decimals for {len(misses)} tokens on chain {chain_id} "
                f"({len(tokens) - len(misses)} cached)"
            )

    out: Dict[str, Optional[int]] = {}
    for token in tokens:
        value = cache.get(chain_id, token)
        out[token] = value if isinstance(value, int) else None
    return out
