"""
Assembly of per-pair reserve rows for one venue.

``assemble_results`` is a pure join of the aligned stage outputs.
``fetch_pairs_and_reserves`` runs resolution -> reserves -> tokens ->
decimals -> assembly for one (chain, venue) unit.
"""

from typing import Dict, List, Optional, Sequence

from .cache import ADDRESS_CACHE, DECIMALS_CACHE, AddressCache, DecimalsCache
from .exceptions import InvariantViolation
from .multicall import BatchTransport
from .reserves import fetch_reserves
from .resolver import resolve_pair_addresses
from .tokens import fetch_pair_tokens, fetch_token_decimals
from .types import NormalizedReserve, PairSpec, PairTokens, ReserveSnapshot
from .utils import get_logger

logger = get_logger(__name__)


def _check_aligned(pairs: Sequence, **aligned: Sequence) -> None:
    for name, seq in aligned.items():
        if len(seq) != len(pairs):
            raise InvariantViolation(
                f"{name} has {len(seq)} entries for {len(pairs)} pairs",
                expected=len(pairs),
                actual=len(seq),
            )


def _decimals_for(
    token: Optional[str], pair: PairSpec, decimals: Dict[str, Optional[int]]
) -> Optional[int]:
    """On-chain decimals, else the configured hint for the same token."""
    if token is None:
        return None
    value = decimals.get(token.lower())
    if value is not None:
        return value
    for ref in (pair.token0, pair.token1):
        if ref.key == token.lower() and ref.decimals is not None:
            return ref.decimals
    return None


def assemble_results(
    chain_id: int,
    venue: str,
    pairs: Sequence[PairSpec],
    pair_addresses: Sequence[Optional[str]],
    reserves: Sequence[Optional[ReserveSnapshot]],
    pair_tokens: Sequence[Optional[PairTokens]],
    decimals: Dict[str, Optional[int]],
) -> List[NormalizedReserve]:
    """
    Join stage outputs into one NormalizedReserve per input pair.

    Missing data becomes None fields; no row is ever dropped. Decimals the
    chain could not report fall back to the TokenRef hint from config.

    Raises:
        InvariantViolation: On misaligned inputs, or data attached to a pair
            whose address did not resolve
    """
    _check_aligned(
        pairs, pair_addresses=pair_addresses, reserves=reserves, pair_tokens=pair_tokens
    )

    rows: List[NormalizedReserve] = []
    for i, pair in enumerate(pairs):
        addr = pair_addresses[i]
        snap = reserves[i]
        tokens = pair_tokens[i]

        if addr is None and (snap is not None or tokens is not None):
            raise InvariantViolation(
                f"pair {pair.label} (index {i}) has data but no pool address",
                details={"chain": chain_id, "venue": venue},
            )

        token0 = tokens.token0 if tokens else None
        token1 = tokens.token1 if tokens else None
        rows.append(
            NormalizedReserve(
                chain=chain_id,
                venue=venue,
                pair_key=pair.label,
                pair_address=addr,
                token0=token0,
                token1=token1,
                reserve0=snap.reserve0 if snap else None,
                reserve1=snap.reserve1 if snap else None,
                decimals0=_decimals_for(token0, pair, decimals),
                decimals1=_decimals_for(token1, pair, decimals),
                block_number=snap.block_number if snap else None,
                block_timestamp=snap.block_timestamp if snap else None,
                pair_timestamp_last=snap.pair_timestamp_last if snap else None,
            )
        )

    if len(rows) != len(pairs):
        raise InvariantViolation(
            "assembled row count differs from pair count",
            expected=len(pairs),
            actual=len(rows),
        )
    return rows


def fetch_pairs_and_reserves(
    transport: BatchTransport,
    chain_id: int,
    venue: str,
    factory: str,
    pairs: Sequence[PairSpec],
    address_cache: AddressCache = ADDRESS_CACHE,
    decimals_cache: DecimalsCache = DECIMALS_CACHE,
) -> List[NormalizedReserve]:
    """
    Run the full fetch pipeline for one venue.

    Raises:
        InfrastructureError: If any batch or the reference block read fails
    """
    pair_addresses = resolve_pair_addresses(
        transport, factory, pairs, cache=address_cache
    )
    reserves = fetch_reserves(transport, pair_addresses)
    pair_tokens = fetch_pair_tokens(transport, pair_addresses)
    decimals = fetch_token_decimals(
        transport, chain_id, pair_tokens, cache=decimals_cache
    )
    rows = assemble_results(
        chain_id, venue, pairs, pair_addresses, reserves, pair_tokens, decimals
    )

    complete = sum(1 for r in rows if r.is_complete)
    logger.info(f"{venue} (chain {chain_id}): {complete}/{len(rows)} pairs with reserves")
    return rows
