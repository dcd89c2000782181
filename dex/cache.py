"""
Process-wide caches shared by every venue pipeline.

Venue units run in executor threads, so both caches serialize access with a
lock. Values are immutable on-chain facts and concurrent writers always
store the same value, so last writer wins.
"""

import threading
import time
from typing import Callable, Dict, Optional, Tuple

from .utils import canonical_pair

# Terminal decimals result for tokens whose decimals() reverts or is malformed
UNKNOWN = object()

# Sentinel distinguishing "not cached" from a cached negative result
MISS = object()

DEFAULT_NEGATIVE_TTL_SEC = 300.0


class AddressCache:
    """
    Pool address cache keyed by ``(factory, tokenA, tokenB)``.

    Keys are lower-cased with the tokens in canonical sorted order, so both
    orderings of a pair share one entry. Positive entries never expire.
    Negative entries ("no pool") expire after ``negative_ttl_sec`` because a
    pool can be created after the first lookup.
    """

    def __init__(
        self,
        negative_ttl_sec: float = DEFAULT_NEGATIVE_TTL_SEC,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.negative_ttl_sec = negative_ttl_sec
        self._clock = clock
        self._lock = threading.Lock()
        self._positive: Dict[Tuple[str, str, str], str] = {}
        self._negative: Dict[Tuple[str, str, str], float] = {}

    @staticmethod
    def make_key(factory: str, token_a: str, token_b: str) -> Tuple[str, str, str]:
        a, b = canonical_pair(token_a.lower(), token_b.lower())
        return factory.lower(), a, b

    def get(self, factory: str, token_a: str, token_b: str):
        """Return the cached address, None for a live negative entry, or MISS."""
        key = self.make_key(factory, token_a, token_b)
        with self._lock:
            if key in self._positive:
                return self._positive[key]
            stored_at = self._negative.get(key)
            if stored_at is None:
                return MISS
            if self._clock() - stored_at < self.negative_ttl_sec:
                return None
            del self._negative[key]
            return MISS

    def set(
        self, factory: str, token_a: str, token_b: str, address: Optional[str]
    ) -> None:
        key = self.make_key(factory, token_a, token_b)
        with self._lock:
            if address is None:
                # A known pool never reverts to "not found"
                if key not in self._positive:
                    self._negative[key] = self._clock()
            else:
                self._positive[key] = address
                self._negative.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._positive.clear()
            self._negative.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._positive) + len(self._negative)


class DecimalsCache:
    """Token decimals keyed by ``(chain_id, token_lower)``; entries never expire."""

    def __init__(self):
        self._lock = threading.Lock()
        self._values: Dict[Tuple[int, str], object] = {}
        self._fetch_locks: Dict[int, threading.Lock] = {}

    def fetch_lock(self, chain_id: int) -> threading.Lock:
        """
        Lock held by a fetcher from its miss check until its results are stored.

        Concurrent venue units on one chain serialize here, so the second unit
        sees the first unit's results instead of querying the same tokens.
        """
        with self._lock:
            lock = self._fetch_locks.get(chain_id)
            if lock is None:
                lock = self._fetch_locks[chain_id] = threading.Lock()
            return lock

    def get(self, chain_id: int, token: str):
        """Return decimals, UNKNOWN, or MISS."""
        with self._lock:
            return self._values.get((chain_id, token.lower()), MISS)

    def __contains__(self, key: Tuple[int, str]) -> bool:
        chain_id, token = key
        with self._lock:
            return (chain_id, token.lower()) in self._values

    def set(self, chain_id: int, token: str, decimals) -> None:
        """Store an int in 0..255 or UNKNOWN."""
        if decimals is not UNKNOWN and not isinstance(decimals, int):
            raise TypeError(f"decimals must be int or UNKNOWN, got {decimals!r}")
        with self._lock:
            self._values[(chain_id, token.lower())] = decimals

    def clear(self) -> None:
        with self._lock:
            self._values.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)


ADDRESS_CACHE = AddressCache()
DECIMALS_CACHE = DecimalsCache()
