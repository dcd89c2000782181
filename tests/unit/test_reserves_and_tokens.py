"""
Unit tests for dex/reserves.py and dex/tokens.py

Verifies that reserves share one reference block, that null pool addresses
are skipped, and that token decimals are fetched at most once per token.
"""

import unittest

from fakes import DAI, FACTORY_A, USDC, WBTC, WETH, FakeChain, addr

from dex.abi import DECIMALS, GET_RESERVES
from dex.cache import MISS, UNKNOWN, DecimalsCache
from dex.exceptions import InfrastructureError
from dex.multicall import BlockRef
from dex.reserves import fetch_reserves
from dex.tokens import fetch_pair_tokens, fetch_token_decimals
from dex.types import PairTokens


class TestFetchReserves(unittest.TestCase):
    """Test reserve fetching against a fake chain."""

    def setUp(self):
        self.chain = FakeChain(block=BlockRef(19_000_000, 1_710_000_000))
        self.chain.add_pool(FACTORY_A, addr(1), USDC, WETH, 5_000_000 * 10**6, 2_500 * 10**18)
        self.chain.add_pool(FACTORY_A, addr(2), DAI, WETH, 10**24, 5 * 10**20, ts_last=0)

    def test_all_snapshots_share_block(self):
        """Test every snapshot carries the single reference block."""
        result = fetch_reserves(self.chain, [addr(1), addr(2)])

        self.assertEqual(self.chain.block_reads, 1)
        for snap in result:
            self.assertEqual(snap.block_number, 19_000_000)
            self.assertEqual(snap.block_timestamp, 1_710_000_000)

    def test_batch_pinned_to_reference_block(self):
        """Test getReserves is read at the reference block."""
        fetch_reserves(self.chain, [addr(1)])

        self.assertEqual(self.chain.block_identifiers, [19_000_000])

    def test_raw_reserves_decoded(self):
        """Test raw reserves and blockTimestampLast are decoded exactly."""
        result = fetch_reserves(self.chain, [addr(1)])

        self.assertEqual(result[0].reserve0, 5_000_000 * 10**6)
        self.assertEqual(result[0].reserve1, 2_500 * 10**18)
        self.assertEqual(result[0].pair_timestamp_last, 1_699_999_990)

    def test_zero_timestamp_last_is_none(self):
        """Test a zero blockTimestampLast is reported as None."""
        result = fetch_reserves(self.chain, [addr(2)])

        self.assertIsNone(result[0].pair_timestamp_last)

    def test_none_addresses_skipped(self):
        """Test null addresses get None and are not queried."""
        result = fetch_reserves(self.chain, [None, addr(1), None])

        self.assertIsNone(result[0])
        self.assertIsNotNone(result[1])
        self.assertIsNone(result[2])
        self.assertEqual(len(self.chain.calls_with_selector(GET_RESERVES.selector)), 1)

    def test_all_none_makes_no_calls(self):
        """Test no existing pools means no block read and no batch."""
        result = fetch_reserves(self.chain, [None, None])

        self.assertEqual(result, [None, None])
        self.assertEqual(self.chain.round_trips, 0)

    def test_reverting_pool_yields_none(self):
        """Test one reverting pool does not affect the others."""
        self.chain.reverting.add(addr(2))

        result = fetch_reserves(self.chain, [addr(1), addr(2)])

        self.assertIsNotNone(result[0])
        self.assertIsNone(result[1])

    def test_garbage_return_data_yields_none(self):
        """Test undecodable return data becomes None."""
        self.chain.garbage.add(addr(1))

        result = fetch_reserves(self.chain, [addr(1)])

        self.assertEqual(result, [None])

    def test_block_read_failure_raises(self):
        """Test a failed reference block read aborts the fetch."""
        self.chain.fail_block = True

        with self.assertRaises(InfrastructureError):
            fetch_reserves(self.chain, [addr(1)])

        self.assertEqual(self.chain.batches, [])


class TestFetchPairTokens(unittest.TestCase):
    """Test token0/token1 lookup."""

    def setUp(self):
        self.chain = FakeChain()
        self.chain.add_pool(FACTORY_A, addr(1), USDC, WETH, 1, 1)
        self.chain.add_pool(FACTORY_A, addr(2), DAI, WETH, 1, 1)

    def test_one_aggregated_batch(self):
        """Test token0 and token1 for all pairs travel in one batch."""
        result = fetch_pair_tokens(self.chain, [addr(1), None, addr(2)])

        self.assertEqual(len(self.chain.batches), 1)
        self.assertEqual(len(self.chain.batches[0]), 4)
        self.assertEqual(result[0].token0.lower(), USDC)
        self.assertEqual(result[0].token1.lower(), WETH)
        self.assertIsNone(result[1])
        self.assertEqual(result[2].token0.lower(), DAI)

    def test_reverting_pool_yields_none(self):
        """Test a pool whose token calls revert gets None."""
        self.chain.reverting.add(addr(2))

        result = fetch_pair_tokens(self.chain, [addr(1), addr(2)])

        self.assertIsNotNone(result[0])
        self.assertIsNone(result[1])

    def test_all_none_makes_no_calls(self):
        self.assertEqual(fetch_pair_tokens(self.chain, [None]), [None])
        self.assertEqual(self.chain.batches, [])


class TestFetchTokenDecimals(unittest.TestCase):
    """Test decimals lookup and caching."""

    def setUp(self):
        self.chain = FakeChain()
        self.chain.set_decimals(USDC, 6)
        self.chain.set_decimals(WETH, 18)
        self.chain.set_decimals(DAI, 18)
        self.cache = DecimalsCache()

    def test_shared_token_fetched_once(self):
        """Test a token shared by two pools is queried once."""
        pair_tokens = [PairTokens(USDC, WETH), PairTokens(DAI, WETH)]

        result = fetch_token_decimals(self.chain, 1, pair_tokens, cache=self.cache)

        self.assertEqual(result, {USDC: 6, WETH: 18, DAI: 18})
        self.assertEqual(len(self.chain.calls_with_selector(DECIMALS.selector)), 3)

    def test_second_fetch_served_from_cache(self):
        """Test decimals are fetched at most once per process."""
        pair_tokens = [PairTokens(USDC, WETH)]
        fetch_token_decimals(self.chain, 1, pair_tokens, cache=self.cache)

        result = fetch_token_decimals(
            self.chain, 1, pair_tokens + [PairTokens(DAI, WETH)], cache=self.cache
        )

        self.assertEqual(result[DAI], 18)
        calls = self.chain.calls_with_selector(DECIMALS.selector)
        self.assertEqual(sorted(c.target.lower() for c in calls), sorted([USDC, WETH, DAI]))

    def test_cache_is_per_chain(self):
        """Test the same address on another chain is fetched separately."""
        pair_tokens = [PairTokens(USDC, WETH)]
        fetch_token_decimals(self.chain, 1, pair_tokens, cache=self.cache)
        fetch_token_decimals(self.chain, 137, pair_tokens, cache=self.cache)

        self.assertEqual(len(self.chain.batches), 2)

    def test_failed_decimals_cached_as_unknown(self):
        """Test a reverting decimals() is cached and never retried."""
        pair_tokens = [PairTokens(USDC, WBTC)]

        result = fetch_token_decimals(self.chain, 1, pair_tokens, cache=self.cache)
        fetch_token_decimals(self.chain, 1, pair_tokens, cache=self.cache)

        self.assertIsNone(result[WBTC])
        self.assertIs(self.cache.get(1, WBTC), UNKNOWN)
        self.assertEqual(len(self.chain.batches), 1)

    def test_batch_failure_not_cached(self):
        """Test a failed batch leaves the cache untouched."""
        self.chain.fail_batches = True

        with self.assertRaises(InfrastructureError):
            fetch_token_decimals(self.chain, 1, [PairTokens(USDC, WETH)], cache=self.cache)

        self.assertIs(self.cache.get(1, USDC), MISS)
        self.assertEqual(len(self.cache), 0)

    def test_none_pairs_ignored(self):
        result = fetch_token_decimals(self.chain, 1, [None, None], cache=self.cache)

        self.assertEqual(result, {})
        self.assertEqual(self.chain.batches, [])

    def test_cache_rejects_non_int(self):
        with self.assertRaises(TypeError):
            self.cache.set(1, USDC, "6")

    def test_fetch_lock_is_per_chain(self):
        self.assertIs(self.cache.fetch_lock(1), self.cache.fetch_lock(1))
        self.assertIsNot(self.cache.fetch_lock(1), self.cache.fetch_lock(137))


if __name__ == "__main__":
    unittest.main()
