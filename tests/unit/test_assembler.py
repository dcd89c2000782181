"""
Unit tests for dex/assembler.py

Verifies the join of stage outputs into NormalizedReserve rows and the full
per-venue fetch against a fake chain.
"""

import unittest

from fakes import DAI, FACTORY_A, LINK, USDC, WETH, FakeChain, addr

from dex.assembler import assemble_results, fetch_pairs_and_reserves
from dex.cache import AddressCache, DecimalsCache
from dex.exceptions import InvariantViolation
from dex.multicall import BlockRef
from dex.types import PairSpec, PairTokens, ReserveSnapshot, TokenRef

SNAP = ReserveSnapshot(
    reserve0=100, reserve1=200, block_number=10, block_timestamp=20, pair_timestamp_last=19
)


def spec(a, b, sym_a=None, sym_b=None):
    return PairSpec(TokenRef(a, symbol=sym_a), TokenRef(b, symbol=sym_b))


class TestAssembleResults(unittest.TestCase):
    """Test the pure join."""

    def test_one_row_per_pair(self):
        """Test rows are produced for missing pools too, in input order."""
        pairs = [spec(USDC, WETH, "USDC", "WETH"), spec(LINK, WETH, "LINK", "WETH")]

        rows = assemble_results(
            1,
            "UniswapV2",
            pairs,
            [addr(1), None],
            [SNAP, None],
            [PairTokens(USDC, WETH), None],
            {USDC: 6, WETH: 18},
        )

        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[0].pair_key, "USDC-WETH")
        self.assertEqual(rows[0].reserve0, 100)
        self.assertEqual(rows[0].decimals0, 6)
        self.assertEqual(rows[0].decimals1, 18)
        self.assertEqual(rows[0].block_number, 10)
        self.assertTrue(rows[0].is_complete)

        self.assertEqual(rows[1].pair_key, "LINK-WETH")
        self.assertIsNone(rows[1].pair_address)
        self.assertIsNone(rows[1].reserve0)
        self.assertIsNone(rows[1].token0)
        self.assertFalse(rows[1].is_complete)

    def test_unknown_decimals_are_none(self):
        """Test tokens missing from the decimals map keep None."""
        rows = assemble_results(
            1, "v", [spec(USDC, WETH)], [addr(1)], [SNAP], [PairTokens(USDC, WETH)], {}
        )

        self.assertIsNone(rows[0].decimals0)
        self.assertTrue(rows[0].is_complete)

    def test_config_decimals_hint_fills_unknown(self):
        """Test a TokenRef decimals hint is used when the chain reports none."""
        pairs = [PairSpec(TokenRef(USDC, "USDC", 6), TokenRef(WETH, "WETH", 18))]

        rows = assemble_results(
            1, "v", pairs, [addr(1)], [SNAP], [PairTokens(USDC, WETH)], {USDC: None}
        )

        self.assertEqual(rows[0].decimals0, 6)
        self.assertEqual(rows[0].decimals1, 18)

    def test_on_chain_decimals_beat_hint(self):
        pairs = [PairSpec(TokenRef(USDC, decimals=8), TokenRef(WETH))]

        rows = assemble_results(
            1, "v", pairs, [addr(1)], [SNAP], [PairTokens(USDC, WETH)], {USDC: 6}
        )

        self.assertEqual(rows[0].decimals0, 6)
        self.assertIsNone(rows[0].decimals1)

    def test_decimals_lookup_ignores_case(self):
        """Test checksummed on-chain tokens match lower-cased decimals keys."""
        token0 = "0x" + USDC[2:].upper()
        rows = assemble_results(
            1, "v", [spec(USDC, WETH)], [addr(1)], [SNAP], [PairTokens(token0, WETH)], {USDC: 6}
        )

        self.assertEqual(rows[0].decimals0, 6)

    def test_misaligned_inputs_raise(self):
        """Test a length mismatch is an invariant violation."""
        with self.assertRaises(InvariantViolation) as ctx:
            assemble_results(1, "v", [spec(USDC, WETH)], [addr(1), None], [SNAP], [None], {})

        self.assertEqual(ctx.exception.expected, 1)
        self.assertEqual(ctx.exception.actual, 2)

    def test_data_without_address_raises(self):
        """Test reserves attached to an unresolved pair are rejected."""
        with self.assertRaises(InvariantViolation):
            assemble_results(1, "v", [spec(USDC, WETH)], [None], [SNAP], [None], {})

    def test_pair_key_falls_back_to_addresses(self):
        rows = assemble_results(1, "v", [spec(USDC, WETH)], [None], [None], [None], {})

        self.assertEqual(rows[0].pair_key, f"{USDC}-{WETH}")

    def test_to_dict_renders_reserves_as_strings(self):
        rows = assemble_results(
            1, "v", [spec(USDC, WETH)], [addr(1)], [SNAP], [PairTokens(USDC, WETH)], {}
        )

        data = rows[0].to_dict()
        self.assertEqual(data["reserve0"], "100")
        self.assertEqual(data["pairAddress"], addr(1))
        self.assertEqual(data["pairTimestampLast"], 19)


class TestFetchPairsAndReserves(unittest.TestCase):
    """Test the full venue pipeline end to end on a fake chain."""

    def setUp(self):
        self.chain = FakeChain(block=BlockRef(500, 600))
        self.chain.add_pool(FACTORY_A, addr(1), USDC, WETH, 2_000_000 * 10**6, 1_000 * 10**18)
        self.chain.add_pool(FACTORY_A, addr(2), DAI, WETH, 2_000_000 * 10**18, 1_000 * 10**18)
        self.chain.set_decimals(USDC, 6)
        self.chain.set_decimals(WETH, 18)
        self.chain.set_decimals(DAI, 18)
        self.address_cache = AddressCache()
        self.decimals_cache = DecimalsCache()
        self.pairs = [
            spec(USDC, WETH, "USDC", "WETH"),
            spec(LINK, WETH, "LINK", "WETH"),
            spec(WETH, DAI, "WETH", "DAI"),
        ]

    def fetch(self):
        return fetch_pairs_and_reserves(
            self.chain,
            1,
            "UniswapV2",
            FACTORY_A,
            self.pairs,
            address_cache=self.address_cache,
            decimals_cache=self.decimals_cache,
        )

    def test_rows_complete_and_aligned(self):
        """Test every requested pair yields one row with matching data."""
        rows = self.fetch()

        self.assertEqual([r.pair_key for r in rows], ["USDC-WETH", "LINK-WETH", "WETH-DAI"])
        self.assertTrue(rows[0].is_complete)
        self.assertFalse(rows[1].is_complete)
        self.assertTrue(rows[2].is_complete)
        self.assertEqual(rows[0].decimals0, 6)
        self.assertEqual(rows[2].block_number, 500)

    def test_constant_round_trips(self):
        """Test a cold fetch costs five round trips regardless of pair count."""
        self.fetch()

        # getPair, block, getReserves, token0/token1, decimals
        self.assertEqual(self.chain.round_trips, 5)

    def test_warm_fetch_skips_resolution_and_decimals(self):
        """Test a warm fetch only reads the block, reserves and tokens."""
        self.fetch()
        before = self.chain.round_trips

        self.fetch()

        self.assertEqual(self.chain.round_trips - before, 3)


if __name__ == "__main__":
    unittest.main()
