"""
DEX adapter modules for different AMM types.
"""

from .v2 import (
    RawLeg,
    get_amount_out_raw,
    simulate_round_trip_raw,
    spot_price,
    swap_out,
)

__all__ = [
    "swap_out",
    "spot_price",
    "get_amount_out_raw",
    "simulate_round_trip_raw",
    "RawLeg",
]
