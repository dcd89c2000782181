"""
Uniswap V2 style swap math for constant-product AMM pools.

Two renditions of the same x*y=k formula with the fee applied to the input:
``swap_out`` works in human units with Decimal, ``get_amount_out_raw``
reproduces the pair contract's integer arithmetic on raw reserves.
"""

from decimal import Decimal
from typing import NamedTuple

FEE_DENOMINATOR = 1_000_000


def swap_out(
    amount_in: Decimal, reserve_in: Decimal, reserve_out: Decimal, fee: Decimal
) -> Decimal:
    """
    Calculate output amount for a V2 swap using constant-product formula.

    Formula (with fee embedded):
        amountInWithFee = amountIn * (1 - fee)
        amountOut = (amountInWithFee * reserveOut) / (reserveIn + amountInWithFee)

    Args:
        amount_in: Input token amount
        reserve_in: Reserve of input token
        reserve_out: Reserve of output token
        fee: Fee as decimal (e.g., 0.003 for 30 bps)

    Returns:
        Output token amount

    Raises:
        ValueError: If inputs are invalid (negative, zero reserves, etc.)
    """
    amount_in = Decimal(amount_in)
    reserve_in = Decimal(reserve_in)
    reserve_out = Decimal(reserve_out)
    fee = Decimal(fee)

    if amount_in <= 0:
        raise ValueError(f"amount_in must be positive: {amount_in}")
    if reserve_in <= 0 or reserve_out <= 0:
        raise ValueError(
            f"Reserves must be positive: in={reserve_in}, out={reserve_out}"
        )
    if fee < 0 or fee >= 1:
        raise ValueError(f"Fee must be in [0, 1): {fee}")

    amount_in_with_fee = amount_in * (Decimal(1) - fee)

    numerator = amount_in_with_fee * reserve_out
    denominator = reserve_in + amount_in_with_fee

    return numerator / denominator


def spot_price(reserve_base: Decimal, reserve_quote: Decimal) -> Decimal:
    """Quote tokens per base token implied by the pool reserves."""
    if reserve_base <= 0:
        raise ValueError(f"Base reserve must be positive: {reserve_base}")
    return Decimal(reserve_quote) / Decimal(reserve_base)


def fee_to_numerator(fee: Decimal, denominator: int = FEE_DENOMINATOR) -> int:
    """Express ``1 - fee`` as an integer numerator over ``denominator``."""
    return int((Decimal(1) - Decimal(fee)) * denominator)


def get_amount_out_raw(
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    fee_numerator: int = 997,
    fee_denominator: int = 1000,
) -> int:
    """
    Integer V2 quote, rounding down like UniswapV2Library.getAmountOut.

    Returns 0 instead of raising on empty input or reserves.
    """
    if amount_in <= 0 or reserve_in <= 0 or reserve_out <= 0:
        return 0
    amount_in_with_fee = amount_in * fee_numerator
    return (amount_in_with_fee * reserve_out) // (
        reserve_in * fee_denominator + amount_in_with_fee
    )


class RawLeg(NamedTuple):
    """One swap leg on raw reserves: token in -> token out."""

    reserve_in: int
    reserve_out: int
    fee: Decimal


def simulate_round_trip_raw(amount_in: int, first: RawLeg, second: RawLeg) -> int:
    """
    Swap ``amount_in`` through ``first`` then swap the proceeds through ``second``.

    ``second`` is expressed in the reverse direction already (its reserve_in
    is the token received from ``first``).
    """
    mid = get_amount_out_raw(
        amount_in,
        first.reserve_in,
        first.reserve_out,
        fee_to_numerator(first.fee),
        FEE_DENOMINATOR,
    )
    return get_amount_out_raw(
        mid,
        second.reserve_in,
        second.reserve_out,
        fee_to_numerator(second.fee),
        FEE_DENOMINATOR,
    )
