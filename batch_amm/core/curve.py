"""
Constant-product curve math in square-root-price form.

The curve holds `liquidity**2 == reserve0 * reserve1` over *virtual* reserves:

    reserve0 = liquidity / sqrt_price
    reserve1 = liquidity * sqrt_price

with `sqrt_price_x96 = sqrt(reserve1 / reserve0) * 2**96` (Q64.96 fixed point).

Algorithm Design:
- Type: Fixed-Point Integer Arithmetic / Deterministic Rounding
- Time Complexity: O(1) per call
- Invariant: rounding always favours the AMM. The moved price is rounded
  against the trader and the amount paid out is rounded down, so the output
  never exceeds the exact rational constant-product output.

Python integers do not overflow, so intermediates are exact. Inputs and
results are range-checked against the on-chain integer domains (uint160
prices, uint128 liquidity, uint256 amounts) and raise `ArithmeticFault` when
a result would leave them.
"""

from __future__ import annotations

import math
from typing import Tuple

from .errors import ArithmeticFault

Q96 = 1 << 96

MIN_SQRT_PRICE_X96 = 1
MAX_SQRT_PRICE_X96 = (1 << 160) - 1
MAX_LIQUIDITY = (1 << 128) - 1
MAX_AMOUNT = (1 << 256) - 1


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def _ceil_div_nonneg(numerator: int, denominator: int) -> int:
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    if numerator < 0:
        raise ValueError("numerator must be non-negative")
    return (numerator + denominator - 1) // denominator


def _check_price(name: str, sqrt_price_x96: int) -> None:
    _require_int(name, sqrt_price_x96)
    if not (MIN_SQRT_PRICE_X96 <= sqrt_price_x96 <= MAX_SQRT_PRICE_X96):
        raise ArithmeticFault(f"{name} out of range: {sqrt_price_x96}")


def _check_liquidity(liquidity: int) -> None:
    _require_int("liquidity", liquidity)
    if not (0 < liquidity <= MAX_LIQUIDITY):
        raise ArithmeticFault(f"liquidity out of range: {liquidity}")


def _check_amount(name: str, amount: int) -> None:
    _require_int(name, amount)
    if not (0 <= amount <= MAX_AMOUNT):
        raise ArithmeticFault(f"{name} out of range: {amount}")


def amount0_delta(sqrt_price_a_x96: int, sqrt_price_b_x96: int, liquidity: int, *, round_up: bool) -> int:
    """
    token0 amount between two prices.

    Formula: L * Q96 * (b - a) / (a * b), prices ordered so that a <= b.
    """
    a, b = sorted((sqrt_price_a_x96, sqrt_price_b_x96))
    numerator = (liquidity << 96) * (b - a)
    denominator = a * b
    if round_up:
        return _ceil_div_nonneg(numerator, denominator)
    return numerator // denominator


def amount1_delta(sqrt_price_a_x96: int, sqrt_price_b_x96: int, liquidity: int, *, round_up: bool) -> int:
    """
    token1 amount between two prices.

    Formula: L * (b - a) / Q96, prices ordered so that a <= b.
    """
    a, b = sorted((sqrt_price_a_x96, sqrt_price_b_x96))
    numerator = liquidity * (b - a)
    if round_up:
        return _ceil_div_nonneg(numerator, Q96)
    return numerator // Q96


def next_sqrt_price(sqrt_price_x96: int, liquidity: int, amount_in: int, input_is_token0: bool) -> int:
    """
    Square-root price after the AMM receives `amount_in` on one side.

    token0 in (price moves down, rounded up):
        new = ceil(L * Q96 * S / (L * Q96 + amount_in * S))
    token1 in (price moves up, rounded down):
        new = S + floor(amount_in * Q96 / L)

    Raises:
        ArithmeticFault: If an input or the result leaves its integer domain
    """
    _check_price("sqrt_price_x96", sqrt_price_x96)
    _check_liquidity(liquidity)
    _check_amount("amount_in", amount_in)
    if not isinstance(input_is_token0, bool):
        raise TypeError("input_is_token0 must be a bool")

    if amount_in == 0:
        return sqrt_price_x96

    if input_is_token0:
        numerator = liquidity << 96
        new_price = _ceil_div_nonneg(numerator * sqrt_price_x96, numerator + amount_in * sqrt_price_x96)
    else:
        new_price = sqrt_price_x96 + (amount_in << 96) // liquidity

    if not (MIN_SQRT_PRICE_X96 <= new_price <= MAX_SQRT_PRICE_X96):
        raise ArithmeticFault(f"next sqrt price out of range: {new_price}")
    return new_price


def amount_out_from_amount_in(sqrt_price_x96: int, liquidity: int, amount_in: int, input_is_token0: bool) -> int:
    """
    Counterparty amount the curve pays out for `amount_in`.

    Computed as the output-side delta between the current price and
    `next_sqrt_price(...)`, rounded down. Returns 0 for `amount_in == 0` and is
    monotonically non-decreasing in `amount_in`.
    """
    new_price = next_sqrt_price(sqrt_price_x96, liquidity, amount_in, input_is_token0)
    if input_is_token0:
        return amount1_delta(new_price, sqrt_price_x96, liquidity, round_up=False)
    return amount0_delta(sqrt_price_x96, new_price, liquidity, round_up=False)


def amount_in_to_reach_price(sqrt_price_x96: int, liquidity: int, target_sqrt_price_x96: int) -> Tuple[int, bool]:
    """
    Input needed to move the price to `target_sqrt_price_x96`.

    Returns `(amount_in, input_is_token0)`; the amount is rounded up so that
    feeding it to `next_sqrt_price` reaches (or just passes) the target.
    Returns `(0, True)` when the price is already at the target.
    """
    _check_price("sqrt_price_x96", sqrt_price_x96)
    _check_price("target_sqrt_price_x96", target_sqrt_price_x96)
    _check_liquidity(liquidity)

    if target_sqrt_price_x96 == sqrt_price_x96:
        return 0, True
    if target_sqrt_price_x96 < sqrt_price_x96:
        return amount0_delta(target_sqrt_price_x96, sqrt_price_x96, liquidity, round_up=True), True
    return amount1_delta(sqrt_price_x96, target_sqrt_price_x96, liquidity, round_up=True), False


def sqrt_price_x96_from_reserves(reserve0: int, reserve1: int) -> int:
    """floor(sqrt(reserve1 / reserve0) * 2**96) using integer isqrt."""
    _require_int("reserve0", reserve0)
    _require_int("reserve1", reserve1)
    if reserve0 <= 0 or reserve1 <= 0:
        raise ValueError(f"Reserves must be positive: ({reserve0}, {reserve1})")
    sqrt_price = math.isqrt((reserve1 << 192) // reserve0)
    _check_price("sqrt_price_x96", sqrt_price)
    return sqrt_price


def liquidity_from_reserves(reserve0: int, reserve1: int) -> int:
    """floor(sqrt(reserve0 * reserve1))."""
    _require_int("reserve0", reserve0)
    _require_int("reserve1", reserve1)
    if reserve0 < 0 or reserve1 < 0:
        raise ValueError(f"Reserves must be non-negative: ({reserve0}, {reserve1})")
    return math.isqrt(reserve0 * reserve1)
