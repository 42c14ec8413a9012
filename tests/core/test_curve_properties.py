"""Property tests for the curve math.

Uses Hypothesis to check monotonicity, the AMM-favouring rounding bound
against the exact rational constant product, and minimality of the
price-targeting inverse.
"""

from __future__ import annotations

import importlib.util
from fractions import Fraction

import pytest

if importlib.util.find_spec("hypothesis") is None:  # pragma: no cover
    pytest.skip("hypothesis not installed", allow_module_level=True)

import hypothesis.strategies as st
from hypothesis import assume, given, settings

from batch_amm.core.curve import (
    Q96,
    amount0_delta,
    amount1_delta,
    amount_in_to_reach_price,
    amount_out_from_amount_in,
    next_sqrt_price,
)

sqrt_prices = st.integers(min_value=Q96 >> 32, max_value=Q96 << 32)
liquidities = st.integers(min_value=10**6, max_value=(1 << 128) - 1)
amounts = st.integers(min_value=0, max_value=10**24)


@settings(max_examples=300, deadline=None)
@given(sqrt_prices, liquidities, amounts, amounts, st.booleans())
def test_amount_out_is_monotonic(sqrt_price: int, liquidity: int, a: int, b: int, input_is_token0: bool) -> None:
    lo, hi = sorted((a, b))
    assert amount_out_from_amount_in(sqrt_price, liquidity, lo, input_is_token0) <= amount_out_from_amount_in(
        sqrt_price, liquidity, hi, input_is_token0
    )


@settings(max_examples=300, deadline=None)
@given(sqrt_prices, liquidities, amounts, st.booleans())
def test_price_moves_in_trade_direction(sqrt_price: int, liquidity: int, amount_in: int, input_is_token0: bool) -> None:
    new_price = next_sqrt_price(sqrt_price, liquidity, amount_in, input_is_token0)
    if input_is_token0:
        assert new_price <= sqrt_price
    else:
        assert new_price >= sqrt_price


@settings(max_examples=300, deadline=None)
@given(sqrt_prices, liquidities, amounts, st.booleans())
def test_rounding_never_pays_out_more_than_exact_curve(
    sqrt_price: int, liquidity: int, amount_in: int, input_is_token0: bool
) -> None:
    out = amount_out_from_amount_in(sqrt_price, liquidity, amount_in, input_is_token0)

    reserve0 = Fraction(liquidity * Q96, sqrt_price)
    reserve1 = Fraction(liquidity * sqrt_price, Q96)
    k = Fraction(liquidity) ** 2
    if input_is_token0:
        exact = reserve1 - k / (reserve0 + amount_in)
        tolerance = Fraction(liquidity, Q96) + 1
    else:
        exact = reserve0 - k / (reserve1 + amount_in)
        tolerance = Fraction(liquidity * Q96, sqrt_price * sqrt_price) + 1

    assert out <= exact
    assert exact - out <= tolerance


@settings(max_examples=300, deadline=None)
@given(sqrt_prices, liquidities, amounts, st.booleans())
def test_reconciled_price_reproduces_the_paid_out_amount(
    sqrt_price: int, liquidity: int, amount_in: int, input_is_token0: bool
) -> None:
    # The reconciler derives the new price from the observed input; the
    # output implied by that price move must be what the verifier allowed.
    new_price = next_sqrt_price(sqrt_price, liquidity, amount_in, input_is_token0)
    if input_is_token0:
        implied = amount1_delta(new_price, sqrt_price, liquidity, round_up=False)
    else:
        implied = amount0_delta(sqrt_price, new_price, liquidity, round_up=False)
    assert implied == amount_out_from_amount_in(sqrt_price, liquidity, amount_in, input_is_token0)


@settings(max_examples=200, deadline=None)
@given(sqrt_prices, liquidities, st.integers(min_value=2, max_value=1_000))
def test_price_target_inverse_is_minimal(sqrt_price: int, liquidity: int, factor_pct: int) -> None:
    target = sqrt_price * factor_pct // 100
    assume(target != sqrt_price and target > 0)
    amount, input_is_token0 = amount_in_to_reach_price(sqrt_price, liquidity, target)
    assume(amount > 0)

    reached = next_sqrt_price(sqrt_price, liquidity, amount, input_is_token0)
    short = next_sqrt_price(sqrt_price, liquidity, amount - 1, input_is_token0)
    if input_is_token0:
        assert reached <= target < short
    else:
        assert short < target <= reached
