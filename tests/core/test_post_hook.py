# [TESTER] v1

from __future__ import annotations

import logging
from dataclasses import replace

import pytest

from conftest import AMM_ADDRESS, LIQUIDITY, MANAGER, NOW, RESERVE, SOLVER, STRANGER, TOKEN0, TOKEN1, make_amm_order, settlement_ctx
from batch_amm.core.context import new_call
from batch_amm.core.curve import Q96, next_sqrt_price
from batch_amm.core.errors import (
    AmbiguousBalanceChange,
    ArithmeticFault,
    OnlySettlementCanCall,
    ReconciliationError,
    TradingParamsDoNotMatchHash,
)

TRADER = "0x" + "77" * 20


def _swap(ledger, *, token_in: str, amount_in: int, token_out: str, amount_out: int) -> None:
    ledger.mint(TRADER, token_in, amount_in)
    ledger.transfer(token_in, TRADER, AMM_ADDRESS, amount_in)
    ledger.transfer(token_out, AMM_ADDRESS, TRADER, amount_out)


def test_post_hook_is_settlement_only(enabled_amm, params) -> None:
    for caller in (SOLVER, MANAGER, STRANGER):
        with pytest.raises(OnlySettlementCanCall):
            enabled_amm.post_hook(new_call(caller, NOW), params)


def test_post_hook_checks_params_hash(enabled_amm, params) -> None:
    with pytest.raises(TradingParamsDoNotMatchHash):
        enabled_amm.post_hook(settlement_ctx(), replace(params, liquidity=LIQUIDITY + 1))


def test_token0_input_moves_price_down(enabled_amm, ledger, params) -> None:
    _swap(ledger, token_in=TOKEN0, amount_in=500, token_out=TOKEN1, amount_out=499)
    enabled_amm.post_hook(settlement_ctx(), params)

    state = enabled_amm.state
    assert state.last_sqrt_price_x96 == next_sqrt_price(Q96, LIQUIDITY, 500, True)
    assert state.last_sqrt_price_x96 < Q96
    assert (state.last_balance0, state.last_balance1) == (RESERVE + 500, RESERVE - 499)
    assert state.last_liquidity == LIQUIDITY


def test_token1_input_moves_price_up(enabled_amm, ledger, params) -> None:
    _swap(ledger, token_in=TOKEN1, amount_in=500, token_out=TOKEN0, amount_out=499)
    enabled_amm.post_hook(settlement_ctx(), params)

    state = enabled_amm.state
    assert state.last_sqrt_price_x96 == Q96 + (500 * Q96) // LIQUIDITY
    assert (state.last_balance0, state.last_balance1) == (RESERVE - 499, RESERVE + 500)


def test_reverse_trade_after_reconciliation_prices_off_the_new_curve(enabled_amm, ledger, params) -> None:
    _swap(ledger, token_in=TOKEN0, amount_in=500, token_out=TOKEN1, amount_out=499)
    enabled_amm.post_hook(settlement_ctx(), params)

    # Round trip through the curve never pays back the original input.
    back = enabled_amm.amount_out(TOKEN1, 499)
    assert 0 < back < 500
    order = make_amm_order(enabled_amm, buy_token=TOKEN1, buy_amount=499)
    enabled_amm.verify(settlement_ctx(), params, order)


def test_both_sides_increasing_is_rejected(enabled_amm, ledger, params) -> None:
    before = enabled_amm.state
    ledger.mint(AMM_ADDRESS, TOKEN0, 10)
    ledger.mint(AMM_ADDRESS, TOKEN1, 10)
    with pytest.raises(AmbiguousBalanceChange) as excinfo:
        enabled_amm.post_hook(settlement_ctx(), params)
    assert (excinfo.value.delta0, excinfo.value.delta1) == (10, 10)
    assert enabled_amm.state == before


def test_no_increase_keeps_price_and_resnapshots(enabled_amm, ledger, params, caplog) -> None:
    ledger.transfer(TOKEN0, AMM_ADDRESS, TRADER, 25)
    with caplog.at_level(logging.WARNING, logger="batch_amm.core.amm"):
        enabled_amm.post_hook(settlement_ctx(), params)

    state = enabled_amm.state
    assert state.last_sqrt_price_x96 == Q96
    assert (state.last_balance0, state.last_balance1) == (RESERVE - 25, RESERVE)
    assert any("no balance increase" in rec.getMessage() for rec in caplog.records)


def test_second_post_hook_without_trades_is_idempotent(enabled_amm, ledger, params) -> None:
    _swap(ledger, token_in=TOKEN1, amount_in=1_000, token_out=TOKEN0, amount_out=998)
    enabled_amm.post_hook(settlement_ctx(), params)
    after_first = enabled_amm.state
    enabled_amm.post_hook(settlement_ctx(), params)
    assert enabled_amm.state == after_first


def test_ambiguous_change_is_a_reconciliation_error_not_an_arithmetic_fault(enabled_amm, ledger, params) -> None:
    ledger.mint(AMM_ADDRESS, TOKEN0, 1)
    ledger.mint(AMM_ADDRESS, TOKEN1, 1)
    with pytest.raises(ReconciliationError) as excinfo:
        enabled_amm.post_hook(settlement_ctx(), params)
    assert not isinstance(excinfo.value, ArithmeticFault)


def test_restore_state_reinstates_a_prior_state(enabled_amm, ledger, params) -> None:
    before = enabled_amm.state
    _swap(ledger, token_in=TOKEN0, amount_in=500, token_out=TOKEN1, amount_out=499)
    enabled_amm.post_hook(settlement_ctx(), params)
    assert enabled_amm.state != before

    enabled_amm.restore_state(before)
    assert enabled_amm.state == before
    with pytest.raises(TypeError):
        enabled_amm.restore_state(before.to_dict())
