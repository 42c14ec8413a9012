# [TESTER] v1

from __future__ import annotations

from conftest import AMM_ADDRESS, NOW, SOLVER
from batch_amm.core.curve import Q96
from batch_amm.integration.poller import PollResult, batch_for_amm_orders, poll_amm
from batch_amm.integration.settlement import SigningScheme, Trade
from batch_amm.state.codec import decode_order_and_params


def test_successful_poll_carries_trade_and_interactions(engine, enabled_amm, params) -> None:
    result = poll_amm(engine, enabled_amm, params, Q96 * 99 // 100, poller=SOLVER, timestamp=NOW)

    assert result.ok
    assert result.retry_at is None
    assert result.trade.owner == AMM_ADDRESS
    assert result.trade.scheme is SigningScheme.EIP1271
    assert decode_order_and_params(result.trade.signature) == (result.trade.order, params)
    assert [i.label for i in result.pre_interactions] == ["commit"]
    assert [i.label for i in result.post_interactions] == ["post_hook"]
    assert all(i.target == AMM_ADDRESS for i in result.pre_interactions + result.post_interactions)


def test_retry_signal_becomes_a_retry_hint(engine, enabled_amm, params) -> None:
    result = poll_amm(engine, enabled_amm, params, Q96, poller=SOLVER, timestamp=NOW)

    assert not result.ok
    assert result.trade is None
    assert result.retry_at == NOW + 1
    assert result.reason == "no trade at target price"


def test_batch_skips_failed_polls_and_appends_counter_trades(engine, enabled_amm, params) -> None:
    good = poll_amm(engine, enabled_amm, params, Q96 * 99 // 100, poller=SOLVER, timestamp=NOW)
    bad = PollResult(ok=False, retry_at=NOW + 1, reason="no trade at target price")
    counter = Trade(order=good.trade.order, owner=SOLVER, scheme=SigningScheme.BLS, signature=b"")

    batch = batch_for_amm_orders([bad, good], counter_trades=[counter])

    assert batch.trades == [good.trade, counter]
    assert batch.pre_interactions == good.pre_interactions
    assert batch.post_interactions == good.post_interactions


def test_poll_does_not_touch_amm_state(engine, enabled_amm, params) -> None:
    before = enabled_amm.state
    poll_amm(engine, enabled_amm, params, Q96 * 99 // 100, poller=SOLVER, timestamp=NOW)
    assert enabled_amm.state == before
    assert enabled_amm.balances()[0] == before.last_balance0
