"""
Off-chain polling for AMM orders.

A solver polls each AMM for the order that would move it to the solver's
target price. A `PollTryAtEpoch` from the AMM is not an error: it means "no
order right now, ask again later", and is reported as a retry hint.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..core.amm import ConcentratedAmm
from ..core.context import new_call
from ..core.errors import PollTryAtEpoch
from ..state.params import TradingParams
from .settlement import Batch, Interaction, SettlementEngine, Trade


@dataclass(frozen=True)
class PollResult:
    ok: bool
    trade: Optional[Trade] = None
    pre_interactions: List[Interaction] = field(default_factory=list)
    post_interactions: List[Interaction] = field(default_factory=list)
    retry_at: Optional[int] = None
    reason: Optional[str] = None


def poll_amm(
    engine: SettlementEngine,
    amm: ConcentratedAmm,
    params: TradingParams,
    target_sqrt_price_x96: int,
    *,
    poller: str,
    timestamp: int,
) -> PollResult:
    """
    Ask `amm` for its tradeable order at `timestamp`.

    On success the result carries the AMM trade plus the commit and post-hook
    interactions the batch needs around it.
    """
    ctx = new_call(poller, timestamp)
    try:
        order = amm.get_tradeable_order(ctx, params, target_sqrt_price_x96)
    except PollTryAtEpoch as exc:
        return PollResult(ok=False, retry_at=exc.epoch, reason=exc.reason)
    return PollResult(
        ok=True,
        trade=Trade.for_amm(amm, order, params),
        pre_interactions=[engine.commit_interaction(amm, order)],
        post_interactions=[engine.post_hook_interaction(amm, params)],
    )


def batch_for_amm_orders(results: Sequence[PollResult], counter_trades: Sequence[Trade] = ()) -> Batch:
    """
    Assemble a batch from successful poll results and the trader orders
    that take the other side.
    """
    batch = Batch()
    for result in results:
        if not result.ok or result.trade is None:
            continue
        batch.trades.append(result.trade)
        batch.pre_interactions.extend(result.pre_interactions)
        batch.post_interactions.extend(result.post_interactions)
    batch.trades.extend(counter_trades)
    return batch
