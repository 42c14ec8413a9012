from __future__ import annotations

from dataclasses import replace
from typing import Optional

import pytest

from batch_amm.core.amm import ConcentratedAmm
from batch_amm.core.context import CallContext, new_call
from batch_amm.core.curve import Q96
from batch_amm.integration.config import AmmConfig, build_amm
from batch_amm.integration.settlement import SettlementEngine
from batch_amm.state.balances import TokenLedger
from batch_amm.state.canonical import ZERO_ADDRESS
from batch_amm.state.order import BuyTokenDestination, Order, OrderKind, SellTokenSource
from batch_amm.state.params import TradingParams


TOKEN0 = "0x" + "11" * 20
TOKEN1 = "0x" + "22" * 20
AMM_ADDRESS = "0x" + "a1" * 20
SETTLEMENT = "0x" + "5e" * 20
MANAGER = "0x" + "b0" * 20
SOLVER = "0x" + "c0" * 20
STRANGER = "0x" + "dd" * 20
APP_DATA = "0x" + "ab" * 32

NOW = 1_700_000_000
LIQUIDITY = 1_000_000
RESERVE = 1_000_000


@pytest.fixture
def ledger() -> TokenLedger:
    return TokenLedger()


@pytest.fixture
def engine(ledger: TokenLedger) -> SettlementEngine:
    eng = SettlementEngine(address=SETTLEMENT, chain_id="testnet", ledger=ledger)
    eng.register_solver(SOLVER)
    return eng


@pytest.fixture
def params() -> TradingParams:
    return TradingParams(
        min_traded_token0=100,
        sqrt_price_deposit_x96=Q96,
        liquidity=LIQUIDITY,
        app_data=APP_DATA,
    )


@pytest.fixture
def amm(ledger: TokenLedger, engine: SettlementEngine) -> ConcentratedAmm:
    config = AmmConfig(
        address=AMM_ADDRESS,
        token0=TOKEN0,
        token1=TOKEN1,
        settlement=SETTLEMENT,
        manager=MANAGER,
        chain_id="testnet",
    )
    return build_amm(config, ledger=ledger, settlement=engine)


@pytest.fixture
def enabled_amm(amm: ConcentratedAmm, ledger: TokenLedger, params: TradingParams) -> ConcentratedAmm:
    ledger.mint(AMM_ADDRESS, TOKEN0, RESERVE)
    ledger.mint(AMM_ADDRESS, TOKEN1, RESERVE)
    amm.enable_trading(new_call(MANAGER, NOW), params)
    return amm


def settlement_ctx(timestamp: int = NOW) -> CallContext:
    return new_call(SOLVER, timestamp).as_caller(SETTLEMENT)


def make_amm_order(
    amm: ConcentratedAmm,
    *,
    buy_token: str,
    buy_amount: int,
    sell_amount: Optional[int] = None,
    **overrides,
) -> Order:
    """An AMM-owned order that passes every verifier check unless overridden."""
    sell_token = TOKEN1 if buy_token == TOKEN0 else TOKEN0
    if sell_amount is None:
        sell_amount = amm.amount_out(buy_token, buy_amount)
    order = Order(
        sell_token=sell_token,
        buy_token=buy_token,
        receiver=ZERO_ADDRESS,
        sell_amount=sell_amount,
        buy_amount=buy_amount,
        valid_to=NOW + 60,
        app_data=APP_DATA,
        fee_amount=0,
        kind=OrderKind.SELL,
        partially_fillable=False,
        sell_token_balance=SellTokenSource.ERC20,
        buy_token_balance=BuyTokenDestination.ERC20,
    )
    return replace(order, **overrides) if overrides else order
