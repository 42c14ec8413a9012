"""
Order verifier: policy and curve checks for a candidate AMM order.

The AMM is the order *owner*: it sells `sell_amount` of `sell_token` and
receives `buy_amount` of `buy_token`. From the curve's point of view the
AMM's input is the buy side and its output is the sell side.

Checks run in a fixed order and the first failure is reported. Commitment
matching is not part of this module (see `commitment.py`).
"""

from __future__ import annotations

import logging

from ..state.amm_state import AmmState
from ..state.balances import TokenId
from ..state.canonical import ZERO_ADDRESS
from ..state.order import BuyTokenDestination, Order, SellTokenSource
from ..state.params import TradingParams
from .curve import amount_out_from_amount_in
from .errors import InvalidToken, OrderNotValid

logger = logging.getLogger(__name__)

# Five minutes.
MAX_ORDER_DURATION = 5 * 60


def buy_token_is_token0(order: Order, token0: TokenId, token1: TokenId) -> bool:
    """
    Resolve the order's token pair against the AMM's tokens.

    Raises:
        InvalidToken: If `buy_token` is not one of the AMM tokens or
            `sell_token` is not the other one
    """
    if order.buy_token == token0:
        expected_sell = token1
    elif order.buy_token == token1:
        expected_sell = token0
    else:
        raise InvalidToken(order.buy_token)
    if order.sell_token != expected_sell:
        raise InvalidToken(order.sell_token)
    return order.buy_token == token0


def verify(
    params: TradingParams,
    order: Order,
    state: AmmState,
    *,
    token0: TokenId,
    token1: TokenId,
    now: int,
    max_order_duration: int = MAX_ORDER_DURATION,
) -> None:
    """
    Verify `order` against `params` and the live curve in `state`.

    `params` is assumed to be authenticated already (hash-matched by the
    caller); only the live price and liquidity are read from `state`.

    Raises:
        OrderNotValid: With the reason of the first failing check
        InvalidToken: If the order does not trade this AMM's token pair
    """
    if order.receiver != ZERO_ADDRESS:
        raise OrderNotValid("receiver must be zero")
    if order.valid_to > now + max_order_duration:
        raise OrderNotValid("validity too far in future")
    if order.app_data != params.app_data:
        raise OrderNotValid("invalid appData")
    if order.fee_amount != 0:
        raise OrderNotValid("fee amount must be zero")
    if order.sell_token_balance != SellTokenSource.ERC20:
        raise OrderNotValid("sellTokenBalance must be erc20")
    if order.buy_token_balance != BuyTokenDestination.ERC20:
        raise OrderNotValid("buyTokenBalance must be erc20")

    # Orders paying the AMM more than the curve asks for are fine.
    input_is_token0 = buy_token_is_token0(order, token0, token1)
    curve_out = amount_out_from_amount_in(
        state.last_sqrt_price_x96,
        state.last_liquidity,
        order.buy_amount,
        input_is_token0,
    )
    if curve_out < order.sell_amount:
        raise OrderNotValid("received amount too low")

    traded_token0 = order.buy_amount if input_is_token0 else order.sell_amount
    if traded_token0 < params.min_traded_token0:
        raise OrderNotValid("traded amount too small")

    logger.debug(
        "order verified: in=%d out=%d curve_out=%d token0_side=%d",
        order.buy_amount,
        order.sell_amount,
        curve_out,
        traded_token0,
    )
