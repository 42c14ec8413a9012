"""
Concentrated constant-product AMM participating in batch settlement.

Entry points, and who may call them:

- `enable_trading` / `disable_trading`: the manager only
- `commit` / `post_hook`: the settlement contract only
- `is_valid_signature` / `verify` / `get_tradeable_order`: anyone (read-only)

Nothing passed in by a caller is trusted: trading params are re-hashed against
the stored hash, orders are re-hashed against the message hash, and caller
identity is compared against the fixed principals given at construction.
Every mutating operation computes its full result before writing, so a
failure leaves the state untouched.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Tuple

from ..state.amm_state import AmmState
from ..state.balances import Address, TokenId, TokenLedger
from ..state.canonical import ZERO_ADDRESS, canonical_address, canonical_hash
from ..state.codec import decode_order_and_params
from ..state.order import BuyTokenDestination, Order, OrderKind, SellTokenSource, order_hash
from ..state.params import NO_TRADING, TradingParams, trading_params_hash
from .commitment import CommitmentSlot
from .context import CallContext
from .curve import (
    MAX_SQRT_PRICE_X96,
    MIN_SQRT_PRICE_X96,
    amount_in_to_reach_price,
    amount_out_from_amount_in,
    next_sqrt_price,
)
from .errors import (
    AmbiguousBalanceChange,
    InvalidToken,
    InvalidTradingParams,
    OnlyManagerCanCall,
    OnlySettlementCanCall,
    OrderDoesNotMatchMessageHash,
    PollTryAtEpoch,
    TradingParamsDoNotMatchHash,
)
from .verifier import MAX_ORDER_DURATION, verify

logger = logging.getLogger(__name__)

# bytes4(keccak256("isValidSignature(bytes32,bytes)"))
ERC1271_MAGIC_VALUE = "0x1626ba7e"


class ConcentratedAmm:
    """
    One AMM instance trading `token0` against `token1`.

    The balances of `address` in `ledger` are the AMM's reserves; the curve
    itself runs on the virtual liquidity in the trading params.
    """

    def __init__(
        self,
        *,
        address: Address,
        token0: TokenId,
        token1: TokenId,
        settlement: Address,
        manager: Address,
        domain_separator: str,
        ledger: TokenLedger,
        max_order_duration: int = MAX_ORDER_DURATION,
    ):
        self.address = canonical_address(address, name="address")
        self.token0 = canonical_address(token0, name="token0")
        self.token1 = canonical_address(token1, name="token1")
        if self.token0 == self.token1:
            raise ValueError("token0 and token1 must differ")
        self.settlement = canonical_address(settlement, name="settlement")
        self.manager = canonical_address(manager, name="manager")
        self.domain_separator = canonical_hash(domain_separator, name="domain_separator")
        if not isinstance(max_order_duration, int) or isinstance(max_order_duration, bool) or max_order_duration <= 0:
            raise ValueError("max_order_duration must be a positive int")
        self.max_order_duration = max_order_duration
        self._ledger = ledger
        self._commitment = CommitmentSlot(self.address, self.settlement)
        self._state = AmmState()

    @property
    def state(self) -> AmmState:
        return self._state

    def restore_state(self, state: AmmState) -> None:
        """Reinstate a state previously read from `state` (settlement rollback)."""
        if not isinstance(state, AmmState):
            raise TypeError("state must be an AmmState")
        self._state = state

    def __repr__(self) -> str:
        return f"ConcentratedAmm({self.address}, enabled={self._state.trading_enabled})"

    # Token and balance helpers

    def is_token0(self, token: TokenId) -> bool:
        """
        Raises:
            InvalidToken: If `token` is neither of the AMM tokens
        """
        token = canonical_address(token, name="token")
        if token == self.token0:
            return True
        if token == self.token1:
            return False
        raise InvalidToken(token)

    def balances(self) -> Tuple[int, int]:
        return (
            self._ledger.balance_of(self.token0, self.address),
            self._ledger.balance_of(self.token1, self.address),
        )

    def amount_out(self, token_in: TokenId, amount_in: int) -> int:
        """Curve output at the live price for `amount_in` of `token_in`."""
        return amount_out_from_amount_in(
            self._state.last_sqrt_price_x96,
            self._state.last_liquidity,
            amount_in,
            self.is_token0(token_in),
        )

    def _require_params_hash(self, params: TradingParams) -> None:
        if trading_params_hash(params) != self._state.trading_params_hash:
            raise TradingParamsDoNotMatchHash("trading params do not match stored hash")

    # Commitment

    def commit(self, ctx: CallContext, order_hash_: str) -> None:
        self._commitment.commit(ctx, order_hash_)

    def commitment(self, ctx: CallContext) -> str:
        return self._commitment.commitment(ctx)

    def require_matching_commitment(self, ctx: CallContext, candidate_hash: str) -> None:
        self._commitment.require_matching_commitment(ctx, candidate_hash)

    # Verification

    def verify(self, ctx: CallContext, params: TradingParams, order: Order) -> None:
        """Order verifier against the live curve; no hash or commitment checks."""
        verify(
            params,
            order,
            self._state,
            token0=self.token0,
            token1=self.token1,
            now=ctx.timestamp,
            max_order_duration=self.max_order_duration,
        )

    def is_valid_signature(self, ctx: CallContext, message_hash: str, signature: bytes) -> str:
        """
        Authorize the order encoded in `signature` for `message_hash`.

        Returns ERC1271_MAGIC_VALUE on success; raises on any mismatch.
        """
        order, params = decode_order_and_params(signature)
        self._require_params_hash(params)
        candidate = order_hash(order, self.domain_separator)
        if candidate != canonical_hash(message_hash, name="message_hash"):
            raise OrderDoesNotMatchMessageHash(f"order hash {candidate} != message hash {message_hash}")
        self.require_matching_commitment(ctx, candidate)
        self.verify(ctx, params, order)
        return ERC1271_MAGIC_VALUE

    # Manager operations

    def enable_trading(self, ctx: CallContext, params: TradingParams) -> None:
        if ctx.caller != self.manager:
            raise OnlyManagerCanCall(f"enable_trading called by {ctx.caller}")
        if params.liquidity == 0:
            raise InvalidTradingParams("liquidity must be non-zero")
        if not (MIN_SQRT_PRICE_X96 <= params.sqrt_price_deposit_x96 <= MAX_SQRT_PRICE_X96):
            raise InvalidTradingParams(f"sqrt price out of range: {params.sqrt_price_deposit_x96}")
        params_hash = trading_params_hash(params)
        balance0, balance1 = self.balances()
        self._state = AmmState(
            trading_params_hash=params_hash,
            last_sqrt_price_x96=params.sqrt_price_deposit_x96,
            last_liquidity=params.liquidity,
            last_balance0=balance0,
            last_balance1=balance1,
        )
        logger.info(
            "trading enabled on %s: params=%s sqrt_price_x96=%d liquidity=%d",
            self.address,
            params_hash,
            params.sqrt_price_deposit_x96,
            params.liquidity,
        )

    def disable_trading(self, ctx: CallContext) -> None:
        if ctx.caller != self.manager:
            raise OnlyManagerCanCall(f"disable_trading called by {ctx.caller}")
        self._state = replace(self._state, trading_params_hash=NO_TRADING)
        logger.info("trading disabled on %s", self.address)

    # Post-trade reconciliation

    def post_hook(self, ctx: CallContext, params: TradingParams) -> None:
        """
        Advance the live price by the balance increase since the last snapshot.

        The side whose balance grew is the trade input. If neither grew the
        price stays put; if both grew the input side is ambiguous and the
        call fails.
        """
        if ctx.caller != self.settlement:
            raise OnlySettlementCanCall(f"post_hook called by {ctx.caller}")
        self._require_params_hash(params)

        state = self._state
        balance0, balance1 = self.balances()
        delta0 = balance0 - state.last_balance0
        delta1 = balance1 - state.last_balance1

        if delta0 > 0 and delta1 > 0:
            raise AmbiguousBalanceChange(delta0, delta1)
        if delta0 > 0:
            new_price = next_sqrt_price(state.last_sqrt_price_x96, state.last_liquidity, delta0, True)
        elif delta1 > 0:
            new_price = next_sqrt_price(state.last_sqrt_price_x96, state.last_liquidity, delta1, False)
        else:
            new_price = state.last_sqrt_price_x96
            logger.warning("post_hook on %s saw no balance increase (delta0=%d, delta1=%d)", self.address, delta0, delta1)

        self._state = replace(
            state,
            last_sqrt_price_x96=new_price,
            last_balance0=balance0,
            last_balance1=balance1,
        )
        logger.info(
            "reconciled %s: sqrt_price_x96 %d -> %d, balances (%d, %d)",
            self.address,
            state.last_sqrt_price_x96,
            new_price,
            balance0,
            balance1,
        )

    # Off-chain order construction

    def get_tradeable_order(self, ctx: CallContext, params: TradingParams, target_sqrt_price_x96: int) -> Order:
        """
        Build the order that moves the live price to `target_sqrt_price_x96`.

        The returned order passes `verify` at `ctx.timestamp` by construction.

        Raises:
            TradingParamsDoNotMatchHash: If `params` is not the enabled config
            PollTryAtEpoch: If no order can be produced right now
        """
        self._require_params_hash(params)
        state = self._state
        retry_at = ctx.timestamp + 1
        balance0, balance1 = self.balances()

        # A trade executed but not yet reconciled leaves the live price stale.
        _checked_sub(balance0, state.last_balance0, retry_at, "token0 balance below last snapshot")
        _checked_sub(balance1, state.last_balance1, retry_at, "token1 balance below last snapshot")

        amount_in, input_is_token0 = amount_in_to_reach_price(
            state.last_sqrt_price_x96,
            state.last_liquidity,
            target_sqrt_price_x96,
        )
        if amount_in == 0:
            raise PollTryAtEpoch(retry_at, "no trade at target price")
        amount_out = amount_out_from_amount_in(
            state.last_sqrt_price_x96,
            state.last_liquidity,
            amount_in,
            input_is_token0,
        )
        if input_is_token0:
            buy_token, sell_token, sell_balance = self.token0, self.token1, balance1
        else:
            buy_token, sell_token, sell_balance = self.token1, self.token0, balance0
        _checked_sub(sell_balance, amount_out, retry_at, "insufficient sell token balance")

        traded_token0 = amount_in if input_is_token0 else amount_out
        if traded_token0 < params.min_traded_token0:
            raise PollTryAtEpoch(retry_at, "traded amount too small")

        return Order(
            sell_token=sell_token,
            buy_token=buy_token,
            receiver=ZERO_ADDRESS,
            sell_amount=amount_out,
            buy_amount=amount_in,
            valid_to=ctx.timestamp + self.max_order_duration,
            app_data=params.app_data,
            fee_amount=0,
            kind=OrderKind.SELL,
            partially_fillable=False,
            sell_token_balance=SellTokenSource.ERC20,
            buy_token_balance=BuyTokenDestination.ERC20,
        )


def _checked_sub(a: int, b: int, retry_at: int, reason: str) -> int:
    """`a - b`, surfacing an underflow as a retry signal instead of a fault."""
    if b > a:
        raise PollTryAtEpoch(retry_at, reason)
    return a - b
