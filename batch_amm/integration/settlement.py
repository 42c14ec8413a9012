"""
Batch settlement harness (imperative shell).

A small model of the external settlement engine, enough to drive
the AMM callback sequence end to end:

1. fresh call context (empty transient store) per `settle` call
2. pre-interactions (e.g. `commit`)
3. signature checks for every trade (BLS for traders, EIP-1271 for contracts)
4. token movements (full fills: all sells in, then all buys out)
5. post-interactions (e.g. `post_hook`)

Any failure rolls back the ledger and every registered contract's state, and
is reported as `SettleResult(ok=False, error=...)`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set

from ..agents.order_signer import (
    BLS_PUBKEY_BYTES,
    BLS_SIGNATURE_BYTES,
    SignedOrder,
    address_from_pubkey,
    verify_order_signature,
)
from ..core.amm import ERC1271_MAGIC_VALUE, ConcentratedAmm
from ..core.context import CallContext, new_call
from ..core.errors import AmmError
from ..state.balances import Address, TokenLedger
from ..state.canonical import canonical_address, hash_labeled
from ..state.codec import encode_order_and_params
from ..state.order import Order, order_hash
from ..state.params import TradingParams

logger = logging.getLogger(__name__)


class SigningScheme(Enum):
    BLS = "bls"
    EIP1271 = "eip1271"


@dataclass(frozen=True)
class Trade:
    """
    An order to execute in full.

    For `SigningScheme.BLS`, `signature` is `pubkey || bls_signature`; for
    `SigningScheme.EIP1271` it is the payload handed to the owner contract.
    """
    order: Order
    owner: Address
    scheme: SigningScheme
    signature: bytes

    @classmethod
    def from_signed_order(cls, signed: SignedOrder) -> "Trade":
        raw = bytes.fromhex(signed.pubkey[2:]) + bytes.fromhex(signed.signature[2:])
        return cls(order=signed.order, owner=signed.owner, scheme=SigningScheme.BLS, signature=raw)

    @classmethod
    def for_amm(cls, amm: ConcentratedAmm, order: Order, params: TradingParams) -> "Trade":
        return cls(
            order=order,
            owner=amm.address,
            scheme=SigningScheme.EIP1271,
            signature=encode_order_and_params(order, params),
        )


@dataclass(frozen=True)
class Interaction:
    """A call the settlement contract makes on `target` during `settle`."""
    target: Address
    call: Callable[[CallContext], Any]
    label: str = ""


@dataclass
class Batch:
    trades: List[Trade] = field(default_factory=list)
    pre_interactions: List[Interaction] = field(default_factory=list)
    post_interactions: List[Interaction] = field(default_factory=list)


@dataclass(frozen=True)
class SettleResult:
    ok: bool
    executed: List[str] = field(default_factory=list)
    error: Optional[str] = None


def compute_domain_separator(chain_id: str, settlement: Address) -> str:
    """Binds order hashes to one settlement deployment on one chain."""
    if not isinstance(chain_id, str) or not chain_id:
        raise ValueError("chain_id must be a non-empty str")
    return hash_labeled(
        "domain",
        {
            "name": "batch_amm settlement",
            "chain_id": chain_id,
            "verifying_contract": canonical_address(settlement, name="settlement"),
        },
    )


class SettlementEngine:
    """In-process settlement contract at `address`."""

    def __init__(self, *, address: Address, chain_id: str, ledger: TokenLedger):
        self.address = canonical_address(address, name="address")
        self.chain_id = chain_id
        self.domain_separator = compute_domain_separator(chain_id, self.address)
        self._ledger = ledger
        self._solvers: Set[Address] = set()
        self._contracts: Dict[Address, ConcentratedAmm] = {}

    def register_solver(self, solver: Address) -> None:
        self._solvers.add(canonical_address(solver, name="solver"))

    def register_contract(self, amm: ConcentratedAmm) -> None:
        if amm.settlement != self.address:
            raise ValueError(f"{amm.address} is bound to settlement {amm.settlement}, not {self.address}")
        if amm.domain_separator != self.domain_separator:
            raise ValueError(f"{amm.address} uses a foreign domain separator")
        self._contracts[amm.address] = amm

    # Interaction builders

    def commit_interaction(self, amm: ConcentratedAmm, order: Order) -> Interaction:
        digest = order_hash(order, self.domain_separator)
        return Interaction(target=amm.address, call=lambda ctx: amm.commit(ctx, digest), label="commit")

    def post_hook_interaction(self, amm: ConcentratedAmm, params: TradingParams) -> Interaction:
        return Interaction(target=amm.address, call=lambda ctx: amm.post_hook(ctx, params), label="post_hook")

    # Settlement

    def settle(self, batch: Batch, *, solver: Address, timestamp: int) -> SettleResult:
        solver = canonical_address(solver, name="solver")
        if solver not in self._solvers:
            return SettleResult(ok=False, error=f"Solver not allowed: {solver}")

        ledger_snapshot = self._ledger.snapshot()
        contract_states = {addr: amm.state for addr, amm in self._contracts.items()}
        ctx = new_call(solver, timestamp).as_caller(self.address)

        try:
            for interaction in batch.pre_interactions:
                interaction.call(ctx)
            executed = [self._check_trade(ctx, trade) for trade in batch.trades]
            self._move_tokens(batch.trades)
            for interaction in batch.post_interactions:
                interaction.call(ctx)
        except (AmmError, ValueError, TypeError) as exc:
            self._ledger.restore(ledger_snapshot)
            for addr, saved in contract_states.items():
                # Contract storage reverts together with the ledger.
                self._contracts[addr].restore_state(saved)
            logger.warning("settlement by %s reverted: %s: %s", solver, type(exc).__name__, exc)
            return SettleResult(ok=False, error=f"{type(exc).__name__}: {exc}")

        logger.info("settled %d trades for %s", len(executed), solver)
        return SettleResult(ok=True, executed=executed)

    def _check_trade(self, ctx: CallContext, trade: Trade) -> str:
        order = trade.order
        digest = order_hash(order, self.domain_separator)
        if order.valid_to < ctx.timestamp:
            raise ValueError(f"Order expired: {digest}")

        if trade.scheme is SigningScheme.BLS:
            if len(trade.signature) != BLS_PUBKEY_BYTES + BLS_SIGNATURE_BYTES:
                raise ValueError(f"Malformed BLS signature for {digest}")
            signed = SignedOrder(
                order=order,
                pubkey="0x" + trade.signature[:BLS_PUBKEY_BYTES].hex(),
                signature="0x" + trade.signature[BLS_PUBKEY_BYTES:].hex(),
            )
            if address_from_pubkey(signed.pubkey) != canonical_address(trade.owner, name="owner"):
                raise ValueError(f"Signer is not the owner of {digest}")
            if not verify_order_signature(signed, self.domain_separator):
                raise ValueError(f"Invalid signature for {digest}")
        else:
            contract = self._contracts.get(canonical_address(trade.owner, name="owner"))
            if contract is None:
                raise ValueError(f"Unknown contract owner: {trade.owner}")
            if contract.is_valid_signature(ctx, digest, trade.signature) != ERC1271_MAGIC_VALUE:
                raise ValueError(f"Contract rejected signature for {digest}")
        return digest

    def _move_tokens(self, trades: List[Trade]) -> None:
        for trade in trades:
            self._ledger.transfer(trade.order.sell_token, trade.owner, self.address, trade.order.sell_amount)
        for trade in trades:
            order = trade.order
            recipient = trade.owner if order.receiver_is_owner else order.receiver
            self._ledger.transfer(order.buy_token, self.address, recipient, order.buy_amount)
