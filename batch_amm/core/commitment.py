"""
Commitment slot: at most one admissible order per settlement call.

The committed hash lives in the call's transient store, never in the AMM's
persisted state, so it is implicitly reset when the settlement call ends.
"""

from __future__ import annotations

from ..state.balances import Address
from ..state.canonical import ZERO_HASH, canonical_address, canonical_hash
from .context import CallContext
from .errors import CommitOutsideOfSettlement, OrderDoesNotMatchCommitmentHash


EMPTY_COMMITMENT = ZERO_HASH

_COMMITMENT_KEY = "commitment"


class CommitmentSlot:
    """Transient commitment cell owned by the contract at `owner`."""

    def __init__(self, owner: Address, settlement: Address):
        self.owner = canonical_address(owner, name="owner")
        self.settlement = canonical_address(settlement, name="settlement")

    def commit(self, ctx: CallContext, order_hash: str) -> None:
        """
        Restrict this call to the order with hash `order_hash`.

        Writing EMPTY_COMMITMENT lifts the restriction again.

        Raises:
            CommitOutsideOfSettlement: If the caller is not the settlement contract
        """
        if ctx.caller != self.settlement:
            raise CommitOutsideOfSettlement(f"commit called by {ctx.caller}")
        ctx.transient.store(self.owner, _COMMITMENT_KEY, canonical_hash(order_hash, name="order_hash"))

    def commitment(self, ctx: CallContext) -> str:
        return ctx.transient.load(self.owner, _COMMITMENT_KEY, EMPTY_COMMITMENT)

    def require_matching_commitment(self, ctx: CallContext, candidate_hash: str) -> None:
        committed = self.commitment(ctx)
        if committed == EMPTY_COMMITMENT:
            return
        if canonical_hash(candidate_hash, name="candidate_hash") != committed:
            raise OrderDoesNotMatchCommitmentHash(
                f"order {candidate_hash} does not match commitment {committed}"
            )
