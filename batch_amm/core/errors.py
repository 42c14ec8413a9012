"""Exception types for the AMM core.

Every failure is immediate and atomic: the raising operation has written
nothing. Categories:

- authorization: wrong caller for a guarded entry point
- stale or bad config: trading params do not match the stored hash
- order rejected: structural or economic order checks
- commitment mismatch: candidate order is not the committed one
- arithmetic fault: a value left its integer domain
- reconciliation conflict: observed balances do not describe a single trade
"""

from __future__ import annotations


class AmmError(Exception):
    """Base class for all AMM core failures."""


# Authorization


class AuthorizationError(AmmError):
    """Raised when a guarded entry point is called by the wrong identity."""


class CommitOutsideOfSettlement(AuthorizationError):
    """`commit` was called by someone other than the settlement contract."""


class OnlySettlementCanCall(AuthorizationError):
    """A settlement-only hook was called by someone else."""


class OnlyManagerCanCall(AuthorizationError):
    """A manager-only operation was called by someone else."""


# Stale or bad config


class StaleOrBadConfig(AmmError):
    """Raised when the supplied configuration is not the accepted one."""


class TradingParamsDoNotMatchHash(StaleOrBadConfig):
    """The re-hashed trading params differ from the stored hash (or trading is disabled)."""


class InvalidTradingParams(StaleOrBadConfig):
    """The trading params cannot be enabled (e.g. zero liquidity)."""


# Order rejected


class OrderRejected(AmmError):
    """Raised when a candidate order cannot be accepted."""


class OrderNotValid(OrderRejected):
    """An order failed one of the verifier checks; `reason` names which."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class InvalidToken(OrderRejected):
    """A token is neither of the two tokens this AMM trades."""

    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"invalid token: {token}")


class OrderDoesNotMatchMessageHash(OrderRejected):
    """The supplied order does not hash to the message being verified."""


# Commitment


class OrderDoesNotMatchCommitmentHash(AmmError):
    """Another order was committed to for this settlement call."""


# Arithmetic


class ArithmeticFault(AmmError):
    """An intermediate or final value left its integer domain."""


# Reconciliation


class ReconciliationError(AmmError):
    """Post-trade balances cannot be mapped onto a price update."""


class AmbiguousBalanceChange(ReconciliationError):
    """Both token balances increased; the trade input side cannot be inferred."""

    def __init__(self, delta0: int, delta1: int) -> None:
        self.delta0 = delta0
        self.delta1 = delta1
        super().__init__(f"both balances increased: delta0={delta0}, delta1={delta1}")


# Retry signal


class PollTryAtEpoch(AmmError):
    """No order can be produced right now; poll again at `epoch`."""

    def __init__(self, epoch: int, reason: str) -> None:
        self.epoch = epoch
        self.reason = reason
        super().__init__(f"try again at {epoch}: {reason}")
