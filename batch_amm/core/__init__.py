"""
Core AMM algorithms
"""

from .amm import ERC1271_MAGIC_VALUE, ConcentratedAmm
from .commitment import EMPTY_COMMITMENT, CommitmentSlot
from .context import CallContext, TransientStore, new_call
from .curve import (
    Q96,
    amount_in_to_reach_price,
    amount_out_from_amount_in,
    next_sqrt_price,
    sqrt_price_x96_from_reserves,
)
from .errors import (
    AmbiguousBalanceChange,
    AmmError,
    ArithmeticFault,
    AuthorizationError,
    CommitOutsideOfSettlement,
    InvalidToken,
    InvalidTradingParams,
    OnlyManagerCanCall,
    OnlySettlementCanCall,
    OrderDoesNotMatchCommitmentHash,
    OrderDoesNotMatchMessageHash,
    OrderNotValid,
    OrderRejected,
    PollTryAtEpoch,
    ReconciliationError,
    StaleOrBadConfig,
    TradingParamsDoNotMatchHash,
)
from .verifier import MAX_ORDER_DURATION, verify

__all__ = [
    "ERC1271_MAGIC_VALUE",
    "ConcentratedAmm",
    "EMPTY_COMMITMENT",
    "CommitmentSlot",
    "CallContext",
    "TransientStore",
    "new_call",
    "Q96",
    "amount_in_to_reach_price",
    "amount_out_from_amount_in",
    "next_sqrt_price",
    "sqrt_price_x96_from_reserves",
    "AmbiguousBalanceChange",
    "AmmError",
    "ArithmeticFault",
    "AuthorizationError",
    "CommitOutsideOfSettlement",
    "InvalidToken",
    "InvalidTradingParams",
    "OnlyManagerCanCall",
    "OnlySettlementCanCall",
    "OrderDoesNotMatchCommitmentHash",
    "OrderDoesNotMatchMessageHash",
    "OrderNotValid",
    "OrderRejected",
    "PollTryAtEpoch",
    "ReconciliationError",
    "StaleOrBadConfig",
    "TradingParamsDoNotMatchHash",
    "MAX_ORDER_DURATION",
    "verify",
]
