"""
State management for the batch-settled concentrated AMM
"""

from .amm_state import AmmState
from .balances import TokenLedger
from .order import BuyTokenDestination, Order, OrderKind, SellTokenSource, order_hash
from .params import NO_TRADING, TradingParams, trading_params_hash

__all__ = [
    "AmmState",
    "TokenLedger",
    "Order",
    "OrderKind",
    "SellTokenSource",
    "BuyTokenDestination",
    "order_hash",
    "NO_TRADING",
    "TradingParams",
    "trading_params_hash",
]
