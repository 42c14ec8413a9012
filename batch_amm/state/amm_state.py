"""
Persisted AMM state.

A frozen snapshot; every mutation produces a new value via `dataclasses.replace`
so that a failing operation can never leave a half-written state behind.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from .params import NO_TRADING


@dataclass(frozen=True)
class AmmState:
    """
    Attributes:
        trading_params_hash: Hash of the accepted TradingParams, or NO_TRADING
        last_sqrt_price_x96: Live Q64.96 square-root price
        last_liquidity: Live virtual liquidity
        last_balance0: token0 balance observed at the last enable/post-hook
        last_balance1: token1 balance observed at the last enable/post-hook
    """
    trading_params_hash: str = NO_TRADING
    last_sqrt_price_x96: int = 0
    last_liquidity: int = 0
    last_balance0: int = 0
    last_balance1: int = 0

    @property
    def trading_enabled(self) -> bool:
        return self.trading_params_hash != NO_TRADING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trading_params_hash": self.trading_params_hash,
            "last_sqrt_price_x96": self.last_sqrt_price_x96,
            "last_liquidity": self.last_liquidity,
            "last_balance0": self.last_balance0,
            "last_balance1": self.last_balance1,
        }
