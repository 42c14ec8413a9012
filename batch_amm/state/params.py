"""
Trading parameters (content-addressed configuration).

The AMM never stores a `TradingParams` value, only its hash. Every caller that
wants to interact with the stored configuration re-supplies the full struct,
which is re-hashed and compared.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping

from .canonical import canonical_hash, hash_labeled, require_uint


NO_TRADING = "0x" + "00" * 32

MAX_LIQUIDITY_BITS = 128
MAX_SQRT_PRICE_BITS = 160


@dataclass(frozen=True)
class TradingParams:
    """
    Attributes:
        min_traded_token0: Minimum trade size, measured on the token0 side
        sqrt_price_deposit_x96: Q64.96 square-root price when trading was enabled
        liquidity: Virtual liquidity constant of the curve
        app_data: 32-byte application tag every order must carry
    """
    min_traded_token0: int
    sqrt_price_deposit_x96: int
    liquidity: int
    app_data: str

    def __post_init__(self):
        require_uint("min_traded_token0", self.min_traded_token0)
        require_uint("sqrt_price_deposit_x96", self.sqrt_price_deposit_x96, bits=MAX_SQRT_PRICE_BITS)
        require_uint("liquidity", self.liquidity, bits=MAX_LIQUIDITY_BITS)
        object.__setattr__(self, "app_data", canonical_hash(self.app_data, name="app_data"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min_traded_token0": self.min_traded_token0,
            "sqrt_price_deposit_x96": self.sqrt_price_deposit_x96,
            "liquidity": self.liquidity,
            "app_data": self.app_data,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "TradingParams":
        if not isinstance(raw, Mapping):
            raise TypeError("trading params must be a mapping")
        expected = {"min_traded_token0", "sqrt_price_deposit_x96", "liquidity", "app_data"}
        if set(raw.keys()) != expected:
            raise ValueError(f"trading params must have exactly the keys {sorted(expected)}")
        return cls(
            min_traded_token0=raw["min_traded_token0"],
            sqrt_price_deposit_x96=raw["sqrt_price_deposit_x96"],
            liquidity=raw["liquidity"],
            app_data=raw["app_data"],
        )


def trading_params_hash(params: TradingParams) -> str:
    """Deterministic content hash of `params`; never equal to `NO_TRADING` in practice."""
    if not isinstance(params, TradingParams):
        raise TypeError("params must be TradingParams")
    return hash_labeled("trading_params", params.to_dict())
