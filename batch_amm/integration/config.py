"""
Deployment configuration for an AMM instance.

Configuration is a YAML mapping, e.g.:

    address: "0x00000000000000000000000000000000000000a1"
    token0: "0x1111111111111111111111111111111111111111"
    token1: "0x2222222222222222222222222222222222222222"
    settlement: "0x9008d19f58aabd9ed0d60971565aa8510560ab41"
    manager: "0x00000000000000000000000000000000000000b0"
    chain_id: "mainnet"
    max_order_duration: 300

`BATCH_AMM_CHAIN_ID` and `BATCH_AMM_MAX_ORDER_DURATION` override the file.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Union

import yaml

from ..core.amm import ConcentratedAmm
from ..core.verifier import MAX_ORDER_DURATION
from ..state.balances import Address, TokenId, TokenLedger
from ..state.canonical import canonical_address
from .settlement import SettlementEngine

logger = logging.getLogger(__name__)

# One day.
MAX_ORDER_DURATION_CAP = 24 * 60 * 60

_REQUIRED_KEYS = ("address", "token0", "token1", "settlement", "manager")
_OPTIONAL_KEYS = ("chain_id", "max_order_duration")


def _env_int(name: str, default: int, *, lo: int, hi: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return int(default)
    try:
        v = int(raw.strip())
    except ValueError:
        logger.warning("ignoring non-integer %s=%r", name, raw)
        return int(default)
    if v < lo:
        return int(lo)
    if v > hi:
        return int(hi)
    return int(v)


def _env_str(name: str, default: str) -> str:
    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip()
    return v if v else default


@dataclass(frozen=True)
class AmmConfig:
    """Fixed principals and policy of one AMM deployment."""

    address: Address
    token0: TokenId
    token1: TokenId
    settlement: Address
    manager: Address
    chain_id: str = "mainnet"
    max_order_duration: int = MAX_ORDER_DURATION

    def __post_init__(self):
        for name in _REQUIRED_KEYS:
            object.__setattr__(self, name, canonical_address(getattr(self, name), name=name))
        if self.token0 == self.token1:
            raise ValueError("token0 and token1 must differ")
        if not isinstance(self.chain_id, str) or not self.chain_id:
            raise ValueError("chain_id must be a non-empty str")
        d = self.max_order_duration
        if not isinstance(d, int) or isinstance(d, bool) or not (0 < d <= MAX_ORDER_DURATION_CAP):
            raise ValueError(f"max_order_duration must be in (0, {MAX_ORDER_DURATION_CAP}]: {d!r}")


def amm_config_from_mapping(raw: Mapping[str, Any]) -> AmmConfig:
    if not isinstance(raw, Mapping):
        raise TypeError("config must be a mapping")
    missing = [k for k in _REQUIRED_KEYS if k not in raw]
    if missing:
        raise ValueError(f"config missing required keys: {missing}")
    unknown = sorted(set(raw.keys()) - set(_REQUIRED_KEYS) - set(_OPTIONAL_KEYS))
    if unknown:
        raise ValueError(f"config has unknown keys: {unknown}")

    chain_id = _env_str("BATCH_AMM_CHAIN_ID", str(raw.get("chain_id", "mainnet")))
    max_order_duration = raw.get("max_order_duration", MAX_ORDER_DURATION)
    # Ill-typed file values go to AmmConfig unconverted and are rejected there.
    if isinstance(max_order_duration, int) and not isinstance(max_order_duration, bool):
        max_order_duration = _env_int(
            "BATCH_AMM_MAX_ORDER_DURATION",
            max_order_duration,
            lo=1,
            hi=MAX_ORDER_DURATION_CAP,
        )
    return AmmConfig(
        address=raw["address"],
        token0=raw["token0"],
        token1=raw["token1"],
        settlement=raw["settlement"],
        manager=raw["manager"],
        chain_id=chain_id,
        max_order_duration=max_order_duration,
    )


def load_amm_config(path: Union[str, Path]) -> AmmConfig:
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if not isinstance(obj, Mapping):
        raise TypeError("config YAML must be a mapping")
    return amm_config_from_mapping(obj)


def build_amm(config: AmmConfig, *, ledger: TokenLedger, settlement: SettlementEngine) -> ConcentratedAmm:
    """Wire an AMM to `settlement` and register it as a participant."""
    if settlement.address != config.settlement:
        raise ValueError(f"config expects settlement {config.settlement}, got {settlement.address}")
    if settlement.chain_id != config.chain_id:
        raise ValueError(f"config expects chain {config.chain_id!r}, got {settlement.chain_id!r}")
    amm = ConcentratedAmm(
        address=config.address,
        token0=config.token0,
        token1=config.token1,
        settlement=config.settlement,
        manager=config.manager,
        domain_separator=settlement.domain_separator,
        ledger=ledger,
        max_order_duration=config.max_order_duration,
    )
    settlement.register_contract(amm)
    return amm
