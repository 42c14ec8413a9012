"""
Settlement-side integration: the settlement harness, polling and deployment config.
"""

from .config import AmmConfig, amm_config_from_mapping, build_amm, load_amm_config
from .poller import PollResult, batch_for_amm_orders, poll_amm
from .settlement import (
    Batch,
    Interaction,
    SettleResult,
    SettlementEngine,
    SigningScheme,
    Trade,
    compute_domain_separator,
)

__all__ = [
    "AmmConfig",
    "amm_config_from_mapping",
    "build_amm",
    "load_amm_config",
    "PollResult",
    "batch_for_amm_orders",
    "poll_amm",
    "Batch",
    "Interaction",
    "SettleResult",
    "SettlementEngine",
    "SigningScheme",
    "Trade",
    "compute_domain_separator",
]
