"""
Trader-side agents: order creation and BLS signing
"""

from .order_signer import (
    SignedOrder,
    address_from_pubkey,
    create_order,
    keygen,
    pubkey_for,
    sign_order,
    verify_order_signature,
)

__all__ = [
    "SignedOrder",
    "address_from_pubkey",
    "create_order",
    "keygen",
    "pubkey_for",
    "sign_order",
    "verify_order_signature",
]
