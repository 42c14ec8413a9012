"""
Order creation and signing for traders.

Traders sign the domain-bound order hash with BLS12-381 (`py_ecc`, G2Basic
scheme). AMM orders are not signed this way: their "signature" is the encoded
(order, params) payload checked by the AMM itself.
"""

import hashlib
from dataclasses import dataclass
from typing import Optional

from py_ecc.bls import G2Basic

from ..state.balances import Address, Amount, TokenId
from ..state.canonical import ZERO_ADDRESS, ZERO_HASH, canonical_hex_fixed_allow_0x, hash_to_bytes
from ..state.order import BuyTokenDestination, Order, OrderKind, SellTokenSource, order_hash

BLS_PUBKEY_BYTES = 48
BLS_SIGNATURE_BYTES = 96


@dataclass(frozen=True)
class SignedOrder:
    """
    Order with a BLS signature over its hash.

    Attributes:
        order: The order
        pubkey: BLS12-381 G1 public key (0x-hex, 48 bytes)
        signature: BLS12-381 G2 signature (0x-hex, 96 bytes)
    """
    order: Order
    pubkey: str
    signature: str

    def __post_init__(self):
        object.__setattr__(self, "pubkey", canonical_hex_fixed_allow_0x(self.pubkey, nbytes=BLS_PUBKEY_BYTES, name="pubkey"))
        object.__setattr__(
            self,
            "signature",
            canonical_hex_fixed_allow_0x(self.signature, nbytes=BLS_SIGNATURE_BYTES, name="signature"),
        )

    @property
    def owner(self) -> Address:
        return address_from_pubkey(self.pubkey)


def address_from_pubkey(pubkey: str) -> Address:
    """Trader address: the last 20 bytes of sha256(pubkey)."""
    pk = bytes.fromhex(canonical_hex_fixed_allow_0x(pubkey, nbytes=BLS_PUBKEY_BYTES, name="pubkey")[2:])
    return "0x" + hashlib.sha256(pk).digest()[-20:].hex()


def create_order(
    sell_token: TokenId,
    buy_token: TokenId,
    sell_amount: Amount,
    buy_amount: Amount,
    valid_to: int,
    kind: OrderKind = OrderKind.SELL,
    app_data: str = ZERO_HASH,
    receiver: Optional[Address] = None,
    partially_fillable: bool = False,
) -> Order:
    """
    Create a plain trader order (ERC20 balances, no fee).

    Args:
        sell_token: Token the trader gives
        buy_token: Token the trader receives
        sell_amount: Amount given
        buy_amount: Amount received
        valid_to: Expiration timestamp
        kind: Sell or buy order
        app_data: Application tag
        receiver: Proceeds recipient (defaults to the owner)
        partially_fillable: Whether partial fills are allowed

    Returns:
        Order object
    """
    if sell_amount <= 0:
        raise ValueError("sell_amount must be positive")
    if buy_amount <= 0:
        raise ValueError("buy_amount must be positive")
    return Order(
        sell_token=sell_token,
        buy_token=buy_token,
        receiver=receiver or ZERO_ADDRESS,
        sell_amount=sell_amount,
        buy_amount=buy_amount,
        valid_to=valid_to,
        app_data=app_data,
        fee_amount=0,
        kind=kind,
        partially_fillable=partially_fillable,
        sell_token_balance=SellTokenSource.ERC20,
        buy_token_balance=BuyTokenDestination.ERC20,
    )


def keygen(seed: bytes) -> int:
    """Deterministic BLS secret key from a seed of at least 32 bytes."""
    if len(seed) < 32:
        raise ValueError("seed must be at least 32 bytes")
    return G2Basic.KeyGen(seed)


def pubkey_for(private_key: int) -> str:
    return "0x" + G2Basic.SkToPk(private_key).hex()


def sign_order(order: Order, private_key: int, domain_separator: str) -> SignedOrder:
    """
    Sign the domain-bound hash of `order`.

    Signature scheme: BLS G2Basic over the 32 raw bytes of
    `order_hash(order, domain_separator)`.
    """
    message = hash_to_bytes(order_hash(order, domain_separator), name="order_hash")
    signature = G2Basic.Sign(private_key, message)
    return SignedOrder(order=order, pubkey=pubkey_for(private_key), signature="0x" + signature.hex())


def verify_order_signature(signed_order: SignedOrder, domain_separator: str) -> bool:
    """True iff the signature is valid for the order under `domain_separator`."""
    message = hash_to_bytes(order_hash(signed_order.order, domain_separator), name="order_hash")
    pubkey_bytes = bytes.fromhex(signed_order.pubkey[2:])
    signature_bytes = bytes.fromhex(signed_order.signature[2:])
    try:
        return bool(G2Basic.Verify(pubkey_bytes, message, signature_bytes))
    except (ValueError, AssertionError):
        # Malformed curve points
        return False
