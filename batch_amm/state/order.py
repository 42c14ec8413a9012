"""
Order data model for batch settlement.

Orders are authored by traders (or constructed on behalf of an AMM) and
submitted to the settlement engine. The AMM core only reads them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping

from .balances import Address, Amount, TokenId
from .canonical import (
    ZERO_ADDRESS,
    canonical_address,
    canonical_hash,
    hash_to_bytes,
    hash_labeled,
    require_uint,
)


class OrderKind(Enum):
    """Which side of the order is the exact amount."""
    SELL = "sell"
    BUY = "buy"


class SellTokenSource(Enum):
    """Where the sell token is pulled from."""
    ERC20 = "erc20"
    EXTERNAL = "external"
    INTERNAL = "internal"


class BuyTokenDestination(Enum):
    """Where the buy token is delivered to."""
    ERC20 = "erc20"
    INTERNAL = "internal"


_ORDER_KEYS = (
    "sell_token",
    "buy_token",
    "receiver",
    "sell_amount",
    "buy_amount",
    "valid_to",
    "app_data",
    "fee_amount",
    "kind",
    "partially_fillable",
    "sell_token_balance",
    "buy_token_balance",
)


@dataclass(frozen=True)
class Order:
    """
    A settlement order, seen from its owner.

    The owner gives `sell_amount` of `sell_token` and receives `buy_amount` of
    `buy_token`. A zero `receiver` means "the owner itself".
    """
    sell_token: TokenId
    buy_token: TokenId
    receiver: Address
    sell_amount: Amount
    buy_amount: Amount
    valid_to: int
    app_data: str
    fee_amount: Amount
    kind: OrderKind
    partially_fillable: bool
    sell_token_balance: SellTokenSource = SellTokenSource.ERC20
    buy_token_balance: BuyTokenDestination = BuyTokenDestination.ERC20

    def __post_init__(self):
        """Validate field types and canonicalize identifiers."""
        object.__setattr__(self, "sell_token", canonical_address(self.sell_token, name="sell_token"))
        object.__setattr__(self, "buy_token", canonical_address(self.buy_token, name="buy_token"))
        object.__setattr__(self, "receiver", canonical_address(self.receiver, name="receiver"))
        object.__setattr__(self, "app_data", canonical_hash(self.app_data, name="app_data"))
        require_uint("sell_amount", self.sell_amount)
        require_uint("buy_amount", self.buy_amount)
        require_uint("fee_amount", self.fee_amount)
        require_uint("valid_to", self.valid_to, bits=32)
        if not isinstance(self.kind, OrderKind):
            raise TypeError(f"Invalid order kind: {self.kind!r}")
        if not isinstance(self.partially_fillable, bool):
            raise TypeError("partially_fillable must be a bool")
        if not isinstance(self.sell_token_balance, SellTokenSource):
            raise TypeError(f"Invalid sell_token_balance: {self.sell_token_balance!r}")
        if not isinstance(self.buy_token_balance, BuyTokenDestination):
            raise TypeError(f"Invalid buy_token_balance: {self.buy_token_balance!r}")

    @property
    def receiver_is_owner(self) -> bool:
        return self.receiver == ZERO_ADDRESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sell_token": self.sell_token,
            "buy_token": self.buy_token,
            "receiver": self.receiver,
            "sell_amount": self.sell_amount,
            "buy_amount": self.buy_amount,
            "valid_to": self.valid_to,
            "app_data": self.app_data,
            "fee_amount": self.fee_amount,
            "kind": self.kind.value,
            "partially_fillable": self.partially_fillable,
            "sell_token_balance": self.sell_token_balance.value,
            "buy_token_balance": self.buy_token_balance.value,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Order":
        if not isinstance(raw, Mapping):
            raise TypeError("order must be a mapping")
        if set(raw.keys()) != set(_ORDER_KEYS):
            missing = set(_ORDER_KEYS) - set(raw.keys())
            extra = set(raw.keys()) - set(_ORDER_KEYS)
            raise ValueError(f"Order field mismatch: missing {sorted(missing)}, extra {sorted(extra)}")
        return cls(
            sell_token=raw["sell_token"],
            buy_token=raw["buy_token"],
            receiver=raw["receiver"],
            sell_amount=raw["sell_amount"],
            buy_amount=raw["buy_amount"],
            valid_to=raw["valid_to"],
            app_data=raw["app_data"],
            fee_amount=raw["fee_amount"],
            kind=OrderKind(raw["kind"]),
            partially_fillable=raw["partially_fillable"],
            sell_token_balance=SellTokenSource(raw["sell_token_balance"]),
            buy_token_balance=BuyTokenDestination(raw["buy_token_balance"]),
        )


def order_hash(order: Order, domain_separator: str) -> str:
    """
    Domain-bound order digest.

    Formula: H(domain_sep("order") || domain_separator || canonical_json(order))

    The same order hashes differently under different settlement deployments,
    so a signature for one deployment cannot be replayed against another.
    """
    if not isinstance(order, Order):
        raise TypeError("order must be an Order")
    return hash_labeled("order", order.to_dict(), prefix=hash_to_bytes(domain_separator, name="domain_separator"))
