"""
Token balance tracking with deterministic ordering.

Implements TokenLedger[Address, TokenId] -> Amount, the balance source the AMM
reads before and after every trade.
"""

from typing import Dict, Tuple

from .canonical import canonical_address


# Type aliases
Address = str  # 20-byte hex string (0x...)
TokenId = str  # token contract address, 20-byte hex string
Amount = int  # Non-negative integer (arbitrary precision)


class TokenLedger:
    """
    Deterministic balance table mapping (holder, token) -> amount.

    Reads are authoritative and uncached: `balance_of` always reflects every
    transfer applied so far. Callers that need ordering must sort keys
    explicitly (see `snapshot`).
    """

    def __init__(self):
        """Initialize empty ledger."""
        self._balances: Dict[Tuple[Address, TokenId], Amount] = {}

    def balance_of(self, token: TokenId, holder: Address) -> Amount:
        """Balance of `token` held by `holder`. Returns 0 if not found."""
        key = (canonical_address(holder, name="holder"), canonical_address(token, name="token"))
        return self._balances.get(key, 0)

    def set(self, holder: Address, token: TokenId, amount: Amount) -> None:
        """
        Set balance for (holder, token).

        Raises:
            ValueError: If amount is negative
        """
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise TypeError("amount must be an int")
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        key = (canonical_address(holder, name="holder"), canonical_address(token, name="token"))
        if amount == 0:
            # Keep the table sparse
            self._balances.pop(key, None)
        else:
            self._balances[key] = amount

    def mint(self, holder: Address, token: TokenId, amount: Amount) -> None:
        """Credit `amount` out of thin air (test and bootstrap helper)."""
        if amount < 0:
            raise ValueError(f"Mint amount must be non-negative: {amount}")
        self.set(holder, token, self.balance_of(token, holder) + amount)

    def transfer(self, token: TokenId, sender: Address, recipient: Address, amount: Amount) -> None:
        """
        Move `amount` of `token` from `sender` to `recipient`.

        Raises:
            ValueError: If amount is negative or the sender balance is insufficient
        """
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise TypeError("amount must be an int")
        if amount < 0:
            raise ValueError(f"Transfer amount must be non-negative: {amount}")
        current = self.balance_of(token, sender)
        if current < amount:
            raise ValueError(f"Insufficient balance: {current} < {amount}")
        self.set(sender, token, current - amount)
        self.set(recipient, token, self.balance_of(token, recipient) + amount)

    def snapshot(self) -> Dict[Tuple[Address, TokenId], Amount]:
        """Copy of all balances in sorted key order."""
        return {k: self._balances[k] for k in sorted(self._balances)}

    def restore(self, snapshot: Dict[Tuple[Address, TokenId], Amount]) -> None:
        """Replace all balances with a previously taken `snapshot`."""
        self._balances = dict(snapshot)

    def __repr__(self) -> str:
        return f"TokenLedger({len(self._balances)} entries)"
