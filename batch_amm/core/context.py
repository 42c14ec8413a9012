"""
Per-call execution context.

A `CallContext` exists for exactly one top-level settlement invocation. It
carries the immediate caller, the block timestamp and the transient store.
Nested calls share the same store through `as_caller`; once the top-level
call returns the context is dropped, and with it every transient value.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Tuple

from ..state.balances import Address
from ..state.canonical import canonical_address, require_uint


class TransientStore:
    """Call-scoped (contract, key) -> value cells with a caller-supplied default."""

    def __init__(self):
        self._cells: Dict[Tuple[Address, str], str] = {}

    def load(self, contract: Address, key: str, default: str) -> str:
        return self._cells.get((contract, key), default)

    def store(self, contract: Address, key: str, value: str) -> None:
        self._cells[(contract, key)] = value

    def __len__(self) -> int:
        return len(self._cells)


@dataclass(frozen=True)
class CallContext:
    caller: Address
    timestamp: int
    transient: TransientStore = field(default_factory=TransientStore)

    def __post_init__(self):
        object.__setattr__(self, "caller", canonical_address(self.caller, name="caller"))
        require_uint("timestamp", self.timestamp, bits=64)

    def as_caller(self, caller: Address) -> "CallContext":
        """Same invocation (same transient store), different immediate caller."""
        return replace(self, caller=caller)


def new_call(caller: Address, timestamp: int) -> CallContext:
    """Start a fresh top-level invocation with an empty transient store."""
    return CallContext(caller=caller, timestamp=timestamp)
