"""
Wire codec for the (order, trading params) payload of AMM signatures.

The settlement engine hands `is_valid_signature` an opaque byte string; for
this AMM it is the canonical JSON of `{"order": ..., "params": ...}`. Decoding
is strict: unknown or duplicate keys, floats and oversized payloads are
rejected before any hashing happens.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Tuple

from .canonical import canonical_json_bytes
from .order import Order
from .params import TradingParams


MAX_SIGNATURE_BYTES = 4_096


def encode_order_and_params(order: Order, params: TradingParams) -> bytes:
    return canonical_json_bytes({"order": order.to_dict(), "params": params.to_dict()})


def _reject_duplicate_keys(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for k, v in pairs:
        if k in out:
            raise ValueError(f"duplicate key in payload: {k!r}")
        out[k] = v
    return out


def _reject_float(literal: str) -> Any:
    raise ValueError(f"floats are not allowed in payload: {literal}")


def decode_order_and_params(data: bytes, *, max_bytes: int = MAX_SIGNATURE_BYTES) -> Tuple[Order, TradingParams]:
    """
    Inverse of `encode_order_and_params`.

    Raises:
        ValueError: If the payload is malformed, oversized or has the wrong shape
        TypeError: If a field has the wrong type
    """
    if not isinstance(data, (bytes, bytearray)):
        raise TypeError("signature payload must be bytes")
    if len(data) > max_bytes:
        raise ValueError(f"signature payload exceeds {max_bytes} bytes")
    try:
        text = bytes(data).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ValueError("signature payload must be UTF-8") from exc
    try:
        obj = json.loads(
            text,
            object_pairs_hook=_reject_duplicate_keys,
            parse_float=_reject_float,
            parse_constant=_reject_float,
        )
    except json.JSONDecodeError as exc:
        raise ValueError(f"signature payload is not valid JSON: {exc.msg}") from exc
    if not isinstance(obj, dict) or set(obj.keys()) != {"order", "params"}:
        raise ValueError("signature payload must have exactly the keys ['order', 'params']")
    return Order.from_dict(obj["order"]), TradingParams.from_dict(obj["params"])
