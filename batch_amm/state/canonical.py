"""
Deterministic canonical encoding primitives.

Everything the AMM hashes (trading parameters, orders, the domain separator)
goes through these helpers so that an off-chain solver can reproduce the
exact same digests byte for byte.
"""

from __future__ import annotations

import hashlib
import json
import re
from typing import Any


CANONICAL_ENCODING_VERSION = 1

ADDRESS_BYTES = 20
HASH_BYTES = 32

ZERO_ADDRESS = "0x" + "00" * ADDRESS_BYTES
ZERO_HASH = "0x" + "00" * HASH_BYTES

_HEX_CHARS_RE = re.compile(r"^[0-9a-fA-F]+$")


def _reject_non_canonical(value: Any) -> None:
    if isinstance(value, float):
        raise TypeError("floats are not allowed in canonical encoding")
    if isinstance(value, str):
        for ch in value:
            if 0xD800 <= ord(ch) <= 0xDFFF:
                raise TypeError("surrogate code points are not allowed in canonical encoding")
        return
    if isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeError("dict keys must be str for canonical encoding")
            _reject_non_canonical(k)
            _reject_non_canonical(v)
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            _reject_non_canonical(item)


def canonical_json_bytes(value: Any) -> bytes:
    """
    Canonical JSON encoding for hashing.

    Rules:
    - UTF-8
    - sort_keys=True
    - separators=(',', ':') (no whitespace)
    - allow_nan=False
    - floats rejected (to avoid representation ambiguity)
    """
    _reject_non_canonical(value)
    text = json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
    return text.encode("utf-8")


def sha256_hex(data: bytes) -> str:
    return "0x" + hashlib.sha256(data).hexdigest()


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """
    Create a domain separation prefix.

    The output is ASCII-only and NUL-terminated to make concatenation unambiguous.
    """
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if "\x00" in label:
        raise ValueError("label must not contain NUL")
    try:
        label_bytes = label.encode("ascii")
    except UnicodeEncodeError as exc:
        raise ValueError("label must be ASCII") from exc
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    return b"batch_amm:" + label_bytes + b":v" + str(version).encode("ascii") + b"\x00"


def hash_labeled(label: str, value: Any, *, prefix: bytes = b"") -> str:
    """`sha256(domain_sep(label) || prefix || canonical_json(value))` as 0x-hex."""
    return sha256_hex(domain_sep_bytes(label, CANONICAL_ENCODING_VERSION) + prefix + canonical_json_bytes(value))


def canonical_hex_fixed_allow_0x(hex_str: str, *, nbytes: int, name: str) -> str:
    """
    Canonicalize a fixed-size hex string (lowercase, 0x-prefixed).

    Accepts either 0x-prefixed or raw hex input.
    """
    if not isinstance(hex_str, str):
        raise TypeError(f"{name} must be a str")
    if not isinstance(nbytes, int) or isinstance(nbytes, bool) or nbytes <= 0:
        raise ValueError("nbytes must be a positive int")

    s = hex_str.strip()
    if s.lower().startswith("0x"):
        s = s[2:]
    expected_len = 2 * nbytes
    if len(s) != expected_len:
        raise ValueError(f"{name} must be {nbytes} bytes (hex length {expected_len})")
    if not _HEX_CHARS_RE.fullmatch(s):
        raise ValueError(f"{name} must be valid hex")
    return "0x" + s.lower()


def canonical_address(value: str, *, name: str = "address") -> str:
    return canonical_hex_fixed_allow_0x(value, nbytes=ADDRESS_BYTES, name=name)


def canonical_hash(value: str, *, name: str = "hash") -> str:
    return canonical_hex_fixed_allow_0x(value, nbytes=HASH_BYTES, name=name)


def hash_to_bytes(value: str, *, name: str = "hash") -> bytes:
    return bytes.fromhex(canonical_hash(value, name=name)[2:])


def require_uint(name: str, value: int, *, bits: int = 256) -> int:
    """Reject bools, non-ints and values outside `[0, 2**bits)`."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0 or value >> bits:
        raise ValueError(f"{name} must fit in uint{bits}: {value}")
    return value
