"""
Deterministic JSON encoding and hashing.

Stored records and snapshots are encoded the same way, so two ledgers with the
same contents produce byte-identical storage values and identical snapshot
commitments.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


CANONICAL_ENCODING_VERSION = 1


def _check_value(value: Any) -> None:
    if isinstance(value, float):
        raise TypeError("floats are not allowed in canonical encoding")
    if isinstance(value, str):
        _check_text(value)
        return
    if isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeError("dict keys must be str for canonical encoding")
            _check_text(k)
            _check_value(v)
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            _check_value(item)


def _check_text(s: str) -> None:
    # Lone surrogates cannot be encoded as UTF-8.
    if any(0xD800 <= ord(ch) <= 0xDFFF for ch in s):
        raise TypeError("surrogate code points are not allowed in canonical encoding")


def canonical_json_bytes(value: Any) -> bytes:
    """
    Canonical JSON encoding.

    Rules:
    - UTF-8, no whitespace, keys sorted
    - NaN/Infinity and floats rejected (decimals travel as strings)
    """
    _check_value(value)
    text = json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
    return text.encode("utf-8")


def canonical_json_text(value: Any) -> str:
    return canonical_json_bytes(value).decode("utf-8")


def load_json_text(text: str) -> Any:
    """Parse a stored JSON value, refusing floats on the way back in."""
    return json.loads(text, parse_float=_no_floats, parse_constant=_no_floats)


def _no_floats(token: str) -> Any:
    raise ValueError(f"non-integer number in stored JSON: {token}")


def sha256_hex(data: bytes) -> str:
    return "0x" + hashlib.sha256(data).hexdigest()


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """
    Domain separation prefix for hashed payloads.

    ASCII-only and NUL-terminated so concatenation is unambiguous.
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
    return b"rewardledger:" + label_bytes + b":v" + str(version).encode("ascii") + b"\x00"
