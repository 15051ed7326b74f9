"""Hex text helpers."""

from __future__ import annotations

import string

from .errors import FormatError

_HEX_DIGITS = frozenset(string.hexdigits)


def normalize_hex(text: str) -> str:
    """Strip whitespace and an optional ``0x`` prefix, lower-casing the rest."""

    value = "".join(text.split())
    if value[:2].lower() == "0x":
        value = value[2:]
    if len(value) % 2:
        raise FormatError(f"hex string has odd length {len(value)}")
    if any(char not in _HEX_DIGITS for char in value):
        raise FormatError("hex string contains non-hex characters")
    return value.lower()


def hex_to_bytes(text: str) -> bytes:
    return bytes.fromhex(normalize_hex(text))


def bytes_to_hex(data: bytes) -> str:
    return bytes(data).hex()
