"""Chain address codec and the Carbon bytes32 bridge."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Optional

import base58

from .errors import FormatError
from .hexutil import bytes_to_hex, hex_to_bytes

ADDRESS_LENGTH = 34
KEY_LENGTH = 32
NULL_TEXT = "NULL"

# Carbon keys whose first 15 bytes are zero belong to system contracts.
SYSTEM_PREFIX_ZERO_BYTES = 15


class AddressKind(IntEnum):
    INVALID = 0
    USER = 1
    SYSTEM = 2
    INTEROP = 3


_PREFIXES = {
    AddressKind.USER: "P",
    AddressKind.SYSTEM: "S",
    AddressKind.INTEROP: "X",
}


class Address:
    """A 34-byte address: kind byte, reserved byte, 32-byte key."""

    __slots__ = ("_raw",)

    def __init__(self, raw: bytes) -> None:
        if len(raw) != ADDRESS_LENGTH:
            raise FormatError(f"address must be {ADDRESS_LENGTH} bytes, got {len(raw)}")
        self._raw = bytes(raw)

    @classmethod
    def from_key(cls, kind: AddressKind, key: bytes) -> "Address":
        if len(key) != KEY_LENGTH:
            raise FormatError(f"address key must be {KEY_LENGTH} bytes, got {len(key)}")
        return cls(bytes([int(kind), 0]) + bytes(key))

    @classmethod
    def from_text(cls, text: str) -> "Address":
        value = text.strip()
        if value == NULL_TEXT:
            return cls(bytes(ADDRESS_LENGTH))
        if len(value) < 2:
            raise FormatError(f"invalid address text {text!r}")
        try:
            raw = base58.b58decode(value[1:])
        except ValueError as exc:
            raise FormatError(f"invalid address text {text!r}: {exc}") from exc
        if len(raw) != ADDRESS_LENGTH:
            raise FormatError(
                f"address text decodes to {len(raw)} bytes, expected {ADDRESS_LENGTH}"
            )
        address = cls(raw)
        if _PREFIXES.get(address.kind) != value[0]:
            raise FormatError(f"address prefix {value[0]!r} does not match its kind")
        return address

    @property
    def raw(self) -> bytes:
        return self._raw

    @property
    def is_null(self) -> bool:
        return not any(self._raw[1:])

    @property
    def kind(self) -> AddressKind:
        if self.is_null:
            return AddressKind.SYSTEM
        tag = self._raw[0]
        if tag >= AddressKind.INTEROP:
            return AddressKind.INTEROP
        return AddressKind(tag)

    @property
    def is_system(self) -> bool:
        return self.kind == AddressKind.SYSTEM

    @property
    def key(self) -> bytes:
        return self._raw[2:]

    @property
    def text(self) -> str:
        if self.is_null:
            return NULL_TEXT
        prefix = _PREFIXES.get(self.kind, "?")
        return prefix + base58.b58encode(self._raw).decode("ascii")

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Address) and other._raw == self._raw

    def __hash__(self) -> int:
        return hash(self._raw)

    def __repr__(self) -> str:
        return f"Address({self.text})"

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class AddressDecoded:
    direction: str
    bytes32: str
    text: str
    kind: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "direction": self.direction,
            "bytes32": self.bytes32,
            "text": self.text,
            "kind": self.kind,
        }


def is_system_key(key: bytes) -> bool:
    return not any(key[:SYSTEM_PREFIX_ZERO_BYTES])


def bytes32_to_address(key: bytes) -> Address:
    if len(key) != KEY_LENGTH:
        raise FormatError(f"bytes32 value must be {KEY_LENGTH} bytes, got {len(key)}")
    kind = AddressKind.SYSTEM if is_system_key(key) else AddressKind.USER
    return Address.from_key(kind, key)


def bytes32_hex_to_text(value: str) -> str:
    return bytes32_to_address(hex_to_bytes(value)).text


def text_to_bytes32(text: str) -> bytes:
    address = Address.from_text(text)
    if address.kind == AddressKind.INTEROP:
        raise FormatError("interop addresses are not supported for carbon bytes32 conversion")
    return address.key


def convert_address(bytes32: Optional[str] = None, text: Optional[str] = None) -> AddressDecoded:
    """Convert in whichever direction the caller supplied input for."""

    if bytes32 and text:
        raise FormatError("address mode accepts only one of --bytes32 or --pha")
    if bytes32:
        address = bytes32_to_address(hex_to_bytes(bytes32))
        return AddressDecoded(
            direction="bytes32-to-pha",
            bytes32=bytes_to_hex(address.key),
            text=address.text,
            kind="system" if address.is_system else "user",
        )
    if text:
        address = Address.from_text(text)
        if address.kind == AddressKind.INTEROP:
            raise FormatError(
                "interop addresses are not supported for carbon bytes32 conversion"
            )
        return AddressDecoded(
            direction="pha-to-bytes32",
            bytes32=bytes_to_hex(address.key),
            text=address.text,
            kind="system" if address.is_system else "user",
        )
    raise FormatError("address mode requires --bytes32 <hex> or --pha <address>")


__all__ = [
    "Address",
    "AddressDecoded",
    "AddressKind",
    "bytes32_hex_to_text",
    "bytes32_to_address",
    "convert_address",
    "text_to_bytes32",
]
