import pytest

from phadecode.address import (
    Address,
    AddressKind,
    bytes32_hex_to_text,
    bytes32_to_address,
    convert_address,
    text_to_bytes32,
)
from phadecode.errors import FormatError

USER_KEY = bytes(range(1, 33))
SYSTEM_KEY = bytes(15) + bytes(range(1, 18))


def test_user_key_round_trip() -> None:
    address = bytes32_to_address(USER_KEY)

    assert address.kind == AddressKind.USER
    assert address.text.startswith("P")
    assert Address.from_text(address.text) == address
    assert text_to_bytes32(address.text) == USER_KEY


def test_system_key_detection() -> None:
    address = bytes32_to_address(SYSTEM_KEY)

    assert address.kind == AddressKind.SYSTEM
    assert address.text.startswith("S")
    assert text_to_bytes32(address.text) == SYSTEM_KEY


def test_zero_key_is_null() -> None:
    assert bytes32_hex_to_text("00" * 32) == "NULL"
    assert text_to_bytes32("NULL") == bytes(32)
    assert Address.from_text("NULL").is_system


def test_bytes32_length_is_enforced() -> None:
    with pytest.raises(FormatError, match="bytes32 value must be 32 bytes, got 31"):
        bytes32_to_address(bytes(31))


def test_interop_addresses_are_rejected() -> None:
    interop = Address(bytes([3, 0]) + USER_KEY)

    assert interop.text.startswith("X")
    with pytest.raises(FormatError, match="interop addresses are not supported"):
        text_to_bytes32(interop.text)


def test_bad_address_text() -> None:
    with pytest.raises(FormatError):
        Address.from_text("P0OIl")
    user = bytes32_to_address(USER_KEY).text
    with pytest.raises(FormatError, match="prefix"):
        Address.from_text("S" + user[1:])


def test_convert_address_directions() -> None:
    forward = convert_address(bytes32="0x" + USER_KEY.hex())
    backward = convert_address(text=forward.text)

    assert forward.direction == "bytes32-to-pha"
    assert backward.direction == "pha-to-bytes32"
    assert backward.bytes32 == USER_KEY.hex()
    assert forward.to_dict()["kind"] == "user"
    assert convert_address(bytes32=SYSTEM_KEY.hex()).kind == "system"


def test_convert_address_argument_errors() -> None:
    with pytest.raises(FormatError, match="accepts only one of --bytes32 or --pha"):
        convert_address(bytes32=USER_KEY.hex(), text="NULL")
    with pytest.raises(FormatError, match="requires --bytes32 <hex> or --pha <address>"):
        convert_address()
