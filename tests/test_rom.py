import pytest

from phadecode.address import Address, AddressKind
from phadecode.errors import BoundsError, FormatError
from phadecode.rom import decode_rom, decode_rom_hex

STAKER = Address.from_key(AddressKind.USER, bytes(range(1, 33)))


def string_node(text: str) -> bytes:
    raw = text.encode("utf-8")
    return bytes([4, len(raw)]) + raw


def struct_node(*pairs: bytes) -> bytes:
    return bytes([1, len(pairs) // 2]) + b"".join(pairs)


def crown_rom(timestamp: int = 1700000000) -> bytes:
    return bytes([34]) + STAKER.raw + timestamp.to_bytes(4, "little")


def test_legacy_dictionary_fields() -> None:
    data = struct_node(
        string_node("name"), string_node("Gem"),
        string_node("created"), bytes([5]) + (1700000000).to_bytes(4, "little"),
        string_node("power"), bytes([3, 2]) + (-300).to_bytes(2, "little", signed=True),
    )

    rom, warnings = decode_rom(data)

    assert warnings == []
    assert rom.parser == "legacy-vm-dictionary"
    assert rom.name == "Gem"
    assert rom.created_unix == 1700000000
    assert rom.created_iso == "2023-11-14T22:13:20Z"
    assert rom.fields == {"name": "Gem", "created": 1700000000, "power": "-300"}
    assert rom.to_dict()["vm"]["root"]["entries"][2] == {
        "key_vm_type": "String",
        "key": "power",
        "value_vm_type": "Number",
        "value": "-300",
    }


def test_duplicate_keys_keep_entries_only() -> None:
    data = struct_node(string_node("a"), string_node("1"), string_node("a"), string_node("2"))

    rom, _ = decode_rom(data, mode="legacy")

    assert rom.fields is None
    assert len(rom.vm["entries"]) == 2


def test_non_scalar_key_keeps_entries_only() -> None:
    data = struct_node(bytes([2, 1, 0xAA]), string_node("x"))

    rom, _ = decode_rom(data, mode="legacy")

    assert rom.fields is None
    assert rom.vm["entries"][0]["key"] == "aa"


def test_object_address_value() -> None:
    data = struct_node(string_node("owner"), bytes([8, 35, 34]) + STAKER.raw)

    rom, _ = decode_rom(data)

    assert rom.fields["owner"] == {
        "kind": "Address",
        "text": STAKER.text,
        "bytes_hex": STAKER.raw.hex(),
    }


def test_legacy_trailing_bytes_warn() -> None:
    _, warnings = decode_rom(struct_node() + b"\x00\x00", mode="legacy")

    assert warnings == ["legacy ROM has 2 trailing bytes"]


def test_legacy_root_must_be_struct() -> None:
    with pytest.raises(FormatError, match="legacy ROM root must be Struct, got String"):
        decode_rom(string_node("x"), mode="legacy")


def test_legacy_depth_is_capped() -> None:
    with pytest.raises(FormatError, match="ROM VM decode exceeded max depth"):
        decode_rom(bytes([1, 1]) * 200, mode="legacy")


def test_crown_with_symbol_hint() -> None:
    rom, warnings = decode_rom(crown_rom(), symbol="crown", token_id="42")

    assert warnings == []
    result = rom.to_dict()
    assert result["parser"] == "crown"
    assert result["symbol"] == "CROWN"
    assert result["name"] == "CROWN #42"
    assert result["crown"] == {
        "address_length": 34,
        "staker_address_hex": STAKER.raw.hex(),
        "staker_address": STAKER.text,
        "timestamp_unix": 1700000000,
        "timestamp_iso": "2023-11-14T22:13:20Z",
    }


def test_crown_short_address_and_trailing_bytes() -> None:
    data = bytes([2, 0xAA, 0xBB]) + (5).to_bytes(4, "little") + b"\x00"

    rom, warnings = decode_rom(data, mode="crown")

    assert rom.crown.staker_address is None
    assert warnings == [
        "CROWN ROM has 1 trailing bytes",
        "CROWN staker address length is 2, expected 34",
    ]


def test_auto_falls_back_to_crown() -> None:
    rom, warnings = decode_rom_hex(crown_rom().hex())

    assert rom.parser == "crown"
    assert warnings[0] == (
        "auto parser fallback: legacy failed (unsupported VM type 34 at offset 0); crown succeeded"
    )


def test_forced_mode_does_not_fall_back() -> None:
    with pytest.raises(FormatError, match="legacy ROM decode failed: unsupported VM type 34"):
        decode_rom(crown_rom(), mode="legacy")


def test_unknown_mode() -> None:
    with pytest.raises(ValueError, match="unknown rom format"):
        decode_rom(b"", mode="fancy")


def _created_number(value: int) -> bytes:
    raw = value.to_bytes(8, "little", signed=True)
    return struct_node(string_node("created"), bytes([3, len(raw)]) + raw)


def test_out_of_range_created_is_a_decode_error() -> None:
    with pytest.raises(FormatError, match="timestamp 4611686018427387904 is out of range"):
        decode_rom(_created_number(2**62), mode="legacy")


def test_out_of_range_created_falls_back_in_auto_mode() -> None:
    rom, warnings = decode_rom(_created_number(2**62))

    assert rom.parser == "crown"
    assert warnings[0] == (
        "auto parser fallback: legacy failed (timestamp 4611686018427387904 is out of range);"
        " crown succeeded"
    )


def test_auto_mode_raises_fallback_error_when_both_fail() -> None:
    with pytest.raises(BoundsError, match="CROWN ROM: read of 34 bytes"):
        decode_rom(b"\x22")
