import copy

import pytest

from phadecode.address import bytes32_hex_to_text
from phadecode.carbon import decode_carbon_signed_tx
from phadecode.carbon_addresses import (
    CARBON_ADDRESS_PATH_INVENTORY,
    apply_carbon_address_mode,
    convert_carbon_addresses,
    convert_if_bytes32,
)

KEY_A = "11" * 32
KEY_B = "22" * 32
KEY_C = "33" * 32


def _envelope_dict() -> dict:
    message = bytes.fromhex(KEY_B) + bytes.fromhex(KEY_C) + (1).to_bytes(8, "little") * 2
    data = (
        bytes([4])
        + bytes(24)
        + bytes.fromhex(KEY_A)
        + bytes([0])
        + message
        + (1).to_bytes(4, "little")
        + bytes.fromhex(KEY_C)
        + bytes(64)
    )
    decoded, _ = decode_carbon_signed_tx(data)
    return decoded.to_dict()


def test_envelope_paths_are_converted() -> None:
    carbon = _envelope_dict()

    apply_carbon_address_mode(carbon, "pha")

    assert carbon["gas_from"] == bytes32_hex_to_text(KEY_A)
    assert carbon["msg"]["to"] == bytes32_hex_to_text(KEY_B)
    assert carbon["msg"]["from"] == bytes32_hex_to_text(KEY_C)
    assert carbon["msg"]["token_id"] == "1"
    assert carbon["witnesses"][0]["address"] == bytes32_hex_to_text(KEY_C)
    assert carbon["witnesses"][0]["signature"] == "00" * 64


def test_bytes32_mode_leaves_record_alone() -> None:
    carbon = _envelope_dict()
    before = copy.deepcopy(carbon)

    assert apply_carbon_address_mode(carbon, "bytes32") == []
    assert carbon == before


def test_unknown_mode_is_rejected() -> None:
    with pytest.raises(ValueError, match="unknown carbon address mode"):
        apply_carbon_address_mode({}, "base64")


def test_conversion_is_idempotent() -> None:
    carbon = _envelope_dict()
    convert_carbon_addresses(carbon)
    once = copy.deepcopy(carbon)

    convert_carbon_addresses(carbon)

    assert carbon == once


def test_fields_outside_inventory_are_untouched() -> None:
    carbon = {"msg": {"id": KEY_A, "to": KEY_B}, "payload": KEY_C}

    convert_carbon_addresses(carbon)

    assert carbon["msg"]["id"] == KEY_A
    assert carbon["payload"] == KEY_C
    assert carbon["msg"]["to"] == bytes32_hex_to_text(KEY_B)


def test_trade_collections_are_converted() -> None:
    carbon = {
        "msg": {
            "transfer_f": [{"to": KEY_A, "from": KEY_B, "amount": "1"}],
            "mint_n": [{"to": KEY_C, "rom": KEY_A}],
            "burn_f": [{"from": KEY_A}],
        }
    }

    convert_carbon_addresses(carbon)

    msg = carbon["msg"]
    assert msg["transfer_f"][0]["from"] == bytes32_hex_to_text(KEY_B)
    assert msg["mint_n"][0]["to"] == bytes32_hex_to_text(KEY_C)
    assert msg["mint_n"][0]["rom"] == KEY_A
    assert msg["burn_f"][0]["from"] == bytes32_hex_to_text(KEY_A)


def test_typed_call_arguments() -> None:
    nested = {"module_id": 0, "method_id": 1, "args": [{"name": "address", "type": "bytes32", "value": KEY_C}]}
    carbon = {
        "call": {
            "args": [
                {"name": "to", "type": "bytes32", "value": KEY_A},
                {"name": "ids", "type": "bytes32[]", "value": [KEY_B]},
                {"name": "info", "type": "token_info", "value": {"owner": KEY_C, "metadata": KEY_A}},
                {"name": "org", "type": "organization_import", "value": {
                    "info": {"owner": KEY_A},
                    "member_imports": [{"address": KEY_B, "timestamp": "0"}],
                }},
                {"name": "series", "type": "series_import", "value": {
                    "info": {"owner": KEY_A},
                    "imports": [{"originator": KEY_B, "owner": KEY_C}],
                }},
                {"name": "calls", "type": "txmsg_call_multi", "value": [nested]},
                {"name": "script", "type": "bytes", "value": KEY_A},
            ]
        },
        "calls": [{"sections": [{"register_offset": 0, "args": [
            {"name": "from", "type": "bytes32", "value": KEY_B},
        ]}]}],
    }

    convert_carbon_addresses(carbon)

    args = carbon["call"]["args"]
    assert args[0]["value"] == bytes32_hex_to_text(KEY_A)
    assert args[1]["value"] == [bytes32_hex_to_text(KEY_B)]
    assert args[2]["value"]["owner"] == bytes32_hex_to_text(KEY_C)
    assert args[2]["value"]["metadata"] == KEY_A
    assert args[3]["value"]["info"]["owner"] == bytes32_hex_to_text(KEY_A)
    assert args[3]["value"]["member_imports"][0]["address"] == bytes32_hex_to_text(KEY_B)
    assert args[4]["value"]["imports"][0]["owner"] == bytes32_hex_to_text(KEY_C)
    assert args[5]["value"][0]["args"][0]["value"] == bytes32_hex_to_text(KEY_C)
    assert args[6]["value"] == KEY_A
    section_arg = carbon["calls"][0]["sections"][0]["args"][0]
    assert section_arg["value"] == bytes32_hex_to_text(KEY_B)


def test_only_full_length_hex_is_converted() -> None:
    assert convert_if_bytes32("11" * 31) == "11" * 31
    assert convert_if_bytes32(5) == 5
    assert convert_if_bytes32("0x" + KEY_A) == bytes32_hex_to_text(KEY_A)


def test_inventory_lists_envelope_and_call_paths() -> None:
    assert "carbon.gas_from" in CARBON_ADDRESS_PATH_INVENTORY
    assert any(path.startswith("carbon.calls[]") for path in CARBON_ADDRESS_PATH_INVENTORY)


def test_trailing_newline_is_not_bytes32() -> None:
    assert convert_if_bytes32(KEY_A + "\n") == KEY_A + "\n"
    carbon = {"gas_from": KEY_A + "\n"}

    convert_carbon_addresses(carbon)

    assert carbon["gas_from"] == KEY_A + "\n"
