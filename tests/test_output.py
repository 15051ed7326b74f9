import json

from phadecode.address import bytes32_hex_to_text, convert_address
from phadecode.output import (
    DecodeOptions,
    DecodeOutput,
    RpcMeta,
    apply_carbon_detail,
    apply_vm_detail,
    build_output_dict,
    render_output,
)
from phadecode.tx import decode_tx_hex

VM_TX = bytes([7]) + b"mainnet" + bytes([4]) + b"main" + bytes([2, 0, 11]) + bytes(4) + bytes([0, 0])


def test_empty_sections_are_omitted() -> None:
    output = DecodeOutput(source="tx-hex", input="00", format="json")

    assert output.to_dict() == {
        "source": "tx-hex",
        "input": "00",
        "format": "json",
        "warnings": [],
        "errors": [],
    }


def test_vm_detail_filters() -> None:
    base = decode_tx_hex(VM_TX.hex()).to_dict()

    calls = json.loads(json.dumps(base))
    apply_vm_detail(calls, "calls")
    ops = json.loads(json.dumps(base))
    apply_vm_detail(ops, "ops")
    none = json.loads(json.dumps(base))
    apply_vm_detail(none, "none")

    assert "instructions" in base["vm"] and "method_calls" in base["vm"]
    assert "instructions" not in calls["vm"] and "method_calls" in calls["vm"]
    assert "instructions" in ops["vm"] and "method_calls" not in ops["vm"]
    assert "instructions" not in none["vm"] and "method_calls" not in none["vm"]
    assert none["vm"]["script_hex"] == "000b"


def test_carbon_detail_filters() -> None:
    def fresh() -> dict:
        return {"carbon": {"type": 0, "msg": {}, "call": {}, "calls": []}}

    call, msg, none, full = fresh(), fresh(), fresh(), fresh()
    apply_carbon_detail(call, "call")
    apply_carbon_detail(msg, "msg")
    apply_carbon_detail(none, "none")
    apply_carbon_detail(full, "all")

    assert set(call["carbon"]) == {"type", "call", "calls"}
    assert set(msg["carbon"]) == {"type", "msg"}
    assert "carbon" not in none
    assert full == fresh()


def test_build_output_dict_rewrites_carbon_addresses() -> None:
    to = "22" * 32
    envelope = bytes([3]) + bytes(24) + bytes(32) + bytes([0]) + bytes.fromhex(to) + bytes(16) + bytes(4)
    output = decode_tx_hex(envelope.hex(), format="json")

    data = build_output_dict(output, DecodeOptions(carbon_addresses="pha", carbon_detail="msg"))

    assert data["errors"] == []
    assert data["carbon"]["msg"]["to"] == bytes32_hex_to_text(to)
    assert data["carbon"]["gas_from"] == bytes32_hex_to_text("00" * 32)
    assert output.carbon.msg["to"] == to


def test_pretty_rendering() -> None:
    output = DecodeOutput(source="tx-hash", input="AB", rpc=RpcMeta("http://node", "getTransaction"))
    output.address = convert_address(bytes32="11" * 32)
    output.warnings.append("something odd")
    output.errors.append("something broke")

    text = render_output(build_output_dict(output, DecodeOptions()))

    lines = text.splitlines()
    assert lines[:7] == [
        "Source: tx-hash",
        "Input: AB",
        "RPC: http://node (getTransaction)",
        "Errors:",
        "- something broke",
        "Warnings:",
        "- something odd",
    ]
    assert lines[7] == "Address:"
    assert json.loads("\n".join(lines[8:])) == output.address.to_dict()


def test_json_rendering() -> None:
    output = DecodeOutput(source="tx-hex", input="00", format="json")

    assert json.loads(render_output(output.to_dict()))["source"] == "tx-hex"
