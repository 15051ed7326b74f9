import pytest

from phadecode.abi import MethodSignature, ParamSpec
from phadecode.disassembler import disassemble, format_listing
from phadecode.emulator import disassemble_script, disassemble_script_hex, expected_interop_arity
from phadecode.errors import BoundsError, FormatError
from phadecode.instruction import VmType
from phadecode.vm_values import VmValue

NOP, PUSH, EXTCALL, RET, LOAD, CAST, SWITCH = 0, 3, 7, 11, 13, 14, 46


def load(register: int, vm_type: int, payload: bytes) -> bytes:
    return bytes([LOAD, register, vm_type, len(payload)]) + payload


def load_text(register: int, text: str) -> bytes:
    return load(register, VmType.STRING, text.encode("utf-8"))


def push(register: int) -> bytes:
    return bytes([PUSH, register])


def extcall(register: int) -> bytes:
    return bytes([EXTCALL, register])


def signature(*params: str) -> MethodSignature:
    return MethodSignature(tuple(ParamSpec(name, "String") for name in params))


def test_disassembly_stops_after_ret() -> None:
    instructions = disassemble(bytes([NOP, RET, 0xFF, 0xFF]))

    assert [instruction.name for instruction in instructions] == ["NOP", "RET"]
    assert instructions[1].offset == 1


def test_unknown_opcode_has_no_operands() -> None:
    instructions = disassemble(bytes([60, NOP]))

    assert instructions[0].name == "OP_60"
    assert instructions[0].operands == ()
    assert instructions[1].offset == 1


def test_operand_layouts() -> None:
    script = load_text(2, "hi") + bytes([CAST, 1, 2, VmType.STRING]) + bytes([8, 0x10, 0x00])
    instructions = disassemble(script)

    assert instructions[0].to_dict() == {
        "offset": 0,
        "opcode": LOAD,
        "opcode_name": "LOAD",
        "args": [2, "String", "hi"],
    }
    assert instructions[1].operands == (1, 2, "String")
    assert instructions[2].name == "JMP"
    assert instructions[2].operands == (0x10,)


def test_truncated_operands_raise() -> None:
    with pytest.raises(BoundsError):
        disassemble(bytes([LOAD, 0]))


def test_listing_has_one_line_per_instruction() -> None:
    listing = format_listing(disassemble(push(1) + bytes([RET])))

    assert listing.splitlines()[0].startswith("0000: PUSH")
    assert len(listing.splitlines()) == 2


def test_extcall_pairs_arguments_with_signature() -> None:
    table = {"Runtime.Log": [signature("text")]}
    script = load_text(0, "hello") + push(0) + load_text(1, "Runtime.Log") + extcall(1) + bytes([RET])

    result = disassemble_script(script, table)

    assert result.warnings == []
    call = result.method_calls[0]
    assert call.contract == ""
    assert call.method == "Runtime.Log"
    assert call.args == [
        {"vm_type": "String", "value": "hello", "name": "text", "abi_type": "String"}
    ]


def test_switch_takes_method_from_stack() -> None:
    script = load_text(0, "SpendGas") + push(0) + load_text(1, "gas") + bytes([SWITCH, 1])

    result = disassemble_script(script, {})

    call = result.method_calls[0]
    assert (call.contract, call.method) == ("gas", "SpendGas")
    assert result.warnings == ["missing ABI for gas.SpendGas; args omitted"]


def test_ambiguous_overload_drains_stack() -> None:
    table = {
        "Runtime.Log": [signature("text"), signature("message")],
        "Runtime.Time": [signature()],
    }
    script = (
        load_text(0, "hello")
        + push(0)
        + load_text(1, "Runtime.Log")
        + extcall(1)
        + load_text(1, "Runtime.Time")
        + extcall(1)
    )

    result = disassemble_script(script, table)

    assert result.warnings == ["ABI overload ambiguity for Runtime.Log; args omitted"]
    assert result.method_calls[0].args == []
    assert result.method_calls[1].method == "Runtime.Time"


def test_no_matching_arity_drains_stack_before_next_call() -> None:
    table = {
        "Custom.Log": [signature("text"), signature("text", "level")],
        "Runtime.Time": [signature()],
    }
    script = (
        load_text(0, "a")
        + push(0)
        + push(0)
        + push(0)
        + load_text(1, "Custom.Log")
        + extcall(1)
        + load_text(1, "Runtime.Time")
        + extcall(1)
    )

    result = disassemble_script(script, table)

    assert result.warnings == ["missing ABI for Custom.Log; args omitted"]
    assert result.method_calls[0].args == []
    assert result.method_calls[1].method == "Runtime.Time"
    assert result.method_calls[1].args == []


def test_missing_abi_drops_arguments() -> None:
    script = load_text(0, "x") + push(0) + push(0) + load_text(1, "Custom.Do") + extcall(1)

    result = disassemble_script(script, None)

    assert result.warnings == ["missing ABI for Custom.Do; args omitted"]
    assert result.method_calls[0].args == []


def test_protocol_arity_warning_does_not_block() -> None:
    table = {"Runtime.Notify": [signature("kind", "address", "data")]}
    script = (
        load_text(0, "a")
        + push(0)
        + push(0)
        + push(0)
        + load_text(1, "Runtime.Notify")
        + extcall(1)
    )

    result = disassemble_script(script, table, protocol_version=19)

    assert result.warnings == ["protocol 19 expects 4 args for Runtime.Notify; script provides 3"]
    assert len(result.method_calls[0].args) == 3
    assert disassemble_script(script, table, protocol_version=18).warnings == []


def test_expected_interop_arity_table() -> None:
    assert expected_interop_arity("Runtime.ReadToken", 14) == 2
    assert expected_interop_arity("Runtime.ReadToken", 15) == 3
    assert expected_interop_arity("Runtime.UpgradeContract", 13) == 3
    assert expected_interop_arity("Runtime.Log", 19) is None


def test_push_from_empty_register_warns() -> None:
    result = disassemble_script(push(5) + bytes([RET]))

    assert result.warnings == ["PUSH from empty register r5"]
    assert result.method_calls == []


def test_vm_value_conversions() -> None:
    number = VmValue.from_bytes(VmType.NUMBER, (-2).to_bytes(2, "little", signed=True))
    address = VmValue.from_bytes(VmType.OBJECT, bytes([1, 0]) + bytes(range(1, 33)))

    assert number.to_dict() == {"vm_type": "Number", "value": "-2"}
    assert address.as_string().startswith("P")
    assert VmValue.from_bytes(VmType.BOOL, b"\x01").as_string() == "true"


def test_short_enum_payload_is_rejected() -> None:
    with pytest.raises(FormatError, match="requires 4 bytes"):
        VmValue.from_bytes(VmType.ENUM, b"\x01")


def test_hex_entry_point() -> None:
    result = disassemble_script_hex("0x" + (push(0) + bytes([RET])).hex())

    assert [instruction.name for instruction in result.instructions] == ["PUSH", "RET"]
