"""Opcode tables and the decoded instruction record."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List, Tuple


class VmType(IntEnum):
    NONE = 0
    STRUCT = 1
    BYTES = 2
    NUMBER = 3
    STRING = 4
    TIMESTAMP = 5
    BOOL = 6
    ENUM = 7
    OBJECT = 8


_VM_TYPE_NAMES = {
    VmType.NONE: "None",
    VmType.STRUCT: "Struct",
    VmType.BYTES: "Bytes",
    VmType.NUMBER: "Number",
    VmType.STRING: "String",
    VmType.TIMESTAMP: "Timestamp",
    VmType.BOOL: "Bool",
    VmType.ENUM: "Enum",
    VmType.OBJECT: "Object",
}


def vm_type_name(value: int) -> str:
    try:
        return _VM_TYPE_NAMES[VmType(value)]
    except ValueError:
        return f"VMType_{value}"


OPCODE_NAMES: Dict[int, str] = {
    index: name
    for index, name in enumerate(
        [
            "NOP", "MOVE", "COPY", "PUSH", "POP", "SWAP", "CALL", "EXTCALL",
            "JMP", "JMPIF", "JMPNOT", "RET", "THROW", "LOAD", "CAST", "CAT",
            "RANGE", "LEFT", "RIGHT", "SIZE", "COUNT", "NOT", "AND", "OR",
            "XOR", "EQUAL", "LT", "GT", "LTE", "GTE", "INC", "DEC",
            "SIGN", "NEGATE", "ABS", "ADD", "SUB", "MUL", "DIV", "MOD",
            "SHL", "SHR", "MIN", "MAX", "POW", "CTX", "SWITCH", "PUT",
            "GET", "CLEAR", "UNPACK", "PACK", "DEBUG", "SUBSTR", "REMOVE",
        ]
    )
}
OPCODE_NAMES[255] = "EVM"


def opcode_name(opcode: int) -> str:
    return OPCODE_NAMES.get(opcode, f"OP_{opcode}")


@dataclass(frozen=True)
class Instruction:
    """One decoded opcode with its raw operands.

    ``LOAD`` keeps its payload as ``(dst, vm_type, bytes)`` so that call
    reconstruction can build values from the untouched bytes.
    """

    offset: int
    opcode: int
    operands: Tuple[Any, ...] = ()

    @property
    def name(self) -> str:
        return opcode_name(self.opcode)

    def rendered_operands(self) -> List[Any]:
        if self.name == "LOAD":
            dst, vm_type, payload = self.operands
            return [dst, vm_type_name(vm_type), render_load_value(vm_type, payload)]
        rendered: List[Any] = []
        for operand in self.operands:
            if isinstance(operand, (bytes, bytearray)):
                rendered.append(list(operand))
            else:
                rendered.append(operand)
        return rendered

    def to_dict(self) -> Dict[str, Any]:
        return {
            "offset": self.offset,
            "opcode": self.opcode,
            "opcode_name": self.name,
            "args": self.rendered_operands(),
        }

    def to_text(self) -> str:
        operands = ", ".join(str(value) for value in self.rendered_operands())
        return f"{self.offset:04X}: {self.name:<8} {operands}".rstrip()


def render_load_value(vm_type: int, payload: bytes) -> Any:
    if vm_type == VmType.STRING:
        return payload.decode("utf-8", errors="replace")
    if vm_type == VmType.NUMBER:
        return str(int.from_bytes(payload, "little", signed=True)) if payload else "0"
    return payload.hex()


__all__ = [
    "Instruction",
    "OPCODE_NAMES",
    "VmType",
    "opcode_name",
    "render_load_value",
    "vm_type_name",
]
