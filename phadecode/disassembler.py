"""Linear disassembly of legacy VM scripts."""

from __future__ import annotations

from typing import Any, List, Tuple

from .instruction import Instruction, opcode_name, vm_type_name
from .reader import BinaryReader

MAX_LOAD_LENGTH = 0xFFFF

_SRC_DST = frozenset(
    ["CTX", "MOVE", "COPY", "SWAP", "SIZE", "COUNT", "SIGN", "NOT", "NEGATE", "ABS", "UNPACK", "REMOVE"]
)
_SINGLE_REGISTER = frozenset(["POP", "PUSH", "EXTCALL", "THROW", "CLEAR", "INC", "DEC", "SWITCH"])
_THREE_REGISTERS = frozenset(
    [
        "AND", "OR", "XOR", "CAT", "EQUAL", "LT", "GT", "LTE", "GTE",
        "ADD", "SUB", "MUL", "DIV", "MOD", "SHR", "SHL", "MIN", "MAX", "POW",
        "PUT", "GET",
    ]
)


def _read_operands(name: str, reader: BinaryReader) -> Tuple[Any, ...]:
    if name in _SRC_DST:
        return reader.read_u8(), reader.read_u8()
    if name in _SINGLE_REGISTER:
        return (reader.read_u8(),)
    if name in _THREE_REGISTERS:
        return reader.read_u8(), reader.read_u8(), reader.read_u8()
    if name == "LOAD":
        dst = reader.read_u8()
        vm_type = reader.read_u8()
        length = reader.read_varint(MAX_LOAD_LENGTH)
        return dst, vm_type, reader.read_bytes(length)
    if name == "CAST":
        return reader.read_u8(), reader.read_u8(), vm_type_name(reader.read_u8())
    if name == "CALL":
        return reader.read_u8(), reader.read_u16()
    if name == "JMP":
        return (reader.read_u16(),)
    if name in ("JMPIF", "JMPNOT"):
        return reader.read_u8(), reader.read_u16()
    if name in ("LEFT", "RIGHT"):
        return reader.read_u8(), reader.read_u8(), reader.read_varint(MAX_LOAD_LENGTH)
    if name == "RANGE":
        return (
            reader.read_u8(),
            reader.read_u8(),
            reader.read_varint(MAX_LOAD_LENGTH),
            reader.read_varint(MAX_LOAD_LENGTH),
        )
    return ()


def disassemble(script: bytes) -> List[Instruction]:
    """Decode ``script`` up to and including the first ``RET``.

    Bytes after ``RET`` are ignored. Truncated operands raise
    :class:`~phadecode.errors.BoundsError`.
    """

    reader = BinaryReader(script, label="VM script")
    instructions: List[Instruction] = []
    while not reader.at_end():
        offset = reader.position
        opcode = reader.read_u8()
        name = opcode_name(opcode)
        if name == "RET":
            instructions.append(Instruction(offset, opcode))
            break
        instructions.append(Instruction(offset, opcode, _read_operands(name, reader)))
    return instructions


def format_listing(instructions: List[Instruction]) -> str:
    return "\n".join(instruction.to_text() for instruction in instructions) + "\n"


__all__ = ["MAX_LOAD_LENGTH", "disassemble", "format_listing"]
