"""Register and stack simulation that recovers contract calls from scripts."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .abi import MethodSignature, Resolution, resolve_overload
from .errors import FormatError
from .hexutil import hex_to_bytes
from .instruction import Instruction
from .disassembler import disassemble
from .vm_values import VmValue

logger = logging.getLogger(__name__)

REGISTER_COUNT = 16
LATEST_PROTOCOL_VERSION = 19

# Interop methods whose argument count changed with the protocol version:
# (first version with the new count, count before, count from then on).
PROTOCOL_ARITY: Dict[str, tuple] = {
    "Runtime.Notify": (19, 3, 4),
    "Runtime.ReadToken": (15, 2, 3),
    "Runtime.UpgradeContract": (14, 3, 4),
}


def expected_interop_arity(key: str, protocol_version: int) -> Optional[int]:
    entry = PROTOCOL_ARITY.get(key)
    if entry is None:
        return None
    threshold, before, after = entry
    return before if protocol_version < threshold else after


@dataclass
class MethodCall:
    contract: str
    method: str
    args: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"contract": self.contract, "method": self.method, "args": list(self.args)}


@dataclass
class VmDisassembly:
    instructions: List[Instruction]
    method_calls: List[MethodCall]
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "instructions": [instruction.to_dict() for instruction in self.instructions],
            "method_calls": [call.to_dict() for call in self.method_calls],
        }


class CallExtractor:
    """Replays ``LOAD``/``PUSH``/``CTX``/``SWITCH``/``EXTCALL`` to find calls.

    Every other opcode is ignored; the machine only tracks what is needed to
    name the contract, the method and the values pushed as arguments.
    """

    def __init__(
        self,
        method_table: Optional[Mapping[str, Sequence[MethodSignature]]] = None,
        protocol_version: Optional[int] = None,
    ) -> None:
        self.method_table = method_table
        self.protocol_version = protocol_version
        self.registers: List[Optional[VmValue]] = [None] * REGISTER_COUNT
        self.stack: List[VmValue] = []
        self.warnings: List[str] = []

    def run(self, instructions: Sequence[Instruction]) -> List[MethodCall]:
        calls: List[MethodCall] = []
        for instruction in instructions:
            name = instruction.name
            if name == "LOAD":
                dst, vm_type, payload = instruction.operands
                self._store(dst, VmValue.from_bytes(vm_type, payload))
            elif name == "PUSH":
                (src,) = instruction.operands
                value = self._register(src)
                if value is None:
                    self.warnings.append(f"PUSH from empty register r{src}")
                    continue
                self.stack.append(value.clone())
            elif name == "CTX":
                src, dst = instruction.operands
                value = self._register(src)
                self._store(dst, value.clone() if value is not None else None)
            elif name == "SWITCH":
                (src,) = instruction.operands
                value = self._register(src)
                contract = value.as_string() if value is not None else ""
                method = self.stack.pop().as_string() if self.stack else ""
                calls.append(self._call(contract, method))
            elif name == "EXTCALL":
                (src,) = instruction.operands
                value = self._register(src)
                calls.append(self._call("", value.as_string() if value is not None else ""))
        return calls

    def _register(self, index: int) -> Optional[VmValue]:
        if 0 <= index < REGISTER_COUNT:
            return self.registers[index]
        return None

    def _store(self, index: int, value: Optional[VmValue]) -> None:
        if not 0 <= index < REGISTER_COUNT:
            logger.debug("ignoring store to register r%d", index)
            return
        self.registers[index] = value

    def _warn_protocol_arity(self, key: str, provided: int) -> None:
        if self.protocol_version is None:
            return
        expected = expected_interop_arity(key, self.protocol_version)
        if expected is None or expected == provided:
            return
        self.warnings.append(
            f"protocol {self.protocol_version} expects {expected} args for {key};"
            f" script provides {provided}"
        )

    def _call(self, contract: str, method: str) -> MethodCall:
        key = f"{contract}.{method}" if contract else method
        self._warn_protocol_arity(key, len(self.stack))
        result = resolve_overload(self.method_table, key, len(self.stack))
        if result.resolution is Resolution.AMBIGUOUS:
            self.warnings.append(f"ABI overload ambiguity for {key}; args omitted")
            self.stack.clear()
            return MethodCall(contract, method)
        if result.resolution is Resolution.MISSING or result.signature is None:
            self.warnings.append(f"missing ABI for {key}; args omitted")
            self.stack.clear()
            return MethodCall(contract, method)

        params = result.signature.params
        if len(self.stack) < len(params):
            raise FormatError(
                f"method {key} expected {len(params)} args, got {len(self.stack)}"
            )
        args: List[Dict[str, Any]] = []
        for param in params:
            entry = self.stack.pop().to_dict()
            entry["name"] = param.name
            entry["abi_type"] = param.type
            args.append(entry)
        return MethodCall(contract, method, args)


def disassemble_script(
    script: bytes,
    method_table: Optional[Mapping[str, Sequence[MethodSignature]]] = None,
    protocol_version: Optional[int] = None,
) -> VmDisassembly:
    instructions = disassemble(script)
    extractor = CallExtractor(method_table, protocol_version)
    calls = extractor.run(instructions)
    logger.debug(
        "disassembled %d instructions, %d calls", len(instructions), len(calls)
    )
    return VmDisassembly(instructions, calls, extractor.warnings)


def disassemble_script_hex(
    script_hex: str,
    method_table: Optional[Mapping[str, Sequence[MethodSignature]]] = None,
    protocol_version: Optional[int] = None,
) -> VmDisassembly:
    return disassemble_script(hex_to_bytes(script_hex), method_table, protocol_version)


__all__ = [
    "CallExtractor",
    "LATEST_PROTOCOL_VERSION",
    "MethodCall",
    "PROTOCOL_ARITY",
    "VmDisassembly",
    "disassemble_script",
    "disassemble_script_hex",
    "expected_interop_arity",
]
