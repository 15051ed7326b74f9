"""Legacy VM transaction container decoding."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .abi import MethodSignature
from .emulator import MethodCall, disassemble_script
from .errors import DecodeError, FormatError
from .hexutil import hex_to_bytes
from .instruction import Instruction
from .reader import BinaryReader

logger = logging.getLogger(__name__)

SIGNATURE_KINDS = {0: "None", 1: "Ed25519", 2: "ECDSA"}


@dataclass(frozen=True)
class VmSignature:
    kind: str
    data_hex: str = ""
    curve: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"kind": self.kind, "data_hex": self.data_hex}
        if self.curve is not None:
            data["curve"] = self.curve
        return data


@dataclass
class VmDecoded:
    nexus: str
    chain: str
    script_hex: str
    payload_hex: str
    expiration_unix: int
    signatures: int
    signature_details: List[VmSignature] = field(default_factory=list)
    instructions: Optional[List[Instruction]] = None
    method_calls: Optional[List[MethodCall]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "nexus": self.nexus,
            "chain": self.chain,
            "script_hex": self.script_hex,
            "payload_hex": self.payload_hex,
            "expiration_unix": self.expiration_unix,
            "signatures": self.signatures,
        }
        if self.signature_details:
            data["signature_details"] = [sig.to_dict() for sig in self.signature_details]
        if self.instructions is not None:
            data["instructions"] = [instruction.to_dict() for instruction in self.instructions]
        if self.method_calls is not None:
            data["method_calls"] = [call.to_dict() for call in self.method_calls]
        return data


def _is_printable_ascii(value: str) -> bool:
    return all(32 <= ord(char) <= 126 for char in value)


def _read_signature(reader: BinaryReader) -> VmSignature:
    kind = reader.read_u8()
    if kind == 0:
        return VmSignature("None")
    if kind == 1:
        return VmSignature("Ed25519", reader.read_byte_array().hex())
    if kind == 2:
        curve = reader.read_u8()
        return VmSignature("ECDSA", reader.read_byte_array().hex(), curve)
    raise FormatError(f"unsupported VM signature kind {kind}")


def attach_disassembly(
    decoded: VmDecoded,
    warnings: List[str],
    method_table: Optional[Mapping[str, Sequence[MethodSignature]]] = None,
    protocol_version: Optional[int] = None,
    *,
    failure_prefix: str = "VM disassembly failed",
) -> None:
    """Disassemble ``decoded.script_hex`` in place; failures become warnings."""

    if not decoded.script_hex:
        return
    try:
        result = disassemble_script(
            hex_to_bytes(decoded.script_hex), method_table, protocol_version
        )
    except DecodeError as exc:
        logger.debug("script disassembly failed: %s", exc)
        warnings.append(f"{failure_prefix}: {exc}")
        return
    decoded.instructions = result.instructions
    decoded.method_calls = result.method_calls
    warnings.extend(result.warnings)


def decode_vm_transaction(
    data: bytes,
    method_table: Optional[Mapping[str, Sequence[MethodSignature]]] = None,
    protocol_version: Optional[int] = None,
) -> Tuple[VmDecoded, List[str]]:
    """Decode a serialized legacy transaction and disassemble its script."""

    warnings: List[str] = []
    reader = BinaryReader(data, label="VM transaction")

    nexus = reader.read_var_string()
    chain = reader.read_var_string()
    if not _is_printable_ascii(nexus) or not _is_printable_ascii(chain):
        raise FormatError("VM decode produced non-printable nexus/chain")

    script = reader.read_byte_array()
    expiration = reader.read_timestamp()
    payload = reader.read_byte_array()
    count = reader.read_length()
    signatures = [_read_signature(reader) for _ in range(count)]

    if not reader.at_end():
        warnings.append("VM decode did not consume all bytes")

    decoded = VmDecoded(
        nexus=nexus,
        chain=chain,
        script_hex=script.hex(),
        payload_hex=payload.hex(),
        expiration_unix=expiration,
        signatures=count,
        signature_details=signatures,
    )
    attach_disassembly(decoded, warnings, method_table, protocol_version)
    return decoded, warnings


__all__ = [
    "VmDecoded",
    "VmSignature",
    "attach_disassembly",
    "decode_vm_transaction",
]
