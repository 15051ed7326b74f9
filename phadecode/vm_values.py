"""Typed register values used while reconstructing VM calls."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Union

from .address import ADDRESS_LENGTH, Address
from .errors import FormatError
from .instruction import VmType, vm_type_name

Payload = Union[None, bytes, int, str, bool, Address]


@dataclass(frozen=True)
class VmValue:
    """Tagged register value; the payload shape is fixed by ``vm_type``."""

    vm_type: int
    data: Payload

    @classmethod
    def from_bytes(cls, vm_type: int, raw: bytes) -> "VmValue":
        raw = bytes(raw)
        if vm_type == VmType.BYTES:
            return cls(vm_type, raw)
        if vm_type == VmType.NUMBER:
            return cls(vm_type, int.from_bytes(raw, "little", signed=True) if raw else 0)
        if vm_type == VmType.STRING:
            return cls(vm_type, raw.decode("utf-8", errors="replace"))
        if vm_type in (VmType.ENUM, VmType.TIMESTAMP):
            if len(raw) < 4:
                raise FormatError(f"VM {vm_type_name(vm_type).lower()} value requires 4 bytes")
            return cls(vm_type, int.from_bytes(raw[:4], "little"))
        if vm_type == VmType.BOOL:
            return cls(vm_type, bool(raw) and raw[0] != 0)
        if len(raw) == ADDRESS_LENGTH:
            return cls(vm_type, Address(raw))
        return cls(vm_type, raw)

    def clone(self) -> "VmValue":
        if isinstance(self.data, bytes):
            return VmValue(self.vm_type, bytes(bytearray(self.data)))
        return VmValue(self.vm_type, self.data)

    def as_string(self) -> str:
        data = self.data
        if isinstance(data, Address):
            return data.text
        if isinstance(data, bool):
            return "true" if data else "false"
        if isinstance(data, bytes):
            if self.vm_type == VmType.BYTES:
                return data.decode("utf-8", errors="replace")
            return f"Interop:{data.hex()}"
        if data is None:
            return ""
        return str(data)

    def to_dict(self) -> Dict[str, Any]:
        data = self.data
        if isinstance(data, Address):
            value: Any = data.text
        elif isinstance(data, bytes):
            value = data.hex()
        elif isinstance(data, int) and not isinstance(data, bool) and self.vm_type == VmType.NUMBER:
            value = str(data)
        else:
            value = data
        return {"vm_type": vm_type_name(self.vm_type), "value": value}


__all__ = ["VmValue"]
