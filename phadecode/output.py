"""Decode results, output options and rendering."""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .address import AddressDecoded
from .carbon import CarbonDecoded
from .carbon_addresses import apply_carbon_address_mode
from .emulator import LATEST_PROTOCOL_VERSION
from .events import EventDecoded
from .rom import RomDecoded
from .vm import VmDecoded

OUTPUT_FORMATS = ("json", "pretty")
VM_DETAIL_MODES = ("all", "calls", "ops", "none")
CARBON_DETAIL_MODES = ("all", "call", "msg", "none")

VM_DETAIL_ALIASES = {
    "all": "all",
    "both": "all",
    "calls": "calls",
    "methods": "calls",
    "ops": "ops",
    "opcodes": "ops",
    "none": "none",
    "off": "none",
}

CARBON_ADDRESS_ALIASES = {
    "bytes32": "bytes32",
    "raw": "bytes32",
    "hex": "bytes32",
    "off": "bytes32",
    "pha": "pha",
    "phantasma": "pha",
    "decode": "pha",
}

ROM_MODE_ALIASES = {"auto": "auto", "legacy": "legacy", "common": "legacy", "crown": "crown"}


@dataclass(frozen=True)
class DecodeOptions:
    format: str = "pretty"
    vm_detail: str = "all"
    carbon_detail: str = "call"
    carbon_addresses: str = "bytes32"
    protocol_version: int = LATEST_PROTOCOL_VERSION
    rom_mode: str = "auto"
    rpc_url: Optional[str] = None
    abi_path: Optional[str] = None
    resolve: bool = False
    verbose: bool = False


@dataclass
class RpcMeta:
    url: str
    method: str

    def to_dict(self) -> Dict[str, str]:
        return {"url": self.url, "method": self.method}


@dataclass
class DecodeOutput:
    """Everything one decode produced, in rendering order."""

    source: str
    input: str
    format: str = "pretty"
    rpc: Optional[RpcMeta] = None
    carbon: Optional[CarbonDecoded] = None
    vm: Optional[VmDecoded] = None
    event: Optional[EventDecoded] = None
    rom: Optional[RomDecoded] = None
    address: Optional[AddressDecoded] = None
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "source": self.source,
            "input": self.input,
            "format": self.format,
        }
        for key in ("rpc", "carbon", "vm", "event", "rom", "address"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value.to_dict()
        data["warnings"] = list(self.warnings)
        data["errors"] = list(self.errors)
        return data


def apply_vm_detail(data: Dict[str, Any], mode: str) -> None:
    vm = data.get("vm")
    if not isinstance(vm, dict):
        return
    if mode in ("calls", "none"):
        vm.pop("instructions", None)
    if mode in ("ops", "none"):
        vm.pop("method_calls", None)


def apply_carbon_detail(data: Dict[str, Any], mode: str) -> None:
    if mode == "all":
        return
    if mode == "none":
        data.pop("carbon", None)
        return
    carbon = data.get("carbon")
    if not isinstance(carbon, dict):
        return
    if mode == "call":
        carbon.pop("msg", None)
    elif mode == "msg":
        carbon.pop("call", None)
        carbon.pop("calls", None)


def build_output_dict(output: DecodeOutput, options: DecodeOptions) -> Dict[str, Any]:
    """Serialize ``output`` and apply the address and detail options to it."""

    data = output.to_dict()
    carbon = data.get("carbon")
    if isinstance(carbon, dict):
        data["carbon"] = carbon = copy.deepcopy(carbon)
        # rewrite before filtering so both msg and call see the same mode
        data["warnings"].extend(apply_carbon_address_mode(carbon, options.carbon_addresses))
    apply_vm_detail(data, options.vm_detail)
    apply_carbon_detail(data, options.carbon_detail)
    return data


def _json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def render_pretty(data: Dict[str, Any]) -> str:
    lines = [f"Source: {data['source']}", f"Input: {data['input']}"]
    rpc = data.get("rpc")
    if rpc:
        lines.append(f"RPC: {rpc['url']} ({rpc['method']})")
    if data.get("errors"):
        lines.append("Errors:")
        lines.extend(f"- {error}" for error in data["errors"])
    if data.get("warnings"):
        lines.append("Warnings:")
        lines.extend(f"- {warning}" for warning in data["warnings"])
    for key, title in (
        ("carbon", "Carbon"),
        ("vm", "VM"),
        ("event", "Event"),
        ("rom", "ROM"),
        ("address", "Address"),
    ):
        if key in data:
            lines.append(f"{title}:")
            lines.append(_json(data[key]))
    return "\n".join(lines)


def render_output(data: Dict[str, Any]) -> str:
    if data.get("format") == "json":
        return _json(data)
    return render_pretty(data)


__all__ = [
    "CARBON_ADDRESS_ALIASES",
    "CARBON_DETAIL_MODES",
    "DecodeOptions",
    "DecodeOutput",
    "OUTPUT_FORMATS",
    "ROM_MODE_ALIASES",
    "RpcMeta",
    "VM_DETAIL_ALIASES",
    "VM_DETAIL_MODES",
    "apply_carbon_detail",
    "apply_vm_detail",
    "build_output_dict",
    "render_output",
    "render_pretty",
]
