"""Catalog-driven decoding of Carbon module call arguments."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from .carbon_catalog import CallSignature, lookup_signature, module_name
from .carbon_reader import CarbonReader
from .carbon_values import (
    MAX_DEPTH,
    read_dynamic_struct,
    read_dynamic_variable,
    read_series_info,
    read_struct_schema,
    read_token_info,
)
from .errors import BoundsError, DecodeError, FormatError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawSection:
    register_offset: int
    args: bytes = b""


@dataclass(frozen=True)
class RawCall:
    """A call as framed on the wire, before argument decoding."""

    module_id: int
    method_id: int
    args: bytes = b""
    sections: Optional[Tuple[RawSection, ...]] = None


@dataclass
class CarbonCallArg:
    name: str
    type: str
    value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type, "value": self.value}


@dataclass
class CarbonCallSection:
    register_offset: int
    args_hex: Optional[str] = None
    args: Optional[List[CarbonCallArg]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"register_offset": self.register_offset}
        if self.args_hex is not None:
            data["args_hex"] = self.args_hex
        if self.args is not None:
            data["args"] = [arg.to_dict() for arg in self.args]
        return data


@dataclass
class CarbonCallDecoded:
    module_id: int
    method_id: int
    module_name: Optional[str] = None
    method_name: Optional[str] = None
    args_hex: Optional[str] = None
    args: Optional[List[CarbonCallArg]] = None
    sections: Optional[List[CarbonCallSection]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"module_id": self.module_id, "method_id": self.method_id}
        if self.module_name is not None:
            data["module_name"] = self.module_name
        if self.method_name is not None:
            data["method_name"] = self.method_name
        if self.sections is not None:
            data["sections"] = [section.to_dict() for section in self.sections]
            return data
        if self.args_hex is not None:
            data["args_hex"] = self.args_hex
        if self.args is not None:
            data["args"] = [arg.to_dict() for arg in self.args]
        return data


# ---------------------------------------------------------------------------
# wire framing


def read_call(reader: CarbonReader) -> RawCall:
    module_id = reader.read4u()
    method_id = reader.read4u()
    length = reader.read4()
    if length >= 0:
        return RawCall(module_id, method_id, reader.read_exactly(length))
    sections = []
    for _ in range(-length):
        offset = reader.read4()
        args = reader.read_array() if offset >= 0 else b""
        sections.append(RawSection(offset, args))
    return RawCall(module_id, method_id, sections=tuple(sections))


def read_call_multi(reader: CarbonReader) -> List[RawCall]:
    return [read_call(reader) for _ in range(reader.read_count())]


# ---------------------------------------------------------------------------
# composite argument layouts


def _read_chain_config(reader: CarbonReader) -> Dict[str, Any]:
    return {
        "version": reader.read1(),
        "reserved1": reader.read1(),
        "reserved2": reader.read1(),
        "reserved3": reader.read1(),
        "allowed_tx_types": reader.read4u(),
        "expiry_window": reader.read4u(),
        "block_rate_target": reader.read4u(),
    }


_GAS_CONFIG_U64_FIELDS = (
    "fee_multiplier",
    "gas_token_id",
    "data_token_id",
    "minimum_gas_offer",
    "data_escrow_per_row",
    "gas_fee_transfer",
    "gas_fee_query",
    "gas_fee_create_token_base",
    "gas_fee_create_token_symbol",
    "gas_fee_create_token_series",
    "gas_fee_per_byte",
    "gas_fee_register_name",
    "gas_burn_ratio_mul",
)

_VM_CONFIG_U64_FIELDS = (
    "gas_constructor",
    "gas_nexus",
    "gas_organization",
    "gas_account",
    "gas_leaderboard",
    "gas_standard",
    "gas_oracle",
)


def _read_gas_config(reader: CarbonReader) -> Dict[str, Any]:
    config: Dict[str, Any] = {
        "version": reader.read1(),
        "max_name_length": reader.read1(),
        "max_token_symbol_length": reader.read1(),
        "fee_shift": reader.read1(),
        "max_structure_size": reader.read4u(),
    }
    for name in _GAS_CONFIG_U64_FIELDS:
        config[name] = str(reader.read8u())
    config["gas_burn_ratio_shift"] = reader.read1()
    return config


def _read_phantasmavm_config(reader: CarbonReader) -> Dict[str, Any]:
    config: Dict[str, Any] = {"feature_level": reader.read4u()}
    for name in _VM_CONFIG_U64_FIELDS:
        config[name] = str(reader.read8u())
    config["fuel_per_contract_deploy"] = str(reader.read_intx())
    return config


def _read_node_info(reader: CarbonReader) -> Dict[str, Any]:
    return {"id": reader.read_bytes32().hex(), "type": reader.read1()}


def _read_node_list(reader: CarbonReader) -> Dict[str, Any]:
    count = reader.read4()
    if count < 0:
        raise FormatError("negative node count")
    return {"nodes": [_read_node_info(reader) for _ in range(count)]}


def _read_stake_import(reader: CarbonReader) -> Dict[str, Any]:
    return {
        "token_id": str(reader.read8u()),
        "to": reader.read_bytes32().hex(),
        "amount": str(reader.read_intx()),
        "time": str(reader.read8()),
    }


def _read_name_import(reader: CarbonReader) -> Dict[str, Any]:
    return {"address": reader.read_bytes32().hex(), "name": reader.read_small_string()}


def _read_member_import(reader: CarbonReader) -> Dict[str, Any]:
    return {"address": reader.read_bytes32().hex(), "timestamp": str(reader.read8())}


def _read_nft_import(reader: CarbonReader) -> Dict[str, Any]:
    return {
        "mint_number": reader.read4u(),
        "originator": reader.read_bytes32().hex(),
        "created": str(reader.read8()),
        "rom": reader.read_array().hex(),
        "ram": reader.read_array().hex(),
        "owner": reader.read_bytes32().hex(),
    }


def _read_nft_mint_info(reader: CarbonReader) -> Dict[str, Any]:
    return {
        "series_id": reader.read4u(),
        "rom": reader.read_array().hex(),
        "ram": reader.read_array().hex(),
    }


def read_mint_fungible(reader: CarbonReader) -> Dict[str, Any]:
    return {
        "token_id": str(reader.read8u()),
        "to": reader.read_bytes32().hex(),
        "amount": str(reader.read_intx()),
    }


_SIMPLE_READERS: Dict[str, Callable[[CarbonReader], Any]] = {
    "bytes": lambda reader: reader.read_array().hex(),
    "bytes32": lambda reader: reader.read_bytes32().hex(),
    "bytes64": lambda reader: reader.read_bytes64().hex(),
    "smallstring": CarbonReader.read_small_string,
    "u8": CarbonReader.read1,
    "u32": CarbonReader.read4u,
    "u64": lambda reader: str(reader.read8u()),
    "i64": lambda reader: str(reader.read8()),
    "intx": lambda reader: str(reader.read_intx()),
    "vm_struct_schema": read_struct_schema,
    "token_info": read_token_info,
    "series_info": read_series_info,
    "tokens_config": lambda reader: {"flags": reader.read1()},
    "nft_mint_info": _read_nft_mint_info,
    "stake_import": _read_stake_import,
    "name_import": _read_name_import,
    "member_import": _read_member_import,
    "nft_import": _read_nft_import,
    "txmsg_mint_fungible": read_mint_fungible,
    "chain_config": _read_chain_config,
    "gas_config": _read_gas_config,
    "node_info": _read_node_info,
    "node_list": _read_node_list,
    "phantasmavm_config": _read_phantasmavm_config,
}


def decode_type(reader: CarbonReader, type_name: str, warnings: List[str], depth: int = 0) -> Any:
    """Decode one value of catalog type ``type_name``."""

    if depth > MAX_DEPTH:
        raise FormatError("Carbon call arguments exceeded max depth")
    if type_name.endswith("[]"):
        element = type_name[:-2]
        if element == "bytes":
            return [item.hex() for item in reader.read_array_of_arrays()]
        count = reader.read4()
        if count < 0:
            raise FormatError("negative array length")
        return [decode_type(reader, element, warnings, depth + 1) for _ in range(count)]

    simple = _SIMPLE_READERS.get(type_name)
    if simple is not None:
        return simple(reader)
    if type_name == "vm_dynamic_struct":
        return read_dynamic_struct(reader, depth + 1)
    if type_name == "vm_dynamic_variable":
        return read_dynamic_variable(reader, depth + 1)
    if type_name == "organization_import":
        info = {
            "name": reader.read_small_string(),
            "owner": reader.read_bytes32().hex(),
            "metadata": read_dynamic_struct(reader, depth + 1),
        }
        members = decode_type(reader, "member_import[]", warnings, depth + 1)
        return {"info": info, "member_imports": members}
    if type_name == "series_import":
        return {
            "token_id": str(reader.read8u()),
            "info": read_series_info(reader),
            "imports": decode_type(reader, "nft_import[]", warnings, depth + 1),
        }
    if type_name == "txmsg_call_multi":
        calls = []
        for raw in read_call_multi(reader):
            decoded, call_warnings = decode_call(raw, depth + 1)
            warnings.extend(call_warnings)
            calls.append(decoded.to_dict())
        return calls
    raise FormatError(f"unsupported arg type '{type_name}'")


def decode_args(
    data: bytes, signature: Optional[CallSignature], depth: int = 0
) -> Tuple[Optional[List[CarbonCallArg]], List[str]]:
    """Decode an argument blob against ``signature``.

    Without a signature nothing is decoded. A truncated optional tail stops
    the list quietly; any other failure keeps the arguments decoded so far
    and reports the failing one.
    """

    warnings: List[str] = []
    if signature is None:
        return None, warnings

    reader = CarbonReader(data)
    decoded: List[CarbonCallArg] = []
    for arg in signature.args:
        try:
            value = decode_type(reader, arg.type, warnings, depth)
        except DecodeError as exc:
            if arg.optional and isinstance(exc, BoundsError) and "end of stream" in str(exc):
                break
            logger.debug("argument %s.%s failed: %s", signature.name, arg.name, exc)
            warnings.append(
                f"Call arg decode failed ({signature.name}.{arg.name}: {arg.type}): {exc}"
            )
            return decoded, warnings
        decoded.append(CarbonCallArg(arg.name, arg.type, value))

    if reader.remaining:
        warnings.append(f"Call args left {reader.remaining} trailing bytes")
    return decoded, warnings


def decode_call(raw: RawCall, depth: int = 0) -> Tuple[CarbonCallDecoded, List[str]]:
    warnings: List[str] = []
    signature = lookup_signature(raw.module_id, raw.method_id)
    call = CarbonCallDecoded(
        module_id=raw.module_id,
        method_id=raw.method_id,
        module_name=module_name(raw.module_id),
        method_name=signature.name if signature else None,
    )

    if raw.sections:
        call.sections = []
        for section in raw.sections:
            decoded_section = CarbonCallSection(section.register_offset)
            if section.register_offset >= 0:
                decoded_section.args_hex = section.args.hex()
                decoded_section.args, section_warnings = decode_args(
                    section.args, signature, depth
                )
                warnings.extend(section_warnings)
            call.sections.append(decoded_section)
        return call, warnings

    call.args_hex = raw.args.hex()
    call.args, arg_warnings = decode_args(raw.args, signature, depth)
    warnings.extend(arg_warnings)
    return call, warnings


def decode_call_multi(raws: List[RawCall]) -> Tuple[List[CarbonCallDecoded], List[str]]:
    warnings: List[str] = []
    calls = []
    for raw in raws:
        call, call_warnings = decode_call(raw)
        warnings.extend(call_warnings)
        calls.append(call)
    return calls, warnings


__all__ = [
    "CarbonCallArg",
    "CarbonCallDecoded",
    "CarbonCallSection",
    "RawCall",
    "RawSection",
    "decode_args",
    "decode_call",
    "decode_call_multi",
    "decode_type",
    "read_call",
    "read_call_multi",
    "read_mint_fungible",
]
