"""NFT ROM decoding: legacy VM dictionaries and the CROWN record."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from .address import ADDRESS_LENGTH, Address
from .errors import BoundsError, DecodeError, FormatError
from .hexutil import hex_to_bytes
from .instruction import VmType
from .reader import BinaryReader

logger = logging.getLogger(__name__)

MAX_DEPTH = 128
CROWN_MAX_ADDRESS_LENGTH = 2048

PARSER_LEGACY = "legacy"
PARSER_CROWN = "crown"
ROM_MODES = ("auto", PARSER_LEGACY, PARSER_CROWN)

_NODE_TYPE_NAMES = {
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


def timestamp_to_iso(value: int) -> str:
    try:
        moment = datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, ValueError, OSError) as exc:
        raise FormatError(f"timestamp {value} is out of range") from exc
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass
class CrownRecord:
    address_length: int
    staker_address_hex: str
    timestamp_unix: int
    timestamp_iso: str
    staker_address: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "address_length": self.address_length,
            "staker_address_hex": self.staker_address_hex,
        }
        if self.staker_address is not None:
            data["staker_address"] = self.staker_address
        data["timestamp_unix"] = self.timestamp_unix
        data["timestamp_iso"] = self.timestamp_iso
        return data


@dataclass
class RomDecoded:
    """Decoded ROM; ``parser`` decides which of ``vm``/``crown`` is set."""

    parser: str
    raw_hex: str
    symbol: Optional[str] = None
    token_id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    created_unix: Optional[int] = None
    created_iso: Optional[str] = None
    fields: Optional[Dict[str, Any]] = None
    vm: Optional[Dict[str, Any]] = None
    crown: Optional[CrownRecord] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"parser": self.parser, "raw_hex": self.raw_hex}
        for key in ("symbol", "token_id", "name", "description", "created_unix", "created_iso", "fields"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.vm is not None:
            data["vm"] = {"root": self.vm}
        if self.crown is not None:
            data["crown"] = self.crown.to_dict()
        return data


# ---------------------------------------------------------------------------
# legacy VM dictionary


def _node(type_id: int, **extra: Any) -> Dict[str, Any]:
    node: Dict[str, Any] = {"vm_type_id": type_id, "vm_type": _NODE_TYPE_NAMES[VmType(type_id)]}
    node.update(extra)
    return node


def _node_json(node: Dict[str, Any]) -> Any:
    if node["vm_type"] == "Struct":
        if "fields" in node:
            return node["fields"]
        return node["entries"]
    return node.get("value")


def _field_name(node: Dict[str, Any]) -> Optional[str]:
    value = node.get("value")
    if value is None:
        return None
    kind = node["vm_type"]
    if kind in ("String", "Number"):
        return value if isinstance(value, str) else None
    if kind in ("Enum", "Timestamp"):
        return str(value)
    if kind == "Bool":
        return "true" if value else "false"
    return None


def _read_object(raw: bytes) -> Dict[str, Any]:
    if len(raw) == ADDRESS_LENGTH + 1 and raw[0] == ADDRESS_LENGTH:
        address_bytes = raw[1:]
        return {
            "kind": "Address",
            "text": Address(address_bytes).text,
            "bytes_hex": address_bytes.hex(),
        }
    return {"kind": "ObjectBytes", "bytes_hex": raw.hex()}


def parse_vm_node(reader: BinaryReader, depth: int = 0) -> Dict[str, Any]:
    """Parse one tagged legacy VM node, recursing into structs."""

    if depth > MAX_DEPTH:
        raise FormatError("ROM VM decode exceeded max depth")

    offset = reader.position
    type_id = reader.read_u8()
    if type_id == VmType.NONE:
        return _node(type_id, value=None)
    if type_id == VmType.STRUCT:
        return _parse_struct(reader, depth)
    if type_id == VmType.BYTES:
        return _node(type_id, value=reader.read_byte_array().hex())
    if type_id == VmType.NUMBER:
        raw = reader.read_bytes(reader.read_u8())
        return _node(type_id, value=str(int.from_bytes(raw, "little", signed=True)) if raw else "0")
    if type_id == VmType.STRING:
        return _node(type_id, value=reader.read_var_string())
    if type_id == VmType.TIMESTAMP:
        return _node(type_id, value=reader.read_timestamp())
    if type_id == VmType.BOOL:
        return _node(type_id, value=reader.read_u8() != 0)
    if type_id == VmType.ENUM:
        return _node(type_id, value=reader.read_varint())
    if type_id == VmType.OBJECT:
        return _node(type_id, value=_read_object(reader.read_byte_array()))
    raise FormatError(f"unsupported VM type {type_id} at offset {offset}")


def _parse_struct(reader: BinaryReader, depth: int) -> Dict[str, Any]:
    count = reader.read_varint()
    # every entry needs at least a key tag and a value tag
    if count * 2 > reader.remaining:
        raise BoundsError(
            f"ROM struct count {count} exceeds remaining {reader.remaining} bytes"
        )
    entries: List[Dict[str, Any]] = []
    fields: Dict[str, Any] = {}
    foldable = True
    for _ in range(count):
        key = parse_vm_node(reader, depth + 1)
        value = parse_vm_node(reader, depth + 1)
        value_json = _node_json(value)
        entries.append(
            {
                "key_vm_type": key["vm_type"],
                "key": _node_json(key),
                "value_vm_type": value["vm_type"],
                "value": value_json,
            }
        )
        name = _field_name(key)
        if name is None or name in fields:
            foldable = False
            continue
        fields[name] = value_json
    if foldable:
        return _node(VmType.STRUCT, fields=fields, entries=entries)
    return _node(VmType.STRUCT, entries=entries)


def _created_from_fields(fields: Optional[Dict[str, Any]]) -> Optional[int]:
    if not fields:
        return None
    value = fields.get("created")
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def decode_legacy_rom(
    data: bytes, symbol: Optional[str] = None, token_id: Optional[str] = None
) -> Tuple[RomDecoded, List[str]]:
    warnings: List[str] = []
    reader = BinaryReader(data, label="ROM")
    root = parse_vm_node(reader)
    if root["vm_type"] != "Struct":
        raise FormatError(f"legacy ROM root must be Struct, got {root['vm_type']}")
    if not reader.at_end():
        warnings.append(f"legacy ROM has {reader.remaining} trailing bytes")

    fields = root.get("fields")
    decoded = RomDecoded(
        parser="legacy-vm-dictionary",
        raw_hex=bytes(data).hex(),
        symbol=symbol,
        token_id=token_id,
        fields=fields,
        vm=root,
    )
    if fields:
        if isinstance(fields.get("name"), str):
            decoded.name = fields["name"]
        if isinstance(fields.get("description"), str):
            decoded.description = fields["description"]
    created = _created_from_fields(fields)
    if created is not None:
        decoded.created_unix = created
        decoded.created_iso = timestamp_to_iso(created)
    return decoded, warnings


# ---------------------------------------------------------------------------
# CROWN


def decode_crown_rom(
    data: bytes, symbol: Optional[str] = None, token_id: Optional[str] = None
) -> Tuple[RomDecoded, List[str]]:
    warnings: List[str] = []
    reader = BinaryReader(data, label="CROWN ROM")
    address_length = reader.read_varint(CROWN_MAX_ADDRESS_LENGTH)
    staker = reader.read_bytes(address_length)
    timestamp = reader.read_timestamp()

    if not reader.at_end():
        warnings.append(f"CROWN ROM has {reader.remaining} trailing bytes")

    crown = CrownRecord(
        address_length=address_length,
        staker_address_hex=staker.hex(),
        timestamp_unix=timestamp,
        timestamp_iso=timestamp_to_iso(timestamp),
    )
    if len(staker) == ADDRESS_LENGTH:
        crown.staker_address = Address(staker).text
    else:
        warnings.append(
            f"CROWN staker address length is {len(staker)}, expected {ADDRESS_LENGTH}"
        )

    decoded = RomDecoded(
        parser="crown",
        raw_hex=bytes(data).hex(),
        symbol=symbol,
        token_id=token_id,
        name=f"CROWN #{token_id}" if token_id else None,
        description="",
        created_unix=timestamp,
        created_iso=crown.timestamp_iso,
        crown=crown,
    )
    return decoded, warnings


_PARSERS: Dict[str, Callable[..., Tuple[RomDecoded, List[str]]]] = {
    PARSER_LEGACY: decode_legacy_rom,
    PARSER_CROWN: decode_crown_rom,
}


def normalize_rom_mode(mode: str) -> str:
    value = mode.strip().lower()
    if value == "common":
        return PARSER_LEGACY
    if value not in ROM_MODES:
        raise ValueError(f"unknown rom format: {mode}")
    return value


def pick_parser(mode: str, symbol: Optional[str]) -> str:
    if mode in (PARSER_LEGACY, PARSER_CROWN):
        return mode
    return PARSER_CROWN if (symbol or "").strip().upper() == "CROWN" else PARSER_LEGACY


def decode_rom(
    data: bytes,
    *,
    mode: str = "auto",
    symbol: Optional[str] = None,
    token_id: Optional[str] = None,
) -> Tuple[RomDecoded, List[str]]:
    """Decode a ROM blob.

    ``auto`` picks the CROWN parser for the CROWN symbol and the legacy
    dictionary parser otherwise, then retries once with the other parser.
    A forced mode never falls back.
    """

    mode = normalize_rom_mode(mode)
    symbol = symbol.strip().upper() if symbol and symbol.strip() else None
    token_id = token_id.strip() if token_id and token_id.strip() else None
    primary = pick_parser(mode, symbol)

    try:
        return _PARSERS[primary](data, symbol, token_id)
    except DecodeError as exc:
        if mode != "auto":
            raise FormatError(f"{primary} ROM decode failed: {exc}") from exc
        fallback = PARSER_LEGACY if primary == PARSER_CROWN else PARSER_CROWN
        logger.debug("ROM %s parser failed (%s); trying %s", primary, exc, fallback)
        decoded, warnings = _PARSERS[fallback](data, symbol, token_id)
        warnings.insert(0, f"auto parser fallback: {primary} failed ({exc}); {fallback} succeeded")
        return decoded, warnings


def decode_rom_hex(
    text: str,
    *,
    mode: str = "auto",
    symbol: Optional[str] = None,
    token_id: Optional[str] = None,
) -> Tuple[RomDecoded, List[str]]:
    return decode_rom(hex_to_bytes(text), mode=mode, symbol=symbol, token_id=token_id)


__all__ = [
    "CrownRecord",
    "ROM_MODES",
    "RomDecoded",
    "decode_crown_rom",
    "decode_legacy_rom",
    "decode_rom",
    "decode_rom_hex",
    "normalize_rom_mode",
    "parse_vm_node",
    "pick_parser",
    "timestamp_to_iso",
]
