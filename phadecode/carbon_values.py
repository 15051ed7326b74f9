"""Carbon VM dynamic values, schemas and token/series records.

Every reader returns JSON-ready data: byte strings become hex, 64-bit and
arbitrary precision integers become decimal strings, narrower integers stay
``int``.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Dict, List

from .carbon_reader import CarbonReader
from .errors import FormatError

MAX_DEPTH = 128
ARRAY_FLAG = 0x80


class CarbonVmType(IntEnum):
    DYNAMIC = 0
    INT8 = 1
    INT16 = 2
    INT32 = 3
    INT64 = 4
    INT256 = 5
    BYTES = 6
    STRING = 7
    BYTES16 = 8
    BYTES32 = 9
    BYTES64 = 10
    STRUCT = 11


_TYPE_NAMES = {
    CarbonVmType.DYNAMIC: "Dynamic",
    CarbonVmType.INT8: "Int8",
    CarbonVmType.INT16: "Int16",
    CarbonVmType.INT32: "Int32",
    CarbonVmType.INT64: "Int64",
    CarbonVmType.INT256: "Int256",
    CarbonVmType.BYTES: "Bytes",
    CarbonVmType.STRING: "String",
    CarbonVmType.BYTES16: "Bytes16",
    CarbonVmType.BYTES32: "Bytes32",
    CarbonVmType.BYTES64: "Bytes64",
    CarbonVmType.STRUCT: "Struct",
}


def carbon_type_name(type_byte: int) -> str:
    base = type_byte & ~ARRAY_FLAG
    try:
        name = _TYPE_NAMES[CarbonVmType(base)]
    except ValueError:
        name = f"Type_{base}"
    return name + "[]" if type_byte & ARRAY_FLAG else name


def _check_depth(depth: int) -> None:
    if depth > MAX_DEPTH:
        raise FormatError("Carbon VM value exceeded max depth")


def _read_scalar(reader: CarbonReader, base: int, depth: int) -> Any:
    if base == CarbonVmType.DYNAMIC:
        return None
    if base == CarbonVmType.INT8:
        return int.from_bytes(reader.read_exactly(1), "little", signed=True)
    if base == CarbonVmType.INT16:
        return int.from_bytes(reader.read_exactly(2), "little", signed=True)
    if base == CarbonVmType.INT32:
        return reader.read4()
    if base == CarbonVmType.INT64:
        return str(reader.read8())
    if base == CarbonVmType.INT256:
        return str(int.from_bytes(reader.read_exactly(32), "little", signed=True))
    if base == CarbonVmType.BYTES:
        return reader.read_array().hex()
    if base == CarbonVmType.STRING:
        return reader.read_array().decode("utf-8", errors="replace")
    if base == CarbonVmType.BYTES16:
        return reader.read_exactly(16).hex()
    if base == CarbonVmType.BYTES32:
        return reader.read_bytes32().hex()
    if base == CarbonVmType.BYTES64:
        return reader.read_bytes64().hex()
    if base == CarbonVmType.STRUCT:
        return read_dynamic_struct(reader, depth + 1)
    raise FormatError(f"unsupported Carbon VM type {base}")


def read_dynamic_variable(reader: CarbonReader, depth: int = 0) -> Dict[str, Any]:
    _check_depth(depth)
    type_byte = reader.read1()
    base = type_byte & ~ARRAY_FLAG
    if type_byte & ARRAY_FLAG:
        count = reader.read_count()
        value: Any = [_read_scalar(reader, base, depth) for _ in range(count)]
    else:
        value = _read_scalar(reader, base, depth)
    return {"type": carbon_type_name(type_byte), "value": value}


def read_dynamic_struct(reader: CarbonReader, depth: int = 0) -> List[Dict[str, Any]]:
    _check_depth(depth)
    fields: List[Dict[str, Any]] = []
    for _ in range(reader.read_count()):
        name = reader.read_small_string()
        variable = read_dynamic_variable(reader, depth + 1)
        fields.append({"name": name, **variable})
    return fields


def read_struct_schema(reader: CarbonReader) -> Dict[str, Any]:
    fields = []
    for _ in range(reader.read_count()):
        name = reader.read_small_string()
        fields.append({"name": name, "type": carbon_type_name(reader.read1())})
    return {"fields": fields, "flags": reader.read1()}


def read_token_info(reader: CarbonReader) -> Dict[str, Any]:
    return {
        "max_supply": str(reader.read_intx()),
        "flags": reader.read1(),
        "decimals": reader.read1(),
        "owner": reader.read_bytes32().hex(),
        "symbol": reader.read_small_string(),
        "metadata": reader.read_array().hex(),
        "token_schemas": reader.read_array().hex(),
    }


def read_series_info(reader: CarbonReader) -> Dict[str, Any]:
    return {
        "max_mint": reader.read4u(),
        "max_supply": reader.read4u(),
        "owner": reader.read_bytes32().hex(),
        "metadata": reader.read_array().hex(),
        "rom": read_struct_schema(reader),
        "ram": read_struct_schema(reader),
    }


__all__ = [
    "ARRAY_FLAG",
    "CarbonVmType",
    "MAX_DEPTH",
    "carbon_type_name",
    "read_dynamic_struct",
    "read_dynamic_variable",
    "read_series_info",
    "read_struct_schema",
    "read_token_info",
]
