"""Rewrite Carbon bytes32 address fields into chain address text.

The pass works on the dictionary form of a decoded Carbon record and edits it
in place. Only strings of exactly 64 hex digits on the paths listed in
``CARBON_ADDRESS_PATH_INVENTORY`` are touched, so running it twice changes
nothing the second time.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from .address import bytes32_hex_to_text
from .errors import DecodeError

logger = logging.getLogger(__name__)

BYTES32_HEX_RE = re.compile(r"(?:0x)?[0-9a-fA-F]{64}")

ADDRESS_MODES = ("bytes32", "pha")

CARBON_ADDRESS_PATH_INVENTORY = (
    "carbon.gas_from",
    "carbon.witnesses[].address",
    "carbon.msg.to",
    "carbon.msg.from",
    "carbon.msg.transfer_f[].to",
    "carbon.msg.transfer_f[].from",
    "carbon.msg.transfer_n[].to",
    "carbon.msg.transfer_n[].from",
    "carbon.msg.mint_f[].to",
    "carbon.msg.burn_f[].from",
    "carbon.msg.mint_n[].to",
    "carbon.msg.burn_n[].from",
    "carbon.call.args[].value (type=bytes32)",
    "carbon.call.args[].value[] (type=bytes32[])",
    "carbon.call.args[].value.owner (type=token_info|series_info)",
    "carbon.call.args[].value.to (type=stake_import|txmsg_mint_fungible)",
    "carbon.call.args[].value.address (type=name_import|member_import)",
    "carbon.call.args[].value.info.owner (type=organization_import|series_import)",
    "carbon.call.args[].value.member_imports[].address (type=organization_import)",
    "carbon.call.args[].value.imports[].originator (type=series_import)",
    "carbon.call.args[].value.imports[].owner (type=series_import)",
    "carbon.call.args[].value.originator (type=nft_import)",
    "carbon.call.args[].value.owner (type=nft_import)",
    "carbon.call.args[].value[] (type=txmsg_call_multi, embedded calls)",
    "carbon.call.sections[].args[] (same typed mapping as carbon.call.args[])",
    "carbon.calls[].args[] (same typed mapping as carbon.call.args[])",
    "carbon.calls[].sections[].args[] (same typed mapping as carbon.call.args[])",
)

# Address fields inside single-object argument types.
_TYPED_FIELDS: Dict[str, Iterable[str]] = {
    "token_info": ("owner",),
    "series_info": ("owner",),
    "stake_import": ("to",),
    "txmsg_mint_fungible": ("to",),
    "name_import": ("address",),
    "member_import": ("address",),
    "nft_import": ("originator", "owner"),
}

_MSG_COLLECTIONS: Dict[str, Iterable[str]] = {
    "transfer_f": ("to", "from"),
    "transfer_n": ("to", "from"),
    "mint_f": ("to",),
    "burn_f": ("from",),
    "mint_n": ("to",),
    "burn_n": ("from",),
}


def convert_if_bytes32(value: Any) -> Any:
    if not isinstance(value, str) or not BYTES32_HEX_RE.fullmatch(value):
        return value
    try:
        return bytes32_hex_to_text(value)
    except DecodeError as exc:
        logger.debug("leaving %s unconverted: %s", value, exc)
        return value


def _convert_fields(record: Any, fields: Iterable[str]) -> None:
    if not isinstance(record, dict):
        return
    for name in fields:
        if name in record:
            record[name] = convert_if_bytes32(record[name])


def _convert_collection(record: Dict[str, Any], key: str, fields: Iterable[str]) -> None:
    items = record.get(key)
    if not isinstance(items, list):
        return
    for item in items:
        _convert_fields(item, fields)


def convert_value_by_type(type_name: str, value: Any) -> Any:
    """Convert address fields inside an argument value of catalog type ``type_name``."""

    if type_name.endswith("[]"):
        if isinstance(value, list):
            element = type_name[:-2]
            value[:] = [convert_value_by_type(element, item) for item in value]
        return value
    if type_name == "bytes32":
        return convert_if_bytes32(value)
    if not isinstance(value, (dict, list)):
        return value
    fields = _TYPED_FIELDS.get(type_name)
    if fields is not None:
        _convert_fields(value, fields)
    elif type_name == "organization_import" and isinstance(value, dict):
        _convert_fields(value.get("info"), ("owner",))
        _convert_collection(value, "member_imports", ("address",))
    elif type_name == "series_import" and isinstance(value, dict):
        _convert_fields(value.get("info"), ("owner",))
        _convert_collection(value, "imports", ("originator", "owner"))
    elif type_name == "txmsg_call_multi" and isinstance(value, list):
        for call in value:
            _convert_call(call)
    return value


def _convert_args(args: Any) -> None:
    if not isinstance(args, list):
        return
    for arg in args:
        if isinstance(arg, dict) and isinstance(arg.get("type"), str) and "value" in arg:
            arg["value"] = convert_value_by_type(arg["type"], arg["value"])


def _convert_call(call: Any) -> None:
    if not isinstance(call, dict):
        return
    _convert_args(call.get("args"))
    sections = call.get("sections")
    if isinstance(sections, list):
        for section in sections:
            if isinstance(section, dict):
                _convert_args(section.get("args"))


def convert_carbon_addresses(carbon: Dict[str, Any]) -> None:
    if "gas_from" in carbon:
        carbon["gas_from"] = convert_if_bytes32(carbon["gas_from"])
    _convert_collection(carbon, "witnesses", ("address",))

    msg = carbon.get("msg")
    if isinstance(msg, dict):
        _convert_fields(msg, ("to", "from"))
        for key, fields in _MSG_COLLECTIONS.items():
            _convert_collection(msg, key, fields)

    _convert_call(carbon.get("call"))
    calls = carbon.get("calls")
    if isinstance(calls, list):
        for call in calls:
            _convert_call(call)


def apply_carbon_address_mode(carbon: Optional[Dict[str, Any]], mode: str) -> List[str]:
    """Apply ``mode`` to a Carbon record dictionary; ``bytes32`` leaves it as is."""

    if mode not in ADDRESS_MODES:
        raise ValueError(f"unknown carbon address mode: {mode}")
    if mode == "pha" and carbon is not None:
        convert_carbon_addresses(carbon)
    return []


__all__ = [
    "ADDRESS_MODES",
    "CARBON_ADDRESS_PATH_INVENTORY",
    "apply_carbon_address_mode",
    "convert_carbon_addresses",
    "convert_if_bytes32",
    "convert_value_by_type",
]
