"""Carbon transaction envelopes and typed payload messages."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Dict, List, Optional, Tuple

from .address import text_to_bytes32
from .carbon_call import (
    CarbonCallDecoded,
    RawCall,
    decode_call,
    decode_call_multi,
    read_call,
    read_call_multi,
    read_mint_fungible,
)
from .carbon_reader import CarbonReader
from .errors import DecodeError, FormatError
from .hexutil import hex_to_bytes

logger = logging.getLogger(__name__)


class CarbonTxType(IntEnum):
    CALL = 0
    CALL_MULTI = 1
    TRADE = 2
    TRANSFER_FUNGIBLE = 3
    TRANSFER_FUNGIBLE_GAS_PAYER = 4
    TRANSFER_NON_FUNGIBLE_SINGLE = 5
    TRANSFER_NON_FUNGIBLE_SINGLE_GAS_PAYER = 6
    TRANSFER_NON_FUNGIBLE_MULTI = 7
    TRANSFER_NON_FUNGIBLE_MULTI_GAS_PAYER = 8
    MINT_FUNGIBLE = 9
    BURN_FUNGIBLE = 10
    BURN_FUNGIBLE_GAS_PAYER = 11
    MINT_NON_FUNGIBLE = 12
    BURN_NON_FUNGIBLE = 13
    BURN_NON_FUNGIBLE_GAS_PAYER = 14
    PHANTASMA = 15
    PHANTASMA_RAW = 16


TX_TYPE_NAMES: Dict[int, str] = {
    CarbonTxType.CALL: "Call",
    CarbonTxType.CALL_MULTI: "Call_Multi",
    CarbonTxType.TRADE: "Trade",
    CarbonTxType.TRANSFER_FUNGIBLE: "TransferFungible",
    CarbonTxType.TRANSFER_FUNGIBLE_GAS_PAYER: "TransferFungible_GasPayer",
    CarbonTxType.TRANSFER_NON_FUNGIBLE_SINGLE: "TransferNonFungible_Single",
    CarbonTxType.TRANSFER_NON_FUNGIBLE_SINGLE_GAS_PAYER: "TransferNonFungible_Single_GasPayer",
    CarbonTxType.TRANSFER_NON_FUNGIBLE_MULTI: "TransferNonFungible_Multi",
    CarbonTxType.TRANSFER_NON_FUNGIBLE_MULTI_GAS_PAYER: "TransferNonFungible_Multi_GasPayer",
    CarbonTxType.MINT_FUNGIBLE: "MintFungible",
    CarbonTxType.BURN_FUNGIBLE: "BurnFungible",
    CarbonTxType.BURN_FUNGIBLE_GAS_PAYER: "BurnFungible_GasPayer",
    CarbonTxType.MINT_NON_FUNGIBLE: "MintNonFungible",
    CarbonTxType.BURN_NON_FUNGIBLE: "BurnNonFungible",
    CarbonTxType.BURN_NON_FUNGIBLE_GAS_PAYER: "BurnNonFungible_GasPayer",
    CarbonTxType.PHANTASMA: "Phantasma",
    CarbonTxType.PHANTASMA_RAW: "Phantasma_Raw",
}


def tx_type_name(value: int) -> str:
    return TX_TYPE_NAMES.get(value, f"Unknown({value})")


@dataclass
class CarbonDecoded:
    type: int
    type_name: str
    expiry: str
    max_gas: str
    max_data: str
    gas_from: str
    payload: str
    msg: Any = None
    witnesses: Optional[List[Any]] = None
    call: Optional[CarbonCallDecoded] = None
    calls: Optional[List[CarbonCallDecoded]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.type,
            "type_name": self.type_name,
            "expiry": self.expiry,
            "max_gas": self.max_gas,
            "max_data": self.max_data,
            "gas_from": self.gas_from,
            "payload": self.payload,
            "msg": self.msg,
        }
        if self.witnesses is not None:
            data["witnesses"] = self.witnesses
        if self.call is not None:
            data["call"] = self.call.to_dict()
        if self.calls is not None:
            data["calls"] = [call.to_dict() for call in self.calls]
        return data


@dataclass
class RpcContext:
    """Envelope fields an RPC node reports next to a bare Carbon payload."""

    gas_payer: Optional[str] = None
    gas_limit: Optional[str] = None
    expiration: Optional[int] = None
    payload_hex: Optional[str] = None
    signatures: Optional[List[Any]] = None


# ---------------------------------------------------------------------------
# payload messages


def _u64(reader: CarbonReader) -> str:
    return str(reader.read8u())


def _addr(reader: CarbonReader) -> str:
    return reader.read_bytes32().hex()


def _instance_ids(reader: CarbonReader) -> List[str]:
    return [_u64(reader) for _ in range(reader.read_count())]


def _transfer_fungible(reader: CarbonReader, gas_payer: bool) -> Dict[str, Any]:
    msg: Dict[str, Any] = {"to": _addr(reader)}
    if gas_payer:
        msg["from"] = _addr(reader)
    msg["token_id"] = _u64(reader)
    msg["amount"] = _u64(reader)
    return msg


def _transfer_nft_single(reader: CarbonReader, gas_payer: bool) -> Dict[str, Any]:
    msg: Dict[str, Any] = {"to": _addr(reader)}
    if gas_payer:
        msg["from"] = _addr(reader)
    msg["token_id"] = _u64(reader)
    msg["instance_id"] = _u64(reader)
    return msg


def _transfer_nft_multi(reader: CarbonReader, gas_payer: bool) -> Dict[str, Any]:
    msg: Dict[str, Any] = {"to": _addr(reader)}
    if gas_payer:
        msg["from"] = _addr(reader)
    msg["token_id"] = _u64(reader)
    msg["instance_ids"] = _instance_ids(reader)
    return msg


def _burn_fungible(reader: CarbonReader, gas_payer: bool) -> Dict[str, Any]:
    msg: Dict[str, Any] = {"token_id": _u64(reader)}
    if gas_payer:
        msg["from"] = _addr(reader)
    msg["amount"] = str(reader.read_intx())
    return msg


def _mint_non_fungible(reader: CarbonReader) -> Dict[str, Any]:
    return {
        "token_id": _u64(reader),
        "to": _addr(reader),
        "series_id": reader.read4u(),
        "rom": reader.read_array().hex(),
        "ram": reader.read_array().hex(),
    }


def _burn_non_fungible(reader: CarbonReader, gas_payer: bool) -> Dict[str, Any]:
    msg: Dict[str, Any] = {"token_id": _u64(reader)}
    if gas_payer:
        msg["from"] = _addr(reader)
    msg["instance_ids"] = _instance_ids(reader)
    return msg


def _list_of(reader: CarbonReader, read_item: Callable[[CarbonReader], Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [read_item(reader) for _ in range(reader.read_count())]


def _trade(reader: CarbonReader) -> Dict[str, Any]:
    return {
        "transfer_f": _list_of(reader, lambda r: _transfer_fungible(r, True)),
        "transfer_n": _list_of(reader, lambda r: _transfer_nft_multi(r, True)),
        "mint_f": _list_of(reader, read_mint_fungible),
        "burn_f": _list_of(reader, lambda r: _burn_fungible(r, True)),
        "mint_n": _list_of(reader, _mint_non_fungible),
        "burn_n": _list_of(reader, lambda r: _burn_non_fungible(r, True)),
    }


def _phantasma(reader: CarbonReader) -> Dict[str, Any]:
    return {
        "nexus": reader.read_small_string(),
        "chain": reader.read_small_string(),
        "script": reader.read_array().hex(),
    }


def _raw_call_to_msg(raw: RawCall) -> Dict[str, Any]:
    msg: Dict[str, Any] = {"module_id": raw.module_id, "method_id": raw.method_id}
    if raw.sections is not None:
        msg["sections"] = [
            {"register_offset": section.register_offset, "args": section.args.hex()}
            for section in raw.sections
        ]
    else:
        msg["args"] = raw.args.hex()
    return msg


_PAYLOAD_READERS: Dict[int, Callable[[CarbonReader], Any]] = {
    CarbonTxType.CALL: read_call,
    CarbonTxType.CALL_MULTI: read_call_multi,
    CarbonTxType.TRADE: _trade,
    CarbonTxType.TRANSFER_FUNGIBLE: lambda r: _transfer_fungible(r, False),
    CarbonTxType.TRANSFER_FUNGIBLE_GAS_PAYER: lambda r: _transfer_fungible(r, True),
    CarbonTxType.TRANSFER_NON_FUNGIBLE_SINGLE: lambda r: _transfer_nft_single(r, False),
    CarbonTxType.TRANSFER_NON_FUNGIBLE_SINGLE_GAS_PAYER: lambda r: _transfer_nft_single(r, True),
    CarbonTxType.TRANSFER_NON_FUNGIBLE_MULTI: lambda r: _transfer_nft_multi(r, False),
    CarbonTxType.TRANSFER_NON_FUNGIBLE_MULTI_GAS_PAYER: lambda r: _transfer_nft_multi(r, True),
    CarbonTxType.MINT_FUNGIBLE: read_mint_fungible,
    CarbonTxType.BURN_FUNGIBLE: lambda r: _burn_fungible(r, False),
    CarbonTxType.BURN_FUNGIBLE_GAS_PAYER: lambda r: _burn_fungible(r, True),
    CarbonTxType.MINT_NON_FUNGIBLE: _mint_non_fungible,
    CarbonTxType.BURN_NON_FUNGIBLE: lambda r: _burn_non_fungible(r, False),
    CarbonTxType.BURN_NON_FUNGIBLE_GAS_PAYER: lambda r: _burn_non_fungible(r, True),
    CarbonTxType.PHANTASMA: _phantasma,
    CarbonTxType.PHANTASMA_RAW: lambda r: {"transaction": r.read_array().hex()},
}


def read_payload(tx_type: int, reader: CarbonReader) -> Any:
    read = _PAYLOAD_READERS.get(tx_type)
    if read is None:
        raise FormatError(f"Unsupported transaction type {tx_type}")
    return read(reader)


def _attach_calls(payload: Any, decoded: CarbonDecoded, warnings: List[str]) -> Any:
    """Decode call metadata and return the JSON form of ``payload``."""

    if isinstance(payload, RawCall):
        decoded.call, call_warnings = decode_call(payload)
        warnings.extend(call_warnings)
        return _raw_call_to_msg(payload)
    if decoded.type == CarbonTxType.CALL_MULTI:
        decoded.calls, call_warnings = decode_call_multi(payload)
        warnings.extend(call_warnings)
        return {"calls": [_raw_call_to_msg(raw) for raw in payload]}
    return payload


def _read_witnesses(reader: CarbonReader) -> List[Dict[str, str]]:
    return [
        {"address": reader.read_bytes32().hex(), "signature": reader.read_bytes64().hex()}
        for _ in range(reader.read_count())
    ]


def decode_carbon_signed_tx(data: bytes) -> Tuple[CarbonDecoded, List[str]]:
    """Decode a signed envelope: the transaction message followed by witnesses."""

    warnings: List[str] = []
    reader = CarbonReader(data)

    tx_type = reader.read1()
    expiry = reader.read8()
    max_gas = reader.read8u()
    max_data = reader.read8u()
    gas_from = reader.read_bytes32()
    payload_text = reader.read_small_string()
    payload = read_payload(tx_type, reader)
    witnesses = _read_witnesses(reader)

    if reader.remaining:
        warnings.append(f"Carbon decode left {reader.remaining} trailing bytes")

    decoded = CarbonDecoded(
        type=tx_type,
        type_name=tx_type_name(tx_type),
        expiry=str(expiry),
        max_gas=str(max_gas),
        max_data=str(max_data),
        gas_from=gas_from.hex(),
        payload=payload_text,
        witnesses=witnesses,
    )
    decoded.msg = _attach_calls(payload, decoded, warnings)
    return decoded, warnings


def _resolve_gas_from(gas_payer: Optional[str], warnings: List[str]) -> str:
    if not gas_payer:
        return ""
    try:
        return text_to_bytes32(gas_payer).hex()
    except DecodeError as exc:
        warnings.append(f"Failed to derive gasFrom from gasPayer: {exc}")
        return gas_payer


def _payload_text(payload_hex: Optional[str]) -> str:
    if not payload_hex:
        return ""
    return hex_to_bytes(payload_hex).decode("utf-8", errors="replace")


def decode_carbon_payload(
    tx_type: int, data: bytes, context: Optional[RpcContext] = None
) -> Tuple[CarbonDecoded, List[str]]:
    """Decode a bare payload message; envelope fields come from ``context``."""

    context = context or RpcContext()
    warnings: List[str] = []
    reader = CarbonReader(data)
    payload = read_payload(tx_type, reader)
    if reader.remaining:
        warnings.append(f"Carbon decode left {reader.remaining} trailing bytes")

    decoded = CarbonDecoded(
        type=tx_type,
        type_name=tx_type_name(tx_type),
        expiry=str(context.expiration or 0),
        max_gas=context.gas_limit or "0",
        max_data="0",
        gas_from=_resolve_gas_from(context.gas_payer, warnings),
        payload=_payload_text(context.payload_hex),
        witnesses=list(context.signatures) if context.signatures is not None else None,
    )
    decoded.msg = _attach_calls(payload, decoded, warnings)
    logger.debug("decoded bare Carbon payload of type %s", decoded.type_name)
    return decoded, warnings


def decode_carbon_hex(text: str) -> Tuple[CarbonDecoded, List[str]]:
    return decode_carbon_signed_tx(hex_to_bytes(text))


__all__ = [
    "CarbonDecoded",
    "CarbonTxType",
    "RpcContext",
    "TX_TYPE_NAMES",
    "decode_carbon_hex",
    "decode_carbon_payload",
    "decode_carbon_signed_tx",
    "read_payload",
    "tx_type_name",
]
