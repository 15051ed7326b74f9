"""Legacy chain event payload decoding, dispatched on the event kind."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from .address import ADDRESS_LENGTH, Address
from .errors import DecodeError, FormatError
from .hexutil import hex_to_bytes
from .reader import BinaryReader

logger = logging.getLogger(__name__)

EVENT_KIND_NAMES: Dict[int, str] = {
    index: name
    for index, name in enumerate(
        [
            "Unknown", "ChainCreate", "TokenCreate", "TokenSend", "TokenReceive",
            "TokenMint", "TokenBurn", "TokenStake", "TokenClaim", "AddressRegister",
            "AddressLink", "AddressUnlink", "OrganizationCreate", "OrganizationAdd",
            "OrganizationRemove", "GasEscrow", "GasPayment", "AddressUnregister",
            "OrderCreated", "OrderCancelled", "OrderFilled", "OrderClosed",
            "FeedCreate", "FeedUpdate", "FileCreate", "FileDelete",
            "ValidatorPropose", "ValidatorElect", "ValidatorRemove", "ValidatorSwitch",
            "PackedNFT", "ValueCreate", "ValueUpdate", "PollCreated", "PollClosed",
            "PollVote", "ChannelCreate", "ChannelRefill", "ChannelSettle",
            "LeaderboardCreate", "LeaderboardInsert", "LeaderboardReset",
            "PlatformCreate", "ChainSwap", "ContractRegister", "ContractDeploy",
            "AddressMigration", "ContractUpgrade", "Log", "Inflation", "OwnerAdded",
            "OwnerRemoved", "DomainCreate", "DomainDelete", "TaskStart", "TaskStop",
            "CrownRewards", "Infusion", "Crowdsale", "OrderBid", "ContractKill",
            "OrganizationKill", "MasterClaim", "ExecutionFailure", "Custom",
            "Custom_V2",
        ]
    )
}

AUCTION_TYPE_NAMES = {0: "Fixed", 1: "Classic", 2: "Reserve", 3: "Dutch"}

SALE_EVENT_KIND_NAMES = {
    0: "Creation",
    1: "SoftCap",
    2: "HardCap",
    3: "AddedToWhitelist",
    4: "RemovedFromWhitelist",
    5: "Distribution",
    6: "Refund",
    7: "PriceChange",
    8: "Participation",
}


@dataclass(frozen=True)
class EventKind:
    id: int
    name: str


@dataclass
class EventDecoded:
    raw_hex: str
    kind: Optional[str] = None
    kind_id: Optional[int] = None
    decoded: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.kind is not None:
            data["kind"] = self.kind
        if self.kind_id is not None:
            data["kind_id"] = self.kind_id
        data["raw_hex"] = self.raw_hex
        if self.decoded is not None:
            data["decoded"] = self.decoded
        return data


def parse_event_kind(kind: Optional[str]) -> Optional[EventKind]:
    """Resolve a numeric id or a case and whitespace insensitive kind name."""

    if not kind or not kind.strip():
        return None
    text = kind.strip()
    if text.isdigit():
        kind_id = int(text)
        return EventKind(kind_id, EVENT_KIND_NAMES.get(kind_id, f"EventKind_{kind_id}"))
    normalized = re.sub(r"\s+", "", text).lower()
    for kind_id, name in EVENT_KIND_NAMES.items():
        if name.lower() == normalized:
            return EventKind(kind_id, name)
    return None


# ---------------------------------------------------------------------------
# field readers


def _string(reader: BinaryReader) -> Optional[str]:
    return reader.read_var_string() or None


def _big(reader: BinaryReader) -> str:
    return str(reader.read_big_integer())


def _address(reader: BinaryReader) -> str:
    raw = reader.read_byte_array()
    if len(raw) != ADDRESS_LENGTH:
        raise FormatError(f"invalid address length {len(raw)}")
    return Address(raw).text


def _hash(reader: BinaryReader) -> str:
    raw = reader.read_byte_array()
    if len(raw) != 32:
        raise FormatError(f"invalid hash length {len(raw)}")
    return raw.hex()


# ---------------------------------------------------------------------------
# layouts


def _token(reader: BinaryReader) -> Dict[str, Any]:
    return {"symbol": _string(reader), "value": _big(reader), "chain": _string(reader)}


def _gas(reader: BinaryReader) -> Dict[str, Any]:
    return {"address": _address(reader), "price": _big(reader), "amount": _big(reader)}


def _infusion(reader: BinaryReader) -> Dict[str, Any]:
    return {
        "base_symbol": _string(reader),
        "token_id": _big(reader),
        "infused_symbol": _string(reader),
        "infused_value": _big(reader),
        "chain": _string(reader),
    }


def _market(reader: BinaryReader) -> Dict[str, Any]:
    type_id = reader.read_varint()
    return {
        "base_symbol": _string(reader),
        "quote_symbol": _string(reader),
        "id": _big(reader),
        "price": _big(reader),
        "end_price": _big(reader),
        "type": AUCTION_TYPE_NAMES.get(type_id, f"TypeAuction_{type_id}"),
    }


def _chain_value(reader: BinaryReader) -> Dict[str, Any]:
    return {"name": _string(reader), "value": _big(reader)}


def _organization(reader: BinaryReader) -> Dict[str, Any]:
    return {"organization": _string(reader), "member": _address(reader)}


def _raw_big_integer(reader: BinaryReader) -> Dict[str, Any]:
    raw = reader.read_remaining()
    return {"value": str(int.from_bytes(raw, "little", signed=True)) if raw else "0"}


def _packed_nft(reader: BinaryReader) -> Dict[str, Any]:
    return {
        "symbol": _string(reader),
        "rom_hex": reader.read_byte_array().hex(),
        "ram_hex": reader.read_byte_array().hex(),
    }


def _sale(reader: BinaryReader) -> Dict[str, Any]:
    sale_hash = _hash(reader)
    kind_id = reader.read_varint()
    return {
        "sale_hash": sale_hash,
        "kind_id": kind_id,
        "kind": SALE_EVENT_KIND_NAMES.get(kind_id, f"SaleEventKind_{kind_id}"),
    }


def _master_claim(reader: BinaryReader) -> Dict[str, Any]:
    data = _token(reader)
    data["claim_date"] = reader.read_timestamp()
    return data


def _transaction_settle(reader: BinaryReader) -> Dict[str, Any]:
    return {"hash": _hash(reader), "platform": _string(reader), "chain": _string(reader)}


Layout = Callable[[BinaryReader], Dict[str, Any]]


def _field(name: str, read: Callable[[BinaryReader], Any]) -> Layout:
    return lambda reader: {name: read(reader)}


_LAYOUTS: List[Tuple[Tuple[str, ...], Layout]] = [
    (("TokenCreate",), _field("symbol", _string)),
    (
        ("TokenSend", "TokenReceive", "TokenMint", "TokenBurn", "TokenStake",
         "TokenClaim", "Inflation", "CrownRewards"),
        _token,
    ),
    (("GasEscrow", "GasPayment"), _gas),
    (("OrganizationCreate",), _field("organization", _string)),
    (("OrganizationAdd", "OrganizationRemove"), _organization),
    (("ValueCreate", "ValueUpdate"), _chain_value),
    (("OrderCreated", "OrderCancelled", "OrderFilled", "OrderClosed", "OrderBid"), _market),
    (("Infusion",), _infusion),
    (("MasterClaim",), _master_claim),
    (("ChainSwap",), _transaction_settle),
    (
        ("ChainCreate", "FeedCreate", "LeaderboardCreate", "LeaderboardReset",
         "PlatformCreate", "ContractDeploy", "ContractUpgrade", "DomainCreate",
         "DomainDelete", "ContractKill", "AddressRegister", "AddressUnregister"),
        _field("name", _string),
    ),
    (("PollCreated", "PollClosed", "PollVote"), _field("subject", _string)),
    (
        ("AddressLink", "AddressUnlink", "ValidatorPropose", "ValidatorElect",
         "ValidatorRemove", "AddressMigration"),
        _field("address", _address),
    ),
    (("FileCreate",), _field("hash", _hash)),
    (("FileDelete", "OwnerAdded", "OwnerRemoved"), _field("hash", lambda r: r.read_bytes(32).hex())),
    (("PackedNFT",), _packed_nft),
    (("Crowdsale",), _sale),
    (("ChannelCreate",), _field("data_hex", lambda r: r.read_remaining().hex())),
    (("ChannelRefill", "ChannelSettle"), _field("count", _big)),
    (
        ("LeaderboardInsert",),
        lambda reader: {"address": _address(reader), "score": _big(reader)},
    ),
    (("Log", "ExecutionFailure"), _field("message", _string)),
    (("TaskStart", "TaskStop"), _raw_big_integer),
]

EVENT_LAYOUTS: Dict[str, Layout] = {
    name: layout for names, layout in _LAYOUTS for name in names
}


def decode_event(data: bytes, kind: Optional[str] = None) -> Tuple[EventDecoded, List[str]]:
    """Decode an event payload for the kind hint ``kind``.

    Without a usable hint, or for kinds with no known layout, only the raw hex
    is returned. Layout failures become warnings.
    """

    warnings: List[str] = []
    raw_hex = bytes(data).hex()
    kind_info = parse_event_kind(kind)
    if kind_info is None:
        warnings.append("event kind not provided or unknown; returning raw hex only")
        return EventDecoded(raw_hex=raw_hex, kind=kind or None), warnings

    event = EventDecoded(raw_hex=raw_hex, kind=kind_info.name, kind_id=kind_info.id)
    layout = EVENT_LAYOUTS.get(kind_info.name)
    if layout is None:
        warnings.append(f"no legacy decoder for EventKind {kind_info.name}")
        return event, warnings

    reader = BinaryReader(data, label="legacy event")
    try:
        event.decoded = layout(reader)
    except DecodeError as exc:
        logger.debug("event %s failed to decode: %s", kind_info.name, exc)
        warnings.append(str(exc))
        return event, warnings
    if reader.remaining:
        warnings.append(f"legacy event decode left {reader.remaining} trailing bytes")
    return event, warnings


def decode_event_hex(text: str, kind: Optional[str] = None) -> Tuple[EventDecoded, List[str]]:
    return decode_event(hex_to_bytes(text), kind)


__all__ = [
    "EVENT_KIND_NAMES",
    "EVENT_LAYOUTS",
    "EventDecoded",
    "EventKind",
    "decode_event",
    "decode_event_hex",
    "parse_event_kind",
]
