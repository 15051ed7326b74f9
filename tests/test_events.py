from phadecode.address import Address, AddressKind
from phadecode.events import decode_event, decode_event_hex, parse_event_kind


def var(raw: bytes) -> bytes:
    return bytes([len(raw)]) + raw


def big(value: int) -> bytes:
    raw = value.to_bytes((value.bit_length() + 8) // 8, "little", signed=True) if value else b""
    return bytes([len(raw)]) + raw


TOKEN_SEND = var(b"SOUL") + big(100) + var(b"main")


def test_token_event_by_name() -> None:
    event, warnings = decode_event(TOKEN_SEND, "token send")

    assert warnings == []
    assert event.to_dict() == {
        "kind": "TokenSend",
        "kind_id": 3,
        "raw_hex": TOKEN_SEND.hex(),
        "decoded": {"symbol": "SOUL", "value": "100", "chain": "main"},
    }


def test_kind_by_number() -> None:
    event, _ = decode_event(TOKEN_SEND, "5")

    assert event.kind == "TokenMint"
    assert parse_event_kind("200").name == "EventKind_200"
    assert parse_event_kind("NotAKind") is None


def test_missing_kind_returns_raw_hex() -> None:
    event, warnings = decode_event_hex(TOKEN_SEND.hex())

    assert event.decoded is None
    assert event.raw_hex == TOKEN_SEND.hex()
    assert warnings == ["event kind not provided or unknown; returning raw hex only"]


def test_kind_without_layout() -> None:
    event, warnings = decode_event(b"\x01", "Custom")

    assert event.kind_id == 64
    assert warnings == ["no legacy decoder for EventKind Custom"]


def test_gas_event_with_address() -> None:
    address = Address.from_key(AddressKind.USER, bytes(range(1, 33)))
    data = var(address.raw) + big(100000) + big(-1)

    event, warnings = decode_event(data, "GasEscrow")

    assert warnings == []
    assert event.decoded == {"address": address.text, "price": "100000", "amount": "-1"}


def test_layout_failure_becomes_warning() -> None:
    event, warnings = decode_event(var(b"abc") + big(1) + big(1), "GasPayment")

    assert event.decoded is None
    assert event.raw_hex
    assert warnings == ["invalid address length 3"]


def test_trailing_bytes_warn() -> None:
    event, warnings = decode_event(TOKEN_SEND + b"\x00", "TokenBurn")

    assert event.decoded["symbol"] == "SOUL"
    assert warnings == ["legacy event decode left 1 trailing bytes"]


def test_market_event() -> None:
    data = bytes([1]) + var(b"CROWN") + var(b"SOUL") + big(7) + big(10) + big(0)

    event, warnings = decode_event(data, "OrderCreated")

    assert warnings == []
    assert event.decoded["type"] == "Classic"
    assert event.decoded["end_price"] == "0"


def test_empty_string_field_is_none() -> None:
    event, _ = decode_event(var(b""), "Log")

    assert event.decoded == {"message": None}
