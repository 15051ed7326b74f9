"""Cursor over legacy VM byte streams."""

from __future__ import annotations

from .errors import BoundsError, FormatError

VARINT_MAX = 0xFFFFFFFFFFFFFFFF


class BinaryReader:
    """Little-endian cursor with the legacy VM varint framing.

    Every read either advances the offset by exactly the consumed length or
    raises :class:`BoundsError`; the offset never passes the buffer length.
    """

    def __init__(self, data: bytes, *, label: str = "buffer") -> None:
        self._data = bytes(data)
        self._offset = 0
        self.label = label

    @property
    def position(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def at_end(self) -> bool:
        return self._offset >= len(self._data)

    def read_bytes(self, count: int) -> bytes:
        if count < 0:
            raise FormatError(f"{self.label}: negative read length {count}")
        if count > self.remaining:
            raise BoundsError(
                f"{self.label}: read of {count} bytes at offset {self._offset}"
                f" exceeds buffer ({self.remaining} remaining)"
            )
        start = self._offset
        self._offset += count
        return self._data[start : self._offset]

    def _read_uint(self, size: int) -> int:
        return int.from_bytes(self.read_bytes(size), "little")

    def read_u8(self) -> int:
        return self._read_uint(1)

    def read_u16(self) -> int:
        return self._read_uint(2)

    def read_u32(self) -> int:
        return self._read_uint(4)

    def read_u64(self) -> int:
        return self._read_uint(8)

    def read_varint(self, maximum: int = VARINT_MAX) -> int:
        prefix = self.read_u8()
        if prefix == 0xFD:
            value = self.read_u16()
        elif prefix == 0xFE:
            value = self.read_u32()
        elif prefix == 0xFF:
            value = self.read_u64()
        else:
            value = prefix
        if value > maximum:
            raise FormatError(f"{self.label}: varint {value} exceeds maximum {maximum}")
        return value

    def read_length(self, maximum: int = VARINT_MAX) -> int:
        """Read a varint used as a byte or element count."""

        length = self.read_varint(maximum)
        if length > self.remaining:
            raise BoundsError(
                f"{self.label}: length {length} at offset {self._offset}"
                f" exceeds remaining {self.remaining} bytes"
            )
        return length

    def read_byte_array(self, maximum: int = VARINT_MAX) -> bytes:
        return self.read_bytes(self.read_length(maximum))

    def read_var_string(self) -> str:
        return self.read_byte_array().decode("utf-8", errors="replace")

    def read_big_integer(self) -> int:
        raw = self.read_bytes(self.read_u8())
        if not raw:
            return 0
        return int.from_bytes(raw, "little", signed=True)

    def read_timestamp(self) -> int:
        return self.read_u32()

    def read_remaining(self) -> bytes:
        return self.read_bytes(self.remaining)


__all__ = ["BinaryReader", "VARINT_MAX"]
