"""Cursor over Carbon protocol byte streams."""

from __future__ import annotations

from typing import List

from .errors import BoundsError, FormatError


class CarbonReader:
    """Fixed-width little-endian reader used by the Carbon decoders.

    Running past the end raises :class:`BoundsError` with an ``end of stream``
    message so argument decoders can tell truncation apart from bad data.
    """

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._offset = 0

    @property
    def position(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def at_end(self) -> bool:
        return self._offset >= len(self._data)

    def read_exactly(self, count: int) -> bytes:
        if count < 0:
            raise FormatError(f"negative read length {count}")
        if count > self.remaining:
            raise BoundsError(
                f"end of stream: need {count} bytes at offset {self._offset},"
                f" {self.remaining} remaining"
            )
        start = self._offset
        self._offset += count
        return self._data[start : self._offset]

    def _read_int(self, size: int, signed: bool) -> int:
        return int.from_bytes(self.read_exactly(size), "little", signed=signed)

    def read1(self) -> int:
        return self._read_int(1, False)

    def read4(self) -> int:
        return self._read_int(4, True)

    def read4u(self) -> int:
        return self._read_int(4, False)

    def read8(self) -> int:
        return self._read_int(8, True)

    def read8u(self) -> int:
        return self._read_int(8, False)

    def read_count(self) -> int:
        """Read an i32 element count, rejecting negative values."""

        count = self.read4()
        if count < 0:
            raise FormatError(f"negative length {count} at offset {self._offset - 4}")
        if count > self.remaining:
            raise BoundsError(
                f"end of stream: length {count} exceeds {self.remaining} remaining bytes"
            )
        return count

    def read_array(self) -> bytes:
        return self.read_exactly(self.read_count())

    def read_array_of_arrays(self) -> List[bytes]:
        return [self.read_array() for _ in range(self.read_count())]

    def read_small_string(self) -> str:
        return self.read_exactly(self.read1()).decode("utf-8", errors="replace")

    def read_bytes32(self) -> bytes:
        return self.read_exactly(32)

    def read_bytes64(self) -> bytes:
        return self.read_exactly(64)

    def read_intx(self) -> int:
        """Read a sign-magnitude integer: header byte then LE magnitude."""

        header = self.read1()
        magnitude = int.from_bytes(self.read_exactly(header & 0x7F), "little")
        return -magnitude if header & 0x80 else magnitude

    def read_remaining(self) -> bytes:
        return self.read_exactly(self.remaining)


__all__ = ["CarbonReader"]
