"""Binary reader with position tracking for WTG parsing."""

from __future__ import annotations

import struct

from wtgcodec.const import DEFAULT_ENCODING
from wtgcodec.errors import MalformedStructure, TruncatedInput
from wtgcodec.log import log


class Reader:
    """Bounds-checked little-endian reader.

    Every read that would run past the end of the data raises TruncatedInput
    carrying the offset and the number of bytes requested and available.

    `variance` collects the (start, end) offsets of bytes that decoded but
    will not be written back unchanged.
    """

    def __init__(self, data: bytes, encoding: str = DEFAULT_ENCODING) -> None:
        self._data = data
        self._position = 0
        self.encoding = encoding
        self.variance: list[tuple[int, int]] = []

    @property
    def position(self) -> int:
        """Current read position."""
        return self._position

    @property
    def size(self) -> int:
        """Total size of data."""
        return len(self._data)

    @property
    def remaining(self) -> int:
        """Bytes remaining to read."""
        return len(self._data) - self._position

    def read_bytes(self, count: int) -> bytes:
        """Read raw bytes."""
        if count > self.remaining:
            raise TruncatedInput(
                f'Cannot read {count} bytes',
                offset=self._position,
                expected=f'{count} bytes',
                found=f'{self.remaining} remaining',
            )
        result = self._data[self._position : self._position + count]
        self._position += count
        return result

    def peek_bytes(self, count: int) -> bytes:
        """Peek at bytes without advancing position."""
        if count > self.remaining:
            raise TruncatedInput(f'Cannot peek {count} bytes', offset=self._position)
        return self._data[self._position : self._position + count]

    def read_int32(self) -> int:
        """Read signed 32-bit integer (little-endian)."""
        return struct.unpack('<i', self.read_bytes(4))[0]

    def read_bool(self) -> bool:
        """Read boolean stored as int32.

        Any non-zero value is true. Values other than 0 and 1 are re-encoded
        as 1, so they are logged.
        """
        offset = self._position
        value = self.read_int32()
        if value not in (0, 1):
            log.warning(f'Non-canonical boolean {value} at offset {offset:#x}, treating as true')
            self.variance.append((offset, offset + 4))
        return value != 0

    def read_string(self) -> str:
        """Read a null-terminated string.

        Bytes that are not valid in the reader's encoding are kept as
        surrogate escapes so they encode back to the same bytes.
        """
        end = self._data.find(b'\x00', self._position)
        if end < 0:
            raise TruncatedInput(
                'Unterminated string',
                offset=self._position,
                expected='null terminator',
                found=f'end of data after {self.remaining} bytes',
            )
        raw = self._data[self._position : end]
        self._position = end + 1
        return raw.decode(self.encoding, errors='surrogateescape')

    def read_count(self, min_record_size: int, what: str) -> int:
        """Read an int32 record count and check it against the remaining data.

        Args:
            min_record_size: Smallest possible encoded size of one record
            what: Record name used in error messages

        Returns:
            The validated count
        """
        offset = self._position
        count = self.read_int32()
        if count < 0:
            raise MalformedStructure(f'Negative {what} count', offset=offset, expected='>= 0', found=count)
        needed = count * min_record_size
        if needed > self.remaining:
            raise TruncatedInput(
                f'{what.capitalize()} count {count} exceeds remaining data',
                offset=offset,
                expected=f'at least {needed} bytes',
                found=f'{self.remaining} remaining',
            )
        return count

    def skip(self, count: int) -> None:
        """Skip bytes."""
        self.read_bytes(count)
