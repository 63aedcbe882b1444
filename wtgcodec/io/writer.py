"""Binary writer for WTG serialization."""

from __future__ import annotations

import io
import struct

from wtgcodec.const import DEFAULT_ENCODING
from wtgcodec.errors import UnrepresentableValue


class Writer:
    """Little-endian writer over an in-memory buffer."""

    def __init__(self, encoding: str = DEFAULT_ENCODING) -> None:
        self._buffer = io.BytesIO()
        self.encoding = encoding

    @property
    def position(self) -> int:
        """Current write position."""
        return self._buffer.tell()

    @property
    def size(self) -> int:
        """Current size of written data."""
        current = self._buffer.tell()
        self._buffer.seek(0, 2)  # Seek to end
        size = self._buffer.tell()
        self._buffer.seek(current)  # Restore position
        return size

    def to_bytes(self) -> bytes:
        """Get all written data as bytes."""
        return self._buffer.getvalue()

    def write_bytes(self, data: bytes) -> None:
        """Write raw bytes."""
        self._buffer.write(data)

    def write_int32(self, value: int) -> None:
        """Write signed 32-bit integer (little-endian)."""
        try:
            self._buffer.write(struct.pack('<i', value))
        except struct.error as e:
            raise UnrepresentableValue(f'Value {value} does not fit in int32', offset=self.position) from e

    def write_bool(self, value: bool) -> None:
        """Write boolean as int32 (0 or 1)."""
        self.write_int32(1 if value else 0)

    def write_string(self, value: str) -> None:
        """Write a null-terminated string.

        Surrogate escapes produced by the reader are turned back into the
        original bytes. An embedded null would end the string early on read,
        so it is rejected.
        """
        if '\x00' in value:
            raise UnrepresentableValue(f'String {value!r} contains a null character', offset=self.position)
        try:
            encoded = value.encode(self.encoding, errors='surrogateescape')
        except UnicodeEncodeError as e:
            raise UnrepresentableValue(
                f'String {value!r} cannot be encoded',
                offset=self.position,
                expected=self.encoding,
                found=repr(e.object[e.start : e.end]),
            ) from e
        self._buffer.write(encoded)
        self._buffer.write(b'\x00')
