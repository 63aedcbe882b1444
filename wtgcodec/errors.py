"""Error taxonomy for WTG decoding and encoding.

Every error carries the byte offset (when known) and an expected/found pair
so a corrupt or unsupported file can be diagnosed from the message alone.
"""

from __future__ import annotations

from typing import Any


class CodecError(ValueError):
    """Base class for all codec failures."""

    def __init__(
        self,
        message: str,
        offset: int | None = None,
        expected: Any = None,
        found: Any = None,
    ) -> None:
        self.message = message
        self.offset = offset
        self.expected = expected
        self.found = found
        super().__init__(self._format())

    def _format(self) -> str:
        text = self.message
        if self.offset is not None:
            text += f' at offset {self.offset:#x}'
        if self.expected is not None or self.found is not None:
            text += f' (expected {self.expected}, found {self.found})'
        return text


class DecodeError(CodecError):
    """Raised when a byte stream cannot be decoded into a Document."""


class EncodeError(CodecError):
    """Raised when a Document cannot be encoded for the target version."""


class InvalidHeader(DecodeError):
    """The stream does not start with the WTG signature."""


class TruncatedInput(DecodeError):
    """The stream ends before a field or record it declares."""


class MalformedStructure(DecodeError):
    """Bad tag values, excessive nesting, negative counts or dangling references."""


class UnsupportedVersion(DecodeError, EncodeError):
    """No layout is registered for the requested format version."""


class UnrepresentableValue(EncodeError):
    """The Document holds something the target layout cannot store."""
