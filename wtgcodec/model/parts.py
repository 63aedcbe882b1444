"""Serialization context shared by every record's read and write."""

from __future__ import annotations

from dataclasses import dataclass, field

from wtgcodec.const import DEFAULT_ENCODING, DEFAULT_MAX_DEPTH, MAX_DEPTH_LIMIT
from wtgcodec.enums import FunctionKind
from wtgcodec.errors import MalformedStructure, UnrepresentableValue
from wtgcodec.layouts import Layout
from wtgcodec.trigger_data import FunctionSignature, TriggerData


@dataclass
class SerializationContext:
    """Per-call configuration and state for decoding or encoding.

    The layout is filled in once the header has been read (or the target
    version chosen); everything else is caller configuration.
    """

    trigger_data: TriggerData = field(default_factory=TriggerData.default)
    layout: Layout | None = None
    max_depth: int = DEFAULT_MAX_DEPTH
    encoding: str = DEFAULT_ENCODING
    check_references: bool = True

    def __post_init__(self) -> None:
        if not 1 <= self.max_depth <= MAX_DEPTH_LIMIT:
            raise ValueError(f'max_depth must be between 1 and {MAX_DEPTH_LIMIT}, got {self.max_depth}')

    def require_layout(self) -> Layout:
        """Return the selected layout (must be set)."""
        if self.layout is None:
            raise RuntimeError('No layout selected for this serialization context')
        return self.layout

    def check_depth(self, depth: int, offset: int | None = None) -> None:
        """Fail decoding when nesting exceeds the configured bound."""
        if depth > self.max_depth:
            raise MalformedStructure(
                'Function nesting too deep',
                offset=offset,
                expected=f'depth <= {self.max_depth}',
                found=depth,
            )

    def check_write_depth(self, depth: int, name: str) -> None:
        """Refuse to encode nesting the reader would reject."""
        if depth > self.max_depth:
            raise UnrepresentableValue(
                f'Function nesting too deep at {name!r}',
                expected=f'depth <= {self.max_depth}',
                found=depth,
            )

    def signature_for_read(self, kind: FunctionKind, name: str, offset: int) -> FunctionSignature:
        """Signature of a function being decoded."""
        signature = self.trigger_data.lookup(kind, name)
        if signature is None:
            raise MalformedStructure(
                f'Unknown {kind.name.lower()} function {name!r}, parameter count cannot be determined',
                offset=offset,
            )
        return signature

    def signature_for_write(self, kind: FunctionKind, name: str, parameter_count: int) -> FunctionSignature:
        """Signature of a function being encoded; its parameter count must match."""
        signature = self.trigger_data.lookup(kind, name)
        if signature is None:
            raise UnrepresentableValue(f'Unknown {kind.name.lower()} function {name!r}, the output could not be decoded')
        if signature.parameter_count != parameter_count:
            raise UnrepresentableValue(
                f'Wrong parameter count for {name!r}',
                expected=signature.parameter_count,
                found=parameter_count,
            )
        return signature
