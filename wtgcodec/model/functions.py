"""Function and parameter nodes of a trigger's ECA tree.

Function nodes own their parameters and child functions outright, so the
tree has a single owner and no cycles. Reads and writes thread the same
depth counter through the recursion. Nesting past the context's bound is
corrupt input on read and an unrepresentable value on write.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from wtgcodec.enums import FunctionKind, ParameterKind
from wtgcodec.errors import MalformedStructure, UnrepresentableValue

if TYPE_CHECKING:
    from collections.abc import Iterator

    from wtgcodec.io.reader import Reader
    from wtgcodec.io.writer import Writer
    from wtgcodec.model.parts import SerializationContext


def _read_tag(reader: Reader, enum_type: type, what: str) -> int:
    offset = reader.position
    raw = reader.read_int32()
    try:
        return enum_type(raw)
    except ValueError:
        expected = '/'.join(str(member.value) for member in enum_type)
        raise MalformedStructure(f'Unknown {what} tag', offset=offset, expected=expected, found=raw) from None


@dataclass
class Parameter:
    """A function argument: a literal, a variable reference or a call result.

    `type_name` is the argument type from the signature table. It is filled
    in on read, never written, and ignored by equality.
    """

    kind: ParameterKind
    value: str = ''
    function: Function | None = None
    array_index: Parameter | None = None
    type_name: str | None = field(default=None, compare=False)

    @classmethod
    def read(cls, reader: Reader, ctx: SerializationContext, depth: int) -> Parameter:
        """Read Parameter from reader."""
        ctx.check_depth(depth, reader.position)
        kind = _read_tag(reader, ParameterKind, 'parameter kind')
        value = reader.read_string()

        function = None
        if reader.read_bool():
            function = Function.read(reader, ctx, depth + 1)

        array_index = None
        if reader.read_bool():
            array_index = Parameter.read(reader, ctx, depth + 1)

        return cls(kind=kind, value=value, function=function, array_index=array_index)

    def write(self, writer: Writer, ctx: SerializationContext, depth: int) -> None:
        """Write Parameter to writer."""
        ctx.check_write_depth(depth, self.value)
        writer.write_int32(int(self.kind))
        writer.write_string(self.value)

        writer.write_bool(self.function is not None)
        if self.function is not None:
            self.function.write(writer, ctx, depth + 1)

        writer.write_bool(self.array_index is not None)
        if self.array_index is not None:
            self.array_index.write(writer, ctx, depth + 1)

    @property
    def is_literal(self) -> bool:
        return self.kind in (ParameterKind.PRESET, ParameterKind.STRING)


@dataclass
class Function:
    """An event, condition, action or call.

    Child functions belong to control-flow actions (if/then/else, loops,
    And/Or conditions) and carry a branch number saying which block they
    sit in.
    """

    kind: FunctionKind
    name: str
    parameters: list[Parameter] = field(default_factory=list)
    is_enabled: bool = True
    branch: int | None = None
    children: list[Function] = field(default_factory=list)

    @classmethod
    def read(cls, reader: Reader, ctx: SerializationContext, depth: int = 1, is_child: bool = False) -> Function:
        """Read Function from reader.

        Args:
            reader: Binary reader
            ctx: Serialization context with layout and trigger data
            depth: Nesting depth of this node (top-level functions are 1)
            is_child: Whether this is a child of a control-flow function,
                which stores a branch number after the kind
        """
        layout = ctx.require_layout()
        start = reader.position
        ctx.check_depth(depth, start)

        kind = _read_tag(reader, FunctionKind, 'function kind')
        branch = reader.read_int32() if is_child else None
        name = reader.read_string()
        is_enabled = reader.read_bool()

        signature = ctx.signature_for_read(kind, name, start)
        parameters = []
        for type_name in signature.argument_types:
            parameter = Parameter.read(reader, ctx, depth + 1)
            parameter.type_name = type_name
            parameters.append(parameter)

        children = []
        if layout.has_child_functions:
            count = reader.read_count(layout.min_function_size + 4, 'child function')
            for _ in range(count):
                children.append(cls.read(reader, ctx, depth + 1, is_child=True))

        return cls(
            kind=kind,
            name=name,
            parameters=parameters,
            is_enabled=is_enabled,
            branch=branch,
            children=children,
        )

    def write(self, writer: Writer, ctx: SerializationContext, depth: int = 1, is_child: bool = False) -> None:
        """Write Function to writer.

        Depth is counted the same way as on read, so anything written here
        decodes under the same context.
        """
        layout = ctx.require_layout()
        ctx.check_write_depth(depth, self.name)
        ctx.signature_for_write(self.kind, self.name, len(self.parameters))

        writer.write_int32(int(self.kind))
        if is_child:
            if self.branch is None:
                raise UnrepresentableValue(f'Child function {self.name!r} has no branch number')
            writer.write_int32(self.branch)
        elif self.branch is not None:
            raise UnrepresentableValue(f'Top-level function {self.name!r} has a branch number')
        writer.write_string(self.name)
        writer.write_bool(self.is_enabled)

        for parameter in self.parameters:
            parameter.write(writer, ctx, depth + 1)

        if layout.has_child_functions:
            writer.write_int32(len(self.children))
            for child in self.children:
                child.write(writer, ctx, depth + 1, is_child=True)
        elif self.children:
            raise UnrepresentableValue(
                f'Function {self.name!r} has child functions, which format {layout.version} ({layout.name}) cannot store'
            )

    def walk(self) -> Iterator[Function]:
        """Yield this function and every function nested below it."""
        yield self
        for parameter in self.parameters:
            yield from _walk_parameter(parameter)
        for child in self.children:
            yield from child.walk()

    def iter_parameters(self) -> Iterator[Parameter]:
        """Yield every parameter in this subtree, including array indexes."""
        for function in self.walk():
            for parameter in function.parameters:
                index = parameter
                while index is not None:
                    yield index
                    index = index.array_index


def _walk_parameter(parameter: Parameter) -> Iterator[Function]:
    if parameter.function is not None:
        yield from parameter.function.walk()
    if parameter.array_index is not None:
        yield from _walk_parameter(parameter.array_index)
