"""Document - top-level entry point for WTG file operations.

Field order on disk (all integers int32 little-endian):

    "WTG!", version
    category count, categories
    game version
    variable count, variables
    trigger count, triggers

Which optional fields each record carries depends on the layout selected by
the version (see wtgcodec.layouts).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING

from wtgcodec.const import DEFAULT_GAME_VERSION, FILE_MAGIC, FORMAT_VERSION_TFT, VARIABLE_SCOPE_GLOBAL
from wtgcodec.enums import FunctionKind
from wtgcodec.errors import InvalidHeader, MalformedStructure, UnrepresentableValue
from wtgcodec.io.reader import Reader
from wtgcodec.io.writer import Writer
from wtgcodec.layouts import get_layout
from wtgcodec.log import log
from wtgcodec.model.functions import Function
from wtgcodec.model.parts import SerializationContext
from wtgcodec.validation import ensure_valid

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass
class Variable:
    """A global variable declared in the trigger editor."""

    name: str
    type_name: str
    is_array: bool = False
    array_size: int = 1
    is_initialized: bool = False
    initial_value: str = ''
    scope: int = VARIABLE_SCOPE_GLOBAL

    @classmethod
    def read(cls, reader: Reader, ctx: SerializationContext) -> Variable:
        """Read Variable from reader."""
        layout = ctx.require_layout()
        name = reader.read_string()
        type_name = reader.read_string()
        scope = reader.read_int32()
        is_array = reader.read_bool()
        array_size = reader.read_int32() if layout.has_array_sizes else 1
        is_initialized = reader.read_bool()
        initial_value = reader.read_string()
        return cls(
            name=name,
            type_name=type_name,
            is_array=is_array,
            array_size=array_size,
            is_initialized=is_initialized,
            initial_value=initial_value,
            scope=scope,
        )

    def write(self, writer: Writer, ctx: SerializationContext) -> None:
        """Write Variable to writer."""
        layout = ctx.require_layout()
        writer.write_string(self.name)
        writer.write_string(self.type_name)
        writer.write_int32(self.scope)
        writer.write_bool(self.is_array)
        if layout.has_array_sizes:
            writer.write_int32(self.array_size)
        elif self.array_size != 1:
            raise UnrepresentableValue(
                f'Variable {self.name!r} has array size {self.array_size}, '
                f'format {layout.version} ({layout.name}) only stores size 1'
            )
        writer.write_bool(self.is_initialized)
        writer.write_string(self.initial_value)


@dataclass
class Category:
    """A folder in the trigger editor's tree."""

    id: int
    name: str
    is_comment: bool = False

    @classmethod
    def read(cls, reader: Reader, ctx: SerializationContext) -> Category:
        """Read Category from reader."""
        layout = ctx.require_layout()
        category_id = reader.read_int32()
        name = reader.read_string()
        is_comment = reader.read_bool() if layout.has_comment_flags else False
        return cls(id=category_id, name=name, is_comment=is_comment)

    def write(self, writer: Writer, ctx: SerializationContext) -> None:
        """Write Category to writer."""
        layout = ctx.require_layout()
        writer.write_int32(self.id)
        writer.write_string(self.name)
        if layout.has_comment_flags:
            writer.write_bool(self.is_comment)
        elif self.is_comment:
            raise UnrepresentableValue(
                f'Category {self.name!r} is a comment, which format {layout.version} ({layout.name}) cannot store'
            )


@dataclass
class Trigger:
    """A trigger: flags, owning category and its ECA function list."""

    name: str
    category_id: int
    functions: list[Function] = field(default_factory=list)
    description: str = ''
    is_comment: bool = False
    is_enabled: bool = True
    is_custom_text: bool = False
    is_initially_on: bool = True
    run_on_map_init: bool = False

    @classmethod
    def read(cls, reader: Reader, ctx: SerializationContext) -> Trigger:
        """Read Trigger from reader."""
        layout = ctx.require_layout()
        name = reader.read_string()
        description = reader.read_string()
        is_comment = reader.read_bool() if layout.has_comment_flags else False
        is_enabled = reader.read_bool()
        is_custom_text = reader.read_bool()
        # Stored inverted on disk
        is_initially_on = not reader.read_bool()
        run_on_map_init = reader.read_bool()
        category_id = reader.read_int32()

        count = reader.read_count(layout.min_function_size, 'function')
        functions = [Function.read(reader, ctx) for _ in range(count)]

        return cls(
            name=name,
            category_id=category_id,
            functions=functions,
            description=description,
            is_comment=is_comment,
            is_enabled=is_enabled,
            is_custom_text=is_custom_text,
            is_initially_on=is_initially_on,
            run_on_map_init=run_on_map_init,
        )

    def write(self, writer: Writer, ctx: SerializationContext) -> None:
        """Write Trigger to writer."""
        layout = ctx.require_layout()
        writer.write_string(self.name)
        writer.write_string(self.description)
        if layout.has_comment_flags:
            writer.write_bool(self.is_comment)
        elif self.is_comment:
            raise UnrepresentableValue(
                f'Trigger {self.name!r} is a comment, which format {layout.version} ({layout.name}) cannot store'
            )
        writer.write_bool(self.is_enabled)
        writer.write_bool(self.is_custom_text)
        writer.write_bool(not self.is_initially_on)
        writer.write_bool(self.run_on_map_init)
        writer.write_int32(self.category_id)

        writer.write_int32(len(self.functions))
        for function in self.functions:
            function.write(writer, ctx)

    @property
    def events(self) -> list[Function]:
        return [f for f in self.functions if f.kind == FunctionKind.EVENT]

    @property
    def conditions(self) -> list[Function]:
        return [f for f in self.functions if f.kind == FunctionKind.CONDITION]

    @property
    def actions(self) -> list[Function]:
        return [f for f in self.functions if f.kind == FunctionKind.ACTION]

    def walk(self) -> Iterator[Function]:
        """Yield every function in this trigger, nested ones included."""
        for function in self.functions:
            yield from function.walk()


@dataclass(eq=False)
class Document:
    """Complete trigger file: categories, variables and triggers.

    Variables are keyed by name; their insertion order is the on-disk order
    and is part of equality.
    """

    version: int = FORMAT_VERSION_TFT
    game_version: int = DEFAULT_GAME_VERSION
    categories: list[Category] = field(default_factory=list)
    variables: dict[str, Variable] = field(default_factory=dict)
    triggers: list[Trigger] = field(default_factory=list)

    @classmethod
    def read(cls, reader: Reader, ctx: SerializationContext) -> Document:
        """Read Document from reader.

        Selects the layout from the header and stores it on the context.
        """
        if reader.remaining < len(FILE_MAGIC) or reader.peek_bytes(len(FILE_MAGIC)) != FILE_MAGIC:
            found = reader.peek_bytes(min(len(FILE_MAGIC), reader.remaining))
            raise InvalidHeader('Not a WTG file', offset=reader.position, expected=FILE_MAGIC, found=found)
        reader.skip(len(FILE_MAGIC))

        version_offset = reader.position
        version = reader.read_int32()
        layout = get_layout(version, version_offset)
        ctx.layout = layout
        log.debug(f'WTG format {version} ({layout.name})')

        count = reader.read_count(layout.min_category_size, 'category')
        categories = [Category.read(reader, ctx) for _ in range(count)]

        game_version = reader.read_int32()

        count = reader.read_count(layout.min_variable_size, 'variable')
        variables: dict[str, Variable] = {}
        for _ in range(count):
            offset = reader.position
            variable = Variable.read(reader, ctx)
            if variable.name in variables:
                raise MalformedStructure(f'Duplicate variable {variable.name!r}', offset=offset)
            variables[variable.name] = variable

        count = reader.read_count(layout.min_trigger_size, 'trigger')
        triggers = [Trigger.read(reader, ctx) for _ in range(count)]

        if reader.remaining:
            offset = reader.position
            tail = reader.read_bytes(reader.remaining)
            if tail.strip(b'\x00'):
                raise MalformedStructure(
                    'Unexpected data after trigger block',
                    offset=offset,
                    expected='end of file',
                    found=f'{len(tail)} bytes',
                )
            log.warning(f'Dropping {len(tail)} bytes of zero padding at offset {offset:#x}')
            reader.variance.append((offset, offset + len(tail)))

        log.debug(f'Read {len(categories)} categories, {len(variables)} variables, {len(triggers)} triggers')
        return cls(
            version=version,
            game_version=game_version,
            categories=categories,
            variables=variables,
            triggers=triggers,
        )

    def write(self, writer: Writer, ctx: SerializationContext) -> None:
        """Write Document to writer using the context's layout."""
        layout = ctx.require_layout()
        writer.write_bytes(FILE_MAGIC)
        writer.write_int32(layout.version)

        writer.write_int32(len(self.categories))
        for category in self.categories:
            category.write(writer, ctx)

        writer.write_int32(self.game_version)

        writer.write_int32(len(self.variables))
        for variable in self.variables.values():
            variable.write(writer, ctx)

        writer.write_int32(len(self.triggers))
        for trigger in self.triggers:
            trigger.write(writer, ctx)

    @classmethod
    def from_bytes(cls, data: bytes, ctx: SerializationContext | None = None) -> Document:
        """Decode a Document from bytes.

        Args:
            data: Raw WTG file contents
            ctx: Optional context (trigger data, depth bound, encoding);
                the caller's object is not modified

        Returns:
            Parsed Document
        """
        return cls.decode(data, ctx)[0]

    @classmethod
    def decode(cls, data: bytes, ctx: SerializationContext | None = None) -> tuple[Document, list[tuple[int, int]]]:
        """Decode a Document and report where re-encoding will differ.

        Returns:
            The Document and the (start, end) offsets of every tolerated
            variance region found in `data`, in file order
        """
        ctx = replace(ctx or SerializationContext(), layout=None)
        reader = Reader(data, encoding=ctx.encoding)
        document = cls.read(reader, ctx)
        if ctx.check_references:
            ensure_valid(document)
        return document, reader.variance

    def to_bytes(self, version: int | None = None, ctx: SerializationContext | None = None) -> bytes:
        """Encode to bytes.

        Args:
            version: Target format version (defaults to the Document's own)
            ctx: Optional context; the caller's object is not modified

        Returns:
            Encoded WTG file contents
        """
        target = self.version if version is None else version
        ctx = replace(ctx or SerializationContext(), layout=get_layout(target))
        if ctx.check_references:
            ensure_valid(self)

        writer = Writer(encoding=ctx.encoding)
        self.write(writer, ctx)
        log.debug(f'Encoded format {target}: {writer.size} bytes')
        return writer.to_bytes()

    @classmethod
    def load(cls, path: Path, ctx: SerializationContext | None = None) -> Document:
        """Load and decode a WTG file."""
        return cls.from_bytes(path.read_bytes(), ctx)

    def save(self, path: Path, version: int | None = None, ctx: SerializationContext | None = None) -> None:
        """Encode and write to a file.

        The whole file is encoded before anything touches the disk, then
        written to a temporary sibling and moved into place, so a failure
        never leaves a partial file at `path`.
        """
        data = self.to_bytes(version, ctx)
        temp_path = path.with_name(f'.{path.name}.tmp')
        try:
            temp_path.write_bytes(data)
            temp_path.replace(path)
        finally:
            temp_path.unlink(missing_ok=True)

    def add_variable(self, variable: Variable) -> None:
        """Append a variable; names must be unique."""
        if variable.name in self.variables:
            raise ValueError(f'Variable {variable.name!r} already exists')
        self.variables[variable.name] = variable

    def category_by_id(self, category_id: int) -> Category | None:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    def triggers_in(self, category: Category) -> list[Trigger]:
        """Triggers filed under a category, in file order."""
        return [t for t in self.triggers if t.category_id == category.id]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Document):
            return NotImplemented
        return (
            self.version == other.version
            and self.game_version == other.game_version
            and self.categories == other.categories
            and list(self.variables.items()) == list(other.variables.items())
            and self.triggers == other.triggers
        )

    __hash__ = None  # type: ignore[assignment]
