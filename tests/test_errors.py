"""
Tests for decode and encode failures.
"""

import pytest

from conftest import build_sample_document, i32
from wtgcodec.enums import EcaBranch, FunctionKind, ParameterKind
from wtgcodec.errors import (
    CodecError,
    DecodeError,
    EncodeError,
    InvalidHeader,
    MalformedStructure,
    TruncatedInput,
    UnrepresentableValue,
    UnsupportedVersion,
)
from wtgcodec.model import Category, Document, Function, Parameter, SerializationContext, Trigger, Variable
from wtgcodec.trigger_data import TriggerData


def nested_if_blocks(depth: int) -> Function:
    """An IfThenElseMultiple chain nested `depth` levels deep."""
    root = Function(FunctionKind.ACTION, 'IfThenElseMultiple')
    current = root
    for _ in range(depth - 1):
        child = Function(FunctionKind.ACTION, 'IfThenElseMultiple', branch=EcaBranch.THEN)
        current.children.append(child)
        current = child
    return root


def nested_and_calls(levels: int) -> Function:
    """SetVariable of a GetBooleanAnd call nested `levels` deep in its first argument."""
    value = Parameter(ParameterKind.PRESET, 'true')
    for _ in range(levels):
        call = Function(FunctionKind.CALL, 'GetBooleanAnd', [value, Parameter(ParameterKind.PRESET, 'true')])
        value = Parameter(ParameterKind.FUNCTION, 'GetBooleanAnd', function=call)
    return Function(FunctionKind.ACTION, 'SetVariable', [Parameter(ParameterKind.VARIABLE, 'done'), value])


def document_with(*functions: Function) -> Document:
    return Document(
        categories=[Category(0, 'Init')],
        triggers=[Trigger('T', 0, functions=[Function(FunctionKind.EVENT, 'MapInitializationEvent'), *functions])],
    )


def test_error_hierarchy() -> None:
    assert issubclass(CodecError, ValueError)
    for error in (InvalidHeader, TruncatedInput, MalformedStructure):
        assert issubclass(error, DecodeError)
    assert issubclass(UnrepresentableValue, EncodeError)
    assert issubclass(UnsupportedVersion, DecodeError)
    assert issubclass(UnsupportedVersion, EncodeError)


def test_error_message_carries_context() -> None:
    error = MalformedStructure('Bad tag', offset=0x1C, expected='0/1/2/3', found=9)

    assert str(error) == 'Bad tag at offset 0x1c (expected 0/1/2/3, found 9)'
    assert error.offset == 0x1C


@pytest.mark.parametrize('data', [b'', b'WT', b'MPQ\x1a' + i32(7), b'wtg!' + i32(7)])
def test_invalid_header(data: bytes) -> None:
    with pytest.raises(InvalidHeader):
        Document.from_bytes(data)


def test_missing_version_is_truncated() -> None:
    with pytest.raises(TruncatedInput):
        Document.from_bytes(b'WTG!\x07\x00')


@pytest.mark.parametrize('version', [0, 3, 5, 6, 8, -1])
def test_unsupported_version(version: int) -> None:
    with pytest.raises(UnsupportedVersion) as excinfo:
        Document.from_bytes(b'WTG!' + i32(version) + b'\x00' * 64)

    assert excinfo.value.offset == 4


def test_item_tree_format_is_reported() -> None:
    data = b'WTG!' + (0x80000004).to_bytes(4, 'little') + i32(7) + b'\x00' * 64

    with pytest.raises(UnsupportedVersion, match='1.31'):
        Document.from_bytes(data)


def test_unsupported_target_version(sample_document: Document) -> None:
    with pytest.raises(UnsupportedVersion):
        sample_document.to_bytes(version=5)


def test_truncated_variable_block(sample_bytes: bytes) -> None:
    cut = sample_bytes.index(b'names\x00') + 3

    with pytest.raises(TruncatedInput):
        Document.from_bytes(sample_bytes[:cut])


@pytest.mark.parametrize('drop', [1, 4, 13])
def test_truncated_tail(sample_bytes: bytes, drop: int) -> None:
    with pytest.raises(TruncatedInput):
        Document.from_bytes(sample_bytes[:-drop])


def test_negative_count() -> None:
    data = b'WTG!' + i32(7) + i32(-3)

    with pytest.raises(MalformedStructure, match='Negative category count'):
        Document.from_bytes(data)


def test_huge_count_fails_before_allocating() -> None:
    data = b'WTG!' + i32(7) + i32(0) + i32(2) + i32(0x7FFFFFFF)

    with pytest.raises(TruncatedInput, match='Variable count'):
        Document.from_bytes(data)


def test_excess_depth_is_malformed() -> None:
    data = document_with(nested_if_blocks(70)).to_bytes(ctx=SerializationContext(max_depth=100))

    with pytest.raises(MalformedStructure, match='nesting too deep'):
        Document.from_bytes(data)


def test_depth_bound_is_configurable(sample_bytes: bytes) -> None:
    with pytest.raises(MalformedStructure, match='nesting too deep'):
        Document.from_bytes(sample_bytes, SerializationContext(max_depth=3))

    assert Document.from_bytes(sample_bytes, SerializationContext(max_depth=4)) == build_sample_document()


def test_nesting_within_bound_decodes() -> None:
    document = document_with(nested_if_blocks(60))

    assert Document.from_bytes(document.to_bytes()) == document


def test_excess_depth_is_not_encoded() -> None:
    document = document_with(nested_if_blocks(65))

    with pytest.raises(UnrepresentableValue, match='nesting too deep') as excinfo:
        document.to_bytes()

    assert excinfo.value.found == 65
    assert Document.from_bytes(document_with(nested_if_blocks(64)).to_bytes()) == document_with(nested_if_blocks(64))


def test_nested_calls_count_towards_depth() -> None:
    # Each call adds two levels: the parameter holding it and the call itself
    shallow = document_with(nested_and_calls(31))
    shallow.add_variable(Variable('done', 'boolean'))
    assert Document.from_bytes(shallow.to_bytes()) == shallow

    deep = document_with(nested_and_calls(32))
    deep.add_variable(Variable('done', 'boolean'))
    with pytest.raises(UnrepresentableValue, match="nesting too deep at 'GetBooleanAnd'"):
        deep.to_bytes()


def test_encode_depth_bound_matches_decode(sample_document: Document) -> None:
    with pytest.raises(UnrepresentableValue, match='nesting too deep'):
        sample_document.to_bytes(ctx=SerializationContext(max_depth=3))

    data = sample_document.to_bytes(ctx=SerializationContext(max_depth=4))
    assert Document.from_bytes(data, SerializationContext(max_depth=4)) == sample_document


@pytest.mark.parametrize('max_depth', [0, -1, 201, 100000])
def test_depth_bound_is_limited(max_depth: int) -> None:
    with pytest.raises(ValueError, match='max_depth must be between 1 and 200'):
        SerializationContext(max_depth=max_depth)


def test_unknown_function_kind() -> None:
    data = bytearray(document_with().to_bytes())
    offset = data.index(b'MapInitializationEvent') - 4
    data[offset : offset + 4] = i32(9)

    with pytest.raises(MalformedStructure, match='Unknown function kind tag') as excinfo:
        Document.from_bytes(bytes(data))

    assert excinfo.value.offset == offset


def test_unknown_parameter_kind(sample_bytes: bytes) -> None:
    data = bytearray(sample_bytes)
    # The last 'count' string is the SetVariable parameter value
    offset = data.rindex(b'count\x00') - 4
    assert data[offset : offset + 4] == i32(ParameterKind.VARIABLE)
    data[offset : offset + 4] = i32(7)

    with pytest.raises(MalformedStructure, match='Unknown parameter kind tag'):
        Document.from_bytes(bytes(data))


def test_function_without_signature(sample_bytes: bytes) -> None:
    ctx = SerializationContext(trigger_data=TriggerData.from_text('[TriggerEvents]\nMapInitializationEvent=0\n'))

    with pytest.raises(MalformedStructure, match="Unknown action function 'SetVariable'"):
        Document.from_bytes(sample_bytes, ctx)


def test_encode_unknown_function() -> None:
    document = document_with(Function(FunctionKind.ACTION, 'MadeUpAction'))

    with pytest.raises(UnrepresentableValue, match='MadeUpAction'):
        document.to_bytes()


def test_encode_wrong_parameter_count() -> None:
    document = document_with(Function(FunctionKind.ACTION, 'TriggerSleepAction'))

    with pytest.raises(UnrepresentableValue, match='Wrong parameter count') as excinfo:
        document.to_bytes()

    assert excinfo.value.expected == 1
    assert excinfo.value.found == 0


def test_encode_child_without_branch() -> None:
    block = Function(FunctionKind.ACTION, 'IfThenElseMultiple', children=[Function(FunctionKind.ACTION, 'DoNothing')])

    with pytest.raises(UnrepresentableValue, match='no branch number'):
        document_with(block).to_bytes()


def test_encode_top_level_branch() -> None:
    with pytest.raises(UnrepresentableValue, match='has a branch number'):
        document_with(Function(FunctionKind.ACTION, 'DoNothing', branch=1)).to_bytes()


def test_encode_string_with_null() -> None:
    document = document_with(
        Function(FunctionKind.ACTION, 'TriggerSleepAction', [Parameter(ParameterKind.STRING, '1\x00')])
    )

    with pytest.raises(UnrepresentableValue, match='null character'):
        document.to_bytes()


def test_duplicate_variable_names() -> None:
    variable = b'x\x00integer\x00' + i32(1) + i32(0) + i32(1) + i32(0) + b'\x00'
    data = b'WTG!' + i32(7) + i32(0) + i32(2) + i32(2) + variable + variable + i32(0)

    with pytest.raises(MalformedStructure, match="Duplicate variable 'x'"):
        Document.from_bytes(data)


def test_dangling_category_reference() -> None:
    document = document_with()
    document.triggers[0].category_id = 5
    data = document.to_bytes(ctx=SerializationContext(check_references=False))

    with pytest.raises(MalformedStructure, match='category 5 does not exist'):
        Document.from_bytes(data)
    with pytest.raises(MalformedStructure, match='category 5 does not exist'):
        document.to_bytes()

    decoded = Document.from_bytes(data, SerializationContext(check_references=False))
    assert decoded == document


def test_dangling_variable_reference() -> None:
    document = document_with(
        Function(
            FunctionKind.ACTION,
            'SetVariable',
            [Parameter(ParameterKind.VARIABLE, 'missing'), Parameter(ParameterKind.STRING, '1')],
        )
    )

    with pytest.raises(MalformedStructure, match="variable 'missing' is not declared"):
        document.to_bytes()

    document.add_variable(Variable('missing', 'integer'))
    assert Document.from_bytes(document.to_bytes()) == document
