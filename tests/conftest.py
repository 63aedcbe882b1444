"""
Pytest configuration and shared fixtures.
"""

import struct

import pytest

from wtgcodec.enums import EcaBranch, FunctionKind, ParameterKind
from wtgcodec.model.document import Category, Document, Trigger, Variable
from wtgcodec.model.functions import Function, Parameter
from wtgcodec.trigger_data import TriggerData


def i32(value: int) -> bytes:
    return struct.pack('<i', value)


def cstr(text: str) -> bytes:
    return text.encode('utf-8') + b'\x00'


def build_sample_document() -> Document:
    """Three variables, one category and two triggers, one with an if/then/else block."""
    variables = {
        'count': Variable('count', 'integer', is_initialized=True, initial_value='0'),
        'names': Variable('names', 'string', is_array=True, array_size=2),
        'done': Variable('done', 'boolean', is_initialized=True, initial_value='false'),
    }

    setup = Trigger(
        name='Setup',
        category_id=1,
        run_on_map_init=True,
        functions=[
            Function(FunctionKind.EVENT, 'MapInitializationEvent'),
            Function(
                FunctionKind.ACTION,
                'SetVariable',
                [Parameter(ParameterKind.VARIABLE, 'count'), Parameter(ParameterKind.STRING, '5')],
            ),
        ],
    )

    check_done = Trigger(
        name='Check Done',
        category_id=1,
        description='Announces the result every two seconds',
        functions=[
            Function(
                FunctionKind.EVENT,
                'TriggerRegisterTimerEventPeriodic',
                [Parameter(ParameterKind.STRING, '2.00')],
            ),
            Function(
                FunctionKind.ACTION,
                'IfThenElseMultiple',
                children=[
                    Function(
                        FunctionKind.CONDITION,
                        'OperatorCompareBoolean',
                        [
                            Parameter(ParameterKind.VARIABLE, 'done'),
                            Parameter(ParameterKind.PRESET, 'OperatorEqualENE'),
                            Parameter(ParameterKind.PRESET, 'true'),
                        ],
                        branch=EcaBranch.IF,
                    ),
                    Function(
                        FunctionKind.ACTION,
                        'DisplayTextToForce',
                        [
                            Parameter(
                                ParameterKind.FUNCTION,
                                'GetPlayersAll',
                                function=Function(FunctionKind.CALL, 'GetPlayersAll'),
                            ),
                            Parameter(
                                ParameterKind.VARIABLE,
                                'names',
                                array_index=Parameter(ParameterKind.STRING, '1'),
                            ),
                        ],
                        branch=EcaBranch.THEN,
                    ),
                    Function(FunctionKind.ACTION, 'DoNothing', branch=EcaBranch.ELSE),
                ],
            ),
        ],
    )

    return Document(
        version=7,
        categories=[Category(1, 'Main')],
        variables=variables,
        triggers=[setup, check_done],
    )


def build_roc_document() -> Document:
    """A Document that only uses fields the version 4 layout can store."""
    return Document(
        version=4,
        categories=[Category(0, 'Initialization'), Category(3, 'Combat')],
        variables={
            'hero': Variable('hero', 'unit'),
            'kills': Variable('kills', 'integer', is_initialized=True, initial_value='0'),
        },
        triggers=[
            Trigger(
                name='Melee Initialization',
                category_id=0,
                functions=[
                    Function(FunctionKind.EVENT, 'MapInitializationEvent'),
                    Function(
                        FunctionKind.ACTION,
                        'DisplayTextToForce',
                        [
                            Parameter(
                                ParameterKind.FUNCTION,
                                'GetPlayersAll',
                                function=Function(FunctionKind.CALL, 'GetPlayersAll'),
                            ),
                            Parameter(ParameterKind.STRING, 'Fight!'),
                        ],
                    ),
                ],
            ),
            Trigger(
                name='Count Kills',
                category_id=3,
                is_initially_on=False,
                functions=[
                    Function(
                        FunctionKind.EVENT,
                        'TriggerRegisterAnyUnitEventBJ',
                        [Parameter(ParameterKind.PRESET, 'EVENT_PLAYER_UNIT_DEATH')],
                    ),
                    Function(
                        FunctionKind.ACTION,
                        'SetVariable',
                        [
                            Parameter(ParameterKind.VARIABLE, 'kills'),
                            Parameter(
                                ParameterKind.FUNCTION,
                                'OperatorInt',
                                function=Function(
                                    FunctionKind.CALL,
                                    'OperatorInt',
                                    [
                                        Parameter(ParameterKind.VARIABLE, 'kills'),
                                        Parameter(ParameterKind.PRESET, 'OperatorAdd'),
                                        Parameter(ParameterKind.STRING, '1'),
                                    ],
                                ),
                            ),
                        ],
                    ),
                ],
            ),
        ],
    )


@pytest.fixture()
def trigger_data() -> TriggerData:
    """Return a fresh built-in signature table."""
    return TriggerData.default()


@pytest.fixture()
def sample_document() -> Document:
    return build_sample_document()


@pytest.fixture()
def sample_bytes() -> bytes:
    """The sample Document encoded as version 7."""
    return build_sample_document().to_bytes()


@pytest.fixture()
def roc_document() -> Document:
    return build_roc_document()


@pytest.fixture()
def sample_file(tmp_path, sample_bytes):
    path = tmp_path / 'war3map.wtg'
    path.write_bytes(sample_bytes)
    return path
