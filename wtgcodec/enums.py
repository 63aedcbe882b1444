"""Tag values stored in WTG function and parameter records."""

from enum import IntEnum


class FunctionKind(IntEnum):
    """Role of a function node in a trigger's ECA list."""

    EVENT = 0
    CONDITION = 1
    ACTION = 2
    CALL = 3  # value-returning function used as a parameter


class ParameterKind(IntEnum):
    """What a parameter's value string refers to."""

    INVALID = -1
    PRESET = 0
    VARIABLE = 1
    FUNCTION = 2
    STRING = 3


class EcaBranch(IntEnum):
    """Branch numbers carried by child functions of control-flow actions."""

    IF = 0
    THEN = 1
    ELSE = 2
