"""
Constants and type tags shared by the Kameleoon provider.

CONTEXT ATTRIBUTES:
    Kameleoon data is passed through the OpenFeature evaluation context
    using the keys below.

    EvaluationContext(
        targeting_key="visitor-123",
        attributes={
            DataType.CONVERSION: {ConversionType.GOAL_ID: 42, ConversionType.REVENUE: 9.5},
            DataType.CUSTOM_DATA: {CustomDataType.INDEX: 1, CustomDataType.VALUES: ["a"]},
            VARIABLE_KEY: "title",
        },
    )

VALUE TYPES:
    Resolved variable values are tagged with a ValueType and checked against
    the set of types the caller accepts (see ALLOWED_* below).
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from typing import Any

# =============================================================================
# STEP 1: CONTEXT ATTRIBUTE KEYS
# =============================================================================

# Selects the variable to read from the variation
VARIABLE_KEY = "variableKey"


class DataType:
    """Attribute keys mapped to Kameleoon data records."""

    CONVERSION = "conversion"
    CUSTOM_DATA = "customData"


class ConversionType:
    """Keys of a conversion attribute."""

    GOAL_ID = "goalId"
    REVENUE = "revenue"


class CustomDataType:
    """Keys of a custom data attribute."""

    INDEX = "index"
    VALUES = "values"


# =============================================================================
# STEP 2: VALUE TYPE TAGS
# =============================================================================


class ValueType(enum.Enum):
    """Runtime type tag of a resolved variable value."""

    BOOLEAN = "boolean"
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


def value_type_of(value: Any) -> ValueType | None:
    """
    Tag a value with its ValueType.

    bool is checked before int, so True is BOOLEAN and never INTEGER.

    Returns:
        The matching ValueType, or None for values outside the closed set
        (None included).
    """
    if isinstance(value, bool):
        return ValueType.BOOLEAN
    if isinstance(value, str):
        return ValueType.STRING
    if isinstance(value, int):
        return ValueType.INTEGER
    if isinstance(value, float):
        return ValueType.FLOAT
    if isinstance(value, (list, tuple)):
        return ValueType.SEQUENCE
    if isinstance(value, Mapping):
        return ValueType.MAPPING
    return None


# Allowed types per fetch kind
ALLOWED_BOOLEAN: frozenset[ValueType] = frozenset({ValueType.BOOLEAN})
ALLOWED_STRING: frozenset[ValueType] = frozenset({ValueType.STRING})
ALLOWED_NUMBER: frozenset[ValueType] = frozenset({ValueType.INTEGER, ValueType.FLOAT})
ALLOWED_INTEGER: frozenset[ValueType] = frozenset({ValueType.INTEGER})
ALLOWED_FLOAT: frozenset[ValueType] = frozenset({ValueType.FLOAT})
ALLOWED_OBJECT: frozenset[ValueType] = frozenset({ValueType.SEQUENCE, ValueType.MAPPING})
