"""Data records sent to Kameleoon and variations returned by it."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from .types import ValueType, value_type_of


@dataclass
class ConversionRecord:
    """Goal conversion tracked for a visitor."""

    goal_id: Any
    revenue: float = 0.0


@dataclass
class CustomDataRecord:
    """Custom data slot filled for a visitor."""

    index: Any
    values: list[Any] = field(default_factory=list)


DataRecord = Union[ConversionRecord, CustomDataRecord]


@dataclass
class Variable:
    """Named payload attached to a variation."""

    key: str
    type: str
    value: Any = None

    @property
    def value_type(self) -> ValueType | None:
        return value_type_of(self.value)


@dataclass
class Variation:
    """
    Branch chosen by Kameleoon for a feature flag.

    `variables` keeps the order in which the vendor returned them; the
    first entry is used when no variable key is requested.
    """

    key: str
    variables: dict[str, Variable] = field(default_factory=dict)
    id: int | None = None
    experiment_id: int | None = None
