"""
Conversion of OpenFeature evaluation context into Kameleoon data records.

USAGE:
    from kameleoon_openfeature.provider.data_converter import DataConverter

    records = DataConverter.to_kameleoon(evaluation_context)
    client.add_data(visitor_code, *records)

RECOGNIZED ATTRIBUTES:
    conversion:  {"goalId": int, "revenue": float}    -> ConversionRecord
    customData:  {"index": int, "values": str | list} -> CustomDataRecord

    Each attribute may hold a single mapping or a list of mappings.
    Elements that are not mappings are skipped. Other attributes are ignored.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable

from openfeature.evaluation_context import EvaluationContext

from .models import ConversionRecord, CustomDataRecord, DataRecord
from .types import ConversionType, CustomDataType, DataType


def _make_conversion(value: Any) -> ConversionRecord | None:
    if not isinstance(value, Mapping):
        return None

    goal_id = value.get(ConversionType.GOAL_ID)
    revenue = value.get(ConversionType.REVENUE)
    if isinstance(revenue, int) and not isinstance(revenue, bool):
        revenue = float(revenue)
    if revenue is None:
        revenue = 0.0

    return ConversionRecord(goal_id=goal_id, revenue=revenue)


def _make_custom_data(value: Any) -> CustomDataRecord | None:
    if not isinstance(value, Mapping):
        return None

    index = value.get(CustomDataType.INDEX)
    values = value.get(CustomDataType.VALUES)
    if values is None:
        values = []
    elif not isinstance(values, (list, tuple)):
        values = [values]

    return CustomDataRecord(index=index, values=list(values))


class DataConverter:
    """Builds Kameleoon data records from an evaluation context."""

    # Record constructor by attribute key
    conversion_methods: dict[str, Callable[[Any], DataRecord | None]] = {
        DataType.CONVERSION: _make_conversion,
        DataType.CUSTOM_DATA: _make_custom_data,
    }

    @classmethod
    def to_kameleoon(cls, context: EvaluationContext | None) -> list[DataRecord]:
        """
        Convert an evaluation context to Kameleoon data records.

        Args:
            context: The OpenFeature evaluation context, or None

        Returns:
            Records in attribute order, then element order. Empty for None.
        """
        if context is None:
            return []

        data: list[DataRecord] = []
        for key, value in (context.attributes or {}).items():
            method = cls.conversion_methods.get(key)
            if method is None or value is None:
                continue
            values = value if isinstance(value, (list, tuple)) else [value]
            for element in values:
                record = method(element)
                if record is not None:
                    data.append(record)
        return data
