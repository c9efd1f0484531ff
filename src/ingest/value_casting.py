"""Scalar casting for declared column types."""

from __future__ import annotations

from datetime import datetime, timezone
import math

from core.schema import ColumnType, CsvValue


def cast_text_value(text: str, column_type: ColumnType) -> CsvValue:
    """Cast one raw text field to its declared column type.

    An empty field becomes ``None`` regardless of the declared type.

    Args:
        text: Raw field text.
        column_type: Declared column type.

    Returns:
        Typed value.

    Raises:
        ValueError: If the text is not valid for a numeric or date type.
    """
    if text == "":
        return None
    if column_type == "int":
        return _parse_int(text)
    if column_type == "float":
        return _parse_float(text)
    if column_type == "date":
        return datetime.fromisoformat(text.strip())
    return text


def cast_json_value(value: object, column_type: ColumnType) -> CsvValue:
    """Cast one decoded JSON/XML scalar to its declared column type.

    Args:
        value: Decoded value (XML leaves are always strings).
        column_type: Declared column type.

    Returns:
        Typed value, ``None`` for missing values.

    Raises:
        ValueError: If the value is not valid for a numeric or date type.
    """
    if value is None:
        return None
    if isinstance(value, str):
        if column_type == "string":
            return value
        return cast_text_value(value.strip(), column_type)
    if isinstance(value, bool):
        return str(value).lower() if column_type == "string" else int(value)
    if isinstance(value, (int, float)):
        if column_type == "int":
            return _parse_int(str(value))
        if column_type == "float":
            return float(value)
        if column_type == "date":
            # JSON timestamps are epoch milliseconds.
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        return str(value)
    if column_type == "string":
        return str(value)
    raise ValueError(f"cannot cast {type(value).__name__} to {column_type}")


def _parse_int(text: str) -> int | float:
    """Parse an int column value, keeping fractional numbers as floats."""
    try:
        return int(text)
    except ValueError:
        number = _parse_float(text)
    if number.is_integer():
        return int(number)
    return number


def _parse_float(text: str) -> float:
    number = float(text)
    if not math.isfinite(number):
        raise ValueError(f"non-finite number '{text}'")
    return number
