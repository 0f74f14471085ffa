"""
otelxray.utils.values - Helpers for loosely typed attribute values.

OpenTelemetry attribute values are strings, booleans, numbers or sequences
of those, but instrumentation libraries occasionally record richer objects.
This module classifies a value once into a ValueKind so that the writers
can branch on the kind instead of sprinkling isinstance checks around.

Functions:
    classify: Determine the ValueKind of a value
    is_annotation_value: Whether a value can be written as an X-Ray annotation
    is_metadata_value: Whether a value can be written as X-Ray metadata
    as_str: Coerce a value to a string (or None)
    as_int: Coerce a value to an int, falling back to 0
    to_json_compatible: Convert a value into something json can encode
"""

from __future__ import annotations

import datetime
import decimal
import enum
import math
import uuid
from collections.abc import Mapping
from typing import Any, Optional


class ValueKind(enum.Enum):
    """Closed set of attribute value shapes."""

    STRING = "string"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    SCALAR = "scalar"
    COMPOUND = "compound"
    UNSUPPORTED = "unsupported"


_SCALAR_TYPES = (
    uuid.UUID,
    decimal.Decimal,
    datetime.datetime,
    datetime.date,
    datetime.time,
    enum.Enum,
)
_SEQUENCE_TYPES = (list, tuple, set, frozenset)
_ANNOTATION_KINDS = frozenset({
    ValueKind.STRING,
    ValueKind.BOOL,
    ValueKind.INT,
    ValueKind.FLOAT,
    ValueKind.SCALAR,
})


def classify(value: Any) -> ValueKind:
    """Classify an attribute value.

    bool is checked before int because bool is a subclass of int.
    Non-finite floats are unsupported since JSON cannot represent them;
    a sequence or mapping holding one anywhere is unsupported as a whole.

    Args:
        value: Any attribute value

    Returns:
        The ValueKind of the value
    """
    if value is None:
        return ValueKind.UNSUPPORTED
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, enum.Enum):
        return ValueKind.SCALAR
    if isinstance(value, int):
        return ValueKind.INT
    if isinstance(value, float):
        return ValueKind.FLOAT if math.isfinite(value) else ValueKind.UNSUPPORTED
    if isinstance(value, _SCALAR_TYPES):
        return ValueKind.SCALAR
    if isinstance(value, Mapping):
        return ValueKind.COMPOUND if _encodable_items(value.values()) else ValueKind.UNSUPPORTED
    if isinstance(value, _SEQUENCE_TYPES):
        return ValueKind.COMPOUND if _encodable_items(value) else ValueKind.UNSUPPORTED
    return ValueKind.UNSUPPORTED


def _encodable_items(items: Any) -> bool:
    for item in items:
        if item is not None and classify(item) is ValueKind.UNSUPPORTED:
            return False
    return True


def is_annotation_value(value: Any) -> bool:
    """Return True for values X-Ray accepts as annotations (scalars only)."""
    return classify(value) in _ANNOTATION_KINDS


def is_metadata_value(value: Any) -> bool:
    """Return True for values that can be serialized into metadata."""
    return classify(value) is not ValueKind.UNSUPPORTED


def as_str(value: Any) -> Optional[str]:
    """Coerce an attribute value to a string.

    A single-element sequence is unwrapped, which is how OpenTelemetry
    records attributes such as aws.dynamodb.table_names.

    Args:
        value: Any attribute value

    Returns:
        String form of the value, or None when the value is None
    """
    kind = classify(value)
    if value is None:
        return None
    if kind is ValueKind.STRING:
        return value
    if kind is ValueKind.BOOL:
        return "true" if value else "false"
    if kind is ValueKind.SCALAR and isinstance(value, enum.Enum):
        return str(value.value)
    if kind is ValueKind.COMPOUND and isinstance(value, (list, tuple)) and len(value) == 1:
        return as_str(value[0])
    return str(value)


def as_int(value: Any) -> int:
    """Coerce an attribute value to an int.

    Malformed values degrade to 0 rather than raising.

    Args:
        value: Any attribute value

    Returns:
        Integer form of the value, or 0
    """
    kind = classify(value)
    if kind is ValueKind.INT:
        return value
    if kind is ValueKind.FLOAT:
        return int(value)
    if kind is ValueKind.STRING:
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return 0
        return int(number) if math.isfinite(number) else 0
    return 0


def to_json_compatible(value: Any) -> Any:
    """Convert a value into a form accepted by json.JSONEncoder.

    Used as the encoder's ``default`` hook, so it is only called for
    objects json does not handle natively.

    Args:
        value: Object json could not encode

    Returns:
        A json-encodable replacement

    Raises:
        TypeError: If the value has no JSON representation
    """
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, (uuid.UUID, decimal.Decimal)):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
