"""
otelxray.utils - Helper functions shared by the converter.

This subpackage contains utility functions:
- values: classification and coercion of attribute values
"""

from otelxray.utils.values import (
    ValueKind,
    classify,
    is_annotation_value,
    is_metadata_value,
    as_str,
    as_int,
    to_json_compatible,
)

__all__ = [
    "ValueKind",
    "classify",
    "is_annotation_value",
    "is_metadata_value",
    "as_str",
    "as_int",
    "to_json_compatible",
]
