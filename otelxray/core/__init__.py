"""
otelxray.core - Core modules for span conversion.

This subpackage contains the main functionality:
- conventions: attribute keys and values understood by the converter
- attributes: AttributeTable, the consume-once attribute view
- stacktrace: per-language stack trace parsers for exception causes
- trace_id: X-Ray trace id formatting, validation and generation
- pool: reusable scratch state for conversions
- converter: SegmentConverter, span to segment document
- parser: OTLPParser for OTLP/JSON trace files
"""

from otelxray.core.attributes import AttributeTable
from otelxray.core.stacktrace import Language, StackFrame, ExceptionRecord, parse_exception
from otelxray.core.trace_id import (
    XRayIdGenerator,
    is_valid_xray_trace_id,
    new_segment_id,
    to_xray_trace_id,
)
from otelxray.core.pool import ConverterScratch, ScratchPool
from otelxray.core.converter import SegmentConverter
from otelxray.core.parser import OTLPParser

__all__ = [
    "AttributeTable",
    "Language",
    "StackFrame",
    "ExceptionRecord",
    "parse_exception",
    "XRayIdGenerator",
    "is_valid_xray_trace_id",
    "new_segment_id",
    "to_xray_trace_id",
    "ConverterScratch",
    "ScratchPool",
    "SegmentConverter",
    "OTLPParser",
]
