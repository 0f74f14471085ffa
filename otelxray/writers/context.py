"""
otelxray.writers.context - State shared by the segment writers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from opentelemetry.sdk.trace import ReadableSpan

from otelxray.config import XRayExporterOptions
from otelxray.core.attributes import AttributeTable


@dataclass
class SegmentContext:
    """Everything a writer needs to emit its part of a segment.

    Attributes:
        span: Span being converted
        span_attributes: Table over the span attributes
        resource_attributes: Table over the resource attributes
        options: Exporter options (indexing policy, log groups)
        document: Segment being built; writers add top-level keys to it
        store_resource: False for subsegments, which never repeat
            resource attributes
    """

    span: ReadableSpan
    span_attributes: AttributeTable
    resource_attributes: AttributeTable
    options: XRayExporterOptions
    document: Dict[str, Any] = field(default_factory=dict)
    store_resource: bool = True
