"""
otelxray.core.converter - OpenTelemetry span to X-Ray segment document.

This module turns one finished SDK span into the JSON text of an X-Ray
segment (or subsegment) document, ready for PutTraceSegments.

Classes:
    SegmentConverter: Converts ReadableSpans using pooled scratch state

Example:
    >>> converter = SegmentConverter()
    >>> document = converter.convert(span)
    >>> json.loads(document)["trace_id"]
    '1-5759e988-bd862e3fe1be46a994272793'
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.trace import INVALID_SPAN_ID, SpanKind

from otelxray.config import XRayExporterOptions
from otelxray.core.pool import ConverterScratch, ScratchPool
from otelxray.core.trace_id import is_valid_xray_trace_id, to_xray_trace_id
from otelxray.writers import (
    SegmentContext,
    determine_aws_origin,
    resolve_name,
    write_attributes,
    write_aws,
    write_cause,
    write_http,
    write_service,
    write_sql,
)

logger = logging.getLogger(__name__)

SEGMENT_TYPE_SUBSEGMENT = "subsegment"
_NANOS_PER_SECOND = 1_000_000_000


def _parent_span_id(span: ReadableSpan) -> Optional[str]:
    parent = span.parent
    if parent is None or parent.span_id == INVALID_SPAN_ID:
        return None
    return format(parent.span_id, "016x")


class SegmentConverter:
    """Converts OpenTelemetry spans to X-Ray segment documents.

    A converter is safe to share between threads: all per-conversion
    state is borrowed from an internal ScratchPool.

    Attributes:
        options: Exporter options controlling indexing and validation
    """

    def __init__(self, options: Optional[XRayExporterOptions] = None) -> None:
        self.options = options or XRayExporterOptions()
        self._pool: ScratchPool[ConverterScratch] = ScratchPool(ConverterScratch)

    def convert(self, span: ReadableSpan, resource: Optional[Resource] = None) -> Optional[str]:
        """Convert one span into a compact JSON segment document.

        Args:
            span: Finished span
            resource: Resource the span belongs to (defaults to span.resource)

        Returns:
            The JSON document, or None when trace id validation is enabled
            and X-Ray would reject the span's trace id
        """
        trace_id = format(span.context.trace_id, "032x")
        if self.options.validate_trace_id and not is_valid_xray_trace_id(trace_id):
            logger.warning("Dropping span %s: trace ID %s is not a valid X-Ray trace ID", span.name, trace_id)
            return None

        if resource is None:
            resource = span.resource
        parent_id = _parent_span_id(span)
        is_subsegment = span.kind != SpanKind.SERVER and parent_id is not None

        with self._pool.checkout() as scratch:
            scratch.span_attributes.initialize(span.attributes)
            scratch.resource_attributes.initialize(resource.attributes if resource is not None else None)
            context = SegmentContext(
                span=span,
                span_attributes=scratch.span_attributes,
                resource_attributes=scratch.resource_attributes,
                options=self.options,
                store_resource=not is_subsegment,
            )

            name, namespace = resolve_name(context)
            context.span_attributes.rollback()

            start_time = span.start_time or 0
            end_time = span.end_time or start_time
            document = context.document
            document["name"] = name
            document["id"] = format(span.context.span_id, "016x")
            document["trace_id"] = to_xray_trace_id(trace_id)
            document["start_time"] = start_time / _NANOS_PER_SECOND
            document["end_time"] = end_time / _NANOS_PER_SECOND
            if parent_id is not None:
                document["parent_id"] = parent_id
            if namespace is not None:
                document["namespace"] = namespace
            if is_subsegment:
                document["type"] = SEGMENT_TYPE_SUBSEGMENT

            write_http(context)
            write_cause(context)

            origin = determine_aws_origin(context)
            if origin is not None:
                document["origin"] = origin

            write_aws(context)
            write_service(context)
            write_sql(context)
            write_attributes(context)

            return scratch.encoder.encode(document)

    def convert_many(self, spans: Iterable[ReadableSpan]) -> List[str]:
        """Convert spans in order, skipping those rejected by validation."""
        documents = []
        for span in spans:
            document = self.convert(span)
            if document is not None:
                documents.append(document)
        return documents
