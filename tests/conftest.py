"""Shared fixtures for otelxray tests.

Spans are built as real SDK ReadableSpan objects so the converter sees
exactly what a TracerProvider would hand to the exporter.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, Optional, Sequence

import pytest
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import Event, ReadableSpan
from opentelemetry.trace import SpanContext, SpanKind, TraceFlags
from opentelemetry.trace.status import Status, StatusCode

from otelxray.config import XRayExporterOptions
from otelxray.core.converter import SegmentConverter

TRACE_ID = 0x5759E988BD862E3FE1BE46A994272793
SPAN_ID = 0x53995C3F42CD8AD8
PARENT_SPAN_ID = 0xDEFDBA4F3D5C0C10
START_TIME = 1_465_505_865_000_000_000
END_TIME = START_TIME + 1_500_000_000

DEFAULT_RESOURCE_ATTRIBUTES: Dict[str, Any] = {
    "service.name": "signup_aggregator",
    "service.version": "semver:1.1.4",
    "container.name": "signup_aggregator",
    "container.image.name": "otel/signupaggregator",
    "container.image.tag": "v1",
    "k8s.cluster.name": "production",
    "k8s.namespace.name": "default",
    "k8s.deployment.name": "signup_aggregator",
    "k8s.pod.name": "signup_aggregator-x82ufje83",
    "cloud.provider": "aws",
    "cloud.account.id": "123456789",
    "cloud.region": "us-east-1",
    "cloud.availability_zone": "us-east-1c",
    "string.key": "string",
    "int.key": 10,
    "double.key": 5.0,
    "bool.key": True,
    "array.key": ["foo", "bar"],
}


def build_span(
    name: str = "/api/locations",
    kind: SpanKind = SpanKind.SERVER,
    attributes: Optional[Dict[str, Any]] = None,
    resource: Optional[Resource] = None,
    resource_attributes: Optional[Dict[str, Any]] = None,
    events: Sequence[Event] = (),
    status: Optional[Status] = None,
    parent_span_id: Optional[int] = None,
    trace_id: int = TRACE_ID,
    span_id: int = SPAN_ID,
    start_time: int = START_TIME,
    end_time: Optional[int] = END_TIME,
) -> ReadableSpan:
    """Build a finished SDK span.

    The resource defaults to DEFAULT_RESOURCE_ATTRIBUTES unless
    ``resource`` or ``resource_attributes`` is given.
    """
    if resource is None:
        resource = Resource(
            DEFAULT_RESOURCE_ATTRIBUTES if resource_attributes is None else resource_attributes
        )
    context = SpanContext(trace_id, span_id, is_remote=False, trace_flags=TraceFlags(TraceFlags.SAMPLED))
    parent = None
    if parent_span_id is not None:
        parent = SpanContext(trace_id, parent_span_id, is_remote=False)
    return ReadableSpan(
        name=name,
        context=context,
        parent=parent,
        resource=resource,
        attributes=attributes or {},
        events=list(events),
        kind=kind,
        status=status or Status(StatusCode.UNSET),
        start_time=start_time,
        end_time=end_time,
    )


def exception_event(exc_type: str, message: str, stacktrace: Optional[str] = None) -> Event:
    """Build an "exception" span event."""
    attributes: Dict[str, Any] = {
        "exception.type": exc_type,
        "exception.message": message,
    }
    if stacktrace is not None:
        attributes["exception.stacktrace"] = stacktrace
    return Event("exception", attributes=attributes, timestamp=START_TIME)


@pytest.fixture
def make_span() -> Callable[..., ReadableSpan]:
    """Factory fixture building SDK spans, see build_span."""
    return build_span


@pytest.fixture
def convert() -> Callable[..., Dict[str, Any]]:
    """Convert a span and return the decoded segment document."""

    def _convert(span: ReadableSpan, options: Optional[XRayExporterOptions] = None) -> Dict[str, Any]:
        document = SegmentConverter(options).convert(span)
        assert document is not None
        return json.loads(document)

    return _convert
