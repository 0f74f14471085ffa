"""
OpenTelemetry tracing setup with XRayExporter.

This module provides functions to configure the OpenTelemetry SDK so that
finished spans are sent to AWS X-Ray.

Example:
    >>> from otelxray.integrations import setup_tracing, get_tracer
    >>>
    >>> setup_tracing(
    ...     service_name="checkout",
    ...     options=XRayExporterOptions(region_name="us-east-1"),
    ... )
    >>>
    >>> tracer = get_tracer(__name__)
    >>> with tracer.start_as_current_span("charge-card") as span:
    ...     span.set_attribute("enduser.id", "user-42")
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SimpleSpanProcessor,
    SpanExporter,
)

from otelxray.config import ExportProcessorType, XRayExporterOptions
from otelxray.core.trace_id import XRayIdGenerator
from otelxray.exporters import XRayExporter

logger = logging.getLogger(__name__)

# Provider installed by setup_tracing, if any
_tracer_provider: Optional[TracerProvider] = None


def _processor(exporter: SpanExporter, processor_type: ExportProcessorType) -> SpanProcessor:
    if processor_type is ExportProcessorType.SIMPLE:
        return SimpleSpanProcessor(exporter)
    return BatchSpanProcessor(exporter)


def setup_tracing(
    service_name: str,
    options: Optional[XRayExporterOptions] = None,
    resource_attributes: Optional[Dict[str, Any]] = None,
    additional_exporters: Optional[list[SpanExporter]] = None,
) -> TracerProvider:
    """Setup OpenTelemetry tracing with XRayExporter.

    This function configures the global TracerProvider. When
    options.generate_trace_ids is set, the provider uses XRayIdGenerator
    so that X-Ray accepts the generated trace ids.

    Args:
        service_name: Name of the service (becomes the segment name of
            server spans).
        options: Exporter options. Defaults are used when omitted.
        resource_attributes: Extra resource attributes, for example
            cloud.provider or service.version.
        additional_exporters: Additional SpanExporters to use alongside X-Ray.

    Returns:
        The configured TracerProvider.

    Example:
        >>> provider = setup_tracing(
        ...     service_name="payments",
        ...     resource_attributes={"service.version": "1.4.2"},
        ... )
    """
    global _tracer_provider

    options = options or XRayExporterOptions()

    attributes: Dict[str, Any] = dict(resource_attributes or {})
    attributes[SERVICE_NAME] = service_name
    resource = Resource.create(attributes)

    id_generator = XRayIdGenerator() if options.generate_trace_ids else None
    if id_generator is not None:
        provider = TracerProvider(resource=resource, id_generator=id_generator)
    else:
        provider = TracerProvider(resource=resource)

    provider.add_span_processor(_processor(XRayExporter(options), options.export_processor_type))

    if additional_exporters:
        for exporter in additional_exporters:
            provider.add_span_processor(_processor(exporter, options.export_processor_type))

    trace.set_tracer_provider(provider)
    _tracer_provider = provider

    logger.info(
        "Tracing configured: service=%s, region=%s, processor=%s",
        service_name,
        options.region_name,
        options.export_processor_type.value,
    )

    return provider


def get_tracer(name: str, version: Optional[str] = None) -> trace.Tracer:
    """Get a tracer instance.

    Args:
        name: Name of the tracer (usually module name).
        version: Optional version of the tracer.

    Returns:
        A Tracer from the configured provider, or from the global one when
        setup_tracing was not called.
    """
    provider = _tracer_provider or trace.get_tracer_provider()
    return provider.get_tracer(name, version)


def shutdown_tracing() -> None:
    """Shutdown the tracing system.

    Flushes the span processors, which upload anything still queued.
    Call this before the process exits so queued segments reach X-Ray.
    """
    global _tracer_provider

    if _tracer_provider:
        logger.info("Shutting down tracing...")
        _tracer_provider.shutdown()
        _tracer_provider = None
        logger.info("Tracing shutdown complete")
