"""
otelxray.exporters - OpenTelemetry SpanExporter implementations.

This subpackage provides the SpanExporter that converts finished spans to
X-Ray segment documents and uploads them with PutTraceSegments.

Example:
    >>> from opentelemetry import trace
    >>> from opentelemetry.sdk.trace import TracerProvider
    >>> from opentelemetry.sdk.trace.export import BatchSpanProcessor
    >>> from otelxray.exporters import XRayExporter
    >>>
    >>> provider = TracerProvider()
    >>> provider.add_span_processor(BatchSpanProcessor(XRayExporter()))
    >>> trace.set_tracer_provider(provider)
"""

from otelxray.exporters.xray_exporter import XRayExporter, iter_batches

__all__ = ["XRayExporter", "iter_batches"]
