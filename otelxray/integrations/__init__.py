"""
otelxray.integrations - OpenTelemetry SDK wiring.

This subpackage sets up a TracerProvider that sends spans to X-Ray.

Example:
    >>> from otelxray.integrations import setup_tracing, get_tracer, shutdown_tracing
    >>>
    >>> setup_tracing(service_name="my-api")
    >>> tracer = get_tracer(__name__)
    >>> ...
    >>> shutdown_tracing()
"""

from otelxray.integrations.setup import setup_tracing, get_tracer, shutdown_tracing

__all__ = [
    "setup_tracing",
    "get_tracer",
    "shutdown_tracing",
]
