"""
otelxray - OpenTelemetry span export to AWS X-Ray.

This package converts finished OpenTelemetry spans into X-Ray segment
documents and uploads them in batches with the PutTraceSegments API.

Example:
    >>> from opentelemetry.sdk.trace import TracerProvider
    >>> from opentelemetry.sdk.trace.export import BatchSpanProcessor
    >>> from otelxray import XRayExporter, XRayExporterOptions, XRayIdGenerator
    >>> provider = TracerProvider(id_generator=XRayIdGenerator())
    >>> exporter = XRayExporter(XRayExporterOptions(region_name="us-east-1"))
    >>> provider.add_span_processor(BatchSpanProcessor(exporter))
"""

__version__ = "0.1.0"
__author__ = "KR"
__email__ = "Karthickrajam18@gmail.com"

from otelxray.config import ExportProcessorType, XRayExporterOptions
from otelxray.core.converter import SegmentConverter
from otelxray.core.parser import OTLPParser
from otelxray.core.trace_id import XRayIdGenerator
from otelxray.exporters import XRayExporter

__all__ = [
    "ExportProcessorType",
    "XRayExporterOptions",
    "SegmentConverter",
    "OTLPParser",
    "XRayIdGenerator",
    "XRayExporter",
]
