"""
XRayExporter - OpenTelemetry SpanExporter that sends segments to AWS X-Ray.

Spans handed over by the SDK are converted to segment documents and
uploaded with the PutTraceSegments API. One call accepts at most 50
documents and 64 KiB of payload, so documents are grouped into batches of
at most 50 documents and 62 KiB each.

Example:
    >>> from opentelemetry import trace
    >>> from opentelemetry.sdk.trace import TracerProvider
    >>> from opentelemetry.sdk.trace.export import BatchSpanProcessor
    >>> from otelxray.exporters import XRayExporter
    >>>
    >>> exporter = XRayExporter(XRayExporterOptions(region_name="us-east-1"))
    >>> provider = TracerProvider()
    >>> provider.add_span_processor(BatchSpanProcessor(exporter))
    >>> trace.set_tracer_provider(provider)
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Iterable, Iterator, List, Optional, Sequence

import boto3
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult

from otelxray.config import XRayExporterOptions
from otelxray.core.converter import SegmentConverter

logger = logging.getLogger(__name__)

MAX_BATCH_BYTES = 62 * 1024
MAX_BATCH_DOCUMENTS = 50


def iter_batches(
    documents: Iterable[str],
    max_bytes: int = MAX_BATCH_BYTES,
    max_documents: int = MAX_BATCH_DOCUMENTS,
) -> Iterator[List[str]]:
    """Group documents greedily into PutTraceSegments sized batches.

    Documents keep their order. A batch is closed when adding the next
    document would exceed ``max_bytes`` (UTF-8 encoded size) or when it
    already holds ``max_documents``. A single document larger than
    ``max_bytes`` is sent in a batch of its own.

    Args:
        documents: Segment documents in export order
        max_bytes: Byte budget of one batch
        max_documents: Document count limit of one batch

    Yields:
        Lists of documents, never empty

    Raises:
        ValueError: If a limit is not positive
    """
    if max_bytes <= 0 or max_documents <= 0:
        raise ValueError("batch limits must be positive")

    batch: List[str] = []
    total = 0
    for document in documents:
        size = len(document.encode("utf-8"))
        if batch and (total + size > max_bytes or len(batch) >= max_documents):
            yield batch
            batch = []
            total = 0
        batch.append(document)
        total += size
    if batch:
        yield batch


class XRayExporter(SpanExporter):
    """OpenTelemetry SpanExporter that uploads spans to AWS X-Ray.

    Attributes:
        options: Exporter options shared with the converter
        converter: SegmentConverter used to build documents

    Example:
        >>> exporter = XRayExporter(
        ...     XRayExporterOptions(indexed_attributes=["http.route"], index_all_attributes=False),
        ...     client=boto3.client("xray", region_name="eu-west-1"),
        ... )
    """

    def __init__(
        self,
        options: Optional[XRayExporterOptions] = None,
        client: Optional[Any] = None,
        converter: Optional[SegmentConverter] = None,
    ) -> None:
        """Initialize the XRayExporter.

        Args:
            options: Exporter options. Defaults are used when omitted.
            client: X-Ray client exposing put_trace_segments. Takes
                precedence over options.client_factory.
            converter: Converter to use instead of one built from options.
        """
        self.options = options or XRayExporterOptions()
        self.converter = converter or SegmentConverter(self.options)
        if client is None:
            if self.options.client_factory is not None:
                client = self.options.client_factory()
            else:
                client = boto3.client("xray", region_name=self.options.region_name)
        self._client = client
        self._lock = threading.Lock()
        self._shutdown = False

        logger.info(
            "XRayExporter initialized: region=%s, index_all=%s, validate_trace_id=%s",
            self.options.region_name,
            self.options.index_all_attributes,
            self.options.validate_trace_id,
        )

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        """Convert and upload a batch of spans.

        Args:
            spans: Sequence of completed spans to export.

        Returns:
            SpanExportResult.SUCCESS when every PutTraceSegments call
            succeeded, SpanExportResult.FAILURE otherwise.
        """
        if self._shutdown:
            logger.warning("Export called after shutdown, dropping %d spans", len(spans))
            return SpanExportResult.FAILURE
        if not spans:
            return SpanExportResult.SUCCESS

        documents = self.converter.convert_many(spans)
        if not documents:
            return SpanExportResult.SUCCESS

        with self._lock:
            for batch in iter_batches(documents):
                logger.debug("Sending %d segment documents to X-Ray", len(batch))
                try:
                    response = self._client.put_trace_segments(TraceSegmentDocuments=batch)
                except Exception as e:
                    logger.error("Failed to send %d segments to X-Ray: %s", len(batch), str(e), exc_info=True)
                    return SpanExportResult.FAILURE
                self._log_unprocessed(response)

        return SpanExportResult.SUCCESS

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        """Nothing is buffered by the exporter itself, so this always succeeds."""
        return True

    def shutdown(self) -> None:
        """Shutdown the exporter. Later export calls fail."""
        self._shutdown = True
        logger.info("XRayExporter shutdown complete")

    @staticmethod
    def _log_unprocessed(response: Any) -> None:
        if not isinstance(response, dict):
            return
        for segment in response.get("UnprocessedTraceSegments") or []:
            logger.warning(
                "X-Ray rejected segment %s: %s %s",
                segment.get("Id"),
                segment.get("ErrorCode"),
                segment.get("Message"),
            )
