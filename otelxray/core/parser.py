"""
otelxray.core.parser - OTLP/JSON trace parsing module.

This module reads traces saved in the OTLP/JSON encoding (for example by
the collector's file exporter) and rebuilds OpenTelemetry SDK spans from
them, so recorded traces can be converted offline.

Classes:
    OTLPParser: Parser for OTLP/JSON documents
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import Event, ReadableSpan
from opentelemetry.sdk.util.instrumentation import InstrumentationScope
from opentelemetry.trace import Link, SpanContext, SpanKind, TraceFlags
from opentelemetry.trace.status import Status, StatusCode

logger = logging.getLogger(__name__)

_SPAN_KINDS: Dict[Any, SpanKind] = {
    0: SpanKind.INTERNAL,
    1: SpanKind.INTERNAL,
    2: SpanKind.SERVER,
    3: SpanKind.CLIENT,
    4: SpanKind.PRODUCER,
    5: SpanKind.CONSUMER,
    "SPAN_KIND_UNSPECIFIED": SpanKind.INTERNAL,
    "SPAN_KIND_INTERNAL": SpanKind.INTERNAL,
    "SPAN_KIND_SERVER": SpanKind.SERVER,
    "SPAN_KIND_CLIENT": SpanKind.CLIENT,
    "SPAN_KIND_PRODUCER": SpanKind.PRODUCER,
    "SPAN_KIND_CONSUMER": SpanKind.CONSUMER,
}

_STATUS_CODES: Dict[Any, StatusCode] = {
    0: StatusCode.UNSET,
    1: StatusCode.OK,
    2: StatusCode.ERROR,
    "STATUS_CODE_UNSET": StatusCode.UNSET,
    "STATUS_CODE_OK": StatusCode.OK,
    "STATUS_CODE_ERROR": StatusCode.ERROR,
}


class OTLPParser:
    """Parser for OTLP/JSON trace documents.

    The expected layout is ``resourceSpans`` -> ``scopeSpans`` (or the
    older ``instrumentationLibrarySpans``) -> ``spans``, with attributes
    encoded as ``{"key": ..., "value": {"stringValue": ...}}`` pairs and
    ids as hex strings.

    Example:
        >>> parser = OTLPParser()
        >>> spans = parser.parse_json(json_string)
        >>> print(spans[0].name)
    """

    def parse_json(self, json_str: str) -> List[ReadableSpan]:
        """Parse an OTLP/JSON document from a string.

        Args:
            json_str: JSON text of an ExportTraceServiceRequest

        Returns:
            Spans in document order

        Raises:
            json.JSONDecodeError: If the JSON is invalid
            ValueError: If the document is not OTLP/JSON
        """
        data = json.loads(json_str)
        return self.parse_otlp(data)

    def parse_otlp(self, data: Dict[str, Any]) -> List[ReadableSpan]:
        """Parse an already decoded OTLP/JSON document.

        Args:
            data: Decoded ExportTraceServiceRequest

        Returns:
            Spans in document order

        Raises:
            ValueError: If required fields are missing or malformed
        """
        if not isinstance(data, dict) or "resourceSpans" not in data:
            raise ValueError("Unsupported trace format: missing resourceSpans")

        spans: List[ReadableSpan] = []
        for resource_span in data["resourceSpans"] or []:
            resource = Resource(self._attributes(resource_span.get("resource", {}).get("attributes")))

            scope_spans = resource_span.get("scopeSpans")
            if not scope_spans:
                scope_spans = resource_span.get("instrumentationLibrarySpans", [])

            for scope_span in scope_spans:
                scope = self._scope(scope_span)
                for raw_span in scope_span.get("spans", []):
                    spans.append(self._parse_span(raw_span, resource, scope))

        logger.debug("Parsed %d spans", len(spans))
        return spans

    def _scope(self, scope_span: Dict[str, Any]) -> Optional[InstrumentationScope]:
        raw = scope_span.get("scope") or scope_span.get("instrumentationLibrary")
        if not raw or not raw.get("name"):
            return None
        return InstrumentationScope(raw["name"], raw.get("version") or None)

    def _parse_span(
        self,
        raw_span: Dict[str, Any],
        resource: Resource,
        scope: Optional[InstrumentationScope],
    ) -> ReadableSpan:
        """Build a ReadableSpan from one OTLP span object."""
        trace_id = self._parse_id(raw_span.get("traceId"), 32, "traceId")
        span_id = self._parse_id(raw_span.get("spanId"), 16, "spanId")
        context = SpanContext(trace_id, span_id, is_remote=False, trace_flags=TraceFlags(TraceFlags.SAMPLED))

        parent: Optional[SpanContext] = None
        if raw_span.get("parentSpanId"):
            parent_id = self._parse_id(raw_span["parentSpanId"], 16, "parentSpanId")
            parent = SpanContext(trace_id, parent_id, is_remote=False)

        kind = _SPAN_KINDS.get(raw_span.get("kind", 0))
        if kind is None:
            raise ValueError(f"Unknown span kind: {raw_span.get('kind')!r}")

        start_time, end_time = self._times(raw_span)

        events = [
            Event(
                raw_event.get("name", ""),
                attributes=self._attributes(raw_event.get("attributes")),
                timestamp=self._nanos(raw_event.get("timeUnixNano")),
            )
            for raw_event in raw_span.get("events", [])
        ]

        links = [
            Link(
                SpanContext(
                    self._parse_id(raw_link.get("traceId"), 32, "link traceId"),
                    self._parse_id(raw_link.get("spanId"), 16, "link spanId"),
                    is_remote=True,
                ),
                attributes=self._attributes(raw_link.get("attributes")),
            )
            for raw_link in raw_span.get("links", [])
        ]

        return ReadableSpan(
            name=raw_span.get("name") or "",
            context=context,
            parent=parent,
            resource=resource,
            attributes=self._attributes(raw_span.get("attributes")),
            events=events,
            links=links,
            kind=kind,
            status=self._status(raw_span.get("status")),
            start_time=start_time,
            end_time=end_time,
            instrumentation_scope=scope,
        )

    @staticmethod
    def _parse_id(value: Any, length: int, field_name: str) -> int:
        if not isinstance(value, str) or len(value) != length:
            raise ValueError(f"{field_name} must be {length} hex characters, got {value!r}")
        try:
            return int(value, 16)
        except ValueError:
            raise ValueError(f"{field_name} is not hexadecimal: {value!r}") from None

    @staticmethod
    def _nanos(value: Any) -> Optional[int]:
        if value is None or value == "":
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid timestamp: {value!r}") from None

    def _times(self, raw_span: Dict[str, Any]) -> Tuple[int, int]:
        start_time = self._nanos(raw_span.get("startTimeUnixNano"))
        if start_time is None:
            raise ValueError(f"Span {raw_span.get('spanId')!r} has no startTimeUnixNano")
        end_time = self._nanos(raw_span.get("endTimeUnixNano"))
        return start_time, end_time if end_time is not None else start_time

    @staticmethod
    def _status(raw_status: Optional[Dict[str, Any]]) -> Status:
        if not raw_status:
            return Status(StatusCode.UNSET)
        code = _STATUS_CODES.get(raw_status.get("code", 0), StatusCode.UNSET)
        description = raw_status.get("message") or None
        if code != StatusCode.ERROR:
            # the SDK only keeps descriptions on ERROR statuses
            description = None
        return Status(code, description)

    def _attributes(self, raw_attributes: Optional[List[Dict[str, Any]]]) -> Dict[str, Any]:
        """Decode a list of OTLP key/value pairs into a plain dict."""
        attributes: Dict[str, Any] = {}
        for item in raw_attributes or []:
            key = item.get("key")
            if not key:
                continue
            attributes[key] = self._any_value(item.get("value") or {})
        return attributes

    def _any_value(self, value: Dict[str, Any]) -> Any:
        """Decode an OTLP AnyValue."""
        if "stringValue" in value:
            return value["stringValue"]
        if "boolValue" in value:
            return bool(value["boolValue"])
        if "intValue" in value:
            # int64 values are encoded as JSON strings
            return int(value["intValue"])
        if "doubleValue" in value:
            return float(value["doubleValue"])
        if "arrayValue" in value:
            return [self._any_value(item) for item in value["arrayValue"].get("values", [])]
        if "kvlistValue" in value:
            return self._attributes(value["kvlistValue"].get("values"))
        if "bytesValue" in value:
            return value["bytesValue"]
        return None
