"""
otelxray.writers.http - The ``http`` block of a segment.

X-Ray records one request URL per segment. Instrumentations either report
it directly (http.url) or as pieces (scheme, host, port, target), and
which pieces are meaningful depends on the span kind: server spans
describe the local host, client spans the remote peer.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Optional

from opentelemetry.trace import SpanKind

from otelxray.core import conventions as conv
from otelxray.core.attributes import AttributeTable
from otelxray.utils.values import as_int, as_str
from otelxray.writers.context import SegmentContext

_DEFAULT_PORTS = {"http": "80", "https": "443"}


@dataclass
class UrlParts:
    """Attribute values that can contribute to the request URL."""

    url: Optional[str] = None
    scheme: Optional[str] = None
    host: Optional[str] = None
    target: Optional[str] = None
    server_name: Optional[str] = None
    net_host_port: Optional[str] = None
    host_name: Optional[str] = None
    net_host_name: Optional[str] = None
    net_peer_name: Optional[str] = None
    net_peer_port: Optional[str] = None
    net_peer_ip: Optional[str] = None

    def server_url(self) -> str:
        if self.url:
            return self.url
        port = ""
        host = self.host
        if not host:
            host = self.server_name or self.net_host_name or self.host_name or ""
            port = self.net_host_port or ""
        return self._build(host, port)

    def client_url(self) -> str:
        if self.url:
            return self.url
        port = ""
        host = self.host
        if not host:
            host = self.net_peer_name or self.net_peer_ip or ""
            port = self.net_peer_port or ""
        return self._build(host, port)

    def _build(self, host: str, port: str) -> str:
        scheme = self.scheme or "http"
        url = f"{scheme}://{host}"
        if port and _DEFAULT_PORTS.get(scheme) != port:
            url = f"{url}:{port}"
        return url + (self.target or "/")


def _port(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = as_str(value)
    return text if text else str(as_int(value))


def _received_size(attributes: Optional[Mapping]) -> Optional[int]:
    """Payload size of a "message received" marker, if the attributes carry one."""
    if not attributes:
        return None
    if as_str(attributes.get(conv.MESSAGE_TYPE)) != conv.MESSAGE_TYPE_RECEIVED:
        return None
    size = attributes.get(conv.MESSAGING_PAYLOAD_SIZE)
    return as_int(size) if size is not None else None


def _received_size_from_table(table: AttributeTable) -> Optional[int]:
    if as_str(table.get(conv.MESSAGE_TYPE)) != conv.MESSAGE_TYPE_RECEIVED:
        return None
    size = table.get(conv.MESSAGING_PAYLOAD_SIZE)
    return as_int(size) if size is not None else None


def _response_content_length(context: SegmentContext) -> Optional[int]:
    attributes = context.span_attributes
    length = attributes.get(conv.HTTP_RESPONSE_CONTENT_LENGTH)
    if length is not None:
        return as_int(length)

    size = _received_size_from_table(attributes)
    if size is not None:
        return size

    for event in context.span.events:
        size = _received_size(event.attributes)
        if size is not None:
            return size
    return None


def write_http(context: SegmentContext) -> None:
    """Write the ``http`` request/response block.

    Nothing is written, and nothing consumed, when the span carries no
    HTTP attribute at all.
    """
    attributes = context.span_attributes
    request: Dict[str, Any] = {}
    response: Dict[str, Any] = {}
    parts = UrlParts()
    has_http = False
    has_url_attributes = False
    client_ip: Optional[str] = None

    method = attributes.get(conv.HTTP_METHOD)
    if method is not None:
        has_http = True

    value = attributes.get(conv.HTTP_CLIENT_IP)
    if value is not None:
        client_ip = as_str(value)
        request["x_forwarded_for"] = True
        has_http = True

    user_agent = attributes.get(conv.HTTP_USER_AGENT)
    if user_agent is not None:
        has_http = True

    status = attributes.get(conv.HTTP_STATUS_CODE)
    if status is not None:
        has_http = True

    value = attributes.get(conv.HTTP_URL)
    if value is not None:
        parts.url = as_str(value)
        has_http = has_url_attributes = True

    value = attributes.get(conv.HTTP_SCHEME)
    if value is not None:
        parts.scheme = as_str(value)
        has_http = True

    value = attributes.get(conv.HTTP_HOST)
    if value is not None:
        parts.host = as_str(value)
        has_http = has_url_attributes = True

    value = attributes.get(conv.HTTP_TARGET)
    if value is not None:
        parts.target = as_str(value)
        has_http = True

    value = attributes.get(conv.HTTP_SERVER_NAME)
    if value is not None:
        parts.server_name = as_str(value)
        has_http = has_url_attributes = True

    value = attributes.get(conv.NET_HOST_PORT)
    if value is not None:
        parts.net_host_port = _port(value)
        has_http = True

    value = attributes.get(conv.HOST_NAME)
    if value is not None:
        parts.host_name = as_str(value)
        has_url_attributes = True

    value = attributes.get(conv.NET_HOST_NAME)
    if value is not None:
        parts.net_host_name = as_str(value)
        has_url_attributes = True

    parts.net_peer_name = as_str(attributes.get(conv.NET_PEER_NAME))
    parts.net_peer_port = _port(attributes.get(conv.NET_PEER_PORT))

    value = attributes.get(conv.NET_PEER_IP)
    if value is not None:
        parts.net_peer_ip = as_str(value)
        if client_ip is None:
            client_ip = parts.net_peer_ip
        has_url_attributes = True

    if not has_http:
        attributes.rollback()
        return

    if method is not None:
        request["method"] = as_str(method)
    if has_url_attributes:
        if context.span.kind == SpanKind.SERVER:
            request["url"] = parts.server_url()
        else:
            request["url"] = parts.client_url()
    if user_agent is not None:
        request["user_agent"] = as_str(user_agent)
    if client_ip is not None:
        request["client_ip"] = client_ip

    if status is not None:
        response["status"] = as_int(status)
    content_length = _response_content_length(context)
    if content_length is not None:
        response["content_length"] = content_length

    attributes.commit()
    context.document["http"] = {"request": request, "response": response}
