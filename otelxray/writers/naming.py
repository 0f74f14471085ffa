"""
otelxray.writers.naming - Segment name, namespace and origin resolution.

Functions:
    resolve_name: Pick the segment name and namespace from span attributes
    determine_aws_origin: Map the resource cloud platform to an X-Ray origin
    fix_segment_name: Strip characters X-Ray does not allow in names
    fix_annotation_key: Make an attribute key a valid annotation key
"""

from __future__ import annotations

import re
from typing import Optional, Tuple
from urllib.parse import urlsplit

from opentelemetry.trace import SpanKind

from otelxray.core import conventions as conv
from otelxray.utils.values import as_str
from otelxray.writers.context import SegmentContext

DEFAULT_SEGMENT_NAME = "span"
MAX_SEGMENT_NAME_LENGTH = 200
NAMESPACE_AWS = conv.CLOUD_PROVIDER_AWS
NAMESPACE_REMOTE = "remote"

_SEGMENT_NAME_PUNCTUATION = frozenset(" _.:/%&#=+,\\-@")
_INVALID_ANNOTATION_CHARACTERS = re.compile(r"[^0-9a-zA-Z]")

_ECS_ORIGINS = {
    conv.ECS_LAUNCH_TYPE_EC2: conv.ORIGIN_ECS_EC2,
    conv.ECS_LAUNCH_TYPE_FARGATE: conv.ORIGIN_ECS_FARGATE,
}
_PLATFORM_ORIGINS = {
    conv.CLOUD_PLATFORM_AWS_APP_RUNNER: conv.ORIGIN_APP_RUNNER,
    conv.CLOUD_PLATFORM_AWS_EKS: conv.ORIGIN_EKS,
    conv.CLOUD_PLATFORM_AWS_ELASTIC_BEANSTALK: conv.ORIGIN_ELASTIC_BEANSTALK,
    conv.CLOUD_PLATFORM_AWS_EC2: conv.ORIGIN_EC2,
}


def fix_segment_name(name: Optional[str]) -> str:
    """Remove characters that are not valid in an X-Ray segment name.

    Letters of any script, ASCII digits, space and ``_.:/%&#=+,\\-@`` are
    kept. The result is truncated to 200 characters; an empty result
    becomes "span".

    Example:
        >>> fix_segment_name("<subDomain>.example.com")
        'subDomain.example.com'
        >>> fix_segment_name("<>")
        'span'
    """
    if not name:
        return DEFAULT_SEGMENT_NAME
    fixed = "".join(
        ch for ch in name
        if ch.isalpha() or ("0" <= ch <= "9") or ch in _SEGMENT_NAME_PUNCTUATION
    )
    fixed = fixed[:MAX_SEGMENT_NAME_LENGTH]
    return fixed or DEFAULT_SEGMENT_NAME


def fix_annotation_key(key: str) -> str:
    """Replace every non-alphanumeric ASCII character with an underscore.

    Example:
        >>> fix_annotation_key("http.status_code")
        'http_status_code'
    """
    return _INVALID_ANNOTATION_CHARACTERS.sub("_", key)


def _database_host(connection_string: Optional[str]) -> Optional[str]:
    if not connection_string:
        return None
    try:
        parts = urlsplit(connection_string)
        host = parts.hostname
    except ValueError:
        return None
    if not parts.scheme:
        return None
    return host or None


def resolve_name(context: SegmentContext) -> Tuple[str, Optional[str]]:
    """Resolve the segment name and namespace.

    The name comes from the first attribute present in this order:
    peer.service, aws.service, db.name (plus "@host" from the connection
    string), the resource service.name (server spans only), rpc.service,
    http.host, net.peer.name. The span name is used as a last resort.

    The attributes read here are only marked; the caller rolls the marks
    back so that later writers and the annotation pass still see them.

    Args:
        context: Conversion context

    Returns:
        Tuple of (name, namespace); namespace is None when unresolved
    """
    attributes = context.span_attributes
    span = context.span
    name: Optional[str] = as_str(attributes.get(conv.PEER_SERVICE))
    namespace: Optional[str] = None

    if as_str(attributes.get(conv.RPC_SYSTEM)) == conv.RPC_SYSTEM_AWS_API:
        namespace = NAMESPACE_AWS

    if not name:
        name = as_str(attributes.get(conv.AWS_SERVICE))
        if name and not namespace:
            namespace = NAMESPACE_AWS

    if not name:
        name = as_str(attributes.get(conv.DB_NAME))
        if name:
            host = _database_host(as_str(attributes.get(conv.DB_CONNECTION_STRING)))
            if host:
                name = f"{name}@{host}"

    if not name and span.kind == SpanKind.SERVER:
        name = as_str(context.resource_attributes.get(conv.SERVICE_NAME))
        context.resource_attributes.rollback()

    if not name:
        name = as_str(attributes.get(conv.RPC_SERVICE))

    if not name:
        name = as_str(attributes.get(conv.HTTP_HOST))

    if not name:
        name = as_str(attributes.get(conv.NET_PEER_NAME))

    if not name:
        name = fix_segment_name(span.name)

    if not namespace and span.kind == SpanKind.CLIENT:
        namespace = NAMESPACE_REMOTE

    return name, namespace


def determine_aws_origin(context: SegmentContext) -> Optional[str]:
    """Return the X-Ray origin for the resource's cloud platform.

    Non-AWS providers and unknown platforms have no origin.

    Example:
        resource {cloud.provider: aws, cloud.platform: aws_ecs,
        aws.ecs.launchtype: fargate} -> "AWS::ECS::Fargate"
    """
    resource = context.resource_attributes
    try:
        provider = as_str(resource.get(conv.CLOUD_PROVIDER))
        if provider is not None and provider != conv.CLOUD_PROVIDER_AWS:
            return None

        platform = as_str(resource.get(conv.CLOUD_PLATFORM))
        if platform is None:
            return None
        if platform == conv.CLOUD_PLATFORM_AWS_ECS:
            launch_type = as_str(resource.get(conv.AWS_ECS_LAUNCH_TYPE))
            return _ECS_ORIGINS.get(launch_type, conv.ORIGIN_ECS)
        return _PLATFORM_ORIGINS.get(platform)
    finally:
        resource.rollback()
