"""
otelxray.writers.service - The ``service`` block of a segment.
"""

from __future__ import annotations

from otelxray.core import conventions as conv
from otelxray.utils.values import as_str
from otelxray.writers.context import SegmentContext


def write_service(context: SegmentContext) -> None:
    """Write ``service.version`` from the resource, or the container image tag."""
    resource = context.resource_attributes
    version = resource.get(conv.SERVICE_VERSION)
    if version is None:
        version = resource.get(conv.CONTAINER_IMAGE_TAG)
    resource.rollback()

    if version is not None:
        context.document["service"] = {"version": as_str(version)}
