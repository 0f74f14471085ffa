"""
otelxray.writers.annotations - ``user``, ``metadata`` and ``annotations``.

This is the last writer to run. Every attribute the earlier writers did
not consume ends up here: scalars that the indexing policy selects become
annotations (searchable in X-Ray), everything else that can be serialized
goes to the ``default`` metadata namespace.
"""

from __future__ import annotations

from typing import Any, Dict

from otelxray.config import ANNOTATION_RESOURCE_KEY_PREFIX, RESOURCE_KEY_PREFIX
from otelxray.core import conventions as conv
from otelxray.utils.values import as_str, is_annotation_value, is_metadata_value
from otelxray.writers.context import SegmentContext
from otelxray.writers.naming import fix_annotation_key

METADATA_NAMESPACE = "default"
ACTIVITY_DISPLAY_NAME = "activity_display_name"
ACTIVITY_OPERATION_NAME = "activity_operation_name"


def write_attributes(context: SegmentContext) -> None:
    """Write the end user, metadata and annotations of a segment.

    Resource attributes are only written for segments (``store_resource``)
    and are prefixed so they cannot clash with span attributes:
    "otel_resource_" for annotations, "otel.resource." for metadata.

    Args:
        context: Conversion context
    """
    spans = context.span_attributes
    options = context.options
    document = context.document

    user = spans.get(conv.END_USER_ID)
    if user is not None:
        spans.commit()
        document["user"] = as_str(user)
    else:
        spans.rollback()

    metadata: Dict[str, Any] = {}
    annotations: Dict[str, Any] = {}

    if context.store_resource:
        for key, value in context.resource_attributes:
            if options.is_indexed(key, True) and is_annotation_value(value):
                annotations[fix_annotation_key(ANNOTATION_RESOURCE_KEY_PREFIX + key)] = value
            elif is_metadata_value(value):
                metadata[RESOURCE_KEY_PREFIX + key] = value

    if options.index_activity_names:
        annotations[ACTIVITY_DISPLAY_NAME] = context.span.name
        annotations[ACTIVITY_OPERATION_NAME] = context.span.name

    for key, value in spans:
        if options.is_indexed(key, False) and is_annotation_value(value):
            annotations[fix_annotation_key(key)] = value
        elif is_metadata_value(value):
            metadata[key] = value

    if metadata:
        document["metadata"] = {METADATA_NAMESPACE: metadata}
    if annotations:
        document["annotations"] = annotations
