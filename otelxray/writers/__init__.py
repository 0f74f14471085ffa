"""
otelxray.writers - Functions that emit the sub-objects of a segment document.

Each writer takes a SegmentContext and adds at most one top-level key to
the document being built:
- naming: segment name, namespace and origin
- http: request and response
- cause: exceptions and the error/throttle/fault flags
- aws: cloud environment and AWS SDK call details
- service: service version
- sql: relational database calls
- annotations: user, metadata and annotations
"""

from otelxray.writers.context import SegmentContext
from otelxray.writers.naming import (
    resolve_name,
    determine_aws_origin,
    fix_segment_name,
    fix_annotation_key,
)
from otelxray.writers.http import write_http
from otelxray.writers.cause import write_cause
from otelxray.writers.aws import write_aws
from otelxray.writers.service import write_service
from otelxray.writers.sql import write_sql
from otelxray.writers.annotations import write_attributes

__all__ = [
    "SegmentContext",
    "resolve_name",
    "determine_aws_origin",
    "fix_segment_name",
    "fix_annotation_key",
    "write_http",
    "write_cause",
    "write_aws",
    "write_service",
    "write_sql",
    "write_attributes",
]
