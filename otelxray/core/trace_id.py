"""
otelxray.core.trace_id - X-Ray trace and segment identifiers.

X-Ray trace ids have the form ``1-{epoch}-{random}`` where ``epoch`` is the
first 8 hex characters of the 32 character OpenTelemetry trace id, read as
Unix seconds. X-Ray rejects trace ids whose epoch is older than 30 days or
more than a few minutes in the future, so ids produced by a random
generator have to be created with XRayIdGenerator to be accepted.
"""

from __future__ import annotations

import random
import re
import time
from typing import Optional

from opentelemetry.sdk.trace.id_generator import IdGenerator
from opentelemetry.trace import INVALID_SPAN_ID

MAX_AGE_SECONDS = 60 * 60 * 24 * 30
MAX_SKEW_SECONDS = 60 * 5

_TRACE_ID_HEX = re.compile(r"^[0-9a-f]{32}$")


def to_xray_trace_id(trace_id_hex: str) -> str:
    """Format a 32 hex character trace id as an X-Ray trace id.

    Example:
        >>> to_xray_trace_id("5759e988bd862e3fe1be46a994272793")
        '1-5759e988-bd862e3fe1be46a994272793'
    """
    return f"1-{trace_id_hex[:8]}-{trace_id_hex[8:]}"


def is_valid_xray_trace_id(trace_id_hex: str, now: Optional[float] = None) -> bool:
    """Check that a trace id is well formed and its epoch is acceptable to X-Ray.

    Args:
        trace_id_hex: 32 lowercase hex characters
        now: Current Unix time in seconds (defaults to time.time())

    Returns:
        True if X-Ray would accept the trace id
    """
    if not _TRACE_ID_HEX.match(trace_id_hex or ""):
        return False

    epoch = int(trace_id_hex[:8], 16)
    if now is None:
        now = time.time()
    return now - MAX_AGE_SECONDS <= epoch <= now + MAX_SKEW_SECONDS


def new_segment_id() -> str:
    """Return a fresh random 64-bit id as 16 lowercase hex characters."""
    span_id = random.getrandbits(64)
    while span_id == INVALID_SPAN_ID:
        span_id = random.getrandbits(64)
    return format(span_id, "016x")


class XRayIdGenerator(IdGenerator):
    """IdGenerator producing trace ids with an embedded epoch.

    The high 32 bits of the trace id carry the current Unix time in
    seconds; the remaining 96 bits are random.

    Example:
        >>> from opentelemetry.sdk.trace import TracerProvider
        >>> provider = TracerProvider(id_generator=XRayIdGenerator())
    """

    def generate_span_id(self) -> int:
        return int(new_segment_id(), 16)

    def generate_trace_id(self) -> int:
        epoch = int(time.time()) & 0xFFFFFFFF
        return (epoch << 96) | random.getrandbits(96)
