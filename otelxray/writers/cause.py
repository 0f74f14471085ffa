"""
otelxray.writers.cause - Error flags and the ``cause`` block of a segment.

X-Ray separates failures into three flags: ``error`` for client errors
(4xx), ``throttle`` for 429 on top of ``error``, and ``fault`` for
everything else. The span status decides whether there was a failure at
all; the HTTP status code only decides which flag is raised.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from opentelemetry.trace import StatusCode

from otelxray.core import conventions as conv
from otelxray.core.stacktrace import ExceptionRecord, Language, parse_exception
from otelxray.core.trace_id import new_segment_id
from otelxray.utils.values import as_int, as_str
from otelxray.writers.context import SegmentContext

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "dotnet"
THROTTLE_STATUS_CODE = 429


def _is_error(context: SegmentContext) -> bool:
    status = context.span.status
    if status is not None and status.status_code == StatusCode.ERROR:
        return True
    if status is None or status.status_code == StatusCode.UNSET:
        # status reported as an attribute by bridges that cannot set it
        code = as_str(context.span_attributes.get(conv.STATUS_CODE_KEY))
        context.span_attributes.rollback()
        return code == StatusCode.ERROR.name
    return False


def _exception_records(context: SegmentContext) -> List[ExceptionRecord]:
    resource = context.resource_attributes
    language_name = as_str(resource.get(conv.TELEMETRY_SDK_LANGUAGE)) or DEFAULT_LANGUAGE
    resource.rollback()
    language = Language.from_sdk(language_name)
    if language is None:
        logger.debug("No stack trace parser for language %s", language_name)

    records: List[ExceptionRecord] = []
    for event in context.span.events:
        if event.name != conv.EXCEPTION_EVENT_NAME:
            continue
        attributes = event.attributes or {}
        records.extend(
            parse_exception(
                language,
                as_str(attributes.get(conv.EXCEPTION_TYPE)) or "",
                as_str(attributes.get(conv.EXCEPTION_MESSAGE)) or "",
                as_str(attributes.get(conv.EXCEPTION_STACKTRACE)),
            )
        )
    return records


def _error_message(context: SegmentContext) -> str:
    status = context.span.status
    message = status.description if status is not None else None
    if not message:
        message = as_str(context.span_attributes.get(conv.HTTP_STATUS_TEXT)) or ""
        context.span_attributes.commit()
    return message


def _flags(context: SegmentContext, is_error: bool) -> Dict[str, bool]:
    flags = {"error": False, "throttle": False, "fault": False}
    if not is_error:
        return flags

    # read from the raw attributes: http.status_code may already be consumed
    raw = context.span.attributes or {}
    status_code = raw.get(conv.HTTP_STATUS_CODE)
    code = as_int(status_code) if status_code is not None else 0
    if 400 <= code <= 499:
        flags["error"] = True
        flags["throttle"] = code == THROTTLE_STATUS_CODE
    else:
        flags["fault"] = True
    return flags


def write_cause(context: SegmentContext) -> None:
    """Write ``cause`` (when there is one) and the error/throttle/fault flags.

    Exception events take precedence over the status description: when a
    span recorded exceptions, every one of them is parsed into the cause
    chain, in event order.

    Args:
        context: Conversion context; the flags are always written
    """
    is_error = _is_error(context)
    has_exceptions = any(event.name == conv.EXCEPTION_EVENT_NAME for event in context.span.events)

    if has_exceptions:
        records = _exception_records(context)
        context.document["cause"] = {"exceptions": [record.to_dict() for record in records]}
    elif is_error:
        message = _error_message(context)
        if message:
            exception: Dict[str, Any] = {"id": new_segment_id(), "message": message}
            context.document["cause"] = {"exceptions": [exception]}

    context.document.update(_flags(context, is_error))
