"""
otelxray.config - Options shared by the converter, exporter and tracing setup.

Classes:
    ExportProcessorType: Which span processor wraps the exporter
    XRayExporterOptions: Dataclass holding every tunable of the exporter
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Callable, FrozenSet, Iterable, Optional, Sequence, Tuple

RESOURCE_KEY_PREFIX = "otel.resource."
ANNOTATION_RESOURCE_KEY_PREFIX = "otel_resource_"


class ExportProcessorType(enum.Enum):
    """Span processor used when the exporter is installed by setup_tracing."""

    BATCH = "batch"
    SIMPLE = "simple"


@dataclass
class XRayExporterOptions:
    """Configuration of the X-Ray exporter.

    Attributes:
        generate_trace_ids: Install XRayIdGenerator so trace ids carry an
            epoch X-Ray accepts
        client_factory: Callable returning an X-Ray client; a boto3 client
            is created when omitted
        region_name: AWS region for the default boto3 client
        indexed_attributes: Attribute keys written as annotations. Resource
            attributes are listed with the "otel.resource." prefix
        should_index_attribute: Predicate ``(key, is_resource) -> bool``
            deciding whether an attribute becomes an annotation
        index_all_attributes: Write every scalar attribute as an annotation
        index_activity_names: Add activity_display_name and
            activity_operation_name annotations
        validate_trace_id: Drop spans whose trace id X-Ray would reject
        export_processor_type: BATCH or SIMPLE span processor
        log_group_names: CloudWatch log groups attached when the resource
            does not declare any

    Example:
        >>> options = XRayExporterOptions(
        ...     indexed_attributes=["http.route", "otel.resource.service.name"],
        ...     index_all_attributes=False,
        ... )
        >>> options.is_indexed("service.name", is_resource=True)
        True
    """

    generate_trace_ids: bool = True
    client_factory: Optional[Callable[[], Any]] = None
    region_name: Optional[str] = None
    indexed_attributes: Sequence[str] = ()
    should_index_attribute: Optional[Callable[[str, bool], bool]] = None
    index_all_attributes: bool = True
    index_activity_names: bool = True
    validate_trace_id: bool = False
    export_processor_type: ExportProcessorType = ExportProcessorType.BATCH
    log_group_names: Optional[Sequence[str]] = None
    indexed_span_attributes: FrozenSet[str] = field(init=False, repr=False)
    indexed_resource_attributes: FrozenSet[str] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate options and precompute the indexed key sets."""
        if self.client_factory is not None and not callable(self.client_factory):
            raise ValueError("client_factory must be callable")
        if self.should_index_attribute is not None and not callable(self.should_index_attribute):
            raise ValueError("should_index_attribute must be callable")
        if isinstance(self.indexed_attributes, str):
            raise ValueError("indexed_attributes must be a sequence of keys, not a string")
        if isinstance(self.log_group_names, str):
            raise ValueError("log_group_names must be a sequence of names, not a string")
        if not isinstance(self.export_processor_type, ExportProcessorType):
            self.export_processor_type = ExportProcessorType(self.export_processor_type)

        self.indexed_attributes = tuple(self.indexed_attributes or ())
        for key in self.indexed_attributes:
            if not isinstance(key, str) or not key:
                raise ValueError(f"indexed attribute keys must be non-empty strings, got {key!r}")
        if self.log_group_names is not None:
            self.log_group_names = tuple(self.log_group_names)

        self.indexed_span_attributes = frozenset(self.indexed_attributes)
        self.indexed_resource_attributes = frozenset(
            key[len(RESOURCE_KEY_PREFIX):]
            for key in self.indexed_attributes
            if key.startswith(RESOURCE_KEY_PREFIX)
        )

    def is_indexed(self, key: str, is_resource: bool = False) -> bool:
        """Decide whether an attribute is written as an annotation.

        The explicit list, the predicate and index_all_attributes are
        alternatives: any one of them can mark a key as indexed.

        Args:
            key: Attribute key (without the resource prefix)
            is_resource: Whether the attribute belongs to the resource

        Returns:
            True if the attribute should be indexed
        """
        listed = self.indexed_resource_attributes if is_resource else self.indexed_span_attributes
        if key in listed:
            return True
        if self.should_index_attribute is not None and self.should_index_attribute(key, is_resource):
            return True
        return self.index_all_attributes


def parse_indexed_attributes(values: Optional[Iterable[str]]) -> Tuple[str, ...]:
    """Flatten comma separated attribute lists as given on the command line."""
    keys = []
    for value in values or ():
        keys.extend(part.strip() for part in value.split(",") if part.strip())
    return tuple(keys)
