"""
otelxray.writers.aws - The ``aws`` block of a segment.

The block combines where the code ran (EC2, ECS, Beanstalk, EKS and
CloudWatch log groups, all taken from the resource) with what an AWS SDK
span called (operation, region, request id, queue and table).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from otelxray.core import conventions as conv
from otelxray.core.attributes import AttributeTable
from otelxray.utils.values import as_int, as_str
from otelxray.writers.context import SegmentContext

_ARN_LOG_GROUP_FIELD = 6


@dataclass
class ResourceInfo:
    """Resource attributes relevant to the aws block."""

    provider: Optional[str] = None
    platform: Optional[str] = None
    account: Optional[str] = None
    zone: Optional[str] = None
    host_id: Optional[str] = None
    host_type: Optional[str] = None
    ami_id: Optional[str] = None
    container: Optional[str] = None
    pod: Optional[str] = None
    namespace: Optional[str] = None
    deployment_id: Optional[str] = None
    version_label: Optional[str] = None
    sdk_name: Optional[str] = None
    sdk_language: Optional[str] = None
    sdk_version: Optional[str] = None
    auto_version: Optional[str] = None
    container_id: Optional[str] = None
    cluster_name: Optional[str] = None
    cluster_arn: Optional[str] = None
    container_arn: Optional[str] = None
    task_arn: Optional[str] = None
    task_family: Optional[str] = None
    launch_type: Optional[str] = None
    log_groups: Optional[Any] = None
    log_group_arns: Optional[Any] = None

    @classmethod
    def read(cls, table: AttributeTable) -> ResourceInfo:
        def text(key: str) -> Optional[str]:
            return as_str(table.get(key))

        info = cls(
            provider=text(conv.CLOUD_PROVIDER),
            platform=text(conv.CLOUD_PLATFORM),
            account=text(conv.CLOUD_ACCOUNT_ID),
            zone=text(conv.CLOUD_AVAILABILITY_ZONE),
            host_id=text(conv.HOST_ID),
            host_type=text(conv.HOST_TYPE),
            ami_id=text(conv.HOST_IMAGE_ID),
            container=text(conv.CONTAINER_NAME),
            pod=text(conv.K8S_POD_NAME),
            namespace=text(conv.SERVICE_NAMESPACE),
            deployment_id=text(conv.SERVICE_INSTANCE_ID),
            version_label=text(conv.SERVICE_VERSION),
            sdk_name=text(conv.TELEMETRY_SDK_NAME),
            sdk_language=text(conv.TELEMETRY_SDK_LANGUAGE),
            sdk_version=text(conv.TELEMETRY_SDK_VERSION),
            auto_version=text(conv.TELEMETRY_AUTO_VERSION),
            container_id=text(conv.CONTAINER_ID),
            cluster_name=text(conv.K8S_CLUSTER_NAME),
            cluster_arn=text(conv.AWS_ECS_CLUSTER_ARN),
            container_arn=text(conv.AWS_ECS_CONTAINER_ARN),
            task_arn=text(conv.AWS_ECS_TASK_ARN),
            task_family=text(conv.AWS_ECS_TASK_FAMILY),
            launch_type=text(conv.AWS_ECS_LAUNCH_TYPE),
            log_groups=table.get(conv.AWS_LOG_GROUP_NAMES),
            log_group_arns=table.get(conv.AWS_LOG_GROUP_ARNS),
        )
        # resource attributes are shared by every span, never consume them
        table.rollback()
        return info

    @property
    def sdk(self) -> Optional[str]:
        if self.sdk_name and self.sdk_language:
            return f"{self.sdk_name} for {self.sdk_language}"
        return self.sdk_name


def _first(table: AttributeTable, *keys: str) -> Optional[str]:
    """Value of the first present key; every key is marked either way."""
    result = None
    for key in keys:
        value = table.get(key)
        if result is None and value is not None:
            result = as_str(value)
    return result


def log_group_from_arn(arn: str) -> str:
    """Extract the log group name from a CloudWatch log group ARN.

    Example:
        >>> log_group_from_arn("arn:aws:logs:us-east-1:123456789123:log-group:group1:*")
        'group1'
    """
    parts = arn.split(":")
    if len(parts) <= _ARN_LOG_GROUP_FIELD:
        return arn
    return parts[_ARN_LOG_GROUP_FIELD]


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Iterable):
        return [as_str(item) for item in value if item is not None]
    return [as_str(value)]


def _log_groups(info: ResourceInfo, fallback: Optional[Iterable[str]]) -> List[Dict[str, str]]:
    arns = _as_list(info.log_group_arns)
    if arns:
        return [{"arn": arn, "log_group": log_group_from_arn(arn)} for arn in arns]
    names = _as_list(info.log_groups) or list(fallback or ())
    return [{"log_group": name} for name in names]


def _compact(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def write_aws(context: SegmentContext) -> None:
    """Write the ``aws`` block.

    Nothing is written when the resource names a cloud provider other
    than aws; the span attributes read here stay available as
    annotations in that case.

    Args:
        context: Conversion context
    """
    info = ResourceInfo.read(context.resource_attributes)
    spans = context.span_attributes

    operation = as_str(spans.get(conv.AWS_OPERATION))
    rpc_method = spans.get(conv.RPC_METHOD)
    if operation is None:
        operation = as_str(rpc_method)

    account = info.account
    value = spans.get(conv.AWS_ACCOUNT)
    if value is not None:
        account = as_str(value)

    region = as_str(spans.get(conv.AWS_REGION))
    request_id = _first(spans, conv.AWS_REQUEST_ID, conv.AWS_REQUEST_ID_LEGACY)
    queue_url = _first(spans, conv.AWS_QUEUE_URL, conv.AWS_QUEUE_URL_LEGACY)
    table_name = _first(spans, conv.AWS_TABLE_NAME, conv.AWS_TABLE_NAME_LEGACY)
    table_names: Optional[List[str]] = None

    if info.provider and info.provider != conv.CLOUD_PROVIDER_AWS:
        spans.rollback()
        return

    # semantic-convention attributes win over the SDK specific ones
    value = spans.get(conv.MESSAGING_URL)
    if value is not None:
        queue_url = as_str(value)
    value = spans.get(conv.AWS_DYNAMODB_TABLE_NAMES)
    if value is not None:
        names = _as_list(value)
        if len(names) == 1:
            table_name = names[0]
        elif names:
            table_names = names
    spans.commit()

    aws: Dict[str, Any] = {}
    if account is not None:
        aws["account_id"] = account

    if info.platform == conv.CLOUD_PLATFORM_AWS_EC2 or info.host_id:
        aws["ec2"] = _compact({
            "instance_id": info.host_id,
            "availability_zone": info.zone,
            "instance_size": info.host_type,
            "ami_id": info.ami_id,
        })

    if info.platform == conv.CLOUD_PLATFORM_AWS_ECS:
        aws["ecs"] = _compact({
            "container": info.container,
            "container_id": info.container_id,
            "availability_zone": info.zone,
            "container_arn": info.container_arn,
            "cluster_arn": info.cluster_arn,
            "task_arn": info.task_arn,
            "task_family": info.task_family,
            "launch_type": info.launch_type,
        })

    if info.platform == conv.CLOUD_PLATFORM_AWS_ELASTIC_BEANSTALK and info.deployment_id:
        aws["elastic_beanstalk"] = _compact({
            "environment_name": info.namespace,
            "deployment_id": as_int(info.deployment_id),
            "version_label": info.version_label,
        })

    if info.platform == conv.CLOUD_PLATFORM_AWS_EKS or info.cluster_name:
        aws["eks"] = _compact({
            "cluster_name": info.cluster_name,
            "pod": info.pod,
            "container_id": info.container_id,
        })

    log_groups = _log_groups(info, context.options.log_group_names)
    if log_groups:
        aws["cloudwatch_logs"] = log_groups

    xray: Dict[str, Any] = _compact({"sdk": info.sdk, "sdk_version": info.sdk_version})
    xray["auto_instrumentation"] = bool(info.auto_version)
    aws["xray"] = xray

    optional = _compact({
        "operation": operation,
        "region": region,
        "request_id": request_id,
        "queue_url": queue_url,
        "table_name": table_name,
        "table_names": table_names,
    })
    aws.update(optional)
    context.document["aws"] = aws
