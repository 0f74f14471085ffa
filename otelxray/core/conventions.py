"""
otelxray.core.conventions - Attribute keys and literal values read by the converter.

The converter only understands a fixed set of semantic-convention keys.
Every key it looks up through an AttributeTable must be listed in
WELL_KNOWN_KEYS; the position of a key in that tuple is its bit in the
table's bitmasks.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Tuple

# Span status / user
STATUS_CODE_KEY = "otel.status_code"
END_USER_ID = "enduser.id"

# Network
NET_PEER_IP = "net.peer.ip"
NET_PEER_PORT = "net.peer.port"
NET_PEER_NAME = "net.peer.name"
NET_HOST_PORT = "net.host.port"
NET_HOST_NAME = "net.host.name"
PEER_SERVICE = "peer.service"

# HTTP
HTTP_METHOD = "http.method"
HTTP_URL = "http.url"
HTTP_TARGET = "http.target"
HTTP_HOST = "http.host"
HTTP_SCHEME = "http.scheme"
HTTP_STATUS_CODE = "http.status_code"
HTTP_STATUS_TEXT = "http.status_text"
HTTP_SERVER_NAME = "http.server_name"
HTTP_CLIENT_IP = "http.client_ip"
HTTP_USER_AGENT = "http.user_agent"
HTTP_RESPONSE_CONTENT_LENGTH = "http.response_content_length"

# Database
DB_SYSTEM = "db.system"
DB_CONNECTION_STRING = "db.connection_string"
DB_USER = "db.user"
DB_NAME = "db.name"
DB_STATEMENT = "db.statement"

# RPC / messaging
RPC_SYSTEM = "rpc.system"
RPC_SERVICE = "rpc.service"
RPC_METHOD = "rpc.method"
MESSAGE_TYPE = "message.type"
MESSAGING_PAYLOAD_SIZE = "messaging.message_payload_size_bytes"
MESSAGING_URL = "messaging.url"

# Exceptions
EXCEPTION_EVENT_NAME = "exception"
EXCEPTION_TYPE = "exception.type"
EXCEPTION_MESSAGE = "exception.message"
EXCEPTION_STACKTRACE = "exception.stacktrace"

# Host / telemetry SDK
HOST_ID = "host.id"
HOST_NAME = "host.name"
HOST_TYPE = "host.type"
HOST_IMAGE_ID = "host.image.id"
TELEMETRY_SDK_NAME = "telemetry.sdk.name"
TELEMETRY_SDK_LANGUAGE = "telemetry.sdk.language"
TELEMETRY_SDK_VERSION = "telemetry.sdk.version"
TELEMETRY_AUTO_VERSION = "telemetry.auto.version"

# Cloud / containers
CLOUD_PROVIDER = "cloud.provider"
CLOUD_ACCOUNT_ID = "cloud.account.id"
CLOUD_AVAILABILITY_ZONE = "cloud.availability_zone"
CLOUD_PLATFORM = "cloud.platform"
AWS_ECS_CONTAINER_ARN = "aws.ecs.container.arn"
AWS_ECS_CLUSTER_ARN = "aws.ecs.cluster.arn"
AWS_ECS_LAUNCH_TYPE = "aws.ecs.launchtype"
AWS_ECS_TASK_ARN = "aws.ecs.task.arn"
AWS_ECS_TASK_FAMILY = "aws.ecs.task.family"
K8S_CLUSTER_NAME = "k8s.cluster.name"
K8S_POD_NAME = "k8s.pod.name"
AWS_LOG_GROUP_NAMES = "aws.log.group.names"
AWS_LOG_GROUP_ARNS = "aws.log.group.arns"
CONTAINER_NAME = "container.name"
CONTAINER_ID = "container.id"
CONTAINER_IMAGE_TAG = "container.image.tag"

# Service
SERVICE_NAME = "service.name"
SERVICE_NAMESPACE = "service.namespace"
SERVICE_INSTANCE_ID = "service.instance.id"
SERVICE_VERSION = "service.version"

# AWS SDK spans
AWS_OPERATION = "aws.operation"
AWS_ACCOUNT = "aws.account_id"
AWS_REGION = "aws.region"
AWS_REQUEST_ID = "aws.request_id"
AWS_REQUEST_ID_LEGACY = "aws.requestId"
AWS_QUEUE_URL = "aws.queue_url"
AWS_QUEUE_URL_LEGACY = "aws.queue.url"
AWS_SERVICE = "aws.service"
AWS_TABLE_NAME = "aws.table_name"
AWS_TABLE_NAME_LEGACY = "aws.table.name"
AWS_DYNAMODB_TABLE_NAMES = "aws.dynamodb.table_names"

WELL_KNOWN_KEYS: Tuple[str, ...] = (
    STATUS_CODE_KEY,
    END_USER_ID,
    NET_PEER_IP,
    NET_PEER_PORT,
    NET_PEER_NAME,
    NET_HOST_PORT,
    NET_HOST_NAME,
    PEER_SERVICE,
    HTTP_METHOD,
    HTTP_URL,
    HTTP_TARGET,
    HTTP_HOST,
    HTTP_SCHEME,
    HTTP_STATUS_CODE,
    HTTP_STATUS_TEXT,
    HTTP_SERVER_NAME,
    HTTP_CLIENT_IP,
    HTTP_USER_AGENT,
    HTTP_RESPONSE_CONTENT_LENGTH,
    DB_SYSTEM,
    DB_CONNECTION_STRING,
    DB_USER,
    DB_NAME,
    DB_STATEMENT,
    RPC_SYSTEM,
    RPC_SERVICE,
    RPC_METHOD,
    MESSAGE_TYPE,
    MESSAGING_PAYLOAD_SIZE,
    MESSAGING_URL,
    HOST_ID,
    HOST_NAME,
    HOST_TYPE,
    HOST_IMAGE_ID,
    TELEMETRY_SDK_NAME,
    TELEMETRY_SDK_LANGUAGE,
    TELEMETRY_SDK_VERSION,
    TELEMETRY_AUTO_VERSION,
    CLOUD_PROVIDER,
    CLOUD_ACCOUNT_ID,
    CLOUD_AVAILABILITY_ZONE,
    CLOUD_PLATFORM,
    AWS_ECS_CONTAINER_ARN,
    AWS_ECS_CLUSTER_ARN,
    AWS_ECS_LAUNCH_TYPE,
    AWS_ECS_TASK_ARN,
    AWS_ECS_TASK_FAMILY,
    K8S_CLUSTER_NAME,
    K8S_POD_NAME,
    AWS_LOG_GROUP_NAMES,
    AWS_LOG_GROUP_ARNS,
    CONTAINER_NAME,
    CONTAINER_ID,
    CONTAINER_IMAGE_TAG,
    SERVICE_NAME,
    SERVICE_NAMESPACE,
    SERVICE_INSTANCE_ID,
    SERVICE_VERSION,
    AWS_OPERATION,
    AWS_ACCOUNT,
    AWS_REGION,
    AWS_REQUEST_ID,
    AWS_REQUEST_ID_LEGACY,
    AWS_QUEUE_URL,
    AWS_QUEUE_URL_LEGACY,
    AWS_SERVICE,
    AWS_TABLE_NAME,
    AWS_TABLE_NAME_LEGACY,
    AWS_DYNAMODB_TABLE_NAMES,
)

KEY_INDEX: Dict[str, int] = {key: index for index, key in enumerate(WELL_KNOWN_KEYS)}

# Cloud values
CLOUD_PROVIDER_AWS = "aws"
CLOUD_PLATFORM_AWS_EC2 = "aws_ec2"
CLOUD_PLATFORM_AWS_ECS = "aws_ecs"
CLOUD_PLATFORM_AWS_EKS = "aws_eks"
CLOUD_PLATFORM_AWS_ELASTIC_BEANSTALK = "aws_elastic_beanstalk"
CLOUD_PLATFORM_AWS_APP_RUNNER = "aws_app_runner"
ECS_LAUNCH_TYPE_EC2 = "ec2"
ECS_LAUNCH_TYPE_FARGATE = "fargate"

# Segment origins
ORIGIN_EC2 = "AWS::EC2::Instance"
ORIGIN_ECS = "AWS::ECS::Container"
ORIGIN_ECS_EC2 = "AWS::ECS::EC2"
ORIGIN_ECS_FARGATE = "AWS::ECS::Fargate"
ORIGIN_EKS = "AWS::EKS::Container"
ORIGIN_ELASTIC_BEANSTALK = "AWS::ElasticBeanstalk::Environment"
ORIGIN_APP_RUNNER = "AWS::AppRunner::Service"

RPC_SYSTEM_AWS_API = "aws-api"
MESSAGE_TYPE_RECEIVED = "RECEIVED"

SQL_SYSTEMS: FrozenSet[str] = frozenset({
    "db2",
    "derby",
    "hive",
    "mariadb",
    "mssql",
    "mysql",
    "oracle",
    "postgresql",
    "sqlite",
    "teradata",
    "other_sql",
})
