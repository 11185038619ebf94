# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""ARN resolution for metric and log records.

Metric records name their resource in a namespace-specific dimension; log
records name it through log group/stream naming conventions (or, for RDS
Enhanced Monitoring, inside the log message). Both resolution strategies
are table driven: metric rules are keyed by namespace, log rules are tried
in order and the first rule that applies decides the outcome.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..models.enums import ResourceKind, TelemetryKind
from ..models.resource import ResolvedResource
from ..utils.arn_utils import build_arn

logger = logging.getLogger(__name__)

# Log group used by RDS Enhanced Monitoring; the instance is named in the message body
RDS_ENHANCED_MONITORING_LOG_GROUP = "RDSOSMetrics"

# EC2 instance ids: i- followed by 8 (legacy) or 17 hex characters
INSTANCE_ID_PATTERN = re.compile(r"\b(i-(?:[0-9a-f]{17}|[0-9a-f]{8}))\b", re.IGNORECASE)

API_GATEWAY_LOG_GROUP_PATTERN = re.compile(r"^/aws/(api-gateway|http-api)/")

LAMBDA_LOG_GROUP_PREFIX = "/aws/lambda/"
RDS_LOG_GROUP_PREFIX = "/aws/rds/instance/"
ECS_LOG_GROUP_PREFIX = "/ecs/"


@dataclass(frozen=True)
class MetricArnRule:
    """How to resolve the resource behind one metric namespace.

    Attributes:
        dimensions: Dimension names holding the resource id, first present wins
        service: ARN service segment
        resource_template: ARN resource part, with {id} for the dimension value
        regional: False for global resources whose ARN has no region/account
        property_kind: Property cache kind for the resource, if any
    """

    dimensions: tuple[str, ...]
    service: str
    resource_template: str
    regional: bool = True
    property_kind: Optional[ResourceKind] = None


_ELB_RULE = MetricArnRule(
    dimensions=("LoadBalancer", "LoadBalancerName"),
    service="elasticloadbalancing",
    resource_template="loadbalancer/{id}",
)

METRIC_ARN_RULES: dict[str, MetricArnRule] = {
    "AWS/EC2": MetricArnRule(
        ("InstanceId",), "ec2", "instance/{id}",
        property_kind=ResourceKind.EC2_INSTANCE,
    ),
    "AWS/EBS": MetricArnRule(
        ("VolumeId",), "ec2", "volume/{id}",
        property_kind=ResourceKind.EBS_VOLUME,
    ),
    "AWS/RDS": MetricArnRule(
        ("DBInstanceIdentifier",), "rds", "db:{id}",
        property_kind=ResourceKind.RDS_INSTANCE,
    ),
    "AWS/Lambda": MetricArnRule(
        ("FunctionName",), "lambda", "function:{id}",
        property_kind=ResourceKind.LAMBDA_FUNCTION,
    ),
    "AWS/DynamoDB": MetricArnRule(("TableName",), "dynamodb", "table/{id}"),
    "AWS/SQS": MetricArnRule(("QueueName",), "sqs", "{id}"),
    "AWS/SNS": MetricArnRule(("TopicName",), "sns", "{id}"),
    "AWS/S3": MetricArnRule(("BucketName",), "s3", "{id}", regional=False),
    "AWS/ELB": _ELB_RULE,
    "AWS/ApplicationELB": _ELB_RULE,
    "AWS/NetworkELB": _ELB_RULE,
}


@dataclass(frozen=True)
class LogArnRule:
    """One log naming convention.

    Attributes:
        name: Rule name for log messages
        applies: Whether the rule claims a (log group, log stream) pair
        resolve: Builds the resource for a claimed payload; None means the
            record is unresolvable, later rules are not consulted
    """

    name: str
    applies: Callable[[str, str], bool]
    resolve: Callable[["ArnResolver", dict[str, Any], str, str], Optional[ResolvedResource]]


def _first_segment(log_group: str, prefix: str) -> str:
    return log_group[len(prefix):].split("/")[0]


def _resolve_rds_enhanced_monitoring(resolver, payload, log_group, log_stream):
    log_events = payload.get("logEvents") or []
    if not log_events or not isinstance(log_events[0], dict):
        return None

    message = log_events[0].get("message")
    if isinstance(message, str):
        try:
            message = json.loads(message)
        except json.JSONDecodeError as e:
            logger.debug(f"  Failed to parse RDSOSMetrics message: {e}")
            return None

    if not isinstance(message, dict) or not message.get("instanceID"):
        logger.debug("  No instanceID found in RDSOSMetrics message")
        return None

    instance_id = str(message["instanceID"])
    return resolver.resource("rds", f"db:{instance_id}", instance_id, ResourceKind.RDS_INSTANCE)


def _resolve_instance_in_stream(resolver, payload, log_group, log_stream):
    instance_id = INSTANCE_ID_PATTERN.search(log_stream).group(1)
    return resolver.resource(
        "ec2", f"instance/{instance_id}", instance_id, ResourceKind.EC2_INSTANCE
    )


def _resolve_instance_in_group(resolver, payload, log_group, log_stream):
    instance_id = INSTANCE_ID_PATTERN.search(log_group).group(1)
    return resolver.resource(
        "ec2", f"instance/{instance_id}", instance_id, ResourceKind.EC2_INSTANCE
    )


def _resolve_lambda(resolver, payload, log_group, log_stream):
    function_name = log_group[len(LAMBDA_LOG_GROUP_PREFIX):]
    if not function_name:
        return None
    return resolver.resource(
        "lambda", f"function:{function_name}", function_name, ResourceKind.LAMBDA_FUNCTION
    )


def _resolve_rds_instance(resolver, payload, log_group, log_stream):
    db_instance = _first_segment(log_group, RDS_LOG_GROUP_PREFIX)
    if not db_instance:
        return None
    return resolver.resource("rds", f"db:{db_instance}", db_instance, ResourceKind.RDS_INSTANCE)


def _resolve_ecs_cluster(resolver, payload, log_group, log_stream):
    cluster = _first_segment(log_group, ECS_LOG_GROUP_PREFIX)
    if not cluster:
        return None
    return resolver.resource("ecs", f"cluster/{cluster}", cluster)


def _resolve_api_gateway(resolver, payload, log_group, log_stream):
    api_id = log_group.rstrip("/").split("/")[-1]
    # API Gateway ARNs carry no account id
    arn = build_arn("apigateway", resolver.region, "", f"/restapis/{api_id}")
    return ResolvedResource(arn=arn, resource_id=api_id)


LOG_ARN_RULES: tuple[LogArnRule, ...] = (
    LogArnRule(
        "rds-enhanced-monitoring",
        lambda group, stream: group == RDS_ENHANCED_MONITORING_LOG_GROUP,
        _resolve_rds_enhanced_monitoring,
    ),
    LogArnRule(
        "ec2-instance-in-stream",
        lambda group, stream: INSTANCE_ID_PATTERN.search(stream) is not None,
        _resolve_instance_in_stream,
    ),
    LogArnRule(
        "ec2-instance-in-group",
        lambda group, stream: INSTANCE_ID_PATTERN.search(group) is not None,
        _resolve_instance_in_group,
    ),
    LogArnRule(
        "lambda-function",
        lambda group, stream: group.startswith(LAMBDA_LOG_GROUP_PREFIX),
        _resolve_lambda,
    ),
    LogArnRule(
        "rds-instance",
        lambda group, stream: group.startswith(RDS_LOG_GROUP_PREFIX),
        _resolve_rds_instance,
    ),
    LogArnRule(
        "ecs-cluster",
        lambda group, stream: group.startswith(ECS_LOG_GROUP_PREFIX),
        _resolve_ecs_cluster,
    ),
    LogArnRule(
        "api-gateway",
        lambda group, stream: API_GATEWAY_LOG_GROUP_PATTERN.match(group) is not None,
        _resolve_api_gateway,
    ),
)


class ArnResolver:
    """
    Maps telemetry records to the ARN of the resource they describe.

    Resolution never raises for unrecognized input: an unknown namespace,
    a missing dimension or an unmatched log group all resolve to None.
    """

    def __init__(
        self,
        account_id: str,
        region: str,
        metric_rules: Optional[dict[str, MetricArnRule]] = None,
        log_rules: Optional[tuple[LogArnRule, ...]] = None,
    ):
        """
        Initialize the resolver.

        Args:
            account_id: AWS account id used in ARNs
            region: AWS region used in ARNs
            metric_rules: Namespace rule table (defaults to METRIC_ARN_RULES)
            log_rules: Ordered log rules (defaults to LOG_ARN_RULES)
        """
        self.account_id = account_id
        self.region = region
        self.metric_rules = metric_rules if metric_rules is not None else METRIC_ARN_RULES
        self.log_rules = log_rules if log_rules is not None else LOG_ARN_RULES

    def resource(
        self,
        service: str,
        resource_part: str,
        resource_id: str,
        property_kind: Optional[ResourceKind] = None,
    ) -> ResolvedResource:
        """Build a regional resource in this resolver's account and region."""
        arn = build_arn(service, self.region, self.account_id, resource_part)
        return ResolvedResource(arn=arn, resource_id=resource_id, property_kind=property_kind)

    def resolve(self, payload: dict[str, Any], kind: TelemetryKind) -> Optional[str]:
        """
        Resolve a record to its resource ARN.

        Args:
            payload: Decoded metric or log record
            kind: Which kind of record the payload is

        Returns:
            Resource ARN, or None if the record cannot be resolved
        """
        resolved = self.resolve_resource(payload, kind)
        return resolved.arn if resolved else None

    def resolve_resource(
        self, payload: dict[str, Any], kind: TelemetryKind
    ) -> Optional[ResolvedResource]:
        """Resolve a record to its resource, dispatching on record kind."""
        if kind == TelemetryKind.METRICS:
            return self.resolve_metric(payload)
        return self.resolve_log(payload)

    def resolve_metric(self, payload: dict[str, Any]) -> Optional[ResolvedResource]:
        """
        Resolve a metric stream record from its namespace and dimensions.

        Args:
            payload: Metric record with "namespace" and "dimensions"

        Returns:
            Resolved resource, or None for unknown namespaces or missing dimensions
        """
        namespace = payload.get("namespace") or ""
        dimensions = payload.get("dimensions")
        if not isinstance(dimensions, dict):
            dimensions = {}

        rule = self.metric_rules.get(namespace)
        if rule is None:
            logger.debug(f"  -> No ARN rule for namespace {namespace!r}")
            return None

        resource_id = next(
            (str(dimensions[name]) for name in rule.dimensions if dimensions.get(name)),
            None,
        )
        if resource_id is None:
            logger.debug(f"  -> No {'/'.join(rule.dimensions)} dimension for {namespace}")
            return None

        resource_part = rule.resource_template.format(id=resource_id)
        if rule.regional:
            return self.resource(rule.service, resource_part, resource_id, rule.property_kind)

        arn = build_arn(rule.service, "", "", resource_part)
        return ResolvedResource(arn=arn, resource_id=resource_id, property_kind=rule.property_kind)

    def resolve_log(self, payload: dict[str, Any]) -> Optional[ResolvedResource]:
        """
        Resolve a log subscription record from its log group and stream.

        Rules are tried in order; the first rule that applies decides the
        result, even when it cannot produce a resource.

        Args:
            payload: Log record with "logGroup", "logStream" and "logEvents"

        Returns:
            Resolved resource, or None if no rule resolves the record
        """
        log_group = payload.get("logGroup") or ""
        log_stream = payload.get("logStream") or ""

        for rule in self.log_rules:
            if not rule.applies(log_group, log_stream):
                continue
            resolved = rule.resolve(self, payload, log_group, log_stream)
            if resolved:
                logger.debug(f"  {rule.name}: {resolved.resource_id} -> {resolved.arn}")
            else:
                logger.debug(f"  {rule.name}: no resource in logGroup={log_group}")
            return resolved

        logger.debug(
            f"  No resource ARN extracted from logGroup={log_group}, logStream={log_stream}"
        )
        return None
