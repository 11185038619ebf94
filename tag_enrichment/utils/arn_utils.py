# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Shared ARN construction and inspection utilities.

ARNs are opaque cache keys inside the enrichment engine. They are built
here from their parts and only taken apart again for log messages.
"""

from typing import Optional


def build_arn(service: str, region: str, account: str, resource: str) -> str:
    """
    Build an ARN in the standard aws partition.

    Args:
        service: AWS service name (ec2, rds, lambda, ...)
        region: AWS region, empty for global resources such as S3 buckets
        account: AWS account id, empty where the service omits it
        resource: Resource part, e.g. "instance/i-abc123" or "db:mydb"

    Returns:
        ARN string

    Example:
        >>> build_arn("ec2", "us-east-1", "123456789012", "instance/i-abc123")
        'arn:aws:ec2:us-east-1:123456789012:instance/i-abc123'
    """
    return f"arn:aws:{service}:{region}:{account}:{resource}"


def parse_arn(arn: str) -> dict[str, str]:
    """
    Parse an AWS ARN into its components.

    ARN format: arn:partition:service:region:account:resource

    Args:
        arn: AWS ARN string

    Returns:
        Dictionary with partition, service, region, account, resource,
        resource_type and resource_id

    Raises:
        ValueError: If ARN format is invalid
    """
    parts = arn.split(":")

    if len(parts) < 6:
        raise ValueError(f"Invalid ARN format: {arn}")

    service = parts[2]
    resource = ":".join(parts[5:])  # Resource may contain colons

    return {
        "partition": parts[1],
        "service": service,
        "region": parts[3] or "global",
        "account": parts[4],
        "resource": resource,
        "resource_type": service_to_resource_type(service, resource),
        "resource_id": extract_resource_id(resource),
    }


RESOURCE_TYPES_BY_SERVICE = {
    "rds": "rds:db",
    "lambda": "lambda:function",
    "ecs": "ecs:cluster",
    "dynamodb": "dynamodb:table",
    "s3": "s3:bucket",
    "sqs": "sqs:queue",
    "sns": "sns:topic",
    "apigateway": "apigateway:restapi",
    "elasticloadbalancing": "elasticloadbalancing:loadbalancer",
}


def service_to_resource_type(service: str, resource: str) -> str:
    """Resource type label ("ec2:volume", "rds:db", ...) for an ARN's service and resource part."""
    if service == "ec2":
        return "ec2:volume" if resource.startswith("volume/") else "ec2:instance"
    return RESOURCE_TYPES_BY_SERVICE.get(service, f"{service}:unknown")


def extract_resource_id(resource: str) -> str:
    """
    Extract the resource ID from the resource part of an ARN.

    Example:
        >>> extract_resource_id("instance/i-1234567890abcdef0")
        'i-1234567890abcdef0'
        >>> extract_resource_id("function:my-function")
        'my-function'
        >>> extract_resource_id("bucket-name")
        'bucket-name'
    """
    if "/" in resource:
        return resource.split("/")[-1]

    elif ":" in resource:
        return resource.split(":")[-1]

    return resource


def describe_arn(arn: Optional[str]) -> str:
    """Short "type id" label for log messages; never raises."""
    if not arn:
        return "<unresolved>"
    try:
        parsed = parse_arn(arn)
    except ValueError:
        return arn
    return f"{parsed['resource_type']} {parsed['resource_id']}"
