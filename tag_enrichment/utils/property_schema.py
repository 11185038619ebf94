# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""
Per-kind property schemas for metric enrichment.

Each schema names the metric namespace and dimension that identify a
resource of that kind, the field holding the id in API responses, and the
function that reduces a raw boto3 resource dict to a flat properties map.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..models.enums import ResourceKind


def _instance_type_part(instance_type: Optional[str], index: int) -> Optional[str]:
    if not instance_type:
        return None
    return instance_type.split(".")[index]


def extract_ec2_instance_properties(instance: dict[str, Any]) -> dict[str, Any]:
    """Properties of an EC2 instance from a DescribeInstances item."""
    instance_type = instance.get("InstanceType")
    return {
        "InstanceType": instance_type,
        "InstanceFamily": _instance_type_part(instance_type, 0),
        "InstanceSize": _instance_type_part(instance_type, -1),
        "Architecture": instance.get("Architecture"),
        "AvailabilityZone": (instance.get("Placement") or {}).get("AvailabilityZone"),
        "Platform": instance.get("PlatformDetails"),
        "ImageId": instance.get("ImageId"),
        # Only spot/scheduled instances report a lifecycle
        "InstanceLifecycle": instance.get("InstanceLifecycle") or "on-demand",
    }


def extract_ebs_volume_properties(volume: dict[str, Any]) -> dict[str, Any]:
    """Properties of an EBS volume from a DescribeVolumes item."""
    return {
        "VolumeType": volume.get("VolumeType"),
        "Size": volume.get("Size"),
        "AvailabilityZone": volume.get("AvailabilityZone"),
        "Iops": volume.get("Iops"),
        "Throughput": volume.get("Throughput"),
        "Encrypted": volume.get("Encrypted"),
    }


def extract_rds_instance_properties(db: dict[str, Any]) -> dict[str, Any]:
    """Properties of an RDS instance from a DescribeDBInstances item."""
    return {
        "DBInstanceClass": db.get("DBInstanceClass"),
        "Engine": db.get("Engine"),
        "EngineVersion": db.get("EngineVersion"),
        "AvailabilityZone": db.get("AvailabilityZone"),
        "MultiAZ": db.get("MultiAZ"),
        "StorageType": db.get("StorageType"),
        "AllocatedStorage": db.get("AllocatedStorage"),
    }


def extract_lambda_function_properties(function: dict[str, Any]) -> dict[str, Any]:
    """Properties of a Lambda function from a function configuration."""
    architectures = function.get("Architectures") or []
    return {
        "Runtime": function.get("Runtime"),
        "MemorySize": function.get("MemorySize"),
        "Timeout": function.get("Timeout"),
        "Architecture": architectures[0] if architectures else None,
        "PackageType": function.get("PackageType"),
    }


@dataclass(frozen=True)
class PropertySchema:
    """How to identify and describe one resource kind.

    Attributes:
        kind: Resource kind the schema applies to
        namespace: CloudWatch namespace of the kind's metrics
        dimension: Metric dimension holding the resource id
        id_field: Field holding the resource id in API responses
        extract: Reduces a raw API item to its properties
    """

    kind: ResourceKind
    namespace: str
    dimension: str
    id_field: str
    extract: Callable[[dict[str, Any]], dict[str, Any]]


PROPERTY_SCHEMAS: dict[ResourceKind, PropertySchema] = {
    ResourceKind.EC2_INSTANCE: PropertySchema(
        kind=ResourceKind.EC2_INSTANCE,
        namespace="AWS/EC2",
        dimension="InstanceId",
        id_field="InstanceId",
        extract=extract_ec2_instance_properties,
    ),
    ResourceKind.EBS_VOLUME: PropertySchema(
        kind=ResourceKind.EBS_VOLUME,
        namespace="AWS/EBS",
        dimension="VolumeId",
        id_field="VolumeId",
        extract=extract_ebs_volume_properties,
    ),
    ResourceKind.RDS_INSTANCE: PropertySchema(
        kind=ResourceKind.RDS_INSTANCE,
        namespace="AWS/RDS",
        dimension="DBInstanceIdentifier",
        id_field="DBInstanceIdentifier",
        extract=extract_rds_instance_properties,
    ),
    ResourceKind.LAMBDA_FUNCTION: PropertySchema(
        kind=ResourceKind.LAMBDA_FUNCTION,
        namespace="AWS/Lambda",
        dimension="FunctionName",
        id_field="FunctionName",
        extract=extract_lambda_function_properties,
    ),
}


def get_property_schema(kind: ResourceKind) -> PropertySchema:
    """Return the schema registered for a resource kind."""
    return PROPERTY_SCHEMAS[kind]
