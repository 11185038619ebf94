"""Enumerations for telemetry kinds, resource kinds and record results."""

from enum import Enum


class TelemetryKind(str, Enum):
    """Shape of the records carried by a delivery stream."""

    METRICS = "metrics"
    LOGS = "logs"


class ResourceKind(str, Enum):
    """Resource kinds that carry type-specific properties."""

    EC2_INSTANCE = "ec2:instance"
    EBS_VOLUME = "ec2:volume"
    RDS_INSTANCE = "rds:db"
    LAMBDA_FUNCTION = "lambda:function"


class RecordResult(str, Enum):
    """Firehose transformation result for a single record."""

    OK = "Ok"
    DROPPED = "Dropped"
    PROCESSING_FAILED = "ProcessingFailed"
