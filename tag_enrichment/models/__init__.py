"""Data models for the tag enrichment engine."""

from .enums import RecordResult, ResourceKind, TelemetryKind
from .firehose import (
    FirehoseEvent,
    FirehoseRecord,
    FirehoseResponse,
    FirehoseResponseRecord,
)
from .resource import PropertyCacheState, ResolvedResource, TagCacheEntry

__all__ = [
    "RecordResult",
    "ResourceKind",
    "TelemetryKind",
    "FirehoseEvent",
    "FirehoseRecord",
    "FirehoseResponse",
    "FirehoseResponseRecord",
    "PropertyCacheState",
    "ResolvedResource",
    "TagCacheEntry",
]
