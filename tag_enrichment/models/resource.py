"""Resolved resource and cache entry data models."""

from dataclasses import dataclass, field

from .enums import ResourceKind


@dataclass(frozen=True)
class ResolvedResource:
    """A resource identified from a telemetry record.

    Attributes:
        arn: Canonical resource ARN (opaque cache key)
        resource_id: Identifier taken from the record (dimension value, log group segment, ...)
        property_kind: Kind of property cache holding details, None if the
            resource kind carries no properties
    """

    arn: str
    resource_id: str
    property_kind: ResourceKind | None = None


@dataclass
class TagCacheEntry:
    """Cached tag set for one ARN.

    An empty tag set is a negative entry: looked up and nothing found, or
    the lookup failed.
    """

    tags: dict[str, str]
    expires: float

    def is_fresh(self, now: float) -> bool:
        return self.expires > now


@dataclass
class PropertyCacheState:
    """Contents of one property cache.

    items maps resource id to extracted properties; an empty dict is a
    sentinel for a resource that could not be fetched.
    """

    items: dict[str, dict] = field(default_factory=dict)
    bulk_loaded: bool = False
    bulk_expires: float = 0.0
