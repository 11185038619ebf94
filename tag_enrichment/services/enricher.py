# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Per-record enrichment with cached tags and resource properties."""

import logging
from typing import Any, Optional

from ..models.enums import ResourceKind, TelemetryKind
from .arn_resolver import ArnResolver
from .property_cache import PropertyCache
from .tag_cache import TagCache

logger = logging.getLogger(__name__)

# Tags copied to top-level fields for easier querying downstream
PROJECTED_TAGS: tuple[tuple[str, str], ...] = (
    ("Name", "resource_name"),
    ("Environment", "environment"),
    ("Team", "team"),
)


class RecordEnricher:
    """
    Adds tags and properties to decoded telemetry records.

    Fields are only ever added when there is something to add, so a record
    without a "tags" field means the resource's tags are unknown.
    """

    def __init__(
        self,
        tag_cache: TagCache,
        resolver: ArnResolver,
        property_caches: Optional[dict[ResourceKind, PropertyCache]] = None,
    ):
        self.tag_cache = tag_cache
        self.resolver = resolver
        self.property_caches = property_caches or {}

    async def enrich(
        self, payload: dict[str, Any], arn: Optional[str], kind: TelemetryKind
    ) -> dict[str, Any]:
        """
        Return an enriched copy of a record.

        Args:
            payload: Decoded metric or log record (left unmodified)
            arn: Resource ARN resolved for the record, or None
            kind: Record kind; only metrics carry properties

        Returns:
            New record dict with tags, projected tag fields and properties added
        """
        enriched = dict(payload)

        tags = self.tag_cache.get(arn)
        if tags:
            logger.debug(f"Enriching {kind.value} record with {len(tags)} tags")
            enriched["tags"] = tags
            for tag_key, field_name in PROJECTED_TAGS:
                if tag_key in tags:
                    enriched[field_name] = tags[tag_key]
        else:
            logger.debug(f"No tags to add for {arn}")

        if kind == TelemetryKind.METRICS:
            properties = await self.get_metric_properties(payload)
            if properties:
                enriched["properties"] = properties

        return enriched

    async def get_metric_properties(self, payload: dict[str, Any]) -> dict[str, Any]:
        """
        Look up type-specific properties for the resource a metric describes.

        Uses the same namespace dimension as ARN resolution to key the
        property cache of the matching kind.

        Returns:
            Properties, or an empty dict for kinds without a property cache
        """
        resolved = self.resolver.resolve_metric(payload)
        if resolved is None or resolved.property_kind is None:
            return {}

        cache = self.property_caches.get(resolved.property_kind)
        if cache is None:
            return {}

        return await cache.get(resolved.resource_id)
