# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""In-memory resource property caches.

One PropertyCache exists per resource kind (EC2 instance, EBS volume,
RDS instance, Lambda function). Each is populated two ways:

- bulk load: list every resource of the kind and swap the result in
  whole, only after the listing completed;
- backfill: fetch a single resource missing from the cache, e.g. one
  created after the last bulk load.

A backfill that fails stores an empty sentinel that is kept for the rest
of the process lifetime; deleted resources do not come back.
"""

import logging
import time
from typing import Any, Awaitable, Callable, Optional

from ..models.enums import ResourceKind
from ..models.resource import PropertyCacheState
from ..utils.property_schema import PropertySchema
from .tag_cache import FAILURE_TTL_SECONDS

logger = logging.getLogger(__name__)

ResourceLister = Callable[[], Awaitable[list[dict[str, Any]]]]
ResourceFetcher = Callable[[str], Awaitable[Optional[dict[str, Any]]]]


class PropertyCache:
    """
    TTL-bound bulk cache with per-miss backfill for one resource kind.

    Behaviour:
        - load() is a no-op while a previous bulk load is unexpired
        - a failed bulk load keeps existing items and retries after 60s
        - backfill() never retries an id that already has an entry
    """

    def __init__(
        self,
        schema: PropertySchema,
        list_resources: ResourceLister,
        fetch_resource: ResourceFetcher,
        ttl_seconds: int = 600,
        failure_ttl_seconds: int = FAILURE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the property cache.

        Args:
            schema: Property schema for the resource kind
            list_resources: Async callable listing all resources of the kind
            fetch_resource: Async callable fetching one resource by id,
                returning None when it does not exist
            ttl_seconds: Lifetime of a successful bulk load
            failure_ttl_seconds: Delay before retrying a failed bulk load
            clock: Time source returning epoch seconds
        """
        self.schema = schema
        self._list_resources = list_resources
        self._fetch_resource = fetch_resource
        self.ttl_seconds = ttl_seconds
        self.failure_ttl_seconds = failure_ttl_seconds
        self._clock = clock
        self.state = PropertyCacheState()

    @property
    def kind(self) -> ResourceKind:
        return self.schema.kind

    def __len__(self) -> int:
        return len(self.state.items)

    def __contains__(self, resource_id: str) -> bool:
        return resource_id in self.state.items

    async def load(self) -> None:
        """Bulk load every resource of this kind unless a load is still fresh."""
        if self.state.bulk_loaded and self.state.bulk_expires > self._clock():
            return

        logger.info(f"Loading {self.kind.value} properties")

        try:
            resources = await self._list_resources()

            # Build into a new map; the live one is replaced only on success
            new_items = {}
            for resource in resources:
                resource_id = resource.get(self.schema.id_field)
                if resource_id:
                    new_items[resource_id] = self.schema.extract(resource)

        except Exception as e:
            logger.warning(
                f"Error loading {self.kind.value} properties: {type(e).__name__} - {e}"
            )
            self.state.bulk_loaded = True
            self.state.bulk_expires = self._clock() + self.failure_ttl_seconds
            return

        # Not-found sentinels outlive reloads
        for resource_id, properties in self.state.items.items():
            if not properties and resource_id not in new_items:
                new_items[resource_id] = {}

        self.state.items = new_items
        self.state.bulk_loaded = True
        self.state.bulk_expires = self._clock() + self.ttl_seconds
        logger.info(f"Cached {len(new_items)} {self.kind.value} resources")

    async def backfill(self, resource_id: str) -> None:
        """
        Fetch one resource missing from the cache.

        Ids that already have an entry, including the empty sentinel, are
        left alone.

        Args:
            resource_id: Resource id (instance id, volume id, DB identifier, function name)
        """
        if resource_id in self.state.items:
            return

        logger.debug(f"Backfilling {self.kind.value} {resource_id}")

        try:
            resource = await self._fetch_resource(resource_id)
        except Exception as e:
            logger.warning(
                f"Error backfilling {self.kind.value} {resource_id}: {type(e).__name__} - {e}"
            )
            resource = None

        if resource is None:
            logger.debug(f"{self.kind.value} {resource_id} not found, caching sentinel")
            self.state.items[resource_id] = {}
            return

        self.state.items[resource_id] = self.schema.extract(resource)

    async def get(self, resource_id: str) -> dict[str, Any]:
        """
        Get properties for a resource, loading or backfilling as needed.

        Args:
            resource_id: Resource id

        Returns:
            Copy of the cached properties, empty if the resource could not be found
        """
        await self.load()
        if resource_id not in self.state.items:
            await self.backfill(resource_id)
        return dict(self.state.items.get(resource_id, {}))
