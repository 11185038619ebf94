# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""In-memory resource tag cache with batched prefetch.

Tags are fetched in bulk once per invocation (prefetch) and then read
per record (get). Reads never call AWS.
"""

import logging
import time
from typing import Awaitable, Callable, Iterable, Optional

from ..models.resource import TagCacheEntry
from ..utils.arn_utils import describe_arn

logger = logging.getLogger(__name__)

# Resource Groups Tagging API limit on ARNs per GetResources request
TAG_BATCH_SIZE = 100

# TTL for negative entries written after a failed lookup
FAILURE_TTL_SECONDS = 60

TagFetcher = Callable[[list[str]], Awaitable[dict[str, dict[str, str]]]]


class TagCache:
    """
    TTL-bound mapping of ARN to tag set.

    Empty tag sets are stored as negative entries so that resources without
    tags are not looked up again until their entry expires. A failed lookup
    is cached the same way, but only for FAILURE_TTL_SECONDS, so the next
    batch after that retries.
    """

    def __init__(
        self,
        fetch_tags: TagFetcher,
        ttl_seconds: int = 600,
        failure_ttl_seconds: int = FAILURE_TTL_SECONDS,
        batch_size: int = TAG_BATCH_SIZE,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the tag cache.

        Args:
            fetch_tags: Async callable returning ARN -> tags for up to batch_size ARNs
            ttl_seconds: Lifetime of entries from a successful lookup
            failure_ttl_seconds: Lifetime of entries from a failed lookup
            batch_size: Maximum ARNs per fetch_tags call
            clock: Time source returning epoch seconds
        """
        self._fetch_tags = fetch_tags
        self.ttl_seconds = ttl_seconds
        self.failure_ttl_seconds = failure_ttl_seconds
        self.batch_size = batch_size
        self._clock = clock
        self._entries: dict[str, TagCacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, arn: str) -> bool:
        entry = self._entries.get(arn)
        return entry is not None and entry.is_fresh(self._clock())

    def get(self, arn: Optional[str]) -> dict[str, str]:
        """
        Get cached tags for a resource.

        Args:
            arn: Resource ARN, or None for an unresolved record

        Returns:
            Copy of the cached tags; empty if the ARN is unknown, has no
            tags, or its entry has expired
        """
        if not arn:
            return {}

        entry = self._entries.get(arn)
        if entry is None or not entry.is_fresh(self._clock()):
            return {}

        return dict(entry.tags)

    def put(self, arn: str, tags: dict[str, str], ttl_seconds: Optional[int] = None) -> None:
        """Store tags for an ARN with the given (or default) TTL."""
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        self._entries[arn] = TagCacheEntry(tags=dict(tags), expires=self._clock() + ttl)

    async def prefetch(self, arns: Iterable[Optional[str]]) -> None:
        """
        Fetch tags for every ARN that has no fresh cache entry.

        Issues one lookup per slice of at most batch_size ARNs. Never raises:
        a failed slice is cached as empty with the short failure TTL.

        Args:
            arns: ARNs referenced by the current batch (duplicates and None allowed)
        """
        unique_arns = [arn for arn in dict.fromkeys(arns) if arn]
        now = self._clock()
        to_fetch = [
            arn for arn in unique_arns
            if arn not in self._entries or not self._entries[arn].is_fresh(now)
        ]

        logger.debug(f"Cache status: {len(unique_arns)} ARNs, {len(to_fetch)} need fetching")

        for start in range(0, len(to_fetch), self.batch_size):
            await self._fetch_slice(to_fetch[start:start + self.batch_size])

    async def _fetch_slice(self, batch: list[str]) -> None:
        try:
            logger.debug(f"Calling GetResources for {len(batch)} ARNs")
            found = await self._fetch_tags(batch)
        except Exception as e:
            logger.warning(
                f"GetResources failed for {len(batch)} ARNs: {type(e).__name__} - {e}"
            )
            for arn in batch:
                self.put(arn, {}, ttl_seconds=self.failure_ttl_seconds)
            return

        logger.debug(f"GetResources returned {len(found)} resources")

        for arn, tags in found.items():
            self.put(arn, tags)

        # Missing ARNs have no tags (or no longer exist)
        for arn in batch:
            if arn not in found:
                logger.debug(f"  {describe_arn(arn)}: not found in response")
                self.put(arn, {})
