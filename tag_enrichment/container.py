# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Process-wide wiring of the enrichment engine.

The EnrichmentContainer owns every cache. It is created once per Lambda
execution environment and reused by every invocation that environment
handles; it is never torn down. Lambda runs at most one invocation at a
time per environment, so the caches are not locked.
"""

import logging
import time
from typing import Any, Callable, Optional

from .clients.aws_client import AWSClient
from .config import Settings, settings as get_default_settings
from .models.enums import ResourceKind, TelemetryKind
from .services.arn_resolver import ArnResolver
from .services.batch_processor import BatchProcessor
from .services.enricher import RecordEnricher
from .services.property_cache import PropertyCache
from .services.tag_cache import TagCache
from .utils.property_schema import get_property_schema

logger = logging.getLogger(__name__)


class EnrichmentContainer:
    """
    Wires the resolver, caches, enricher and batch processors together.

    Usage::

        container = EnrichmentContainer()       # uses default settings
        response = await container.process(TelemetryKind.METRICS, event)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        aws_client: Optional[AWSClient] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Create an EnrichmentContainer.

        Args:
            settings: Application settings. If None, loads from environment
                      variables / .env file via the default ``settings()`` helper.
            aws_client: AWS client to use (created from settings if None)
            clock: Time source shared by all caches
        """
        s = settings or get_default_settings()
        self._settings = s

        self._aws_client = aws_client or AWSClient(
            region=s.aws_region,
            connect_timeout=s.aws_connect_timeout,
            read_timeout=s.aws_read_timeout,
        )
        self._resolver = ArnResolver(account_id=s.account_id, region=s.aws_region)
        self._tag_cache = TagCache(
            fetch_tags=self._aws_client.get_resource_tags,
            ttl_seconds=s.cache_ttl_seconds,
            clock=clock,
        )

        aws = self._aws_client
        sources = {
            ResourceKind.EC2_INSTANCE: (aws.list_running_instances, aws.describe_instance),
            ResourceKind.EBS_VOLUME: (aws.list_in_use_volumes, aws.describe_volume),
            ResourceKind.RDS_INSTANCE: (aws.list_db_instances, aws.describe_db_instance),
            ResourceKind.LAMBDA_FUNCTION: (aws.list_functions, aws.get_function_configuration),
        }
        self._property_caches = {
            kind: PropertyCache(
                schema=get_property_schema(kind),
                list_resources=list_resources,
                fetch_resource=fetch_resource,
                ttl_seconds=s.cache_ttl_seconds,
                clock=clock,
            )
            for kind, (list_resources, fetch_resource) in sources.items()
        }

        self._enricher = RecordEnricher(
            tag_cache=self._tag_cache,
            resolver=self._resolver,
            property_caches=self._property_caches,
        )
        self._processors = {
            kind: BatchProcessor(
                kind=kind,
                resolver=self._resolver,
                tag_cache=self._tag_cache,
                enricher=self._enricher,
            )
            for kind in TelemetryKind
        }

        logger.info(
            f"EnrichmentContainer: initialized (region={s.aws_region}, "
            f"ttl={s.cache_ttl_minutes}m)"
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def aws_client(self) -> AWSClient:
        return self._aws_client

    @property
    def resolver(self) -> ArnResolver:
        return self._resolver

    @property
    def tag_cache(self) -> TagCache:
        return self._tag_cache

    @property
    def property_caches(self) -> dict[ResourceKind, PropertyCache]:
        return self._property_caches

    @property
    def enricher(self) -> RecordEnricher:
        return self._enricher

    def get_processor(self, kind: TelemetryKind) -> BatchProcessor:
        return self._processors[kind]

    async def process(self, kind: TelemetryKind, event: dict[str, Any]) -> dict[str, Any]:
        """Process one Firehose transformation event of the given kind."""
        return await self.get_processor(kind).process(event)
