"""Enrichment services: resolution, caching, enrichment and batch orchestration."""

from .arn_resolver import ArnResolver
from .batch_processor import BatchProcessor
from .enricher import RecordEnricher
from .property_cache import PropertyCache
from .tag_cache import TagCache

__all__ = [
    "ArnResolver",
    "BatchProcessor",
    "RecordEnricher",
    "PropertyCache",
    "TagCache",
]
