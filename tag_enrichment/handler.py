# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Lambda entry points for Firehose metric and log enrichment.

Handlers:
    tag_enrichment.handler.metrics_handler  - CloudWatch Metric Streams
    tag_enrichment.handler.logs_handler     - CloudWatch Logs subscriptions

Firehose sends: {"records": [{"recordId": "...", "data": "base64..."}, ...]}
Handlers return: {"records": [{"recordId": "...", "result": "Ok", "data": "base64..."}, ...]}
"""

import asyncio
import logging
from typing import Any, Optional

from .config import settings
from .container import EnrichmentContainer
from .models.enums import TelemetryKind
from .utils.logging_config import configure_logging

logger = logging.getLogger(__name__)

# Shared by every invocation handled by this execution environment
_container: Optional[EnrichmentContainer] = None


def get_container() -> EnrichmentContainer:
    """
    Get the process-wide container, creating it on first use.

    Returns:
        EnrichmentContainer holding the process-wide caches
    """
    global _container
    if _container is None:
        app_settings = settings()
        configure_logging(app_settings)
        _container = EnrichmentContainer(settings=app_settings)
    return _container


def reset_container() -> None:
    """Drop the process-wide container (a cold start on next use)."""
    global _container
    _container = None


def _handle(kind: TelemetryKind, event: dict[str, Any]) -> dict[str, Any]:
    container = get_container()
    logger.debug(
        f"Invoked with {len(event.get('records', []))} records "
        f"(account={container.settings.account_id}, region={container.settings.aws_region})"
    )
    return asyncio.run(container.process(kind, event))


def metrics_handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """Enrich CloudWatch metric stream records with resource tags and properties."""
    return _handle(TelemetryKind.METRICS, event)


def logs_handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """Enrich CloudWatch Logs subscription records with resource tags."""
    return _handle(TelemetryKind.LOGS, event)
