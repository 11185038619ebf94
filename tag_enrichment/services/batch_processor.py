# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Batch orchestration for one Firehose transformation invocation.

Each invocation runs Decode -> Resolve -> Prefetch -> Enrich -> Reassemble:

1. every record is decoded and each decoded payload resolved to an ARN;
2. the unique ARNs of the whole batch are prefetched into the tag cache;
3. every record is enriched and re-encoded.

Enrichment is best effort. A record that cannot be decoded or enriched is
returned with its original data and an Ok result, and the response always
has one record per input record, in input order.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..models.enums import RecordResult, TelemetryKind
from ..models.firehose import (
    FirehoseEvent,
    FirehoseRecord,
    FirehoseResponse,
    FirehoseResponseRecord,
)
from ..utils.codecs import EnvelopeDecodeError, get_codec
from .arn_resolver import ArnResolver
from .enricher import RecordEnricher
from .tag_cache import TagCache

logger = logging.getLogger(__name__)


@dataclass
class DecodedRecord:
    """A decoded input record awaiting enrichment."""

    record: FirehoseRecord
    payloads: list[dict[str, Any]]
    arns: list[Optional[str]]


class BatchProcessor:
    """
    Drives enrichment of one batch of Firehose records of a single kind.

    Holds references to the process-wide caches; it keeps no per-batch
    state between calls to process().
    """

    def __init__(
        self,
        kind: TelemetryKind,
        resolver: ArnResolver,
        tag_cache: TagCache,
        enricher: RecordEnricher,
        codec=None,
    ):
        """
        Initialize the processor.

        Args:
            kind: Kind of records carried by the delivery stream
            resolver: ARN resolver
            tag_cache: Process-wide tag cache
            enricher: Record enricher sharing the same caches
            codec: Payload codec (defaults to the codec for kind)
        """
        self.kind = kind
        self.resolver = resolver
        self.tag_cache = tag_cache
        self.enricher = enricher
        self.codec = codec or get_codec(kind)

    async def process(self, event: dict[str, Any]) -> dict[str, Any]:
        """
        Enrich a Firehose transformation event.

        Args:
            event: Firehose data transformation event

        Returns:
            Firehose transformation response dict
        """
        batch = FirehoseEvent.model_validate(event)
        logger.info(f"Processing {len(batch.records)} {self.kind.value} records")

        slots = [self._decode(record) for record in batch.records]

        arns = [
            arn
            for slot in slots
            if isinstance(slot, DecodedRecord)
            for arn in slot.arns
        ]
        try:
            await self.tag_cache.prefetch(arns)
        except Exception as e:
            logger.warning(f"Tag prefetch failed: {type(e).__name__} - {e}")

        output = []
        for slot in slots:
            if isinstance(slot, DecodedRecord):
                slot = await self._enrich(slot)
            output.append(slot)

        logger.info(f"Returning {len(output)} records")
        return FirehoseResponse(records=output).to_lambda_response()

    def _decode(self, record: FirehoseRecord) -> DecodedRecord | FirehoseResponseRecord:
        """Decode and resolve one record, or build its pass-through response."""
        try:
            payloads = self.codec.decode(record.data)

            if self.codec.is_control(payloads):
                logger.debug(f"Record {record.record_id}: dropping control message")
                return self._passthrough(record, RecordResult.DROPPED)

            if not payloads:
                logger.debug(f"Record {record.record_id}: no payloads, passing through")
                return self._passthrough(record)

            arns = [self.resolver.resolve(payload, self.kind) for payload in payloads]
            logger.debug(f"Record {record.record_id}: {len(payloads)} payloads, ARNs={arns}")
            return DecodedRecord(record=record, payloads=payloads, arns=arns)

        except EnvelopeDecodeError as e:
            logger.debug(f"Record {record.record_id}: {e}, passing through")
        except Exception as e:
            logger.warning(
                f"Error processing record {record.record_id}: {type(e).__name__} - {e}"
            )

        return self._passthrough(record)

    async def _enrich(self, decoded: DecodedRecord) -> FirehoseResponseRecord:
        """Enrich and re-encode one record; fall back to its original data."""
        record = decoded.record
        try:
            enriched = [
                await self.enricher.enrich(payload, arn, self.kind)
                for payload, arn in zip(decoded.payloads, decoded.arns)
            ]
            data = self.codec.encode(enriched)
        except Exception as e:
            logger.warning(
                f"Error enriching record {record.record_id}: {type(e).__name__} - {e}"
            )
            return self._passthrough(record)

        return FirehoseResponseRecord(record_id=record.record_id, result=RecordResult.OK, data=data)

    @staticmethod
    def _passthrough(
        record: FirehoseRecord, result: RecordResult = RecordResult.OK
    ) -> FirehoseResponseRecord:
        return FirehoseResponseRecord(record_id=record.record_id, result=result, data=record.data)
