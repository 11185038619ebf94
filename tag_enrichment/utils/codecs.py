# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Firehose record payload codecs.

Metric stream records carry base64 encoded newline-delimited JSON (one
metric per line). Log subscription records carry base64 encoded gzip of a
single JSON document. Both decode to a list of payload dicts and encode
back from one.
"""

import base64
import binascii
import gzip
import json
import zlib
from typing import Any

from ..models.enums import TelemetryKind


CONTROL_MESSAGE_TYPE = "CONTROL_MESSAGE"


class EnvelopeDecodeError(ValueError):
    """Raised when a record payload cannot be decoded."""

    pass


def _b64decode(data: str) -> bytes:
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise EnvelopeDecodeError(f"Invalid base64 payload: {e}") from e


def _dumps(payload: dict[str, Any]) -> str:
    return json.dumps(payload, separators=(",", ":"))


class MetricStreamCodec:
    """Codec for CloudWatch Metric Streams JSON output."""

    kind = TelemetryKind.METRICS

    def decode(self, data: str) -> list[dict[str, Any]]:
        raw = _b64decode(data)
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EnvelopeDecodeError(f"Metric payload is not UTF-8: {e}") from e

        metrics = []
        for line in text.split("\n"):
            if not line.strip():
                continue
            try:
                metric = json.loads(line)
            except json.JSONDecodeError as e:
                raise EnvelopeDecodeError(
                    f"JSON parse error: {e.msg} for line: {line[:100]}"
                ) from e
            if not isinstance(metric, dict):
                raise EnvelopeDecodeError(f"Metric line is not an object: {line[:100]}")
            metrics.append(metric)

        return metrics

    def encode(self, payloads: list[dict[str, Any]]) -> str:
        text = "\n".join(_dumps(payload) for payload in payloads) + "\n"
        return base64.b64encode(text.encode("utf-8")).decode("ascii")

    def is_control(self, payloads: list[dict[str, Any]]) -> bool:
        return False


class LogSubscriptionCodec:
    """Codec for CloudWatch Logs subscription filter deliveries."""

    kind = TelemetryKind.LOGS

    def decode(self, data: str) -> list[dict[str, Any]]:
        compressed = _b64decode(data)
        try:
            text = gzip.decompress(compressed).decode("utf-8")
        except (OSError, EOFError, zlib.error) as e:
            raise EnvelopeDecodeError(f"Not gzip data: {e}") from e
        except UnicodeDecodeError as e:
            raise EnvelopeDecodeError(f"Log payload is not UTF-8: {e}") from e

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise EnvelopeDecodeError(f"JSON parse error: {e.msg}") from e
        if not isinstance(payload, dict):
            raise EnvelopeDecodeError("Log payload is not an object")

        return [payload]

    def encode(self, payloads: list[dict[str, Any]]) -> str:
        (payload,) = payloads
        compressed = gzip.compress(_dumps(payload).encode("utf-8"))
        return base64.b64encode(compressed).decode("ascii")

    def is_control(self, payloads: list[dict[str, Any]]) -> bool:
        return any(p.get("messageType") == CONTROL_MESSAGE_TYPE for p in payloads)


def get_codec(kind: TelemetryKind):
    """Return the codec for a telemetry kind."""
    if kind == TelemetryKind.METRICS:
        return MetricStreamCodec()
    return LogSubscriptionCodec()
