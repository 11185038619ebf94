"""Utility modules for the tag enrichment engine."""

from .arn_utils import build_arn, describe_arn, parse_arn
from .codecs import EnvelopeDecodeError, LogSubscriptionCodec, MetricStreamCodec, get_codec
from .logging_config import configure_logging
from .property_schema import PROPERTY_SCHEMAS, PropertySchema, get_property_schema

__all__ = [
    "build_arn",
    "describe_arn",
    "parse_arn",
    "EnvelopeDecodeError",
    "LogSubscriptionCodec",
    "MetricStreamCodec",
    "get_codec",
    "configure_logging",
    "PROPERTY_SCHEMAS",
    "PropertySchema",
    "get_property_schema",
]
