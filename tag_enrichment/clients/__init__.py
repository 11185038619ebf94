"""AWS client wrapper module."""

from .aws_client import AWSClient, AWSAPIError

__all__ = ["AWSClient", "AWSAPIError"]
