# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Configuration management for the Firehose tag enrichment Lambdas.

This module handles loading and validating configuration from environment
variables with sensible defaults.
"""

import logging
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The same settings drive both the metrics and the logs enrichment
    functions. In Lambda these are set on the function's environment;
    locally they may come from a .env file.
    """

    # Cache Configuration
    cache_ttl_minutes: int = Field(
        default=10,
        ge=1,
        description="TTL in minutes for tag and property cache entries",
        validation_alias="CACHE_TTL_MINUTES",
    )

    # ARN Construction
    account_id: str = Field(
        default="",
        description="AWS account id used when building resource ARNs",
        validation_alias="ACCOUNT_ID",
    )
    aws_region: str = Field(
        default="us-east-1",
        description="AWS region used for ARNs and API clients",
        validation_alias=AliasChoices("AWS_REGION", "AWS_DEFAULT_REGION"),
    )

    # Logging Configuration
    debug: bool = Field(
        default=False,
        description="Enable verbose per-record logging",
        validation_alias="DEBUG",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level when debug is off (DEBUG, INFO, WARNING, ERROR)",
        validation_alias="LOG_LEVEL",
    )

    # AWS API Configuration
    aws_connect_timeout: int = Field(
        default=5,
        ge=1,
        description="Connect timeout in seconds for AWS API calls",
        validation_alias="AWS_CONNECT_TIMEOUT",
    )
    aws_read_timeout: int = Field(
        default=10,
        ge=1,
        description="Read timeout in seconds for AWS API calls",
        validation_alias="AWS_READ_TIMEOUT",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cache_ttl_seconds(self) -> int:
        """Cache TTL converted to seconds."""
        return self.cache_ttl_minutes * 60

    @property
    def effective_log_level(self) -> int:
        """Logging level to apply, with DEBUG forcing verbose output."""
        if self.debug:
            return logging.DEBUG
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.INFO


def get_settings() -> Settings:
    """
    Get application settings.

    Loads settings from environment variables and .env file.

    Returns:
        Settings instance with all configuration values
    """
    return Settings()


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def settings() -> Settings:
    """
    Get the global settings instance.

    Creates the settings instance on first call and caches it.

    Returns:
        Global Settings instance
    """
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings
