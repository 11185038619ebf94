"""Unit tests for settings and logging configuration."""

import logging

import pytest
from pydantic import ValidationError

from tag_enrichment.config import Settings
from tag_enrichment.utils.logging_config import PACKAGE_LOGGER, configure_logging

ENV_VARS = [
    "CACHE_TTL_MINUTES",
    "ACCOUNT_ID",
    "AWS_REGION",
    "AWS_DEFAULT_REGION",
    "DEBUG",
    "LOG_LEVEL",
    "AWS_CONNECT_TIMEOUT",
    "AWS_READ_TIMEOUT",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every setting from the environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def package_logger():
    """Restore the package logger level after the test."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    level = logger.level
    yield logger
    logger.setLevel(level)


class TestSettings:
    """Test environment driven settings."""

    def test_defaults(self, clean_env):
        s = Settings(_env_file=None)

        assert s.cache_ttl_minutes == 10
        assert s.cache_ttl_seconds == 600
        assert s.account_id == ""
        assert s.aws_region == "us-east-1"
        assert s.debug is False
        assert s.log_level == "INFO"
        assert s.aws_connect_timeout == 5
        assert s.aws_read_timeout == 10

    def test_environment_overrides(self, clean_env):
        clean_env.setenv("CACHE_TTL_MINUTES", "3")
        clean_env.setenv("ACCOUNT_ID", "210987654321")
        clean_env.setenv("AWS_REGION", "eu-west-1")
        clean_env.setenv("DEBUG", "true")

        s = Settings(_env_file=None)

        assert s.cache_ttl_seconds == 180
        assert s.account_id == "210987654321"
        assert s.aws_region == "eu-west-1"
        assert s.debug is True

    def test_default_region_fallback(self, clean_env):
        clean_env.setenv("AWS_DEFAULT_REGION", "ap-southeast-2")
        assert Settings(_env_file=None).aws_region == "ap-southeast-2"

    def test_region_prefers_aws_region(self, clean_env):
        clean_env.setenv("AWS_REGION", "us-west-2")
        clean_env.setenv("AWS_DEFAULT_REGION", "ap-southeast-2")
        assert Settings(_env_file=None).aws_region == "us-west-2"

    @pytest.mark.parametrize("value", ["0", "-5", "ten"])
    def test_invalid_ttl_rejected(self, clean_env, value):
        clean_env.setenv("CACHE_TTL_MINUTES", value)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)


class TestLogLevel:
    """Test the effective log level."""

    def test_debug_forces_debug_level(self, clean_env):
        s = Settings(_env_file=None, DEBUG=True, LOG_LEVEL="ERROR")
        assert s.effective_log_level == logging.DEBUG

    @pytest.mark.parametrize("name,level", [
        ("INFO", logging.INFO),
        ("warning", logging.WARNING),
        ("ERROR", logging.ERROR),
        ("nonsense", logging.INFO),
    ])
    def test_log_level_names(self, clean_env, name, level):
        assert Settings(_env_file=None, LOG_LEVEL=name).effective_log_level == level

    def test_configure_logging_sets_package_level(self, clean_env, package_logger):
        configure_logging(Settings(_env_file=None, LOG_LEVEL="WARNING"))
        assert package_logger.level == logging.WARNING

        configure_logging(Settings(_env_file=None, DEBUG=True))
        assert package_logger.level == logging.DEBUG
