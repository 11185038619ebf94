"""Logging configuration for the enrichment Lambdas."""

import logging

from ..config import Settings

PACKAGE_LOGGER = "tag_enrichment"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: Settings) -> None:
    """
    Configure logging for the enrichment package.

    The Lambda runtime installs its own root handler, so a console handler
    is only added when the root logger has none (local runs and tests).
    The package logger level follows the DEBUG/LOG_LEVEL settings.

    Args:
        settings: Application settings
    """
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

    logging.getLogger(PACKAGE_LOGGER).setLevel(settings.effective_log_level)
