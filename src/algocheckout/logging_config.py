"""
Logging configuration for algocheckout
"""

import logging
import sys

PACKAGE_LOGGER = "algocheckout"

LOG_FORMAT = "%(asctime)s - %(levelname)-8s %(name)s %(filename)s:%(lineno)d %(message)s"


def setup_logging(level: int = logging.INFO, logger_name: str | None = PACKAGE_LOGGER) -> logging.Logger:
    """
    Send log records to stdout with timestamp, file and line number

    Args:
        level: Logging level (default: INFO)
        logger_name: Logger to configure; the package logger by default, None for root

    Returns:
        The configured logger
    """
    target = logging.getLogger(logger_name)
    target.setLevel(level)

    # Calling twice must not duplicate output
    for handler in target.handlers[:]:
        target.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    target.addHandler(handler)
    return target
