"""Logging setup for mdview built on Loguru.

Library modules log through ``loguru.logger`` directly. Output stays disabled
until an entry point calls :func:`configure_logging`, so embedding the engine
elsewhere does not print anything by default.
"""

from __future__ import annotations

import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <7}</level> │ "
    "<cyan>{name}:{function}</cyan> @ "
    "<cyan>{line: <4}</cyan> ║ "
    "<level>{message}</level>"
)


def configure_logging(level: str = "WARNING") -> None:
    """Send mdview log records at ``level`` and above to stderr."""
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=level.upper())
    logger.enable("mdview")
