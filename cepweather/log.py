"""Logging setup shared by both services."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install the stdout handler and format on the root logger.

    Args:
        level: Logging level name (e.g. "INFO", "DEBUG")
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
