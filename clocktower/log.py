"""Process-wide logging setup."""

from __future__ import annotations

import logging
import sys

_LOGGER_INITIALIZED = False


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once; later calls are no-ops."""

    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    _LOGGER_INITIALIZED = True
