"""Logging setup shared by the CLI and the TUI."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def configure_logging(level: int = logging.INFO) -> None:
    """Configure basic logging to stderr unless the application already did."""

    if logging.getLogger().handlers:
        # Assume the application configured logging already.
        return

    logging.basicConfig(stream=sys.stderr, level=level, format=LOG_FORMAT)
