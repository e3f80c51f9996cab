"""Logging setup for the crypto_prices logger tree."""

from __future__ import annotations

import logging
import sys

LOGGER_NAME = "crypto_prices"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Attach a single stdout handler to the ``crypto_prices`` logger."""
    root_logger = logging.getLogger(LOGGER_NAME)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # uvicorn --reload re-runs startup in the same process
    root_logger.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    root_logger.addHandler(console)
    root_logger.propagate = False

    return root_logger
