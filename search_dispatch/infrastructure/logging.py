from __future__ import annotations

import logging
import os

ROOT_LOGGER = "search_dispatch"


def log_level() -> int:
    level = os.getenv("SEARCH_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level, logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the package root, configuring stderr output on first use."""
    qualified = name if name.startswith(ROOT_LOGGER) else f"{ROOT_LOGGER}.{name}"
    logger = logging.getLogger(qualified)
    if not logger.handlers:
        logging.basicConfig(level=log_level(), format="%(levelname)s | %(message)s")
    return logger
