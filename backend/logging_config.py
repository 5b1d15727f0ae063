"""Centralized logging configuration."""

import logging
from typing import Optional

from config import settings

# Chatty client libraries used by the store, price and FX integrations
QUIET_LOGGERS = ("httpx", "httpcore", "urllib3", "yfinance", "peewee")


def setup_logging(level: Optional[str] = None) -> None:
    """Configure logging for the application.

    Sets the root logger level from ``level`` (or settings.LOG_LEVEL) and
    holds the HTTP and market-data client loggers at WARNING so request
    lines do not drown out valuation and recompute logs.
    """
    logging.basicConfig(
        format="%(asctime)s %(levelname)-8s %(name)s  %(message)s",
        datefmt="%H:%M:%S",
        level=getattr(logging, (level or settings.LOG_LEVEL).upper()),
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
