"""Logging setup for the application."""

import logging
from typing import Optional
from app.config.settings import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging once at startup."""
    level = level or get_settings().log_level
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)

    # httpx logs every request line at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
