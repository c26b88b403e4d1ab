"""Logging setup for entry points (CLI, scripts)."""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging. Defaults to LOG_LEVEL from settings."""
    if level is None:
        from .config import get_settings
        level = get_settings().LOG_LEVEL
    logging.basicConfig(
        level=getattr(logging, (level or "INFO").upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    # Third-party HTTP clients are noisy at INFO
    for name in ("httpx", "httpcore", "urllib3"):
        logging.getLogger(name).setLevel(logging.WARNING)
