"""Logging helpers."""

from __future__ import annotations

import logging
from typing import Optional


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str = "INFO", force: bool = False) -> None:
    """Configure root logger once (or again, with force=True, e.g. from the CLI)."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, force=force)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)


def debug_enabled(logger: logging.Logger) -> bool:
    """True when debug records from `logger` would be emitted."""
    return logger.isEnabledFor(logging.DEBUG)
