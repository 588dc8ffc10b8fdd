"""Loguru sink configuration for CLI and service entry points."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

from config import Settings, get_settings


def configure_logging(settings: Settings | None = None) -> None:
    """Replace the default loguru sink with stderr plus an optional log file."""
    settings = settings or get_settings()

    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )

    if settings.log_file:
        Path(settings.log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            settings.log_file,
            level=settings.log_level,
            rotation="10 MB",
            retention=5,
            encoding="utf-8",
        )
