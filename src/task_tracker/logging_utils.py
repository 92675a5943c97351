"""Logger setup and log-friendly rendering helpers."""

from __future__ import annotations

import json
import sys
from typing import Any

from loguru import logger


def configure_logging(level: str = "INFO") -> None:
    """Configure the loguru logger with the specified level."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{module}</cyan>:<cyan>{line}</cyan> - "
            "{message}"
        ),
    )


def summarize_ids(ids: list[str], limit: int = 5) -> str:
    """Render a bounded, comma-separated list of ids for log lines."""
    if len(ids) <= limit:
        return ", ".join(ids)
    return ", ".join(ids[:limit]) + f" (+{len(ids) - limit} more)"


def pretty(obj: Any, *, indent: int = 2) -> str:
    """Serialize an object as JSON for readable output.

    Returns:
        A JSON string when possible; otherwise `str(obj)`.
    """
    try:
        return json.dumps(obj, indent=indent, default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(obj)
