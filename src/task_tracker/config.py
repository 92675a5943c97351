"""Load optional configuration from `.task_tracker/config.yaml`."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .constants import (
    CONFIG_FILE,
    DEFAULT_HOST,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PAGE_SIZE,
    DEFAULT_PORT,
    STATE_DIR_NAME,
    STORAGE_BACKENDS,
)


def config_path(project_dir: Path) -> Path:
    return project_dir.resolve() / STATE_DIR_NAME / CONFIG_FILE


def load_config(project_dir: Path) -> tuple[dict[str, Any], str | None]:
    """Load the optional config file.

    Args:
        project_dir: Directory holding the `.task_tracker/` state directory.

    Returns:
        A tuple of `(config, error_message)`. A missing file yields `({}, None)`;
        an unreadable or malformed file yields `({}, message)` so callers can
        avoid overwriting it.
    """
    path = config_path(project_dir)
    if not path.exists():
        return {}, None
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        return {}, f"{path.name}: {exc.__class__.__name__}: {exc}"
    except yaml.YAMLError as exc:
        return {}, f"{path.name}: YAMLError: {exc}"
    if data is None:
        return {}, None
    if not isinstance(data, dict):
        return {}, f"{path.name}: expected object, got {type(data).__name__}"
    return data, None


def _get_nested(config: dict[str, Any], *keys: str) -> Any:
    cur: Any = config
    for key in keys:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur


def get_storage_backend(config: dict[str, Any]) -> str:
    raw = _get_nested(config, "storage", "backend")
    if isinstance(raw, str) and raw in STORAGE_BACKENDS:
        return raw
    return "file"


def get_log_level(config: dict[str, Any]) -> str:
    raw = _get_nested(config, "logging", "level")
    if isinstance(raw, str) and raw.strip():
        return raw.strip().upper()
    return DEFAULT_LOG_LEVEL


def get_server_config(config: dict[str, Any]) -> tuple[str, int]:
    """Return `(host, port)` for the HTTP server, falling back to defaults."""
    host = _get_nested(config, "server", "host")
    port = _get_nested(config, "server", "port")
    if not isinstance(host, str) or not host:
        host = DEFAULT_HOST
    try:
        port = int(port)
    except (TypeError, ValueError):
        port = DEFAULT_PORT
    return host, port


def get_default_page_size(config: dict[str, Any]) -> int:
    raw = _get_nested(config, "pagination", "default_size")
    if isinstance(raw, int) and not isinstance(raw, bool) and raw > 0:
        return raw
    return DEFAULT_PAGE_SIZE
