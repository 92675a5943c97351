from __future__ import annotations

import os
from pathlib import Path

import yaml

from ..config import config_path, load_config
from ..constants import (
    DEFAULT_HOST,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PAGE_SIZE,
    DEFAULT_PORT,
    SCHEMA_VERSION,
    STATE_DIR_NAME,
    TASKS_COLLECTION,
    USERS_COLLECTION,
)
from ..errors import StoreError


STATE_FILES = {
    TASKS_COLLECTION: f"{TASKS_COLLECTION}.yaml",
    USERS_COLLECTION: f"{USERS_COLLECTION}.yaml",
}


def _write_config(path: Path, config: dict) -> None:
    tmp_path = path.with_suffix(f"{path.suffix}.tmp")
    with tmp_path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(config, handle, sort_keys=False)
        handle.flush()
        os.fsync(handle.fileno())
    os.replace(tmp_path, path)


def ensure_state_root(project_dir: Path) -> Path:
    """Create `<project_dir>/.task_tracker/` with empty collections and a default config.

    An existing config is completed with missing defaults; a config that
    cannot be parsed is left untouched and reported as a :class:`StoreError`.
    """
    state_root = project_dir.resolve() / STATE_DIR_NAME
    state_root.mkdir(parents=True, exist_ok=True)

    for collection, file_name in STATE_FILES.items():
        target = state_root / file_name
        if not target.exists():
            target.write_text(
                yaml.safe_dump({"version": SCHEMA_VERSION, collection: []}, sort_keys=False),
                encoding="utf-8",
            )

    config, err = load_config(project_dir)
    if err:
        raise StoreError(f"Refusing to overwrite unreadable config: {err}")
    before = dict(config)
    config.setdefault("schema_version", SCHEMA_VERSION)
    config.setdefault("storage", {"backend": "file"})
    config.setdefault("logging", {"level": DEFAULT_LOG_LEVEL})
    config.setdefault("server", {"host": DEFAULT_HOST, "port": DEFAULT_PORT})
    config.setdefault("pagination", {"default_size": DEFAULT_PAGE_SIZE})
    path = config_path(project_dir)
    if config != before or not path.exists():
        _write_config(path, config)

    return state_root
