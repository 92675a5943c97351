"""Tests for config loading and state-directory bootstrap."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from task_tracker.config import (
    get_default_page_size,
    get_log_level,
    get_server_config,
    get_storage_backend,
    load_config,
)
from task_tracker.container import Container
from task_tracker.errors import StoreError
from task_tracker.storage.bootstrap import ensure_state_root
from task_tracker.storage.memory_store import MemoryDocumentStore


def _write_config(project_dir: Path, text: str) -> None:
    state = project_dir / ".task_tracker"
    state.mkdir(parents=True, exist_ok=True)
    (state / "config.yaml").write_text(text, encoding="utf-8")


def test_missing_config_is_empty(tmp_path: Path) -> None:
    assert load_config(tmp_path) == ({}, None)


def test_malformed_config_reports_error(tmp_path: Path) -> None:
    _write_config(tmp_path, "storage: [oops")
    config, err = load_config(tmp_path)
    assert config == {}
    assert err and "YAMLError" in err


def test_non_mapping_config(tmp_path: Path) -> None:
    _write_config(tmp_path, "- a\n- b\n")
    config, err = load_config(tmp_path)
    assert config == {}
    assert "expected object" in err


def test_getters_fall_back_to_defaults() -> None:
    assert get_storage_backend({}) == "file"
    assert get_storage_backend({"storage": {"backend": "mongo"}}) == "file"
    assert get_log_level({"logging": {"level": "debug"}}) == "DEBUG"
    assert get_log_level({}) == "INFO"
    assert get_server_config({}) == ("127.0.0.1", 8000)
    assert get_server_config({"server": {"host": "0.0.0.0", "port": "9001"}}) == ("0.0.0.0", 9001)
    assert get_default_page_size({"pagination": {"default_size": 25}}) == 25
    assert get_default_page_size({"pagination": {"default_size": 0}}) == 10
    assert get_default_page_size({"pagination": {"default_size": True}}) == 10


def test_ensure_state_root_writes_defaults(tmp_path: Path) -> None:
    state_root = ensure_state_root(tmp_path)
    assert (state_root / "tasks.yaml").exists()
    assert (state_root / "users.yaml").exists()
    config = yaml.safe_load((state_root / "config.yaml").read_text(encoding="utf-8"))
    assert config["schema_version"] == 1
    assert config["storage"] == {"backend": "file"}
    assert config["pagination"] == {"default_size": 10}


def test_ensure_state_root_keeps_user_values(tmp_path: Path) -> None:
    _write_config(tmp_path, "pagination:\n  default_size: 3\n")
    ensure_state_root(tmp_path)
    config, err = load_config(tmp_path)
    assert err is None
    assert config["pagination"] == {"default_size": 3}
    assert config["server"] == {"host": "127.0.0.1", "port": 8000}


def test_ensure_state_root_refuses_corrupt_config(tmp_path: Path) -> None:
    _write_config(tmp_path, "storage: [oops")
    with pytest.raises(StoreError, match="Refusing to overwrite"):
        ensure_state_root(tmp_path)
    assert (tmp_path / ".task_tracker" / "config.yaml").read_text(encoding="utf-8") == "storage: [oops"


def test_container_honours_memory_backend(tmp_path: Path) -> None:
    _write_config(tmp_path, "storage:\n  backend: memory\npagination:\n  default_size: 4\n")
    container = Container.for_project(tmp_path)
    assert isinstance(container.store, MemoryDocumentStore)
    assert container.default_page_size == 4
    assert not (tmp_path / ".task_tracker" / "tasks.yaml").exists()
