from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from .config import get_default_page_size, get_storage_backend, load_config
from .services import TaskService, UserService
from .storage.bootstrap import ensure_state_root
from .storage.file_store import YamlDocumentStore
from .storage.interfaces import DocumentStore
from .storage.memory_store import MemoryDocumentStore
from .storage.repos import TaskRepository, UserRepository


class Container:
    """Wires one document store to the repositories and workflows."""

    def __init__(self, store: DocumentStore, config: Optional[dict[str, Any]] = None, project_dir: Optional[Path] = None) -> None:
        self.project_dir = project_dir
        self.config = config or {}
        self.store = store
        self.tasks = TaskRepository(store)
        self.users = UserRepository(store)
        self.task_service = TaskService(self.tasks)
        self.user_service = UserService(self.users, self.task_service)

    @property
    def default_page_size(self) -> int:
        return get_default_page_size(self.config)

    @classmethod
    def in_memory(cls, config: Optional[dict[str, Any]] = None) -> "Container":
        return cls(MemoryDocumentStore(), config=config)

    @classmethod
    def for_project(cls, project_dir: Path, backend: Optional[str] = None) -> "Container":
        project_dir = project_dir.resolve()
        config, _ = load_config(project_dir)
        backend = backend or get_storage_backend(config)
        if backend == "memory":
            return cls(MemoryDocumentStore(), config=config, project_dir=project_dir)
        state_root = ensure_state_root(project_dir)
        config, _ = load_config(project_dir)
        return cls(YamlDocumentStore(state_root), config=config, project_dir=project_dir)
