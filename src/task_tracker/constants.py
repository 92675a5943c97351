from __future__ import annotations

STATE_DIR_NAME = ".task_tracker"
CONFIG_FILE = "config.yaml"
SCHEMA_VERSION = 1

TASKS_COLLECTION = "tasks"
USERS_COLLECTION = "users"

DEFAULT_PAGE = 0
DEFAULT_PAGE_SIZE = 10
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000
DEFAULT_LOG_LEVEL = "INFO"

STORAGE_BACKENDS = ("file", "memory")
