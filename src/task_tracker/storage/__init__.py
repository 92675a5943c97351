from .file_store import YamlDocumentStore
from .filters import compile_filter
from .interfaces import DocumentStore
from .memory_store import MemoryDocumentStore
from .paginated import PaginatedRepository
from .repos import TaskRepository, UserRepository

__all__ = [
    "DocumentStore",
    "MemoryDocumentStore",
    "PaginatedRepository",
    "TaskRepository",
    "UserRepository",
    "YamlDocumentStore",
    "compile_filter",
]
