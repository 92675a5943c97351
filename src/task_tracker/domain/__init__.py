from .models import Criterion, FacetResult, Operation, Page, Task, TaskStatus, UpdateResult, User, new_id, now_iso

__all__ = [
    "Criterion",
    "FacetResult",
    "Operation",
    "Page",
    "Task",
    "TaskStatus",
    "UpdateResult",
    "User",
    "new_id",
    "now_iso",
]
