"""Task tracker backend: users, tasks, and a filtered paginated query engine."""

__version__ = "0.3.0"
