"""HTTP adapter for the task tracker workflows."""

from .api import create_app

__all__ = ["create_app"]
