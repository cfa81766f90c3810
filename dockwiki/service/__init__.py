"""Service mode for dockwiki."""

from .app import ProgressHub, create_app, run_service

__all__ = ["ProgressHub", "create_app", "run_service"]
