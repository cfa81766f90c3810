"""dockwiki: generate and publish GitHub wiki documentation for a repository."""

__version__ = "0.1.0"
