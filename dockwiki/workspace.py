"""Scoped working directories for repository and wiki checkouts."""

from __future__ import annotations

import shutil
import time
import uuid
from pathlib import Path
from typing import List, Protocol

from .logging import get_logger


class FileSystem(Protocol):
    def make_dir(self, path: Path) -> None: ...

    def remove_tree(self, path: Path) -> None: ...


class LocalFileSystem:
    """Filesystem operations backed by the real disk."""

    def make_dir(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    def remove_tree(self, path: Path) -> None:
        if path.exists():
            shutil.rmtree(path)


class Workspace:
    """Hands out per-request directories and removes all of them on close.

    Cleanup runs on every exit path of the ``with`` block. Failures while
    removing a directory are logged and never raised.
    """

    def __init__(self, root: Path, *, fs: FileSystem | None = None) -> None:
        self.root = Path(root)
        self.fs = fs or LocalFileSystem()
        self._created: List[Path] = []
        self.logger = get_logger("workspace")

    def __enter__(self) -> "Workspace":
        self.fs.make_dir(self.root)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    def reserve(self, label: str) -> Path:
        """Return a unique, not-yet-created path under the workspace root.

        Git creates the directory itself when cloning; the path is still
        tracked so it is removed on cleanup.
        """
        path = self.root / f"{label}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"
        self._created.append(path)
        return path

    def make_dir(self, label: str) -> Path:
        path = self.reserve(label)
        self.fs.make_dir(path)
        return path

    @property
    def paths(self) -> List[Path]:
        return list(self._created)

    def cleanup(self) -> None:
        while self._created:
            path = self._created.pop()
            try:
                self.fs.remove_tree(path)
            except Exception as exc:
                self.logger.error("Cleanup failed for %s: %s", path, exc)
            else:
                self.logger.debug("Cleanup completed for %s", path)


__all__ = ["FileSystem", "LocalFileSystem", "Workspace"]
