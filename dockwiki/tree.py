"""Folds flat per-file documentation into a directory tree."""

from __future__ import annotations

from typing import Iterator, List, Sequence, Tuple

from .models import DirectoryNode, FileDocumentation

DEFAULT_PAGE_THRESHOLD = 5


class DirectoryTreeAggregator:
    """Builds the directory tree and decides which directories get their own page."""

    def __init__(self, page_threshold: int = DEFAULT_PAGE_THRESHOLD) -> None:
        self.page_threshold = page_threshold

    def build(self, files: Sequence[FileDocumentation]) -> DirectoryNode:
        root = DirectoryNode()
        for doc in files:
            segments = split_path(doc.file_name)
            node = root
            walked: List[str] = []
            for segment in segments[:-1]:
                child = node.subdirectories.get(segment)
                if child is None:
                    child = DirectoryNode(parent_path="/".join(walked))
                    node.subdirectories[segment] = child
                walked.append(segment)
                node = child
            node.files.append(doc)
        return root

    def needs_own_page(self, node: DirectoryNode) -> bool:
        return len(node.files) > self.page_threshold or bool(node.subdirectories)


def split_path(file_name: str) -> List[str]:
    normalised = file_name.replace("\\", "/").strip("/")
    return [segment for segment in normalised.split("/") if segment and segment != "."]


def iter_files(node: DirectoryNode, prefix: str = "") -> Iterator[Tuple[str, FileDocumentation]]:
    """Yield ``(directory path, file)`` pairs depth-first in insertion order."""
    for doc in node.files:
        yield prefix, doc
    for name, child in node.subdirectories.items():
        child_prefix = f"{prefix}/{name}" if prefix else name
        yield from iter_files(child, child_prefix)


def count_files(node: DirectoryNode) -> int:
    return sum(1 for _ in iter_files(node))


__all__ = [
    "DEFAULT_PAGE_THRESHOLD",
    "DirectoryTreeAggregator",
    "count_files",
    "iter_files",
    "split_path",
]
