"""Renders directory nodes into Markdown wiki pages."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Set

from .failsafe import empty_page_notice
from .models import ROOT_PAGE, DirectoryNode, FileDocumentation, page_name
from .prompting import create_environment
from .tree import DEFAULT_PAGE_THRESHOLD, DirectoryTreeAggregator

AI_DISCLAIMER = "> *This documentation was automatically generated using AI analysis*"


def page_key(path: str) -> str:
    """Map a slash-joined directory path to its dash-joined page key."""
    return "-".join(segment for segment in path.split("/") if segment)


class PageNameAllocator:
    """Hands out page keys that are unique within one rendering.

    ``a-b/`` and ``a/b/`` share the natural key ``a-b``, and a top-level
    ``Home/`` directory would land on the root page's file. The first claimant
    keeps the natural key; later ones get ``-2``, ``-3``... Comparison is
    case-insensitive because wiki page names are.
    """

    def __init__(self) -> None:
        self._taken: Set[str] = {ROOT_PAGE.lower()}

    def claim(self, path: str) -> str:
        base = page_key(path)
        candidate = base
        suffix = 2
        while candidate.lower() in self._taken:
            candidate = f"{base}-{suffix}"
            suffix += 1
        self._taken.add(candidate.lower())
        return candidate


class WikiPageRenderer:
    """Turns a directory tree into a ``{page key: markdown}`` mapping.

    A directory gets its own page when the aggregator says it needs one;
    otherwise its files are folded into the parent's page. The root page is
    always emitted under the empty key. Rendering is pure: the tree is never
    mutated, and the same tree always yields the same pages.
    """

    def __init__(
        self,
        aggregator: DirectoryTreeAggregator | None = None,
        *,
        templates_dir: Path | None = None,
    ) -> None:
        self.aggregator = aggregator or DirectoryTreeAggregator(DEFAULT_PAGE_THRESHOLD)
        self._template = create_environment(templates_dir).get_template("page.md.j2")

    def render(self, node: DirectoryNode, name: str = "", base_path: str = "") -> Dict[str, str]:
        """Render ``node`` and every descendant that needs its own page.

        ``base_path`` is the slash-joined path of the node's parent directory;
        ``name`` is the node's own directory name (empty for the root).
        """
        path = f"{base_path}/{name}" if base_path else name
        names = PageNameAllocator()
        key = names.claim(path) if path else ""
        # Top-level pages link back to Home even though their base path is empty.
        parent_page = page_name(page_key(base_path)) if name else None

        pages: Dict[str, str] = {}
        self._render_page(node, name, path, key, parent_page, names, pages)
        return pages

    def _render_page(
        self,
        node: DirectoryNode,
        name: str,
        path: str,
        key: str,
        parent_page: Optional[str],
        names: PageNameAllocator,
        pages: Dict[str, str],
    ) -> None:
        subdirectories = []
        files: List[FileDocumentation] = list(node.files)
        for child_name, child in node.subdirectories.items():
            child_path = f"{path}/{child_name}" if path else child_name
            if self.aggregator.needs_own_page(child):
                child_key = names.claim(child_path)
                subdirectories.append({"name": child_name, "page": page_name(child_key)})
                self._render_page(
                    child, child_name, child_path, child_key, page_name(key), names, pages
                )
            else:
                subdirectories.append({"name": child_name, "page": None})
                files.extend(child.files)

        markdown = self._template.render(
            title=name or "Root",
            parent_page=parent_page,
            subdirectories=subdirectories,
            files=files,
            disclaimer=AI_DISCLAIMER,
            empty_notice=empty_page_notice(),
        )
        pages[key] = _normalise(markdown)


def _normalise(markdown: str) -> str:
    lines = [line.rstrip() for line in markdown.splitlines()]
    collapsed: List[str] = []
    for line in lines:
        if not line and collapsed and not collapsed[-1]:
            continue
        collapsed.append(line)
    return "\n".join(collapsed).strip() + "\n"


__all__ = ["AI_DISCLAIMER", "PageNameAllocator", "WikiPageRenderer", "page_key"]
