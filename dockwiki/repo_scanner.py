"""Repository traversal that yields analysable source files."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence

from .config import DEFAULT_ALLOWED_EXTENSIONS, ScanConfig
from .logging import get_logger

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "venv",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".idea",
    ".vscode",
    "dist",
    "build",
}


@dataclass
class IgnoreRule:
    """Represents an ignore rule parsed from .gitignore or .dockwiki.yml."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            return self.directory_only and rel_path.startswith(f"{self.pattern}/")

        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


@dataclass
class SourceFile:
    """A repository file selected for documentation."""

    path: str
    content: str

    def as_tuple(self) -> tuple[str, str]:
        return self.path, self.content


def build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def parse_gitignore(path: Path) -> List[IgnoreRule]:
    if not path.exists():
        return []

    rules: List[IgnoreRule] = []
    for raw_line in path.read_text(encoding="utf-8", errors="ignore").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


class RepoScanner:
    """Walks a checkout and returns the files worth documenting, in path order."""

    def __init__(self, config: ScanConfig | None = None) -> None:
        self.config = config or ScanConfig()
        self.logger = get_logger("scanner")

    def scan(self, root: str | Path) -> List[SourceFile]:
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Repository path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Repository path is not a directory: {root}")

        rules = parse_gitignore(root_path / ".gitignore")
        rules.extend(
            rule
            for rule in (build_ignore_rule(pattern) for pattern in self.config.exclude_paths)
            if rule is not None
        )

        files: List[SourceFile] = []
        for path in self._iter_files(root_path, rules):
            rel_path = path.relative_to(root_path).as_posix()
            if not self.should_analyze(path.name):
                continue
            size = path.stat().st_size
            if size > self.config.max_file_size:
                self.logger.debug("Skipping %s (%d bytes exceeds limit)", rel_path, size)
                continue
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                self.logger.debug("Skipping unreadable file %s: %s", rel_path, exc)
                continue
            files.append(SourceFile(path=rel_path, content=content))

        self.logger.info("Scanner selected %d files under %s", len(files), root_path)
        return files

    def should_analyze(self, file_name: str) -> bool:
        if file_name.startswith("."):
            return False
        extensions = self.config.allowed_extensions or DEFAULT_ALLOWED_EXTENSIONS
        return Path(file_name).suffix.lower() in set(extensions)

    @staticmethod
    def _iter_files(root: Path, rules: Iterable[IgnoreRule]) -> Iterator[Path]:
        rule_list = list(rules)
        for dirpath, dirnames, filenames in os.walk(root):
            current_dir = Path(dirpath)
            rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

            kept = []
            for name in sorted(dirnames):
                if name in _EXCLUDED_DIRS:
                    continue
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if _should_ignore(rel_path, True, rule_list):
                    continue
                kept.append(name)
            dirnames[:] = kept

            for filename in sorted(filenames):
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                if _should_ignore(rel_path, False, rule_list):
                    continue
                yield current_dir / filename


__all__ = ["IgnoreRule", "RepoScanner", "SourceFile", "build_ignore_rule", "parse_gitignore"]
