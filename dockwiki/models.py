"""Core data models shared across dockwiki components."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class FunctionRecord:
    """Extracted metadata describing one function candidate in a source file."""

    name: str
    parameters: List[str] = field(default_factory=list)
    description: str = ""
    is_ai_generated: bool = False
    code: str = field(default="", repr=False)

    def needs_description(self) -> bool:
        return not self.description.strip()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "parameters": list(self.parameters),
            "description": self.description,
            "isAIGenerated": self.is_ai_generated,
        }


@dataclass
class FileDocumentation:
    """Documentation collected for a single analysed file."""

    file_name: str
    content: List[FunctionRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fileName": self.file_name,
            "content": [record.to_dict() for record in self.content],
        }


@dataclass
class DirectoryNode:
    """One directory of the repository tree with the files documented in it."""

    files: List[FileDocumentation] = field(default_factory=list)
    subdirectories: Dict[str, "DirectoryNode"] = field(default_factory=dict)
    parent_path: Optional[str] = None


@dataclass(frozen=True)
class WikiPage:
    """A rendered wiki page keyed by its dash-joined directory path."""

    path: str
    markdown: str

    @property
    def file_name(self) -> str:
        return f"{page_name(self.path)}.md"


ROOT_PAGE = "Home"


def page_name(path: str) -> str:
    """Return the wiki page name for a dash-joined directory path."""
    return path or ROOT_PAGE


__all__ = [
    "DirectoryNode",
    "FileDocumentation",
    "FunctionRecord",
    "ROOT_PAGE",
    "WikiPage",
    "page_name",
]
