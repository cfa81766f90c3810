"""Exception taxonomy for the documentation pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence


class DockWikiError(RuntimeError):
    """Base class for failures surfaced by dockwiki."""


class ExhaustedCredentials(DockWikiError):
    """Raised when every completion credential is rate limited."""


@dataclass(frozen=True)
class CompletionAttempt:
    """Outcome of a single endpoint attempt within one completion call."""

    endpoint: str
    model: str
    ok: bool
    error: Optional[str] = None


class CompletionUnavailable(DockWikiError):
    """Raised when the primary and fallback endpoints both failed for a prompt."""

    def __init__(self, message: str, attempts: Sequence[CompletionAttempt] = ()) -> None:
        super().__init__(message)
        self.attempts = list(attempts)

    def __str__(self) -> str:
        base = super().__str__()
        failures = [f"{a.endpoint}: {a.error}" for a in self.attempts if not a.ok]
        if not failures:
            return base
        return f"{base} ({'; '.join(failures)})"


class ExtractionFailed(DockWikiError):
    """Raised when a file cannot be turned into function records."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to extract functions from {path}: {reason}")
        self.path = path


class RepositoryNotFound(DockWikiError):
    """Raised when a repository does not exist or cannot be cloned."""


class PublishFailed(DockWikiError):
    """Raised when wiki pages cannot be committed or pushed."""


__all__ = [
    "CompletionAttempt",
    "CompletionUnavailable",
    "DockWikiError",
    "ExhaustedCredentials",
    "ExtractionFailed",
    "PublishFailed",
    "RepositoryNotFound",
]
