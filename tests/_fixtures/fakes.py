"""Test doubles shared across the dockwiki test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Optional

from dockwiki.failsafe import placeholder_description
from dockwiki.llm.runner import LLMRequest


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedTransport:
    """Transport that answers per base URL, raising when the answer is an exception."""

    def __init__(self, responses: Dict[str, object]) -> None:
        self.responses = responses
        self.requests: List[LLMRequest] = []

    def __call__(self, request: LLMRequest) -> str:
        self.requests.append(request)
        answer = self.responses[request.base_url]
        if isinstance(answer, Exception):
            raise answer
        if callable(answer):
            return answer(request)
        return str(answer)

    def calls_to(self, base_url: str) -> List[LLMRequest]:
        return [request for request in self.requests if request.base_url == base_url]


class StubCompleter:
    """Completion client double that always succeeds, or fails for chosen subjects."""

    def __init__(
        self,
        reply: Callable[[str], str] | None = None,
        *,
        fail_for: set[str] | None = None,
    ) -> None:
        self.reply = reply or (lambda prompt: "Generated description.")
        self.fail_for = fail_for or set()
        self.prompts: List[str] = []
        self.fallback_count = 0

    def complete(self, prompt: str, *, best_effort: bool = False, subject: Optional[str] = None) -> str:
        self.prompts.append(prompt)
        if subject in self.fail_for:
            if best_effort:
                return placeholder_description(subject)
            raise RuntimeError(f"completion failed for {subject}")
        return self.reply(prompt)


class RecordingFileSystem:
    """Filesystem double that tracks created and removed directories."""

    def __init__(self, *, fail_remove: bool = False) -> None:
        self.created: List[Path] = []
        self.removed: List[Path] = []
        self.fail_remove = fail_remove

    def make_dir(self, path: Path) -> None:
        self.created.append(Path(path))

    def remove_tree(self, path: Path) -> None:
        if self.fail_remove:
            raise OSError(f"cannot remove {path}")
        self.removed.append(Path(path))


__all__ = ["FakeClock", "RecordingFileSystem", "ScriptedTransport", "StubCompleter"]
