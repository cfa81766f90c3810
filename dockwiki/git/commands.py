"""Subprocess plumbing shared by the git collaborators."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Iterable

GIT_TIMEOUT = 300.0

CommandRunner = Callable[..., str]


def default_runner(
    args: Iterable[str],
    *,
    cwd: Path,
    env: dict[str, str] | None = None,
    capture_output: bool = False,
) -> str:
    completed = subprocess.run(
        list(args),
        cwd=str(cwd),
        env=env,
        check=True,
        text=True,
        capture_output=True,
        timeout=GIT_TIMEOUT,
    )
    if capture_output:
        return completed.stdout
    return ""


def describe_failure(exc: Exception) -> str:
    """Summarise a command failure without echoing its arguments (they may hold tokens)."""
    if isinstance(exc, subprocess.CalledProcessError):
        detail = (exc.stderr or exc.stdout or "").strip().splitlines()
        tail = detail[-1] if detail else ""
        return f"exit code {exc.returncode}" + (f": {tail}" if tail else "")
    if isinstance(exc, subprocess.TimeoutExpired):
        return f"timed out after {exc.timeout:g}s"
    return str(exc)


__all__ = ["CommandRunner", "GIT_TIMEOUT", "default_runner", "describe_failure"]
