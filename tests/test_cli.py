"""CLI parser and entrypoint behaviour tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from dockwiki import cli
from dockwiki.cli import _build_parser
from dockwiki.errors import ExhaustedCredentials, RepositoryNotFound
from dockwiki.orchestrator import GenerationResult


def test_cli_accepts_verbose_before_command() -> None:
    args = _build_parser().parse_args(["--verbose", "generate", "octo", "hello"])
    assert args.verbose is True
    assert args.command == "generate"
    assert (args.owner, args.repo) == ("octo", "hello")


def test_cli_accepts_verbose_after_command() -> None:
    args = _build_parser().parse_args(["generate", "octo", "hello", "--verbose"])
    assert args.verbose is True
    assert args.output is None


def test_cli_serve_defaults() -> None:
    args = _build_parser().parse_args(["serve"])
    assert args.command == "serve"
    assert args.verbose is False
    assert args.host == "0.0.0.0"
    assert args.port == 5000


def test_cli_requires_a_command() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args([])


class _StubOrchestrator:
    error: Exception | None = None
    calls: list[dict[str, object]] = []

    def __init__(self, config) -> None:
        self.config = config

    def generate(self, owner, repo, *, reporter, output_dir=None):
        type(self).calls.append({"owner": owner, "repo": repo, "output_dir": output_dir})
        if self.error is not None:
            raise self.error
        reporter.report("Completed", 100)
        return GenerationResult(
            documentation=[],
            pages={"": "# Root\n", "lib": "# lib\n"},
            wiki_url=f"https://github.com/{owner}/{repo}/wiki",
        )


@pytest.fixture
def stub_orchestrator(monkeypatch: pytest.MonkeyPatch):
    _StubOrchestrator.error = None
    _StubOrchestrator.calls = []
    monkeypatch.setattr(cli, "Orchestrator", _StubOrchestrator)
    return _StubOrchestrator


def test_generate_prints_summary(tmp_path: Path, stub_orchestrator, capsys) -> None:
    cli.main(["--config", str(tmp_path), "generate", "octo", "hello", "--output", str(tmp_path / "out")])

    captured = capsys.readouterr()
    assert "Documented 0 files across 2 pages: https://github.com/octo/hello/wiki" in captured.out
    assert "Completed" in captured.err
    assert stub_orchestrator.calls == [
        {"owner": "octo", "repo": "hello", "output_dir": tmp_path / "out"}
    ]


def test_generate_failure_exits_non_zero(tmp_path: Path, stub_orchestrator, capsys) -> None:
    stub_orchestrator.error = RepositoryNotFound("Failed to clone repository octo/missing")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(tmp_path), "generate", "octo", "missing"])

    assert excinfo.value.code == 1
    assert "dockwiki generate failed: Failed to clone repository octo/missing" in capsys.readouterr().err


def test_invalid_config_exits_non_zero(tmp_path: Path, stub_orchestrator) -> None:
    (tmp_path / ".dockwiki.yml").write_text("- not a mapping\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(tmp_path), "generate", "octo", "hello"])

    assert excinfo.value.code == 1
    assert stub_orchestrator.calls == []


def _clear_key_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("DOCKWIKI_API_KEYS", "GROQ_API_KEYS", "DOCKWIKI_API_KEY", "GROQ_API_KEY"):
        monkeypatch.delenv(name, raising=False)


def test_missing_keys_failure_explains_configuration(
    tmp_path: Path, stub_orchestrator, capsys, monkeypatch: pytest.MonkeyPatch
) -> None:
    _clear_key_env(monkeypatch)
    stub_orchestrator.error = ExhaustedCredentials("No completion credentials configured")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(tmp_path), "generate", "octo", "hello"])

    err = capsys.readouterr().err
    assert excinfo.value.code == 1
    assert "No completion credentials configured" in err
    assert "GROQ_API_KEYS" in err


def test_rate_limited_keys_failure_has_no_configuration_hint(
    tmp_path: Path, stub_orchestrator, capsys, monkeypatch: pytest.MonkeyPatch
) -> None:
    _clear_key_env(monkeypatch)
    monkeypatch.setenv("GROQ_API_KEY", "gsk_live_key")
    stub_orchestrator.error = ExhaustedCredentials("All completion credentials are rate limited")

    with pytest.raises(SystemExit):
        cli.main(["--config", str(tmp_path), "generate", "octo", "hello"])

    assert "GROQ_API_KEYS" not in capsys.readouterr().err
