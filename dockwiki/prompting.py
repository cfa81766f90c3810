"""Prompt construction for per-function analysis."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .models import FunctionRecord

TEMPLATES_DIR = Path(__file__).with_name("templates")


def create_environment(templates_dir: Path | None = None) -> Environment:
    """Return the Jinja environment shared by prompts and wiki pages."""
    directories = []
    if templates_dir is not None:
        directories.append(str(templates_dir))
    directories.append(str(TEMPLATES_DIR))
    return Environment(
        loader=FileSystemLoader(directories),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )


class PromptBuilder:
    """Renders the fixed analysis prompt for a function record."""

    SYSTEM_PROMPT = (
        "You are a senior developer documentation writer. Describe code precisely, "
        "stay grounded in the snippet you are given, and never invent behaviour."
    )

    def __init__(self, templates_dir: Path | None = None, *, max_code_chars: int = 6000) -> None:
        self._env = create_environment(templates_dir)
        self.max_code_chars = max_code_chars

    def function_prompt(self, record: FunctionRecord) -> str:
        return self.render_function_prompt(record.name, record.parameters, record.code)

    def render_function_prompt(self, name: str, parameters: Sequence[str], code: str) -> str:
        template = self._env.get_template("function_prompt.j2")
        return template.render(
            name=name,
            parameters=", ".join(parameters),
            code=self._truncate(code),
        ).strip()

    def _truncate(self, code: str) -> str:
        if len(code) <= self.max_code_chars:
            return code
        return code[: self.max_code_chars].rstrip() + "\n// … truncated"


__all__ = ["PromptBuilder", "TEMPLATES_DIR", "create_environment"]
