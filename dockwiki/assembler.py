"""Turns source files into per-file function documentation."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

from .errors import ExhaustedCredentials
from .extractor import FunctionRecordExtractor
from .failsafe import is_placeholder
from .logging import get_logger
from .models import FileDocumentation, FunctionRecord
from .prompting import PromptBuilder

ProgressCallback = Callable[[str, int, int], None]

STAGE_LABEL = "Generating documentation"


class Completer(Protocol):
    def complete(
        self,
        prompt: str,
        *,
        best_effort: bool = False,
        subject: Optional[str] = None,
    ) -> str: ...


class Extractor(Protocol):
    def extract(self, path: str, content: str) -> List[FunctionRecord]: ...


class DocumentationAssembler:
    """Extracts function records per file and fills missing descriptions via completions."""

    def __init__(
        self,
        completer: Completer,
        *,
        extractor: Extractor | None = None,
        prompt_builder: PromptBuilder | None = None,
        max_workers: int = 1,
    ) -> None:
        self.completer = completer
        self.extractor = extractor or FunctionRecordExtractor()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.max_workers = max(1, max_workers)
        self.logger = get_logger("assembler")

    def assemble(
        self,
        files: Sequence[Tuple[str, str]],
        *,
        progress: ProgressCallback | None = None,
    ) -> List[FileDocumentation]:
        """Return documentation for every file that yielded at least one function.

        Files that fail extraction or completion are logged and skipped.
        ``ExhaustedCredentials`` is not a per-file failure and propagates.
        """
        total = len(files)
        self.logger.info("Assembling documentation for %d files", total)
        counter = _Counter(total, progress)

        if self.max_workers == 1 or total <= 1:
            results = []
            for path, content in files:
                results.append(self._process_file(path, content))
                counter.tick()
        else:
            def _run(item: Tuple[str, str]) -> Optional[FileDocumentation]:
                try:
                    return self._process_file(*item)
                finally:
                    counter.tick()

            with ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="dockwiki-assemble"
            ) as executor:
                results = list(executor.map(_run, files))

        documentation = [doc for doc in results if doc is not None]
        self.logger.info(
            "Documented %d of %d files (%d functions)",
            len(documentation),
            total,
            sum(len(doc.content) for doc in documentation),
        )
        return documentation

    def _process_file(self, path: str, content: str) -> Optional[FileDocumentation]:
        try:
            records = self.extractor.extract(path, content)
            for record in records:
                if record.needs_description():
                    self._describe(record)
        except ExhaustedCredentials:
            raise
        except Exception as exc:
            self.logger.warning("Failed to process file %s: %s", path, exc)
            return None

        if not records:
            self.logger.debug("No functions found in %s", path)
            return None
        self.logger.debug("Documentation generated for %s (%d functions)", path, len(records))
        return FileDocumentation(file_name=path, content=records)

    def _describe(self, record: FunctionRecord) -> None:
        prompt = self.prompt_builder.function_prompt(record)
        text = self.completer.complete(prompt, best_effort=True, subject=record.name)
        record.description = text.strip()
        record.is_ai_generated = not is_placeholder(text, record.name)


class _Counter:
    """Running processed-file count that reports in order under a lock."""

    def __init__(self, total: int, callback: ProgressCallback | None) -> None:
        self.total = total
        self.done = 0
        self._callback = callback
        self._lock = threading.Lock()

    def tick(self) -> None:
        with self._lock:
            self.done += 1
            if self._callback is not None:
                self._callback(STAGE_LABEL, self.done, self.total)


__all__ = ["DocumentationAssembler", "STAGE_LABEL"]
