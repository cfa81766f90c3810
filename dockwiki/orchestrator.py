"""Pipeline orchestration for one documentation-generation request."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .assembler import DocumentationAssembler
from .config import DockWikiConfig, load_config
from .errors import RepositoryNotFound
from .git.fetcher import RepoFetcher
from .git.publisher import WikiPublisher
from .llm.client import CompletionClient
from .llm.credentials import CredentialPool
from .logging import get_logger
from .models import FileDocumentation
from .progress import ProgressReporter
from .renderer import WikiPageRenderer
from .repo_scanner import RepoScanner
from .tree import DirectoryTreeAggregator, count_files
from .workspace import FileSystem, Workspace

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


@dataclass
class GenerationResult:
    """Outcome of a documentation run."""

    documentation: List[FileDocumentation]
    pages: Dict[str, str]
    wiki_url: str
    fallback_completions: int = 0
    credentials: List[Dict[str, object]] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "documentation": [doc.to_dict() for doc in self.documentation],
            "wikiUrl": self.wiki_url,
        }


def build_pool(config: DockWikiConfig) -> CredentialPool:
    completion = config.completion
    return CredentialPool(
        completion.api_keys,
        max_failures=completion.max_failures,
        cooldown=completion.cooldown_seconds,
    )


class Orchestrator:
    """Clones, documents, renders, and publishes a repository wiki.

    Collaborators are injectable; anything not supplied is built from the
    configuration. The credential pool is shared process state and should be
    passed in by long-lived callers such as the service.
    """

    def __init__(
        self,
        config: DockWikiConfig | None = None,
        *,
        pool: CredentialPool | None = None,
        completer: CompletionClient | None = None,
        fetcher: RepoFetcher | None = None,
        scanner: RepoScanner | None = None,
        assembler: DocumentationAssembler | None = None,
        aggregator: DirectoryTreeAggregator | None = None,
        renderer: WikiPageRenderer | None = None,
        publisher: WikiPublisher | None = None,
        fs: FileSystem | None = None,
    ) -> None:
        self.config = config or load_config()
        self.pool = pool or build_pool(self.config)
        self.completer = completer or CompletionClient.from_config(self.config.completion, self.pool)
        self.fetcher = fetcher or RepoFetcher(token=self.config.wiki.github_token)
        self.scanner = scanner or RepoScanner(self.config.scan)
        self.assembler = assembler or DocumentationAssembler(
            self.completer, max_workers=self.config.completion.max_workers
        )
        self.aggregator = aggregator or DirectoryTreeAggregator(self.config.wiki.page_threshold)
        self.renderer = renderer or WikiPageRenderer(self.aggregator)
        self.publisher = publisher or WikiPublisher(config=self.config.wiki)
        self.fs = fs
        self.logger = get_logger("orchestrator")

    def generate(
        self,
        owner: str,
        repo: str,
        *,
        reporter: Optional[ProgressReporter] = None,
        output_dir: Optional[Path] = None,
    ) -> GenerationResult:
        """Run the full pipeline; working directories are removed on every exit path.

        When ``output_dir`` is given the pages are written there instead of
        being pushed to the wiki.
        """
        reporter = reporter or ProgressReporter()
        self.logger.info("Documentation generation started for %s/%s", owner, repo)

        try:
            self._validate_reference(owner, repo)
            with Workspace(Path(self.config.temp_dir), fs=self.fs) as workspace:
                repo_path = self.fetcher.fetch(owner, repo, workspace.reserve(f"{owner}-{repo}"))
                reporter.report("Repository cloned", 20)

                sources = self.scanner.scan(repo_path)
                documentation = self.assembler.assemble(
                    [source.as_tuple() for source in sources],
                    progress=reporter.window(20, 60),
                )

                reporter.report("Generating wiki structure", 70)
                tree = self.aggregator.build(documentation)
                pages = self.renderer.render(tree)
                self.logger.info(
                    "Rendered %d wiki pages covering %d files", len(pages), count_files(tree)
                )

                reporter.report("Writing wiki content", 90)
                if output_dir is not None:
                    wiki_url = self._write_local(pages, Path(output_dir))
                else:
                    wiki_url = self.publisher.publish(
                        owner, repo, pages, workspace.reserve(f"{owner}-{repo}-wiki")
                    )
        except Exception as exc:
            self.logger.error("Documentation generation failed for %s/%s: %s", owner, repo, exc)
            reporter.error(str(exc))
            raise

        reporter.report("Completed", 100)
        result = GenerationResult(
            documentation=documentation,
            pages=pages,
            wiki_url=wiki_url,
            fallback_completions=getattr(self.completer, "fallback_count", 0),
            credentials=self.pool.snapshot(),
        )
        limited = sum(1 for state in result.credentials if state["rate_limited"])
        self.logger.info(
            "Documentation generation completed for %s/%s: %d fallback completions, "
            "%d of %d credentials rate limited",
            owner,
            repo,
            result.fallback_completions,
            limited,
            len(result.credentials),
        )
        return result

    def _write_local(self, pages: Dict[str, str], output_dir: Path) -> str:
        output_dir.mkdir(parents=True, exist_ok=True)
        written = WikiPublisher.write_pages(output_dir, pages)
        self.logger.info("Wrote %d wiki pages to %s", len(written), output_dir)
        return output_dir.resolve().as_uri()

    @staticmethod
    def _validate_reference(owner: str, repo: str) -> None:
        for value in (owner, repo):
            if not value or not _NAME_PATTERN.match(value) or value in {".", ".."}:
                raise RepositoryNotFound(f"Invalid repository reference: {owner}/{repo}")


__all__ = ["GenerationResult", "Orchestrator", "build_pool"]
