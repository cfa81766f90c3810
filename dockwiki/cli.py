"""CLI entrypoints for dockwiki commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigError, load_config
from .errors import DockWikiError, ExhaustedCredentials
from .logging import configure_logging
from .orchestrator import Orchestrator
from .progress import ProgressReporter

NO_KEYS_HINT = (
    "no completion API keys configured; set DOCKWIKI_API_KEYS or GROQ_API_KEYS, "
    "or list completion.api_keys in .dockwiki.yml"
)


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    kwargs["default"] = argparse.SUPPRESS if suppress_default else False
    parser.add_argument("-v", "--verbose", **kwargs)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dockwiki",
        description="Generate GitHub wiki documentation for a repository.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("."),
        help="Path to .dockwiki.yml or the directory containing it.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Clone a repository, document it, and publish the wiki.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    generate_parser.add_argument("owner", help="Repository owner (user or organisation).")
    generate_parser.add_argument("repo", help="Repository name.")
    generate_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write wiki pages to this directory instead of pushing them.",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP/WebSocket service.")
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=5000)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for dockwiki commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    configure_logging(verbose=bool(args.verbose), log_file=config.log_file)

    if args.command == "generate":
        orchestrator = Orchestrator(config)
        reporter = ProgressReporter(_print_progress)
        try:
            result = orchestrator.generate(
                args.owner, args.repo, reporter=reporter, output_dir=args.output
            )
        except ExhaustedCredentials as exc:
            hint = "" if config.completion.api_keys else f" ({NO_KEYS_HINT})"
            parser.exit(1, f"dockwiki generate failed: {exc}{hint}\n")
        except DockWikiError as exc:
            parser.exit(1, f"dockwiki generate failed: {exc}\n")
        except Exception as exc:  # pragma: no cover - unexpected failure
            parser.exit(1, f"dockwiki generate failed: {exc}\nRun with --verbose for more details.\n")
        print(
            f"Documented {len(result.documentation)} files across {len(result.pages)} pages: "
            f"{result.wiki_url}"
        )
    elif args.command == "serve":  # pragma: no cover - integration path
        from .service import run_service

        run_service(host=args.host, port=args.port, config=config)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _print_progress(event: dict) -> None:
    if event.get("stage") == "error":
        return
    print(f"[{event['progress']:5.1f}%] {event['stage']}", file=sys.stderr)


if __name__ == "__main__":
    main(sys.argv[1:])
