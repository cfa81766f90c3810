"""Logging setup for dockwiki; every handler scrubs credentials from its output."""

from __future__ import annotations

import logging
import re
from pathlib import Path

ROOT_LOGGER = "dockwiki"
CONSOLE_FORMAT = "[dockwiki] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_SECRET_PATTERNS = (
    (re.compile(r"(x-access-token:)[^@\s]+(@)"), r"\1***\2"),
    (re.compile(r"(Bearer\s+)[A-Za-z0-9._\-]+"), r"\1***"),
    (re.compile(r"\b(gsk_|ghp_|gho_|github_pat_|sk-)[A-Za-z0-9_\-]{4,}"), r"\1***"),
)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``dockwiki`` or the ``dockwiki.<name>`` child logger."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


def redact(text: str) -> str:
    """Replace tokens embedded in URLs, headers or messages with ``***``."""
    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class RedactingFilter(logging.Filter):
    """Rewrites each record's message so credentials never reach a sink."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Point the ``dockwiki`` logger at stderr and, optionally, ``log_file``.

    Calling this again replaces the previous handlers.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [_prepare(logging.StreamHandler(), level, CONSOLE_FORMAT)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            _prepare(logging.FileHandler(log_file, encoding="utf-8"), level, FILE_FORMAT)
        )
    for handler in handlers:
        logger.addHandler(handler)
    return logger


def mask_secret(secret: str | None, visible: int = 8) -> str:
    """Return a log-safe rendering of a credential."""
    if not secret:
        return "<none>"
    if len(secret) <= visible:
        return "*" * len(secret)
    return f"{secret[:visible]}…"


def _prepare(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    handler.addFilter(RedactingFilter())
    return handler


__all__ = [
    "RedactingFilter",
    "configure_logging",
    "get_logger",
    "mask_secret",
    "redact",
]
