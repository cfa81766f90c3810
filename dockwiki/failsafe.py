"""Fail-safe text used when completions or pages cannot be generated."""

from __future__ import annotations


def placeholder_description(subject: str | None) -> str:
    """Return the description used when no completion could be produced."""
    name = f"`{subject}`" if subject else "this function"
    return (
        f"Documentation for {name} could not be generated automatically. "
        "Review the source and describe its purpose, parameters, and return value."
    )


def empty_page_notice() -> str:
    return "_No documented functions were found in this directory._"


def is_placeholder(text: str, subject: str | None) -> bool:
    return text.strip() == placeholder_description(subject)


__all__ = ["empty_page_notice", "is_placeholder", "placeholder_description"]
