"""Git collaborators: repository acquisition and wiki publishing."""

from .fetcher import RepoFetcher
from .publisher import WikiPublisher

__all__ = ["RepoFetcher", "WikiPublisher"]
