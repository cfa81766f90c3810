"""Completion clients and credential management."""

from .client import CompletionClient
from .credentials import Credential, CredentialPool
from .runner import LLMRequest, TransportError, http_transport

__all__ = [
    "CompletionClient",
    "Credential",
    "CredentialPool",
    "LLMRequest",
    "TransportError",
    "http_transport",
]
