"""Completion client with primary/fallback endpoints and credential rotation."""

from __future__ import annotations

import threading
from typing import List, Optional

from ..config import CompletionConfig, EndpointConfig
from ..errors import CompletionAttempt, CompletionUnavailable
from ..failsafe import placeholder_description
from ..logging import get_logger, mask_secret
from ..prompting import PromptBuilder
from .credentials import CredentialPool
from .runner import LLMRequest, Transport, http_transport


class CompletionClient:
    """Turns prompts into text, falling back to a local endpoint when the primary fails.

    Each call makes exactly one primary attempt with the next credential from
    the pool and, only if that fails, one attempt against the fallback
    endpoint. The primary is never retried within a call.
    """

    def __init__(
        self,
        pool: CredentialPool,
        *,
        primary: EndpointConfig,
        fallback: EndpointConfig | None = None,
        request_timeout: float = 30.0,
        system: str | None = None,
        transport: Transport | None = None,
    ) -> None:
        self.pool = pool
        self.primary = primary
        self.fallback = fallback
        self.request_timeout = request_timeout
        self.system = system
        self._transport = transport or http_transport
        self._fallback_lock = threading.Lock()
        self.fallback_count = 0
        self.last_attempts: List[CompletionAttempt] = []
        self.logger = get_logger("llm.client")

    @classmethod
    def from_config(
        cls,
        config: CompletionConfig,
        pool: CredentialPool,
        *,
        system: str | None = PromptBuilder.SYSTEM_PROMPT,
        transport: Transport | None = None,
    ) -> "CompletionClient":
        return cls(
            pool,
            primary=config.primary,
            fallback=config.fallback,
            request_timeout=config.request_timeout,
            system=system,
            transport=transport,
        )

    def complete(
        self,
        prompt: str,
        *,
        best_effort: bool = False,
        subject: Optional[str] = None,
    ) -> str:
        """Return a completion for ``prompt``.

        Raises ``ExhaustedCredentials`` when no credential is usable; this is
        surfaced even in best-effort mode. Raises ``CompletionUnavailable``
        when both endpoints fail, unless ``best_effort`` is set, in which case
        a placeholder naming ``subject`` is returned.
        """
        credential = self.pool.next()
        attempts: List[CompletionAttempt] = []

        try:
            text = self._call(self.primary, prompt, api_key=credential.secret)
        except Exception as primary_error:
            attempts.append(self._failed(self.primary, primary_error))
            self.pool.mark_failure(credential)
            self.logger.warning(
                "Primary completion failed with credential %s: %s",
                mask_secret(credential.secret),
                primary_error,
            )
            return self._complete_with_fallback(
                prompt,
                primary_error,
                attempts,
                best_effort=best_effort,
                subject=subject,
            )

        self.pool.mark_success(credential)
        attempts.append(CompletionAttempt(self.primary.base_url, self.primary.model, ok=True))
        self.last_attempts = attempts
        return text

    def _complete_with_fallback(
        self,
        prompt: str,
        primary_error: Exception,
        attempts: List[CompletionAttempt],
        *,
        best_effort: bool,
        subject: Optional[str],
    ) -> str:
        if self.fallback is not None:
            with self._fallback_lock:
                self.fallback_count += 1
            self.logger.info("Using fallback endpoint %s", self.fallback.base_url)
            try:
                text = self._call(self.fallback, prompt, api_key=None)
            except Exception as fallback_error:
                attempts.append(self._failed(self.fallback, fallback_error))
                self.logger.error("Fallback completion failed: %s", fallback_error)
            else:
                attempts.append(
                    CompletionAttempt(self.fallback.base_url, self.fallback.model, ok=True)
                )
                self.last_attempts = attempts
                return text

        self.last_attempts = attempts
        if best_effort:
            self.logger.warning("Completion unavailable for %s; using placeholder", subject or "prompt")
            return placeholder_description(subject)
        raise CompletionUnavailable(
            "All completion endpoints failed", attempts
        ) from primary_error

    def _call(self, endpoint: EndpointConfig, prompt: str, *, api_key: str | None) -> str:
        request = LLMRequest(
            prompt=prompt,
            system=self.system,
            model=endpoint.model,
            base_url=endpoint.base_url,
            api_key=api_key,
            temperature=endpoint.temperature,
            max_tokens=endpoint.max_tokens,
            request_timeout=self.request_timeout,
        )
        text = self._transport(request)
        if not isinstance(text, str) or not text.strip():
            raise ValueError(f"{endpoint.base_url} returned an empty completion")
        return text.strip()

    @staticmethod
    def _failed(endpoint: EndpointConfig, error: Exception) -> CompletionAttempt:
        return CompletionAttempt(endpoint.base_url, endpoint.model, ok=False, error=str(error))


__all__ = ["CompletionClient"]
