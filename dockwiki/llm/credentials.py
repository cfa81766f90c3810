"""Round-robin credential pool with rate-limit tracking."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List

from ..errors import ExhaustedCredentials
from ..logging import get_logger, mask_secret


@dataclass
class Credential:
    """A completion-service secret and its health counters."""

    secret: str
    last_used_at: float = 0.0
    consecutive_failures: int = 0
    rate_limited: bool = False

    def __repr__(self) -> str:
        return (
            f"Credential(secret={mask_secret(self.secret)!r}, "
            f"consecutive_failures={self.consecutive_failures}, "
            f"rate_limited={self.rate_limited})"
        )


class CredentialPool:
    """Fixed ring of credentials handed out round-robin, skipping rate-limited ones."""

    def __init__(
        self,
        secrets: Iterable[str],
        *,
        max_failures: int = 3,
        cooldown: float = 60.0,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._credentials: List[Credential] = [Credential(secret=secret) for secret in secrets]
        self.max_failures = max_failures
        self.cooldown = cooldown
        self._clock = clock or time.monotonic
        self._cursor = 0
        self._lock = threading.Lock()
        self.logger = get_logger("credentials")

    def __len__(self) -> int:
        return len(self._credentials)

    def next(self) -> Credential:
        """Return the next usable credential, reinstating any whose cooldown elapsed."""
        with self._lock:
            size = len(self._credentials)
            now = self._clock()
            for _ in range(size):
                credential = self._credentials[self._cursor]
                self._cursor = (self._cursor + 1) % size
                if credential.rate_limited and now - credential.last_used_at >= self.cooldown:
                    credential.rate_limited = False
                    credential.consecutive_failures = 0
                    self.logger.info("Reinstated credential %s", mask_secret(credential.secret))
                if not credential.rate_limited:
                    return credential
        raise ExhaustedCredentials(
            "All completion credentials are rate limited"
            if size
            else "No completion credentials configured"
        )

    def mark_failure(self, credential: Credential) -> None:
        with self._lock:
            credential.consecutive_failures += 1
            credential.last_used_at = self._clock()
            if credential.consecutive_failures >= self.max_failures and not credential.rate_limited:
                credential.rate_limited = True
                self.logger.warning(
                    "Credential %s rate limited after %d consecutive failures",
                    mask_secret(credential.secret),
                    credential.consecutive_failures,
                )

    def mark_success(self, credential: Credential) -> None:
        with self._lock:
            credential.consecutive_failures = 0
            credential.rate_limited = False
            credential.last_used_at = self._clock()

    def snapshot(self) -> List[Dict[str, object]]:
        """Return masked per-credential state for diagnostics."""
        with self._lock:
            return [
                {
                    "credential": mask_secret(credential.secret),
                    "consecutive_failures": credential.consecutive_failures,
                    "rate_limited": credential.rate_limited,
                }
                for credential in self._credentials
            ]


__all__ = ["Credential", "CredentialPool"]
