"""Tests for the credential pool."""

from __future__ import annotations

import pytest

from dockwiki.errors import ExhaustedCredentials
from dockwiki.llm.credentials import CredentialPool


def _fail(pool: CredentialPool, credential, times: int) -> None:
    for _ in range(times):
        pool.mark_failure(credential)


def test_next_rotates_round_robin(clock) -> None:
    pool = CredentialPool(["key-a", "key-b", "key-c"], clock=clock)

    secrets = [pool.next().secret for _ in range(4)]

    assert secrets == ["key-a", "key-b", "key-c", "key-a"]


def test_credential_skipped_after_three_failures(clock) -> None:
    pool = CredentialPool(["key-a", "key-b"], clock=clock)
    first = pool.next()
    assert first.secret == "key-a"

    _fail(pool, first, 2)
    assert first.rate_limited is False
    pool.mark_failure(first)
    assert first.rate_limited is True
    assert first.consecutive_failures == 3

    handed_out = {pool.next().secret for _ in range(5)}
    assert handed_out == {"key-b"}


def test_credential_reinstated_after_cooldown(clock) -> None:
    pool = CredentialPool(["key-a", "key-b"], clock=clock)
    limited = pool.next()
    _fail(pool, limited, 3)

    clock.advance(59.0)
    assert [pool.next().secret for _ in range(2)] == ["key-b", "key-b"]

    clock.advance(1.0)
    secrets = [pool.next().secret for _ in range(2)]
    assert "key-a" in secrets
    assert limited.rate_limited is False
    assert limited.consecutive_failures == 0


def test_exhausted_when_every_credential_rate_limited(clock) -> None:
    pool = CredentialPool(["key-a", "key-b", "key-c"], clock=clock)
    for _ in range(3):
        _fail(pool, pool.next(), 3)

    clock.advance(30.0)
    with pytest.raises(ExhaustedCredentials):
        pool.next()


def test_empty_pool_is_exhausted(clock) -> None:
    pool = CredentialPool([], clock=clock)

    with pytest.raises(ExhaustedCredentials):
        pool.next()


def test_mark_success_resets_failure_tally(clock) -> None:
    pool = CredentialPool(["key-a"], clock=clock)
    credential = pool.next()
    _fail(pool, credential, 2)

    pool.mark_success(credential)
    pool.mark_failure(credential)

    assert credential.consecutive_failures == 1
    assert credential.rate_limited is False
    assert pool.next() is credential


def test_thresholds_are_configurable(clock) -> None:
    pool = CredentialPool(["key-a", "key-b"], max_failures=1, cooldown=5.0, clock=clock)
    credential = pool.next()
    pool.mark_failure(credential)
    assert credential.rate_limited is True

    clock.advance(5.0)
    assert {pool.next().secret for _ in range(2)} == {"key-a", "key-b"}


def test_snapshot_and_repr_mask_secrets(clock) -> None:
    pool = CredentialPool(["gsk_supersecretvalue"], clock=clock)
    credential = pool.next()

    assert "supersecretvalue" not in repr(credential)
    snapshot = pool.snapshot()
    assert snapshot == [
        {"credential": "gsk_supe…", "consecutive_failures": 0, "rate_limited": False}
    ]
