"""Tests for the primary/fallback completion client."""

from __future__ import annotations

import pytest

from dockwiki.config import (
    DEFAULT_FALLBACK_BASE_URL,
    DEFAULT_PRIMARY_BASE_URL,
    CompletionConfig,
    EndpointConfig,
)
from dockwiki.errors import CompletionUnavailable, ExhaustedCredentials
from dockwiki.failsafe import placeholder_description
from dockwiki.llm.client import CompletionClient
from dockwiki.llm.credentials import CredentialPool
from dockwiki.llm.runner import TransportError
from dockwiki.prompting import PromptBuilder
from tests._fixtures.fakes import ScriptedTransport

PRIMARY = EndpointConfig(base_url="https://primary.test/v1", model="mixtral-8x7b-32768")
FALLBACK = EndpointConfig(base_url="http://127.0.0.1:1234/v1", model="qwen2.5-coder-7b-instruct")


def _client(transport, pool: CredentialPool) -> CompletionClient:
    return CompletionClient(
        pool,
        primary=PRIMARY,
        fallback=FALLBACK,
        request_timeout=30.0,
        transport=transport,
    )


def test_primary_success_marks_credential_healthy(clock) -> None:
    pool = CredentialPool(["key-a"], clock=clock)
    credential = pool.next()
    pool.mark_failure(credential)
    transport = ScriptedTransport({PRIMARY.base_url: "  Adds two numbers.  "})

    result = _client(transport, pool).complete("describe add")

    assert result == "Adds two numbers."
    assert credential.consecutive_failures == 0
    request = transport.requests[0]
    assert request.api_key == "key-a"
    assert request.model == "mixtral-8x7b-32768"
    assert request.request_timeout == 30.0
    assert transport.calls_to(FALLBACK.base_url) == []


def test_primary_failure_uses_fallback_exactly_once(clock) -> None:
    pool = CredentialPool(["key-a"], clock=clock)
    transport = ScriptedTransport(
        {
            PRIMARY.base_url: TransportError("status 429", status=429),
            FALLBACK.base_url: "Local model answer",
        }
    )
    client = _client(transport, pool)

    result = client.complete("describe add")

    assert result == "Local model answer"
    assert len(transport.calls_to(PRIMARY.base_url)) == 1
    fallback_calls = transport.calls_to(FALLBACK.base_url)
    assert len(fallback_calls) == 1
    assert fallback_calls[0].model == "qwen2.5-coder-7b-instruct"
    assert fallback_calls[0].api_key is None
    assert client.fallback_count == 1
    assert pool.snapshot()[0]["consecutive_failures"] == 1
    assert [attempt.ok for attempt in client.last_attempts] == [False, True]


def test_both_endpoints_failing_raises_with_primary_cause(clock) -> None:
    pool = CredentialPool(["key-a"], clock=clock)
    primary_error = TransportError("primary timed out")
    transport = ScriptedTransport(
        {
            PRIMARY.base_url: primary_error,
            FALLBACK.base_url: TransportError("connection refused"),
        }
    )

    with pytest.raises(CompletionUnavailable) as excinfo:
        _client(transport, pool).complete("describe add")

    assert excinfo.value.__cause__ is primary_error
    attempts = excinfo.value.attempts
    assert [attempt.endpoint for attempt in attempts] == [PRIMARY.base_url, FALLBACK.base_url]
    assert all(not attempt.ok for attempt in attempts)
    assert "connection refused" in str(excinfo.value)
    assert len(transport.calls_to(PRIMARY.base_url)) == 1


def test_best_effort_returns_placeholder_naming_function(clock) -> None:
    pool = CredentialPool(["key-a"], clock=clock)
    transport = ScriptedTransport(
        {
            PRIMARY.base_url: TransportError("bad gateway", status=502),
            FALLBACK.base_url: TransportError("offline"),
        }
    )

    result = _client(transport, pool).complete("describe", best_effort=True, subject="parseConfig")

    assert result == placeholder_description("parseConfig")
    assert "parseConfig" in result


def test_empty_primary_body_counts_as_failure(clock) -> None:
    pool = CredentialPool(["key-a"], clock=clock)
    transport = ScriptedTransport({PRIMARY.base_url: "   ", FALLBACK.base_url: "fallback text"})

    assert _client(transport, pool).complete("describe") == "fallback text"
    assert pool.snapshot()[0]["consecutive_failures"] == 1


def test_exhausted_credentials_surface_without_any_call(clock) -> None:
    pool = CredentialPool(["key-a"], clock=clock)
    credential = pool.next()
    for _ in range(3):
        pool.mark_failure(credential)
    transport = ScriptedTransport({PRIMARY.base_url: "unused", FALLBACK.base_url: "unused"})

    with pytest.raises(ExhaustedCredentials):
        _client(transport, pool).complete("describe", best_effort=True, subject="f")

    assert transport.requests == []


def test_repeated_primary_failures_rate_limit_the_credential(clock) -> None:
    pool = CredentialPool(["key-a", "key-b"], clock=clock)

    def primary(request):
        if request.api_key == "key-a":
            raise TransportError("status 429", status=429)
        return "ok"

    transport = ScriptedTransport(
        {
            PRIMARY.base_url: primary,
            FALLBACK.base_url: "fallback",
        }
    )
    client = _client(transport, pool)

    for _ in range(6):
        client.complete("describe")

    keys_used = [request.api_key for request in transport.calls_to(PRIMARY.base_url)]
    assert keys_used[:6] == ["key-a", "key-b", "key-a", "key-b", "key-a", "key-b"]
    assert pool.snapshot()[0]["rate_limited"] is True

    client.complete("describe")
    assert transport.calls_to(PRIMARY.base_url)[-1].api_key == "key-b"


def test_from_config_sends_analysis_system_prompt(clock) -> None:
    transport = ScriptedTransport(
        {
            DEFAULT_PRIMARY_BASE_URL: TransportError("429 Too Many Requests", status=429),
            DEFAULT_FALLBACK_BASE_URL: "From the local model.",
        }
    )
    client = CompletionClient.from_config(
        CompletionConfig(), CredentialPool(["key-a"], clock=clock), transport=transport
    )

    assert client.complete("Describe f") == "From the local model."
    assert [request.system for request in transport.requests] == [
        PromptBuilder.SYSTEM_PROMPT,
        PromptBuilder.SYSTEM_PROMPT,
    ]
    assert transport.requests[0].temperature == 0.3
    assert transport.requests[1].max_tokens == 500
