"""HTTP transport for OpenAI-compatible chat completion endpoints."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Callable, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen


class TransportError(RuntimeError):
    """Raised when an endpoint times out, rejects the call, or returns garbage."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


@dataclass
class LLMRequest:
    """Represents a single chat completion call."""

    prompt: str
    system: Optional[str]
    model: str
    base_url: str
    api_key: Optional[str]
    temperature: Optional[float]
    max_tokens: Optional[int]
    request_timeout: float


Transport = Callable[[LLMRequest], str]


def http_transport(request: LLMRequest) -> str:
    """POST the request to ``{base_url}/chat/completions`` and return the message text."""
    endpoint = f"{request.base_url.rstrip('/')}/chat/completions"
    payload: dict[str, object] = {
        "model": request.model,
        "messages": build_messages(request.system, request.prompt),
        "stream": False,
    }
    if request.temperature is not None:
        payload["temperature"] = request.temperature
    if request.max_tokens is not None:
        payload["max_tokens"] = request.max_tokens

    data = json.dumps(payload).encode("utf-8")
    headers = {"Content-Type": "application/json"}
    if request.api_key:
        headers["Authorization"] = f"Bearer {request.api_key}"

    http_request = Request(endpoint, data=data, headers=headers, method="POST")

    try:
        with urlopen(http_request, timeout=request.request_timeout) as response:  # type: ignore[arg-type]
            raw = response.read()
    except HTTPError as exc:
        detail = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
        message = detail.strip() or exc.reason
        raise TransportError(
            f"{endpoint} failed with status {exc.code}: {message}", status=exc.code
        ) from exc
    except URLError as exc:
        raise TransportError(f"{endpoint} unreachable: {exc.reason}") from exc
    except TimeoutError as exc:
        raise TransportError(
            f"{endpoint} timed out after {request.request_timeout:g}s"
        ) from exc

    try:
        response_payload = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise TransportError(f"{endpoint} returned invalid JSON") from exc

    content = extract_content(response_payload)
    if not content.strip():
        raise TransportError(f"{endpoint} returned an empty completion")
    return content.strip()


def build_messages(system: str | None, prompt: str) -> list[dict[str, str]]:
    messages: list[dict[str, str]] = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})
    return messages


def extract_content(payload: object) -> str:
    if not isinstance(payload, dict):
        return ""
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    message = first.get("message")
    if isinstance(message, dict):
        content = message.get("content")
        if isinstance(content, str):
            return content
    text = first.get("text")
    if isinstance(text, str):
        return text
    return ""


__all__ = [
    "LLMRequest",
    "Transport",
    "TransportError",
    "build_messages",
    "extract_content",
    "http_transport",
]
