"""Configuration loading for dockwiki (.dockwiki.yml plus environment overrides)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
import tempfile
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

CONFIG_FILENAME = ".dockwiki.yml"

DEFAULT_PRIMARY_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_PRIMARY_MODEL = "mixtral-8x7b-32768"
DEFAULT_FALLBACK_BASE_URL = "http://127.0.0.1:1234/v1"
DEFAULT_FALLBACK_MODEL = "qwen2.5-coder-7b-instruct"
DEFAULT_ALLOWED_EXTENSIONS = (".js", ".jsx", ".ts", ".tsx", ".py", ".java", ".cpp", ".cs")

ENV_API_KEYS = ("DOCKWIKI_API_KEYS", "GROQ_API_KEYS")
ENV_API_KEY = ("DOCKWIKI_API_KEY", "GROQ_API_KEY")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class EndpointConfig:
    """One OpenAI-compatible chat completion endpoint."""

    base_url: str
    model: str
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


@dataclass
class CompletionConfig:
    """Primary and fallback completion settings."""

    primary: EndpointConfig = field(
        default_factory=lambda: EndpointConfig(
            base_url=DEFAULT_PRIMARY_BASE_URL,
            model=DEFAULT_PRIMARY_MODEL,
            temperature=0.3,
            max_tokens=4096,
        )
    )
    fallback: EndpointConfig = field(
        default_factory=lambda: EndpointConfig(
            base_url=DEFAULT_FALLBACK_BASE_URL,
            model=DEFAULT_FALLBACK_MODEL,
            temperature=0.7,
            max_tokens=500,
        )
    )
    api_keys: List[str] = field(default_factory=list)
    request_timeout: float = 30.0
    max_failures: int = 3
    cooldown_seconds: float = 60.0
    max_workers: int = 1


@dataclass
class ScanConfig:
    """Which repository files are analysed."""

    allowed_extensions: List[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_EXTENSIONS))
    exclude_paths: List[str] = field(default_factory=list)
    max_file_size: int = 5 * 1024 * 1024


@dataclass
class WikiConfig:
    """Wiki rendering and publishing settings."""

    page_threshold: int = 5
    github_token: Optional[str] = None
    commit_message: str = "Update documentation"
    author_name: str = "Auto Documentation"
    author_email: str = "auto-doc@example.com"
    branch: str = "master"


@dataclass
class ServiceConfig:
    """HTTP service settings."""

    cors_origins: List[str] = field(default_factory=lambda: ["*"])


@dataclass
class DockWikiConfig:
    """Represents the effective settings for a dockwiki process."""

    completion: CompletionConfig = field(default_factory=CompletionConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    wiki: WikiConfig = field(default_factory=WikiConfig)
    service: ServiceConfig = field(default_factory=ServiceConfig)
    temp_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()) / "dockwiki")
    log_file: Optional[Path] = None


def load_config(
    config_path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
) -> DockWikiConfig:
    """Load configuration from disk and apply environment overrides."""
    environ = os.environ if env is None else env
    config = DockWikiConfig()

    if config_path is not None:
        config_file = _resolve_config_path(config_path)
        if config_file.exists():
            data = _read_config(config_file)
            if not isinstance(data, dict):
                raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")
            _apply_file(config, data, root=config_file.parent.resolve())

    _apply_env(config, environ)
    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _apply_file(config: DockWikiConfig, data: Dict[str, Any], *, root: Path) -> None:
    completion_data = _as_dict(data.get("completion"))
    if completion_data:
        completion = config.completion
        _apply_endpoint(completion.primary, _as_dict(completion_data.get("primary")))
        _apply_endpoint(completion.fallback, _as_dict(completion_data.get("fallback")))
        completion.api_keys = _as_str_list(completion_data.get("api_keys"))
        completion.request_timeout = _as_float(completion_data.get("request_timeout")) or completion.request_timeout
        completion.max_failures = _as_int(completion_data.get("max_failures")) or completion.max_failures
        completion.cooldown_seconds = (
            _as_float(completion_data.get("cooldown_seconds")) or completion.cooldown_seconds
        )
        completion.max_workers = max(1, _as_int(completion_data.get("max_workers")) or completion.max_workers)

    scan_data = _as_dict(data.get("scan"))
    if scan_data:
        extensions = _as_str_list(scan_data.get("allowed_extensions"))
        if extensions:
            config.scan.allowed_extensions = [_normalise_extension(ext) for ext in extensions]
        config.scan.exclude_paths = _as_str_list(scan_data.get("exclude_paths"))
        config.scan.max_file_size = _as_int(scan_data.get("max_file_size")) or config.scan.max_file_size

    wiki_data = _as_dict(data.get("wiki"))
    if wiki_data:
        wiki = config.wiki
        threshold = _as_int(wiki_data.get("page_threshold"))
        if threshold is not None:
            wiki.page_threshold = threshold
        wiki.commit_message = _as_str(wiki_data.get("commit_message")) or wiki.commit_message
        wiki.author_name = _as_str(wiki_data.get("author_name")) or wiki.author_name
        wiki.author_email = _as_str(wiki_data.get("author_email")) or wiki.author_email
        wiki.branch = _as_str(wiki_data.get("branch")) or wiki.branch

    service_data = _as_dict(data.get("service"))
    if "cors_origins" in service_data:
        config.service.cors_origins = _as_str_list(service_data.get("cors_origins"))

    temp_dir = _as_str(data.get("temp_dir"))
    if temp_dir:
        config.temp_dir = (root / temp_dir).resolve()
    log_file = _as_str(data.get("log_file"))
    if log_file:
        config.log_file = (root / log_file).resolve()


def _apply_endpoint(endpoint: EndpointConfig, data: Dict[str, Any]) -> None:
    if not data:
        return
    endpoint.base_url = _as_str(data.get("base_url")) or endpoint.base_url
    endpoint.model = _as_str(data.get("model")) or endpoint.model
    temperature = _as_float(data.get("temperature"))
    if temperature is not None:
        endpoint.temperature = temperature
    max_tokens = _as_int(data.get("max_tokens"))
    if max_tokens is not None:
        endpoint.max_tokens = max_tokens


def _apply_env(config: DockWikiConfig, env: Mapping[str, str]) -> None:
    completion = config.completion
    completion.primary.base_url = env.get("DOCKWIKI_PRIMARY_BASE_URL") or completion.primary.base_url
    completion.primary.model = env.get("DOCKWIKI_PRIMARY_MODEL") or completion.primary.model
    completion.fallback.base_url = env.get("DOCKWIKI_FALLBACK_BASE_URL") or completion.fallback.base_url
    completion.fallback.model = env.get("DOCKWIKI_FALLBACK_MODEL") or completion.fallback.model
    completion.api_keys = collect_api_keys(completion.api_keys, env)

    threshold = _as_int(env.get("DOCKWIKI_PAGE_THRESHOLD"))
    if threshold is not None:
        config.wiki.page_threshold = threshold
    config.wiki.github_token = env.get("GITHUB_TOKEN") or config.wiki.github_token

    origins = env.get("DOCKWIKI_CORS_ORIGINS")
    if origins is not None:
        config.service.cors_origins = [origin.strip() for origin in origins.split(",") if origin.strip()]

    temp_dir = env.get("DOCKWIKI_TEMP_DIR")
    if temp_dir:
        config.temp_dir = Path(temp_dir).expanduser()


def collect_api_keys(configured: Sequence[str], env: Mapping[str, str]) -> List[str]:
    """Merge configured and environment credentials, first-seen order, no duplicates."""
    candidates: List[str] = list(configured)
    for name in ENV_API_KEYS:
        candidates.extend(env.get(name, "").split(","))
    for name in ENV_API_KEY:
        candidates.append(env.get(name, ""))

    keys: List[str] = []
    for candidate in candidates:
        key = candidate.strip()
        if key and key not in keys:
            keys.append(key)
    return keys


def _normalise_extension(value: str) -> str:
    lowered = value.strip().lower()
    return lowered if lowered.startswith(".") else f".{lowered}"


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "CompletionConfig",
    "ConfigError",
    "DockWikiConfig",
    "EndpointConfig",
    "ScanConfig",
    "ServiceConfig",
    "WikiConfig",
    "collect_api_keys",
    "load_config",
]
