from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

EMBEDDING_PROVIDERS = {"simple", "sentence_transformers", "openai"}


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    rate_limit: str
    rate_limit_enabled: bool
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    embedding_provider: str
    embedding_model: str | None
    embedding_cache_max_entries: int
    scoring_timeout_s: float
    score_cache_enabled: bool
    score_cache_ttl_minutes: int
    score_cache_max_entries: int
    max_payload_bytes: int


settings = Settings(
    api_key=_get_env("API_KEY"),
    rate_limit=_get_env("RATE_LIMIT", "30/minute") or "30/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
        ],
    ),
    cors_allow_origin_regex=_get_env("CORS_ALLOW_ORIGIN_REGEX"),
    embedding_provider=(_get_env("EMBEDDING_PROVIDER", "simple") or "simple").strip().lower(),
    embedding_model=_get_env("EMBEDDING_MODEL"),
    embedding_cache_max_entries=_get_env_int("EMBEDDING_CACHE_MAX_ENTRIES", 2048),
    scoring_timeout_s=_get_env_float("SCORING_TIMEOUT_S", 30.0),
    score_cache_enabled=_get_env_bool("SCORE_CACHE_ENABLED", True),
    score_cache_ttl_minutes=_get_env_int("SCORE_CACHE_TTL_MINUTES", 60),
    score_cache_max_entries=_get_env_int("SCORE_CACHE_MAX_ENTRIES", 1000),
    max_payload_bytes=_get_env_int("MAX_PAYLOAD_BYTES", 500 * 1024),
)

if settings.embedding_provider not in EMBEDDING_PROVIDERS:
    raise RuntimeError(
        "EMBEDDING_PROVIDER must be one of: " + ", ".join(sorted(EMBEDDING_PROVIDERS)) + "."
    )

if settings.scoring_timeout_s <= 0:
    raise RuntimeError("SCORING_TIMEOUT_S must be greater than 0.")
