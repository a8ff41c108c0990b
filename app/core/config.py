from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

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
    cors_allow_credentials: bool
    supabase_url: str | None
    supabase_service_role_key: str | None
    resumes_bucket: str
    storage_list_limit: int
    storage_http_timeout_s: float
    resume_id_match_threshold: float
    job_batch_size: int
    analytics_enabled: bool
    analytics_db_path: str
    analytics_retention_days: int


settings = Settings(
    api_key=_get_env("API_KEY"),
    rate_limit=_get_env("RATE_LIMIT", "30/minute") or "30/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
    ),
    cors_allow_origin_regex=_get_env("CORS_ALLOW_ORIGIN_REGEX", r"^https:\/\/[a-z0-9-]+-.*\.vercel\.app$"),
    cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", True),
    supabase_url=_get_env("SUPABASE_URL") or _get_env("NEXT_PUBLIC_SUPABASE_URL"),
    supabase_service_role_key=_get_env("SUPABASE_SERVICE_ROLE_KEY"),
    resumes_bucket=_get_env("RESUMES_BUCKET", "resumes") or "resumes",
    storage_list_limit=_get_env_int("STORAGE_LIST_LIMIT", 100),
    storage_http_timeout_s=_get_env_float("STORAGE_HTTP_TIMEOUT_S", 15.0),
    resume_id_match_threshold=_get_env_float("RESUME_ID_MATCH_THRESHOLD", 0.9),
    job_batch_size=_get_env_int("JOB_BATCH_SIZE", 5),
    analytics_enabled=_get_env_bool("ANALYTICS_ENABLED", True),
    analytics_db_path=_get_env("ANALYTICS_DB_PATH", "data/analytics.db") or "data/analytics.db",
    analytics_retention_days=_get_env_int("ANALYTICS_RETENTION_DAYS", 180),
)

if not 0.0 <= settings.resume_id_match_threshold <= 1.0:
    raise RuntimeError("RESUME_ID_MATCH_THRESHOLD must be between 0 and 1.")

if settings.storage_list_limit < 1:
    raise RuntimeError("STORAGE_LIST_LIMIT must be a positive integer.")
