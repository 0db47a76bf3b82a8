from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

_HERE = Path(__file__).resolve()
_PROJECT_ROOT = _HERE.parents[1]

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 LinkTrust/1.0"
)


@dataclass(frozen=True)
class Settings:
    safe_browsing_api_key: str | None = None
    tls_timeout_s: float = 5.0
    probe_timeout_s: float = 3.0
    probe_attempts: int = 2
    retry_backoff_s: float = 1.0
    classifier_timeout_s: float = 5.0
    cache_ttl_hours: float = 24.0
    sweep_interval_s: float = 3600.0
    batch_cap: int = 50
    batch_concurrency: int = 8
    user_agent: str = DEFAULT_USER_AGENT
    log_level: str = "INFO"
    log_json: bool = False


def _env_str(name: str) -> str | None:
    raw = os.getenv(name, "").strip()
    return raw or None


def _env_float(name: str, default: float, minimum: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return max(minimum, float(raw))
    except ValueError:
        return default


def _env_int(name: str, default: int, minimum: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return max(minimum, int(raw))
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


def load_settings() -> Settings:
    """Build settings from the environment.

    A `.env` file at the project root is loaded first (without overriding
    variables that are already set), so local development works without
    exporting anything.
    """
    load_dotenv(_PROJECT_ROOT / ".env", override=False)

    return Settings(
        safe_browsing_api_key=_env_str("LINKTRUST_SAFE_BROWSING_API_KEY"),
        tls_timeout_s=_env_float("LINKTRUST_TLS_TIMEOUT_S", 5.0, 0.5),
        probe_timeout_s=_env_float("LINKTRUST_PROBE_TIMEOUT_S", 3.0, 0.5),
        probe_attempts=_env_int("LINKTRUST_PROBE_ATTEMPTS", 2, 1),
        retry_backoff_s=_env_float("LINKTRUST_RETRY_BACKOFF_S", 1.0, 0.0),
        classifier_timeout_s=_env_float("LINKTRUST_CLASSIFIER_TIMEOUT_S", 5.0, 0.5),
        cache_ttl_hours=_env_float("LINKTRUST_CACHE_TTL_HOURS", 24.0, 0.01),
        sweep_interval_s=_env_float("LINKTRUST_SWEEP_INTERVAL_S", 3600.0, 1.0),
        batch_cap=_env_int("LINKTRUST_BATCH_CAP", 50, 1),
        batch_concurrency=_env_int("LINKTRUST_BATCH_CONCURRENCY", 8, 1),
        user_agent=_env_str("LINKTRUST_USER_AGENT") or DEFAULT_USER_AGENT,
        log_level=(_env_str("LINKTRUST_LOG_LEVEL") or "INFO").upper(),
        log_json=_env_bool("LINKTRUST_LOG_JSON", False),
    )
