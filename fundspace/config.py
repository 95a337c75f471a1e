"""Runtime configuration loaded from environment variables.

Entry points call ``load_dotenv()`` before ``Settings.from_env()`` so a local
``.env`` file can provide any of the variables below.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional


IMAGE_POLICY_FALLBACK = "fallback"
IMAGE_POLICY_EXCLUDE = "exclude"
IMAGE_POLICIES = (IMAGE_POLICY_FALLBACK, IMAGE_POLICY_EXCLUDE)

DEFAULT_USER_AGENT = "FundSpace-RSS/1.0 (+https://fundspace.org; RSS reader)"


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")
    return value


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be > 0, got {value}")
    return value


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def resolve_news_api_key(env: Mapping[str, str]) -> Optional[str]:
    """Primary ``NEWS_API_KEY``, then the ``NEWSAPI_KEY`` alias. No built-in default."""
    for name in ("NEWS_API_KEY", "NEWSAPI_KEY"):
        value = (env.get(name) or "").strip()
        if value:
            return value
    return None


@dataclass(frozen=True)
class Settings:
    fetch_timeout: float = 10.0
    fetch_workers: int = 8
    cache_ttl: float = 300.0
    result_limit: int = 10
    items_per_feed: int = 8
    image_policy: str = IMAGE_POLICY_FALLBACK
    user_agent: str = DEFAULT_USER_AGENT
    news_api_key: Optional[str] = None
    rate_limit: str = "300 per hour"
    rate_limit_enabled: bool = True
    snapshot_dir: Optional[str] = None
    worker_interval_minutes: int = 10
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.image_policy not in IMAGE_POLICIES:
            raise ValueError(
                f"image_policy must be one of {', '.join(IMAGE_POLICIES)}, got {self.image_policy!r}"
            )
        if self.fetch_workers < 1:
            raise ValueError("fetch_workers must be >= 1")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        return cls(
            fetch_timeout=_env_float(env, "RSS_FETCH_TIMEOUT", 10.0),
            fetch_workers=_env_int(env, "RSS_FETCH_WORKERS", 8),
            cache_ttl=_env_float(env, "RSS_CACHE_TTL", 300.0),
            result_limit=_env_int(env, "RSS_RESULT_LIMIT", 10),
            items_per_feed=_env_int(env, "RSS_ITEMS_PER_FEED", 8),
            image_policy=(env.get("RSS_IMAGE_POLICY") or IMAGE_POLICY_FALLBACK).strip().lower(),
            user_agent=(env.get("RSS_USER_AGENT") or DEFAULT_USER_AGENT).strip(),
            news_api_key=resolve_news_api_key(env),
            rate_limit=(env.get("API_RATE_LIMIT") or "300 per hour").strip(),
            rate_limit_enabled=_env_bool(env, "RATELIMIT_ENABLED", True),
            snapshot_dir=(env.get("RSS_SNAPSHOT_DIR") or "").strip() or None,
            worker_interval_minutes=_env_int(env, "RSS_WORKER_INTERVAL_MINUTES", 10),
            log_level=(env.get("LOG_LEVEL") or "INFO").strip().upper(),
        )
