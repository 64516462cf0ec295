# Configuration and settings for the scam detector
#
# Settings are a plain dataclass built by a cached factory that reads
# environment variables. Every field accepts an UPPERCASE or lowercase alias.

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional


_def_true = {"1", "true", "yes", "y", "on"}
_def_false = {"0", "false", "no", "n", "off"}

DEFAULT_GOLDRUSH_API_URL = "https://api.covalenthq.com/v1"


def _get_env_any(keys: list[str], default: Optional[str] = None) -> Optional[str]:
    for k in keys:
        v = os.getenv(k)
        if v is not None:
            return v
    return default


def _aliases(name: str) -> list[str]:
    return [name.upper(), name.lower()]


def _get_bool(keys: list[str], default: bool) -> bool:
    raw = _get_env_any(keys)
    if raw is None:
        return default
    lower = raw.strip().lower()
    if lower in _def_true:
        return True
    if lower in _def_false:
        return False
    return bool(lower)


def _get_int(keys: list[str], default: int) -> int:
    raw = _get_env_any(keys)
    if raw is None:
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def _get_float(keys: list[str], default: float) -> float:
    raw = _get_env_any(keys)
    if raw is None:
        return default
    try:
        return float(raw)
    except (TypeError, ValueError):
        return default


def _get_list(keys: list[str]) -> List[str]:
    raw = _get_env_any(keys)
    if not raw:
        return []
    return [part.strip().lower() for part in raw.split(",") if part.strip()]


@dataclass
class Settings:
    """Runtime configuration for the collector, workflow and HTTP surface.

    Environment variables (case-insensitive aliases):
    - ENVIRONMENT
    - GOLDRUSH_API_URL / GOLDRUSH_API_KEY
    - BACKEND_API_KEY
    - REQUEST_TIMEOUT_SECONDS / REQUEST_VERIFY_TLS
    - PAGE_SIZE / MAX_PAGES
    - OPENAI_API_KEY / OPENAI_MODEL
    - ADVISORY_ENABLED / ADVISORY_CONFIDENCE / ADVISORY_TEMPERATURE
    - EXTRA_DEX_ROUTERS (comma separated addresses)
    - LOG_LEVEL
    """

    environment: str = "development"

    # Transaction data provider
    goldrush_api_url: str = DEFAULT_GOLDRUSH_API_URL
    goldrush_api_key: Optional[str] = None

    # Optional API key guarding the HTTP routes
    backend_api_key: Optional[str] = None

    # HTTP behavior
    request_timeout_seconds: int = 30
    request_verify_tls: bool = True
    page_size: int = 100
    max_pages: int = 10

    # Advisory text analysis
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-3.5-turbo"
    advisory_enabled: bool = True
    advisory_confidence: float = 0.8
    advisory_temperature: float = 0.3

    # Routers classified as DEX-bound without a known venue label
    extra_dex_routers: List[str] = field(default_factory=list)

    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment with sensible defaults.

    Values are cached for the process lifetime. Call get_settings.cache_clear()
    to pick up changes.
    """
    return Settings(
        environment=_get_env_any(_aliases("environment"), "development") or "development",
        goldrush_api_url=(
            _get_env_any(_aliases("goldrush_api_url"), DEFAULT_GOLDRUSH_API_URL)
            or DEFAULT_GOLDRUSH_API_URL
        ).rstrip("/"),
        goldrush_api_key=_get_env_any(_aliases("goldrush_api_key"), None),
        backend_api_key=_get_env_any(_aliases("backend_api_key"), None),
        request_timeout_seconds=_get_int(_aliases("request_timeout_seconds"), 30),
        request_verify_tls=_get_bool(_aliases("request_verify_tls"), True),
        page_size=_get_int(_aliases("page_size"), 100),
        max_pages=_get_int(_aliases("max_pages"), 10),
        openai_api_key=_get_env_any(_aliases("openai_api_key"), None),
        openai_model=_get_env_any(_aliases("openai_model"), "gpt-3.5-turbo") or "gpt-3.5-turbo",
        advisory_enabled=_get_bool(_aliases("advisory_enabled"), True),
        advisory_confidence=_get_float(_aliases("advisory_confidence"), 0.8),
        advisory_temperature=_get_float(_aliases("advisory_temperature"), 0.3),
        extra_dex_routers=_get_list(_aliases("extra_dex_routers")),
        log_level=_get_env_any(_aliases("log_level"), "INFO") or "INFO",
    )
