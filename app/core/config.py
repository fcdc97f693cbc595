"""Environment-backed settings for the Company Search Aggregator.

Credentials are only ever read here. The search service receives them as an
explicit ``provider_credentials`` mapping so adapters can be constructed
with test keys without touching the process environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache

from dotenv import load_dotenv

# Provider registration order; also the left-biased merge order.
PROVIDER_ORDER: tuple[str, ...] = ("apollo", "pdl", "prospeo")

PROVIDER_ENV_VARS: dict[str, str] = {
    "apollo": "APOLLO_API_KEY",
    "pdl": "PDL_API_KEY",
    "prospeo": "PROSPEO_API_KEY",
}

DEFAULT_PROVIDER_TIMEOUT = 30.0
DEFAULT_SOCIAL_SCRAPE_TIMEOUT = 5.0
DEFAULT_ENRICHMENT_BATCH_SIZE = 15
DEFAULT_SOCIAL_SCRAPE_LIMIT = 15


def _clean(value: str | None) -> str:
    return (value or "").strip()


def _float_env(name: str, default: float) -> float:
    raw = _clean(os.getenv(name))
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    raw = _clean(os.getenv(name))
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class Settings:
    """Runtime settings for one process."""

    provider_credentials: dict[str, str] = field(default_factory=dict)
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_model: str = "google/gemini-2.0-flash-001"
    openrouter_site_url: str = ""
    openrouter_app_name: str = ""
    supabase_url: str = ""
    supabase_anon_key: str = ""
    provider_timeout: float = DEFAULT_PROVIDER_TIMEOUT
    social_scrape_timeout: float = DEFAULT_SOCIAL_SCRAPE_TIMEOUT
    enrichment_batch_size: int = DEFAULT_ENRICHMENT_BATCH_SIZE
    social_scrape_limit: int = DEFAULT_SOCIAL_SCRAPE_LIMIT

    @property
    def configured_providers(self) -> list[str]:
        """Provider names with a non-blank credential, in registration order."""
        return [
            name for name in PROVIDER_ORDER
            if _clean(self.provider_credentials.get(name))
        ]

    @property
    def has_llm(self) -> bool:
        return bool(self.openrouter_api_key)

    @property
    def has_auth_backend(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load and cache settings from the environment."""
    load_dotenv()

    credentials = {
        name: _clean(os.getenv(env_var))
        for name, env_var in PROVIDER_ENV_VARS.items()
    }

    return Settings(
        provider_credentials={k: v for k, v in credentials.items() if v},
        openrouter_api_key=_clean(os.getenv("OPENROUTER_API_KEY")),
        openrouter_base_url=_clean(os.getenv("OPENROUTER_BASE_URL")) or "https://openrouter.ai/api/v1",
        openrouter_model=_clean(os.getenv("OPENROUTER_MODEL")) or "google/gemini-2.0-flash-001",
        openrouter_site_url=_clean(os.getenv("OPENROUTER_SITE_URL")),
        openrouter_app_name=_clean(os.getenv("OPENROUTER_APP_NAME")),
        supabase_url=_clean(os.getenv("SUPABASE_URL")),
        supabase_anon_key=_clean(os.getenv("SUPABASE_ANON_KEY")),
        provider_timeout=_float_env("PROVIDER_TIMEOUT", DEFAULT_PROVIDER_TIMEOUT),
        social_scrape_timeout=_float_env("SOCIAL_SCRAPE_TIMEOUT", DEFAULT_SOCIAL_SCRAPE_TIMEOUT),
        enrichment_batch_size=_int_env("ENRICHMENT_BATCH_SIZE", DEFAULT_ENRICHMENT_BATCH_SIZE),
        social_scrape_limit=_int_env("SOCIAL_SCRAPE_LIMIT", DEFAULT_SOCIAL_SCRAPE_LIMIT),
    )
