"""Pipeline settings and provider snapshot.

All policy constants (rate interval, cache TTL, fuzzy-match threshold, retry
budget) live here so they can be tuned per deployment through the environment.
"""

from __future__ import annotations

import os

from pydantic import BaseModel, Field

from dateplanner.security.key_manager import EVENTBRITE_KEY, TICKETMASTER_KEY, get_key_manager

_TRUTHY = {"1", "true", "yes", "on"}

GROQ_BASE_URL = "https://api.groq.com/openai/v1"
GROQ_DEFAULT_MODEL = "llama-3.1-8b-instant"


def _is_enabled(value: str | None) -> bool:
    return bool(value and value.strip().lower() in _TRUTHY)


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


class PipelineSettings(BaseModel):
    llm_base_url: str = Field(default=GROQ_BASE_URL)
    llm_model: str = Field(default=GROQ_DEFAULT_MODEL)
    llm_timeout_seconds: float = Field(default=30.0, gt=0)

    rate_gate_min_interval_seconds: float = Field(default=2.0, ge=0)
    rate_gate_safety_margin_seconds: float = Field(default=0.1, ge=0)

    cache_ttl_seconds: float = Field(default=300.0, gt=0)

    generation_max_retries: int = Field(default=3, ge=0)
    generation_base_delay_seconds: float = Field(default=2.0, ge=0)

    fusion_similarity_threshold: float = Field(default=0.70, ge=0, le=1)
    curated_events_limit: int = Field(default=15, ge=1)

    event_search_window_days: int = Field(default=14, ge=1)
    event_search_radius_miles: int = Field(default=10, ge=1)
    catalog_timeout_seconds: float = Field(default=15.0, gt=0)


def load_settings() -> PipelineSettings:
    """Build settings from the environment, falling back to defaults."""
    return PipelineSettings(
        llm_base_url=os.getenv("LLM_BASE_URL", GROQ_BASE_URL).strip() or GROQ_BASE_URL,
        llm_model=os.getenv("LLM_MODEL", GROQ_DEFAULT_MODEL).strip() or GROQ_DEFAULT_MODEL,
        llm_timeout_seconds=_float_env("LLM_TIMEOUT_SECONDS", 30.0),
        rate_gate_min_interval_seconds=_float_env("RATE_GATE_MIN_INTERVAL_SECONDS", 2.0),
        rate_gate_safety_margin_seconds=_float_env("RATE_GATE_SAFETY_MARGIN_SECONDS", 0.1),
        cache_ttl_seconds=_float_env("CACHE_TTL_SECONDS", 300.0),
        generation_max_retries=_int_env("GENERATION_MAX_RETRIES", 3),
        generation_base_delay_seconds=_float_env("GENERATION_BASE_DELAY_SECONDS", 2.0),
        fusion_similarity_threshold=_float_env("FUSION_SIMILARITY_THRESHOLD", 0.70),
        curated_events_limit=_int_env("CURATED_EVENTS_LIMIT", 15),
        event_search_window_days=_int_env("EVENT_SEARCH_WINDOW_DAYS", 14),
        event_search_radius_miles=_int_env("EVENT_SEARCH_RADIUS_MILES", 10),
        catalog_timeout_seconds=_float_env("CATALOG_TIMEOUT_SECONDS", 15.0),
    )


def resolve_llm_provider() -> str:
    return "groq" if get_key_manager().has_generation_key() else "template"


def resolve_catalog_providers() -> dict[str, str]:
    km = get_key_manager()
    return {
        "ticketmaster": "live" if km.is_configured(TICKETMASTER_KEY) else "disabled",
        "eventbrite": "live" if km.is_configured(EVENTBRITE_KEY) else "disabled",
    }


def docs_enabled() -> bool:
    return _is_enabled(os.getenv("ENABLE_DOCS"))


class ProviderSnapshot(BaseModel):
    llm_provider: str = Field(default="template")
    ticketmaster: str = Field(default="disabled")
    eventbrite: str = Field(default="disabled")


def resolve_provider_snapshot() -> ProviderSnapshot:
    catalogs = resolve_catalog_providers()
    return ProviderSnapshot(
        llm_provider=resolve_llm_provider(),
        ticketmaster=catalogs["ticketmaster"],
        eventbrite=catalogs["eventbrite"],
    )


__all__ = [
    "PipelineSettings",
    "ProviderSnapshot",
    "docs_enabled",
    "load_settings",
    "resolve_provider_snapshot",
]
