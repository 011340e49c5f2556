from __future__ import annotations

import pytest

from dateplanner.config.settings import GROQ_BASE_URL, load_settings, resolve_provider_snapshot
from dateplanner.infrastructure.llm_factory import (
    ChatCompletionProvider,
    build_provider,
    get_provider,
    parse_retry_after,
)
from dateplanner.security.key_manager import get_key_manager


def test_settings_defaults():
    settings = load_settings()
    assert settings.llm_base_url == GROQ_BASE_URL
    assert settings.rate_gate_min_interval_seconds == 2.0
    assert settings.cache_ttl_seconds == 300.0
    assert settings.generation_max_retries == 3
    assert settings.fusion_similarity_threshold == pytest.approx(0.70)
    assert settings.curated_events_limit == 15


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("RATE_GATE_MIN_INTERVAL_SECONDS", "5")
    monkeypatch.setenv("GENERATION_MAX_RETRIES", "1")
    monkeypatch.setenv("FUSION_SIMILARITY_THRESHOLD", "0.5")
    monkeypatch.setenv("CACHE_TTL_SECONDS", "not-a-number")

    settings = load_settings()

    assert settings.rate_gate_min_interval_seconds == 5.0
    assert settings.generation_max_retries == 1
    assert settings.fusion_similarity_threshold == 0.5
    assert settings.cache_ttl_seconds == 300.0


def test_provider_snapshot_follows_keys(monkeypatch):
    assert resolve_provider_snapshot().model_dump() == {
        "llm_provider": "template",
        "ticketmaster": "disabled",
        "eventbrite": "disabled",
    }
    monkeypatch.setenv("GROQ_API_KEY", "gsk_test_value")
    monkeypatch.setenv("EVENTBRITE_API_KEY", "eb")
    snap = resolve_provider_snapshot()
    assert snap.llm_provider == "groq"
    assert snap.eventbrite == "live"


def test_no_key_means_no_provider():
    assert build_provider(load_settings()) is None
    assert get_provider() is None


def test_key_builds_chat_provider(monkeypatch):
    monkeypatch.setenv("GROQ_API_KEY", "gsk_test_value")
    monkeypatch.setenv("LLM_MODEL", "llama-3.3-70b-versatile")
    get_key_manager().reload("GROQ_API_KEY")

    provider = build_provider(load_settings())

    assert isinstance(provider, ChatCompletionProvider)
    assert provider.model == "llama-3.3-70b-versatile"


@pytest.mark.parametrize(
    "headers,message,expected",
    [
        ({"retry-after": "12"}, "", 12.0),
        (None, "Rate limit reached. Please try again in 7.5s.", 7.5),
        (None, "Please try again in 1m30s", 90.0),
        (None, "Please try again in 250ms", 0.25),
        ({"retry-after": "soon"}, "nothing here", None),
        (None, "", None),
    ],
)
def test_parse_retry_after(headers, message, expected):
    assert parse_retry_after(headers, message) == (pytest.approx(expected) if expected is not None else None)
