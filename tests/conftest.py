"""pytest global fixtures: isolation from real upstream services."""

from __future__ import annotations

from typing import Any, Optional

import pytest

from dateplanner.security.key_manager import MANAGED_KEY_NAMES, get_key_manager


@pytest.fixture(autouse=True)
def no_real_apis(monkeypatch):
    """Tests never reach Groq, Ticketmaster or Eventbrite."""
    for name in MANAGED_KEY_NAMES:
        monkeypatch.delenv(name, raising=False)
    from dateplanner.infrastructure.llm_factory import reset_provider

    km = get_key_manager()
    for name in MANAGED_KEY_NAMES:
        km.reload(name)

    reset_provider()
    yield
    reset_provider()


class FakeClock:
    """Manual clock; ``sleep`` records the delay and advances time."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class ScriptedProvider:
    """Generation provider replaying a script; the last entry repeats."""

    def __init__(self, *script: Any):
        self.script = list(script)
        self.calls: list[dict[str, Any]] = []

    async def complete(self, system_prompt: str, user_prompt: str, temperature: float, max_tokens: int) -> str:
        self.calls.append({
            "system": system_prompt,
            "user": user_prompt,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, BaseException):
            raise item
        if callable(item):
            return await item()
        return item


class FakeCatalog:
    def __init__(self, name: str, records: Any = None, error: Optional[Exception] = None):
        self.name = name
        self.records = list(records or [])
        self.error = error
        self.calls = 0

    async def search(self, location, radius, window):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.records)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_ctx(fake_clock):
    """Build an AppContext around fakes; the rate gate and backoff share ``fake_clock``."""
    from dateplanner.application.context import make_app_context
    from dateplanner.config.settings import PipelineSettings
    from dateplanner.infrastructure.cache import TTLCache
    from dateplanner.infrastructure.rate_gate import RateGate

    def _make(provider=None, catalogs=None, **overrides):
        settings = PipelineSettings(**overrides)
        gate = RateGate(
            settings.rate_gate_min_interval_seconds,
            settings.rate_gate_safety_margin_seconds,
            clock=fake_clock,
            sleep=fake_clock.sleep,
        )
        return make_app_context(
            settings,
            provider=provider,
            catalogs=catalogs or [],
            rate_gate=gate,
            cache=TTLCache(ttl=settings.cache_ttl_seconds, clock=fake_clock),
            sleep=fake_clock.sleep,
        )

    return _make


@pytest.fixture
def scripted():
    return ScriptedProvider


@pytest.fixture
def fake_catalog():
    return FakeCatalog
