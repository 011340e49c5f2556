"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from dateplanner.adapters.catalog import EventbriteCatalog, TicketmasterCatalog
from dateplanner.application.orchestrator import GenerationOrchestrator
from dateplanner.config.settings import PipelineSettings, load_settings
from dateplanner.events.interfaces import EventCatalog
from dateplanner.infrastructure.cache import TTLCache
from dateplanner.infrastructure.llm_factory import GenerationProvider, get_provider
from dateplanner.infrastructure.logging import StructuredLogger, get_logger
from dateplanner.infrastructure.rate_gate import RateGate
from dateplanner.observability.generation_metrics import GenerationMetrics
from dateplanner.security.key_manager import KeyManager, get_key_manager

_UNSET: Any = object()


@dataclass
class AppContext:
    settings: PipelineSettings
    rate_gate: RateGate
    cache: TTLCache
    orchestrator: GenerationOrchestrator
    catalogs: list[EventCatalog] = field(default_factory=list)
    metrics: GenerationMetrics = field(default_factory=GenerationMetrics)
    key_manager: Optional[KeyManager] = None
    logger: Optional[StructuredLogger] = None

    @property
    def provider(self) -> Optional[GenerationProvider]:
        return self.orchestrator.provider


def default_catalogs(settings: PipelineSettings) -> list[EventCatalog]:
    return [
        TicketmasterCatalog(timeout=settings.catalog_timeout_seconds),
        EventbriteCatalog(),
    ]


def make_app_context(
    settings: Optional[PipelineSettings] = None,
    *,
    provider: Optional[GenerationProvider] = _UNSET,
    catalogs: Optional[Sequence[EventCatalog]] = None,
    rate_gate: Optional[RateGate] = None,
    cache: Optional[TTLCache] = None,
    sleep: Any = None,
) -> AppContext:
    """Wire one process-wide context. Every generation kind shares its rate gate."""
    settings = settings or load_settings()
    if provider is _UNSET:
        provider = get_provider(settings)
    if rate_gate is None:
        rate_gate = RateGate(
            settings.rate_gate_min_interval_seconds,
            settings.rate_gate_safety_margin_seconds,
        )
    if cache is None:
        cache = TTLCache(ttl=settings.cache_ttl_seconds)
    metrics = GenerationMetrics()
    logger = get_logger()
    extra = {"sleep": sleep} if sleep is not None else {}
    orchestrator = GenerationOrchestrator(
        provider,
        rate_gate,
        cache,
        settings,
        metrics=metrics,
        logger=logger,
        **extra,
    )
    return AppContext(
        settings=settings,
        rate_gate=rate_gate,
        cache=cache,
        orchestrator=orchestrator,
        catalogs=list(catalogs) if catalogs is not None else default_catalogs(settings),
        metrics=metrics,
        key_manager=get_key_manager(),
        logger=logger,
    )


__all__ = ["AppContext", "default_catalogs", "make_app_context"]
