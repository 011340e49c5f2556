"""Event discovery: catalog fan-out, fusion, optional AI curation."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from dateplanner.application.context import AppContext
from dateplanner.application.fallbacks import fallback_event_list, rank_events
from dateplanner.domain.enums import ResultSource
from dateplanner.domain.models import EventRecord, EventSearchResult
from dateplanner.events.fusion import fuse
from dateplanner.events.interfaces import DateWindow
from dateplanner.infrastructure.cache import make_cache_key
from dateplanner.security.redact import redact_sensitive
from dateplanner.services.planning_service import CURATION_CEILING, coerce_profile, curate_events

_logger = logging.getLogger("date-planner.events")


def _collect(ctx: AppContext, name: str, result: Any) -> list[EventRecord]:
    if isinstance(result, BaseException):
        safe = redact_sensitive(f"{type(result).__name__}: {result}")
        ctx.metrics.observe_catalog(name, ok=False)
        if ctx.logger:
            ctx.logger.error(f"catalog.{name}", safe)
        _logger.warning("%s search failed: %s", name, safe)
        return []
    records = list(result or [])
    ctx.metrics.observe_catalog(name, ok=True, returned=len(records))
    if ctx.logger:
        ctx.logger.catalog_call(name, returned=len(records))
    return records


async def search_events(
    ctx: AppContext,
    location: str,
    neighborhood: str = "",
    radius: Optional[int] = None,
    *,
    window: Optional[DateWindow] = None,
) -> EventSearchResult:
    """Fused catalog events for a location; never raises.

    Catalogs are queried concurrently and one failing never hides the other's
    results. When both come back empty a fixed list is served and not cached.
    """
    location = str(location or "").strip()
    radius = radius or ctx.settings.event_search_radius_miles
    key = make_cache_key("events", location, neighborhood, radius)
    cached = ctx.cache.get(key)
    if cached is not None:
        return cached.model_copy(update={"source": ResultSource.CACHE.value})

    window = window or DateWindow.upcoming(ctx.settings.event_search_window_days)
    names = [getattr(c, "name", type(c).__name__) for c in ctx.catalogs]
    results = await asyncio.gather(
        *(c.search(location, radius, window) for c in ctx.catalogs),
        return_exceptions=True,
    )
    lists = [_collect(ctx, name, result) for name, result in zip(names, results)]
    counts = {name: len(records) for name, records in zip(names, lists)}

    fused = fuse(*lists, threshold=ctx.settings.fusion_similarity_threshold)
    if not fused:
        _logger.info("no catalog events for %s, serving the fallback list", location)
        return EventSearchResult(
            location=location,
            events=fallback_event_list(location),
            source=ResultSource.FALLBACK.value,
            catalog_counts=counts,
        )

    result = EventSearchResult(location=location, events=fused, source="catalogs", catalog_counts=counts)
    ctx.cache.set(key, result)
    return result


async def discover_events(
    ctx: AppContext,
    location: str,
    neighborhood: str = "",
    radius: Optional[int] = None,
    user_profile: Any = None,
    partner_profile: Any = None,
) -> EventSearchResult:
    """Search, then curate down to a short list.

    AI curation is optional work: it runs only when the rate gate is free right
    now and is skipped (not queued) otherwise, in which case events are ranked
    by interest overlap instead.
    """
    found = await search_events(ctx, location, neighborhood, radius)
    limit = min(ctx.settings.curated_events_limit, CURATION_CEILING)
    if found.source == ResultSource.FALLBACK.value or not found.events:
        return found.model_copy(update={"events": found.events[:limit]})

    user = coerce_profile(user_profile)
    partner = coerce_profile(partner_profile)
    if ctx.provider is not None and ctx.rate_gate.try_acquire():
        events = await curate_events(ctx, found.events, user, partner, found.location, preacquired=True)
        curated_by = "ai"
    else:
        interests = [*partner.interests, *user.interests]
        events = rank_events(list(found.events), interests, limit)
        curated_by = "ranked"
    return found.model_copy(update={"events": events, "curated_by": curated_by})


__all__ = ["discover_events", "search_events"]
