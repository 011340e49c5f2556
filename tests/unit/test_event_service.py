from __future__ import annotations

import asyncio
import json

from dateplanner.domain.models import EventRecord
from dateplanner.services import event_service
from dateplanner.shared.exceptions import ToolError


def _ev(name, date="02/01/2025", **fields):
    return EventRecord(name=name, date=date, **fields)


def test_one_failing_catalog_does_not_hide_the_other(make_ctx, fake_catalog):
    broken = fake_catalog("Ticketmaster", error=ToolError("ticketmaster", "HTTP 500"))
    working = fake_catalog("Eventbrite", [_ev("Pottery Class", source="Eventbrite")])
    ctx = make_ctx(catalogs=[broken, working])

    result = asyncio.run(event_service.search_events(ctx, "Austin, TX"))

    assert [e.name for e in result.events] == ["Pottery Class"]
    assert result.source == "catalogs"
    assert result.catalog_counts == {"Ticketmaster": 0, "Eventbrite": 1}
    catalogs = ctx.metrics.snapshot()["catalogs"]
    assert catalogs["Ticketmaster"]["errors"] == 1
    assert catalogs["Eventbrite"]["returned"] == 1


def test_both_catalogs_fused(make_ctx, fake_catalog):
    tm = fake_catalog("Ticketmaster", [_ev("Jazz Night", source="Ticketmaster"), _ev("Comedy Hour", source="Ticketmaster")])
    eb = fake_catalog("Eventbrite", [_ev("Jazz Night Live", url="http://x", source="Eventbrite")])
    ctx = make_ctx(catalogs=[tm, eb])

    result = asyncio.run(event_service.search_events(ctx, "Austin, TX"))

    assert len(result.events) == 2
    jazz = result.events[0]
    assert jazz.source == "Combined"
    assert jazz.url == "http://x"


def test_results_are_cached_per_location(make_ctx, fake_catalog):
    tm = fake_catalog("Ticketmaster", [_ev("Jazz Night", source="Ticketmaster")])
    ctx = make_ctx(catalogs=[tm])

    asyncio.run(event_service.search_events(ctx, "Austin, TX", radius=10))
    again = asyncio.run(event_service.search_events(ctx, "AUSTIN, tx", radius=10))

    assert again.source == "cache"
    assert tm.calls == 1


def test_empty_catalogs_serve_uncached_fallback_list(make_ctx, fake_catalog):
    tm = fake_catalog("Ticketmaster", [])
    eb = fake_catalog("Eventbrite", error=RuntimeError("boom"))
    ctx = make_ctx(catalogs=[tm, eb])

    result = asyncio.run(event_service.search_events(ctx, "Austin, TX"))

    assert result.source == "fallback"
    assert len(result.events) == 5
    assert all(e.source == "Curated" for e in result.events)
    assert len(ctx.cache) == 0


def test_discover_without_provider_ranks_by_interest(make_ctx, fake_catalog):
    tm = fake_catalog("Ticketmaster", [
        _ev("Business Networking", category="Business", source="Ticketmaster"),
        _ev("Jazz Night", category="Music", source="Ticketmaster"),
    ])
    ctx = make_ctx(catalogs=[tm])

    result = asyncio.run(event_service.discover_events(
        ctx, "Austin, TX", partner_profile={"interests": "jazz, music"},
    ))

    assert result.curated_by == "ranked"
    assert result.events[0].name == "Jazz Night"


def test_discover_caps_events(make_ctx, fake_catalog):
    many = [_ev(f"Event {chr(65 + i)} Special", date=f"02/{i + 1:02d}/2025") for i in range(25)]
    ctx = make_ctx(catalogs=[fake_catalog("Ticketmaster", many)])
    result = asyncio.run(event_service.discover_events(ctx, "Austin"))
    assert len(result.events) == 15


def test_discover_skips_ai_curation_when_gate_is_busy(make_ctx, fake_catalog, scripted):
    provider = scripted('[{"name": "Jazz Night"}]')
    ctx = make_ctx(provider, catalogs=[fake_catalog("Ticketmaster", [_ev("Jazz Night"), _ev("Art Walk")])])
    assert ctx.rate_gate.try_acquire()

    result = asyncio.run(event_service.discover_events(ctx, "Austin"))

    assert result.curated_by == "ranked"
    assert provider.calls == []


def test_discover_uses_ai_curation_when_gate_is_free(make_ctx, fake_catalog, fake_clock, scripted):
    provider = scripted(json.dumps([{"name": "Art Walk", "date": "02/01/2025", "reason": "you both like art"}]))
    ctx = make_ctx(provider, catalogs=[fake_catalog("Ticketmaster", [_ev("Jazz Night"), _ev("Art Walk")])])

    result = asyncio.run(event_service.discover_events(ctx, "Austin", partner_profile={"interests": ["art"]}))

    assert result.curated_by == "ai"
    assert [e.name for e in result.events] == ["Art Walk"]
    assert len(provider.calls) == 1
    assert fake_clock.sleeps == []
