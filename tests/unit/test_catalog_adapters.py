from __future__ import annotations

import asyncio
import datetime as dt

import httpx
import pytest

from dateplanner.adapters.catalog.common import catalog_timestamp, clean_description
from dateplanner.adapters.catalog.eventbrite import EventbriteCatalog, format_cost, map_category, matches_location
from dateplanner.adapters.catalog.ticketmaster import TicketmasterCatalog, format_price_range, map_classification
from dateplanner.events.interfaces import DateWindow
from dateplanner.security.http_client import SecureHttpClient
from dateplanner.security.key_manager import get_key_manager
from dateplanner.shared.exceptions import ToolError

WINDOW = DateWindow.upcoming(days=14, now=dt.datetime(2025, 1, 10, tzinfo=dt.timezone.utc))

TM_PAYLOAD = {
    "_embedded": {
        "events": [
            {
                "name": "Jazz Night",
                "url": "https://tickets.example/jazz",
                "dates": {"start": {"localDate": "2025-01-15", "localTime": "20:00:00"}},
                "classifications": [{"genre": {"name": "Jazz"}}],
                "priceRanges": [{"min": 20.0, "max": 50.0, "currency": "USD"}],
                "info": "<p>Late sets &amp; cocktails</p>",
                "_embedded": {
                    "venues": [
                        {
                            "name": "Elephant Room",
                            "address": {"line1": "315 Congress Ave"},
                            "city": {"name": "Austin"},
                            "state": {"name": "Texas"},
                        }
                    ]
                },
            },
            {"name": "Mystery Show", "dates": {"start": {"localDate": "2025-01-16"}}},
        ]
    }
}


def _set_key(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    get_key_manager().reload(name)


def _client(tool, handler):
    return SecureHttpClient(tool_name=tool, max_retries=0, transport=httpx.MockTransport(handler))


class TestTicketmaster:
    def test_search_maps_events(self, monkeypatch):
        _set_key(monkeypatch, "TICKETMASTER_CONSUMER_KEY", "tm-test-key")
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=TM_PAYLOAD)

        catalog = TicketmasterCatalog(http=_client("ticketmaster", handler))
        records = asyncio.run(catalog.search("Austin, TX", 10, WINDOW))

        params = seen[0].url.params
        assert seen[0].url.path == "/discovery/v2/events.json"
        assert params["city"] == "Austin"
        assert params["apikey"] == "tm-test-key"
        assert params["unit"] == "miles"
        assert params["size"] == "50"
        assert params["sort"] == "date,asc"
        assert params["startDateTime"] == "2025-01-10T00:00:00Z"
        assert params["endDateTime"] == "2025-01-24T00:00:00Z"

        jazz, mystery = records
        assert jazz.date == "01/15/2025"
        assert jazz.time == "08:00 PM"
        assert jazz.venue == "Elephant Room"
        assert jazz.address == "315 Congress Ave, Austin, Texas"
        assert jazz.category == "Music"
        assert jazz.cost == "USD 20 - 50"
        assert jazz.description == "Late sets & cocktails..."
        assert jazz.url == "https://tickets.example/jazz"
        assert jazz.source == "Ticketmaster"

        assert mystery.time == ""
        assert mystery.venue == "TBA"
        assert mystery.cost == "Price varies"
        assert mystery.category == "Other"

    def test_missing_key_skips_the_call(self):
        def handler(request):
            raise AssertionError("no request expected")

        catalog = TicketmasterCatalog(http=_client("ticketmaster", handler))
        assert asyncio.run(catalog.search("Austin", 10, WINDOW)) == []

    def test_upstream_error_propagates_as_tool_error(self, monkeypatch):
        _set_key(monkeypatch, "TICKETMASTER_CONSUMER_KEY", "tm-test-key")
        catalog = TicketmasterCatalog(http=_client("ticketmaster", lambda r: httpx.Response(401)))
        with pytest.raises(ToolError) as exc_info:
            asyncio.run(catalog.search("Austin", 10, WINDOW))
        assert "tm-test-key" not in str(exc_info.value)

    @pytest.mark.parametrize(
        "price,expected",
        [
            (None, "Price varies"),
            ({"min": 0, "max": 0}, "Free"),
            ({"min": 25, "max": 25, "currency": "USD"}, "USD 25"),
            ({"min": 19.6, "max": 45.2, "currency": "EUR"}, "EUR 20 - 45"),
        ],
    )
    def test_price_ranges(self, price, expected):
        assert format_price_range(price) == expected

    def test_classification_mapping(self):
        assert map_classification({"genre": {"name": "Comedy"}}) == "Arts"
        assert map_classification({"genre": {"name": "Opera"}}) == "Opera"
        assert map_classification(None) == "Other"


def _eb_event(name, city, utc, local, **extra):
    return {
        "name": {"text": name},
        "start": {"utc": utc, "local": local},
        "venue": {"name": f"{city} Hall", "address": {"address_1": "1 Main St", "city": city, "region": "TX"}},
        "category_id": "103",
        "is_free": True,
        "url": f"https://eventbrite.example/{name.replace(' ', '-').lower()}",
        "description": {"text": "Bring a friend"},
        **extra,
    }


class TestEventbrite:
    def _handler(self, seen, events):
        def handler(request):
            seen.append(request)
            if request.url.path == "/v3/users/me/":
                return httpx.Response(200, json={"id": "42"})
            if request.url.path == "/v3/users/42/events/":
                return httpx.Response(200, json={"events": events})
            return httpx.Response(404)

        return handler

    def test_search_filters_by_city_and_window(self, monkeypatch):
        _set_key(monkeypatch, "EVENTBRITE_API_KEY", "eb-test-token")
        events = [
            _eb_event("Salsa Social", "Austin", "2025-01-20T02:00:00Z", "2025-01-19T20:00:00"),
            _eb_event("Dallas Mixer", "Dallas", "2025-01-20T02:00:00Z", "2025-01-19T20:00:00"),
            _eb_event("Spring Fair", "Austin", "2025-04-01T18:00:00Z", "2025-04-01T13:00:00"),
        ]
        seen = []
        catalog = EventbriteCatalog(http=_client("eventbrite", self._handler(seen, events)))

        records = asyncio.run(catalog.search("Austin, TX", 10, WINDOW))

        assert [r.name for r in records] == ["Salsa Social"]
        salsa = records[0]
        assert salsa.date == "01/19/2025"
        assert salsa.time == "08:00 PM"
        assert salsa.category == "Music"
        assert salsa.cost == "Free"
        assert salsa.address == "1 Main St, Austin, TX"
        assert salsa.source == "Eventbrite"
        assert seen[0].headers["authorization"] == "Bearer eb-test-token"

    def test_account_lookup_failure_yields_empty(self, monkeypatch):
        _set_key(monkeypatch, "EVENTBRITE_API_KEY", "eb-test-token")
        catalog = EventbriteCatalog(http=_client("eventbrite", lambda r: httpx.Response(401)))
        assert asyncio.run(catalog.search("Austin", 10, WINDOW)) == []

    def test_missing_key_returns_empty(self):
        catalog = EventbriteCatalog(http=_client("eventbrite", lambda r: httpx.Response(500)))
        assert asyncio.run(catalog.search("Austin", 10, WINDOW)) == []

    def test_cost_and_category_helpers(self):
        paid = {
            "is_free": False,
            "ticket_availability": {
                "ticket_classes": [
                    {"cost": {"currency": "USD", "value": 15}},
                    {"cost": {"currency": "USD", "value": 40}},
                ]
            },
        }
        assert format_cost(paid) == "USD 15 - USD 40"
        assert format_cost({"is_free": False}) == "Price varies"
        assert map_category("110") == "Food & Drink"
        assert map_category("999") == "Other"
        assert map_category(None) == "Other"

    def test_location_keywords_ignore_short_tokens(self):
        raw = {"venue": {"name": "The Mohawk", "address": {"city": "Austin"}}}
        assert matches_location(raw, "Austin, TX")
        assert not matches_location(raw, "TX")


def test_common_helpers():
    assert clean_description("") == ""
    assert clean_description("<b>Hi</b>") == "Hi..."
    assert len(clean_description("x" * 500)) == 203
    stamp = catalog_timestamp(dt.datetime(2025, 1, 15, 12, 30, 45, 123456, tzinfo=dt.timezone.utc))
    assert stamp == "2025-01-15T12:30:45Z"
