"""Eventbrite v3 adapter.

Environment: EVENTBRITE_API_KEY

The v3 API has no public search endpoint, so events come from the account
that owns the token and are filtered by city keyword. Any failure on the
account lookup yields an empty list rather than an error.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from dateplanner.adapters.catalog.common import (
    clean_description,
    format_date,
    format_time,
    join_address,
    parse_datetime,
)
from dateplanner.domain.enums import CatalogName
from dateplanner.domain.models import EventRecord
from dateplanner.events.interfaces import DateWindow
from dateplanner.security.http_client import SecureHttpClient
from dateplanner.security.key_manager import get_key_manager
from dateplanner.shared.exceptions import ToolError

_logger = logging.getLogger("date-planner.catalog.eventbrite")

_BASE_URL = "https://www.eventbriteapi.com/v3"

_CATEGORY_BY_ID: dict[str, str] = {
    "103": "Music",
    "105": "Business",
    "110": "Food & Drink",
    "113": "Community",
    "116": "Arts",
    "119": "Film & Media",
    "120": "Sports & Fitness",
    "122": "Health",
    "123": "Science & Technology",
    "124": "Travel & Outdoor",
    "125": "Charity & Causes",
    "126": "Religion & Spirituality",
    "127": "Family & Education",
    "128": "Seasonal & Holiday",
    "129": "Government & Politics",
    "130": "Fashion & Beauty",
    "131": "Home & Lifestyle",
    "132": "Auto, Boat & Air",
    "133": "Hobbies",
    "134": "School Activities",
    "135": "Other",
}

_SPLIT_RE = re.compile(r"[,\s]+")


def map_category(category_id: Any) -> str:
    return _CATEGORY_BY_ID.get(str(category_id), "Other") if category_id is not None else "Other"


def format_cost(raw: dict[str, Any]) -> str:
    if raw.get("is_free"):
        return "Free"
    ticket_classes = (raw.get("ticket_availability") or {}).get("ticket_classes") or []
    prices: list[str] = []
    for ticket_class in ticket_classes:
        cost = ticket_class.get("cost")
        if not cost:
            continue
        value = cost.get("value", cost.get("display"))
        if value is None:
            continue
        prices.append(f"{cost.get('currency') or 'USD'} {value}")
    if not prices:
        return "Price varies"
    if len(prices) > 1:
        ordered = sorted(prices)
        return f"{ordered[0]} - {ordered[-1]}"
    return prices[0]


def format_venue_address(venue: Optional[dict[str, Any]]) -> str:
    address = (venue or {}).get("address") or {}
    return join_address(
        address.get("address_1"),
        address.get("address_2"),
        address.get("city"),
        address.get("region"),
    )


def matches_location(raw: dict[str, Any], location: str) -> bool:
    """Keep events whose venue name or city mentions a location keyword."""
    keywords = [k for k in _SPLIT_RE.split(location.lower()) if len(k) > 2]
    venue = raw.get("venue") or {}
    venue_name = str(venue.get("name") or "").lower()
    venue_city = str((venue.get("address") or {}).get("city") or "").lower()
    return any(k in venue_name or k in venue_city for k in keywords)


def to_event_record(raw: dict[str, Any]) -> EventRecord:
    venue = raw.get("venue") or {}
    start_info = raw.get("start") or {}
    start = parse_datetime(start_info.get("local") or start_info.get("utc"))
    return EventRecord(
        name=(raw.get("name") or {}).get("text") or "Untitled Event",
        date=format_date(start),
        time=format_time(start),
        venue=venue.get("name") or raw.get("venue_id") or "",
        address=format_venue_address(venue),
        category=map_category(raw.get("category_id")),
        cost=format_cost(raw),
        url=raw.get("url"),
        description=clean_description((raw.get("description") or {}).get("text") or ""),
        source=CatalogName.EVENTBRITE.value,
    )


class EventbriteCatalog:
    name = CatalogName.EVENTBRITE.value

    def __init__(self, http: Optional[SecureHttpClient] = None, timeout: float = 5.0):
        self._http = http or SecureHttpClient(tool_name="eventbrite", timeout=timeout, max_retries=0)

    async def search(self, location: str, radius: int, window: DateWindow) -> list[EventRecord]:
        api_key = get_key_manager().get_eventbrite_key()
        if not api_key:
            _logger.info("EVENTBRITE_API_KEY not set, skipping Eventbrite")
            return []

        headers = {"Authorization": f"Bearer {api_key}"}
        try:
            me = await self._http.get_json(f"{_BASE_URL}/users/me/", headers=headers)
            user_id = me.get("id")
            if not user_id:
                return []
            data = await self._http.get_json(f"{_BASE_URL}/users/{user_id}/events/", headers=headers)
        except ToolError as exc:
            _logger.info("Eventbrite account events unavailable: %s", exc)
            return []

        records: list[EventRecord] = []
        for raw in data.get("events") or []:
            if not matches_location(raw, location):
                continue
            try:
                record = to_event_record(raw)
            except Exception as exc:
                _logger.debug("skipping malformed Eventbrite event: %s", exc)
                continue
            start = parse_datetime((raw.get("start") or {}).get("utc"))
            if start and window.start.tzinfo is not None and not (window.start <= start <= window.end):
                continue
            records.append(record)
        _logger.info("Eventbrite returned %d events for %s", len(records), location)
        return records


__all__ = ["EventbriteCatalog", "format_cost", "map_category", "matches_location", "to_event_record"]
