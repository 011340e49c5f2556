"""Ticketmaster Discovery API adapter.

Environment: TICKETMASTER_CONSUMER_KEY
API docs: https://developer.ticketmaster.com/products-and-docs/apis/discovery-api/v2/
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Optional

from dateplanner.adapters.catalog.common import (
    catalog_timestamp,
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

_logger = logging.getLogger("date-planner.catalog.ticketmaster")

_BASE_URL = "https://app.ticketmaster.com/discovery/v2"
_PAGE_SIZE = 50
_CLASSIFICATIONS = "Music,Arts & Theatre,Sports,Miscellaneous"

_GENRE_CATEGORY: dict[str, str] = {
    "Rock": "Music",
    "Pop": "Music",
    "Hip-Hop/Rap": "Music",
    "Hip-Hop": "Music",
    "Electronic": "Music",
    "Jazz": "Music",
    "Country": "Music",
    "R&B": "Music",
    "Reggae": "Music",
    "Alternative": "Music",
    "Classical": "Music",
    "Theatre": "Arts",
    "Comedy": "Arts",
    "Dance": "Arts",
    "Sports": "Sports",
    "Baseball": "Sports",
    "Basketball": "Sports",
    "Football": "Sports",
    "Hockey": "Sports",
    "Soccer": "Sports",
}


def map_classification(classification: Optional[dict[str, Any]]) -> str:
    if not classification:
        return "Other"
    genre = (classification.get("genre") or {}).get("name")
    if not genre:
        return "Other"
    return _GENRE_CATEGORY.get(genre, genre)


def format_price_range(price_range: Optional[dict[str, Any]]) -> str:
    if not price_range:
        return "Price varies"
    low = price_range.get("min")
    high = price_range.get("max", low)
    if low is None:
        return "Price varies"
    if low == 0 and high == 0:
        return "Free"
    currency = price_range.get("currency") or "USD"
    low_i, high_i = round(low), round(high if high is not None else low)
    if low_i == high_i:
        return f"{currency} {low_i}"
    return f"{currency} {low_i} - {high_i}"


def format_venue_address(venue: Optional[dict[str, Any]]) -> str:
    if not venue:
        return ""
    address = venue.get("address") or {}
    return join_address(
        address.get("line1"),
        address.get("line2"),
        (venue.get("city") or {}).get("name"),
        (venue.get("state") or {}).get("name"),
    )


def _start_info(raw: dict[str, Any]) -> dict[str, Any]:
    return (raw.get("dates") or {}).get("start") or {}


def _event_start(start: dict[str, Any]) -> Optional[dt.datetime]:
    local_date = start.get("localDate")
    if local_date:
        local_time = start.get("localTime") or "00:00:00"
        parsed = parse_datetime(f"{local_date}T{local_time}")
        if parsed:
            return parsed
    return parse_datetime(start.get("dateTime"))


def to_event_record(raw: dict[str, Any]) -> EventRecord:
    venue = ((raw.get("_embedded") or {}).get("venues") or [None])[0]
    start_info = _start_info(raw)
    start = _event_start(start_info)
    has_time = bool(start_info.get("localTime") or start_info.get("dateTime"))
    classification = (raw.get("classifications") or [None])[0]
    return EventRecord(
        name=raw.get("name") or "Untitled Event",
        date=format_date(start),
        time=format_time(start) if has_time else "",
        venue=(venue or {}).get("name") or "TBA",
        address=format_venue_address(venue),
        category=map_classification(classification),
        cost=format_price_range((raw.get("priceRanges") or [None])[0]),
        url=raw.get("url"),
        description=clean_description(raw.get("info") or raw.get("description") or ""),
        source=CatalogName.TICKETMASTER.value,
    )


class TicketmasterCatalog:
    name = CatalogName.TICKETMASTER.value

    def __init__(self, http: Optional[SecureHttpClient] = None, timeout: float = 15.0):
        self._http = http or SecureHttpClient(tool_name="ticketmaster", timeout=timeout, max_retries=1)

    async def search(self, location: str, radius: int, window: DateWindow) -> list[EventRecord]:
        api_key = get_key_manager().get_ticketmaster_key()
        if not api_key:
            _logger.info("TICKETMASTER_CONSUMER_KEY not set, skipping Ticketmaster")
            return []

        params = {
            "apikey": api_key,
            "city": location.split(",")[0].strip(),
            "radius": radius,
            "unit": "miles",
            "startDateTime": catalog_timestamp(window.start),
            "endDateTime": catalog_timestamp(window.end),
            "size": _PAGE_SIZE,
            "sort": "date,asc",
            "classificationName": _CLASSIFICATIONS,
        }
        data = await self._http.get_json(f"{_BASE_URL}/events.json", params=params)
        if not isinstance(data, dict):
            raise ToolError("ticketmaster", "unexpected response shape")

        raw_events = (data.get("_embedded") or {}).get("events") or []
        records: list[EventRecord] = []
        for raw in raw_events:
            try:
                records.append(to_event_record(raw))
            except Exception as exc:
                _logger.debug("skipping malformed Ticketmaster event: %s", exc)
        _logger.info("Ticketmaster returned %d events for %s", len(records), location)
        return records


__all__ = ["TicketmasterCatalog", "format_price_range", "map_classification", "to_event_record"]
