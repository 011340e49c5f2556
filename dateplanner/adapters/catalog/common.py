"""Formatting helpers shared by the catalog adapters."""

from __future__ import annotations

import datetime as dt
import html
import re
from typing import Any, Optional

_TAG_RE = re.compile(r"<[^>]*>")
_DESCRIPTION_LIMIT = 200


def clean_description(text: Optional[str]) -> str:
    """Strip HTML and entities, cap at 200 characters plus an ellipsis."""
    if not text:
        return ""
    cleaned = html.unescape(_TAG_RE.sub("", text)).replace("\xa0", " ").strip()
    if not cleaned:
        return ""
    return cleaned[:_DESCRIPTION_LIMIT] + "..."


def parse_datetime(value: Optional[str]) -> Optional[dt.datetime]:
    if not value:
        return None
    try:
        return dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def format_date(value: Optional[dt.datetime]) -> str:
    return value.strftime("%m/%d/%Y") if value else ""


def format_time(value: Optional[dt.datetime]) -> str:
    return value.strftime("%I:%M %p") if value else ""


def catalog_timestamp(value: dt.datetime) -> str:
    """ISO-8601 in UTC without fractional seconds, e.g. 2025-01-15T00:00:00Z."""
    if value.tzinfo is not None:
        value = value.astimezone(dt.timezone.utc)
    return value.replace(microsecond=0, tzinfo=None).isoformat() + "Z"


def join_address(*parts: Any) -> str:
    return ", ".join(str(p).strip() for p in parts if p and str(p).strip())


__all__ = [
    "catalog_timestamp",
    "clean_description",
    "format_date",
    "format_time",
    "join_address",
    "parse_datetime",
]
