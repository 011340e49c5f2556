"""Catalog protocol and search inputs."""

from __future__ import annotations

import datetime as dt
from typing import Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from dateplanner.domain.models import EventRecord


class DateWindow(BaseModel):
    start: dt.datetime
    end: dt.datetime

    @classmethod
    def upcoming(cls, days: int = 14, now: Optional[dt.datetime] = None) -> "DateWindow":
        start = (now or dt.datetime.now(dt.timezone.utc)).replace(microsecond=0)
        return cls(start=start, end=start + dt.timedelta(days=days))


class EventSearchInput(BaseModel):
    location: str = Field(min_length=1)
    neighborhood: str = ""
    radius: int = Field(default=10, ge=1, le=300)


@runtime_checkable
class EventCatalog(Protocol):
    name: str

    async def search(self, location: str, radius: int, window: DateWindow) -> list[EventRecord]: ...


__all__ = ["DateWindow", "EventCatalog", "EventSearchInput"]
