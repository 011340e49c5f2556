"""Use-case services called by the API and CLI."""

from dateplanner.services.event_service import discover_events, search_events
from dateplanner.services.planning_service import (
    curate_events,
    extract_plan,
    generate_date_flow,
    generate_date_ideas,
)

__all__ = [
    "curate_events",
    "discover_events",
    "extract_plan",
    "generate_date_flow",
    "generate_date_ideas",
    "search_events",
]
