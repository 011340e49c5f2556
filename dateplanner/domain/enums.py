"""Domain enums."""

from enum import Enum


class GenerationKind(str, Enum):
    DATE_FLOW = "date_flow"
    DATE_IDEAS = "date_ideas"
    EVENT_CURATION = "event_curation"
    PLAN_EXTRACTION = "plan_extraction"


class ResultSource(str, Enum):
    """Where a returned artifact came from; the only failure signal callers see."""

    GROQ_API = "groq_api"
    CACHE = "cache"
    CONVERSATION_CONTEXT = "conversation_context"
    FALLBACK = "fallback"


class CatalogName(str, Enum):
    TICKETMASTER = "Ticketmaster"
    EVENTBRITE = "Eventbrite"
    COMBINED = "Combined"
    CURATED = "Curated"
