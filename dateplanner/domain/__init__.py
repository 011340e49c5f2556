"""Domain layer: pure models and enums."""

from dateplanner.domain.enums import CatalogName, GenerationKind, ResultSource
from dateplanner.domain.models import (
    ConversationMessage,
    DateIdea,
    EventList,
    EventRecord,
    EventSearchResult,
    FlowStep,
    GenerationOutcome,
    GenerationRequest,
    IdeaList,
    Itinerary,
    PlannedDate,
    PlanRecord,
    Profile,
)

__all__ = [
    "CatalogName",
    "ConversationMessage",
    "DateIdea",
    "EventList",
    "EventRecord",
    "EventSearchResult",
    "FlowStep",
    "GenerationKind",
    "GenerationOutcome",
    "GenerationRequest",
    "IdeaList",
    "Itinerary",
    "PlanRecord",
    "PlannedDate",
    "Profile",
    "ResultSource",
]
