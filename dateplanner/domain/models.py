"""Pydantic domain models."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from dateplanner.domain.enums import GenerationKind, ResultSource


_DIGITS_RE = re.compile(r"\d+")


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value if v is not None)
    return str(value).strip()


class Profile(BaseModel):
    """Read-only requester or partner context injected into prompts."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    name: str = ""
    interests: list[str] = Field(default_factory=list)
    budget: str = ""
    location: str = ""
    neighborhood: str = ""
    travel_radius: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("travel_radius", "travelRadius"),
    )
    dietary_restrictions: str = Field(
        default="",
        validation_alias=AliasChoices("dietary_restrictions", "dietaryRestrictions"),
    )

    @field_validator("interests", mode="before")
    @classmethod
    def _split_interests(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        if not isinstance(value, (list, tuple, set)):
            value = [value]
        return [str(v).strip() for v in value if str(v).strip()]

    @field_validator("travel_radius", mode="before")
    @classmethod
    def _radius(cls, value: Any) -> Optional[int]:
        """Accept 5, 5.0, "5" or "10 miles"; anything without digits is dropped."""
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value) if math.isfinite(value) else None
        match = _DIGITS_RE.search(str(value))
        return int(match.group()) if match else None

    @field_validator("name", "budget", "location", "neighborhood", "dietary_restrictions", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _as_text(value)

    def is_empty(self) -> bool:
        return not (self.name or self.interests or self.budget or self.location)


class EventRecord(BaseModel):
    """One event from a catalog. ``(name, date)`` is its fuzzy identity."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    name: str
    date: str = ""
    time: str = ""
    venue: str = Field(default="", validation_alias=AliasChoices("venue", "location"))
    address: str = ""
    category: str = ""
    cost: str = ""
    url: Optional[str] = None
    description: str = ""
    source: str = ""

    @field_validator("name", "date", "time", "venue", "address", "category", "cost", "description", "source", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _as_text(value)

    @field_validator("url", mode="before")
    @classmethod
    def _url(cls, value: Any) -> Optional[str]:
        text = _as_text(value)
        return text or None


class FlowStep(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    time: str = ""
    activity: str
    venue: str = ""
    address: str = ""
    description: str = ""
    duration: str = ""
    estimated_cost: str = ""

    @field_validator("time", "activity", "venue", "address", "description", "duration", "estimated_cost", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _as_text(value)


class Itinerary(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    title: str = "Your Date Plan"
    location: str = ""
    flow: list[FlowStep] = Field(min_length=1)
    total_estimated_cost: str = ""
    tips: list[str] = Field(default_factory=list)
    source: ResultSource = ResultSource.GROQ_API


class DateIdea(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    title: str
    description: str = ""
    category: str = ""
    estimated_cost: str = ""
    duration: str = ""

    @field_validator("title", "description", "category", "estimated_cost", "duration", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _as_text(value)


class IdeaList(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    location: str = ""
    ideas: list[DateIdea] = Field(min_length=1)
    source: ResultSource = ResultSource.GROQ_API


class EventList(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    events: list[EventRecord] = Field(default_factory=list)
    source: ResultSource = ResultSource.GROQ_API


class EventSearchResult(BaseModel):
    """Events returned to the route layer with where they came from."""

    model_config = ConfigDict(frozen=True)

    location: str = ""
    events: list[EventRecord] = Field(default_factory=list)
    source: str = "catalogs"
    curated_by: str = ""
    catalog_counts: dict[str, int] = Field(default_factory=dict)


class PlannedDate(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    activity: str = ""
    venue: str = ""
    location: str = ""
    date: str = ""
    time: str = ""
    notes: str = ""

    @field_validator("activity", "venue", "location", "date", "time", "notes", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _as_text(value)

    def filled_fields(self) -> int:
        return sum(1 for v in (self.activity, self.venue, self.date, self.time) if v)


class PlanRecord(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    date_plan: PlannedDate = Field(default_factory=PlannedDate)
    is_complete: bool = False
    summary: str = ""
    source: ResultSource = ResultSource.GROQ_API


class ConversationMessage(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    role: str = "user"
    content: str = ""


class DateFlowPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    location: str
    user_profile: Profile = Field(default_factory=Profile)
    partner_profile: Profile = Field(default_factory=Profile)
    preferences: dict[str, Any] = Field(default_factory=dict)


class DateIdeasPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    location: str
    partner_profile: Profile = Field(default_factory=Profile)


class CurationPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    events: list[EventRecord] = Field(default_factory=list)
    user_profile: Profile = Field(default_factory=Profile)
    partner_profile: Profile = Field(default_factory=Profile)
    location: str = ""
    limit: int = 15


class PlanExtractionPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    messages: list[ConversationMessage] = Field(default_factory=list)


ShapePredicate = Callable[[Any], bool]


@dataclass(frozen=True)
class GenerationRequest:
    """One provider call as the orchestrator issues it; never persisted."""

    kind: GenerationKind
    system_prompt: str
    user_prompt: str
    constraints: ShapePredicate
    cache_key: Optional[str] = None
    temperature: float = 0.7
    max_tokens: int = 1200


@dataclass(frozen=True)
class GenerationOutcome:
    kind: GenerationKind
    value: BaseModel
    source: ResultSource
    attempts: int = 0
