"""Planning use-cases exposed to the route layer.

All four operations are total: malformed inputs are coerced to empty values,
upstream failures end in fallback synthesis, and the returned artifact's
``source`` field says which path produced it.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from dateplanner.application.context import AppContext
from dateplanner.domain.enums import GenerationKind
from dateplanner.domain.models import (
    ConversationMessage,
    CurationPayload,
    DateFlowPayload,
    DateIdeasPayload,
    EventRecord,
    IdeaList,
    Itinerary,
    PlanExtractionPayload,
    PlanRecord,
    Profile,
)

_logger = logging.getLogger("date-planner.planning")

CURATION_CEILING = 15


def coerce_profile(value: Any) -> Profile:
    if isinstance(value, Profile):
        return value
    if not isinstance(value, Mapping):
        return Profile()
    try:
        return Profile.model_validate(dict(value))
    except ValidationError as exc:
        _logger.info("ignoring malformed profile (%d errors)", exc.error_count())
        return Profile()


def coerce_events(values: Optional[Iterable[Any]]) -> list[EventRecord]:
    events: list[EventRecord] = []
    for value in values or []:
        if isinstance(value, EventRecord):
            events.append(value)
            continue
        if not isinstance(value, Mapping):
            continue
        try:
            events.append(EventRecord.model_validate(dict(value)))
        except ValidationError:
            continue
    return events


def coerce_messages(values: Optional[Iterable[Any]]) -> list[ConversationMessage]:
    messages: list[ConversationMessage] = []
    for value in values or []:
        if isinstance(value, ConversationMessage):
            messages.append(value)
        elif isinstance(value, Mapping):
            messages.append(ConversationMessage(
                role=str(value.get("role") or "user"),
                content=str(value.get("content") or value.get("text") or ""),
            ))
        elif isinstance(value, str):
            messages.append(ConversationMessage(content=value))
    return messages


async def generate_date_flow(
    ctx: AppContext,
    location: str,
    user_profile: Any = None,
    partner_profile: Any = None,
    preferences: Mapping[str, Any] | None = None,
) -> Itinerary:
    payload = DateFlowPayload(
        location=str(location or "").strip(),
        user_profile=coerce_profile(user_profile),
        partner_profile=coerce_profile(partner_profile),
        preferences=dict(preferences or {}),
    )
    outcome = await ctx.orchestrator.generate(GenerationKind.DATE_FLOW, payload)
    return outcome.value


async def generate_date_ideas(ctx: AppContext, location: str, partner_profile: Any = None) -> IdeaList:
    payload = DateIdeasPayload(
        location=str(location or "").strip(),
        partner_profile=coerce_profile(partner_profile),
    )
    outcome = await ctx.orchestrator.generate(GenerationKind.DATE_IDEAS, payload)
    return outcome.value


async def curate_events(
    ctx: AppContext,
    raw_events: Optional[Iterable[Any]],
    user_profile: Any = None,
    partner_profile: Any = None,
    location: str = "",
    *,
    preacquired: bool = False,
) -> list[EventRecord]:
    """Pick at most 15 events from the fused catalog union."""
    events = coerce_events(raw_events)
    if not events:
        return []
    payload = CurationPayload(
        events=events,
        user_profile=coerce_profile(user_profile),
        partner_profile=coerce_profile(partner_profile),
        location=str(location or "").strip(),
        limit=min(ctx.settings.curated_events_limit, CURATION_CEILING),
    )
    outcome = await ctx.orchestrator.generate(GenerationKind.EVENT_CURATION, payload, preacquired=preacquired)
    return list(outcome.value.events)[: payload.limit]


async def extract_plan(ctx: AppContext, messages: Optional[Iterable[Any]]) -> PlanRecord:
    payload = PlanExtractionPayload(messages=coerce_messages(messages))
    outcome = await ctx.orchestrator.generate(GenerationKind.PLAN_EXTRACTION, payload)
    return outcome.value


__all__ = [
    "coerce_events",
    "coerce_messages",
    "coerce_profile",
    "curate_events",
    "extract_plan",
    "generate_date_flow",
    "generate_date_ideas",
]
