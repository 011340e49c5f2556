"""Prompt builders for each generation kind.

Every prompt ends with an explicit JSON contract; the extractor tolerates the
usual deviations but the contract keeps them rare.
"""

from __future__ import annotations

import json
from typing import Any

from dateplanner.domain.models import (
    CurationPayload,
    DateFlowPayload,
    DateIdeasPayload,
    PlanExtractionPayload,
    Profile,
)

_PERSONA = (
    "You are Fiona, a warm and knowledgeable date planning assistant. "
    "You suggest real, specific venues and activities that fit the couple's interests and budget."
)

_JSON_ONLY = "Respond with JSON only. No markdown, no commentary before or after the JSON."

_HISTORY_LIMIT = 12


def describe_profile(profile: Profile, label: str) -> str:
    if profile.is_empty():
        return f"{label}: not provided"
    lines = [f"{label}:"]
    if profile.name:
        lines.append(f"- Name: {profile.name}")
    if profile.interests:
        lines.append(f"- Interests: {', '.join(profile.interests)}")
    if profile.budget:
        lines.append(f"- Budget: {profile.budget}")
    if profile.location:
        lines.append(f"- Location: {profile.location}")
    if profile.neighborhood:
        lines.append(f"- Neighborhood: {profile.neighborhood}")
    if profile.travel_radius:
        lines.append(f"- Travel radius: {profile.travel_radius} miles")
    if profile.dietary_restrictions:
        lines.append(f"- Dietary restrictions: {profile.dietary_restrictions}")
    return "\n".join(lines)


def date_flow_prompts(payload: DateFlowPayload) -> tuple[str, str]:
    system = (
        f"{_PERSONA} You build a single evening's date itinerary as an ordered flow of 3 to 5 steps.\n"
        f"{_JSON_ONLY}\n"
        'Schema: {"title": str, "location": str, "flow": [{"time": str, "activity": str, "venue": str, '
        '"address": str, "description": str, "duration": str, "estimated_cost": str}], '
        '"total_estimated_cost": str, "tips": [str]}'
    )
    preferences = json.dumps(payload.preferences, ensure_ascii=False, default=str) if payload.preferences else "none"
    user = "\n\n".join([
        f"Plan a date in {payload.location}.",
        describe_profile(payload.user_profile, "Requester"),
        describe_profile(payload.partner_profile, "Partner"),
        f"Preferences: {preferences}",
    ])
    return system, user


def date_ideas_prompts(payload: DateIdeasPayload) -> tuple[str, str]:
    system = (
        f"{_PERSONA} You brainstorm 5 distinct date ideas.\n"
        f"{_JSON_ONLY}\n"
        'Schema: {"ideas": [{"title": str, "description": str, "category": str, '
        '"estimated_cost": str, "duration": str}]}'
    )
    user = "\n\n".join([
        f"Suggest date ideas in {payload.location}.",
        describe_profile(payload.partner_profile, "Partner"),
    ])
    return system, user


def curation_prompts(payload: CurationPayload) -> tuple[str, str]:
    system = (
        f"{_PERSONA} You pick the events from a list that best suit a couple.\n"
        f"{_JSON_ONLY}\n"
        f"Return at most {payload.limit} events, best first, copying each name exactly as given.\n"
        'Schema: [{"name": str, "date": str, "reason": str}]'
    )
    listing = [
        {"name": e.name, "date": e.date, "category": e.category, "venue": e.venue, "cost": e.cost}
        for e in payload.events
    ]
    user = "\n\n".join([
        f"Location: {payload.location or 'unknown'}",
        describe_profile(payload.user_profile, "Requester"),
        describe_profile(payload.partner_profile, "Partner"),
        "Events:\n" + json.dumps(listing, ensure_ascii=False),
    ])
    return system, user


def _transcript(messages: list[Any]) -> str:
    recent = messages[-_HISTORY_LIMIT:]
    return "\n".join(f"{m.role}: {m.content}" for m in recent)


def plan_extraction_prompts(payload: PlanExtractionPayload) -> tuple[str, str]:
    system = (
        "You read a conversation between a user and a date planning assistant and extract the date "
        "the user settled on. Leave a field empty when the conversation does not state it.\n"
        f"{_JSON_ONLY}\n"
        'Schema: {"date_plan": {"activity": str, "venue": str, "location": str, "date": str, '
        '"time": str, "notes": str}, "is_complete": bool, "summary": str}'
    )
    return system, "Conversation:\n" + _transcript(payload.messages)


__all__ = [
    "curation_prompts",
    "date_flow_prompts",
    "date_ideas_prompts",
    "describe_profile",
    "plan_extraction_prompts",
]
