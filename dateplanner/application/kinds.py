"""Per-kind generation handlers.

A handler bundles everything the orchestrator needs for one generation kind:
prompt builder, shape predicate, sampling settings, result builder, cache key
and deterministic fallback. Result builders raise ``ValueError`` (pydantic's
``ValidationError`` included) when a parsed value has the right outer shape
but unusable content; the orchestrator treats that as a failed attempt.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from dateplanner.application import fallbacks, prompts
from dateplanner.domain.enums import GenerationKind, ResultSource
from dateplanner.domain.models import (
    CurationPayload,
    DateFlowPayload,
    DateIdea,
    DateIdeasPayload,
    EventList,
    EventRecord,
    FlowStep,
    GenerationRequest,
    IdeaList,
    Itinerary,
    PlanExtractionPayload,
    PlannedDate,
    PlanRecord,
    Profile,
)
from dateplanner.events.fusion import names_similar
from dateplanner.infrastructure.cache import make_cache_key
from dateplanner.parsing.shapes import ShapePredicate, array_or_field, has_nonempty_array, has_object
from dateplanner.parsing.text import clean_spoken_text

_logger = logging.getLogger("date-planner.kinds")

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class KindHandler:
    kind: GenerationKind
    shape: ShapePredicate
    temperature: float
    max_tokens: int
    prompts: Callable[[Any], tuple[str, str]]
    build: Callable[[Any, Any], BaseModel]
    fallback: Callable[[Any], BaseModel]
    cache_key: Callable[[Any], Optional[str]]

    def request(self, payload: Any) -> GenerationRequest:
        system_prompt, user_prompt = self.prompts(payload)
        return GenerationRequest(
            kind=self.kind,
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            constraints=self.shape,
            cache_key=self.cache_key(payload),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )


def _valid_items(model: type[M], items: Any) -> list[M]:
    """Validate list items one by one, dropping the ones that do not fit."""
    valid: list[M] = []
    for item in items if isinstance(items, list) else []:
        if not isinstance(item, dict):
            continue
        try:
            valid.append(model.model_validate(item))
        except ValidationError as exc:
            _logger.debug("dropping invalid %s: %s", model.__name__, exc.error_count())
    return valid


def _unwrap(value: Any, field: str) -> list[Any]:
    if isinstance(value, list):
        return value
    if isinstance(value, dict) and isinstance(value.get(field), list):
        return value[field]
    raise ValueError(f"expected an array or an object with '{field}'")


def _profile_key(profile: Profile) -> tuple[Any, ...]:
    return (sorted(i.lower() for i in profile.interests), profile.budget, profile.neighborhood)


# ── date flow ─────────────────────────────────────────


def build_itinerary(value: Any, payload: DateFlowPayload) -> Itinerary:
    steps = _valid_items(FlowStep, value.get("flow"))
    if not steps:
        raise ValueError("itinerary has no usable flow steps")
    tips = value.get("tips")
    return Itinerary(
        title=str(value.get("title") or "Your Date Plan"),
        location=str(value.get("location") or payload.location),
        flow=steps,
        total_estimated_cost=str(value.get("total_estimated_cost") or ""),
        tips=[str(t) for t in tips if t] if isinstance(tips, list) else [],
        source=ResultSource.GROQ_API,
    )


def date_flow_key(payload: DateFlowPayload) -> str:
    return make_cache_key(
        "date_flow",
        payload.location,
        _profile_key(payload.user_profile),
        _profile_key(payload.partner_profile),
        sorted((str(k), str(v)) for k, v in payload.preferences.items()),
    )


# ── date ideas ────────────────────────────────────────


def build_ideas(value: Any, payload: DateIdeasPayload) -> IdeaList:
    ideas = _valid_items(DateIdea, _unwrap(value, "ideas"))
    if not ideas:
        raise ValueError("no usable ideas")
    cleaned = [
        idea.model_copy(update={"description": clean_spoken_text(idea.description)})
        for idea in ideas
    ]
    return IdeaList(location=payload.location, ideas=cleaned, source=ResultSource.GROQ_API)


def date_ideas_key(payload: DateIdeasPayload) -> str:
    return make_cache_key("date_ideas", payload.location, _profile_key(payload.partner_profile))


# ── event curation ────────────────────────────────────


def _pick_name(pick: Any) -> tuple[str, str]:
    if isinstance(pick, str):
        return pick, ""
    if isinstance(pick, dict):
        return str(pick.get("name") or ""), str(pick.get("date") or "")
    return "", ""


def _match_pick(name: str, date: str, events: list[EventRecord], taken: set[int]) -> Optional[int]:
    candidates = [i for i, e in enumerate(events) if i not in taken and names_similar(name, e.name)]
    if not candidates:
        return None
    for i in candidates:
        if date and events[i].date == date:
            return i
    return candidates[0]


def build_curation(value: Any, payload: CurationPayload) -> EventList:
    """Map the provider's picks back onto catalog records; unknown names are dropped."""
    events = list(payload.events)
    taken: set[int] = set()
    picked: list[EventRecord] = []
    for pick in _unwrap(value, "events"):
        name, date = _pick_name(pick)
        if not name:
            continue
        idx = _match_pick(name, date, events, taken)
        if idx is None:
            continue
        taken.add(idx)
        picked.append(events[idx])
        if len(picked) >= payload.limit:
            break
    if not picked:
        raise ValueError("no curated pick matched a catalog event")
    return EventList(events=picked, source=ResultSource.GROQ_API)


def curation_key(payload: CurationPayload) -> str:
    return make_cache_key(
        "event_curation",
        payload.location,
        payload.limit,
        [(e.name, e.date) for e in payload.events],
        _profile_key(payload.user_profile),
        _profile_key(payload.partner_profile),
    )


# ── plan extraction ───────────────────────────────────


def build_plan(value: Any, payload: PlanExtractionPayload) -> PlanRecord:
    plan = PlannedDate.model_validate(value["date_plan"])
    if plan.filled_fields() == 0:
        raise ValueError("plan has no fields")
    complete = value.get("is_complete")
    if not isinstance(complete, bool):
        complete = bool(plan.activity and plan.venue and (plan.date or plan.time))
    return PlanRecord(
        date_plan=plan,
        is_complete=complete,
        summary=str(value.get("summary") or ""),
        source=ResultSource.GROQ_API,
    )


def _no_cache(payload: Any) -> None:
    return None


HANDLERS: dict[GenerationKind, KindHandler] = {
    GenerationKind.DATE_FLOW: KindHandler(
        kind=GenerationKind.DATE_FLOW,
        shape=has_nonempty_array("flow"),
        temperature=0.7,
        max_tokens=1500,
        prompts=prompts.date_flow_prompts,
        build=build_itinerary,
        fallback=fallbacks.date_flow_fallback,
        cache_key=date_flow_key,
    ),
    GenerationKind.DATE_IDEAS: KindHandler(
        kind=GenerationKind.DATE_IDEAS,
        shape=array_or_field("ideas"),
        temperature=0.8,
        max_tokens=1200,
        prompts=prompts.date_ideas_prompts,
        build=build_ideas,
        fallback=fallbacks.date_ideas_fallback,
        cache_key=date_ideas_key,
    ),
    GenerationKind.EVENT_CURATION: KindHandler(
        kind=GenerationKind.EVENT_CURATION,
        shape=array_or_field("events"),
        temperature=0.3,
        max_tokens=1500,
        prompts=prompts.curation_prompts,
        build=build_curation,
        fallback=fallbacks.curation_fallback,
        cache_key=curation_key,
    ),
    GenerationKind.PLAN_EXTRACTION: KindHandler(
        kind=GenerationKind.PLAN_EXTRACTION,
        shape=has_object("date_plan"),
        temperature=0.1,
        max_tokens=500,
        prompts=prompts.plan_extraction_prompts,
        build=build_plan,
        fallback=fallbacks.plan_from_conversation,
        cache_key=_no_cache,
    ),
}


def handler_for(kind: GenerationKind) -> KindHandler:
    return HANDLERS[kind]


__all__ = [
    "HANDLERS",
    "KindHandler",
    "build_curation",
    "build_ideas",
    "build_itinerary",
    "build_plan",
    "handler_for",
]
