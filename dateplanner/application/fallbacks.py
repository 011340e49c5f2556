"""Deterministic fallback synthesis.

Each builder derives a schema-valid artifact from the request payload alone:
no provider, no clock, no randomness. Identical payloads give identical output.
"""

from __future__ import annotations

import re
from typing import Iterable

from dateplanner.domain.enums import CatalogName, ResultSource
from dateplanner.domain.models import (
    CurationPayload,
    DateFlowPayload,
    DateIdea,
    DateIdeasPayload,
    EventList,
    EventRecord,
    FlowStep,
    IdeaList,
    Itinerary,
    PlanExtractionPayload,
    PlannedDate,
    PlanRecord,
    Profile,
)

# interest keyword -> (activity, venue description, category)
_INTEREST_ACTIVITIES: tuple[tuple[tuple[str, ...], str, str, str], ...] = (
    (("music", "concert", "jazz", "band"), "Live music", "a local live music venue", "Music"),
    (("art", "museum", "gallery", "painting"), "Gallery stroll", "a nearby art gallery or museum", "Arts"),
    (("comedy", "improv", "standup"), "Comedy show", "a comedy club", "Arts"),
    (("wine", "cocktail", "beer", "drinks"), "Tasting flight", "a cozy wine or cocktail bar", "Food & Drink"),
    (("food", "cooking", "foodie", "restaurant"), "Cooking class", "a hands-on cooking studio", "Food & Drink"),
    (("outdoor", "hiking", "nature", "park", "walking"), "Sunset walk", "a scenic park or trail", "Outdoors"),
    (("movie", "film", "cinema"), "Movie night", "an independent cinema", "Film & Media"),
    (("game", "board", "trivia", "arcade"), "Game night", "a board game cafe or arcade bar", "Hobbies"),
    (("dance", "dancing", "salsa"), "Dance lesson", "a beginner-friendly dance studio", "Arts"),
    (("sport", "sports", "bowling", "climbing"), "Friendly competition", "a bowling alley or climbing gym", "Sports"),
    (("book", "reading", "poetry"), "Bookstore date", "an independent bookstore and cafe", "Community"),
    (("coffee", "tea", "cafe"), "Coffee tasting", "a specialty coffee shop", "Food & Drink"),
)

_DEFAULT_ACTIVITY = ("Evening stroll", "a walkable neighborhood with shops and street life", "Community")

_GENERIC_IDEAS: tuple[tuple[str, str, str, str, str], ...] = (
    ("Picnic in the park", "Pack favorite snacks and a blanket and find a quiet spot in a local park.", "Outdoors", "$", "2 hours"),
    ("Cook dinner together", "Pick a recipe neither of you has tried and cook it side by side.", "Food & Drink", "$$", "2-3 hours"),
    ("Museum afternoon", "Wander a local museum and pick a favorite piece to talk about over coffee.", "Arts", "$", "2-3 hours"),
    ("Trivia night", "Team up at a pub trivia night and see how well your knowledge overlaps.", "Hobbies", "$", "2 hours"),
    ("Farmers market morning", "Browse local stalls, taste samples, and pick ingredients for a shared lunch.", "Food & Drink", "$", "1-2 hours"),
    ("Stargazing drive", "Drive a little way out of town after dark and look for constellations.", "Outdoors", "Free", "2 hours"),
)

_FALLBACK_EVENTS: tuple[tuple[str, str, str, str, str], ...] = (
    ("Live Music Night", "08:00 PM", "Music", "Varies", "Catch a local band at a neighborhood music venue."),
    ("Weekend Farmers Market", "10:00 AM", "Food & Drink", "Free entry", "Stroll the stalls and taste seasonal produce."),
    ("Art Gallery Walk", "06:00 PM", "Arts", "Free", "Visit open galleries and studios in the arts district."),
    ("Stand-up Comedy Showcase", "09:00 PM", "Arts", "USD 15 - 25", "An evening of rotating local comedians."),
    ("Wine Tasting Evening", "07:00 PM", "Food & Drink", "USD 20 - 40", "Sample a flight of wines with light bites."),
)

_TOKEN_RE = re.compile(r"[a-z0-9]+")


def _tokens(text: str) -> set[str]:
    return set(_TOKEN_RE.findall((text or "").lower()))


def _ordered_interests(*profiles: Profile) -> list[str]:
    """Shared interests first, then the rest in profile order."""
    lists = [[i.lower() for i in p.interests] for p in profiles]
    shared = [i for i in lists[0] if all(i in other for other in lists[1:])] if lists else []
    ordered: list[str] = list(shared)
    for interests in lists:
        for interest in interests:
            if interest not in ordered:
                ordered.append(interest)
    return ordered


def _activities_for(interests: Iterable[str]) -> list[tuple[str, str, str]]:
    picked: list[tuple[str, str, str]] = []
    for interest in interests:
        words = _tokens(interest)
        for keywords, activity, venue, category in _INTEREST_ACTIVITIES:
            if words & set(keywords) and (activity, venue, category) not in picked:
                picked.append((activity, venue, category))
                break
    return picked


def _area(location: str, *profiles: Profile) -> str:
    for profile in profiles:
        if profile.neighborhood:
            return f"{profile.neighborhood}, {location}" if location else profile.neighborhood
    return location or "your area"


def _budget(*profiles: Profile) -> str:
    for profile in profiles:
        if profile.budget:
            return profile.budget
    return "Moderate"


def date_flow_fallback(payload: DateFlowPayload) -> Itinerary:
    area = _area(payload.location, payload.user_profile, payload.partner_profile)
    picked = _activities_for(_ordered_interests(payload.partner_profile, payload.user_profile))
    activity, venue, _ = picked[0] if picked else _DEFAULT_ACTIVITY
    return Itinerary(
        title=f"An Evening Out in {area}",
        location=payload.location,
        flow=[
            FlowStep(
                time="6:00 PM",
                activity="Dinner",
                venue=f"A well-reviewed local restaurant in {area}",
                description="Start with an unhurried dinner somewhere you can talk easily.",
                duration="1.5 hours",
                estimated_cost="$$",
            ),
            FlowStep(
                time="7:45 PM",
                activity=activity,
                venue=f"{venue[0].upper()}{venue[1:]} nearby",
                description=f"{activity} chosen around the interests you share.",
                duration="1.5 hours",
                estimated_cost="$",
            ),
            FlowStep(
                time="9:30 PM",
                activity="Dessert or a nightcap",
                venue=f"A dessert spot or quiet bar in {area}",
                description="Wind down and talk about the highlights of the night.",
                duration="45 minutes",
                estimated_cost="$",
            ),
        ],
        total_estimated_cost=_budget(payload.user_profile, payload.partner_profile),
        tips=[
            "Check opening hours and reserve dinner ahead if you can.",
            "Keep the plan flexible so you can linger where you are having fun.",
        ],
        source=ResultSource.FALLBACK,
    )


def date_ideas_fallback(payload: DateIdeasPayload) -> IdeaList:
    area = _area(payload.location, payload.partner_profile)
    ideas: list[DateIdea] = []
    for activity, venue, category in _activities_for(_ordered_interests(payload.partner_profile))[:2]:
        ideas.append(DateIdea(
            title=activity,
            description=f"Plan a {activity.lower()} at {venue} in {area}.",
            category=category,
            estimated_cost="$$",
            duration="2 hours",
        ))
    taken = {idea.title for idea in ideas}
    for title, description, category, cost, duration in _GENERIC_IDEAS:
        if len(ideas) >= 5:
            break
        if title in taken:
            continue
        ideas.append(DateIdea(
            title=title,
            description=description,
            category=category,
            estimated_cost=cost,
            duration=duration,
        ))
    return IdeaList(location=payload.location, ideas=ideas, source=ResultSource.FALLBACK)


def score_event(event: EventRecord, interests: Iterable[str]) -> int:
    category = _tokens(event.category)
    text = _tokens(f"{event.name} {event.description}")
    score = 0
    for interest in interests:
        words = _tokens(interest)
        if words & category:
            score += 2
        if words & text:
            score += 1
    return score


def rank_events(events: list[EventRecord], interests: Iterable[str], limit: int) -> list[EventRecord]:
    """Stable interest ranking; ties keep catalog order."""
    interests = list(interests)
    indexed = sorted(enumerate(events), key=lambda pair: (-score_event(pair[1], interests), pair[0]))
    return [event for _, event in indexed[:limit]]


def curation_fallback(payload: CurationPayload) -> EventList:
    interests = _ordered_interests(payload.user_profile, payload.partner_profile)
    return EventList(
        events=rank_events(list(payload.events), interests, payload.limit),
        source=ResultSource.FALLBACK,
    )


def fallback_event_list(location: str) -> list[EventRecord]:
    """Fixed list served when both catalogs come back empty."""
    area = location or "your area"
    return [
        EventRecord(
            name=name,
            date="Flexible",
            time=time,
            venue=f"Various venues in {area}",
            category=category,
            cost=cost,
            description=description,
            source=CatalogName.CURATED.value,
        )
        for name, time, category, cost, description in _FALLBACK_EVENTS
    ]


# ── conversation heuristics ──────────────────────────

_TIME_RE = re.compile(r"\b((?:[01]?\d|2[0-3])(?::[0-5]\d)?\s*(?:am|pm)|noon|midnight)\b", re.IGNORECASE)
_DATE_RE = re.compile(
    r"\b(tonight|tomorrow(?: night)?|this (?:weekend|friday|saturday|sunday)|next (?:week|weekend)|"
    r"(?:mon|tues|wednes|thurs|fri|satur|sun)day|"
    r"(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.? \d{1,2}(?:st|nd|rd|th)?|"
    r"\d{1,2}/\d{1,2}(?:/\d{2,4})?)\b",
    re.IGNORECASE,
)
_VENUE_RE = re.compile(r"\b(?:at|to)\s+(?:the\s+)?((?:[A-Z][\w'&.-]*)(?:\s+(?:[A-Z][\w'&.-]*|of|and))*)")
_ACTIVITIES = (
    "wine tasting", "cooking class", "comedy show", "dinner", "lunch", "brunch", "coffee", "drinks",
    "concert", "movie", "museum", "hike", "picnic", "bowling", "karaoke", "show", "walk",
)
_VENUE_STOPWORDS = {"I", "We", "You", "It", "The", "A", "An"}
_TRAILING_CONNECTOR_RE = re.compile(r"(?:\s+(?:of|and))+$")


def _last_match(pattern: re.Pattern[str], texts: list[str]) -> str:
    for text in reversed(texts):
        matches = pattern.findall(text)
        if matches:
            return matches[-1].strip()
    return ""


def _last_activity(texts: list[str]) -> str:
    for text in reversed(texts):
        lowered = text.lower()
        found = [(lowered.rfind(a) + len(a), len(a), a) for a in _ACTIVITIES if a in lowered]
        if found:
            return max(found)[2]
    return ""


def _last_venue(texts: list[str]) -> str:
    for text in reversed(texts):
        for candidate in reversed(_VENUE_RE.findall(text)):
            candidate = _TRAILING_CONNECTOR_RE.sub("", candidate).strip(" .")
            if candidate and candidate not in _VENUE_STOPWORDS:
                return candidate
    return ""


def plan_from_conversation(payload: PlanExtractionPayload) -> PlanRecord:
    """Regex pass over the conversation, most recent mention wins."""
    texts = [m.content for m in payload.messages if m.content]
    plan = PlannedDate(
        activity=_last_activity(texts),
        venue=_last_venue(texts),
        date=_last_match(_DATE_RE, texts),
        time=_last_match(_TIME_RE, texts),
    )
    found = plan.filled_fields() > 0
    return PlanRecord(
        date_plan=plan,
        is_complete=bool(plan.activity and plan.venue and (plan.date or plan.time)),
        summary=" ".join(p for p in (plan.activity, plan.venue and f"at {plan.venue}", plan.date, plan.time) if p),
        source=ResultSource.CONVERSATION_CONTEXT if found else ResultSource.FALLBACK,
    )


__all__ = [
    "curation_fallback",
    "date_flow_fallback",
    "date_ideas_fallback",
    "fallback_event_list",
    "plan_from_conversation",
    "rank_events",
    "score_event",
]
