"""date-planner CLI: ideas, flow and events from the terminal."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Optional

from dotenv import load_dotenv

from dateplanner.application.context import make_app_context
from dateplanner.domain.models import EventSearchResult, IdeaList, Itinerary
from dateplanner.services import event_service, planning_service

load_dotenv()


def _profile(interests: str, budget: str = "", neighborhood: str = "") -> dict[str, Any]:
    return {"interests": interests, "budget": budget, "neighborhood": neighborhood}


def format_itinerary(itinerary: Itinerary) -> str:
    lines = [itinerary.title, "=" * 50]
    for step in itinerary.flow:
        head = f"  {step.time:>8}  {step.activity}"
        if step.venue:
            head += f" @ {step.venue}"
        lines.append(head)
        if step.description:
            lines.append(f"            {step.description}")
    lines.append("=" * 50)
    if itinerary.total_estimated_cost:
        lines.append(f"Estimated cost: {itinerary.total_estimated_cost}")
    for tip in itinerary.tips:
        lines.append(f"Tip: {tip}")
    lines.append(f"[source: {itinerary.source.value}]")
    return "\n".join(lines)


def format_ideas(ideas: IdeaList) -> str:
    lines = [f"Date ideas for {ideas.location or 'you'}", "=" * 50]
    for idx, idea in enumerate(ideas.ideas, 1):
        meta = ", ".join(p for p in (idea.estimated_cost, idea.duration) if p)
        lines.append(f"{idx}. {idea.title}" + (f" ({meta})" if meta else ""))
        if idea.description:
            lines.append(f"   {idea.description}")
    lines.append(f"[source: {ideas.source.value}]")
    return "\n".join(lines)


def format_events(result: EventSearchResult) -> str:
    lines = [f"Events near {result.location}", "=" * 50]
    for event in result.events:
        when = " ".join(p for p in (event.date, event.time) if p)
        lines.append(f"- {event.name} | {when} | {event.venue} | {event.cost}")
    lines.append(f"[source: {result.source}{', ' + result.curated_by if result.curated_by else ''}]")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="date-planner", description="Date planning from the terminal")
    parser.add_argument("--json", action="store_true", help="print raw JSON instead of text")
    sub = parser.add_subparsers(dest="command", required=True)

    ideas = sub.add_parser("ideas", help="brainstorm date ideas")
    ideas.add_argument("location")
    ideas.add_argument("--interests", default="", help="comma separated partner interests")

    flow = sub.add_parser("flow", help="plan an evening itinerary")
    flow.add_argument("location")
    flow.add_argument("--interests", default="", help="comma separated shared interests")
    flow.add_argument("--partner-interests", default="")
    flow.add_argument("--budget", default="")
    flow.add_argument("--neighborhood", default="")

    events = sub.add_parser("events", help="find and curate nearby events")
    events.add_argument("location")
    events.add_argument("--neighborhood", default="")
    events.add_argument("--radius", type=int, default=None)
    events.add_argument("--interests", default="")
    return parser


async def _run(args: argparse.Namespace) -> Any:
    ctx = make_app_context()
    if args.command == "ideas":
        return await planning_service.generate_date_ideas(ctx, args.location, _profile(args.interests))
    if args.command == "flow":
        return await planning_service.generate_date_flow(
            ctx,
            args.location,
            _profile(args.interests, args.budget, args.neighborhood),
            _profile(args.partner_interests or args.interests),
        )
    return await event_service.discover_events(
        ctx,
        args.location,
        args.neighborhood,
        args.radius,
        user_profile=_profile(args.interests),
    )


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    result = asyncio.run(_run(args))
    if args.json:
        print(json.dumps(result.model_dump(mode="json"), ensure_ascii=False, indent=2))
    elif isinstance(result, Itinerary):
        print(format_itinerary(result))
    elif isinstance(result, IdeaList):
        print(format_ideas(result))
    else:
        print(format_events(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
