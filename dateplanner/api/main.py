"""FastAPI app: thin routes over the planning services."""

from __future__ import annotations

import logging
import os
import time
from collections import deque
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from dateplanner import __version__
from dateplanner.api.schemas import (
    DateFlowRequest,
    DateIdeasRequest,
    EventsRequest,
    EventsResponse,
    HealthResponse,
    PlanExtractionRequest,
)
from dateplanner.application.context import AppContext, make_app_context
from dateplanner.config.settings import docs_enabled, resolve_provider_snapshot
from dateplanner.domain.models import IdeaList, Itinerary, PlanRecord
from dateplanner.services import event_service, planning_service

_api_logger = logging.getLogger("date-planner.api")

load_dotenv()


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.ctx = make_app_context()
    _api_logger.info("app context ready (llm=%s)", resolve_provider_snapshot().llm_provider)
    yield
    app.state.ctx = None


app = FastAPI(
    title="date-planner",
    version=__version__,
    docs_url="/docs" if docs_enabled() else None,
    redoc_url=None,
    lifespan=lifespan,
)


# ── middleware ───────────────────────────────────────

_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Cache-Control": "no-store",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.update(_SECURITY_HEADERS)
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding window per client address, POST routes only, in process memory.

    Separate from the generation RateGate: this one protects the API from
    callers, the gate protects the provider quota.
    """

    def __init__(self, app, max_requests: int = 60, window_seconds: int = 60, clock=time.monotonic):
        super().__init__(app)
        self._max = max(1, max_requests)
        self._window = max(1, window_seconds)
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._last_sweep = clock()

    def _forget_idle(self, now: float) -> None:
        """Drop clients whose newest hit has left the window."""
        self._last_sweep = now
        for client in [c for c, hits in self._hits.items() if not hits or now - hits[-1] >= self._window]:
            del self._hits[client]

    async def dispatch(self, request: Request, call_next):
        if request.method != "POST":
            return await call_next(request)

        now = self._clock()
        if now - self._last_sweep >= self._window:
            self._forget_idle(now)
        hits = self._hits.setdefault(request.client.host if request.client else "unknown", deque())
        while hits and now - hits[0] >= self._window:
            hits.popleft()
        if len(hits) >= self._max:
            retry_in = max(1, int(self._window - (now - hits[0])))
            return JSONResponse(
                status_code=429,
                content={"detail": "Too many requests, try again shortly"},
                headers={"Retry-After": str(retry_in)},
            )
        hits.append(now)
        return await call_next(request)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    RateLimitMiddleware,
    max_requests=int(os.getenv("RATE_LIMIT_MAX", "60")),
    window_seconds=int(os.getenv("RATE_LIMIT_WINDOW", "60")),
)

_CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_CORS_ORIGINS,
    # credentials only with an explicit origin list
    allow_credentials="*" not in _CORS_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


def _ctx(request: Request) -> AppContext:
    ctx = getattr(request.app.state, "ctx", None)
    if ctx is None:
        ctx = make_app_context()
        request.app.state.ctx = ctx
    return ctx


# ── routes ───────────────────────────────────────────

@app.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok", version=__version__)


@app.get("/diagnostics")
def diagnostics(request: Request):
    """Provider status, cache and rate-gate stats, generation metrics. Add auth before exposing."""
    ctx = _ctx(request)
    return {
        "providers": resolve_provider_snapshot().model_dump(),
        "cache": ctx.cache.stats,
        "rate_gate": ctx.rate_gate.stats,
        "metrics": ctx.metrics.snapshot(),
        "key_reads": ctx.key_manager.read_counts() if ctx.key_manager else {},
    }


@app.post("/date-flow", response_model=Itinerary)
async def date_flow(req: DateFlowRequest, request: Request):
    return await planning_service.generate_date_flow(
        _ctx(request),
        req.location,
        req.user_profile,
        req.partner_profile,
        req.preferences,
    )


@app.post("/date-ideas", response_model=IdeaList)
async def date_ideas(req: DateIdeasRequest, request: Request):
    return await planning_service.generate_date_ideas(_ctx(request), req.location, req.partner_profile)


@app.post("/events", response_model=EventsResponse)
async def events(req: EventsRequest, request: Request):
    result = await event_service.discover_events(
        _ctx(request),
        req.location,
        req.neighborhood,
        req.radius,
        req.user_profile,
        req.partner_profile,
    )
    return EventsResponse(**result.model_dump())


@app.post("/plan-extraction", response_model=PlanRecord)
async def plan_extraction(req: PlanExtractionRequest, request: Request):
    messages = [m.model_dump() for m in req.messages]
    return await planning_service.extract_plan(_ctx(request), messages)
