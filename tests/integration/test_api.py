"""API smoke tests against in-memory catalogs and no generation key."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from dateplanner.api.main import RateLimitMiddleware, app
from dateplanner.domain.models import EventRecord


@pytest.fixture
def client(make_ctx, fake_catalog):
    app.state.ctx = make_ctx(
        catalogs=[fake_catalog("Ticketmaster", []), fake_catalog("Eventbrite", [])],
    )
    yield TestClient(app)
    app.state.ctx = None


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_security_headers(client):
    r = client.get("/health")
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"


def test_date_flow_without_key_serves_fallback(client):
    r = client.post("/date-flow", json={
        "location": "Austin, TX",
        "user_profile": {"interests": "jazz, tacos"},
        "partner_profile": {"interests": ["jazz"], "travelRadius": 5},
    })
    assert r.status_code == 200
    data = r.json()
    assert data["source"] == "fallback"
    assert len(data["flow"]) == 3
    assert data["flow"][1]["activity"] == "Live music"


def test_date_ideas(client):
    r = client.post("/date-ideas", json={"location": "Austin, TX", "partner_profile": {"interests": ["art"]}})
    assert r.status_code == 200
    data = r.json()
    assert data["source"] == "fallback"
    assert len(data["ideas"]) == 5


def test_events_fall_back_when_catalogs_are_empty(client):
    r = client.post("/events", json={"location": "Austin, TX"})
    assert r.status_code == 200
    data = r.json()
    assert data["source"] == "fallback"
    assert len(data["events"]) == 5
    assert data["catalog_counts"] == {"Ticketmaster": 0, "Eventbrite": 0}


def test_events_are_ranked_for_the_couple(make_ctx, fake_catalog):
    records = [
        EventRecord(name="Tax Seminar", date="02/01/2025", category="Business", source="Ticketmaster"),
        EventRecord(name="Salsa Social", date="02/01/2025", category="Arts", source="Ticketmaster"),
    ]
    app.state.ctx = make_ctx(catalogs=[fake_catalog("Ticketmaster", records)])
    try:
        r = TestClient(app).post("/events", json={
            "location": "Austin, TX",
            "partner_profile": {"interests": ["salsa"]},
        })
    finally:
        app.state.ctx = None

    data = r.json()
    assert data["source"] == "catalogs"
    assert data["curated_by"] == "ranked"
    assert data["events"][0]["name"] == "Salsa Social"


def test_plan_extraction(client):
    r = client.post("/plan-extraction", json={"messages": [
        {"role": "assistant", "content": "How about dinner at Olive Garden on Friday at 7pm?"},
        {"role": "user", "content": "Perfect"},
    ]})
    assert r.status_code == 200
    data = r.json()
    assert data["source"] == "conversation_context"
    assert data["date_plan"]["venue"] == "Olive Garden"
    assert data["is_complete"] is True


def test_diagnostics_reports_runtime_state(client):
    client.post("/date-ideas", json={"location": "Austin"})
    data = client.get("/diagnostics").json()
    assert data["providers"]["llm_provider"] == "template"
    assert set(data) == {"providers", "cache", "rate_gate", "metrics", "key_reads"}
    assert data["metrics"]["generation"]["date_ideas"]["sources"] == {"fallback": 1}


@pytest.mark.parametrize(
    "path,body",
    [
        ("/date-flow", {"location": ""}),
        ("/date-ideas", {}),
        ("/events", {"location": "Austin", "radius": 0}),
        ("/events", {"location": "Austin", "radius": 500}),
    ],
)
def test_invalid_requests_are_rejected(client, path, body):
    assert client.post(path, json=body).status_code == 422


def test_post_rate_limit_answers_429():
    limited = FastAPI()
    limited.add_middleware(RateLimitMiddleware, max_requests=2, window_seconds=60)

    @limited.post("/echo")
    def echo():
        return {"ok": True}

    @limited.get("/echo")
    def echo_get():
        return {"ok": True}

    c = TestClient(limited)
    assert [c.post("/echo").status_code for _ in range(3)] == [200, 200, 429]
    assert c.post("/echo").headers["Retry-After"].isdigit()
    assert c.get("/echo").status_code == 200


def test_rate_limiter_forgets_idle_clients():
    inner = FastAPI()

    @inner.post("/echo")
    def echo():
        return {"ok": True}

    now = [0.0]
    limiter = RateLimitMiddleware(inner, max_requests=2, window_seconds=60, clock=lambda: now[0])
    c = TestClient(limiter)

    assert c.post("/echo").status_code == 200
    assert list(limiter._hits) == ["testclient"]

    now[0] = 61.0
    limiter._forget_idle(now[0])
    assert limiter._hits == {}


def test_wildcard_cors_does_not_allow_credentials(client):
    r = client.get("/health", headers={"Origin": "https://example.com"})
    assert r.headers["access-control-allow-origin"] == "*"
    assert "access-control-allow-credentials" not in r.headers
