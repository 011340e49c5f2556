from __future__ import annotations

import json

import pytest

from dateplanner import cli
from dateplanner.domain.models import EventRecord


@pytest.fixture
def offline_ctx(monkeypatch, make_ctx, fake_catalog):
    records = [EventRecord(name="Jazz Night", date="02/01/2025", time="08:00 PM", venue="Elephant Room", cost="USD 20")]
    ctx = make_ctx(catalogs=[fake_catalog("Ticketmaster", records)])
    monkeypatch.setattr(cli, "make_app_context", lambda: ctx)
    return ctx


def test_ideas_prints_numbered_list(offline_ctx, capsys):
    assert cli.main(["ideas", "Austin", "--interests", "jazz"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("Date ideas for Austin")
    assert "1. Live music" in out
    assert "[source: fallback]" in out


def test_flow_as_json(offline_ctx, capsys):
    cli.main(["--json", "flow", "Austin", "--interests", "art", "--budget", "$$"])
    data = json.loads(capsys.readouterr().out)
    assert data["source"] == "fallback"
    assert data["total_estimated_cost"] == "$$"
    assert data["flow"][1]["activity"] == "Gallery stroll"


def test_events_lists_catalog_results(offline_ctx, capsys):
    cli.main(["events", "Austin", "--radius", "5"])
    out = capsys.readouterr().out
    assert "- Jazz Night | 02/01/2025 08:00 PM | Elephant Room | USD 20" in out
    assert "[source: catalogs, ranked]" in out


def test_subcommand_is_required():
    with pytest.raises(SystemExit):
        cli.main([])
