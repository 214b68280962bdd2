"""Shared fixtures: a throwaway sqlite database per test plus a seeded promotion."""
from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.core.db import init_schema, reset_engine
from app.main import app


@pytest.fixture
def db_url(tmp_path, monkeypatch):
    url = f"sqlite:///{(tmp_path / 'test.db').as_posix()}"
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.delenv("SIMULATOR", raising=False)
    reset_engine()
    init_schema()
    yield url
    reset_engine()


@pytest.fixture
def client(db_url):
    with TestClient(app) as c:
        yield c


def _post(client: TestClient, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
    r = client.post(path, json=body)
    assert r.status_code == 201, r.text
    return r.json()


@pytest.fixture
def seed(client):
    """
    One promotion with six contracted wrestlers, a rival promotion with one,
    one free agent and two venues (one closed for booking).
    """
    company = _post(client, "/companies", {"name": "Apex Wrestling", "popularity": 60})
    rival = _post(client, "/companies", {"name": "Rival Pro", "popularity": 40})

    styles = ["Technical", "Showman", "Powerhouse", "High-Flyer", "Brawler", "All-Rounder"]
    wrestlers: List[Dict[str, Any]] = []
    for i, style in enumerate(styles):
        wrestlers.append(
            _post(
                client,
                "/wrestlers",
                {
                    "name": f"Wrestler {i + 1}",
                    "gender": "Male",
                    "style": style,
                    "technical": 40 + i * 10,
                    "charisma": 90 - i * 10,
                    "salary": 52_000.0,
                    "company_id": company["id"],
                },
            )
        )
    outsider = _post(client, "/wrestlers", {"name": "Rival Star", "gender": "Female", "style": "Showman", "company_id": rival["id"]})
    free_agent = _post(client, "/wrestlers", {"name": "Free Agent", "gender": "Male", "style": "Brawler"})

    venue = _post(client, "/venues", {"name": "Civic Arena", "capacity": 5000, "rental_cost": 10_000.0, "prestige": 60})
    closed = _post(client, "/venues", {"name": "Old Barn", "capacity": 300, "rental_cost": 500.0, "is_available": False})

    return SimpleNamespace(
        company=company,
        rival=rival,
        w=[w["id"] for w in wrestlers],
        outsider=outsider["id"],
        free_agent=free_agent["id"],
        venue=venue,
        closed_venue=closed,
    )


@pytest.fixture
def make_show(client, seed):
    def _make(**overrides: Any) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "company_id": seed.company["id"],
            "venue_id": seed.venue["id"],
            "name": "Monday Mayhem",
            "date": "2026-03-02T20:00:00Z",
            "show_type": "Weekly TV",
            "ticket_price": 25,
        }
        body.update(overrides)
        return _post(client, "/shows", body)

    return _make


@pytest.fixture
def make_title(client, seed):
    def _make(name: str = "World Heavyweight Championship", company_id: Optional[str] = None) -> Dict[str, Any]:
        return _post(client, "/championships", {"company_id": company_id or seed.company["id"], "name": name})

    return _make


def singles(a: str, b: str, *, winner: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "match_type": "Singles",
        "participants": [
            {"wrestler_id": a, "is_winner": winner == a},
            {"wrestler_id": b, "is_winner": winner == b},
        ],
    }
    if winner is None:
        body["booked_outcome"] = "Time Limit Draw"
    body.update(extra)
    return body


@pytest.fixture
def book_singles():
    return singles
