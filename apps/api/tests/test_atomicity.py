"""CompleteShow is all-or-nothing across the show, its championships and the company."""
from __future__ import annotations

import sqlite3

import pytest

from app.modules.championships import service as championships_service
from app.modules.roster.directory import SqliteDirectory


@pytest.fixture
def title_show(client, seed, make_show, make_title, book_singles):
    a, b = seed.w[0], seed.w[1]
    title = make_title()
    client.post(f"/championships/{title['id']}/holder", json={"wrestler_id": a})

    show = make_show(date="2030-01-01T20:00:00Z")
    client.post(
        f"/shows/{show['id']}/matches",
        json=book_singles(a, b, winner=b, is_championship_match=True, championship_id=title["id"]),
    )
    r = client.post(f"/shows/{show['id']}/start")
    assert r.status_code == 200, r.text
    return show["id"], title["id"]


def _raising(exc: Exception):
    def _fn(*args, **kwargs):
        raise exc

    return _fn


def _snapshot(client, seed, show_id: str, title_id: str):
    return (
        client.get(f"/shows/{show_id}").json(),
        client.get(f"/championships/{title_id}").json(),
        client.get(f"/companies/{seed.company['id']}").json(),
        [client.get(f"/wrestlers/{w}").json()["popularity"] for w in seed.w[:2]],
    )


def test_storage_fault_during_title_change_rolls_everything_back(client, seed, title_show, monkeypatch):
    show_id, title_id = title_show
    before = _snapshot(client, seed, show_id, title_id)

    def broken(*args, **kwargs):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(championships_service, "change_holder", broken)

    r = client.post(f"/shows/{show_id}/complete", headers={"X-Request-Id": "fault-1"})
    assert r.status_code == 409
    body = r.json()
    assert body["error"] == "transaction_failed"
    assert body["request_id"] == "fault-1"
    assert body["details"]["show_id"] == show_id

    assert _snapshot(client, seed, show_id, title_id) == before
    assert before[0]["status"] == "In Progress"
    assert before[0]["results"] is None


def test_fault_after_title_change_rolls_back_the_title_too(client, seed, title_show, monkeypatch):
    show_id, title_id = title_show
    before = _snapshot(client, seed, show_id, title_id)

    def broken(self, company_id, *, profit, popularity_delta):
        raise RuntimeError("company ledger unavailable")

    monkeypatch.setattr(SqliteDirectory, "apply_show_result", broken)

    r = client.post(f"/shows/{show_id}/complete")
    assert r.status_code == 409
    assert r.json()["error"] == "transaction_failed"

    after = _snapshot(client, seed, show_id, title_id)
    assert after == before
    assert after[1]["current_holder_id"] == seed.w[0]


def test_booked_title_stays_active_so_completion_goes_through(client, seed, title_show):
    show_id, title_id = title_show
    before = _snapshot(client, seed, show_id, title_id)

    assert client.delete(f"/championships/{title_id}").json()["error"] == "championship_booked"
    assert client.patch(f"/championships/{title_id}", json={"is_active": False}).status_code == 409
    assert _snapshot(client, seed, show_id, title_id) == before

    r = client.post(f"/shows/{show_id}/complete")
    assert r.status_code == 200, r.text
    assert client.get(f"/championships/{title_id}").json()["current_holder_id"] == seed.w[1]


def test_completion_is_safe_to_retry(client, seed, title_show, monkeypatch):
    show_id, title_id = title_show

    with monkeypatch.context() as m:
        m.setattr(championships_service, "change_holder", _raising(sqlite3.OperationalError("database is locked")))
        assert client.post(f"/shows/{show_id}/complete").status_code == 409

    r = client.post(f"/shows/{show_id}/complete")
    assert r.status_code == 200, r.text
    assert r.json()["show"]["status"] == "Completed"

    champ = client.get(f"/championships/{title_id}").json()
    assert champ["current_holder_id"] == seed.w[1]
    assert len(champ["title_history"]) == 2


def test_health_reports_last_transaction_failure(client, seed, title_show, monkeypatch):
    show_id, _ = title_show
    monkeypatch.setattr(championships_service, "change_holder", _raising(RuntimeError("boom")))
    client.post(f"/shows/{show_id}/complete", headers={"X-Request-Id": "fault-2"})

    health = client.get("/health").json()
    assert health["db"]["status"] == "ok"
    assert health["last_error_summary"]["error"] == "transaction_failed"
    assert health["last_error_summary"]["request_id"] == "fault-2"
