"""Racing writers on real connections: the lineage and the show machine stay consistent."""
from __future__ import annotations

import threading
from typing import Callable, List

from app.core.db import unit_of_work
from app.core.documents import load_document, save_document
from app.core.errors import ConflictError, DomainError
from app.modules.championships import service as championships_service
from app.modules.championships.schemas import Championship
from app.modules.shows import service as shows_service


def _race(fns: List[Callable[[], object]]):
    barrier = threading.Barrier(len(fns))
    ok: List[object] = []
    failed: List[BaseException] = []
    lock = threading.Lock()

    def run(fn):
        barrier.wait()
        try:
            res = fn()
        except DomainError as e:
            with lock:
                failed.append(e)
        else:
            with lock:
                ok.append(res)

    threads = [threading.Thread(target=run, args=(fn,)) for fn in fns]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return ok, failed


def test_racing_set_holder_keeps_one_open_reign(client, seed, make_title):
    title = make_title()

    ok, failed = _race([
        (lambda w=w: championships_service.set_holder(title["id"], w)) for w in seed.w
    ])
    assert failed == []
    assert len(ok) == len(seed.w)

    champ = client.get(f"/championships/{title['id']}").json()
    opened = [r for r in champ["title_history"] if r["end_date"] is None]
    assert len(champ["title_history"]) == len(seed.w)
    assert len(opened) == 1
    assert champ["current_holder_id"] == opened[0]["holder_id"]
    assert champ["version"] == len(seed.w)
    # each reign after the first was won from the one before it
    history = champ["title_history"]
    for prev, cur in zip(history, history[1:]):
        assert cur["won_from_id"] == prev["holder_id"]


def test_racing_complete_and_cancel_pick_one_winner(client, seed, make_show, book_singles):
    show = make_show()
    client.post(f"/shows/{show['id']}/matches", json=book_singles(seed.w[0], seed.w[1], winner=seed.w[0]))
    client.post(f"/shows/{show['id']}/start")

    ok, failed = _race([
        lambda: shows_service.complete_show(show["id"]),
        lambda: shows_service.cancel_show(show["id"]),
    ])
    assert len(ok) == 1
    assert len(failed) == 1
    assert isinstance(failed[0], ConflictError)

    final = client.get(f"/shows/{show['id']}").json()
    assert final["status"] in ("Completed", "Cancelled")
    assert (final["results"] is not None) == (final["status"] == "Completed")


def test_racing_start_only_starts_once(client, seed, make_show):
    show = make_show()
    ok, failed = _race([lambda: shows_service.start_show(show["id"]) for _ in range(4)])
    assert len(ok) == 1
    assert len(failed) == 3
    assert all(e.error == "invalid_transition" for e in failed)


def test_stale_version_write_is_rejected(client, seed, make_title):
    title = make_title()

    with unit_of_work() as conn:
        stale = load_document(conn, "championships", title["id"], Championship)

    championships_service.set_holder(title["id"], seed.w[0])

    with unit_of_work() as conn:
        try:
            save_document(conn, "championships", stale.model_copy(update={"name": "Lost Update"}), {"name": "Lost Update"})
        except ConflictError as e:
            assert e.error == "concurrent_modification"
        else:
            raise AssertionError("stale write was accepted")

    got = client.get(f"/championships/{title['id']}").json()
    assert got["name"] == "World Heavyweight Championship"
    assert got["current_holder_id"] == seed.w[0]
