from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from app.core.db import read_only, unit_of_work
from app.core.documents import delete_document, insert_document, load_document, query_documents, save_document
from app.core.errors import ConflictError, ValidationError, not_found
from app.core.ids import new_ulid
from app.core.observability import emit
from app.core.timeutil import as_utc, utcnow
from app.modules.roster.directory import SqliteDirectory

from . import lineage
from .lineage import ShowAnchor
from .schemas import Championship, ChampionshipOut

TABLE = "championships"
MODULE = "championships"

# wrestler popularity gained by winning a title and by retaining it
TITLE_WIN_POPULARITY = 5
DEFENSE_POPULARITY = 2

# shows whose card may still produce a title result
LIVE_SHOW_STATUSES = ("Draft", "Scheduled", "In Progress")


# -------------------------
# connection-level helpers (shared with the show lifecycle)
# -------------------------
def _columns(champ: Championship) -> Dict[str, Any]:
    return {
        "company_id": champ.company_id,
        "name": champ.name,
        "weight": champ.weight,
        "prestige": int(champ.prestige),
        "is_active": 1 if champ.is_active else 0,
        "current_holder_id": champ.current_holder_id,
    }


def load_championship(conn: sqlite3.Connection, championship_id: str) -> Championship:
    champ = load_document(conn, TABLE, championship_id, Championship)
    if champ is None:
        raise not_found("championship", championship_id)
    return champ


def store_championship(conn: sqlite3.Connection, champ: Championship) -> Championship:
    lineage.check_invariants(champ)
    return save_document(conn, TABLE, champ, _columns(champ))


def load_show_anchor(conn: sqlite3.Connection, show_id: str) -> ShowAnchor:
    r = conn.execute("SELECT id, date, status FROM shows WHERE id=?;", (show_id,)).fetchone()
    if r is None:
        raise not_found("show", show_id)
    return ShowAnchor(id=str(r["id"]), date=as_utc(datetime.fromisoformat(str(r["date"]))), status=str(r["status"]))


def _require_wrestler(conn: sqlite3.Connection, wrestler_id: str) -> None:
    if not SqliteDirectory(conn).wrestlers([wrestler_id]):
        raise not_found("wrestler", wrestler_id)


def _require_on_roster(conn: sqlite3.Connection, champ: Championship, wrestler_id: str) -> None:
    _require_wrestler(conn, wrestler_id)
    if wrestler_id not in SqliteDirectory(conn).roster_ids(champ.company_id):
        raise ValidationError(
            "wrestler is not on the championship company's roster",
            error="not_on_roster",
            details={"wrestler_id": wrestler_id, "company_id": champ.company_id},
        )


def change_holder(
    conn: sqlite3.Connection,
    championship_id: str,
    new_holder_id: str,
    *,
    at: datetime,
    won_from_id: Optional[str] = None,
    show: Optional[ShowAnchor] = None,
    check_roster: bool = True,
) -> Championship:
    champ = load_championship(conn, championship_id)
    updated = lineage.set_holder(champ, new_holder_id, at=at, won_from_id=won_from_id, show=show)
    if check_roster:
        _require_on_roster(conn, champ, updated.current_holder_id or "")
    stored = store_championship(conn, updated)
    SqliteDirectory(conn).adjust_wrestler_popularity(stored.current_holder_id or "", TITLE_WIN_POPULARITY)
    return stored


def add_defense(
    conn: sqlite3.Connection,
    championship_id: str,
    challenger_id: str,
    quality: float,
    *,
    at: datetime,
    show: Optional[ShowAnchor] = None,
    check_challenger: bool = True,
) -> Championship:
    champ = load_championship(conn, championship_id)
    # lineage first: a vacant title must report a conflict whatever the payload
    updated = lineage.record_defense(champ, challenger_id, quality, at=at, show=show)
    if check_challenger:
        _require_wrestler(conn, challenger_id.strip())
    stored = store_championship(conn, updated)
    SqliteDirectory(conn).adjust_wrestler_popularity(stored.current_holder_id or "", DEFENSE_POPULARITY)
    return stored


def to_out(champ: Championship, now: Optional[datetime] = None) -> ChampionshipOut:
    now = now or utcnow()
    return ChampionshipOut(**champ.model_dump(), current_reign_days=lineage.current_reign_days(champ, now))


# -------------------------
# Championships
# -------------------------
def create_championship(payload: Dict[str, Any], *, request_id: str = "") -> Championship:
    with unit_of_work() as conn:
        if SqliteDirectory(conn).company(payload["company_id"]) is None:
            raise not_found("company", payload["company_id"])
        champ = Championship(id=new_ulid(), **payload)
        insert_document(conn, TABLE, champ, _columns(champ))
        champ = load_championship(conn, champ.id)

    emit("audit", "championship.created", "championship created", request_id, MODULE,
         championship_id=champ.id, company_id=champ.company_id)
    return champ


def get_championship(championship_id: str) -> Championship:
    with read_only() as conn:
        return load_championship(conn, championship_id)


def list_championships(
    *,
    limit: int,
    offset: int,
    company_id: Optional[str] = None,
    active: Optional[bool] = None,
    weight: Optional[str] = None,
) -> Tuple[List[Championship], int]:
    where: List[str] = []
    args: List[Any] = []
    if company_id:
        where.append("company_id=?")
        args.append(company_id)
    if active is not None:
        where.append("is_active=?")
        args.append(1 if active else 0)
    if weight:
        where.append("weight=?")
        args.append(weight)
    where_sql = f"WHERE {' AND '.join(where)}" if where else ""

    with read_only() as conn:
        total = int(conn.execute(f"SELECT COUNT(1) FROM {TABLE} {where_sql};", args).fetchone()[0])
        items = query_documents(
            conn,
            f"SELECT doc_json, version FROM {TABLE} {where_sql} ORDER BY prestige DESC, name ASC LIMIT ? OFFSET ?;",
            args + [limit, offset],
            Championship,
        )
    return items, total


def patch_championship(championship_id: str, patch: Dict[str, Any], *, request_id: str = "") -> Championship:
    if "name" in patch:
        name = (patch["name"] or "").strip()
        if not name:
            raise ValidationError("name is required", details={"field": "name"})
        patch["name"] = name

    with unit_of_work() as conn:
        champ = load_championship(conn, championship_id)
        if patch.get("is_active") is False and champ.is_active:
            _ensure_not_booked(conn, championship_id)
        champ = store_championship(conn, champ.model_copy(update=patch))

    emit("audit", "championship.updated", "championship updated", request_id, MODULE,
         championship_id=championship_id, fields=sorted(patch.keys()))
    return champ


def set_holder(
    championship_id: str,
    wrestler_id: str,
    *,
    won_from_id: Optional[str] = None,
    show_id: Optional[str] = None,
    request_id: str = "",
) -> Championship:
    with unit_of_work() as conn:
        show = load_show_anchor(conn, show_id) if show_id else None
        champ = change_holder(conn, championship_id, wrestler_id, at=utcnow(), won_from_id=won_from_id, show=show)

    reign = champ.title_history[-1]
    emit("audit", "championship.holder_set", "championship holder set", request_id, MODULE,
         championship_id=champ.id, holder_id=reign.holder_id, won_from_id=reign.won_from_id,
         show_id=reign.won_at_show_id, reign_id=reign.id)
    return champ


def record_defense(
    championship_id: str,
    challenger_id: str,
    quality: float,
    *,
    show_id: Optional[str] = None,
    request_id: str = "",
) -> Championship:
    with unit_of_work() as conn:
        champ = load_championship(conn, championship_id)
        if lineage.open_reign(champ) is None:
            # report the vacant title before resolving any referenced show
            lineage.record_defense(champ, challenger_id, quality, at=utcnow())
        show = load_show_anchor(conn, show_id) if show_id else None
        champ = add_defense(conn, championship_id, challenger_id, quality, at=utcnow(), show=show)

    emit("audit", "championship.defense_recorded", "championship defense recorded", request_id, MODULE,
         championship_id=champ.id, holder_id=champ.current_holder_id, against_id=challenger_id,
         show_id=show_id, quality=quality)
    return champ


def vacate_championship(championship_id: str, *, show_id: Optional[str] = None, request_id: str = "") -> Championship:
    with unit_of_work() as conn:
        show = load_show_anchor(conn, show_id) if show_id else None
        champ = load_championship(conn, championship_id)
        champ = store_championship(conn, lineage.vacate(champ, at=utcnow(), show=show))

    emit("audit", "championship.vacated", "championship vacated", request_id, MODULE,
         championship_id=champ.id, show_id=show_id)
    return champ


def _booked_on(conn: sqlite3.Connection, championship_id: str, statuses: Tuple[str, ...]) -> List[str]:
    rows = conn.execute(
        f"""
        SELECT DISTINCT shows.id
        FROM shows, json_each(shows.doc_json, '$.matches') AS m
        WHERE shows.status IN ({','.join(['?'] * len(statuses))})
          AND json_extract(m.value, '$.championship_id') = ?
        ORDER BY shows.id;
        """,
        [*statuses, championship_id],
    ).fetchall()
    return [str(r[0]) for r in rows]


def _ensure_not_booked(conn: sqlite3.Connection, championship_id: str) -> None:
    # a booked title must stay active or its show could never complete
    show_ids = _booked_on(conn, championship_id, LIVE_SHOW_STATUSES)
    if show_ids:
        raise ConflictError(
            "championship is booked on an upcoming show card",
            error="championship_booked",
            details={"championship_id": championship_id, "show_ids": show_ids},
        )


def delete_championship(championship_id: str, *, request_id: str = "") -> Dict[str, Any]:
    """
    Physical delete only for a championship nobody can point at: empty history
    and no completed show card naming it. Anything else is deactivated instead.
    A title still booked on a Draft, Scheduled or In Progress card is refused.
    """
    with unit_of_work() as conn:
        champ = load_championship(conn, championship_id)
        _ensure_not_booked(conn, championship_id)
        if not champ.title_history and not _booked_on(conn, championship_id, ("Completed",)):
            delete_document(conn, TABLE, champ)
            out = {"id": championship_id, "deleted": True, "deactivated": False}
        else:
            if champ.is_active:
                store_championship(conn, champ.model_copy(update={"is_active": False}))
            out = {"id": championship_id, "deleted": False, "deactivated": True}

    event = "championship.deleted" if out["deleted"] else "championship.deactivated"
    emit("audit", event, event.split(".")[1], request_id, MODULE, championship_id=championship_id)
    return out


def wrestler_titles(wrestler_id: str) -> Dict[str, Any]:
    now = utcnow()
    with read_only() as conn:
        _require_wrestler(conn, wrestler_id)
        held = query_documents(
            conn,
            """
            SELECT doc_json, version FROM championships
            WHERE EXISTS (
                SELECT 1 FROM json_each(championships.doc_json, '$.title_history') AS r
                WHERE json_extract(r.value, '$.holder_id') = ?
            )
            ORDER BY prestige DESC, name ASC;
            """,
            [wrestler_id],
            Championship,
        )

    current = [c for c in held if c.current_holder_id == wrestler_id]
    former = [c for c in held if c.current_holder_id != wrestler_id]
    return {
        "wrestler_id": wrestler_id,
        "current": [to_out(c, now) for c in current],
        "former": [to_out(c, now) for c in former],
        "total_days_as_champion": sum(lineage.total_days_as_champion(c, wrestler_id, now) for c in held),
    }
