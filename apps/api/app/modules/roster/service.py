from __future__ import annotations

import sqlite3
from typing import Any, Dict, List

from app.core.db import read_only, unit_of_work
from app.core.errors import not_found
from app.core.ids import new_ulid
from app.core.timeutil import now_iso


def _insert(conn: sqlite3.Connection, table: str, row: Dict[str, Any]) -> str:
    data = dict(row)
    now = now_iso()
    data.setdefault("id", new_ulid())
    data.setdefault("created_at", now)
    data.setdefault("updated_at", now)

    keys = sorted(data.keys())
    sql = f"INSERT INTO {table} ({','.join(keys)}) VALUES ({','.join(['?'] * len(keys))});"
    conn.execute(sql, [data[k] for k in keys])
    return str(data["id"])


def _row(conn: sqlite3.Connection, table: str, kind: str, row_id: str) -> Dict[str, Any]:
    r = conn.execute(f"SELECT * FROM {table} WHERE id=?;", (row_id,)).fetchone()
    if r is None:
        raise not_found(kind, row_id)
    return dict(r)


# -------------------------
# Companies
# -------------------------
def create_company(payload: Dict[str, Any]) -> Dict[str, Any]:
    with unit_of_work() as conn:
        cid = _insert(conn, "companies", payload)
        return _row(conn, "companies", "company", cid)


def get_company(company_id: str) -> Dict[str, Any]:
    with read_only() as conn:
        return _row(conn, "companies", "company", company_id)


def get_roster(company_id: str) -> List[Dict[str, Any]]:
    with read_only() as conn:
        _row(conn, "companies", "company", company_id)
        rows = conn.execute(
            "SELECT * FROM wrestlers WHERE company_id=? ORDER BY popularity DESC, name ASC;",
            (company_id,),
        ).fetchall()
        return [dict(r) for r in rows]


# -------------------------
# Wrestlers
# -------------------------
def create_wrestler(payload: Dict[str, Any]) -> Dict[str, Any]:
    with unit_of_work() as conn:
        if payload.get("company_id"):
            _row(conn, "companies", "company", str(payload["company_id"]))
        wid = _insert(conn, "wrestlers", payload)
        return _row(conn, "wrestlers", "wrestler", wid)


def get_wrestler(wrestler_id: str) -> Dict[str, Any]:
    with read_only() as conn:
        return _row(conn, "wrestlers", "wrestler", wrestler_id)


# -------------------------
# Venues
# -------------------------
def create_venue(payload: Dict[str, Any]) -> Dict[str, Any]:
    with unit_of_work() as conn:
        vid = _insert(conn, "venues", payload)
        return _row(conn, "venues", "venue", vid)


def get_venue(venue_id: str) -> Dict[str, Any]:
    with read_only() as conn:
        return _row(conn, "venues", "venue", venue_id)


def list_venues(available_only: bool = False) -> List[Dict[str, Any]]:
    with read_only() as conn:
        where = "WHERE is_available=1" if available_only else ""
        rows = conn.execute(f"SELECT * FROM venues {where} ORDER BY prestige DESC, name ASC;").fetchall()
        return [dict(r) for r in rows]
