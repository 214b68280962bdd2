"""
Document persistence for aggregates (Championship, Show).

Each aggregate lives in one row: the full document in ``doc_json`` plus a few
denormalized columns for querying. ``version`` is a compare-and-swap token:
every write must name the version it read, and a mismatch means somebody else
won the race.
"""
from __future__ import annotations

import sqlite3
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel

from app.core.errors import ConflictError
from app.core.timeutil import now_iso

D = TypeVar("D", bound=BaseModel)


def _row_to_doc(row: sqlite3.Row, model: Type[D]) -> D:
    doc = model.model_validate_json(row["doc_json"])
    # row column is authoritative for the token
    return doc.model_copy(update={"version": int(row["version"])})


def load_document(conn: sqlite3.Connection, table: str, doc_id: str, model: Type[D]) -> Optional[D]:
    row = conn.execute(f"SELECT doc_json, version FROM {table} WHERE id=?;", (doc_id,)).fetchone()
    if row is None:
        return None
    return _row_to_doc(row, model)


def query_documents(conn: sqlite3.Connection, sql: str, args: List[Any], model: Type[D]) -> List[D]:
    return [_row_to_doc(r, model) for r in conn.execute(sql, args).fetchall()]


def insert_document(conn: sqlite3.Connection, table: str, doc: D, columns: Dict[str, Any]) -> D:
    now = now_iso()
    stored = doc.model_copy(update={"created_at": getattr(doc, "created_at", None) or now, "updated_at": now})

    data = dict(columns)
    data["id"] = getattr(stored, "id")
    data["version"] = int(getattr(stored, "version"))
    data["doc_json"] = stored.model_dump_json()
    data["created_at"] = getattr(stored, "created_at")
    data["updated_at"] = now

    keys = sorted(data.keys())
    sql = f"INSERT INTO {table} ({','.join(keys)}) VALUES ({','.join(['?'] * len(keys))});"
    conn.execute(sql, [data[k] for k in keys])
    return stored


def save_document(conn: sqlite3.Connection, table: str, doc: D, columns: Dict[str, Any]) -> D:
    """
    Compare-and-swap write. Returns the stored document (version bumped).
    Raises ConflictError when the row moved past the version the caller read.
    """
    expected = int(getattr(doc, "version"))
    stored = doc.model_copy(update={"version": expected + 1, "updated_at": now_iso()})

    data = dict(columns)
    data["doc_json"] = stored.model_dump_json()
    data["version"] = expected + 1
    data["updated_at"] = stored.updated_at  # type: ignore[attr-defined]

    keys = sorted(data.keys())
    set_sql = ", ".join(f"{k}=?" for k in keys)
    cur = conn.execute(
        f"UPDATE {table} SET {set_sql} WHERE id=? AND version=?;",
        [data[k] for k in keys] + [getattr(doc, "id"), expected],
    )
    if cur.rowcount != 1:
        raise ConflictError(
            f"{table[:-1]} was modified concurrently; reload and retry",
            error="concurrent_modification",
            details={"id": getattr(doc, "id"), "expected_version": expected},
        )
    return stored


def delete_document(conn: sqlite3.Connection, table: str, doc: BaseModel) -> None:
    cur = conn.execute(
        f"DELETE FROM {table} WHERE id=? AND version=?;",
        (getattr(doc, "id"), int(getattr(doc, "version"))),
    )
    if cur.rowcount != 1:
        raise ConflictError(
            f"{table[:-1]} was modified concurrently; reload and retry",
            error="concurrent_modification",
            details={"id": getattr(doc, "id")},
        )
