"""
DB utilities (sqlite default).

Defaults:
- DATABASE_URL: sqlite:///./data/app.db
- DB_BUSY_TIMEOUT_S: 5

Services talk to sqlite through plain ``sqlite3`` connections; the SQLAlchemy
engine is only used for schema bootstrap (SQLModel metadata) and health probes.
"""
from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel

from app.core.errors import DomainError, TransactionError


def get_database_url() -> str:
    return os.getenv("DATABASE_URL", "sqlite:///./data/app.db")


def _repo_root() -> Path:
    # apps/api/app/core/db.py -> repo root = parents[4]
    return Path(__file__).resolve().parents[4]


def resolve_sqlite_path(database_url: str) -> Optional[Path]:
    if not database_url.startswith("sqlite:///"):
        return None
    p = database_url[len("sqlite:///") :]

    # absolute unix
    if p.startswith("/"):
        return Path(p)

    # absolute windows drive, both C:/ and C:\ forms
    if len(p) >= 3 and p[1] == ":" and (p[2] == "/" or p[2] == "\\"):
        return Path(p)

    # relative -> repo root
    return (_repo_root() / p).resolve()


def _busy_timeout() -> float:
    raw = os.getenv("DB_BUSY_TIMEOUT_S", "5")
    try:
        return max(float(raw), 0.0)
    except ValueError:
        return 5.0


_engine: Optional[Engine] = None
_engine_url: Optional[str] = None


def get_engine() -> Engine:
    global _engine, _engine_url
    url = get_database_url()
    if _engine is not None and _engine_url == url:
        return _engine

    connect_args = {}
    if url.startswith("sqlite:///"):
        connect_args = {"check_same_thread": False}

    resolved = url
    sp = resolve_sqlite_path(url)
    if sp is not None:
        sp.parent.mkdir(parents=True, exist_ok=True)
        resolved = "sqlite:///" + sp.as_posix()

    if _engine is not None:
        _engine.dispose()
    _engine = create_engine(resolved, future=True, connect_args=connect_args)
    _engine_url = url
    return _engine


def reset_engine() -> None:
    global _engine, _engine_url
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _engine_url = None


def init_schema() -> None:
    # table classes register themselves on SQLModel.metadata at import time
    import app.modules.championships.models  # noqa: F401
    import app.modules.roster.models  # noqa: F401
    import app.modules.shows.models  # noqa: F401

    SQLModel.metadata.create_all(get_engine())


def connect() -> sqlite3.Connection:
    url = get_database_url()
    sp = resolve_sqlite_path(url)
    if sp is None:
        raise ValueError(f"Only sqlite supported for now, got DATABASE_URL={url!r}")
    sp.parent.mkdir(parents=True, exist_ok=True)
    # autocommit mode: transactions are opened explicitly by unit_of_work()
    conn = sqlite3.connect(str(sp), timeout=_busy_timeout(), isolation_level=None, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON;")
    return conn


@contextmanager
def unit_of_work() -> Iterator[sqlite3.Connection]:
    """
    One atomic unit of work.

    BEGIN IMMEDIATE takes the sqlite write lock up front, so concurrent writers
    queue here (bounded by DB_BUSY_TIMEOUT_S) instead of interleaving.
    Everything done on the yielded connection commits together or not at all.
    """
    conn = connect()
    try:
        try:
            conn.execute("BEGIN IMMEDIATE;")
        except sqlite3.Error as e:
            raise TransactionError(
                "could not open transaction",
                details={"type": type(e).__name__, "reason": str(e)},
            ) from e
        try:
            yield conn
            conn.commit()
        except DomainError:
            conn.rollback()
            raise
        except sqlite3.Error as e:
            conn.rollback()
            raise TransactionError(
                "storage fault; transaction rolled back",
                details={"type": type(e).__name__, "reason": str(e)},
            ) from e
        except BaseException:
            conn.rollback()
            raise
    finally:
        conn.close()


@contextmanager
def read_only() -> Iterator[sqlite3.Connection]:
    conn = connect()
    try:
        yield conn
    finally:
        conn.close()


def db_health() -> Dict[str, Any]:
    url = get_database_url()
    kind = "sqlite" if url.startswith("sqlite") else "unknown"
    sp = resolve_sqlite_path(url)
    path = str(sp.as_posix()) if sp is not None else url

    try:
        eng = get_engine()
        with eng.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "ok", "kind": kind, "path": path}
    except Exception as e:
        return {"status": "error", "kind": kind, "path": path, "error": str(e)}
