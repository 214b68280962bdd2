from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Protocol, Set

from app.core.timeutil import now_iso


@dataclass(frozen=True)
class CompanyInfo:
    id: str
    name: str
    popularity: int
    money: float


@dataclass(frozen=True)
class VenueInfo:
    id: str
    name: str
    capacity: int
    rental_cost: float
    prestige: int
    is_available: bool


@dataclass(frozen=True)
class WrestlerInfo:
    id: str
    name: str
    style: str
    strength: int
    agility: int
    charisma: int
    technical: int
    popularity: int
    salary: float
    company_id: Optional[str]


class Directory(Protocol):
    """
    Read-mostly view of company / roster / venue data owned outside the core.

    The writes are apply_show_result, the "apply profit" notification sent
    when a show completes, and adjust_wrestler_popularity, used by title
    changes and defenses. Implementations must run on the caller's
    transaction so they commit or roll back with the championship and show.
    """

    def company(self, company_id: str) -> Optional[CompanyInfo]:
        ...

    def venue(self, venue_id: str) -> Optional[VenueInfo]:
        ...

    def roster_ids(self, company_id: str) -> Set[str]:
        ...

    def wrestlers(self, wrestler_ids: Iterable[str]) -> Dict[str, WrestlerInfo]:
        ...

    def apply_show_result(self, company_id: str, *, profit: float, popularity_delta: int) -> None:
        ...

    def adjust_wrestler_popularity(self, wrestler_id: str, delta: int) -> None:
        ...


def _wrestler_from_row(r: sqlite3.Row) -> WrestlerInfo:
    return WrestlerInfo(
        id=str(r["id"]),
        name=str(r["name"]),
        style=str(r["style"]),
        strength=int(r["strength"]),
        agility=int(r["agility"]),
        charisma=int(r["charisma"]),
        technical=int(r["technical"]),
        popularity=int(r["popularity"]),
        salary=float(r["salary"]),
        company_id=r["company_id"],
    )


class SqliteDirectory:
    """Directory over the roster tables, bound to one connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def company(self, company_id: str) -> Optional[CompanyInfo]:
        r = self.conn.execute(
            "SELECT id, name, popularity, money FROM companies WHERE id=?;", (company_id,)
        ).fetchone()
        if r is None:
            return None
        return CompanyInfo(id=str(r["id"]), name=str(r["name"]), popularity=int(r["popularity"]), money=float(r["money"]))

    def venue(self, venue_id: str) -> Optional[VenueInfo]:
        r = self.conn.execute("SELECT * FROM venues WHERE id=?;", (venue_id,)).fetchone()
        if r is None:
            return None
        return VenueInfo(
            id=str(r["id"]),
            name=str(r["name"]),
            capacity=int(r["capacity"]),
            rental_cost=float(r["rental_cost"]),
            prestige=int(r["prestige"]),
            is_available=bool(r["is_available"]),
        )

    def roster_ids(self, company_id: str) -> Set[str]:
        rows = self.conn.execute("SELECT id FROM wrestlers WHERE company_id=?;", (company_id,)).fetchall()
        return {str(r["id"]) for r in rows}

    def wrestlers(self, wrestler_ids: Iterable[str]) -> Dict[str, WrestlerInfo]:
        ids = sorted(set(wrestler_ids))
        if not ids:
            return {}
        rows = self.conn.execute(
            f"SELECT * FROM wrestlers WHERE id IN ({','.join(['?'] * len(ids))});", ids
        ).fetchall()
        return {str(r["id"]): _wrestler_from_row(r) for r in rows}

    def apply_show_result(self, company_id: str, *, profit: float, popularity_delta: int) -> None:
        self.conn.execute(
            """
            UPDATE companies
            SET money = ROUND(money + ?, 2),
                popularity = MAX(1, MIN(100, popularity + ?)),
                updated_at = ?
            WHERE id = ?;
            """,
            (float(profit), int(popularity_delta), now_iso(), company_id),
        )

    def adjust_wrestler_popularity(self, wrestler_id: str, delta: int) -> None:
        self.conn.execute(
            """
            UPDATE wrestlers
            SET popularity = MAX(1, MIN(100, popularity + ?)),
                updated_at = ?
            WHERE id = ?;
            """,
            (int(delta), now_iso(), wrestler_id),
        )
