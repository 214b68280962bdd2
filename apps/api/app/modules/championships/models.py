from __future__ import annotations

from typing import Optional
from sqlmodel import SQLModel, Field


class ChampionshipRecord(SQLModel, table=True):
    __tablename__ = "championships"

    id: str = Field(primary_key=True)
    company_id: str = Field(foreign_key="companies.id", index=True)
    name: str
    weight: str = "Heavyweight"
    prestige: int = 50
    is_active: bool = True
    current_holder_id: Optional[str] = Field(default=None, index=True)

    # optimistic concurrency token; bumped on every write
    version: int = 0
    # full Championship document (title_history, defenses, ...)
    doc_json: str

    created_at: str
    updated_at: str
