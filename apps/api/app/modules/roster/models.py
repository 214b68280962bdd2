from __future__ import annotations

from typing import Optional
from sqlmodel import SQLModel, Field


class Company(SQLModel, table=True):
    __tablename__ = "companies"

    id: str = Field(primary_key=True)
    name: str = Field(index=True)
    location: str = ""
    description: str = ""
    popularity: int = 50  # 1..100
    money: float = 1_000_000.0

    created_at: str
    updated_at: str


class Wrestler(SQLModel, table=True):
    __tablename__ = "wrestlers"

    id: str = Field(primary_key=True)
    name: str = Field(index=True)
    gender: str  # Male|Female
    style: str  # Technical|High-Flyer|Powerhouse|Brawler|Showman|All-Rounder
    strength: int = 50
    agility: int = 50
    charisma: int = 50
    technical: int = 50
    popularity: int = 50
    salary: float = 50_000.0  # per year
    # contract; NULL = free agent
    company_id: Optional[str] = Field(default=None, foreign_key="companies.id", index=True)
    is_active: bool = True
    is_injured: bool = False

    created_at: str
    updated_at: str


class Venue(SQLModel, table=True):
    __tablename__ = "venues"

    id: str = Field(primary_key=True)
    name: str
    location: str = ""
    capacity: int
    rental_cost: float
    prestige: int = 50
    is_available: bool = True

    created_at: str
    updated_at: str
