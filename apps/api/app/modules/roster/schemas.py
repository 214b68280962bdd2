from __future__ import annotations

from typing import List, Literal, Optional
from pydantic import BaseModel, Field, computed_field

Gender = Literal["Male", "Female"]
WrestlingStyle = Literal["Technical", "High-Flyer", "Powerhouse", "Brawler", "Showman", "All-Rounder"]


class CompanyCreateIn(BaseModel):
    name: str = Field(min_length=1)
    location: str = ""
    description: str = ""
    popularity: int = Field(default=50, ge=1, le=100)
    money: float = 1_000_000.0


class CompanyOut(BaseModel):
    id: str
    name: str
    location: str = ""
    description: str = ""
    popularity: int
    money: float
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class WrestlerCreateIn(BaseModel):
    name: str = Field(min_length=1)
    gender: Gender
    style: WrestlingStyle
    strength: int = Field(default=50, ge=1, le=100)
    agility: int = Field(default=50, ge=1, le=100)
    charisma: int = Field(default=50, ge=1, le=100)
    technical: int = Field(default=50, ge=1, le=100)
    popularity: int = Field(default=50, ge=1, le=100)
    salary: float = Field(default=50_000.0, ge=0)
    company_id: Optional[str] = None
    is_active: bool = True
    is_injured: bool = False


class WrestlerOut(BaseModel):
    id: str
    name: str
    gender: Gender
    style: WrestlingStyle
    strength: int
    agility: int
    charisma: int
    technical: int
    popularity: int
    salary: float
    company_id: Optional[str] = None
    is_active: bool = True
    is_injured: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @computed_field  # type: ignore[misc]
    @property
    def overall_rating(self) -> int:
        return round((self.strength + self.agility + self.charisma + self.technical) / 4)


class RosterOut(BaseModel):
    company_id: str
    items: List[WrestlerOut]


class VenueCreateIn(BaseModel):
    name: str = Field(min_length=1)
    location: str = ""
    capacity: int = Field(ge=50)
    rental_cost: float = Field(ge=0)
    prestige: int = Field(default=50, ge=1, le=100)
    is_available: bool = True


class VenueOut(BaseModel):
    id: str
    name: str
    location: str = ""
    capacity: int
    rental_cost: float
    prestige: int
    is_available: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class VenuesListOut(BaseModel):
    items: List[VenueOut]
