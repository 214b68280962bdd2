from __future__ import annotations

from typing import List, Literal, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from app.core.timeutil import UtcDateTime

WeightClass = Literal["Heavyweight", "Middleweight", "Cruiserweight", "Tag Team", "Women's", "Other"]


class PageOut(BaseModel):
    offset: int
    limit: int
    total: int
    has_more: bool


# -------------------------
# Stored document
# -------------------------
class Defense(BaseModel):
    against_id: str
    show_id: Optional[str] = None
    date: UtcDateTime
    quality: float


class Reign(BaseModel):
    id: str
    holder_id: str
    won_from_id: Optional[str] = None
    won_at_show_id: Optional[str] = None
    start_date: UtcDateTime
    end_date: Optional[UtcDateTime] = None  # None = open reign
    defense_count: int = 0
    defenses: List[Defense] = Field(default_factory=list)


class Championship(BaseModel):
    id: str
    company_id: str
    name: str
    description: str = ""
    weight: WeightClass = "Heavyweight"
    prestige: int = Field(default=50, ge=0, le=100)
    is_active: bool = True
    # denormalized; always equals the holder of the open reign in title_history
    current_holder_id: Optional[str] = None
    title_history: List[Reign] = Field(default_factory=list)
    defended_at: List[str] = Field(default_factory=list)
    last_defended: Optional[UtcDateTime] = None

    version: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


# -------------------------
# API payloads
# -------------------------
class ChampionshipCreateIn(BaseModel):
    company_id: str = Field(min_length=1)
    name: str
    description: str = ""
    weight: WeightClass = "Heavyweight"
    prestige: int = Field(default=50, ge=0, le=100)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("name is required")
        return v


class ChampionshipPatchIn(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    weight: Optional[WeightClass] = None
    prestige: Optional[int] = Field(default=None, ge=0, le=100)
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def _no_nulls(self) -> "ChampionshipPatchIn":
        nulls = sorted(k for k in self.model_fields_set if getattr(self, k) is None)
        if nulls:
            raise ValueError(f"null is not allowed for: {', '.join(nulls)}")
        return self


class SetHolderIn(BaseModel):
    wrestler_id: str
    won_from_id: Optional[str] = None
    show_id: Optional[str] = None


class RecordDefenseIn(BaseModel):
    against_id: str
    show_id: Optional[str] = None
    # range is checked by the lineage rules so a vacant title reports 409 first
    quality: float = 3.0


class VacateIn(BaseModel):
    show_id: Optional[str] = None


class ChampionshipOut(Championship):
    current_reign_days: int = 0


class ChampionshipsListOut(BaseModel):
    items: List[ChampionshipOut]
    page: PageOut


class ChampionshipDeleteOut(BaseModel):
    id: str
    deleted: bool
    deactivated: bool


class WrestlerTitlesOut(BaseModel):
    wrestler_id: str
    current: List[ChampionshipOut] = Field(default_factory=list)
    former: List[ChampionshipOut] = Field(default_factory=list)
    total_days_as_champion: int = 0
