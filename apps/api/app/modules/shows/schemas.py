from __future__ import annotations

from typing import List, Literal, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from app.core.timeutil import UtcDateTime

ShowStatus = Literal["Draft", "Scheduled", "In Progress", "Completed", "Cancelled"]
ShowType = Literal["Weekly TV", "Special Event", "Pay-Per-View", "House Show", "Other"]
MatchType = Literal["Singles", "Tag Team", "Triple Threat", "Fatal 4-Way", "Battle Royal", "Other"]
BookedOutcome = Literal["Clean", "Dirty", "DQ", "Count-Out", "No Contest", "Time Limit Draw", "Double DQ"]
SegmentType = Literal["Promo", "Interview", "Angle", "Video Package", "Special Appearance", "Other"]


class PageOut(BaseModel):
    offset: int
    limit: int
    total: int
    has_more: bool


def _not_blank(v: str) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError("must not be blank")
    return v


def _reject_explicit_nulls(m: BaseModel, clearable: frozenset = frozenset()) -> BaseModel:
    # patch semantics: omitted means unchanged, so null is only accepted where it clears a value
    nulls = sorted(k for k in m.model_fields_set if getattr(m, k) is None and k not in clearable)
    if nulls:
        raise ValueError(f"null is not allowed for: {', '.join(nulls)}")
    return m


# -------------------------
# Stored document
# -------------------------
class Participant(BaseModel):
    wrestler_id: str = Field(min_length=1)
    is_winner: bool = False
    team: Optional[int] = Field(default=None, ge=1)


class Match(BaseModel):
    id: str
    position: int = Field(ge=1)
    match_type: MatchType = "Singles"
    participants: List[Participant] = Field(default_factory=list)
    is_championship_match: bool = False
    championship_id: Optional[str] = None
    stipulation: str = ""
    description: str = ""
    duration: int = Field(default=15, ge=1)
    booked_outcome: BookedOutcome = "Clean"
    planned_quality: float = Field(default=3.0, ge=1, le=5)

    # filled in by CompleteShow
    actual_quality: Optional[float] = None
    popularity_impact: Optional[int] = None
    title_changed: bool = False


class Segment(BaseModel):
    id: str
    position: int = Field(ge=1)
    segment_type: SegmentType = "Promo"
    wrestler_ids: List[str] = Field(default_factory=list)
    description: str
    duration: int = Field(default=5, ge=1)
    planned_quality: float = Field(default=3.0, ge=1, le=5)

    actual_quality: Optional[float] = None
    popularity_impact: Optional[int] = None


class ShowResults(BaseModel):
    ticket_revenue: float
    merchandise_revenue: float
    venue_rental_cost: float
    production_cost: float
    talent_cost: float
    profit: float
    overall_rating: float
    critic_rating: float
    audience_satisfaction: int


class Show(BaseModel):
    id: str
    company_id: str
    venue_id: str
    name: str
    date: UtcDateTime
    show_type: ShowType = "Weekly TV"
    is_recurring: bool = False
    ticket_price: float = Field(default=20.0, ge=0)
    status: ShowStatus = "Draft"
    notes: str = ""
    is_visible: bool = True

    matches: List[Match] = Field(default_factory=list)
    segments: List[Segment] = Field(default_factory=list)

    attendance: Optional[int] = None
    # present iff status == Completed
    results: Optional[ShowResults] = None

    version: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


# -------------------------
# API payloads
# -------------------------
class ShowCreateIn(BaseModel):
    company_id: str = Field(min_length=1)
    venue_id: str = Field(min_length=1)
    name: str
    date: UtcDateTime
    show_type: ShowType = "Weekly TV"
    is_recurring: bool = False
    ticket_price: float = Field(default=20.0, ge=0)
    status: Literal["Draft", "Scheduled"] = "Draft"
    notes: str = ""

    _name = field_validator("name")(_not_blank)


class ShowPatchIn(BaseModel):
    name: Optional[str] = None
    date: Optional[UtcDateTime] = None
    venue_id: Optional[str] = None
    show_type: Optional[ShowType] = None
    ticket_price: Optional[float] = Field(default=None, ge=0)
    is_recurring: Optional[bool] = None
    is_visible: Optional[bool] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _no_nulls(self) -> "ShowPatchIn":
        return _reject_explicit_nulls(self)


class MatchIn(BaseModel):
    position: Optional[int] = Field(default=None, ge=1)
    match_type: MatchType = "Singles"
    participants: List[Participant] = Field(default_factory=list)
    is_championship_match: bool = False
    championship_id: Optional[str] = None
    stipulation: str = ""
    description: str = ""
    duration: int = Field(default=15, ge=1)
    booked_outcome: BookedOutcome = "Clean"
    planned_quality: float = Field(default=3.0, ge=1, le=5)


class MatchPatchIn(BaseModel):
    position: Optional[int] = Field(default=None, ge=1)
    match_type: Optional[MatchType] = None
    participants: Optional[List[Participant]] = None
    is_championship_match: Optional[bool] = None
    championship_id: Optional[str] = None
    stipulation: Optional[str] = None
    description: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=1)
    booked_outcome: Optional[BookedOutcome] = None
    planned_quality: Optional[float] = Field(default=None, ge=1, le=5)

    @model_validator(mode="after")
    def _no_nulls(self) -> "MatchPatchIn":
        return _reject_explicit_nulls(self, frozenset({"championship_id"}))


class SegmentIn(BaseModel):
    position: Optional[int] = Field(default=None, ge=1)
    segment_type: SegmentType = "Promo"
    wrestler_ids: List[str] = Field(default_factory=list)
    description: str
    duration: int = Field(default=5, ge=1)
    planned_quality: float = Field(default=3.0, ge=1, le=5)

    _description = field_validator("description")(_not_blank)


class SegmentPatchIn(BaseModel):
    position: Optional[int] = Field(default=None, ge=1)
    segment_type: Optional[SegmentType] = None
    wrestler_ids: Optional[List[str]] = None
    description: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=1)
    planned_quality: Optional[float] = Field(default=None, ge=1, le=5)

    @model_validator(mode="after")
    def _no_nulls(self) -> "SegmentPatchIn":
        return _reject_explicit_nulls(self)


class ShowsListOut(BaseModel):
    items: List[Show]
    page: PageOut


class ShowDeleteOut(BaseModel):
    id: str
    deleted: bool


class ShowCompleteOut(BaseModel):
    show: Show
    championships: List[str] = Field(default_factory=list)
