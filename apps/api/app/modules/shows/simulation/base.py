from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Protocol

from app.modules.roster.directory import CompanyInfo, VenueInfo, WrestlerInfo

from ..schemas import Show, ShowResults


@dataclass(frozen=True)
class ItemOutcome:
    """Simulated result of one card item (match or segment)."""

    actual_quality: float
    popularity_impact: int


@dataclass(frozen=True)
class ShowOutcome:
    """
    Everything CompleteShow freezes onto the show.

    matches / segments are keyed by card item id.
    popularity_delta is the company popularity change sent with the profit.
    """

    results: ShowResults
    popularity_delta: int = 0
    matches: Dict[str, ItemOutcome] = field(default_factory=dict)
    segments: Dict[str, ItemOutcome] = field(default_factory=dict)


class Simulator(Protocol):
    """
    Pluggable show simulation.

    Implementations must be deterministic (equal inputs give equal outputs)
    and keep attendance within [0, venue capacity] and qualities within [1, 5].
    """

    name: str

    def attendance(self, show: Show, *, venue: VenueInfo, company: CompanyInfo) -> int:
        ...

    def complete(
        self,
        show: Show,
        *,
        venue: VenueInfo,
        company: CompanyInfo,
        wrestlers: Mapping[str, WrestlerInfo],
    ) -> ShowOutcome:
        ...
