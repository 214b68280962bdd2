"""
Standard show simulator.

Every random draw comes from a ``random.Random`` seeded with the show id and
the card position it is for, so re-running a simulation on the same inputs
reproduces it exactly.
"""
from __future__ import annotations

import math
import random
from typing import Dict, Iterable, List, Mapping, Tuple

from app.modules.roster.directory import CompanyInfo, VenueInfo, WrestlerInfo

from ..card import card_items
from ..schemas import Match, Segment, Show, ShowResults
from .base import ItemOutcome, ShowOutcome

SHOW_TYPE_DRAW = {
    "Pay-Per-View": 1.2,
    "Special Event": 1.1,
    "House Show": 0.8,
}

PRODUCTION_COST = {
    "Pay-Per-View": 50_000.0,
    "Special Event": 25_000.0,
    "Weekly TV": 15_000.0,
}
DEFAULT_PRODUCTION_COST = 5_000.0

# style -> (strength, agility, charisma, technical) weights
STYLE_WEIGHTS = {
    "Technical": (0.1, 0.2, 0.2, 0.5),
    "High-Flyer": (0.1, 0.5, 0.2, 0.2),
    "Powerhouse": (0.5, 0.1, 0.2, 0.2),
}
DEFAULT_WEIGHTS = (0.2, 0.2, 0.3, 0.3)

WEEKS_PER_YEAR = 52


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def _quality(v: float) -> float:
    return round(_clamp(v, 1.0, 5.0), 1)


def _money(v: float) -> float:
    return round(v, 2)


def skill(w: WrestlerInfo) -> float:
    ws, wa, wc, wt = STYLE_WEIGHTS.get(w.style, DEFAULT_WEIGHTS)
    return w.strength * ws + w.agility * wa + w.charisma * wc + w.technical * wt


def _present(ids: Iterable[str], wrestlers: Mapping[str, WrestlerInfo]) -> List[WrestlerInfo]:
    return [wrestlers[i] for i in ids if i in wrestlers]


def _item_wrestlers(item, wrestlers: Mapping[str, WrestlerInfo]) -> List[WrestlerInfo]:
    if isinstance(item, Match):
        return _present((p.wrestler_id for p in item.participants), wrestlers)
    return _present(item.wrestler_ids, wrestlers)


class StandardSimulator:
    name = "standard"

    def _rng(self, show_id: str, tag: str) -> random.Random:
        return random.Random(f"{show_id}:{tag}")

    # -------------------------
    # attendance (StartShow)
    # -------------------------
    def attendance(self, show: Show, *, venue: VenueInfo, company: CompanyInfo) -> int:
        cap = max(int(venue.capacity), 0)
        if cap == 0:
            return 0

        base = cap * (company.popularity / 100.0)
        base *= SHOW_TYPE_DRAW.get(show.show_type, 1.0)
        base *= venue.prestige / 50.0
        base *= _clamp(1 - (show.ticket_price - 20) / 100.0, 0.7, 1.3)

        planned = [i.planned_quality for i in card_items(show)]
        if planned:
            base *= 1 + (sum(planned) / len(planned) - 3) * 0.05

        base *= self._rng(show.id, "attendance").uniform(0.9, 1.1)
        return int(math.floor(_clamp(base, 0.1 * cap, cap)))

    # -------------------------
    # card items (CompleteShow)
    # -------------------------
    def match_outcome(self, show_id: str, match: Match, wrestlers: Mapping[str, WrestlerInfo]) -> ItemOutcome:
        people = _item_wrestlers(match, wrestlers)
        q = match.planned_quality
        if people:
            avg_skill = sum(skill(w) for w in people) / len(people)
            q += _clamp((avg_skill - 50) / 100.0, -0.5, 0.5)
        if match.is_championship_match:
            q += 0.25
        if match.stipulation.strip():
            q += 0.15
        q += self._rng(show_id, str(match.position)).uniform(-0.5, 0.5)

        q = _quality(q)
        return ItemOutcome(actual_quality=q, popularity_impact=int(round((q - 3) * 2)))

    def segment_outcome(self, show_id: str, segment: Segment, wrestlers: Mapping[str, WrestlerInfo]) -> ItemOutcome:
        people = _item_wrestlers(segment, wrestlers)
        q = segment.planned_quality
        if people:
            q += (sum(w.charisma for w in people) / len(people) - 50) / 50.0
        q += self._rng(show_id, str(segment.position)).uniform(-0.5, 0.5)

        q = _quality(q)
        return ItemOutcome(actual_quality=q, popularity_impact=int(round((q - 3) * 1.5)))

    # -------------------------
    # show-level ratings
    # -------------------------
    def _ratings(
        self,
        scored: List[Tuple[object, float]],
        wrestlers: Mapping[str, WrestlerInfo],
    ) -> Tuple[float, float, float]:
        if not scored:
            return 3.0, 3.0, 3.0

        n = len(scored)
        overall_w: List[float] = []
        critic_w: List[float] = []
        audience_w: List[float] = []
        for rank, (item, _) in enumerate(scored):
            # later on the card weighs more; segments count half
            w = (1 + rank / n) * (0.5 if isinstance(item, Segment) else 1.0)
            overall_w.append(w)

            people = _item_wrestlers(item, wrestlers)
            if people:
                tech_share = sum(1 for p in people if p.style == "Technical") / len(people)
                show_share = sum(1 for p in people if p.style == "Showman") / len(people)
                avg_tech = sum(p.technical for p in people) / len(people)
                avg_char = sum(p.charisma for p in people) / len(people)
            else:
                tech_share = show_share = 0.0
                avg_tech = avg_char = 50.0
            critic_w.append(w * (1 + 0.5 * tech_share + (avg_tech - 50) / 100.0))
            audience_w.append(w * (1 + 0.5 * show_share + (avg_char - 50) / 100.0))

        qualities = [q for _, q in scored]

        def mean(weights: List[float]) -> float:
            total = sum(weights)
            return sum(q * w for q, w in zip(qualities, weights)) / total

        return _quality(mean(overall_w)), _quality(mean(critic_w)), _quality(mean(audience_w))

    def complete(
        self,
        show: Show,
        *,
        venue: VenueInfo,
        company: CompanyInfo,
        wrestlers: Mapping[str, WrestlerInfo],
    ) -> ShowOutcome:
        matches: Dict[str, ItemOutcome] = {}
        segments: Dict[str, ItemOutcome] = {}
        scored: List[Tuple[object, float]] = []

        for item in card_items(show):
            if isinstance(item, Match):
                out = self.match_outcome(show.id, item, wrestlers)
                matches[item.id] = out
            else:
                out = self.segment_outcome(show.id, item, wrestlers)
                segments[item.id] = out
            scored.append((item, out.actual_quality))

        overall, critic, audience = self._ratings(scored, wrestlers)

        attendance = int(show.attendance or 0)
        ticket_revenue = _money(attendance * show.ticket_price)
        merch_revenue = _money(attendance * (5 + 10 * company.popularity / 100.0))
        rental = _money(venue.rental_cost)
        production = PRODUCTION_COST.get(show.show_type, DEFAULT_PRODUCTION_COST)

        appearing = set()
        for item in card_items(show):
            appearing.update(w.id for w in _item_wrestlers(item, wrestlers))
        talent = _money(sum(wrestlers[i].salary / WEEKS_PER_YEAR for i in appearing))

        profit = _money(ticket_revenue + merch_revenue - rental - production - talent)
        results = ShowResults(
            ticket_revenue=ticket_revenue,
            merchandise_revenue=merch_revenue,
            venue_rental_cost=rental,
            production_cost=production,
            talent_cost=talent,
            profit=profit,
            overall_rating=overall,
            critic_rating=critic,
            audience_satisfaction=int(_clamp(round(audience * 20), 0, 100)),
        )
        return ShowOutcome(
            results=results,
            popularity_delta=int(round((overall - 3) * 2)),
            matches=matches,
            segments=segments,
        )
