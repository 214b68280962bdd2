"""
Card rules: position numbering and match / segment payload checks.

Matches and segments share one position space; together they form the card's
running order. Collisions are rejected, never silently renumbered.
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Set, Tuple, Union

from app.core.errors import ValidationError

from .schemas import Match, Segment, Show

CardItem = Union[Match, Segment]

DRAW_OUTCOMES = ("No Contest", "Time Limit Draw", "Double DQ")

# match type -> (min participants, max participants or None)
PARTICIPANT_COUNTS = {
    "Singles": (2, 2),
    "Tag Team": (2, None),
    "Triple Threat": (3, 3),
    "Fatal 4-Way": (4, 4),
    "Battle Royal": (3, None),
    "Other": (1, None),
}


# -------------------------
# positions
# -------------------------
def used_positions(show: Show, *, exclude_id: Optional[str] = None) -> Set[int]:
    return {i.position for i in card_items(show) if i.id != exclude_id}


def next_position(show: Show) -> int:
    used = used_positions(show)
    return max(used) + 1 if used else 1


def claim_position(show: Show, requested: Optional[int], *, exclude_id: Optional[str] = None) -> int:
    if requested is None:
        return next_position(show)
    if requested < 1:
        raise ValidationError("position must be a positive integer", details={"position": requested})
    if requested in used_positions(show, exclude_id=exclude_id):
        raise ValidationError(
            "position is already used on this card",
            error="position_taken",
            details={"show_id": show.id, "position": requested},
        )
    return requested


def card_items(show: Show) -> List[CardItem]:
    items: List[CardItem] = [*show.matches, *show.segments]
    return sorted(items, key=lambda i: i.position)


def card_wrestler_ids(show: Show) -> Set[str]:
    ids: Set[str] = set()
    for m in show.matches:
        ids.update(p.wrestler_id for p in m.participants)
    for s in show.segments:
        ids.update(s.wrestler_ids)
    return ids


# -------------------------
# payload checks
# -------------------------
def _invalid(message: str, error: str, **details) -> ValidationError:
    return ValidationError(message, error=error, details=details)


def _check_roster(wrestler_ids: Iterable[str], roster: Set[str]) -> None:
    missing = sorted(set(wrestler_ids) - roster)
    if missing:
        raise _invalid("wrestlers are not on the company roster", "not_on_roster", wrestler_ids=missing)


def winners(match: Match) -> List[str]:
    return [p.wrestler_id for p in match.participants if p.is_winner]


def teams(match: Match) -> List[Tuple[int, List[str]]]:
    grouped: dict = {}
    for p in match.participants:
        grouped.setdefault(p.team, []).append(p.wrestler_id)
    return sorted(((t, ids) for t, ids in grouped.items() if t is not None), key=lambda x: x[0])


def validate_match(match: Match, roster: Set[str]) -> None:
    ids = [p.wrestler_id for p in match.participants]
    if len(ids) != len(set(ids)):
        raise _invalid("a wrestler may appear only once per match", "duplicate_participant")

    lo, hi = PARTICIPANT_COUNTS[match.match_type]
    if len(ids) < lo or (hi is not None and len(ids) > hi):
        expected = str(lo) if lo == hi else (f"{lo}+" if hi is None else f"{lo}-{hi}")
        raise _invalid(
            f"{match.match_type} match needs {expected} participants",
            "participant_count",
            match_type=match.match_type,
            count=len(ids),
        )

    if match.match_type == "Tag Team":
        if any(p.team is None for p in match.participants):
            raise _invalid("every tag team participant needs a team number", "team_required")
        if len(teams(match)) != 2:
            raise _invalid("tag team match needs exactly two teams", "team_count", teams=len(teams(match)))
    elif match.match_type == "Singles":
        t = [p.team for p in match.participants if p.team is not None]
        if len(t) == 2 and t[0] == t[1]:
            raise _invalid("singles opponents cannot share a team", "same_team")

    won = winners(match)
    if len(won) > 1:
        raise _invalid("at most one participant can win", "too_many_winners", winners=won)
    if match.booked_outcome in DRAW_OUTCOMES and won:
        raise _invalid(f"{match.booked_outcome} has no winner", "winner_on_draw", outcome=match.booked_outcome)
    if match.booked_outcome not in DRAW_OUTCOMES and not won:
        raise _invalid(f"{match.booked_outcome} finish needs a winner", "winner_required", outcome=match.booked_outcome)

    if match.is_championship_match and not match.championship_id:
        raise _invalid("championship match needs a championship", "championship_required")
    if match.championship_id and not match.is_championship_match:
        raise _invalid("championship given on a non-title match", "championship_without_flag")

    _check_roster(ids, roster)


def validate_segment(segment: Segment, roster: Set[str]) -> None:
    if not (segment.description or "").strip():
        raise _invalid("segment description is required", "description_required")
    if len(segment.wrestler_ids) != len(set(segment.wrestler_ids)):
        raise _invalid("a wrestler may appear only once per segment", "duplicate_participant")
    _check_roster(segment.wrestler_ids, roster)
