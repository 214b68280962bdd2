"""
Championship lineage rules.

Pure functions over the Championship document: no storage, no clock. Callers
pass ``at`` (wall-clock now) and, when a show anchors the change, a ShowAnchor.

Source of truth is ``title_history``. The open reign is always found by
scanning for the (at most one) reign without an end date; ``current_holder_id``
is re-derived from it after every mutation and checked by check_invariants().
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from app.core.errors import ConflictError, ValidationError
from app.core.ids import new_ulid

from .schemas import Championship, Defense, Reign

QUALITY_MIN = 1.0
QUALITY_MAX = 5.0

SHOW_COMPLETED = "Completed"


@dataclass(frozen=True)
class ShowAnchor:
    """The slice of a show the lineage needs: identity, event date, status."""

    id: str
    date: datetime
    status: str


def is_valid_quality(q: float) -> bool:
    try:
        doubled = float(q) * 2
    except (TypeError, ValueError):
        return False
    if math.isnan(doubled) or doubled != int(doubled):
        return False
    return QUALITY_MIN <= float(q) <= QUALITY_MAX


def nearest_half_point(q: float) -> float:
    return min(QUALITY_MAX, max(QUALITY_MIN, round(float(q) * 2) / 2))


def open_reigns(history: List[Reign]) -> List[Reign]:
    return [r for r in history if r.end_date is None]


def open_reign(champ: Championship) -> Optional[Reign]:
    found = open_reigns(champ.title_history)
    if len(found) > 1:
        raise _inconsistent(champ, "more than one open reign")
    return found[0] if found else None


def derive_current_holder(history: List[Reign]) -> Optional[str]:
    found = open_reigns(history)
    return found[0].holder_id if len(found) == 1 else None


def _inconsistent(champ: Championship, why: str) -> ConflictError:
    return ConflictError(
        "championship lineage is inconsistent",
        error="lineage_inconsistent",
        details={"championship_id": champ.id, "reason": why},
    )


def check_invariants(champ: Championship) -> None:
    opened = open_reigns(champ.title_history)
    if len(opened) > 1:
        raise _inconsistent(champ, "more than one open reign")
    derived = opened[0].holder_id if opened else None
    if champ.current_holder_id != derived:
        raise _inconsistent(champ, "current holder does not match the open reign")
    for reign in champ.title_history:
        if reign.end_date is not None and reign.start_date > reign.end_date:
            raise _inconsistent(champ, f"reign {reign.id} ends before it starts")
        if reign.defense_count != len(reign.defenses):
            raise _inconsistent(champ, f"reign {reign.id} defense count mismatch")


def _require_completed(show: Optional[ShowAnchor]) -> None:
    if show is not None and show.status != SHOW_COMPLETED:
        raise ValidationError(
            "referenced show must be Completed",
            error="show_not_completed",
            details={"show_id": show.id, "status": show.status},
        )


def _require_active(champ: Championship) -> None:
    if not champ.is_active:
        raise ConflictError(
            "championship is inactive",
            error="championship_inactive",
            details={"championship_id": champ.id},
        )


def _event_date(show: Optional[ShowAnchor], at: datetime) -> datetime:
    # in-universe event time wins over wall-clock when a show anchors the change
    return show.date if show is not None else at


def _boundary(reign: Optional[Reign], show: Optional[ShowAnchor], at: datetime) -> datetime:
    # show dates and wall-clock stamps are not ordered against each other;
    # a boundary never lands before the reign it closes
    when = _event_date(show, at)
    if reign is not None and when < reign.start_date:
        return reign.start_date
    return when


def set_holder(
    champ: Championship,
    new_holder_id: str,
    *,
    at: datetime,
    won_from_id: Optional[str] = None,
    show: Optional[ShowAnchor] = None,
) -> Championship:
    """Close the open reign (if any) and open one for ``new_holder_id``."""
    new_holder_id = (new_holder_id or "").strip()
    if not new_holder_id:
        raise ValidationError("new holder is required", error="holder_required")
    _require_active(champ)
    _require_completed(show)
    check_invariants(champ)

    out = champ.model_copy(deep=True)
    current = open_reign(out)
    if current is not None and current.holder_id == new_holder_id:
        raise ValidationError(
            "wrestler already holds this championship; vacate the title first",
            error="same_holder",
            details={"holder_id": new_holder_id},
        )

    when = _boundary(current, show, at)
    previous_holder: Optional[str] = None
    if current is not None:
        current.end_date = when
        previous_holder = current.holder_id

    out.title_history.append(
        Reign(
            id=new_ulid(),
            holder_id=new_holder_id,
            won_from_id=(won_from_id or None) or previous_holder,
            won_at_show_id=show.id if show is not None else None,
            start_date=when,
        )
    )
    out.current_holder_id = derive_current_holder(out.title_history)
    check_invariants(out)
    return out


def record_defense(
    champ: Championship,
    challenger_id: str,
    quality: float,
    *,
    at: datetime,
    show: Optional[ShowAnchor] = None,
) -> Championship:
    """Append a successful defense to the open reign."""
    check_invariants(champ)
    out = champ.model_copy(deep=True)
    reign = open_reign(out)
    if reign is None:
        raise ConflictError(
            "vacant championship cannot be defended",
            error="title_vacant",
            details={"championship_id": champ.id},
        )
    _require_active(champ)

    challenger_id = (challenger_id or "").strip()
    if not challenger_id:
        raise ValidationError("challenger is required", error="challenger_required")
    if not is_valid_quality(quality):
        raise ValidationError(
            "quality must be between 1 and 5 in half-point steps",
            error="invalid_quality",
            details={"quality": quality},
        )
    _require_completed(show)

    if challenger_id == reign.holder_id:
        raise ValidationError(
            "champion cannot defend against themselves",
            error="challenger_is_holder",
            details={"holder_id": reign.holder_id},
        )

    when = _event_date(show, at)
    reign.defenses.append(
        Defense(
            against_id=challenger_id,
            show_id=show.id if show is not None else None,
            date=when,
            quality=float(quality),
        )
    )
    reign.defense_count = len(reign.defenses)
    out.last_defended = when
    if show is not None and show.id not in out.defended_at:
        out.defended_at.append(show.id)
    # quality above 3 builds prestige, below 3 costs it
    out.prestige = max(0, min(100, out.prestige + round((float(quality) - 3) * 2)))

    check_invariants(out)
    return out


def vacate(champ: Championship, *, at: datetime, show: Optional[ShowAnchor] = None) -> Championship:
    check_invariants(champ)
    out = champ.model_copy(deep=True)
    reign = open_reign(out)
    if reign is None:
        raise ConflictError(
            "championship is already vacant",
            error="title_vacant",
            details={"championship_id": champ.id},
        )
    _require_completed(show)
    reign.end_date = _boundary(reign, show, at)
    out.current_holder_id = derive_current_holder(out.title_history)
    check_invariants(out)
    return out


def _days(start: datetime, end: datetime) -> int:
    return math.ceil(abs((end - start).total_seconds()) / 86400)


def current_reign_days(champ: Championship, now: datetime) -> int:
    reign = open_reigns(champ.title_history)
    if len(reign) != 1:
        return 0
    return _days(reign[0].start_date, now)


def total_days_as_champion(champ: Championship, wrestler_id: str, now: datetime) -> int:
    total = 0
    for reign in champ.title_history:
        if reign.holder_id == wrestler_id:
            total += _days(reign.start_date, reign.end_date or now)
    return total
