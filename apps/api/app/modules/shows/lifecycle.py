"""
Show status machine.

    Draft -> Scheduled -> In Progress -> Completed
    Draft -> In Progress
    Draft / Scheduled / In Progress -> Cancelled

Completed and Cancelled are terminal.
"""
from __future__ import annotations

from typing import Dict, List

from app.core.errors import ConflictError

DRAFT = "Draft"
SCHEDULED = "Scheduled"
IN_PROGRESS = "In Progress"
COMPLETED = "Completed"
CANCELLED = "Cancelled"

ALLOWED_TRANSITIONS: Dict[str, List[str]] = {
    DRAFT: [SCHEDULED, IN_PROGRESS, CANCELLED],
    SCHEDULED: [IN_PROGRESS, CANCELLED],
    IN_PROGRESS: [COMPLETED, CANCELLED],
    COMPLETED: [],
    CANCELLED: [],
}

# card edits stay open until the show is over
EDITABLE = (DRAFT, SCHEDULED, IN_PROGRESS)
# booking details (date, venue, price) freeze once the doors open
BOOKABLE = (DRAFT, SCHEDULED)


def is_valid_transition(from_status: str, to_status: str) -> bool:
    return to_status in ALLOWED_TRANSITIONS.get(from_status, [])


def ensure_transition(show_id: str, from_status: str, to_status: str) -> None:
    if not is_valid_transition(from_status, to_status):
        raise ConflictError(
            f"show cannot move from {from_status} to {to_status}",
            error="invalid_transition",
            details={"show_id": show_id, "from": from_status, "to": to_status},
        )


def ensure_card_editable(show_id: str, status: str) -> None:
    if status not in EDITABLE:
        raise ConflictError(
            f"card of a {status} show cannot be edited",
            error="show_not_editable",
            details={"show_id": show_id, "status": status},
        )


def ensure_bookable(show_id: str, status: str) -> None:
    if status not in BOOKABLE:
        raise ConflictError(
            f"booking details of a {status} show cannot be changed",
            error="show_not_editable",
            details={"show_id": show_id, "status": status},
        )
