from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional, Set, Tuple

from app.core.db import read_only, unit_of_work
from app.core.documents import delete_document, insert_document, load_document, query_documents, save_document
from app.core.errors import ConflictError, TransactionError, ValidationError, not_found
from app.core.ids import new_ulid
from app.core.observability import emit
from app.core.timeutil import as_utc, utcnow
from app.modules.championships import lineage
from app.modules.championships import service as championships
from app.modules.championships.lineage import ShowAnchor
from app.modules.roster.directory import CompanyInfo, SqliteDirectory, VenueInfo

from . import card, lifecycle
from .lifecycle import CANCELLED, COMPLETED, IN_PROGRESS, SCHEDULED
from .schemas import Match, Segment, Show
from .simulation import get_simulator

TABLE = "shows"
MODULE = "shows"

# nullable match fields a patch may explicitly clear
_CLEARABLE = {"championship_id"}


# -------------------------
# helpers
# -------------------------
def _iso(dt: datetime) -> str:
    return as_utc(dt).isoformat()


def _columns(show: Show) -> Dict[str, Any]:
    return {
        "company_id": show.company_id,
        "venue_id": show.venue_id,
        "name": show.name,
        "status": show.status,
        "show_type": show.show_type,
        "date": _iso(show.date),
        "is_visible": 1 if show.is_visible else 0,
    }


def _check_consistent(show: Show) -> None:
    if (show.status == COMPLETED) != (show.results is not None):
        raise ConflictError(
            "show results must be present exactly when the show is Completed",
            error="show_inconsistent",
            details={"show_id": show.id, "status": show.status},
        )


def load_show(conn: sqlite3.Connection, show_id: str) -> Show:
    show = load_document(conn, TABLE, show_id, Show)
    if show is None:
        raise not_found("show", show_id)
    return show


def store_show(conn: sqlite3.Connection, show: Show) -> Show:
    _check_consistent(show)
    return save_document(conn, TABLE, show, _columns(show))


def _company(directory: SqliteDirectory, company_id: str) -> CompanyInfo:
    company = directory.company(company_id)
    if company is None:
        raise not_found("company", company_id)
    return company


def _venue(directory: SqliteDirectory, venue_id: str, *, require_available: bool = False) -> VenueInfo:
    venue = directory.venue(venue_id)
    if venue is None:
        raise not_found("venue", venue_id)
    if require_available and not venue.is_available:
        raise ValidationError("venue is not available for booking", error="venue_unavailable", details={"venue_id": venue_id})
    return venue


def _check_title(conn: sqlite3.Connection, show: Show, match: Match) -> None:
    if not match.championship_id:
        return
    champ = championships.load_championship(conn, match.championship_id)
    if champ.company_id != show.company_id:
        raise ValidationError(
            "championship belongs to another company",
            error="championship_wrong_company",
            details={"championship_id": champ.id, "company_id": champ.company_id},
        )
    if not champ.is_active:
        raise ValidationError(
            "championship is inactive",
            error="championship_inactive",
            details={"championship_id": champ.id},
        )


def _find(items: List[Any], item_id: str, kind: str) -> Tuple[int, Any]:
    for idx, item in enumerate(items):
        if item.id == item_id:
            return idx, item
    raise not_found(kind, item_id)


def _referenced_by_championships(conn: sqlite3.Connection, show_id: str) -> bool:
    r = conn.execute(
        """
        SELECT COUNT(1)
        FROM championships, json_each(championships.doc_json, '$.title_history') AS r
        WHERE json_extract(r.value, '$.won_at_show_id') = ?
           OR EXISTS (
               SELECT 1 FROM json_each(r.value, '$.defenses') AS d
               WHERE json_extract(d.value, '$.show_id') = ?
           );
        """,
        (show_id, show_id),
    ).fetchone()
    return int(r[0]) > 0


# -------------------------
# Shows
# -------------------------
def create_show(payload: Dict[str, Any], *, request_id: str = "") -> Show:
    with unit_of_work() as conn:
        directory = SqliteDirectory(conn)
        _company(directory, payload["company_id"])
        _venue(directory, payload["venue_id"], require_available=True)

        show = Show(id=new_ulid(), **payload)
        insert_document(conn, TABLE, show, _columns(show))
        show = load_show(conn, show.id)

    emit("audit", "show.created", "show created", request_id, MODULE,
         show_id=show.id, company_id=show.company_id, status=show.status)
    return show


def get_show(show_id: str) -> Show:
    with read_only() as conn:
        return load_show(conn, show_id)


def list_shows(
    *,
    limit: int,
    offset: int,
    company_id: Optional[str] = None,
    status: Optional[str] = None,
    show_type: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    include_hidden: bool = False,
) -> Tuple[List[Show], int]:
    where: List[str] = []
    args: List[Any] = []
    if company_id:
        where.append("company_id=?")
        args.append(company_id)
    if status:
        where.append("status=?")
        args.append(status)
    if show_type:
        where.append("show_type=?")
        args.append(show_type)
    if date_from is not None:
        where.append("date>=?")
        args.append(_iso(date_from))
    if date_to is not None:
        where.append("date<=?")
        args.append(_iso(date_to))
    if not include_hidden:
        where.append("is_visible=1")
    where_sql = f"WHERE {' AND '.join(where)}" if where else ""

    with read_only() as conn:
        total = int(conn.execute(f"SELECT COUNT(1) FROM {TABLE} {where_sql};", args).fetchone()[0])
        items = query_documents(
            conn,
            f"SELECT doc_json, version FROM {TABLE} {where_sql} ORDER BY date ASC, name ASC LIMIT ? OFFSET ?;",
            args + [limit, offset],
            Show,
        )
    return items, total


def patch_show(show_id: str, patch: Dict[str, Any], *, request_id: str = "") -> Show:
    if "name" in patch:
        name = (patch["name"] or "").strip()
        if not name:
            raise ValidationError("name is required", details={"field": "name"})
        patch["name"] = name

    with unit_of_work() as conn:
        show = load_show(conn, show_id)
        lifecycle.ensure_bookable(show_id, show.status)
        if "venue_id" in patch and patch["venue_id"] != show.venue_id:
            _venue(SqliteDirectory(conn), patch["venue_id"], require_available=True)
        show = store_show(conn, Show.model_validate({**show.model_dump(), **patch}))

    emit("audit", "show.updated", "show updated", request_id, MODULE, show_id=show_id, fields=sorted(patch.keys()))
    return show


def delete_show(show_id: str, *, request_id: str = "") -> Dict[str, Any]:
    with unit_of_work() as conn:
        show = load_show(conn, show_id)
        if show.status == COMPLETED:
            raise ConflictError("completed shows cannot be deleted", error="show_completed", details={"show_id": show_id})
        if _referenced_by_championships(conn, show_id):
            raise ConflictError(
                "show is referenced by championship history",
                error="show_referenced",
                details={"show_id": show_id},
            )
        delete_document(conn, TABLE, show)

    emit("audit", "show.deleted", "show deleted", request_id, MODULE, show_id=show_id)
    return {"id": show_id, "deleted": True}


# -------------------------
# Card
# -------------------------
def _edit_card(show_id: str, edit, *, event: str, request_id: str, **extra: Any) -> Show:
    with unit_of_work() as conn:
        show = load_show(conn, show_id)
        lifecycle.ensure_card_editable(show_id, show.status)
        roster: Set[str] = SqliteDirectory(conn).roster_ids(show.company_id)
        show = store_show(conn, edit(conn, show, roster))

    emit("audit", event, event.replace(".", " ").replace("_", " "), request_id, MODULE, show_id=show_id, **extra)
    return show


def add_match(show_id: str, payload: Dict[str, Any], *, request_id: str = "") -> Show:
    def edit(conn: sqlite3.Connection, show: Show, roster: Set[str]) -> Show:
        data = dict(payload)
        position = card.claim_position(show, data.pop("position", None))
        match = Match(id=new_ulid(), position=position, **data)
        card.validate_match(match, roster)
        _check_title(conn, show, match)
        show.matches.append(match)
        return show

    return _edit_card(show_id, edit, event="show.match_added", request_id=request_id)


def update_match(show_id: str, match_id: str, patch: Dict[str, Any], *, request_id: str = "") -> Show:
    patch = {k: v for k, v in patch.items() if v is not None or k in _CLEARABLE}
    if patch.get("is_championship_match") is False and "championship_id" not in patch:
        patch["championship_id"] = None

    def edit(conn: sqlite3.Connection, show: Show, roster: Set[str]) -> Show:
        idx, current = _find(show.matches, match_id, "match")
        if "position" in patch:
            patch["position"] = card.claim_position(show, patch["position"], exclude_id=match_id)
        match = Match.model_validate({**current.model_dump(), **patch})
        card.validate_match(match, roster)
        _check_title(conn, show, match)
        show.matches[idx] = match
        return show

    return _edit_card(show_id, edit, event="show.match_updated", request_id=request_id, match_id=match_id)


def remove_match(show_id: str, match_id: str, *, request_id: str = "") -> Show:
    def edit(conn: sqlite3.Connection, show: Show, roster: Set[str]) -> Show:
        idx, _ = _find(show.matches, match_id, "match")
        del show.matches[idx]
        return show

    return _edit_card(show_id, edit, event="show.match_removed", request_id=request_id, match_id=match_id)


def add_segment(show_id: str, payload: Dict[str, Any], *, request_id: str = "") -> Show:
    def edit(conn: sqlite3.Connection, show: Show, roster: Set[str]) -> Show:
        data = dict(payload)
        position = card.claim_position(show, data.pop("position", None))
        segment = Segment(id=new_ulid(), position=position, **data)
        card.validate_segment(segment, roster)
        show.segments.append(segment)
        return show

    return _edit_card(show_id, edit, event="show.segment_added", request_id=request_id)


def update_segment(show_id: str, segment_id: str, patch: Dict[str, Any], *, request_id: str = "") -> Show:
    def edit(conn: sqlite3.Connection, show: Show, roster: Set[str]) -> Show:
        idx, current = _find(show.segments, segment_id, "segment")
        if "position" in patch:
            patch["position"] = card.claim_position(show, patch["position"], exclude_id=segment_id)
        segment = Segment.model_validate({**current.model_dump(), **patch})
        card.validate_segment(segment, roster)
        show.segments[idx] = segment
        return show

    return _edit_card(show_id, edit, event="show.segment_updated", request_id=request_id, segment_id=segment_id)


def remove_segment(show_id: str, segment_id: str, *, request_id: str = "") -> Show:
    def edit(conn: sqlite3.Connection, show: Show, roster: Set[str]) -> Show:
        idx, _ = _find(show.segments, segment_id, "segment")
        del show.segments[idx]
        return show

    return _edit_card(show_id, edit, event="show.segment_removed", request_id=request_id, segment_id=segment_id)


# -------------------------
# Lifecycle
# -------------------------
def _transition(show_id: str, to_status: str, *, event: str, request_id: str) -> Show:
    with unit_of_work() as conn:
        show = load_show(conn, show_id)
        lifecycle.ensure_transition(show_id, show.status, to_status)
        show = store_show(conn, show.model_copy(update={"status": to_status}))

    emit("audit", event, f"show {to_status.lower()}", request_id, MODULE, show_id=show_id)
    return show


def schedule_show(show_id: str, *, request_id: str = "") -> Show:
    return _transition(show_id, SCHEDULED, event="show.scheduled", request_id=request_id)


def cancel_show(show_id: str, *, request_id: str = "") -> Show:
    return _transition(show_id, CANCELLED, event="show.cancelled", request_id=request_id)


def start_show(show_id: str, *, request_id: str = "") -> Show:
    with unit_of_work() as conn:
        show = load_show(conn, show_id)
        lifecycle.ensure_transition(show_id, show.status, IN_PROGRESS)
        directory = SqliteDirectory(conn)
        venue = _venue(directory, show.venue_id)
        company = _company(directory, show.company_id)

        attendance = get_simulator().attendance(show, venue=venue, company=company)
        show = store_show(conn, show.model_copy(update={"status": IN_PROGRESS, "attendance": attendance}))

    emit("audit", "show.started", "show started", request_id, MODULE,
         show_id=show_id, attendance=show.attendance, capacity=venue.capacity)
    return show


def _challenger(match: Match, winner_id: str) -> Optional[str]:
    winner = next(p for p in match.participants if p.wrestler_id == winner_id)
    for p in match.participants:
        if p.wrestler_id == winner_id:
            continue
        if winner.team is not None and p.team == winner.team:
            continue
        return p.wrestler_id
    return None


def _apply_title_matches(conn: sqlite3.Connection, show: Show, at: datetime) -> Tuple[Show, List[Dict[str, Any]]]:
    """Run each title match's lineage change, in card order, on this connection."""
    anchor = ShowAnchor(id=show.id, date=show.date, status=COMPLETED)
    effects: List[Dict[str, Any]] = []

    for item in card.card_items(show):
        if not isinstance(item, Match) or not item.is_championship_match or not item.championship_id:
            continue
        won = card.winners(item)
        if not won:
            continue  # draws leave the title where it is
        winner = won[0]

        champ = championships.load_championship(conn, item.championship_id)
        holder = champ.current_holder_id
        if winner != holder:
            championships.change_holder(
                conn, champ.id, winner, at=at, won_from_id=holder, show=anchor, check_roster=False
            )
            item.title_changed = True
            effects.append({"event": "championship.holder_set", "championship_id": champ.id,
                            "holder_id": winner, "won_from_id": holder, "match_id": item.id})
        else:
            challenger = _challenger(item, winner)
            if challenger is None:
                continue
            quality = lineage.nearest_half_point(item.actual_quality or item.planned_quality)
            championships.add_defense(
                conn, champ.id, challenger, quality, at=at, show=anchor, check_challenger=False
            )
            effects.append({"event": "championship.defense_recorded", "championship_id": champ.id,
                            "holder_id": holder, "against_id": challenger, "quality": quality,
                            "match_id": item.id})
    return show, effects


def complete_show(show_id: str, *, request_id: str = "") -> Tuple[Show, List[str]]:
    """
    In Progress -> Completed, with simulated results and championship effects.

    The show row is written as Completed first; title changes / defenses and the
    company profit notification follow on the same transaction. Any failure
    after the transition check rolls all of it back and surfaces as a
    TransactionError.
    """
    at = utcnow()
    try:
        with unit_of_work() as conn:
            show = load_show(conn, show_id)
            lifecycle.ensure_transition(show_id, show.status, COMPLETED)
            try:
                directory = SqliteDirectory(conn)
                venue = _venue(directory, show.venue_id)
                company = _company(directory, show.company_id)
                wrestlers = directory.wrestlers(card.card_wrestler_ids(show))
                outcome = get_simulator().complete(show, venue=venue, company=company, wrestlers=wrestlers)

                done = show.model_copy(deep=True)
                for m in done.matches:
                    o = outcome.matches[m.id]
                    m.actual_quality, m.popularity_impact = o.actual_quality, o.popularity_impact
                for s in done.segments:
                    o = outcome.segments[s.id]
                    s.actual_quality, s.popularity_impact = o.actual_quality, o.popularity_impact
                done.status = COMPLETED
                done.results = outcome.results

                done = store_show(conn, done)
                done, effects = _apply_title_matches(conn, done, at)
                if any(m.title_changed for m in done.matches):
                    done = store_show(conn, done)

                directory.apply_show_result(
                    company.id, profit=outcome.results.profit, popularity_delta=outcome.popularity_delta
                )
            except TransactionError:
                raise
            except Exception as e:
                raise TransactionError(
                    "show completion failed; nothing was applied",
                    details={"show_id": show_id, "type": type(e).__name__, "reason": str(e)},
                ) from e
    except TransactionError as e:
        emit("error", "show.completion_failed", e.message, request_id, MODULE, show_id=show_id, details=e.details)
        raise

    for fx in effects:
        emit("audit", fx.pop("event"), "championship updated by show result", request_id, "championships",
             show_id=show_id, **fx)
    emit("audit", "show.completed", "show completed", request_id, MODULE,
         show_id=show_id, attendance=done.attendance, profit=done.results.profit if done.results else None,
         overall_rating=done.results.overall_rating if done.results else None)
    return done, sorted({fx["championship_id"] for fx in effects})
