from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Path, Query, Request

from app.core.observability import request_id_of
from app.core.paging import clamp_limit, clamp_offset

from .schemas import (
    MatchIn,
    MatchPatchIn,
    PageOut,
    SegmentIn,
    SegmentPatchIn,
    Show,
    ShowCompleteOut,
    ShowCreateIn,
    ShowDeleteOut,
    ShowPatchIn,
    ShowsListOut,
)
from .service import (
    add_match,
    add_segment,
    cancel_show,
    complete_show,
    create_show,
    delete_show,
    get_show,
    list_shows,
    patch_show,
    remove_match,
    remove_segment,
    schedule_show,
    start_show,
    update_match,
    update_segment,
)

router = APIRouter(tags=["shows"])


@router.get("/shows", response_model=ShowsListOut)
def api_list_shows(
    limit: int | None = Query(None),
    offset: int | None = Query(None),
    company_id: str | None = Query(None),
    status: str | None = Query(None, description="Draft|Scheduled|In Progress|Completed|Cancelled"),
    show_type: str | None = Query(None),
    date_from: datetime | None = Query(None),
    date_to: datetime | None = Query(None),
    include_hidden: bool = Query(False),
) -> ShowsListOut:
    lim = clamp_limit(limit)
    off = clamp_offset(offset)
    items, total = list_shows(
        limit=lim,
        offset=off,
        company_id=company_id,
        status=status,
        show_type=show_type,
        date_from=date_from,
        date_to=date_to,
        include_hidden=include_hidden,
    )
    has_more = (off + lim) < total
    return ShowsListOut(items=items, page=PageOut(offset=off, limit=lim, total=total, has_more=has_more))


@router.post("/shows", response_model=Show, status_code=201)
def api_create_show(body: ShowCreateIn, request: Request) -> Show:
    return create_show(body.model_dump(), request_id=request_id_of(request))


@router.get("/shows/{show_id}", response_model=Show)
def api_get_show(show_id: str = Path(...)) -> Show:
    return get_show(show_id)


@router.patch("/shows/{show_id}", response_model=Show)
def api_patch_show(show_id: str, body: ShowPatchIn, request: Request) -> Show:
    patch = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    return patch_show(show_id, patch, request_id=request_id_of(request))


@router.delete("/shows/{show_id}", response_model=ShowDeleteOut)
def api_delete_show(show_id: str, request: Request) -> ShowDeleteOut:
    return ShowDeleteOut(**delete_show(show_id, request_id=request_id_of(request)))


# -------------------------
# Card
# -------------------------
@router.post("/shows/{show_id}/matches", response_model=Show, status_code=201)
def api_add_match(show_id: str, body: MatchIn, request: Request) -> Show:
    return add_match(show_id, body.model_dump(), request_id=request_id_of(request))


@router.patch("/shows/{show_id}/matches/{match_id}", response_model=Show)
def api_update_match(show_id: str, match_id: str, body: MatchPatchIn, request: Request) -> Show:
    return update_match(show_id, match_id, body.model_dump(exclude_unset=True), request_id=request_id_of(request))


@router.delete("/shows/{show_id}/matches/{match_id}", response_model=Show)
def api_remove_match(show_id: str, match_id: str, request: Request) -> Show:
    return remove_match(show_id, match_id, request_id=request_id_of(request))


@router.post("/shows/{show_id}/segments", response_model=Show, status_code=201)
def api_add_segment(show_id: str, body: SegmentIn, request: Request) -> Show:
    return add_segment(show_id, body.model_dump(), request_id=request_id_of(request))


@router.patch("/shows/{show_id}/segments/{segment_id}", response_model=Show)
def api_update_segment(show_id: str, segment_id: str, body: SegmentPatchIn, request: Request) -> Show:
    return update_segment(show_id, segment_id, body.model_dump(exclude_unset=True), request_id=request_id_of(request))


@router.delete("/shows/{show_id}/segments/{segment_id}", response_model=Show)
def api_remove_segment(show_id: str, segment_id: str, request: Request) -> Show:
    return remove_segment(show_id, segment_id, request_id=request_id_of(request))


# -------------------------
# Lifecycle
# -------------------------
@router.post("/shows/{show_id}/schedule", response_model=Show)
def api_schedule_show(show_id: str, request: Request) -> Show:
    return schedule_show(show_id, request_id=request_id_of(request))


@router.post("/shows/{show_id}/start", response_model=Show)
def api_start_show(show_id: str, request: Request) -> Show:
    return start_show(show_id, request_id=request_id_of(request))


@router.post("/shows/{show_id}/complete", response_model=ShowCompleteOut)
def api_complete_show(show_id: str, request: Request) -> ShowCompleteOut:
    show, touched = complete_show(show_id, request_id=request_id_of(request))
    return ShowCompleteOut(show=show, championships=touched)


@router.post("/shows/{show_id}/cancel", response_model=Show)
def api_cancel_show(show_id: str, request: Request) -> Show:
    return cancel_show(show_id, request_id=request_id_of(request))
