from __future__ import annotations

from fastapi import APIRouter, Path, Query, Request

from app.core.observability import request_id_of
from app.core.paging import clamp_limit, clamp_offset

from .schemas import (
    ChampionshipCreateIn,
    ChampionshipDeleteOut,
    ChampionshipOut,
    ChampionshipPatchIn,
    ChampionshipsListOut,
    PageOut,
    RecordDefenseIn,
    SetHolderIn,
    VacateIn,
    WrestlerTitlesOut,
)
from .service import (
    create_championship,
    delete_championship,
    get_championship,
    list_championships,
    patch_championship,
    record_defense,
    set_holder,
    to_out,
    vacate_championship,
    wrestler_titles,
)

router = APIRouter(tags=["championships"])


@router.get("/championships", response_model=ChampionshipsListOut)
def api_list_championships(
    limit: int | None = Query(None),
    offset: int | None = Query(None),
    company_id: str | None = Query(None),
    active: bool | None = Query(None),
    weight: str | None = Query(None, description="Heavyweight|Middleweight|Cruiserweight|Tag Team|Women's|Other"),
) -> ChampionshipsListOut:
    lim = clamp_limit(limit)
    off = clamp_offset(offset)
    items, total = list_championships(limit=lim, offset=off, company_id=company_id, active=active, weight=weight)
    has_more = (off + lim) < total
    return ChampionshipsListOut(
        items=[to_out(c) for c in items],
        page=PageOut(offset=off, limit=lim, total=total, has_more=has_more),
    )


@router.post("/championships", response_model=ChampionshipOut, status_code=201)
def api_create_championship(body: ChampionshipCreateIn, request: Request) -> ChampionshipOut:
    return to_out(create_championship(body.model_dump(), request_id=request_id_of(request)))


@router.get("/championships/{championship_id}", response_model=ChampionshipOut)
def api_get_championship(championship_id: str = Path(...)) -> ChampionshipOut:
    return to_out(get_championship(championship_id))


@router.patch("/championships/{championship_id}", response_model=ChampionshipOut)
def api_patch_championship(championship_id: str, body: ChampionshipPatchIn, request: Request) -> ChampionshipOut:
    patch = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    return to_out(patch_championship(championship_id, patch, request_id=request_id_of(request)))


@router.delete("/championships/{championship_id}", response_model=ChampionshipDeleteOut)
def api_delete_championship(championship_id: str, request: Request) -> ChampionshipDeleteOut:
    return ChampionshipDeleteOut(**delete_championship(championship_id, request_id=request_id_of(request)))


@router.post("/championships/{championship_id}/holder", response_model=ChampionshipOut)
def api_set_holder(championship_id: str, body: SetHolderIn, request: Request) -> ChampionshipOut:
    champ = set_holder(
        championship_id,
        body.wrestler_id,
        won_from_id=body.won_from_id,
        show_id=body.show_id,
        request_id=request_id_of(request),
    )
    return to_out(champ)


@router.post("/championships/{championship_id}/defense", response_model=ChampionshipOut)
def api_record_defense(championship_id: str, body: RecordDefenseIn, request: Request) -> ChampionshipOut:
    champ = record_defense(
        championship_id,
        body.against_id,
        body.quality,
        show_id=body.show_id,
        request_id=request_id_of(request),
    )
    return to_out(champ)


@router.post("/championships/{championship_id}/vacate", response_model=ChampionshipOut)
def api_vacate(championship_id: str, request: Request, body: VacateIn | None = None) -> ChampionshipOut:
    show_id = body.show_id if body is not None else None
    return to_out(vacate_championship(championship_id, show_id=show_id, request_id=request_id_of(request)))


@router.get("/wrestlers/{wrestler_id}/championships", response_model=WrestlerTitlesOut)
def api_wrestler_titles(wrestler_id: str) -> WrestlerTitlesOut:
    return WrestlerTitlesOut(**wrestler_titles(wrestler_id))
