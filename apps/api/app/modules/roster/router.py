from __future__ import annotations

from fastapi import APIRouter, Query

from .schemas import (
    CompanyCreateIn,
    CompanyOut,
    RosterOut,
    VenueCreateIn,
    VenueOut,
    VenuesListOut,
    WrestlerCreateIn,
    WrestlerOut,
)
from .service import (
    create_company,
    create_venue,
    create_wrestler,
    get_company,
    get_roster,
    get_venue,
    get_wrestler,
    list_venues,
)

router = APIRouter(tags=["roster"])


@router.post("/companies", response_model=CompanyOut, status_code=201)
def api_create_company(body: CompanyCreateIn) -> CompanyOut:
    return CompanyOut(**create_company(body.model_dump()))


@router.get("/companies/{company_id}", response_model=CompanyOut)
def api_get_company(company_id: str) -> CompanyOut:
    return CompanyOut(**get_company(company_id))


@router.get("/companies/{company_id}/roster", response_model=RosterOut)
def api_get_roster(company_id: str) -> RosterOut:
    return RosterOut(company_id=company_id, items=[WrestlerOut(**w) for w in get_roster(company_id)])


@router.post("/wrestlers", response_model=WrestlerOut, status_code=201)
def api_create_wrestler(body: WrestlerCreateIn) -> WrestlerOut:
    return WrestlerOut(**create_wrestler(body.model_dump()))


@router.get("/wrestlers/{wrestler_id}", response_model=WrestlerOut)
def api_get_wrestler(wrestler_id: str) -> WrestlerOut:
    return WrestlerOut(**get_wrestler(wrestler_id))


@router.post("/venues", response_model=VenueOut, status_code=201)
def api_create_venue(body: VenueCreateIn) -> VenueOut:
    return VenueOut(**create_venue(body.model_dump()))


@router.get("/venues", response_model=VenuesListOut)
def api_list_venues(available: bool = Query(False, description="Only venues open for booking")) -> VenuesListOut:
    return VenuesListOut(items=[VenueOut(**v) for v in list_venues(available_only=available)])


@router.get("/venues/{venue_id}", response_model=VenueOut)
def api_get_venue(venue_id: str) -> VenueOut:
    return VenueOut(**get_venue(venue_id))
