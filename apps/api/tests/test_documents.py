"""Persistence mapping: aggregates survive a store/load cycle unchanged."""
from __future__ import annotations

from datetime import datetime, timezone

from app.core.db import read_only, unit_of_work
from app.core.documents import insert_document, load_document
from app.modules.championships.schemas import Championship, Defense, Reign
from app.modules.shows.schemas import Match, Participant, Segment, Show, ShowResults

D0 = datetime(2026, 1, 1, 12, 30, tzinfo=timezone.utc)
D1 = datetime(2026, 2, 1, 21, 0, tzinfo=timezone.utc)


def test_championship_round_trip(client, seed):
    champ = Championship(
        id="CH1",
        company_id=seed.company["id"],
        name="Tag Team Championship",
        description="Two belts, one title",
        weight="Tag Team",
        prestige=71,
        current_holder_id="B",
        title_history=[
            Reign(id="R1", holder_id="A", start_date=D0, end_date=D1, defense_count=1,
                  defenses=[Defense(against_id="C", show_id="S0", date=D0, quality=3.5)]),
            Reign(id="R2", holder_id="B", won_from_id="A", won_at_show_id="S1", start_date=D1),
        ],
        defended_at=["S0"],
        last_defended=D0,
    )

    with unit_of_work() as conn:
        stored = insert_document(conn, "championships", champ, {
            "company_id": champ.company_id, "name": champ.name, "weight": champ.weight,
            "prestige": champ.prestige, "is_active": 1, "current_holder_id": champ.current_holder_id,
        })
    with read_only() as conn:
        loaded = load_document(conn, "championships", "CH1", Championship)

    assert loaded == stored
    assert loaded.title_history[0].defenses[0].date == D0
    assert loaded.title_history[1].end_date is None


def test_show_round_trip(client, seed):
    show = Show(
        id="SH1",
        company_id=seed.company["id"],
        venue_id=seed.venue["id"],
        name="Grand Slam",
        date=D1,
        show_type="Pay-Per-View",
        ticket_price=55.5,
        status="Completed",
        matches=[
            Match(id="M1", position=2, match_type="Tag Team", booked_outcome="Dirty",
                  participants=[Participant(wrestler_id="A", team=1, is_winner=True), Participant(wrestler_id="B", team=1),
                                Participant(wrestler_id="C", team=2), Participant(wrestler_id="D", team=2)],
                  actual_quality=4.2, popularity_impact=2, title_changed=True,
                  is_championship_match=True, championship_id="CH1"),
        ],
        segments=[Segment(id="G1", position=1, description="Cold open", wrestler_ids=["A"], actual_quality=3.1,
                          popularity_impact=0)],
        attendance=4321,
        results=ShowResults(ticket_revenue=239815.5, merchandise_revenue=47531.0, venue_rental_cost=10000.0,
                            production_cost=50000.0, talent_cost=4000.0, profit=223346.5, overall_rating=3.9,
                            critic_rating=3.7, audience_satisfaction=81),
    )

    with unit_of_work() as conn:
        stored = insert_document(conn, "shows", show, {
            "company_id": show.company_id, "venue_id": show.venue_id, "name": show.name, "status": show.status,
            "show_type": show.show_type, "date": show.date.isoformat(), "is_visible": 1,
        })
    with read_only() as conn:
        loaded = load_document(conn, "shows", "SH1", Show)

    assert loaded == stored
    assert loaded.model_dump_json() == stored.model_dump_json()


def test_missing_document_loads_as_none(client):
    with read_only() as conn:
        assert load_document(conn, "shows", "NOPE", Show) is None
