from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.modules.roster.directory import CompanyInfo, VenueInfo, WrestlerInfo
from app.modules.shows.schemas import Match, Participant, Segment, Show
from app.modules.shows.simulation import StandardSimulator, get_simulator, register_simulator


def _wrestler(wid: str, style: str = "All-Rounder", attr: int = 50, salary: float = 52_000.0) -> WrestlerInfo:
    return WrestlerInfo(
        id=wid,
        name=wid.upper(),
        style=style,
        strength=attr,
        agility=attr,
        charisma=attr,
        technical=attr,
        popularity=50,
        salary=salary,
        company_id="co1",
    )


WRESTLERS = {
    "a": _wrestler("a", "Technical", 90),
    "b": _wrestler("b", "Showman", 20),
    "c": _wrestler("c", "Powerhouse", 70),
}
VENUE = VenueInfo(id="v1", name="Arena", capacity=2000, rental_cost=4_000.0, prestige=50, is_available=True)
COMPANY = CompanyInfo(id="co1", name="Apex", popularity=50, money=1_000_000.0)


def _show(show_id: str = "s1", **kw) -> Show:
    base = dict(
        id=show_id,
        company_id="co1",
        venue_id="v1",
        name="Show",
        date=datetime(2026, 1, 1, tzinfo=timezone.utc),
        matches=[
            Match(
                id="m1",
                position=1,
                participants=[Participant(wrestler_id="a", is_winner=True), Participant(wrestler_id="b")],
                planned_quality=4,
            ),
            Match(
                id="m2",
                position=3,
                participants=[Participant(wrestler_id="c", is_winner=True), Participant(wrestler_id="a")],
                is_championship_match=True,
                championship_id="t1",
                stipulation="No DQ",
            ),
        ],
        segments=[Segment(id="g1", position=2, description="Promo", wrestler_ids=["b"])],
    )
    base.update(kw)
    return Show(**base)


def test_attendance_is_deterministic():
    sim = StandardSimulator()
    show = _show()
    first = sim.attendance(show, venue=VENUE, company=COMPANY)
    assert first == sim.attendance(show, venue=VENUE, company=COMPANY)
    assert first == StandardSimulator().attendance(_show(), venue=VENUE, company=COMPANY)


@pytest.mark.parametrize(
    "popularity,prestige,price,show_type",
    [
        (100, 100, 0.0, "Pay-Per-View"),
        (1, 1, 500.0, "House Show"),
        (50, 50, 20.0, "Weekly TV"),
        (100, 100, 0.0, "Special Event"),
    ],
)
def test_attendance_stays_within_capacity(popularity, prestige, price, show_type):
    venue = VenueInfo(id="v1", name="Arena", capacity=800, rental_cost=0.0, prestige=prestige, is_available=True)
    company = CompanyInfo(id="co1", name="Apex", popularity=popularity, money=0.0)
    for sid in ("s1", "s2", "s3"):
        n = StandardSimulator().attendance(_show(sid, ticket_price=price, show_type=show_type), venue=venue, company=company)
        assert isinstance(n, int)
        assert 0 <= n <= venue.capacity
        assert n >= 80


def test_completion_is_deterministic_and_bounded():
    show = _show(attendance=1500)
    one = StandardSimulator().complete(show, venue=VENUE, company=COMPANY, wrestlers=WRESTLERS)
    two = StandardSimulator().complete(show, venue=VENUE, company=COMPANY, wrestlers=WRESTLERS)
    assert one == two

    assert set(one.matches) == {"m1", "m2"}
    assert set(one.segments) == {"g1"}
    for item in [*one.matches.values(), *one.segments.values()]:
        assert 1.0 <= item.actual_quality <= 5.0
        assert isinstance(item.popularity_impact, int)

    r = one.results
    for rating in (r.overall_rating, r.critic_rating):
        assert 1.0 <= rating <= 5.0
    assert 0 <= r.audience_satisfaction <= 100


def test_financials():
    show = _show(attendance=1000, ticket_price=30.0, show_type="Pay-Per-View")
    out = StandardSimulator().complete(show, venue=VENUE, company=COMPANY, wrestlers=WRESTLERS)
    r = out.results

    assert r.ticket_revenue == 30_000.0
    assert r.merchandise_revenue == 10_000.0  # 1000 * (5 + 10 * 0.5)
    assert r.venue_rental_cost == 4_000.0
    assert r.production_cost == 50_000.0
    assert r.talent_cost == 3_000.0  # three distinct wrestlers at 1000 / week
    assert r.profit == round(30_000.0 + 10_000.0 - 4_000.0 - 50_000.0 - 3_000.0, 2)
    assert out.popularity_delta == round((r.overall_rating - 3) * 2)


def test_empty_card_rates_three():
    show = _show(matches=[], segments=[], attendance=100)
    r = StandardSimulator().complete(show, venue=VENUE, company=COMPANY, wrestlers={}).results
    assert r.overall_rating == 3.0
    assert r.critic_rating == 3.0
    assert r.audience_satisfaction == 60
    assert r.talent_cost == 0.0


def test_critics_and_audience_weigh_differently():
    # dull technical match, then a hot promo by a showman
    tech = dict(style="Technical", strength=50, agility=50, charisma=20, technical=95, popularity=50, salary=0.0, company_id="co1")
    wrestlers = {
        "x": WrestlerInfo(id="x", name="X", **tech),
        "y": WrestlerInfo(id="y", name="Y", **tech),
        "s": WrestlerInfo(id="s", name="S", style="Showman", strength=50, agility=50, charisma=95, technical=20,
                          popularity=50, salary=0.0, company_id="co1"),
    }
    show = _show(
        matches=[Match(id="m1", position=1, planned_quality=1,
                       participants=[Participant(wrestler_id="x", is_winner=True), Participant(wrestler_id="y")])],
        segments=[Segment(id="g1", position=2, description="Promo", planned_quality=5, wrestler_ids=["s"])],
        attendance=100,
    )

    r = StandardSimulator().complete(show, venue=VENUE, company=COMPANY, wrestlers=wrestlers).results
    assert r.critic_rating < 2.5
    assert r.audience_satisfaction >= 74


def test_registry(monkeypatch):
    assert isinstance(get_simulator(), StandardSimulator)
    assert isinstance(get_simulator("STANDARD"), StandardSimulator)

    class Flat(StandardSimulator):
        name = "flat"

    register_simulator("flat", Flat)
    monkeypatch.setenv("SIMULATOR", "flat")
    assert get_simulator().name == "flat"

    with pytest.raises(ValueError):
        get_simulator("nope")
