from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import ConflictError, ValidationError
from app.modules.championships import lineage
from app.modules.championships.lineage import ShowAnchor
from app.modules.championships.schemas import Championship, Reign

D0 = datetime(2026, 1, 1, tzinfo=timezone.utc)
D1 = datetime(2026, 2, 1, tzinfo=timezone.utc)
NOW = datetime(2026, 3, 1, tzinfo=timezone.utc)


def _vacant(**kw) -> Championship:
    return Championship(id="c1", company_id="co1", name="World Title", **kw)


def _held_by(holder: str, start: datetime = D0) -> Championship:
    return _vacant(
        current_holder_id=holder,
        title_history=[Reign(id="r0", holder_id=holder, start_date=start)],
    )


def _open_count(champ: Championship) -> int:
    return sum(1 for r in champ.title_history if r.end_date is None)


# -------------------------
# SetHolder
# -------------------------
def test_set_holder_on_vacant_title_opens_first_reign():
    out = lineage.set_holder(_vacant(), "A", at=NOW)

    assert out.current_holder_id == "A"
    assert len(out.title_history) == 1
    reign = out.title_history[0]
    assert reign.holder_id == "A"
    assert reign.won_from_id is None
    assert reign.start_date == NOW
    assert reign.end_date is None


def test_title_change_anchored_to_show_date():
    champ = _held_by("A")
    s1 = ShowAnchor(id="S1", date=D1, status="Completed")

    out = lineage.set_holder(champ, "B", won_from_id="A", show=s1, at=NOW)

    old, new = out.title_history
    assert old.holder_id == "A" and old.end_date == D1
    assert new.holder_id == "B"
    assert new.won_from_id == "A"
    assert new.won_at_show_id == "S1"
    assert new.start_date == D1
    assert new.end_date is None
    assert out.current_holder_id == "B"


def test_won_from_defaults_to_previous_holder():
    out = lineage.set_holder(_held_by("A"), "B", at=NOW)
    assert out.title_history[-1].won_from_id == "A"


def test_set_holder_does_not_mutate_input():
    champ = _held_by("A")
    lineage.set_holder(champ, "B", at=NOW)
    assert len(champ.title_history) == 1
    assert champ.title_history[0].end_date is None
    assert champ.current_holder_id == "A"


def test_distinct_holders_append_one_reign_each():
    champ = _held_by("A")
    for holder in ["B", "C", "D", "E"]:
        champ = lineage.set_holder(champ, holder, at=NOW)
        assert _open_count(champ) == 1
        assert champ.current_holder_id == holder
    assert len(champ.title_history) == 1 + 4
    assert [r.holder_id for r in champ.title_history] == ["A", "B", "C", "D", "E"]


def test_same_holder_rejected_until_vacated():
    champ = _held_by("A")
    with pytest.raises(ValidationError) as ei:
        lineage.set_holder(champ, "A", at=NOW)
    assert ei.value.error == "same_holder"

    vacated = lineage.vacate(champ, at=D1)
    assert vacated.current_holder_id is None
    assert _open_count(vacated) == 0

    rewon = lineage.set_holder(vacated, "A", at=NOW)
    assert rewon.current_holder_id == "A"
    assert len(rewon.title_history) == 2
    assert rewon.title_history[-1].won_from_id is None


@pytest.mark.parametrize("holder", ["", "   ", None])
def test_blank_holder_rejected(holder):
    with pytest.raises(ValidationError):
        lineage.set_holder(_vacant(), holder, at=NOW)


def test_show_must_be_completed():
    show = ShowAnchor(id="S1", date=D1, status="In Progress")
    with pytest.raises(ValidationError) as ei:
        lineage.set_holder(_held_by("A"), "B", show=show, at=NOW)
    assert ei.value.error == "show_not_completed"


def test_show_dated_before_reign_start_closes_it_at_its_start():
    # reign opened by wall-clock, title match on an earlier-dated show
    show = ShowAnchor(id="S0", date=D0 - timedelta(days=3), status="Completed")
    out = lineage.set_holder(_held_by("A"), "B", show=show, at=NOW)

    old, new = out.title_history
    assert old.end_date == D0
    assert new.start_date == D0
    assert new.won_at_show_id == "S0"
    assert out.current_holder_id == "B"


def test_wall_clock_change_after_future_dated_reign():
    future = D0 + timedelta(days=365)
    out = lineage.set_holder(_held_by("A", start=future), "B", at=NOW)
    assert out.title_history[0].end_date == future
    assert out.title_history[1].start_date == future

    out = lineage.vacate(_held_by("A", start=future), at=NOW)
    assert out.title_history[0].end_date == future
    assert out.current_holder_id is None


def test_inactive_title_cannot_change_hands():
    with pytest.raises(ConflictError):
        lineage.set_holder(_vacant(is_active=False), "A", at=NOW)


# -------------------------
# RecordDefense
# -------------------------
@pytest.mark.parametrize("quality", [3, 0, 7.25, "bad"])
def test_defense_on_vacant_title_is_conflict_and_leaves_state(quality):
    champ = _vacant()
    before = champ.model_dump()

    with pytest.raises(ConflictError) as ei:
        lineage.record_defense(champ, "W1", quality, at=NOW)

    assert ei.value.error == "title_vacant"
    assert champ.model_dump() == before


def test_defense_appends_to_open_reign():
    s1 = ShowAnchor(id="S1", date=D1, status="Completed")
    out = lineage.record_defense(_held_by("A"), "B", 4.5, show=s1, at=NOW)

    reign = out.title_history[0]
    assert reign.defense_count == 1
    assert reign.defenses[0].against_id == "B"
    assert reign.defenses[0].show_id == "S1"
    assert reign.defenses[0].date == D1
    assert out.last_defended == D1
    assert out.defended_at == ["S1"]
    assert out.prestige == 53


def test_defense_date_is_not_checked_against_reign_start():
    future = D0 + timedelta(days=365)
    out = lineage.record_defense(_held_by("A", start=future), "B", 3, at=NOW)
    assert out.title_history[0].defenses[0].date == NOW
    assert out.last_defended == NOW


def test_defended_at_lists_each_show_once():
    s1 = ShowAnchor(id="S1", date=D1, status="Completed")
    champ = lineage.record_defense(_held_by("A"), "B", 3, show=s1, at=NOW)
    champ = lineage.record_defense(champ, "C", 3, show=s1, at=NOW)
    assert champ.defended_at == ["S1"]
    assert champ.title_history[0].defense_count == 2


@pytest.mark.parametrize("quality", [0.5, 5.5, 3.3, float("nan")])
def test_defense_quality_must_be_half_point_in_range(quality):
    with pytest.raises(ValidationError) as ei:
        lineage.record_defense(_held_by("A"), "B", quality, at=NOW)
    assert ei.value.error == "invalid_quality"


def test_holder_cannot_defend_against_themselves():
    with pytest.raises(ValidationError):
        lineage.record_defense(_held_by("A"), "A", 3, at=NOW)


def test_prestige_stays_in_bounds():
    champ = _held_by("A").model_copy(update={"prestige": 99})
    out = lineage.record_defense(champ, "B", 5, at=NOW)
    assert out.prestige == 100

    champ = _held_by("A").model_copy(update={"prestige": 1})
    out = lineage.record_defense(champ, "B", 1, at=NOW)
    assert out.prestige == 0


# -------------------------
# invariants / derived values
# -------------------------
def test_check_invariants_flags_stale_holder_pointer():
    champ = _held_by("A").model_copy(update={"current_holder_id": "B"})
    with pytest.raises(ConflictError) as ei:
        lineage.check_invariants(champ)
    assert ei.value.error == "lineage_inconsistent"


def test_check_invariants_flags_two_open_reigns():
    champ = _vacant(
        current_holder_id="B",
        title_history=[
            Reign(id="r0", holder_id="A", start_date=D0),
            Reign(id="r1", holder_id="B", start_date=D1),
        ],
    )
    with pytest.raises(ConflictError):
        lineage.check_invariants(champ)


def test_vacating_vacant_title_is_conflict():
    with pytest.raises(ConflictError):
        lineage.vacate(_vacant(), at=NOW)


@pytest.mark.parametrize("raw,expected", [(3.2, 3.0), (3.3, 3.5), (4.8, 5.0), (1.1, 1.0), (0.2, 1.0)])
def test_nearest_half_point(raw, expected):
    assert lineage.nearest_half_point(raw) == expected


def test_reign_day_counts():
    champ = lineage.set_holder(_held_by("A"), "B", show=ShowAnchor(id="S1", date=D1, status="Completed"), at=NOW)

    assert lineage.current_reign_days(champ, NOW) == 28
    assert lineage.total_days_as_champion(champ, "A", NOW) == 31
    assert lineage.total_days_as_champion(champ, "B", NOW) == 28
    assert lineage.current_reign_days(_vacant(), NOW) == 0
