from __future__ import annotations

from xiboard.contracts import Assignments, FormationRef, LoadOptions, Role, SavedLineup
from xiboard.lineup import AssignmentStore, LineupReconciler
from tests.helpers import SLOTS_433, SLOTS_442, assert_invariants, make_catalog, roster, started_store


def _saved(**overrides) -> SavedLineup:
    fields = dict(
        id="s1",
        name="Cup final",
        formation=FormationRef(code="4-4-2", name="4-4-2 Flat"),
        assignments=Assignments(
            on_field={"GK": "p1", "LM": "p6", "ST1": "p9", "ST2": None},
            bench=["p12", "p13"],
        ),
        team_id="t1",
        team_name="Team t1",
        roles={Role.CAPTAIN: "p9", Role.PK: "p99"},
    )
    fields.update(overrides)
    return SavedLineup(**fields)


def test_switch_formation_discards_unsaved_placements_then_applies_saved():
    store = started_store()
    store.place_player("CM3", "p20")
    store.assign_to_bench(7, "p19")

    report = LineupReconciler(store, make_catalog()).apply(_saved(), LoadOptions(switch_formation=True), "t1", roster())

    lineup = store.lineup
    assert lineup.formation_code == "4-4-2"
    assert report.started_formation == "4-4-2"
    assert lineup.on_field["GK"] == "p1"
    assert lineup.on_field["LM"] == "p6"
    assert lineup.on_field["ST1"] == "p9"
    assert lineup.bench_slots == ["p12", "p13", None, None, None, None, None, None]
    assert store.location_of("p20") is None
    assert store.location_of("p19") is None
    assert lineup.roles == {Role.CAPTAIN: "p9", Role.PK: "p99"}
    assert_invariants(lineup, SLOTS_442)


def test_without_formation_switch_unknown_slots_are_skipped():
    store = started_store()
    store.place_player("CM3", "p20")

    report = LineupReconciler(store, make_catalog()).apply(_saved(), LoadOptions(), "t1", roster())

    lineup = store.lineup
    assert lineup.formation_code == "4-3-3"
    assert lineup.on_field["GK"] == "p1"
    assert lineup.on_field["CM3"] == "p20"
    assert sorted(report.skipped_slots) == ["LM", "ST1"]
    assert report.applied_slots == ["GK"]
    assert report.started_formation is None
    assert_invariants(lineup, SLOTS_433)


def test_players_missing_from_roster_are_still_placed_and_reported():
    store = started_store(code="4-4-2", slots=SLOTS_442)
    available = [pid for pid in roster() if pid not in {"p9", "p12"}]

    report = LineupReconciler(store, make_catalog()).apply(_saved(), LoadOptions(), "t1", available)

    lineup = store.lineup
    assert lineup.on_field["ST1"] == "p9"
    assert lineup.bench_slots[:2] == ["p12", "p13"]
    assert report.missing_players == ["p9", "p12"]
    assert report.bench_applied == 2


def test_saved_player_unknown_to_any_roster_is_placed():
    store = started_store()
    saved = _saved(
        formation=FormationRef(code="4-3-3", name="4-3-3 Attack"),
        assignments=Assignments(on_field={"ST": "gone"}, bench=[]),
    )

    report = LineupReconciler(store, make_catalog()).apply(saved, LoadOptions(), "t1", roster())

    assert store.lineup.on_field["ST"] == "gone"
    assert report.applied_slots == ["ST"]
    assert report.missing_players == ["gone"]


def test_bench_application_is_bounded_to_eight():
    saved = _saved(assignments=Assignments(on_field={}, bench=[f"p{i}" for i in range(1, 12)]))
    store = started_store(code="4-4-2", slots=SLOTS_442)

    report = LineupReconciler(store, make_catalog()).apply(saved, LoadOptions(), "t1", roster())

    assert store.lineup.bench_slots == [f"p{i}" for i in range(1, 9)]
    assert report.bench_applied == 8


def test_team_switch_alone_keeps_current_placements():
    store = started_store(team_id="t0")
    store.place_player("GK", "p1")
    store.place_player("CM3", "p20")
    saved = _saved(assignments=Assignments(on_field={"ST1": "p9"}, bench=[]))

    report = LineupReconciler(store, make_catalog()).apply(saved, LoadOptions(switch_team=True), "t0", roster())

    lineup = store.lineup
    assert report.switched_team_id == "t1"
    assert lineup.team_id == "t1"
    assert lineup.formation_code == "4-3-3"
    assert lineup.on_field["GK"] == "p1"
    assert lineup.on_field["CM3"] == "p20"
    assert report.skipped_slots == ["ST1"]
    assert_invariants(lineup, SLOTS_433)


def test_apply_starts_a_lineup_when_none_is_active():
    store = AssignmentStore()

    report = LineupReconciler(store, make_catalog()).apply(_saved(), LoadOptions(), "t1", roster())

    assert store.is_active
    assert report.started_formation == "4-4-2"
    assert store.lineup.on_field["ST1"] == "p9"


def test_auto_fill_bench_uses_unplaced_roster_in_order():
    store = started_store(code="4-4-2", slots=SLOTS_442)

    report = LineupReconciler(store, make_catalog()).apply(
        _saved(), LoadOptions(auto_fill_bench=True), "t1", roster(size=14)
    )

    lineup = store.lineup
    assert lineup.bench_slots == ["p12", "p13", "p2", "p3", "p4", "p5", "p7", "p8"]
    assert report.auto_filled == ["p2", "p3", "p4", "p5", "p7", "p8"]
    assert_invariants(lineup, SLOTS_442)


def test_unknown_saved_formation_keeps_current_formation():
    store = started_store()
    saved = _saved(formation=FormationRef(code="2-3-5", name="Pyramid"))

    report = LineupReconciler(store, make_catalog()).apply(saved, LoadOptions(switch_formation=True), "t1", roster())

    assert report.started_formation is None
    assert store.lineup.formation_code == "4-3-3"
    assert store.lineup.on_field["GK"] == "p1"
