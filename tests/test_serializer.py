from __future__ import annotations

from dataclasses import replace

from xiboard.contracts import Assignments, FormationRef, SavedLineup
from xiboard.lineup import (
    compute_diff,
    dense_to_slots,
    is_dirty,
    saved_to_snapshot,
    serialize_lineup,
    slots_to_dense,
    snapshots_equal,
)
from tests.helpers import roster, started_store


def _saved_from(snapshot, saved_id="s1") -> SavedLineup:
    return SavedLineup(
        id=saved_id,
        name="Derby XI",
        formation=snapshot.formation,
        assignments=snapshot.assignments,
        team_id=snapshot.team_id,
        team_name=snapshot.team_name,
    )


def test_bench_conversion_pair():
    slots = [None, "a", None, "b", None, None, None, "c"]
    assert slots_to_dense(slots) == ["a", "b", "c"]
    assert dense_to_slots(["a", "b", "c"]) == ["a", "b", "c", None, None, None, None, None]
    assert dense_to_slots([f"x{i}" for i in range(10)]) == [f"x{i}" for i in range(8)]


def test_serialize_densifies_bench_and_copies_identity():
    store = started_store()
    store.place_player("GK", "p1")
    store.assign_to_bench(4, "p12")
    store.assign_to_bench(1, "p14")

    snapshot = serialize_lineup(store.lineup, "4-3-3 Attack", "Harbour")

    assert snapshot.formation == FormationRef(code="4-3-3", name="4-3-3 Attack")
    assert snapshot.assignments.bench == ["p14", "p12"]
    assert snapshot.assignments.on_field["GK"] == "p1"
    assert snapshot.team_id == "t1"
    assert snapshot.team_name == "Harbour"
    assert serialize_lineup(None, "x") is None


def test_snapshot_equality_ignores_field_order_but_not_bench_order():
    store = started_store()
    store.place_player("GK", "p1")
    store.assign_to_bench(0, "p12")
    store.assign_to_bench(1, "p13")
    a = serialize_lineup(store.lineup, "433")

    reordered = replace(
        a,
        assignments=Assignments(on_field=dict(reversed(list(a.assignments.on_field.items()))), bench=list(a.assignments.bench)),
    )
    assert snapshots_equal(a, reordered)

    swapped_bench = replace(a, assignments=Assignments(on_field=dict(a.assignments.on_field), bench=["p13", "p12"]))
    assert not snapshots_equal(a, swapped_bench)
    assert not snapshots_equal(a, replace(a, team_id="t2"))
    assert not snapshots_equal(a, replace(a, formation=FormationRef(code="4-4-2", name="433")))
    # display names are not compared
    assert snapshots_equal(a, replace(a, team_name="Renamed"))
    assert not snapshots_equal(a, None)


def test_dirty_flag():
    store = started_store()
    current = serialize_lineup(store.lineup, "433")
    assert is_dirty(current, None)
    assert is_dirty(None, None)
    assert not is_dirty(None, current)
    assert not is_dirty(current, current)

    store.place_player("ST", "p9")
    assert is_dirty(serialize_lineup(store.lineup, "433"), current)


def test_round_trip_diff_is_clean():
    store = started_store()
    store.place_player("ST", "p9")
    store.assign_to_bench(0, "p12")
    snapshot = serialize_lineup(store.lineup, "433", "Harbour")
    saved = _saved_from(serialize_lineup(store.lineup, "433", "Harbour"))

    diff = compute_diff(snapshot, saved, roster())

    assert not diff.team_changed
    assert not diff.formation_changed
    assert diff.missing_players == []
    assert not diff.has_differences
    assert snapshots_equal(snapshot, saved_to_snapshot(saved))


def test_diff_reports_team_formation_and_missing_players():
    store = started_store()
    current = serialize_lineup(store.lineup, "433", "Harbour")
    saved = SavedLineup(
        id="s2",
        name="Away",
        formation=FormationRef(code="4-4-2", name="4-4-2 Flat"),
        assignments=Assignments(on_field={"GK": "p1", "ST1": "gone1", "ST2": None}, bench=["gone2", "gone1", "p3"]),
        team_id="t2",
        team_name="Rovers",
    )

    diff = compute_diff(current, saved, ["p1", "p3"])

    assert diff.team_changed
    assert diff.formation_changed
    assert diff.current_team_name == "Harbour"
    assert diff.saved_formation_name == "4-4-2 Flat"
    assert diff.missing_players == ["gone1", "gone2"]
    assert diff.has_differences


def test_diff_without_current_lineup_only_reports_missing_players():
    saved = SavedLineup(
        id="s3",
        name="x",
        formation=FormationRef(code="4-4-2", name="4-4-2"),
        assignments=Assignments(on_field={"GK": "ghost"}, bench=[]),
        team_id="t9",
        team_name=None,
    )
    diff = compute_diff(None, saved, [])
    assert not diff.team_changed
    assert not diff.formation_changed
    assert diff.current_formation_name == ""
    assert diff.missing_players == ["ghost"]
