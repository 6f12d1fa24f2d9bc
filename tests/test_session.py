from __future__ import annotations

from pathlib import Path

from xiboard.contracts import ActionRequest, ActionType, LoadOptions
from xiboard.core import EngineSettings, make_id
from xiboard.persistence import InMemoryGateway
from xiboard.session import LineupSession, open_session
from tests.helpers import make_catalog, make_team


def _session(gateway: InMemoryGateway | None = None, **settings) -> LineupSession:
    return LineupSession(
        catalog=make_catalog(),
        teams=[make_team("t1", name="Harbour"), make_team("t2", name="Rovers")],
        gateway=gateway or InMemoryGateway(),
        settings=EngineSettings(**settings),
    )


def _act(session: LineupSession, action, payload=None):
    return session.handle_action(ActionRequest(make_id("req"), action, payload or {}))


def test_new_lineup_and_placement_through_actions():
    session = _session()
    assert session.current_team_id == "t1"
    assert session.store.lineup is None

    started = _act(session, ActionType.NEW_LINEUP, {})
    assert started.success
    assert started.data["lineup"]["formation_code"] == "4-3-3"

    placed = _act(session, ActionType.PLACE_PLAYER, {"slot_code": "ST", "player_id": "t1-p9"})
    assert placed.success
    assert placed.data["lineup"]["on_field"]["ST"] == "t1-p9"
    assert placed.data["dirty"] is True


def test_typed_failures_come_back_as_results():
    session = _session()
    _act(session, ActionType.NEW_LINEUP, {})

    bad_slot = _act(session, ActionType.PLACE_PLAYER, {"slot_code": "SW", "player_id": "t1-p1"})
    assert not bad_slot.success
    assert bad_slot.data["codes"] == ["INVALID_SLOT"]

    bad_index = _act(session, ActionType.ASSIGN_TO_BENCH, {"index": 8, "player_id": "t1-p1"})
    assert bad_index.data["codes"] == ["INVALID_BENCH_INDEX"]

    missing_field = _act(session, ActionType.PLACE_PLAYER, {"slot_code": "GK"})
    assert missing_field.data["codes"] == ["INVALID_REQUEST"]

    null_index = _act(session, ActionType.ASSIGN_TO_BENCH, {"index": None, "player_id": "t1-p1"})
    assert not null_index.success
    assert null_index.data["codes"] == ["INVALID_REQUEST"]

    unknown = _act(session, "teleport_player", {})
    assert not unknown.success
    assert unknown.data["codes"] == ["UNKNOWN_ACTION"]


def test_formation_switch_overflow_is_reported_and_state_kept():
    session = _session()
    _act(session, ActionType.NEW_LINEUP, {})
    for i in range(8):
        _act(session, ActionType.ASSIGN_TO_BENCH, {"index": i, "player_id": f"t1-p{i + 12}"})
    _act(session, ActionType.PLACE_PLAYER, {"slot_code": "LW", "player_id": "t1-p11"})
    before = session.store.lineup

    result = _act(session, ActionType.SET_FORMATION, {"formation_code": "4-4-2"})

    assert not result.success
    assert result.data["codes"] == ["BENCH_OVERFLOW"]
    assert session.store.lineup == before


def test_save_as_then_save_tracks_dirty_flag():
    session = _session()
    session.new_lineup()
    session.store.place_player("GK", "t1-p1")

    needs_name = _act(session, ActionType.SAVE)
    assert not needs_name.success
    assert needs_name.data["needs_name"] is True

    saved = _act(session, ActionType.SAVE_AS, {"name": "Derby", "notes": "cold night"})
    assert saved.success
    assert not session.is_dirty

    session.store.place_player("ST", "t1-p9")
    assert session.is_dirty
    resaved = _act(session, ActionType.SAVE)
    assert resaved.success
    assert resaved.data["saved"]["assignments"]["onField"]["ST"] == "t1-p9"
    assert not session.is_dirty
    assert len(session.library.list()) == 1


def test_rename_duplicate_delete_loaded():
    session = _session()
    session.new_lineup()
    session.save_as("First")

    assert _act(session, ActionType.RENAME_LOADED, {"name": "Renamed"}).data["saved"]["name"] == "Renamed"
    dup = _act(session, ActionType.DUPLICATE_LOADED)
    assert dup.data["saved"]["name"] == "Renamed (copy)"

    assert _act(session, ActionType.DELETE_LOADED).success
    assert session.loaded_saved_id is None
    listed = _act(session, ActionType.LIST_SAVED, {"sort": "name-asc"})
    assert [row["name"] for row in listed.data["lineups"]] == ["Renamed (copy)"]

    assert not _act(session, ActionType.DELETE_LOADED).success


def test_preview_and_load_with_team_and_formation_switch():
    session = _session()
    session.set_team("t2")
    session.new_lineup("4-4-2")
    session.store.place_player("ST1", "t2-p9")
    session.store.assign_to_bench(0, "t2-p15")
    saved = session.save_as("Rovers away")

    session.set_team("t1")
    session.new_lineup("4-3-3")
    session.store.place_player("GK", "t1-p1")

    preview = _act(session, ActionType.PREVIEW_LOAD, {"saved_id": saved.id})
    assert preview.data["team_changed"] is True
    assert preview.data["formation_changed"] is True
    assert sorted(preview.data["missing_players"]) == ["t2-p15", "t2-p9"]

    loaded = _act(
        session,
        ActionType.LOAD_SAVED,
        {"saved_id": saved.id, "switch_team": True, "switch_formation": True},
    )

    assert loaded.success
    assert session.current_team_id == "t2"
    lineup = session.store.lineup
    assert lineup.team_id == "t2"
    assert lineup.formation_code == "4-4-2"
    assert lineup.on_field["ST1"] == "t2-p9"
    assert lineup.on_field["GK"] is None
    assert lineup.bench_slots[0] == "t2-p15"
    assert loaded.data["report"]["switched_team_id"] == "t2"
    assert not session.is_dirty


def test_load_without_team_switch_places_other_rosters_players():
    session = _session()
    session.set_team("t2")
    session.new_lineup()
    session.store.place_player("GK", "t2-p1")
    session.store.assign_to_bench(2, "t2-p14")
    saved = session.save_as("Rovers")

    session.set_team("t1")
    report = session.load(saved.id, LoadOptions())

    lineup = session.store.lineup
    assert lineup.on_field["GK"] == "t2-p1"
    assert lineup.bench_slots[2] == "t2-p14"
    assert report.missing_players == ["t2-p1", "t2-p14"]
    assert session.current_team_id == "t1"
    assert lineup.team_id == "t1"


def test_load_with_team_switch_only_keeps_working_placements():
    session = _session()
    session.set_team("t2")
    session.new_lineup()
    session.store.place_player("ST", "t2-p9")
    saved = session.save_as("Rovers")

    session.set_team("t1")
    session.store.place_player("GK", "t1-p1")
    report = session.load(saved.id, LoadOptions(switch_team=True))

    lineup = session.store.lineup
    assert report.switched_team_id == "t2"
    assert session.current_team_id == "t2"
    assert lineup.team_id == "t2"
    assert lineup.on_field["GK"] == "t1-p1"
    assert lineup.on_field["ST"] == "t2-p9"
    assert report.missing_players == []


def test_storage_full_is_surfaced_and_editing_continues():
    session = _session(gateway=InMemoryGateway(max_bytes=120))
    result = _act(session, ActionType.NEW_LINEUP, {})

    assert result.success
    assert result.data["storage_full"] is True
    assert session.store.lineup is not None

    placed = _act(session, ActionType.PLACE_PLAYER, {"slot_code": "GK", "player_id": "t1-p1"})
    assert placed.success
    assert session.store.lineup.on_field["GK"] == "t1-p1"

    saved = _act(session, ActionType.SAVE_AS, {"name": "Too big"})
    assert not saved.success
    assert saved.data["storage_full"] is True


def test_session_restores_working_lineup_from_gateway():
    gateway = InMemoryGateway()
    first = _session(gateway)
    first.set_team("t2")
    first.new_lineup("3-5-2")
    first.store.place_player("CB2", "t2-p4")

    second = _session(gateway)

    assert second.current_team_id == "t2"
    assert second.store.lineup.formation_code == "3-5-2"
    assert second.store.lineup.on_field["CB2"] == "t2-p4"


def test_reset_working_clears_persisted_record():
    gateway = InMemoryGateway()
    session = _session(gateway)
    session.new_lineup()
    assert gateway.load(session.settings.working_key) is not None

    assert _act(session, ActionType.RESET_WORKING).success
    assert gateway.load(session.settings.working_key) is None
    assert _act(session, ActionType.GET_WORKING).data["lineup"] is None


def test_open_session_uses_packaged_catalog_and_sqlite(tmp_path: Path):
    session = open_session(tmp_path)
    assert session.catalog.resolve("4-3-3") is not None
    assert session.current_team is not None
    session.new_lineup()
    session.store.place_player("GK", session.roster_ids()[0])

    reopened = open_session(tmp_path)
    assert reopened.store.lineup.on_field["GK"] == session.roster_ids()[0]
    assert (tmp_path / "data" / "xiboard.sqlite3").exists()
