from __future__ import annotations

from typing import Iterable

from xiboard.contracts import Assignments, FormationRef, Lineup, LineupDiff, SavedLineup, Snapshot
from xiboard.lineup.bench import slots_to_dense


def serialize_lineup(lineup: Lineup | None, formation_name: str, team_name: str | None = None) -> Snapshot | None:
    """Comparable snapshot of a working lineup; the bench becomes a dense list."""
    if lineup is None:
        return None
    return Snapshot(
        formation=FormationRef(code=lineup.formation_code, name=formation_name),
        assignments=Assignments(on_field=dict(lineup.on_field), bench=slots_to_dense(lineup.bench_slots)),
        team_id=lineup.team_id or None,
        team_name=team_name or None,
    )


def saved_to_snapshot(saved: SavedLineup) -> Snapshot:
    return Snapshot(
        formation=FormationRef(code=saved.formation.code, name=saved.formation.name),
        assignments=Assignments(on_field=dict(saved.assignments.on_field), bench=list(saved.assignments.bench)),
        team_id=saved.team_id,
        team_name=saved.team_name,
    )


def snapshots_equal(a: Snapshot | None, b: Snapshot | None) -> bool:
    if a is b:
        return True
    if a is None or b is None:
        return False
    if a.formation.code != b.formation.code or a.team_id != b.team_id:
        return False
    # dict equality ignores insertion order; bench order is significant.
    if a.assignments.on_field != b.assignments.on_field:
        return False
    return list(a.assignments.bench) == list(b.assignments.bench)


def is_dirty(current: Snapshot | None, last_saved: Snapshot | None) -> bool:
    if last_saved is None:
        return True
    if current is None:
        return False
    return not snapshots_equal(current, last_saved)


def saved_player_ids(saved: SavedLineup) -> list[str]:
    """Every player referenced by a saved lineup, field first, without repeats."""
    ids = [pid for pid in saved.assignments.on_field.values() if pid]
    ids.extend(pid for pid in saved.assignments.bench if pid)
    return list(dict.fromkeys(ids))


def compute_diff(current: Snapshot | None, saved: SavedLineup, available_roster_ids: Iterable[str]) -> LineupDiff:
    available = set(available_roster_ids)
    return LineupDiff(
        team_changed=current is not None and current.team_id != saved.team_id,
        current_team_name=current.team_name if current is not None else None,
        saved_team_name=saved.team_name or None,
        formation_changed=current is not None and current.formation.code != saved.formation.code,
        current_formation_name=current.formation.name if current is not None else "",
        saved_formation_name=saved.formation.name,
        missing_players=[pid for pid in saved_player_ids(saved) if pid not in available],
    )
