from __future__ import annotations

from xiboard.contracts import BENCH_SIZE, Formation, FormationSlot, Lineup, Player, Team
from xiboard.formations import InMemoryFormationCatalog
from xiboard.lineup import AssignmentStore

SLOTS_433 = ["GK", "LB", "CB1", "CB2", "RB", "CM1", "CM2", "CM3", "LW", "ST", "RW"]
SLOTS_442 = ["GK", "LB", "CB1", "CB2", "RB", "LM", "CM1", "CM2", "RM", "ST1", "ST2"]
SLOTS_352 = ["GK", "CB1", "CB2", "CB3", "LWB", "CM1", "CM2", "CM3", "RWB", "ST1", "ST2"]


def make_formation(code: str, slot_codes: list[str], name: str | None = None) -> Formation:
    return Formation(
        code=code,
        name=name or code,
        slots=[FormationSlot(slot_id=f"{code}:{s}", slot_code=s) for s in slot_codes],
    )


def make_catalog() -> InMemoryFormationCatalog:
    return InMemoryFormationCatalog(
        [
            make_formation("4-3-3", SLOTS_433, "4-3-3 Attack"),
            make_formation("4-4-2", SLOTS_442, "4-4-2 Flat"),
            make_formation("3-5-2", SLOTS_352),
        ]
    )


def make_team(team_id: str, size: int = 20, name: str | None = None) -> Team:
    return Team(
        team_id=team_id,
        name=name or f"Team {team_id}",
        players=[Player(player_id=f"{team_id}-p{i}", name=f"Player {i}", jersey=i) for i in range(1, size + 1)],
    )


def roster(prefix: str = "p", size: int = 20) -> list[str]:
    return [f"{prefix}{i}" for i in range(1, size + 1)]


def started_store(team_id: str = "t1", code: str = "4-3-3", slots: list[str] | None = None) -> AssignmentStore:
    store = AssignmentStore()
    store.start_lineup(team_id, code, slots or SLOTS_433, roster())
    return store


def assert_invariants(lineup: Lineup | None, slot_codes: list[str]) -> None:
    assert lineup is not None
    assert len(lineup.bench_slots) == BENCH_SIZE
    assert set(lineup.on_field) == set(slot_codes)
    placed = [p for p in lineup.on_field.values() if p] + [p for p in lineup.bench_slots if p]
    assert len(placed) == len(set(placed)), f"player placed twice: {placed}"
