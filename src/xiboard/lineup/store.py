from __future__ import annotations

import logging
from typing import Callable, Iterable

from xiboard.contracts import BENCH_SIZE, Lineup, Role
from xiboard.core.errors import BenchOverflowError, InvalidIndexError, InvalidSlotError
from xiboard.lineup.bench import empty_bench, first_free_index

logger = logging.getLogger(__name__)

LineupListener = Callable[[Lineup | None], None]


class AssignmentStore:
    """Owner of the single working lineup.

    The store is either uninitialized (``lineup is None``) or active. Every
    mutation works on a copy of the current lineup and is swapped in only once
    it has fully succeeded, so a raised error always leaves the previous state
    in place. Mutations on an uninitialized store are silent no-ops, except
    ``start_lineup``.
    """

    def __init__(self, initial: Lineup | None = None) -> None:
        self._working: Lineup | None = initial.copy() if initial is not None else None
        self._listeners: list[LineupListener] = []

    # -- queries -----------------------------------------------------------

    @property
    def lineup(self) -> Lineup | None:
        return self._working.copy() if self._working is not None else None

    @property
    def is_active(self) -> bool:
        return self._working is not None

    def placed_player_ids(self) -> set[str]:
        if self._working is None:
            return set()
        placed = {p for p in self._working.on_field.values() if p}
        placed.update(p for p in self._working.bench_slots if p)
        return placed

    def unplaced(self, roster_ids: Iterable[str]) -> list[str]:
        placed = self.placed_player_ids()
        return [pid for pid in roster_ids if pid not in placed]

    def location_of(self, player_id: str) -> tuple[str, str | int] | None:
        if self._working is None:
            return None
        for slot_code, occupant in self._working.on_field.items():
            if occupant == player_id:
                return ("field", slot_code)
        for index, occupant in enumerate(self._working.bench_slots):
            if occupant == player_id:
                return ("bench", index)
        return None

    def subscribe(self, listener: LineupListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # -- lifecycle ---------------------------------------------------------

    def start_lineup(self, team_id: str, formation_code: str, slot_codes: Iterable[str], roster_ids: Iterable[str] = ()) -> None:
        # roster_ids is accepted for auto-fill callers; starting never places anyone.
        lineup = Lineup(
            team_id=team_id,
            formation_code=formation_code,
            on_field={code: None for code in slot_codes},
            bench_slots=empty_bench(),
            roles={},
        )
        logger.debug("starting lineup team=%s formation=%s slots=%d", team_id, formation_code, len(lineup.on_field))
        self._commit(lineup)

    def reset_working(self) -> None:
        if self._working is None:
            return
        logger.debug("resetting working lineup")
        self._working = None
        self._notify()

    # -- field -------------------------------------------------------------

    def place_player(self, slot_code: str, player_id: str) -> None:
        if self._working is None:
            return
        self._require_slot(self._working, slot_code)
        lineup = self._working.copy()
        _clear_everywhere(lineup, player_id)
        lineup.on_field[slot_code] = player_id
        self._commit(lineup)

    def remove_from_slot(self, slot_code: str) -> None:
        if self._working is None:
            return
        self._require_slot(self._working, slot_code)
        player_id = self._working.on_field[slot_code]
        if player_id is None:
            return
        lineup = self._working.copy()
        index = first_free_index(lineup.bench_slots)
        if index is None:
            raise BenchOverflowError(player_id, "remove_from_slot")
        lineup.on_field[slot_code] = None
        lineup.bench_slots[index] = player_id
        self._commit(lineup)

    def swap_slots(self, slot_a: str, slot_b: str) -> None:
        if self._working is None:
            return
        self._require_slot(self._working, slot_a)
        self._require_slot(self._working, slot_b)
        lineup = self._working.copy()
        lineup.on_field[slot_a], lineup.on_field[slot_b] = lineup.on_field[slot_b], lineup.on_field[slot_a]
        self._commit(lineup)

    # -- bench -------------------------------------------------------------

    def assign_to_bench(self, index: int, player_id: str) -> None:
        if self._working is None:
            return
        _require_index(index)
        lineup = self._working.copy()
        _clear_everywhere(lineup, player_id)
        lineup.bench_slots[index] = player_id
        self._commit(lineup)

    def remove_from_bench(self, index: int) -> None:
        if self._working is None:
            return
        _require_index(index)
        lineup = self._working.copy()
        lineup.bench_slots[index] = None
        self._commit(lineup)

    def swap_bench_bench(self, index_a: int, index_b: int) -> None:
        if self._working is None:
            return
        _require_index(index_a)
        _require_index(index_b)
        lineup = self._working.copy()
        bench = lineup.bench_slots
        bench[index_a], bench[index_b] = bench[index_b], bench[index_a]
        self._commit(lineup)

    def move_to_bench(self, index: int, player_id: str, from_slot: str | None = None) -> None:
        """Drag a player onto a bench slot, optionally naming the field slot they left."""
        if self._working is None:
            return
        _require_index(index)
        if from_slot is not None:
            self._require_slot(self._working, from_slot)
        lineup = self._working.copy()
        if from_slot is not None:
            lineup.on_field[from_slot] = None
        _clear_everywhere(lineup, player_id)
        lineup.bench_slots[index] = player_id
        self._commit(lineup)

    # -- formation & roles -------------------------------------------------

    def set_formation(self, new_code: str, new_slot_codes: Iterable[str]) -> None:
        """Re-key the field by a new formation.

        Occupants of surviving slot codes stay put. Occupants of dropped codes
        move, in old-key order, to the first empty bench slots. If any of them
        cannot be seated the whole switch is rejected.
        """
        if self._working is None:
            return
        codes = list(dict.fromkeys(new_slot_codes))
        lineup = self._working.copy()
        keep = set(codes)
        on_field: dict[str, str | None] = {code: lineup.on_field.get(code) for code in codes}
        for old_code, occupant in self._working.on_field.items():
            if old_code in keep or occupant is None:
                continue
            index = first_free_index(lineup.bench_slots)
            if index is None:
                logger.info("formation switch %s -> %s rejected: bench full", lineup.formation_code, new_code)
                raise BenchOverflowError(occupant, "set_formation")
            lineup.bench_slots[index] = occupant
        lineup.on_field = on_field
        lineup.formation_code = new_code
        self._commit(lineup)

    def set_team(self, team_id: str) -> None:
        """Re-assign the lineup to another team, keeping every placement."""
        if self._working is None or self._working.team_id == team_id:
            return
        lineup = self._working.copy()
        lineup.team_id = team_id
        self._commit(lineup)

    def set_role(self, role: Role | str, player_id: str | None) -> None:
        # Roles are never checked against placement.
        if self._working is None:
            return
        role = Role(role)
        lineup = self._working.copy()
        if player_id:
            lineup.roles[role] = player_id
        else:
            lineup.roles.pop(role, None)
        self._commit(lineup)

    # -- internals ---------------------------------------------------------

    def _require_slot(self, lineup: Lineup, slot_code: str) -> None:
        if slot_code not in lineup.on_field:
            raise InvalidSlotError(slot_code, lineup.formation_code)

    def _commit(self, lineup: Lineup) -> None:
        self._working = lineup
        self._notify()

    def _notify(self) -> None:
        snapshot = self.lineup
        for listener in list(self._listeners):
            listener(snapshot)


def _require_index(index: int) -> None:
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < BENCH_SIZE:
        raise InvalidIndexError(index)


def _clear_everywhere(lineup: Lineup, player_id: str) -> None:
    for slot_code, occupant in lineup.on_field.items():
        if occupant == player_id:
            lineup.on_field[slot_code] = None
    lineup.bench_slots = [None if occupant == player_id else occupant for occupant in lineup.bench_slots]
