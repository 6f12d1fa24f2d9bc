from __future__ import annotations

import logging
from typing import Iterable

from xiboard.contracts import BENCH_SIZE, FormationCatalog, LoadOptions, ReconcileReport, Role, SavedLineup
from xiboard.lineup.bench import first_free_index
from xiboard.lineup.store import AssignmentStore

logger = logging.getLogger(__name__)


class LineupReconciler:
    """Applies a saved lineup onto the working lineup in one ordered pass.

    Steps run strictly in sequence and each one reads the state the previous
    step left behind: formation switch, team switch, field placements, bench,
    roles, then the optional bench auto-fill.
    """

    def __init__(self, store: AssignmentStore, catalog: FormationCatalog) -> None:
        self.store = store
        self.catalog = catalog

    def apply(
        self,
        saved: SavedLineup,
        options: LoadOptions,
        current_team_id: str | None,
        roster_ids: Iterable[str],
    ) -> ReconcileReport:
        roster = list(roster_ids)
        available = set(roster)
        report = ReconcileReport(saved_id=saved.id)

        if options.switch_formation:
            self._start_from_saved(saved, saved.team_id or current_team_id or "", roster, report)

        if options.switch_team and saved.team_id:
            report.switched_team_id = saved.team_id
            self.store.set_team(saved.team_id)

        if not self.store.is_active:
            self._start_from_saved(saved, saved.team_id or current_team_id or "", roster, report)

        working = self.store.lineup
        slot_codes = set(working.on_field) if working is not None else set()
        for slot_code, player_id in saved.assignments.on_field.items():
            if not player_id:
                continue
            if slot_code not in slot_codes:
                report.skipped_slots.append(slot_code)
                continue
            if player_id not in available:
                report.missing_players.append(player_id)
            self.store.place_player(slot_code, player_id)
            report.applied_slots.append(slot_code)

        for index, player_id in enumerate(saved.assignments.bench[:BENCH_SIZE]):
            if not player_id:
                continue
            if player_id not in available:
                report.missing_players.append(player_id)
            self.store.assign_to_bench(index, player_id)
            report.bench_applied += 1

        for role, player_id in saved.roles.items():
            if player_id:
                self.store.set_role(Role(role), player_id)

        if options.auto_fill_bench:
            report.auto_filled = self._auto_fill_bench(roster)

        # Missing players are placed anyway; the list is informational.
        report.missing_players = list(dict.fromkeys(report.missing_players))
        logger.info(
            "applied saved lineup %s: %d field, %d bench, %d not on roster",
            saved.id,
            len(report.applied_slots),
            report.bench_applied,
            len(report.missing_players),
        )
        return report

    def _start_from_saved(self, saved: SavedLineup, team_id: str, roster: list[str], report: ReconcileReport) -> None:
        formation = self.catalog.resolve(saved.formation.code)
        if formation is None:
            logger.warning("saved formation %s is not in the catalog; keeping current formation", saved.formation.code)
            return
        self.store.start_lineup(team_id, formation.code, formation.slot_codes(), roster)
        report.started_formation = formation.code

    def _auto_fill_bench(self, roster: list[str]) -> list[str]:
        filled: list[str] = []
        for player_id in self.store.unplaced(roster):
            working = self.store.lineup
            if working is None:
                break
            index = first_free_index(working.bench_slots)
            if index is None:
                break
            self.store.assign_to_bench(index, player_id)
            filled.append(player_id)
        return filled
