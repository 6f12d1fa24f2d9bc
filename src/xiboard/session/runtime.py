from __future__ import annotations

import logging
from dataclasses import asdict, replace
from pathlib import Path
from typing import Any

from xiboard.contracts import (
    ActionRequest,
    ActionResult,
    ActionType,
    Formation,
    FormationCatalog,
    Lineup,
    LineupDiff,
    LoadOptions,
    PersistenceGateway,
    ReconcileReport,
    Role,
    SavedLineup,
    Snapshot,
    SortOrder,
    Team,
)
from xiboard.core import EngineSettings, LineupError, PersistenceError, RuntimePaths, StorageFullError, load_settings
from xiboard.export import ExportService
from xiboard.formations import JsonFormationCatalog, load_teams
from xiboard.lineup import AssignmentStore, LineupReconciler, compute_diff, is_dirty, saved_to_snapshot, serialize_lineup
from xiboard.persistence import SavedLineupLibrary, SqliteGateway, WorkingLineupPersistence, saved_lineup_to_record

logger = logging.getLogger(__name__)


class LineupSession:
    """One editing session: a working lineup, its team, and the saved-lineup library.

    ``handle_action`` is the single entry point used by front ends. It never
    raises for domain failures; those come back as unsuccessful
    ``ActionResult`` objects carrying the issue codes.
    """

    def __init__(
        self,
        catalog: FormationCatalog,
        teams: list[Team],
        gateway: PersistenceGateway,
        settings: EngineSettings | None = None,
        current_team_id: str | None = None,
        paths: RuntimePaths | None = None,
    ) -> None:
        self.settings = settings or EngineSettings()
        self.catalog = catalog
        self.teams = {t.team_id: t for t in teams}
        self.gateway = gateway
        self.paths = paths

        self.working = WorkingLineupPersistence(gateway, self.settings.working_key, catalog)
        self.store = AssignmentStore(self.working.load_initial())
        self.working.attach(self.store)
        self.library = SavedLineupLibrary(gateway, self.settings.library_key)
        self.reconciler = LineupReconciler(self.store, catalog)

        lineup = self.store.lineup
        if lineup is not None and lineup.team_id in self.teams:
            self.current_team_id: str | None = lineup.team_id
        elif current_team_id in self.teams:
            self.current_team_id = current_team_id
        else:
            self.current_team_id = next(iter(self.teams), None)

        self.loaded_saved_id: str | None = None
        self.loaded_saved_name: str | None = None
        self.last_saved_snapshot: Snapshot | None = None

    # -- derived state -----------------------------------------------------

    @property
    def current_team(self) -> Team | None:
        return self.teams.get(self.current_team_id) if self.current_team_id else None

    @property
    def current_formation(self) -> Formation | None:
        lineup = self.store.lineup
        return self.catalog.resolve(lineup.formation_code) if lineup is not None else None

    def roster_ids(self, team_id: str | None = None) -> list[str]:
        team = self.teams.get(team_id or self.current_team_id or "")
        return team.roster_ids() if team is not None else []

    def current_snapshot(self) -> Snapshot | None:
        lineup = self.store.lineup
        if lineup is None:
            return None
        formation = self.catalog.resolve(lineup.formation_code)
        team = self.teams.get(lineup.team_id)
        return serialize_lineup(
            lineup,
            formation.name if formation is not None else lineup.formation_code,
            team.name if team is not None else None,
        )

    @property
    def is_dirty(self) -> bool:
        return is_dirty(self.current_snapshot(), self.last_saved_snapshot)

    # -- editing -----------------------------------------------------------

    def new_lineup(self, formation_code: str | None = None) -> Lineup:
        team = self.current_team
        if team is None:
            raise ValueError("no team selected")
        formation = self._formation(formation_code)
        self.store.start_lineup(team.team_id, formation.code, formation.slot_codes(), team.roster_ids())
        self._clear_loaded()
        return self.store.lineup  # type: ignore[return-value]

    def set_team(self, team_id: str) -> None:
        if team_id not in self.teams:
            raise ValueError(f"unknown team '{team_id}'")
        self.current_team_id = team_id
        lineup = self.store.lineup
        if lineup is None or lineup.team_id != team_id:
            # Another team's placements never carry over.
            self.new_lineup(lineup.formation_code if lineup is not None and self.catalog.resolve(lineup.formation_code) else None)

    def set_formation(self, formation_code: str) -> None:
        formation = self._formation(formation_code)
        self.store.set_formation(formation.code, formation.slot_codes())

    # -- saved lineups -----------------------------------------------------

    def save(self) -> SavedLineup | None:
        """Overwrite the loaded saved lineup; ``None`` means a name is needed first."""
        snapshot = self.current_snapshot()
        if snapshot is None or self.loaded_saved_id is None:
            return None
        existing = self.library.require(self.loaded_saved_id)
        updated = self.library.update(
            replace(
                existing,
                formation=snapshot.formation,
                assignments=snapshot.assignments,
                team_id=snapshot.team_id,
                team_name=snapshot.team_name,
                roles=self._roles(),
            )
        )
        self.last_saved_snapshot = snapshot
        return updated

    def save_as(self, name: str, notes: str | None = None) -> SavedLineup:
        snapshot = self.current_snapshot()
        if snapshot is None:
            raise ValueError("there is no working lineup to save")
        saved = self.library.save_new(name, snapshot, roles=self._roles(), notes=notes)
        self._mark_loaded(saved)
        self.last_saved_snapshot = snapshot
        return saved

    def rename_loaded(self, name: str) -> SavedLineup:
        if self.loaded_saved_id is None:
            raise ValueError("no saved lineup is loaded")
        renamed = self.library.rename(self.loaded_saved_id, name)
        self.loaded_saved_name = renamed.name
        return renamed

    def delete_loaded(self) -> None:
        if self.loaded_saved_id is None:
            raise ValueError("no saved lineup is loaded")
        self.library.remove(self.loaded_saved_id)
        self._clear_loaded()

    def duplicate_loaded(self) -> SavedLineup:
        if self.loaded_saved_id is None:
            raise ValueError("no saved lineup is loaded")
        return self.library.duplicate(self.loaded_saved_id)

    def preview_load(self, saved_id: str) -> LineupDiff:
        saved = self.library.require(saved_id)
        return compute_diff(self.current_snapshot(), saved, self.roster_ids())

    def load(self, saved_id: str, options: LoadOptions | None = None) -> ReconcileReport:
        saved = self.library.require(saved_id)
        options = options or LoadOptions()
        if options.switch_team and saved.team_id and saved.team_id not in self.teams:
            logger.warning("saved lineup %s belongs to unknown team %s; keeping current team", saved.id, saved.team_id)
            options = replace(options, switch_team=False)
        target_team = saved.team_id if options.switch_team and saved.team_id else self.current_team_id
        report = self.reconciler.apply(saved, options, self.current_team_id, self.roster_ids(target_team))
        if report.switched_team_id:
            self.current_team_id = report.switched_team_id
        self._mark_loaded(saved)
        self.last_saved_snapshot = saved_to_snapshot(saved)
        return report

    def export(self) -> list[Path]:
        if self.paths is None:
            raise RuntimeError("export needs a runtime root")
        return ExportService(self.library).export_saved_lineups(self.paths.export_dir)

    # -- action dispatch ---------------------------------------------------

    def handle_action(self, request: ActionRequest) -> ActionResult:
        try:
            return self._handle_action_core(request)
        except StorageFullError as exc:
            return ActionResult(request.request_id, False, str(exc), {"storage_full": True, "codes": [exc.code]})
        except PersistenceError as exc:
            return ActionResult(request.request_id, False, str(exc), {"codes": [exc.code]})
        except LineupError as exc:
            return ActionResult(request.request_id, False, str(exc), {"codes": exc.codes, "issues": [asdict(i) for i in exc.issues]})
        except (KeyError, TypeError, ValueError) as exc:
            return ActionResult(request.request_id, False, f"invalid request: {exc}", {"codes": ["INVALID_REQUEST"]})

    def _handle_action_core(self, request: ActionRequest) -> ActionResult:
        try:
            action = self._normalize_action(request.action_type)
        except ValueError:
            return ActionResult(request.request_id, False, f"Unsupported action '{request.action_type}'", {"codes": ["UNKNOWN_ACTION"]})
        payload = request.payload

        if action == ActionType.NEW_LINEUP:
            self.new_lineup(payload.get("formation_code"))
            return self._working_result(request, "lineup started")

        if action == ActionType.SET_TEAM:
            self.set_team(str(payload["team_id"]))
            return self._working_result(request, f"team set to {self.current_team_id}")

        if action == ActionType.PLACE_PLAYER:
            self.store.place_player(str(payload["slot_code"]), str(payload["player_id"]))
            return self._working_result(request, "player placed")

        if action == ActionType.REMOVE_FROM_SLOT:
            self.store.remove_from_slot(str(payload["slot_code"]))
            return self._working_result(request, "slot cleared")

        if action == ActionType.SWAP_SLOTS:
            self.store.swap_slots(str(payload["slot_a"]), str(payload["slot_b"]))
            return self._working_result(request, "slots swapped")

        if action == ActionType.ASSIGN_TO_BENCH:
            self.store.assign_to_bench(int(payload["index"]), str(payload["player_id"]))
            return self._working_result(request, "player benched")

        if action == ActionType.REMOVE_FROM_BENCH:
            self.store.remove_from_bench(int(payload["index"]))
            return self._working_result(request, "bench slot cleared")

        if action == ActionType.SWAP_BENCH_BENCH:
            self.store.swap_bench_bench(int(payload["index_a"]), int(payload["index_b"]))
            return self._working_result(request, "bench slots swapped")

        if action == ActionType.MOVE_TO_BENCH:
            from_slot = payload.get("from_slot")
            self.store.move_to_bench(int(payload["index"]), str(payload["player_id"]), str(from_slot) if from_slot else None)
            return self._working_result(request, "player moved to bench")

        if action == ActionType.SET_FORMATION:
            self.set_formation(str(payload["formation_code"]))
            return self._working_result(request, "formation changed")

        if action == ActionType.SET_ROLE:
            self.store.set_role(Role(payload["role"]), payload.get("player_id") or None)
            return self._working_result(request, "role updated")

        if action == ActionType.RESET_WORKING:
            self.store.reset_working()
            self._clear_loaded()
            return self._working_result(request, "working lineup cleared")

        if action == ActionType.GET_WORKING:
            return self._working_result(request, "working lineup")

        if action == ActionType.SAVE:
            saved = self.save()
            if saved is None:
                return ActionResult(request.request_id, False, "lineup has no name yet; use save_as", {"needs_name": True})
            return ActionResult(request.request_id, True, f"saved '{saved.name}'", {"saved": saved_lineup_to_record(saved)})

        if action == ActionType.SAVE_AS:
            saved = self.save_as(str(payload["name"]), payload.get("notes"))
            return ActionResult(request.request_id, True, f"saved '{saved.name}'", {"saved": saved_lineup_to_record(saved)})

        if action == ActionType.RENAME_LOADED:
            saved = self.rename_loaded(str(payload["name"]))
            return ActionResult(request.request_id, True, f"renamed to '{saved.name}'", {"saved": saved_lineup_to_record(saved)})

        if action == ActionType.DELETE_LOADED:
            self.delete_loaded()
            return ActionResult(request.request_id, True, "saved lineup deleted")

        if action == ActionType.DUPLICATE_LOADED:
            saved = self.duplicate_loaded()
            return ActionResult(request.request_id, True, f"duplicated as '{saved.name}'", {"saved": saved_lineup_to_record(saved)})

        if action == ActionType.LIST_SAVED:
            lineups = self.library.query(
                search=str(payload.get("search", "")),
                team_name=payload.get("team_name"),
                formation_name=payload.get("formation_name"),
                sort=SortOrder(payload.get("sort", SortOrder.UPDATED_DESC.value)),
            )
            return ActionResult(
                request.request_id,
                True,
                f"{len(lineups)} saved lineups",
                {"lineups": [saved_lineup_to_record(s) for s in lineups]},
            )

        if action == ActionType.PREVIEW_LOAD:
            diff = self.preview_load(str(payload["saved_id"]))
            data = asdict(diff)
            data["has_differences"] = diff.has_differences
            return ActionResult(request.request_id, True, "load preview", data)

        if action == ActionType.LOAD_SAVED:
            options = LoadOptions(
                switch_team=bool(payload.get("switch_team", False)),
                switch_formation=bool(payload.get("switch_formation", False)),
                auto_fill_bench=bool(payload.get("auto_fill_bench", False)),
            )
            report = self.load(str(payload["saved_id"]), options)
            result = self._working_result(request, f"loaded '{self.loaded_saved_name}'")
            result.data["report"] = asdict(report)
            return result

        return ActionResult(request.request_id, False, f"Unsupported action '{request.action_type}'", {"codes": ["UNKNOWN_ACTION"]})

    # -- internals ---------------------------------------------------------

    def _working_result(self, request: ActionRequest, message: str) -> ActionResult:
        data: dict[str, Any] = {
            "lineup": _lineup_data(self.store.lineup),
            "team_id": self.current_team_id,
            "dirty": self.is_dirty,
            "loaded_saved_id": self.loaded_saved_id,
        }
        outcome = self.working.last_outcome
        if outcome is not None and not outcome.ok:
            data["storage_full"] = outcome.storage_full
            data["persist_error"] = outcome.message
            message = f"{message} (not persisted: {outcome.message})"
        return ActionResult(request.request_id, True, message, data)

    def _formation(self, formation_code: str | None) -> Formation:
        if formation_code:
            formation = self.catalog.resolve(formation_code)
            if formation is None:
                raise ValueError(f"unknown formation '{formation_code}'")
            return formation
        formations = self.catalog.list()
        if not formations:
            raise ValueError("formation catalog is empty")
        return formations[0]

    def _roles(self) -> dict[Role, str]:
        lineup = self.store.lineup
        return dict(lineup.roles) if lineup is not None else {}

    def _mark_loaded(self, saved: SavedLineup) -> None:
        self.loaded_saved_id = saved.id
        self.loaded_saved_name = saved.name

    def _clear_loaded(self) -> None:
        self.loaded_saved_id = None
        self.loaded_saved_name = None
        self.last_saved_snapshot = None

    def _normalize_action(self, action: ActionType | str) -> ActionType:
        if isinstance(action, ActionType):
            return action
        return ActionType(action)


def _lineup_data(lineup: Lineup | None) -> dict[str, Any] | None:
    if lineup is None:
        return None
    return {
        "team_id": lineup.team_id,
        "formation_code": lineup.formation_code,
        "on_field": dict(lineup.on_field),
        "bench_slots": list(lineup.bench_slots),
        "roles": {role.value: pid for role, pid in lineup.roles.items()},
    }


def open_session(
    root: Path,
    settings: EngineSettings | None = None,
    teams_path: Path | None = None,
    formations_path: Path | None = None,
) -> LineupSession:
    """Session backed by the SQLite store under ``root`` and the packaged catalog."""
    paths = RuntimePaths(root)
    settings = settings or load_settings(paths.settings_path)
    gateway = SqliteGateway(paths.sqlite_path, max_bytes=settings.storage_quota_bytes)
    return LineupSession(
        catalog=JsonFormationCatalog(formations_path),
        teams=load_teams(teams_path),
        gateway=gateway,
        settings=settings,
        paths=paths,
    )
