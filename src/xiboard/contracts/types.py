from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

BENCH_SIZE = 8


class Role(str, Enum):
    CAPTAIN = "captain"
    GK = "gk"
    PK = "pk"
    CK = "ck"
    FK = "fk"


class PlayerStatus(str, Enum):
    AVAILABLE = "available"
    INJURED = "injured"
    UNAVAILABLE = "unavailable"


class ActionType(str, Enum):
    NEW_LINEUP = "new_lineup"
    PLACE_PLAYER = "place_player"
    REMOVE_FROM_SLOT = "remove_from_slot"
    SWAP_SLOTS = "swap_slots"
    ASSIGN_TO_BENCH = "assign_to_bench"
    REMOVE_FROM_BENCH = "remove_from_bench"
    SWAP_BENCH_BENCH = "swap_bench_bench"
    MOVE_TO_BENCH = "move_to_bench"
    SET_FORMATION = "set_formation"
    SET_ROLE = "set_role"
    SET_TEAM = "set_team"
    RESET_WORKING = "reset_working"
    GET_WORKING = "get_working"
    SAVE = "save"
    SAVE_AS = "save_as"
    RENAME_LOADED = "rename_loaded"
    DELETE_LOADED = "delete_loaded"
    DUPLICATE_LOADED = "duplicate_loaded"
    LIST_SAVED = "list_saved"
    PREVIEW_LOAD = "preview_load"
    LOAD_SAVED = "load_saved"


class SortOrder(str, Enum):
    UPDATED_DESC = "updated-desc"
    UPDATED_ASC = "updated-asc"
    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"


@dataclass(slots=True)
class Player:
    player_id: str
    name: str
    jersey: int
    primary_pos: str | None = None
    secondary_pos: list[str] = field(default_factory=list)
    foot: str | None = None
    status: PlayerStatus = PlayerStatus.AVAILABLE


@dataclass(slots=True)
class Team:
    team_id: str
    name: str
    players: list[Player] = field(default_factory=list)

    def roster_ids(self) -> list[str]:
        return [p.player_id for p in self.players]


@dataclass(slots=True, frozen=True)
class FormationSlot:
    slot_id: str
    slot_code: str


@dataclass(slots=True)
class Formation:
    code: str
    name: str
    slots: list[FormationSlot] = field(default_factory=list)

    def slot_codes(self) -> list[str]:
        return [s.slot_code for s in self.slots]


@dataclass(slots=True)
class Lineup:
    team_id: str
    formation_code: str
    on_field: dict[str, str | None]
    bench_slots: list[str | None] = field(default_factory=lambda: [None] * BENCH_SIZE)
    roles: dict[Role, str] = field(default_factory=dict)

    def copy(self) -> Lineup:
        return Lineup(
            team_id=self.team_id,
            formation_code=self.formation_code,
            on_field=dict(self.on_field),
            bench_slots=list(self.bench_slots),
            roles=dict(self.roles),
        )


@dataclass(slots=True)
class FormationRef:
    code: str
    name: str


@dataclass(slots=True)
class Assignments:
    on_field: dict[str, str | None]
    bench: list[str]


@dataclass(slots=True)
class Snapshot:
    formation: FormationRef
    assignments: Assignments
    team_id: str | None
    team_name: str | None


@dataclass(slots=True)
class SavedLineup:
    id: str
    name: str
    formation: FormationRef
    assignments: Assignments
    team_id: str | None
    team_name: str | None
    roles: dict[Role, str] = field(default_factory=dict)
    notes: str | None = None
    updated_at: int = 0


@dataclass(slots=True)
class LineupDiff:
    team_changed: bool
    current_team_name: str | None
    saved_team_name: str | None
    formation_changed: bool
    current_formation_name: str
    saved_formation_name: str
    missing_players: list[str] = field(default_factory=list)

    @property
    def has_differences(self) -> bool:
        return self.team_changed or self.formation_changed or bool(self.missing_players)


@dataclass(slots=True)
class LoadOptions:
    switch_team: bool = False
    switch_formation: bool = False
    auto_fill_bench: bool = False


@dataclass(slots=True)
class ReconcileReport:
    saved_id: str
    applied_slots: list[str] = field(default_factory=list)
    skipped_slots: list[str] = field(default_factory=list)
    missing_players: list[str] = field(default_factory=list)
    bench_applied: int = 0
    auto_filled: list[str] = field(default_factory=list)
    switched_team_id: str | None = None
    started_formation: str | None = None


@dataclass(slots=True)
class SaveOutcome:
    ok: bool
    storage_full: bool = False
    message: str = ""


@dataclass(slots=True)
class ActionRequest:
    request_id: str
    action_type: ActionType | str
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ActionResult:
    request_id: str
    success: bool
    message: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ValidationIssue:
    code: str
    severity: str
    field_path: str
    entity_id: str
    message: str


class FormationCatalog(Protocol):
    def resolve(self, code: str) -> Formation | None: ...

    def list(self) -> list[Formation]: ...


class PersistenceGateway(Protocol):
    def load(self, key: str) -> Any | None: ...

    def save(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...
