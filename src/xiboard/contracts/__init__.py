from .types import (
    BENCH_SIZE,
    ActionRequest,
    ActionResult,
    ActionType,
    Assignments,
    Formation,
    FormationCatalog,
    FormationRef,
    FormationSlot,
    Lineup,
    LineupDiff,
    LoadOptions,
    PersistenceGateway,
    Player,
    PlayerStatus,
    ReconcileReport,
    Role,
    SavedLineup,
    SaveOutcome,
    Snapshot,
    SortOrder,
    Team,
    ValidationIssue,
)

__all__ = [
    "BENCH_SIZE",
    "ActionRequest",
    "ActionResult",
    "ActionType",
    "Assignments",
    "Formation",
    "FormationCatalog",
    "FormationRef",
    "FormationSlot",
    "Lineup",
    "LineupDiff",
    "LoadOptions",
    "PersistenceGateway",
    "Player",
    "PlayerStatus",
    "ReconcileReport",
    "Role",
    "SavedLineup",
    "SaveOutcome",
    "Snapshot",
    "SortOrder",
    "Team",
    "ValidationIssue",
]
