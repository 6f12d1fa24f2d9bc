from __future__ import annotations

from xiboard.contracts import BENCH_SIZE, ValidationIssue


class LineupError(ValueError):
    def __init__(self, issues: list[ValidationIssue]) -> None:
        message = "; ".join(f"{i.code}:{i.entity_id}:{i.message}" for i in issues)
        super().__init__(message)
        self.issues = issues

    @property
    def codes(self) -> list[str]:
        return [i.code for i in self.issues]


class InvalidSlotError(LineupError):
    def __init__(self, slot_code: str, formation_code: str) -> None:
        super().__init__(
            [
                ValidationIssue(
                    code="INVALID_SLOT",
                    severity="blocking",
                    field_path=f"on_field.{slot_code}",
                    entity_id=formation_code,
                    message=f"slot '{slot_code}' is not part of formation '{formation_code}'",
                )
            ]
        )
        self.slot_code = slot_code


class InvalidIndexError(LineupError):
    def __init__(self, index: object) -> None:
        super().__init__(
            [
                ValidationIssue(
                    code="INVALID_BENCH_INDEX",
                    severity="blocking",
                    field_path=f"bench_slots[{index}]",
                    entity_id=str(index),
                    message=f"bench index must be in [0, {BENCH_SIZE})",
                )
            ]
        )
        self.index = index


class BenchOverflowError(LineupError):
    def __init__(self, player_id: str, operation: str) -> None:
        super().__init__(
            [
                ValidationIssue(
                    code="BENCH_OVERFLOW",
                    severity="blocking",
                    field_path="bench_slots",
                    entity_id=player_id,
                    message=f"{operation}: no free bench slot for displaced player '{player_id}'",
                )
            ]
        )
        self.player_id = player_id


class StorageFullError(RuntimeError):
    code = "STORAGE_FULL"

    def __init__(self, key: str, detail: str = "") -> None:
        message = f"storage is full; could not save '{key}'"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.key = key


class PersistenceError(RuntimeError):
    code = "PERSISTENCE_FAILURE"

    def __init__(self, key: str, detail: str) -> None:
        super().__init__(f"persistence failure for '{key}': {detail}")
        self.key = key


class CatalogError(LineupError):
    def __init__(self, source: str, detail: str) -> None:
        super().__init__(
            [
                ValidationIssue(
                    code="INVALID_FORMATION_CATALOG",
                    severity="blocking",
                    field_path=source,
                    entity_id="formation",
                    message=detail,
                )
            ]
        )


class SavedLineupNotFoundError(LineupError):
    def __init__(self, saved_id: str) -> None:
        super().__init__(
            [
                ValidationIssue(
                    code="SAVED_LINEUP_NOT_FOUND",
                    severity="blocking",
                    field_path="saved_lineups",
                    entity_id=saved_id,
                    message=f"no saved lineup with id '{saved_id}'",
                )
            ]
        )
        self.saved_id = saved_id
