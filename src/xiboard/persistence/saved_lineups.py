from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from xiboard.contracts import Assignments, FormationRef, PersistenceGateway, Role, SavedLineup, Snapshot, SortOrder
from xiboard.core.errors import SavedLineupNotFoundError
from xiboard.core.ids import make_id, now_millis

logger = logging.getLogger(__name__)

ROLE_VALUES = {role.value for role in Role}


def saved_lineup_to_record(saved: SavedLineup) -> dict[str, Any]:
    return {
        "id": saved.id,
        "name": saved.name,
        "formation": {"code": saved.formation.code, "name": saved.formation.name},
        "assignments": {
            "onField": dict(saved.assignments.on_field),
            "bench": list(saved.assignments.bench),
        },
        "teamId": saved.team_id,
        "teamName": saved.team_name,
        "roles": {Role(role).value: pid for role, pid in saved.roles.items() if pid},
        "notes": saved.notes,
        "updatedAt": saved.updated_at,
    }


def saved_lineup_from_record(raw: Mapping[str, Any]) -> SavedLineup:
    """Inverse of ``saved_lineup_to_record``; raises ``ValueError`` on malformed entries."""
    formation = raw.get("formation")
    assignments = raw.get("assignments")
    if not isinstance(raw.get("id"), str) or not isinstance(formation, Mapping) or not isinstance(assignments, Mapping):
        raise ValueError("saved lineup record needs id, formation and assignments")
    on_field = assignments.get("onField") or {}
    bench = assignments.get("bench") or []
    if not isinstance(on_field, Mapping) or not isinstance(bench, list):
        raise ValueError(f"saved lineup {raw['id']} has malformed assignments")
    raw_roles = raw.get("roles") or {}
    roles = {Role(k): v for k, v in raw_roles.items() if k in ROLE_VALUES and isinstance(v, str) and v}
    return SavedLineup(
        id=raw["id"],
        name=str(raw.get("name") or ""),
        formation=FormationRef(code=str(formation.get("code") or ""), name=str(formation.get("name") or "")),
        assignments=Assignments(
            on_field={str(k): (v if isinstance(v, str) and v else None) for k, v in on_field.items()},
            bench=[pid for pid in bench if isinstance(pid, str) and pid],
        ),
        team_id=raw.get("teamId") or None,
        team_name=raw.get("teamName") or None,
        roles=roles,
        notes=raw.get("notes") or None,
        updated_at=int(raw.get("updatedAt") or 0),
    )


class SavedLineupLibrary:
    """The named saved-lineup collection, kept as one list under one key."""

    def __init__(self, gateway: PersistenceGateway, key: str) -> None:
        self.gateway = gateway
        self.key = key

    def list(self) -> list[SavedLineup]:
        raw = self.gateway.load(self.key)
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("saved lineup library under %s is not a list; ignoring it", self.key)
            return []
        lineups: list[SavedLineup] = []
        for entry in raw:
            try:
                lineups.append(saved_lineup_from_record(entry))
            except (AttributeError, TypeError, ValueError):
                logger.warning("skipping malformed saved lineup entry: %r", entry)
        return lineups

    def get(self, saved_id: str) -> SavedLineup | None:
        return next((s for s in self.list() if s.id == saved_id), None)

    def require(self, saved_id: str) -> SavedLineup:
        saved = self.get(saved_id)
        if saved is None:
            raise SavedLineupNotFoundError(saved_id)
        return saved

    def save_new(
        self,
        name: str,
        snapshot: Snapshot,
        roles: Mapping[Role, str] | None = None,
        notes: str | None = None,
    ) -> SavedLineup:
        saved = SavedLineup(
            id=make_id("lineup"),
            name=_clean_name(name),
            formation=FormationRef(code=snapshot.formation.code, name=snapshot.formation.name),
            assignments=Assignments(on_field=dict(snapshot.assignments.on_field), bench=list(snapshot.assignments.bench)),
            team_id=snapshot.team_id,
            team_name=snapshot.team_name,
            roles=dict(roles or {}),
            notes=notes or None,
            updated_at=now_millis(),
        )
        self._write([*self.list(), saved])
        logger.info("saved new lineup %s (%s)", saved.id, saved.name)
        return saved

    def update(self, saved: SavedLineup) -> SavedLineup:
        lineups = self.list()
        for index, existing in enumerate(lineups):
            if existing.id == saved.id:
                updated = replace(saved, name=_clean_name(saved.name), updated_at=now_millis())
                lineups[index] = updated
                self._write(lineups)
                return updated
        raise SavedLineupNotFoundError(saved.id)

    def rename(self, saved_id: str, name: str) -> SavedLineup:
        return self.update(replace(self.require(saved_id), name=name))

    def remove(self, saved_id: str) -> None:
        lineups = self.list()
        remaining = [s for s in lineups if s.id != saved_id]
        if len(remaining) == len(lineups):
            raise SavedLineupNotFoundError(saved_id)
        self._write(remaining)

    def duplicate(self, saved_id: str) -> SavedLineup:
        source = self.require(saved_id)
        copy = replace(
            source,
            id=make_id("lineup"),
            name=f"{source.name} (copy)",
            assignments=Assignments(on_field=dict(source.assignments.on_field), bench=list(source.assignments.bench)),
            roles=dict(source.roles),
            updated_at=now_millis(),
        )
        self._write([*self.list(), copy])
        return copy

    def query(
        self,
        search: str = "",
        team_name: str | None = None,
        formation_name: str | None = None,
        sort: SortOrder | str = SortOrder.UPDATED_DESC,
    ) -> list[SavedLineup]:
        result = self.list()
        needle = search.strip().lower()
        if needle:
            result = [
                s
                for s in result
                if needle in s.name.lower()
                or needle in (s.team_name or "").lower()
                or needle in s.formation.name.lower()
                or needle in (s.notes or "").lower()
            ]
        if team_name:
            result = [s for s in result if s.team_name == team_name]
        if formation_name:
            result = [s for s in result if s.formation.name == formation_name]

        order = SortOrder(sort)
        if order == SortOrder.UPDATED_DESC:
            result.sort(key=lambda s: s.updated_at, reverse=True)
        elif order == SortOrder.UPDATED_ASC:
            result.sort(key=lambda s: s.updated_at)
        elif order == SortOrder.NAME_ASC:
            result.sort(key=lambda s: s.name.casefold())
        else:
            result.sort(key=lambda s: s.name.casefold(), reverse=True)
        return result

    def unique_team_names(self) -> list[str]:
        return sorted({s.team_name for s in self.list() if s.team_name})

    def unique_formation_names(self) -> list[str]:
        return sorted({s.formation.name for s in self.list() if s.formation.name})

    def _write(self, lineups: list[SavedLineup]) -> None:
        self.gateway.save(self.key, [saved_lineup_to_record(s) for s in lineups])


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValueError("lineup name must not be empty")
    return cleaned
