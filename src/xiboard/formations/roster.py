from __future__ import annotations

from pathlib import Path
from typing import Any

from xiboard.contracts import Player, PlayerStatus, Team
from xiboard.core.errors import CatalogError
from xiboard.formations.catalog import load_bundle


def player_from_dict(raw: dict[str, Any]) -> Player:
    try:
        return Player(
            player_id=str(raw["player_id"]),
            name=str(raw["name"]),
            jersey=int(raw["jersey"]),
            primary_pos=raw.get("primary_pos"),
            secondary_pos=list(raw.get("secondary_pos", [])),
            foot=raw.get("foot"),
            status=PlayerStatus(raw.get("status", PlayerStatus.AVAILABLE.value)),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise CatalogError("teams.players", f"invalid player entry {raw!r}: {exc}") from exc


def load_teams(path: Path | None = None) -> list[Team]:
    """Teams and rosters from a team bundle; the packaged demo league by default."""
    teams: list[Team] = []
    for raw in load_bundle("teams.json", "team", path):
        if not raw.get("team_id"):
            raise CatalogError("teams", "team entry without team_id")
        teams.append(
            Team(
                team_id=str(raw["team_id"]),
                name=str(raw.get("name") or raw["team_id"]),
                players=[player_from_dict(p) for p in raw.get("players", [])],
            )
        )
    return teams
