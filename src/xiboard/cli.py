from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from xiboard.contracts import ActionRequest, ActionResult, ActionType, SortOrder
from xiboard.core import RuntimePaths, configure_logging, load_settings, make_id
from xiboard.session import LineupSession, open_session


def _request(session: LineupSession, action: ActionType, payload: dict[str, Any] | None = None) -> ActionResult:
    return session.handle_action(ActionRequest(make_id("req"), action, payload or {}))


def _print_lineup(session: LineupSession) -> None:
    lineup = session.store.lineup
    if lineup is None:
        print("No working lineup.")
        return
    team = session.current_team
    print(f"Team: {team.name if team else lineup.team_id}  Formation: {lineup.formation_code}")
    for slot_code, player_id in lineup.on_field.items():
        print(f"  {slot_code:<5} {player_id or '-'}")
    print("Bench: " + ", ".join(p or "-" for p in lineup.bench_slots))
    if lineup.roles:
        print("Roles: " + ", ".join(f"{role.value}={pid}" for role, pid in lineup.roles.items()))
    if session.is_dirty:
        print("(unsaved changes)")


def _report(result: ActionResult) -> int:
    print(result.message)
    if result.data.get("storage_full"):
        print("Warning: storage is full; changes are not being persisted.")
    return 0 if result.success else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="xiboard: lineup builder and saved-lineup library")
    parser.add_argument("--root", type=Path, default=Path.cwd(), help="runtime root directory")
    parser.add_argument("--log-level", default=None, help="override the configured log level")
    parser.add_argument("--json-logs", action="store_true", help="emit logs as single-line JSON")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("formations", help="list known formations")
    sub.add_parser("show", help="print the working lineup")

    new = sub.add_parser("new", help="start a lineup for a team")
    new.add_argument("--team", default=None)
    new.add_argument("--formation", default=None)

    place = sub.add_parser("place", help="place a player in a field slot")
    place.add_argument("slot_code")
    place.add_argument("player_id")

    bench = sub.add_parser("bench", help="put a player on a bench slot")
    bench.add_argument("index", type=int)
    bench.add_argument("player_id")

    formation = sub.add_parser("formation", help="switch the working formation")
    formation.add_argument("formation_code")

    save = sub.add_parser("save", help="save the working lineup")
    save.add_argument("--name", default=None, help="save as a new named lineup")
    save.add_argument("--notes", default=None)

    saved = sub.add_parser("saved", help="list saved lineups")
    saved.add_argument("--search", default="")
    saved.add_argument("--sort", choices=[s.value for s in SortOrder], default=SortOrder.UPDATED_DESC.value)

    load = sub.add_parser("load", help="apply a saved lineup")
    load.add_argument("saved_id")
    load.add_argument("--switch-team", action="store_true")
    load.add_argument("--switch-formation", action="store_true")
    load.add_argument("--auto-fill-bench", action="store_true")

    sub.add_parser("export", help="export saved lineups to CSV and Parquet")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings(RuntimePaths(args.root).settings_path)
    configure_logging(args.log_level or settings.log_level, json_format=args.json_logs)
    session = open_session(args.root, settings=settings)

    if args.command == "formations":
        for f in session.catalog.list():
            print(f"{f.code:<8} {f.name:<16} {' '.join(f.slot_codes())}")
        return 0

    if args.command == "show":
        _print_lineup(session)
        return 0

    if args.command == "new":
        if args.team:
            result = _request(session, ActionType.SET_TEAM, {"team_id": args.team})
            if not result.success:
                return _report(result)
        code = _report(_request(session, ActionType.NEW_LINEUP, {"formation_code": args.formation}))
        _print_lineup(session)
        return code

    if args.command == "place":
        return _report(_request(session, ActionType.PLACE_PLAYER, {"slot_code": args.slot_code, "player_id": args.player_id}))

    if args.command == "bench":
        return _report(_request(session, ActionType.ASSIGN_TO_BENCH, {"index": args.index, "player_id": args.player_id}))

    if args.command == "formation":
        return _report(_request(session, ActionType.SET_FORMATION, {"formation_code": args.formation_code}))

    if args.command == "save":
        if args.name:
            return _report(_request(session, ActionType.SAVE_AS, {"name": args.name, "notes": args.notes}))
        return _report(_request(session, ActionType.SAVE))

    if args.command == "saved":
        result = _request(session, ActionType.LIST_SAVED, {"search": args.search, "sort": args.sort})
        for row in result.data.get("lineups", []):
            print(f"- {row['id']}: {row['name']} [{row['teamName'] or '-'} / {row['formation']['name']}]")
        return 0 if result.success else 1

    if args.command == "load":
        preview = _request(session, ActionType.PREVIEW_LOAD, {"saved_id": args.saved_id})
        if not preview.success:
            return _report(preview)
        if preview.data.get("has_differences"):
            print(
                f"Differences: team_changed={preview.data['team_changed']} "
                f"formation_changed={preview.data['formation_changed']} "
                f"missing_players={preview.data['missing_players']}"
            )
        code = _report(
            _request(
                session,
                ActionType.LOAD_SAVED,
                {
                    "saved_id": args.saved_id,
                    "switch_team": args.switch_team,
                    "switch_formation": args.switch_formation,
                    "auto_fill_bench": args.auto_fill_bench,
                },
            )
        )
        _print_lineup(session)
        return code

    if args.command == "export":
        try:
            outputs = session.export()
        except RuntimeError as exc:
            print(f"Export unavailable: {exc}")
            return 1
        print("Exported datasets:")
        for p in outputs:
            print(f"- {p}")
        return 0

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
