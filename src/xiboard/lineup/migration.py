"""Recovery of a working lineup from any previously persisted record shape.

Accepted shapes, oldest first:

* ``{"teamId", "formationCode", "onField", "bench": [...]}`` with a dense bench
  list that could grow without bound;
* the same with ``benchSlots`` of the wrong length;
* the current shape, ``benchSlots`` holding exactly eight entries.

``migrate_working_lineup`` never raises. ``None`` means nothing is recoverable
and the session should start with no working lineup.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from xiboard.contracts import BENCH_SIZE, FormationCatalog, Lineup, Role
from xiboard.lineup.bench import dense_to_slots, empty_bench, fit_slots

logger = logging.getLogger(__name__)


def migrate_working_lineup(raw: Any, catalog: FormationCatalog) -> Lineup | None:
    try:
        return _migrate(raw, catalog)
    except Exception:
        # A broken catalog or exotic payload must not stop the session from starting.
        logger.warning("working lineup migration abandoned", exc_info=True)
        return None


def _migrate(raw: Any, catalog: FormationCatalog) -> Lineup | None:
    if not isinstance(raw, Mapping):
        logger.info("no working lineup record to migrate")
        return None
    team_id = raw.get("teamId")
    if not isinstance(team_id, str) or not team_id:
        logger.info("working lineup record has no teamId; starting empty")
        return None

    bench_slots = _migrate_bench(raw)

    formation_code = raw.get("formationCode")
    if not isinstance(formation_code, str) or not formation_code:
        formations = catalog.list()
        formation_code = formations[0].code if formations else ""
        logger.debug("no formationCode stored; defaulting to %r", formation_code)

    raw_on_field = raw.get("onField")
    well_formed = isinstance(raw_on_field, Mapping)
    formation = catalog.resolve(formation_code) if formation_code else None

    if formation is not None:
        on_field: dict[str, str | None] = {}
        for slot_code in formation.slot_codes():
            occupant = raw_on_field.get(slot_code) if well_formed else None
            on_field[slot_code] = occupant if isinstance(occupant, str) and occupant else None
        if well_formed:
            dropped = sorted(code for code, pid in raw_on_field.items() if pid and code not in on_field)
            if dropped:
                logger.info("dropping occupants of slots %s not in formation %s", dropped, formation_code)
    elif well_formed:
        logger.info("formation %r not in catalog; keeping stored onField verbatim", formation_code)
        on_field = {str(code): (pid if isinstance(pid, str) and pid else None) for code, pid in raw_on_field.items()}
    else:
        on_field = {}
        formations = catalog.list()
        if formations:
            fallback = formations[0]
            formation_code = fallback.code
            on_field = {code: None for code in fallback.slot_codes()}
            logger.info("no usable formation or onField; falling back to %s", formation_code)

    on_field, bench_slots = _dedupe(on_field, bench_slots)
    return Lineup(
        team_id=team_id,
        formation_code=formation_code,
        on_field=on_field,
        bench_slots=bench_slots,
        roles=_migrate_roles(raw.get("roles")),
    )


def _migrate_bench(raw: Mapping[str, Any]) -> list[str | None]:
    bench_slots = raw.get("benchSlots")
    legacy = raw.get("bench")
    if isinstance(bench_slots, list) and len(bench_slots) == BENCH_SIZE:
        return fit_slots(bench_slots)
    if isinstance(legacy, list) and legacy:
        if len(legacy) > BENCH_SIZE:
            logger.info("legacy bench of %d players truncated to %d", len(legacy), BENCH_SIZE)
        return dense_to_slots(legacy)
    if isinstance(bench_slots, list):
        return fit_slots(bench_slots)
    return empty_bench()


def _migrate_roles(raw_roles: Any) -> dict[Role, str]:
    if not isinstance(raw_roles, Mapping):
        return {}
    roles: dict[Role, str] = {}
    for role in Role:
        value = raw_roles.get(role.value)
        if isinstance(value, str) and value:
            roles[role] = value
    return roles


def _dedupe(on_field: dict[str, str | None], bench_slots: list[str | None]) -> tuple[dict[str, str | None], list[str | None]]:
    seen: set[str] = set()
    cleaned_field: dict[str, str | None] = {}
    for slot_code, occupant in on_field.items():
        if occupant is not None and occupant in seen:
            logger.debug("duplicate placement of %s in %s cleared", occupant, slot_code)
            occupant = None
        if occupant is not None:
            seen.add(occupant)
        cleaned_field[slot_code] = occupant
    cleaned_bench: list[str | None] = []
    for occupant in bench_slots:
        if occupant is not None and occupant in seen:
            occupant = None
        if occupant is not None:
            seen.add(occupant)
        cleaned_bench.append(occupant)
    return cleaned_field, cleaned_bench
