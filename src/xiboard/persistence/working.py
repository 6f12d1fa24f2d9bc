from __future__ import annotations

import logging
from typing import Any, Callable

from xiboard.contracts import FormationCatalog, Lineup, PersistenceGateway, SaveOutcome
from xiboard.core.errors import PersistenceError, StorageFullError
from xiboard.lineup.migration import migrate_working_lineup
from xiboard.lineup.store import AssignmentStore

logger = logging.getLogger(__name__)

WORKING_SCHEMA_VERSION = 2


def lineup_to_record(lineup: Lineup) -> dict[str, Any]:
    return {
        "schemaVersion": WORKING_SCHEMA_VERSION,
        "teamId": lineup.team_id,
        "formationCode": lineup.formation_code,
        "onField": dict(lineup.on_field),
        "benchSlots": list(lineup.bench_slots),
        "roles": {role.value: pid for role, pid in lineup.roles.items() if pid},
    }


class WorkingLineupPersistence:
    """Keeps the working lineup record in step with an ``AssignmentStore``."""

    def __init__(self, gateway: PersistenceGateway, key: str, catalog: FormationCatalog) -> None:
        self.gateway = gateway
        self.key = key
        self.catalog = catalog
        self.last_outcome: SaveOutcome | None = None
        self._detach: Callable[[], None] | None = None

    def load_initial(self) -> Lineup | None:
        try:
            raw = self.gateway.load(self.key)
        except PersistenceError as exc:
            logger.warning("working lineup unreadable, starting empty: %s", exc)
            return None
        lineup = migrate_working_lineup(raw, self.catalog)
        if lineup is not None and raw != lineup_to_record(lineup):
            # Re-save so the next start reads the current shape.
            self.write(lineup)
        return lineup

    def write(self, lineup: Lineup | None) -> SaveOutcome:
        try:
            if lineup is None:
                self.gateway.remove(self.key)
            else:
                self.gateway.save(self.key, lineup_to_record(lineup))
            outcome = SaveOutcome(ok=True)
        except StorageFullError as exc:
            logger.warning("working lineup not saved: %s", exc)
            outcome = SaveOutcome(ok=False, storage_full=True, message=str(exc))
        except PersistenceError as exc:
            logger.error("working lineup not saved: %s", exc)
            outcome = SaveOutcome(ok=False, message=str(exc))
        self.last_outcome = outcome
        return outcome

    def attach(self, store: AssignmentStore) -> None:
        self.detach()
        self._detach = store.subscribe(self.write)

    def detach(self) -> None:
        if self._detach is not None:
            self._detach()
            self._detach = None
