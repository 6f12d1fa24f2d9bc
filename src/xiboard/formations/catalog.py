from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Any, Iterable

from xiboard.contracts import Formation, FormationSlot
from xiboard.core.errors import CatalogError

EXPECTED_SCHEMA_VERSION = "1.0"


def load_bundle(filename: str, expected_type: str, path: Path | None = None) -> list[dict[str, Any]]:
    """Read a ``{"manifest", "resources"}`` bundle from ``path`` or the packaged resources."""
    try:
        if path is not None:
            text = path.read_text(encoding="utf-8")
        else:
            text = (resources.files("xiboard.resources") / filename).read_text(encoding="utf-8")
        payload = json.loads(text)
    except (OSError, ValueError) as exc:
        raise CatalogError(filename, f"unreadable bundle: {exc}") from exc
    if not isinstance(payload, dict):
        raise CatalogError(filename, "bundle must be a JSON object")
    manifest = payload.get("manifest")
    items = payload.get("resources")
    if not isinstance(manifest, dict) or not isinstance(items, list):
        raise CatalogError(filename, "bundle must provide manifest and resources list")
    if manifest.get("resource_type") != expected_type:
        raise CatalogError(filename, f"expected resource_type '{expected_type}', got '{manifest.get('resource_type')}'")
    if manifest.get("schema_version") != EXPECTED_SCHEMA_VERSION:
        raise CatalogError(filename, f"unsupported schema_version '{manifest.get('schema_version')}'")
    return items


def formation_from_dict(raw: dict[str, Any]) -> Formation:
    code = raw.get("code")
    slot_map = raw.get("slot_map")
    if not isinstance(code, str) or not code or not isinstance(slot_map, list) or not slot_map:
        raise CatalogError(f"formations.{code}", "formation needs a code and a non-empty slot_map")
    slots = [FormationSlot(slot_id=str(s.get("slot_id") or f"{code}:{s.get('slot_code')}"), slot_code=str(s["slot_code"])) for s in slot_map]
    codes = [s.slot_code for s in slots]
    if len(set(codes)) != len(codes):
        raise CatalogError(f"formations.{code}", "slot codes must be unique within a formation")
    return Formation(code=code, name=str(raw.get("name") or code), slots=slots)


class InMemoryFormationCatalog:
    """Read-only lookup over formations in their declared order."""

    def __init__(self, formations: Iterable[Formation]) -> None:
        self._formations = list(formations)
        self._by_code = {f.code: f for f in self._formations}
        if len(self._by_code) != len(self._formations):
            raise CatalogError("formations", "duplicate formation codes")

    def resolve(self, code: str) -> Formation | None:
        return self._by_code.get(code)

    def list(self) -> list[Formation]:
        return list(self._formations)

    def codes(self) -> list[str]:
        return [f.code for f in self._formations]


class JsonFormationCatalog(InMemoryFormationCatalog):
    def __init__(self, path: Path | None = None) -> None:
        items = load_bundle("formations.json", "formation", path)
        super().__init__(formation_from_dict(item) for item in items)
        self.source = str(path) if path is not None else "xiboard.resources/formations.json"
