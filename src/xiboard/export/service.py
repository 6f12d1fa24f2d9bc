from __future__ import annotations

from pathlib import Path
from typing import Any

from xiboard.contracts import Role
from xiboard.persistence import SavedLineupLibrary

try:
    import duckdb
except ModuleNotFoundError:  # pragma: no cover - exercised via runtime environments without duckdb
    duckdb = None  # type: ignore[assignment]


class ExportService:
    def __init__(self, library: SavedLineupLibrary) -> None:
        self.library = library

    def export_saved_lineups(self, output_dir: Path) -> list[Path]:
        if duckdb is None:
            raise RuntimeError("duckdb is required for exports")
        output_dir.mkdir(parents=True, exist_ok=True)
        lineups = self.library.list()
        outputs: list[Path] = []
        with duckdb.connect() as conn:
            conn.execute(
                """
                CREATE TABLE saved_lineups (
                    lineup_id VARCHAR,
                    name VARCHAR,
                    team_id VARCHAR,
                    team_name VARCHAR,
                    formation_code VARCHAR,
                    formation_name VARCHAR,
                    on_field_count INTEGER,
                    bench_count INTEGER,
                    captain_id VARCHAR,
                    notes VARCHAR,
                    updated_at BIGINT
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE lineup_assignments (
                    lineup_id VARCHAR,
                    location VARCHAR,
                    slot_code VARCHAR,
                    bench_index INTEGER,
                    player_id VARCHAR
                )
                """
            )
            lineup_rows: list[tuple[Any, ...]] = []
            assignment_rows: list[tuple[Any, ...]] = []
            for s in lineups:
                placed = [(code, pid) for code, pid in s.assignments.on_field.items() if pid]
                lineup_rows.append(
                    (
                        s.id,
                        s.name,
                        s.team_id,
                        s.team_name,
                        s.formation.code,
                        s.formation.name,
                        len(placed),
                        len(s.assignments.bench),
                        s.roles.get(Role.CAPTAIN),
                        s.notes,
                        s.updated_at,
                    )
                )
                assignment_rows.extend((s.id, "field", code, None, pid) for code, pid in placed)
                assignment_rows.extend((s.id, "bench", None, i, pid) for i, pid in enumerate(s.assignments.bench))
            if lineup_rows:
                conn.executemany("INSERT INTO saved_lineups VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)", lineup_rows)
            if assignment_rows:
                conn.executemany("INSERT INTO lineup_assignments VALUES (?, ?, ?, ?, ?)", assignment_rows)
            outputs.extend(self._export_table(conn, "saved_lineups", output_dir / "saved_lineups"))
            outputs.extend(self._export_table(conn, "lineup_assignments", output_dir / "lineup_assignments"))
        return outputs

    def _export_table(self, conn: Any, table: str, stem: Path) -> list[Path]:
        csv_path = stem.with_suffix(".csv")
        parquet_path = stem.with_suffix(".parquet")
        conn.execute(f"COPY (SELECT * FROM {table}) TO '{csv_path.as_posix()}' (HEADER, DELIMITER ',')")
        conn.execute(f"COPY (SELECT * FROM {table}) TO '{parquet_path.as_posix()}' (FORMAT PARQUET)")
        return [csv_path, parquet_path]
