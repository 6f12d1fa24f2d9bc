from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

ENV_PREFIX = "XIBOARD_"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class RuntimePaths:
    def __init__(self, root: Path) -> None:
        self.root = root

    @property
    def sqlite_path(self) -> Path:
        return self.root / "data" / "xiboard.sqlite3"

    @property
    def export_dir(self) -> Path:
        return self.root / "exports"

    @property
    def settings_path(self) -> Path:
        return self.root / "xiboard.json"


class EngineSettings(BaseSettings):
    """Storage keys, quota and log level; ``XIBOARD_*`` variables override everything else."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        extra="forbid",
        frozen=True,
    )

    working_key: str = Field(default="xiboard_lineup_working_v1", min_length=1)
    library_key: str = Field(default="xiboard_saved_lineups_v1", min_length=1)
    storage_quota_bytes: Optional[int] = 5 * 1024 * 1024
    log_level: str = "INFO"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Earlier sources win: environment over file values passed as kwargs.
        return env_settings, init_settings

    @field_validator("storage_quota_bytes", mode="before")
    @classmethod
    def parse_quota(cls, v):
        if isinstance(v, str) and v.strip().lower() in {"", "none", "null"}:
            return None
        return v

    @field_validator("storage_quota_bytes")
    @classmethod
    def validate_quota(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v <= 0:
            raise ValueError("storage_quota_bytes must be positive or null")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of: {', '.join(LOG_LEVELS)}")
        return v_upper

    @model_validator(mode="after")
    def keys_differ(self) -> "EngineSettings":
        if self.working_key == self.library_key:
            raise ValueError("working_key and library_key must differ")
        return self


def load_settings(path: Path | None = None) -> EngineSettings:
    """Defaults, then the JSON file at ``path`` (if it exists), then XIBOARD_* variables."""
    overrides: dict[str, Any] = {}
    if path is not None and path.exists():
        raw = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError(f"settings file {path} must contain a JSON object")
        overrides.update(raw)
    return EngineSettings(**overrides)
