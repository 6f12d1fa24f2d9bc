from .config import EngineSettings, RuntimePaths, load_settings
from .errors import (
    BenchOverflowError,
    CatalogError,
    InvalidIndexError,
    InvalidSlotError,
    LineupError,
    PersistenceError,
    SavedLineupNotFoundError,
    StorageFullError,
)
from .ids import make_id, now_millis, now_utc
from .log import JsonFormatter, configure_logging

__all__ = [
    "BenchOverflowError",
    "CatalogError",
    "EngineSettings",
    "InvalidIndexError",
    "InvalidSlotError",
    "JsonFormatter",
    "LineupError",
    "PersistenceError",
    "RuntimePaths",
    "SavedLineupNotFoundError",
    "StorageFullError",
    "configure_logging",
    "load_settings",
    "make_id",
    "now_millis",
    "now_utc",
]
