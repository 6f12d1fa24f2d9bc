from .gateway import InMemoryGateway, SqliteGateway, decode_record, encode_record, record_size
from .migrations import MIGRATIONS, MigrationRunner
from .saved_lineups import SavedLineupLibrary, saved_lineup_from_record, saved_lineup_to_record
from .working import WORKING_SCHEMA_VERSION, WorkingLineupPersistence, lineup_to_record

__all__ = [
    "InMemoryGateway",
    "MIGRATIONS",
    "MigrationRunner",
    "SavedLineupLibrary",
    "SqliteGateway",
    "WORKING_SCHEMA_VERSION",
    "WorkingLineupPersistence",
    "decode_record",
    "encode_record",
    "lineup_to_record",
    "record_size",
    "saved_lineup_from_record",
    "saved_lineup_to_record",
]
