from .bench import dense_to_slots, empty_bench, first_free_index, fit_slots, slots_to_dense
from .migration import migrate_working_lineup
from .reconcile import LineupReconciler
from .serializer import compute_diff, is_dirty, saved_player_ids, saved_to_snapshot, serialize_lineup, snapshots_equal
from .store import AssignmentStore, LineupListener

__all__ = [
    "AssignmentStore",
    "LineupListener",
    "LineupReconciler",
    "compute_diff",
    "dense_to_slots",
    "empty_bench",
    "first_free_index",
    "fit_slots",
    "is_dirty",
    "migrate_working_lineup",
    "saved_player_ids",
    "saved_to_snapshot",
    "serialize_lineup",
    "slots_to_dense",
    "snapshots_equal",
]
