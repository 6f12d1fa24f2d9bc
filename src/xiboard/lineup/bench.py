"""Conversion between the live positional bench and its dense wire format.

The working lineup always carries exactly ``BENCH_SIZE`` positional slots.
Saved lineups and snapshots carry the bench as a dense, order-preserving list
of player ids. Nothing outside this module should build either shape by hand.
"""
from __future__ import annotations

from typing import Any, Iterable

from xiboard.contracts import BENCH_SIZE


def empty_bench() -> list[str | None]:
    return [None] * BENCH_SIZE


def slots_to_dense(bench_slots: Iterable[str | None]) -> list[str]:
    return [player_id for player_id in bench_slots if player_id]


def dense_to_slots(bench: Iterable[Any]) -> list[str | None]:
    """Pack the first ``BENCH_SIZE`` entries of a dense list into positional slots."""
    slots = empty_bench()
    for index, player_id in enumerate(list(bench)[:BENCH_SIZE]):
        slots[index] = _player_or_none(player_id)
    return slots


def fit_slots(bench_slots: Iterable[Any]) -> list[str | None]:
    """Truncate or null-pad a positional array to ``BENCH_SIZE``, keeping indices."""
    fitted: list[str | None] = [_player_or_none(p) for p in list(bench_slots)[:BENCH_SIZE]]
    fitted.extend([None] * (BENCH_SIZE - len(fitted)))
    return fitted


def first_free_index(bench_slots: list[str | None]) -> int | None:
    for index, player_id in enumerate(bench_slots):
        if player_id is None:
            return index
    return None


def _player_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None
