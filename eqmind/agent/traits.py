"""Trait aggregation: turn accumulated axis signals into a four-letter code."""

import math
from datetime import datetime, timedelta

from loguru import logger

from eqmind.memory.store import RecordStore
from eqmind.memory.types import AXES, TraitSnapshot

# (letter when sum >= 0, letter when sum < 0) per axis
AXIS_LETTERS: tuple[tuple[str, str], ...] = (("I", "E"), ("N", "S"), ("F", "T"), ("P", "J"))

AXIS_NAMES: dict[str, str] = {
    "I": "Introverted", "E": "Extraverted",
    "N": "Intuitive", "S": "Sensing",
    "F": "Feeling", "T": "Thinking",
    "P": "Perceiving", "J": "Judging",
}


def category_code(totals: tuple[int, int, int, int]) -> str:
    """Sign of each axis sum picks its letter; zero counts as non-negative."""
    return "".join(pos if total >= 0 else neg for total, (pos, neg) in zip(totals, AXIS_LETTERS))


def confidence(total_signals: int, full_confidence_signals: int = 50) -> int:
    """min(100, round(total / full * 100)), rounding halves up."""
    if total_signals <= 0:
        return 0
    return min(100, math.floor(total_signals / full_confidence_signals * 100 + 0.5))


def describe(snapshot: TraitSnapshot) -> list[str]:
    """One line per axis, e.g. ``E/I: 12 (Introverted)``."""
    return [
        f"{axis}: {total} ({AXIS_NAMES[letter]})"
        for axis, total, letter in zip(AXES, snapshot.totals, snapshot.category_code)
    ]


class TraitAggregator:
    """
    Derives the emergent trait from the signal log.

    Reads never recompute: ``current`` returns the latest persisted
    snapshot, and ``recalculate`` is the only thing that writes one.
    """

    def __init__(self, store: RecordStore, config=None):
        self.store = store
        self.full_confidence_signals = getattr(config, "full_confidence_signals", 50)
        self.window_days = getattr(config, "window_days", None)

    def recalculate(self, window_days: int | None = None) -> TraitSnapshot | None:
        """
        Sum every signal (or only those inside the window) and persist a snapshot.

        Returns:
            The new snapshot, or None if there are no signals to aggregate.
        """
        window_days = window_days if window_days is not None else self.window_days
        since = datetime.now() - timedelta(days=window_days) if window_days else None

        totals, count = self.store.signal_totals(since=since)
        if count == 0:
            logger.info("No axis signals recorded yet; trait not calculated")
            return None

        snapshot = TraitSnapshot(
            category_code=category_code(totals),
            confidence=confidence(count, self.full_confidence_signals),
            totals=totals,
            total_signals=count,
        )
        snapshot = self.store.insert_snapshot(snapshot)
        logger.info(f"Emergent type {snapshot.category_code} ({snapshot.confidence}% from {count} signals)")
        return snapshot

    def current(self) -> TraitSnapshot | None:
        return self.store.latest_snapshot()

    def history(self, limit: int = 10) -> list[TraitSnapshot]:
        return self.store.list_snapshots(limit=limit)
