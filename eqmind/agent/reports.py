"""Read-only views over the record store: surface, landscape, consolidation, health."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from eqmind.agent.retrieval import shannon_entropy
from eqmind.memory.store import RecordStore
from eqmind.memory.types import MemoryRecord, Pillar, TraitSnapshot, Weight


@dataclass
class Landscape:
    days: int
    total: int
    pillar_counts: dict[Pillar, int] = field(default_factory=dict)
    top_labels: dict[str, int] = field(default_factory=dict)
    recent: list[MemoryRecord] = field(default_factory=list)


@dataclass
class Consolidation:
    days: int
    total: int
    label_counts: dict[str, int] = field(default_factory=dict)
    pillar_counts: dict[Pillar, int] = field(default_factory=dict)
    unprocessed: list[MemoryRecord] = field(default_factory=list)

    @property
    def dominant_label(self) -> str | None:
        return next(iter(self.label_counts), None)


@dataclass
class Health:
    total_records: int
    recent_records: int
    emotions: int
    signals: int
    shadows: int
    strength: dict[str, int] = field(default_factory=dict)
    trait: TraitSnapshot | None = None
    entropy: float = 0.0


class Reports:
    """Read models; nothing here writes to the store or reinforces records."""

    def __init__(self, store: RecordStore, entropy_window: int = 200):
        self.store = store
        self.entropy_window = entropy_window

    def surface(self, limit: int = 10, include_metabolized: bool = False) -> list[MemoryRecord]:
        """Records that most need attention: heavy, strong, still charged, recent."""
        return self.store.list_records(include_metabolized=include_metabolized, order="surface", limit=limit)

    def landscape(self, days: int = 7, top: int = 5, recent: int = 5) -> Landscape:
        since = datetime.now() - timedelta(days=days)
        return Landscape(
            days=days,
            total=self.store.count_records(since=since),
            pillar_counts=self.store.pillar_counts(since=since),
            top_labels=self.store.label_counts(since=since, limit=top),
            recent=self.store.list_records(since=since, limit=recent),
        )

    def consolidation(self, days: int = 1, context: str | None = None, limit: int = 5) -> Consolidation:
        """
        Pattern summary over a window, for periodic review.

        ``unprocessed`` lists heavy records from the window that have not
        been metabolized yet.
        """
        since = datetime.now() - timedelta(days=days)
        return Consolidation(
            days=days,
            total=self.store.count_records(since=since, context=context),
            label_counts=self.store.label_counts(since=since, context=context),
            pillar_counts=self.store.pillar_counts(since=since, context=context),
            unprocessed=self.store.list_records(
                weight=Weight.HEAVY, context=context, since=since,
                include_metabolized=False, order="surface", limit=limit,
            ),
        )

    def health(self, recent_days: int = 1) -> Health:
        since = datetime.now() - timedelta(days=recent_days)
        return Health(
            total_records=self.store.count_records(),
            recent_records=self.store.count_records(since=since),
            emotions=self.store.count_emotions(),
            signals=self.store.count_rows("axis_signals"),
            shadows=self.store.count_rows("shadow_moments"),
            strength=self.store.strength_buckets(),
            trait=self.store.latest_snapshot(),
            entropy=shannon_entropy(self.store.label_counts(recent_window=self.entropy_window)),
        )

    def when(self, label: str, limit: int = 10) -> list[MemoryRecord]:
        """Records carrying ``label``, newest first."""
        return self.store.list_records(label=label.strip().lower(), limit=limit)
