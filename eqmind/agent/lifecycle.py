"""Record lifecycle: decay, reinforcement, and the charge state machine."""

from dataclasses import dataclass, field

from loguru import logger

from eqmind.errors import ChargeTransitionError, EqMindError, RecordNotFoundError
from eqmind.memory.store import RecordStore
from eqmind.memory.types import Charge, MemoryRecord, Weight

MAX_SIT_ATTEMPTS = 5


@dataclass
class DecayReport:
    """Outcome of one decay cycle."""
    decayed: dict[Weight, int] = field(default_factory=dict)
    cooled: int = 0

    @property
    def total(self) -> int:
        return sum(self.decayed.values())

    def to_message(self) -> str:
        parts = ", ".join(f"{w.value.capitalize()}: {self.decayed.get(w, 0)}" for w in (Weight.HEAVY, Weight.MEDIUM, Weight.LIGHT))
        return f"Memory decay applied. {parts}. Cooled: {self.cooled}"


def sit_target(sit_count_after: int) -> Charge:
    """Charge a record should reach after its Nth sit."""
    return Charge.WARM if sit_count_after <= 1 else Charge.COOL


class RecordLifecycle:
    """
    Mutates strength and charge on stored records.

    Strength only goes down through ``decay`` and only goes up through
    ``reinforce``; both are clamped to [floor, 1.0]. Charge only moves
    forward through fresh → warm → cool → metabolized.
    """

    def __init__(self, store: RecordStore, config=None):
        self.store = store
        self.factors = {
            Weight.HEAVY: getattr(config, "decay_heavy", 0.98),
            Weight.MEDIUM: getattr(config, "decay_medium", 0.95),
            Weight.LIGHT: getattr(config, "decay_light", 0.90),
        }
        self.floor = getattr(config, "strength_floor", 0.05)
        self.cool_threshold = getattr(config, "cool_threshold", 0.15)
        self.echo_boost = getattr(config, "echo_boost", 0.15)
        self.touch_boost = getattr(config, "touch_boost", 0.05)
        self.metabolized_strength = getattr(config, "metabolized_strength", 0.1)

    def decay(self) -> DecayReport:
        """Run one decay cycle. Meant to be called by an external scheduler."""
        decayed, cooled = self.store.decay(self.factors, self.floor, self.cool_threshold)
        report = DecayReport(decayed=decayed, cooled=cooled)
        logger.info(report.to_message())
        return report

    def reinforce(self, record_ids: list[int], amount: float) -> int:
        if amount < 0:
            raise ValueError("reinforcement can't lower strength")
        return self.store.reinforce(record_ids, amount)

    def echo(self, record_ids: list[int]) -> int:
        """Reinforcement from a semantic echo at index time."""
        return self.reinforce(record_ids, self.echo_boost)

    def touch(self, record_ids: list[int]) -> int:
        """Smaller reinforcement for records surfaced by retrieval."""
        return self.reinforce(record_ids, self.touch_boost)

    def _locate(self, record_id: int | None, text_match: str | None) -> MemoryRecord:
        if record_id is not None:
            return self.store.get_record(record_id)
        if text_match:
            return self.store.find_latest_by_text(text_match)
        raise RecordNotFoundError("Must provide a record id or text match")

    def sit(self, record_id: int | None = None, text_match: str | None = None, note: str | None = None) -> MemoryRecord:
        """
        Register explicit engagement with a record.

        First sit warms a fresh record; every later sit cools it. A record
        already further along (cooled by decay, or metabolized) keeps its
        charge.
        """
        record = self._locate(record_id, text_match)
        for _ in range(MAX_SIT_ATTEMPTS):
            target = sit_target(record.sit_count + 1)
            new_charge = record.charge.advance_to(target)
            if self.store.compare_and_set_sit(record.id, record.charge, new_charge, record.sit_count, note):
                updated = self.store.get_record(record.id)
                logger.debug(f"Sat with #{record.id}: {record.charge.value} → {updated.charge.value} (sit {updated.sit_count})")
                return updated
            # Someone else changed it between read and write; re-read and retry
            record = self.store.get_record(record.id)
        raise EqMindError(f"Feeling #{record.id} kept changing; sit not recorded")

    def resolve(
        self,
        record_id: int | None = None,
        text_match: str | None = None,
        note: str | None = None,
        linked_resolution_id: int | None = None,
    ) -> MemoryRecord:
        """Metabolize a record. Terminal: no transitions leave this state."""
        record = self._locate(record_id, text_match)
        if record.charge is Charge.METABOLIZED:
            raise ChargeTransitionError(f"Feeling #{record.id} is already metabolized")
        if linked_resolution_id is not None and not self.store.exists(linked_resolution_id):
            raise RecordNotFoundError(f"Linked feeling #{linked_resolution_id} not found")

        if not self.store.mark_resolved(record.id, note, linked_resolution_id, self.metabolized_strength):
            raise ChargeTransitionError(f"Feeling #{record.id} is already metabolized")
        logger.info(f"Resolved feeling #{record.id} → metabolized")
        return self.store.get_record(record.id)
