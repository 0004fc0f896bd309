"""Types for the emotional memory system."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

NEUTRAL = "neutral"
AXES = ("E/I", "S/N", "T/F", "J/P")


class Intensity(str, Enum):
    """How loudly a feeling was felt. Ordered: none < whisper < ... < overwhelming."""
    NONE = "none"
    WHISPER = "whisper"
    PRESENT = "present"
    STRONG = "strong"
    OVERWHELMING = "overwhelming"

    @classmethod
    def parse(cls, value: "str | Intensity | None") -> "Intensity":
        if value is None:
            return cls.PRESENT
        if isinstance(value, cls):
            return value
        value = value.strip().lower()
        if value == NEUTRAL:
            return cls.NONE
        return cls(value)


class Weight(str, Enum):
    """Processing weight of a record; drives its decay rate."""
    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"


class Charge(str, Enum):
    """How unmetabolized a record is. Only ever moves forward."""
    FRESH = "fresh"
    WARM = "warm"
    COOL = "cool"
    METABOLIZED = "metabolized"

    @property
    def rank(self) -> int:
        return list(Charge).index(self)

    def advance_to(self, target: "Charge") -> "Charge":
        """Return whichever of self/target is further along."""
        return target if target.rank > self.rank else self


class Pillar(str, Enum):
    """The four emotional-intelligence categories, in keyword priority order."""
    SELF_MANAGEMENT = "SELF_MANAGEMENT"
    SELF_AWARENESS = "SELF_AWARENESS"
    SOCIAL_AWARENESS = "SOCIAL_AWARENESS"
    RELATIONSHIP_MANAGEMENT = "RELATIONSHIP_MANAGEMENT"


class ConversationTurn(BaseModel):
    """One prior exchange turn supplied as ingestion context."""
    role: str = Field(default="user", min_length=1, max_length=64)
    content: str = Field(default="", max_length=8192)


@dataclass
class EmotionDefinition:
    """A lexicon entry: label → axis weights and shadow categories."""

    label: str
    axis_weights: tuple[int, int, int, int] = (0, 0, 0, 0)
    shadow_for: frozenset[str] = frozenset()
    category: str = NEUTRAL
    definition: str | None = None
    times_used: int = 0
    last_used_at: datetime | None = None
    is_user_defined: bool = False

    @property
    def is_calibrated(self) -> bool:
        return any(self.axis_weights)


@dataclass
class MemoryRecord:
    """A single stored feeling (or fact, when the label is neutral)."""

    id: int
    text: str
    label: str = NEUTRAL
    intensity: Intensity = Intensity.PRESENT
    pillar: Pillar | None = None
    weight: Weight = Weight.MEDIUM
    charge: Charge = Charge.FRESH
    strength: float = 1.0
    sit_count: int = 0
    access_count: int = 0
    linked_predecessor_id: int | None = None
    linked_resolution_id: int | None = None
    linked_entity: str | None = None
    tags: list[str] = field(default_factory=list)
    context: str = "default"
    source: str = "feel"
    resolution_note: str | None = None
    last_sit_note: str | None = None
    conversation: list[dict[str, str]] = field(default_factory=list)
    created_at: datetime | None = None
    last_accessed_at: datetime | None = None
    resolved_at: datetime | None = None

    @property
    def is_neutral(self) -> bool:
        return self.label == NEUTRAL

    @property
    def vector_id(self) -> str:
        return f"feel-{self.id}"


@dataclass
class SignalEvent:
    """Axis deltas emitted for one record. Append-only."""

    record_id: int
    deltas: tuple[int, int, int, int]
    created_at: datetime | None = None
    id: int | None = None


@dataclass
class TraitSnapshot:
    """Point-in-time aggregate of every signal event."""

    category_code: str
    confidence: int
    totals: tuple[int, int, int, int]
    total_signals: int
    created_at: datetime | None = None
    id: int | None = None


@dataclass
class ShadowEvent:
    """Evidence that a label difficult for the current code was expressed."""

    record_id: int
    emotion_label: str
    category_code: str
    note: str | None = None
    recorded_at: datetime | None = None
    id: int | None = None


@dataclass
class Decision:
    """How an incoming record should be processed. No side effects."""

    should_index: bool
    should_emit_signals: bool
    should_check_shadow: bool
    entities: list[str] = field(default_factory=list)
    pillar: Pillar | None = None
    weight: Weight = Weight.MEDIUM
    tags: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def linked_entity(self) -> str | None:
        return self.entities[0] if self.entities else None


@dataclass
class VectorMatch:
    """One ranked hit from the vector index."""

    id: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def record_id(self) -> int | None:
        if not self.id.startswith("feel-"):
            return None
        try:
            return int(self.id[len("feel-"):])
        except ValueError:
            return None


@dataclass
class Echo:
    """A past record that resonated with a newly indexed one."""

    record_id: int
    score: float
    label: str = ""
    preview: str = ""


@dataclass
class Stored:
    """Ingestion succeeded with every enrichment step."""

    record_id: int
    decision: Decision
    record: MemoryRecord | None = None
    echoes: list[Echo] = field(default_factory=list)
    signal: SignalEvent | None = None
    shadow: ShadowEvent | None = None
    new_emotion: bool = False

    @property
    def warnings(self) -> list[str]:
        return []


@dataclass
class StoredWithWarnings(Stored):
    """The record was written, but some enrichment step failed."""

    issues: list[str] = field(default_factory=list)

    @property
    def warnings(self) -> list[str]:
        return list(self.issues)
