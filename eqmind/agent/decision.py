"""Decision engine: decides what processing each incoming feeling needs."""

import re
import threading

from loguru import logger

from eqmind.memory.base import EmbeddingProvider, EntitySource
from eqmind.memory.types import NEUTRAL, ConversationTurn, Decision, Intensity, Pillar, Weight
from eqmind.memory.vector_store import cosine_similarity

IMPORTANT_MARKERS = (
    "remember", "important", "don't forget", "key point",
    "significant", "milestone", "breakthrough", "realized",
)

DECISION_MARKERS = (
    "decided", "going to", "will ", "plan to", "want to",
    "we should", "let's", "need to",
)

# Checked in this order; first pillar with a hit wins.
PILLAR_MARKERS: dict[Pillar, tuple[str, ...]] = {
    Pillar.SELF_MANAGEMENT: (
        "controlled", "regulated", "held back", "adapted",
        "followed through", "committed", "impulse",
    ),
    Pillar.SELF_AWARENESS: (
        "realized", "noticed about myself", "my pattern",
        "i tend to", "aware that i", "recognized",
    ),
    Pillar.SOCIAL_AWARENESS: (
        "sensed", "picked up on", "they seemed", "felt their",
        "noticed they", "understood why they",
    ),
    Pillar.RELATIONSHIP_MANAGEMENT: (
        "repaired", "communicated", "expressed to", "built trust",
        "conflict", "connection", "between us",
    ),
}

# Tuned for distinctiveness in embedding space
PILLAR_DESCRIPTIONS: dict[Pillar, str] = {
    Pillar.SELF_MANAGEMENT: (
        "controlling my impulses, regulating my emotions, adapting to change, following through on "
        "commitments, holding back my reactions, staying disciplined, managing my response"
    ),
    Pillar.SELF_AWARENESS: (
        "realizing something about myself, noticing my own patterns, understanding my tendencies, "
        "recognizing my feelings, insight about who I am, understanding why I react the way I do"
    ),
    Pillar.SOCIAL_AWARENESS: (
        "reading someone else, sensing their feelings, picking up on their mood, noticing their body "
        "language, understanding their perspective, seeing what they need, empathy for another person"
    ),
    Pillar.RELATIONSHIP_MANAGEMENT: (
        "repairing connection with someone, communicating my feelings to them, building trust between us, "
        "resolving conflict together, working through issues in relationship, expressing care to another"
    ),
}

HEAVY_MARKERS = (
    "breakthrough", "milestone", "realized", "finally",
    "never before", "first time", "changed", "shifted",
)

TAG_PATTERNS: dict[str, re.Pattern] = {
    "technical": re.compile(r"code|bug|function|error|deploy"),
    "intimate": re.compile(r"love|tender|intimate|kiss"),
    "insight": re.compile(r"learned|realized|understood|insight"),
    "relational": re.compile(r"fox|us|we |between"),
}

FALLBACK_ENTITIES = ("Fox", "Alex", "Binary Home", "ASAi")


class PillarEmbeddingCache:
    """
    Embeddings of the four pillar descriptions, computed once per instance.

    Construct one per running process and inject it into every
    ``DecisionEngine``. The first successful ``get`` fills the cache under a
    lock; later calls return the same vectors. It is never invalidated. If
    the first fill fails, nothing is cached and the next call retries.
    """

    def __init__(self, descriptions: dict[Pillar, str] | None = None):
        self._descriptions = dict(descriptions or PILLAR_DESCRIPTIONS)
        self._vectors: dict[Pillar, list[float]] | None = None
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._vectors is not None

    def get(self, embedder: EmbeddingProvider) -> dict[Pillar, list[float]]:
        if self._vectors is not None:
            return self._vectors
        with self._lock:
            if self._vectors is None:
                vectors = {pillar: embedder.embed(text) for pillar, text in self._descriptions.items()}
                self._vectors = vectors
                logger.debug(f"Pillar embeddings cached ({len(vectors)} descriptions)")
        return self._vectors


class DecisionEngine:
    """
    Classifies a feeling before it is stored.

    ``decide`` has no side effects on the store; the only remote call it may
    make is the embedding lookup for semantic pillar inference.
    """

    def __init__(
        self,
        embedder: EmbeddingProvider | None = None,
        pillar_cache: PillarEmbeddingCache | None = None,
        entity_source: EntitySource | None = None,
        config=None,
    ):
        self.embedder = embedder
        self.pillar_cache = pillar_cache or PillarEmbeddingCache()
        self.entity_source = entity_source
        self.index_min_length = getattr(config, "index_min_length", 50)
        self.important_min_length = getattr(config, "important_min_length", 200)
        self.semantic_min_length = getattr(config, "semantic_min_length", 20)
        self.similarity_threshold = getattr(config, "pillar_similarity_threshold", 0.3)
        self.fallback_entities = list(getattr(config, "fallback_entities", FALLBACK_ENTITIES))

    def decide(
        self,
        label: str,
        text: str,
        intensity: Intensity | str | None = None,
        conversation: list[ConversationTurn] | None = None,
        known_entities: list[str] | None = None,
    ) -> Decision:
        label = (label or NEUTRAL).strip().lower()
        intensity = Intensity.parse(intensity)
        is_neutral = label == NEUTRAL
        full_context = self._combine(text, conversation)

        decision = Decision(
            should_index=not is_neutral or len(text) > self.index_min_length or self.is_important(full_context),
            should_emit_signals=not is_neutral,
            should_check_shadow=not is_neutral,
            entities=self.detect_entities(full_context, known_entities),
            pillar=self.infer_pillar(full_context),
            weight=self.infer_weight(label, full_context, intensity),
            tags=self.extract_tags(full_context),
        )

        if decision.pillar is None and not is_neutral and len(text) > self.semantic_min_length and self.embedder:
            try:
                decision.pillar = self.infer_pillar_semantic(label, text)
            except Exception as e:
                logger.warning(f"Semantic pillar inference failed, leaving uncategorized: {e}")
                decision.warnings.append(f"pillar inference: {e}")

        return decision

    @staticmethod
    def _combine(text: str, conversation: list[ConversationTurn] | None) -> str:
        if not conversation:
            return text
        return " ".join(turn.content for turn in conversation) + " " + text

    def is_important(self, content: str) -> bool:
        lowered = content.lower()
        if any(m in lowered for m in IMPORTANT_MARKERS):
            return True
        if len(content) > self.important_min_length:
            return True
        return any(m in lowered for m in DECISION_MARKERS)

    def detect_entities(self, content: str, known_entities: list[str] | None = None) -> list[str]:
        """Case-insensitive substring detection, in input order."""
        entities = known_entities
        if not entities and self.entity_source is not None:
            entities = self.entity_source.list_entities()
        if not entities:
            entities = self.fallback_entities

        lowered = content.lower()
        found: list[str] = []
        for entity in entities:
            if entity and entity.lower() in lowered and entity not in found:
                found.append(entity)
        return found

    @staticmethod
    def infer_pillar(content: str) -> Pillar | None:
        lowered = content.lower()
        for pillar, markers in PILLAR_MARKERS.items():
            if any(m in lowered for m in markers):
                return pillar
        return None

    def infer_pillar_semantic(self, label: str, text: str) -> Pillar | None:
        """Closest pillar description by cosine similarity, if above threshold."""
        pillar_vectors = self.pillar_cache.get(self.embedder)
        content_vector = self.embedder.embed(f"{label}: {text}")

        best_pillar: Pillar | None = None
        best_score = self.similarity_threshold
        for pillar, vector in pillar_vectors.items():
            score = cosine_similarity(content_vector, vector)
            if score > best_score:
                best_score = score
                best_pillar = pillar
        if best_pillar:
            logger.debug(f"Semantic pillar {best_pillar.value} ({best_score:.2f}) for '{label}'")
        return best_pillar

    @staticmethod
    def infer_weight(label: str, content: str, intensity: Intensity) -> Weight:
        if intensity in (Intensity.OVERWHELMING, Intensity.STRONG):
            return Weight.HEAVY
        if label == NEUTRAL or intensity in (Intensity.WHISPER, Intensity.NONE):
            return Weight.LIGHT
        lowered = content.lower()
        if any(m in lowered for m in HEAVY_MARKERS):
            return Weight.HEAVY
        return Weight.MEDIUM

    @staticmethod
    def extract_tags(content: str) -> list[str]:
        lowered = content.lower()
        return [tag for tag, pattern in TAG_PATTERNS.items() if pattern.search(lowered)]
