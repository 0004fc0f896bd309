"""
Entropy-aware retrieval ("spark") and semantic echoes.

Spark deliberately samples the least-explored pillar alongside a random
draw, so recall isn't dominated by whatever is most recent or most similar.
Echoes are the index-time counterpart: near-duplicate past feelings found by
vector similarity get reinforced.
"""

import math
from dataclasses import dataclass, field

from loguru import logger

from eqmind.agent.lifecycle import RecordLifecycle
from eqmind.memory.base import EmbeddingProvider, VectorIndex
from eqmind.memory.store import RecordStore
from eqmind.memory.types import Echo, MemoryRecord, Pillar, Weight


def shannon_entropy(counts) -> float:
    """Entropy in bits of a frequency distribution. Zero counts are ignored."""
    values = [c for c in (counts.values() if isinstance(counts, dict) else counts) if c > 0]
    total = sum(values)
    if total == 0:
        return 0.0
    entropy = 0.0
    for c in values:
        p = c / total
        entropy -= p * math.log2(p)
    return entropy


def least_represented(pillar_counts: dict[Pillar, int]) -> Pillar:
    """Pillar with the fewest records, zero included. Ties go to priority order."""
    return min(Pillar, key=lambda pillar: pillar_counts.get(pillar, 0))


@dataclass
class SparkResult:
    """Records returned by a spark, plus the diversity measurements behind them."""

    records: list[MemoryRecord]
    entropy: float
    least_pillar: Pillar | None
    pillar_counts: dict[Pillar, int] = field(default_factory=dict)
    deliberate_ids: list[int] = field(default_factory=list)

    @property
    def least_count(self) -> int:
        return self.pillar_counts.get(self.least_pillar, 0) if self.least_pillar else 0


@dataclass
class SearchHit:
    """A semantic (or text-fallback) search result."""

    record_id: int | None
    score: float
    label: str
    text: str
    pillar: str | None = None


class DiversityRetrieval:
    def __init__(self, store: RecordStore, lifecycle: RecordLifecycle, entropy_window: int = 200):
        self.store = store
        self.lifecycle = lifecycle
        self.entropy_window = entropy_window

    def spark(self, count: int = 3, weight_bias: Weight | None = None, context: str | None = None) -> SparkResult:
        """
        Blend deliberate picks from the least-explored pillar with random ones.

        ``ceil(count / 2)`` picks come from the least-represented pillar,
        least-accessed first; the rest are uniform random. Every returned
        record gets a retrieval-touch reinforcement.
        """
        if count < 1:
            raise ValueError("count must be at least 1")

        entropy = shannon_entropy(self.store.label_counts(recent_window=self.entropy_window))
        pillar_counts = self.store.pillar_counts()
        least = least_represented(pillar_counts)
        # An empty pillar has nothing to draw from; fall back to the least accessed overall.
        target = least if pillar_counts.get(least, 0) > 0 else None

        deliberate_n = math.ceil(count / 2)
        deliberate = self.store.sample_least_accessed(pillar=target, weight=weight_bias, limit=deliberate_n)
        picked = [r.id for r in deliberate]
        random_picks = self.store.sample_random(
            weight=weight_bias, context=context, limit=count - len(deliberate), exclude_ids=picked
        )
        records = deliberate + random_picks

        if records:
            self.lifecycle.touch([r.id for r in records])
            records = [self.store.get_record(r.id) for r in records]

        logger.debug(
            f"Spark: {len(deliberate)} deliberate from {target.value if target else 'any pillar'}, "
            f"{len(random_picks)} random, entropy {entropy:.2f} bits"
        )
        return SparkResult(
            records=records,
            entropy=entropy,
            least_pillar=least,
            pillar_counts=pillar_counts,
            deliberate_ids=picked,
        )


class SemanticEcho:
    """Index-time vector upsert plus nearest-neighbour reinforcement."""

    def __init__(
        self,
        store: RecordStore,
        index: VectorIndex,
        embedder: EmbeddingProvider,
        lifecycle: RecordLifecycle,
        config=None,
    ):
        self.store = store
        self.index = index
        self.embedder = embedder
        self.lifecycle = lifecycle
        self.top_k = getattr(config, "top_k", 4)
        self.max_echoes = getattr(config, "max_echoes", 3)
        self.threshold = getattr(config, "threshold", 0.7)

    @staticmethod
    def embedding_text(record: MemoryRecord) -> str:
        return f"{record.label}: {record.text}"

    def index_record(self, record: MemoryRecord) -> list[Echo]:
        """
        Upsert the record's embedding and reinforce its echoes.

        Returns:
            Past records with similarity above the threshold (itself excluded).
        """
        vector = self.embedder.embed(self.embedding_text(record))
        self.index.upsert(
            record.vector_id,
            vector,
            {
                "source": "feeling",
                "emotion": record.label,
                "pillar": record.pillar.value if record.pillar else None,
                "weight": record.weight.value,
                "content": record.text[:500],
                "linked_entity": record.linked_entity,
                "created_at": record.created_at.isoformat() if record.created_at else None,
            },
        )

        matches = self.index.query(vector, top_k=self.top_k, metadata_filter={"source": "feeling"})
        echoes: list[Echo] = []
        for match in matches:
            if match.id == record.vector_id or match.score <= self.threshold:
                continue
            if match.record_id is None:
                continue
            echoes.append(
                Echo(
                    record_id=match.record_id,
                    score=match.score,
                    label=match.metadata.get("emotion", ""),
                    preview=(match.metadata.get("content") or "")[:80],
                )
            )
            if len(echoes) >= self.max_echoes:
                break

        if echoes:
            self.lifecycle.echo([e.record_id for e in echoes])
            logger.debug(f"Feeling #{record.id} echoed {len(echoes)} past feelings")
        return echoes

    def search(
        self,
        query: str,
        limit: int = 10,
        label: str | None = None,
        pillar: Pillar | None = None,
    ) -> list[SearchHit]:
        """Semantic search over indexed feelings; text match when the index has nothing."""
        vector = self.embedder.embed(query)
        metadata_filter = {"source": "feeling"}
        if label:
            metadata_filter["emotion"] = label
        if pillar:
            metadata_filter["pillar"] = pillar.value

        matches = self.index.query(vector, top_k=limit, metadata_filter=metadata_filter)
        if matches:
            return [
                SearchHit(
                    record_id=m.record_id,
                    score=m.score,
                    label=m.metadata.get("emotion", "unknown"),
                    text=m.metadata.get("content", ""),
                    pillar=m.metadata.get("pillar"),
                )
                for m in matches
            ]

        records = self.store.list_records(label=label, pillar=pillar, text_match=query, limit=limit)
        return [
            SearchHit(
                record_id=r.id, score=0.0, label=r.label, text=r.text,
                pillar=r.pillar.value if r.pillar else None,
            )
            for r in records
        ]

    def connections(self, seed_text: str, limit: int = 5) -> list[SearchHit]:
        """Memories that surface for a seed text, related by meaning rather than shared words."""
        vector = self.embedder.embed(seed_text)
        matches = self.index.query(vector, top_k=limit)
        return [
            SearchHit(
                record_id=m.record_id,
                score=m.score,
                label=m.metadata.get("emotion", ""),
                text=m.metadata.get("content") or m.metadata.get("text", ""),
                pillar=m.metadata.get("pillar"),
            )
            for m in matches
        ]
