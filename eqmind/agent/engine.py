"""Memory engine: wires decision, storage, and enrichment into one ingestion call."""

from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from eqmind.agent.decision import DecisionEngine, PillarEmbeddingCache
from eqmind.agent.lifecycle import DecayReport, RecordLifecycle
from eqmind.agent.reports import Reports
from eqmind.agent.retrieval import DiversityRetrieval, SearchHit, SemanticEcho, SparkResult
from eqmind.agent.shadow import ShadowDetector
from eqmind.agent.traits import TraitAggregator
from eqmind.config.schema import Config
from eqmind.errors import RecordValidationError
from eqmind.memory.base import EmbeddingProvider, EntitySource, VectorIndex
from eqmind.memory.lexicon import EmotionLexicon, normalize_label
from eqmind.memory.store import MAX_CONTENT_LENGTH, RecordStore
from eqmind.memory.types import (
    ConversationTurn,
    Intensity,
    MemoryRecord,
    Pillar,
    ShadowEvent,
    SignalEvent,
    Stored,
    StoredWithWarnings,
    TraitSnapshot,
    Weight,
)

MAX_CONVERSATION_TURNS = 10


class MemoryEngine:
    """
    Entry point for the surrounding protocol layer.

    ``feel`` always commits the record first. Indexing, echo reinforcement,
    signal emission and the shadow check run afterwards and are best-effort:
    a failure in any of them is logged and reported as a warning, never
    rolled back into the write.
    """

    def __init__(
        self,
        store: RecordStore,
        embedder: EmbeddingProvider | None = None,
        index: VectorIndex | None = None,
        entity_source: EntitySource | None = None,
        pillar_cache: PillarEmbeddingCache | None = None,
        config: Config | None = None,
    ):
        self.config = config or Config()
        self.store = store
        self.embedder = embedder
        self.index = index
        self.lexicon = EmotionLexicon(store)
        self.decisions = DecisionEngine(
            embedder=embedder,
            pillar_cache=pillar_cache,
            entity_source=entity_source,
            config=self.config.decision,
        )
        self.lifecycle = RecordLifecycle(store, self.config.lifecycle)
        self.traits = TraitAggregator(store, self.config.traits)
        self.shadows = ShadowDetector(store)
        self.retrieval = DiversityRetrieval(store, self.lifecycle, entropy_window=self.config.spark.entropy_window)
        self.reports = Reports(store, entropy_window=self.config.spark.entropy_window)
        self.echo = (
            SemanticEcho(store, index, embedder, self.lifecycle, self.config.echo)
            if embedder is not None and index is not None
            else None
        )

    @classmethod
    def from_config(cls, config: Config, entity_source: EntitySource | None = None) -> "MemoryEngine":
        """Build an engine on the local SQLite store, vector index and litellm embeddings."""
        from eqmind.memory.embeddings import EmbeddingService
        from eqmind.memory.vector_store import SqliteVectorIndex

        db_path: Path = config.db_path
        return cls(
            store=RecordStore(db_path),
            embedder=EmbeddingService.from_config(config.embedding),
            index=SqliteVectorIndex(db_path, namespace=config.storage.namespace),
            entity_source=entity_source,
            config=config,
        )

    def close(self) -> None:
        self.store.close()
        close_index = getattr(self.index, "close", None)
        if close_index:
            close_index()

    # ── Ingestion ─────────────────────────────────────────────────────

    def feel(
        self,
        label: str | None,
        text: str,
        intensity: Intensity | str | None = None,
        pillar: Pillar | str | None = None,
        weight: Weight | str | None = None,
        predecessor_id: int | None = None,
        conversation: list[dict] | None = None,
        entity_names: list[str] | None = None,
        context: str = "default",
        source: str = "feel",
    ) -> Stored:
        """
        Classify and store a feeling, then enrich it.

        Args:
            label: Emotion word; None or "neutral" stores a fact, not a feeling.
            text: What happened. Required.
            intensity: none/whisper/present/strong/overwhelming (default present).
            pillar: Explicit category; overrides inference.
            weight: Explicit weight; overrides inference.
            predecessor_id: The feeling that sparked this one.
            conversation: Prior turns [{"role": ..., "content": ...}] for context.
            entity_names: Known entity names; overrides the entity source.

        Returns:
            ``Stored``, or ``StoredWithWarnings`` when enrichment partly failed.

        Raises:
            RecordValidationError: Input rejected; nothing was written.
        """
        label, text, intensity, pillar, weight, turns = self._validate(
            label, text, intensity, pillar, weight, predecessor_id, conversation
        )

        decision = self.decisions.decide(label, text, intensity, turns, entity_names)
        warnings = list(decision.warnings)

        emotion, is_new = (None, False)
        if decision.should_emit_signals:
            emotion, is_new = self.lexicon.get_or_create(label)

        record = self.store.insert_record(
            text=text,
            label=label,
            intensity=intensity,
            pillar=pillar or decision.pillar,
            weight=weight or decision.weight,
            linked_predecessor_id=predecessor_id,
            linked_entity=decision.linked_entity,
            tags=decision.tags,
            context=context,
            source=source,
            conversation=[t.model_dump() for t in turns],
        )

        echoes = []
        if decision.should_index:
            if self.echo is None:
                warnings.append("indexing skipped: no embedding provider or vector index configured")
            else:
                try:
                    echoes = self.echo.index_record(record)
                except Exception as e:
                    logger.warning(f"Indexing feeling #{record.id} failed: {e}")
                    warnings.append(f"indexing: {e}")

        signal: SignalEvent | None = None
        if decision.should_emit_signals and emotion is not None:
            try:
                signal = self.store.insert_signal(record.id, emotion.axis_weights)
                self.lexicon.record_usage(label)
            except Exception as e:
                logger.warning(f"Signal emission for feeling #{record.id} failed: {e}")
                warnings.append(f"signals: {e}")

        shadow: ShadowEvent | None = None
        if decision.should_check_shadow and emotion is not None and emotion.shadow_for:
            try:
                shadow = self.shadows.check(record.id, emotion)
            except Exception as e:
                logger.warning(f"Shadow check for feeling #{record.id} failed: {e}")
                warnings.append(f"shadow: {e}")

        stored_record = self.store.find_record(record.id) or record
        kwargs = dict(
            record_id=record.id,
            decision=decision,
            record=stored_record,
            echoes=echoes,
            signal=signal,
            shadow=shadow,
            new_emotion=is_new,
        )
        if warnings:
            return StoredWithWarnings(issues=warnings, **kwargs)
        return Stored(**kwargs)

    def _validate(self, label, text, intensity, pillar, weight, predecessor_id, conversation):
        if not isinstance(text, str) or not text.strip():
            raise RecordValidationError("content is required")
        text = text.strip()
        if len(text) > MAX_CONTENT_LENGTH:
            raise RecordValidationError(f"content exceeds maximum length of {MAX_CONTENT_LENGTH}")
        if label is not None and not isinstance(label, str):
            raise RecordValidationError("emotion must be a string")
        label = normalize_label(label)

        try:
            intensity = Intensity.parse(intensity)
            pillar = Pillar(pillar.upper() if isinstance(pillar, str) else pillar) if pillar else None
            weight = Weight(weight.lower() if isinstance(weight, str) else weight) if weight else None
        except ValueError as e:
            raise RecordValidationError(str(e)) from e

        if predecessor_id is not None and not self.store.exists(predecessor_id):
            raise RecordValidationError(f"sparked_by feeling #{predecessor_id} does not exist")

        try:
            turns = [ConversationTurn.model_validate(t) for t in (conversation or [])][-MAX_CONVERSATION_TURNS:]
        except ValidationError as e:
            raise RecordValidationError(f"invalid conversation: {e}") from e

        return label, text, intensity, pillar, weight, turns

    # ── Lifecycle and queries ─────────────────────────────────────────

    def decay(self) -> DecayReport:
        return self.lifecycle.decay()

    def sit(self, record_id: int | None = None, text_match: str | None = None, note: str | None = None) -> MemoryRecord:
        return self.lifecycle.sit(record_id=record_id, text_match=text_match, note=note)

    def resolve(
        self,
        record_id: int | None = None,
        text_match: str | None = None,
        note: str | None = None,
        linked_resolution_id: int | None = None,
    ) -> MemoryRecord:
        return self.lifecycle.resolve(
            record_id=record_id, text_match=text_match, note=note, linked_resolution_id=linked_resolution_id
        )

    def spark(self, count: int | None = None, weight_bias: Weight | str | None = None, context: str | None = None) -> SparkResult:
        if isinstance(weight_bias, str):
            try:
                weight_bias = None if weight_bias.lower() == "any" else Weight(weight_bias.lower())
            except ValueError as e:
                raise RecordValidationError(f"weight_bias must be heavy, medium, light or any, not '{weight_bias}'") from e
        if count is None:
            count = self.config.spark.default_count
        if count < 1:
            raise RecordValidationError("count must be at least 1")
        return self.retrieval.spark(count, weight_bias=weight_bias, context=context)

    def trait(self, recalculate: bool = False) -> TraitSnapshot | None:
        """Latest trait snapshot; recompute and persist first when asked."""
        if recalculate:
            return self.traits.recalculate()
        return self.traits.current()

    def search(self, query: str, limit: int = 10, label: str | None = None, pillar: Pillar | None = None) -> list[SearchHit]:
        if self.echo is None:
            records = self.store.list_records(label=label, pillar=pillar, text_match=query, limit=limit)
            return [
                SearchHit(record_id=r.id, score=0.0, label=r.label, text=r.text, pillar=r.pillar.value if r.pillar else None)
                for r in records
            ]
        return self.echo.search(query, limit=limit, label=label, pillar=pillar)

    def connections(self, seed_text: str, limit: int = 5) -> list[SearchHit]:
        if self.echo is None:
            return []
        return self.echo.connections(seed_text, limit=limit)
