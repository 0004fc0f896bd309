"""Engine layer: decision, lifecycle, traits, shadows, retrieval, reports."""

from eqmind.agent.decision import DecisionEngine, PillarEmbeddingCache
from eqmind.agent.engine import MemoryEngine
from eqmind.agent.lifecycle import DecayReport, RecordLifecycle
from eqmind.agent.reports import Reports
from eqmind.agent.retrieval import DiversityRetrieval, SemanticEcho, SparkResult, shannon_entropy
from eqmind.agent.shadow import ShadowDetector
from eqmind.agent.traits import TraitAggregator, category_code, confidence

__all__ = [
    "DecayReport",
    "DecisionEngine",
    "DiversityRetrieval",
    "MemoryEngine",
    "PillarEmbeddingCache",
    "RecordLifecycle",
    "Reports",
    "SemanticEcho",
    "ShadowDetector",
    "SparkResult",
    "TraitAggregator",
    "category_code",
    "confidence",
    "shannon_entropy",
]
