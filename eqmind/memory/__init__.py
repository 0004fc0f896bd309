"""
Storage layer for eqmind.

Provides the SQLite record store, the emotion lexicon, a local SQLite
vector index, and the litellm-backed embedding provider.
"""

from eqmind.memory.base import EmbeddingProvider, EntitySource, StaticEntitySource, VectorIndex
from eqmind.memory.embeddings import EmbeddingService
from eqmind.memory.lexicon import EmotionLexicon
from eqmind.memory.store import RecordStore
from eqmind.memory.vector_store import SqliteVectorIndex, cosine_similarity

__all__ = [
    "EmbeddingProvider",
    "EmbeddingService",
    "EmotionLexicon",
    "EntitySource",
    "RecordStore",
    "SqliteVectorIndex",
    "StaticEntitySource",
    "VectorIndex",
    "cosine_similarity",
]
