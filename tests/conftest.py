"""Shared fixtures for eqmind tests."""

import hashlib
import re

import numpy as np
import pytest

from eqmind.agent.engine import MemoryEngine
from eqmind.agent.lifecycle import RecordLifecycle
from eqmind.memory.base import EmbeddingProvider
from eqmind.memory.store import RecordStore
from eqmind.memory.vector_store import SqliteVectorIndex


class FakeEmbedder(EmbeddingProvider):
    """Deterministic hashed bag-of-words vectors. Same text, same vector."""

    def __init__(self, dim: int = 512):
        self.dim = dim
        self.calls: list[str] = []

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        vec = np.zeros(self.dim, dtype=np.float64)
        for token in re.findall(r"\w+", text.lower()):
            slot = int(hashlib.md5(token.encode()).hexdigest(), 16) % self.dim
            vec[slot] += 1.0
        return vec.tolist()


@pytest.fixture
def store(tmp_path):
    s = RecordStore(tmp_path / "eqmind.db")
    yield s
    s.close()


@pytest.fixture
def lifecycle(store):
    return RecordLifecycle(store)


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def index(tmp_path):
    idx = SqliteVectorIndex(tmp_path / "vectors.db")
    yield idx
    idx.close()


@pytest.fixture
def engine(store, embedder, index):
    """Engine with a local vector index and the fake embedder."""
    return MemoryEngine(store, embedder=embedder, index=index)


@pytest.fixture
def bare_engine(store):
    """Engine without embeddings or a vector index."""
    return MemoryEngine(store)
