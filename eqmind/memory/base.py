"""Abstract collaborator interfaces consumed by the engine."""

from abc import ABC, abstractmethod
from typing import Any

from eqmind.memory.types import VectorMatch


class EmbeddingProvider(ABC):
    """Turns text into a fixed-length float vector."""

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        """
        Embed a single text.

        Raises:
            EmbeddingError: The provider could not be reached or refused.
        """
        ...


class VectorIndex(ABC):
    """
    Nearest-neighbour index over embedded records.

    Scores returned by ``query`` are in [0, 1], higher is closer.
    """

    @abstractmethod
    def upsert(self, vector_id: str, vector: list[float], metadata: dict[str, Any] | None = None) -> None:
        """Insert or replace a vector with its metadata."""
        ...

    @abstractmethod
    def query(
        self,
        vector: list[float],
        top_k: int = 5,
        metadata_filter: dict[str, Any] | None = None,
    ) -> list[VectorMatch]:
        """
        Rank stored vectors by similarity.

        Args:
            vector: Query embedding.
            top_k: Maximum number of matches.
            metadata_filter: Equality constraints on metadata keys.

        Returns:
            Matches ordered by descending score.
        """
        ...

    def delete(self, vector_id: str) -> bool:
        """Remove a vector. Optional for implementations."""
        raise NotImplementedError


class EntitySource(ABC):
    """Supplies the names of currently known entities for detection."""

    @abstractmethod
    def list_entities(self) -> list[str]:
        ...


class StaticEntitySource(EntitySource):
    """Entity source backed by a fixed list."""

    def __init__(self, names: list[str] | None = None):
        self._names = [n for n in (names or []) if n and n.strip()]

    def list_entities(self) -> list[str]:
        return list(self._names)
