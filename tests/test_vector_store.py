"""Tests for the SQLite vector index and cosine similarity."""

import pytest

from eqmind.errors import VectorIndexError
from eqmind.memory.types import VectorMatch
from eqmind.memory.vector_store import SqliteVectorIndex, cosine_similarity


def test_cosine_similarity_identical():
    vec = [1.0, 2.0, 3.0]
    assert cosine_similarity(vec, vec) == pytest.approx(1.0)


def test_cosine_similarity_orthogonal():
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)


def test_cosine_similarity_zero_vector():
    assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0


def test_query_ranks_by_similarity(index):
    index.upsert("feel-1", [1.0, 0.0, 0.0], {"source": "feeling", "emotion": "happy"})
    index.upsert("feel-2", [0.7, 0.7, 0.0], {"source": "feeling", "emotion": "sad"})
    index.upsert("feel-3", [0.0, 0.0, 1.0], {"source": "feeling", "emotion": "calm"})

    matches = index.query([1.0, 0.1, 0.0], top_k=2)

    assert [m.id for m in matches] == ["feel-1", "feel-2"]
    assert matches[0].score > matches[1].score
    assert matches[0].metadata["emotion"] == "happy"


def test_query_metadata_filter(index):
    index.upsert("feel-1", [1.0, 0.0], {"source": "feeling"})
    index.upsert("note-1", [1.0, 0.0], {"source": "note"})
    matches = index.query([1.0, 0.0], metadata_filter={"source": "feeling"})
    assert [m.id for m in matches] == ["feel-1"]


def test_query_scores_clamped(index):
    index.upsert("feel-1", [-1.0, 0.0], {})
    matches = index.query([1.0, 0.0])
    assert matches[0].score == 0.0


def test_query_skips_dimension_mismatch(index):
    index.upsert("feel-1", [1.0, 0.0, 0.0], {})
    index.upsert("feel-2", [1.0, 0.0], {})
    assert [m.id for m in index.query([1.0, 0.0])] == ["feel-2"]


def test_upsert_replaces(index):
    index.upsert("feel-1", [1.0, 0.0], {"emotion": "happy"})
    index.upsert("feel-1", [0.0, 1.0], {"emotion": "sad"})
    assert index.count() == 1
    match = index.query([0.0, 1.0])[0]
    assert match.metadata["emotion"] == "sad"
    assert match.score == pytest.approx(1.0)


def test_upsert_rejects_empty_vector(index):
    with pytest.raises(VectorIndexError):
        index.upsert("feel-1", [], {})


def test_delete(index):
    index.upsert("feel-1", [1.0], {})
    assert index.delete("feel-1") is True
    assert index.delete("feel-1") is False
    assert index.count() == 0


def test_namespaces_are_isolated(tmp_path):
    path = tmp_path / "vectors.db"
    with SqliteVectorIndex(path, namespace="a") as a, SqliteVectorIndex(path, namespace="b") as b:
        a.upsert("feel-1", [1.0, 0.0], {})
        assert b.count() == 0
        assert b.query([1.0, 0.0]) == []


@pytest.mark.parametrize("vector_id,expected", [("feel-12", 12), ("note-3", None), ("feel-x", None)])
def test_match_record_id(vector_id, expected):
    assert VectorMatch(id=vector_id, score=0.5).record_id == expected
