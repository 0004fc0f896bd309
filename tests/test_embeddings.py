"""Tests for the litellm embedding service: caching, eviction, failures."""

from unittest.mock import MagicMock, patch

import pytest

from eqmind.config.schema import EmbeddingConfig
from eqmind.errors import EmbeddingError
from eqmind.memory.embeddings import EmbeddingService, RollingWindowLimiter


def _mock_embedding_response(vector):
    resp = MagicMock()
    resp.data = [{"embedding": vector}]
    return resp


# ============================================================================
# EmbeddingService
# ============================================================================


def test_embed_calls_litellm_with_model():
    service = EmbeddingService(EmbeddingConfig(model="test-embed"))
    with patch("litellm.embedding", return_value=_mock_embedding_response([0.1, 0.2])) as mock_embed:
        assert service.embed("  hello ") == [0.1, 0.2]
    mock_embed.assert_called_once_with(model="test-embed", input=["hello"])


def test_embed_cache_hit_skips_provider():
    service = EmbeddingService()
    with patch("litellm.embedding", return_value=_mock_embedding_response([1.0])) as mock_embed:
        service.embed("same text")
        service.embed("same text ")
    assert mock_embed.call_count == 1
    assert service.cached == 1


def test_embed_cache_evicts_oldest():
    service = EmbeddingService(EmbeddingConfig(cache_size=1))
    with patch("litellm.embedding", return_value=_mock_embedding_response([1.0])) as mock_embed:
        service.embed("first")
        service.embed("second")
        service.embed("first")
    assert mock_embed.call_count == 3


def test_cache_disabled_with_zero_size():
    service = EmbeddingService(EmbeddingConfig(cache_size=0))
    with patch("litellm.embedding", return_value=_mock_embedding_response([1.0])) as mock_embed:
        service.embed("again")
        service.embed("again")
    assert mock_embed.call_count == 2
    assert service.cached == 0


def test_embed_rejects_blank_text():
    service = EmbeddingService()
    with patch("litellm.embedding") as mock_embed:
        with pytest.raises(EmbeddingError):
            service.embed("   ")
    mock_embed.assert_not_called()


def test_embed_failure_wrapped():
    service = EmbeddingService()
    with patch("litellm.embedding", side_effect=RuntimeError("401 unauthorized")):
        with pytest.raises(EmbeddingError, match="401"):
            service.embed("hello")


def test_failed_embedding_not_cached():
    service = EmbeddingService()
    with patch("litellm.embedding", side_effect=RuntimeError("timeout")):
        with pytest.raises(EmbeddingError):
            service.embed("retry me")
    with patch("litellm.embedding", return_value=_mock_embedding_response([0.5])) as mock_embed:
        assert service.embed("retry me") == [0.5]
    mock_embed.assert_called_once()


def test_from_config():
    service = EmbeddingService.from_config(EmbeddingConfig(model="m", max_requests_per_minute=10, cache_size=5))
    assert service.model == "m"
    assert service.limiter.limit == 10
    assert service.limiter.window_seconds == 60.0


# ============================================================================
# RollingWindowLimiter
# ============================================================================


def test_limiter_allows_burst_up_to_limit():
    limiter = RollingWindowLimiter(limit=5)
    waits = [limiter.acquire() for _ in range(5)]
    assert waits == [0.0] * 5
    assert len(limiter.call_history) == 5


def test_limiter_waits_for_oldest_call_to_age_out():
    limiter = RollingWindowLimiter(limit=1, window_seconds=0.05)
    assert limiter.acquire() == 0.0
    assert limiter.acquire() > 0.0
    assert len(limiter.call_history) == 1


@pytest.mark.parametrize("kwargs", [{"limit": 0}, {"limit": 3, "window_seconds": 0}])
def test_limiter_rejects_bad_settings(kwargs):
    with pytest.raises(ValueError):
        RollingWindowLimiter(**kwargs)
