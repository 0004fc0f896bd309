"""Shared error types for eqmind.

Goal: the authoritative record write either happens or is rejected up front.
Enrichment failures (indexing, signals, shadow checks) are reported as
warnings by the engine; everything else is raised to the caller.
"""


class EqMindError(Exception):
    """Base error for eqmind."""


class RecordValidationError(EqMindError):
    """Caller input is missing or malformed; nothing was written."""


class RecordNotFoundError(EqMindError):
    """No record matches the given id or text."""


class EmotionNotFoundError(EqMindError):
    """Label isn't in the emotion lexicon."""


class EmotionExistsError(EqMindError):
    """Label is already in the emotion lexicon."""


class ChargeTransitionError(EqMindError):
    """Requested charge change would leave the metabolized state."""


class ExternalServiceError(EqMindError):
    """A remote collaborator (embedding provider, vector index) failed."""


class EmbeddingError(ExternalServiceError):
    """Embedding provider call failed (network/auth/model/etc.)."""


class VectorIndexError(ExternalServiceError):
    """Vector index upsert or query failed."""
