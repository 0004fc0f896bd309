"""Configuration schema using Pydantic."""

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageConfig(BaseModel):
    """SQLite storage configuration."""
    db_path: str = "~/.eqmind/eqmind.db"
    namespace: str = Field(default="feelings", pattern=r'^[a-zA-Z0-9_-]{1,64}$')  # Vector namespace


class EmbeddingConfig(BaseModel):
    """Embedding provider configuration."""
    model: str = Field(default="text-embedding-3-small", description="Model for generating embeddings")
    max_requests_per_minute: int = Field(default=3000, ge=1, le=10000, description="Rate limit for embedding API")
    cache_size: int = Field(default=1000, ge=0, le=100000)


class DecisionConfig(BaseModel):
    """Thresholds used when classifying an incoming feeling."""
    index_min_length: int = Field(default=50, ge=0, description="Texts longer than this are always indexed")
    important_min_length: int = Field(default=200, ge=0, description="Texts longer than this count as important")
    semantic_min_length: int = Field(default=20, ge=0, description="Minimum text length for embedding-based pillar inference")
    pillar_similarity_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    fallback_entities: list[str] = Field(default_factory=lambda: ["Fox", "Alex", "Binary Home", "ASAi"])


class LifecycleConfig(BaseModel):
    """Decay and reinforcement tuning."""
    decay_heavy: float = Field(default=0.98, gt=0.0, le=1.0)
    decay_medium: float = Field(default=0.95, gt=0.0, le=1.0)
    decay_light: float = Field(default=0.90, gt=0.0, le=1.0)
    strength_floor: float = Field(default=0.05, ge=0.0, le=1.0)
    cool_threshold: float = Field(default=0.15, ge=0.0, le=1.0, description="Fresh/warm records below this strength cool down")
    echo_boost: float = Field(default=0.15, ge=0.0, le=1.0)
    touch_boost: float = Field(default=0.05, ge=0.0, le=1.0)
    metabolized_strength: float = Field(default=0.1, ge=0.05, le=1.0)


class EchoConfig(BaseModel):
    """Semantic echo lookup at index time."""
    top_k: int = Field(default=4, ge=1, le=100)
    max_echoes: int = Field(default=3, ge=0, le=100)
    threshold: float = Field(default=0.7, ge=0.0, le=1.0, description="Minimum similarity for an echo")


class TraitsConfig(BaseModel):
    """Trait aggregation settings."""
    full_confidence_signals: int = Field(default=50, ge=1)
    window_days: int | None = Field(default=None, ge=1, description="None means lifetime-cumulative")


class SparkConfig(BaseModel):
    """Diversity retrieval settings."""
    default_count: int = Field(default=3, ge=1, le=100)
    entropy_window: int = Field(default=200, ge=1, description="Recent records used for label entropy")


class Config(BaseSettings):
    """Root configuration for eqmind."""
    model_config = SettingsConfigDict(env_prefix="EQMIND_", env_nested_delimiter="__", extra="ignore")

    storage: StorageConfig = Field(default_factory=StorageConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    decision: DecisionConfig = Field(default_factory=DecisionConfig)
    lifecycle: LifecycleConfig = Field(default_factory=LifecycleConfig)
    echo: EchoConfig = Field(default_factory=EchoConfig)
    traits: TraitsConfig = Field(default_factory=TraitsConfig)
    spark: SparkConfig = Field(default_factory=SparkConfig)

    @property
    def db_path(self) -> Path:
        """Get expanded database path."""
        return Path(self.storage.db_path).expanduser()
