"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Trust thresholds are configuration, not literals scattered through core/

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from chargewatch.core.domain_types import TrustPolicy


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://chargewatch:chargewatch@db:5432/chargewatch"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres hands out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Storage retry (StorageError only)
    storage_max_retries: int = Field(3, ge=0, le=10)
    storage_base_delay_ms: int = 50
    storage_max_delay_ms: int = 2_000

    # Trust & verification policy
    vote_recency_window_hours: float = Field(24.0, gt=0)
    verified_min_votes: int = Field(2, ge=1)
    strong_verified_min_votes: int = Field(5, ge=1)
    consensus_min_votes: int = Field(3, ge=1)
    trust_horizon_days: int = Field(30, ge=1)
    low_trust_report_threshold: int = Field(3, ge=1)
    trusted_corroboration_threshold: int = Field(5, ge=1)
    trust_score_enabled: bool = False

    # Moderation: new stations wait for an admin decision when enabled
    station_approval_required: bool = False

    # Summary cache: 0 disables; clamped to the recency window
    summary_cache_ttl_seconds: int = Field(60, ge=0)

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    def trust_policy(self) -> TrustPolicy:
        return TrustPolicy(
            recency_window_hours=self.vote_recency_window_hours,
            verified_min_votes=self.verified_min_votes,
            strong_verified_min_votes=self.strong_verified_min_votes,
            consensus_min_votes=self.consensus_min_votes,
            trust_horizon_days=self.trust_horizon_days,
            low_trust_report_threshold=self.low_trust_report_threshold,
            trusted_corroboration_threshold=self.trusted_corroboration_threshold,
        )

    def effective_cache_ttl(self) -> float:
        window_seconds = self.vote_recency_window_hours * 3600
        return min(float(self.summary_cache_ttl_seconds), window_seconds)


@lru_cache
def get_settings() -> Settings:
    return Settings()
