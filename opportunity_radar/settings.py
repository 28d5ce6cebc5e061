"""Application settings using Pydantic."""
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Crawl
    max_parallel_connectors: int = Field(
        default=4,
        ge=1,
        description="Maximum number of connectors fetching at the same time",
    )
    connector_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Time budget for a single connector",
    )
    crawl_deadline_seconds: float = Field(
        default=25.0,
        gt=0,
        description="Overall deadline for one crawl run",
    )
    greenhouse_boards: list[str] = Field(
        default_factory=lambda: ["stripe", "figma", "databricks", "duolingo", "airbnb"],
        description="Greenhouse board slugs to scan",
    )

    # Throttle
    auto_crawl_min_interval_ms: int = Field(
        default=60_000,
        ge=0,
        description="Minimum interval between automatic crawls in one session",
    )

    # AI-assisted scoring (disabled when no URL is configured)
    ai_scoring_url: Optional[str] = Field(
        default=None,
        description="Remote re-scoring endpoint",
    )
    ai_scoring_api_key: Optional[str] = Field(
        default=None,
        description="Bearer token for the remote scorer",
    )
    ai_scoring_timeout_seconds: float = Field(default=8.0, gt=0)
    ai_scoring_batch_size: int = Field(default=50, ge=1)
    ai_scoring_max_failures: int = Field(
        default=3,
        ge=1,
        description="Consecutive failures before the scorer backs off",
    )
    ai_scoring_cooldown_seconds: float = Field(default=300.0, ge=0)

    # Ranking
    rule_weight_skill_overlap: float = Field(default=0.50, ge=0)
    rule_weight_interest_overlap: float = Field(default=0.20, ge=0)
    rule_weight_role_match: float = Field(default=0.20, ge=0)
    rule_weight_tag_coverage: float = Field(default=0.10, ge=0)
    curated_score_floor: float = Field(
        default=40.0,
        ge=0,
        le=100,
        description="Minimum match score given to curated entries",
    )

    # Feedback
    feedback_url: str = Field(
        default="http://localhost:8000/ml/feedback",
        description="Endpoint receiving interaction feedback events",
    )
    feedback_queue_size: int = Field(default=256, ge=1)
    feedback_timeout_seconds: float = Field(default=5.0, gt=0)

    # Logging
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)


# Global settings instance
settings = Settings()
