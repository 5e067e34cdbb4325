"""
Configuration settings for the satprep service.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///./satprep.db",
        description="SQLAlchemy connection string",
    )

    # ========================================
    # API Server
    # ========================================
    api_host: str = Field(default="127.0.0.1", description="API bind host")
    api_port: int = Field(default=8100, description="API bind port")
    log_level: str = Field(default="INFO", description="Log level")
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins",
    )

    # ========================================
    # Diagnostic
    # ========================================
    diagnostic_question_count: int = Field(
        default=20,
        ge=1,
        description="Questions sampled for one diagnostic session",
    )
    diagnostic_difficulty: str = Field(
        default="medium",
        description="Preferred difficulty for diagnostic questions",
    )

    # ========================================
    # Study Plan
    # ========================================
    weak_threshold: int = Field(
        default=50,
        ge=0,
        le=100,
        description="Subjects scoring below this percent after a diagnostic are weak areas",
    )
    adaptive_weak_threshold: int = Field(
        default=70,
        description="Average score below which a subject is weak in adaptive re-planning",
    )
    adaptive_mastered_threshold: int = Field(
        default=80,
        description="Average score at or above which a subject is mastered",
    )
    adaptive_struggling_threshold: int = Field(
        default=50,
        description="Average score below which a subject is struggling",
    )

    # ========================================
    # Seeding
    # ========================================
    seed_on_startup: bool = Field(
        default=True,
        description="Seed the question bank and demo learner on service startup",
    )
    demo_learner_name: str = Field(default="Demo Learner")
    demo_learner_token: str = Field(
        default="demo-token",
        description="Bearer token for the seeded demo learner",
    )

    def get_cors_origins(self) -> list[str]:
        """Parse CORS origins into a list."""
        if self.cors_origins.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def get_adaptive_thresholds(self) -> dict[str, int]:
        """Get adaptive re-planning thresholds as a dictionary."""
        return {
            "weak": self.adaptive_weak_threshold,
            "mastered": self.adaptive_mastered_threshold,
            "struggling": self.adaptive_struggling_threshold,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
