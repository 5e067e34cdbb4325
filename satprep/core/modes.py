"""
Learner client configuration.

The CLI talks to a prep service over HTTP. Its settings come from
SATPREP_* environment variables, with nested API settings under
SATPREP_API__* (e.g. SATPREP_API__BASE_URL).
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiConfig(BaseModel):
    """Connection settings for the prep service."""

    base_url: str = "http://127.0.0.1:8100"
    api_token: str | None = None
    timeout_seconds: float = 30.0
    retry_attempts: int = Field(3, ge=1)
    retry_backoff_seconds: float = Field(1.0, ge=0)

    # Endpoints
    diagnostic_questions_endpoint: str = "/api/diagnostic/questions"
    diagnostic_grade_endpoint: str = "/api/diagnostic/grade"
    diagnostic_submit_endpoint: str = "/api/diagnostic/submit"
    study_plan_endpoint: str = "/api/studyplan"
    task_endpoint: str = "/api/studyplan/task"
    adaptive_plan_endpoint: str = "/api/studyplan/adaptive"
    learning_style_endpoint: str = "/api/learners/me/learning-style"
    performance_endpoint: str = "/api/performance"


class PrepCliConfig(BaseSettings):
    """
    Main configuration for the satprep CLI.

    Configuration precedence:
    1. Command-line arguments
    2. Environment variables (SATPREP_*)
    3. Defaults
    """

    model_config = SettingsConfigDict(
        env_prefix="SATPREP_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    api: ApiConfig = Field(default_factory=ApiConfig)

    log_level: str = "WARNING"
