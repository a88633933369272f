"""Settings for the VibeCircle engine with observability configuration."""

from __future__ import annotations

from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_field(default, *env_names: str):
    if env_names:
        alias = AliasChoices(*env_names) if len(env_names) > 1 else env_names[0]
        return Field(default=default, validation_alias=alias)
    return Field(default=default)


class Settings(BaseSettings):
    environment: str = _env_field("production", "VIBECIRCLE_ENV", "APP_ENV", "ENVIRONMENT")
    service_name: str = _env_field("vibecircle-engine", "VIBECIRCLE_SERVICE_NAME", "SERVICE_NAME")
    git_commit: str = _env_field("unknown", "GIT_COMMIT", "COMMIT_SHA", "SOURCE_VERSION")

    # Write-through collaborator
    redis_url: str = _env_field("redis://localhost:6379/0", "VIBECIRCLE_REDIS_URL", "REDIS_URL")
    persistence_backend: Literal["null", "memory", "redis"] = _env_field("null", "VIBECIRCLE_PERSISTENCE_BACKEND")

    # Discovery queue
    match_daily_quota: int = _env_field(5, "VIBECIRCLE_MATCH_DAILY_QUOTA")
    match_weight_sentiment: float = _env_field(0.25, "VIBECIRCLE_MATCH_WEIGHT_SENTIMENT")
    match_weight_values: float = _env_field(0.25, "VIBECIRCLE_MATCH_WEIGHT_VALUES")
    match_weight_interests: float = _env_field(0.25, "VIBECIRCLE_MATCH_WEIGHT_INTERESTS")
    match_weight_authenticity: float = _env_field(0.25, "VIBECIRCLE_MATCH_WEIGHT_AUTHENTICITY")
    # Local day boundary used for quota resets and authenticity streaks
    quota_timezone: str = _env_field("UTC", "VIBECIRCLE_QUOTA_TIMEZONE")

    # Number of recent vibe ratings averaged into the authenticity score
    authenticity_window: int = _env_field(10, "VIBECIRCLE_AUTHENTICITY_WINDOW")

    obs_enabled: bool = _env_field(True, "OBS_ENABLED")
    obs_log_level: str = _env_field("INFO", "LOG_LEVEL")
    obs_log_sampling_rate_info: float = _env_field(1.0, "LOG_SAMPLING_RATE_INFO")

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("match_daily_quota", "authenticity_window")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("must be >= 0")
        return value

    @field_validator("obs_log_level", mode="before")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        return str(value).upper()

    # Environment helpers
    def is_prod(self) -> bool:
        return self.environment.lower() in ("prod", "production", "live")

    def is_dev(self) -> bool:
        return self.environment.lower() in ("dev", "development")


settings = Settings()

