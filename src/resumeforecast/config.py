from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def repo_root() -> Path:
    """
    Description: Resolve repository root from within src/ package.
    Layer: L0
    Input: None
    Output: Absolute Path to repo root
    """
    # src/resumeforecast/config.py -> src/resumeforecast -> src -> repo root
    return Path(__file__).resolve().parents[2]


class ForecastPolicy(BaseModel):
    """
    Description: Policy constants for the local forecasting pipeline.
    Layer: L0
    Input: defaults or FORECAST_POLICY__<FIELD> environment overrides
    Output: thresholds consumed by aggregator, classifier and assembler

    These values reproduce observed dashboard behaviour. They are not
    statistically derived.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    # Aggregation
    lookback_weeks: int = Field(default=12, ge=1)
    min_weeks: int = Field(default=3, ge=2)
    min_raw_applications: int = Field(default=3, ge=1)

    # Confidence tiers (variance in squared percentage points)
    high_variance_max: float = 100.0
    high_min_weeks: int = 8
    medium_variance_max: float = 200.0
    medium_min_weeks: int = 5

    # Trend (percentage points per week)
    trend_slope_threshold: float = 2.0

    # Recommendation rules (percentage points)
    strong_interview_rate: float = 30.0
    weak_interview_rate: float = 15.0
    rate_delta: float = 5.0

    horizon_weeks: int = Field(default=4, ge=1)


class Settings(BaseSettings):
    """
    Description: Central configuration loader for ResumeForecast.
    Layer: L0
    Input: .env in repo root + environment variables
    Output: Strongly typed settings object
    """

    model_config = SettingsConfigDict(
        env_file=str(repo_root() / ".env"),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Remote learned-forecast service
    forecast_service_url: Optional[str] = None
    forecast_service_api_key: Optional[str] = None
    forecast_timeout_seconds: float = 10.0

    # Storage
    database_url: str = "sqlite:///outputs/resumeforecast.db"

    # Runtime
    log_level: str = "INFO"
    environment: str = "local"

    forecast_policy: ForecastPolicy = Field(default_factory=ForecastPolicy)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Description: Cached settings accessor for FastAPI.
    Layer: L0
    Input: None
    Output: Settings
    """
    return Settings()
