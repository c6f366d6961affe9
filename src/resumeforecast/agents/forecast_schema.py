from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from resumeforecast.core.timeutil import ensure_utc, utc_now

Confidence = Literal["high", "medium", "low"]
Trend = Literal["improving", "declining", "stable"]
ForecastSource = Literal["remote", "local"]


class OutcomeRecord(BaseModel):
    """
    Description: One submitted application and its outcome, tied to a resume variant.
    Layer: L1
    Input: raw history row
    Output: normalized outcome record

    response_received and interview_granted are tracked independently.
    """

    model_config = ConfigDict(extra="ignore")

    variant_id: str
    applied_at: datetime
    response_received: bool = False
    interview_granted: bool = False

    # Categorical context forwarded to the remote service
    job_title: Optional[str] = None
    company: Optional[str] = None
    response_time_hours: Optional[float] = None

    @field_validator("applied_at")
    @classmethod
    def _normalize_tz(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class VariantHistory(BaseModel):
    """
    Description: Raw application history for a single resume variant.
    Layer: L1
    Input: history source rows
    Output: unit of work for remote and local forecasting
    """

    model_config = ConfigDict(extra="forbid")

    variant_id: str
    variant_title: str = "Untitled"
    records: List[OutcomeRecord] = Field(default_factory=list)


class WeeklyBucket(BaseModel):
    """
    Description: One calendar week of aggregated outcomes for a variant.
    Layer: L2
    Input: OutcomeRecords falling in the same ISO week
    Output: counts and percentage rates
    """

    model_config = ConfigDict(extra="forbid")

    week_key: str
    total: int = Field(ge=1)
    responses: int = Field(ge=0)
    interviews: int = Field(ge=0)
    response_rate: float = Field(ge=0.0, le=100.0)
    interview_rate: float = Field(ge=0.0, le=100.0)


class TrendFit(BaseModel):
    """Least-squares line over bucket index. Coefficients are raw, not clamped."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    slope: float
    intercept: float

    def predict(self, index: float) -> float:
        return self.slope * index + self.intercept


class ForecastPoint(BaseModel):
    """
    Description: One entry of the chart series plotted by the dashboard.
    Layer: L4
    Input: a weekly bucket (historical) or a fitted line (prediction)
    Output: point carrying either actual or predicted values, never both
    """

    model_config = ConfigDict(extra="forbid")

    week_label: str
    actual_response: Optional[float] = None
    actual_interview: Optional[float] = None
    predicted_response: Optional[float] = None
    predicted_interview: Optional[float] = None
    is_prediction: bool = False

    @model_validator(mode="after")
    def _check_purity(self) -> "ForecastPoint":
        has_actual = self.actual_response is not None or self.actual_interview is not None
        has_predicted = self.predicted_response is not None or self.predicted_interview is not None
        if has_actual and has_predicted:
            raise ValueError("a chart point cannot carry both actual and predicted values")
        if self.is_prediction and has_actual:
            raise ValueError("prediction points must only carry predicted values")
        if not self.is_prediction and has_predicted:
            raise ValueError("historical points must only carry actual values")
        return self

    @classmethod
    def historical(cls, week_label: str, response: float, interview: float) -> "ForecastPoint":
        return cls(week_label=week_label, actual_response=response, actual_interview=interview, is_prediction=False)

    @classmethod
    def predicted(cls, week_label: str, response: float, interview: float) -> "ForecastPoint":
        return cls(week_label=week_label, predicted_response=response, predicted_interview=interview, is_prediction=True)


class VariantForecast(BaseModel):
    """
    Description: Forecast for one resume variant, shared by remote and local paths.
    Layer: L4
    Input: assembler output or adapted remote prediction
    Output: consumer-facing forecast record

    `source` records provenance for diagnostics and is never serialized.
    """

    model_config = ConfigDict(extra="forbid")

    variant_id: str
    variant_title: str

    current_response_rate: float = Field(ge=0.0, le=100.0)
    current_interview_rate: float = Field(ge=0.0, le=100.0)
    predicted_response_rate: float = Field(ge=0.0, le=100.0)
    predicted_interview_rate: float = Field(ge=0.0, le=100.0)

    confidence: Confidence
    trend: Trend
    recommendation: str
    data_points: int = Field(ge=0)
    chart: List[ForecastPoint] = Field(default_factory=list)

    source: ForecastSource = Field(default="local", exclude=True)


class ForecastReport(BaseModel):
    """
    Description: Result of one forecasting request for a profile.
    Layer: L5
    Input: all variant forecasts + best-variant selection
    Output: payload returned to callers and the HTTP API
    """

    model_config = ConfigDict(extra="forbid")

    profile_id: str
    forecasts: List[VariantForecast] = Field(default_factory=list)
    best_variant_id: Optional[str] = None
    source: ForecastSource = Field(default="local", exclude=True)
    generated_at: datetime = Field(default_factory=utc_now)
