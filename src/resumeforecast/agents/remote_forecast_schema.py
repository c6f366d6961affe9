from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from resumeforecast.agents.forecast_schema import Confidence, OutcomeRecord, VariantHistory


class RemoteApplication(BaseModel):
    """
    Description: One application as sent to the learned-forecast service.
    Layer: L6
    Input: OutcomeRecord
    Output: camelCase wire object

    month is 0-based and day_of_week counts from Sunday = 0, matching the
    service's existing contract.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    date: datetime
    month: int
    day_of_week: int
    response_received: bool
    interview_granted: bool
    response_time_hours: Optional[float] = None
    job_title: Optional[str] = None
    company: Optional[str] = None

    @classmethod
    def from_record(cls, rec: OutcomeRecord) -> "RemoteApplication":
        applied = rec.applied_at
        return cls(
            date=applied,
            month=applied.month - 1,
            day_of_week=(applied.weekday() + 1) % 7,
            response_received=rec.response_received,
            interview_granted=rec.interview_granted,
            response_time_hours=rec.response_time_hours,
            job_title=rec.job_title,
            company=rec.company,
        )


class RemoteVariantPayload(BaseModel):
    """Description: One variant's raw history in the batched request."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    version_id: str
    version_title: str
    applications: List[RemoteApplication] = Field(default_factory=list)

    @classmethod
    def from_history(cls, history: VariantHistory) -> "RemoteVariantPayload":
        return cls(
            version_id=history.variant_id,
            version_title=history.variant_title,
            applications=[RemoteApplication.from_record(r) for r in history.records],
        )


class RemoteForecastRequest(BaseModel):
    """Description: Batched request body sent once per forecasting request."""

    versions: List[RemoteVariantPayload]

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class RemotePrediction(BaseModel):
    """
    Description: One variant prediction returned by the learned-forecast service.
    Layer: L6
    Input: service JSON (camelCase, versionId/variantId accepted)
    Output: validated prediction, adapted later into VariantForecast
    """

    model_config = ConfigDict(extra="ignore")

    variant_id: str = Field(validation_alias=AliasChoices("variantId", "versionId", "variant_id"))
    variant_title: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("variantTitle", "versionTitle", "variant_title")
    )
    current_response_rate: float = Field(validation_alias=AliasChoices("currentResponseRate", "current_response_rate"))
    predicted_response_rate: float = Field(
        validation_alias=AliasChoices("predictedResponseRate", "predicted_response_rate")
    )
    current_interview_rate: float = Field(
        validation_alias=AliasChoices("currentInterviewRate", "current_interview_rate")
    )
    predicted_interview_rate: float = Field(
        validation_alias=AliasChoices("predictedInterviewRate", "predicted_interview_rate")
    )
    confidence: Confidence
    recommendation: str
    external_factors: Optional[List[str]] = Field(
        default=None, validation_alias=AliasChoices("externalFactors", "external_factors")
    )
    optimal_timing: Optional[str] = Field(default=None, validation_alias=AliasChoices("optimalTiming", "optimal_timing"))


class RemotePredictionBatch(BaseModel):
    """Description: Service response envelope; `predictions` is required."""

    model_config = ConfigDict(extra="ignore")

    predictions: List[RemotePrediction]
