"""
Remote Forecast Adapter: agents/remote_forecast_service.py
============================================================
Best-effort call to the learned-forecast service. One batched POST per
forecasting request, bounded by a timeout, no retries. Any failure is reported
as an unavailable result so the caller can fall back to the local pipeline.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Set

import httpx

from resumeforecast.agents.forecast_schema import ForecastPoint, Trend, VariantForecast, VariantHistory
from resumeforecast.agents.remote_forecast_schema import (
    RemoteForecastRequest,
    RemotePrediction,
    RemotePredictionBatch,
    RemoteVariantPayload,
)
from resumeforecast.agents.trend_estimator_service import clamp_rate
from resumeforecast.config import ForecastPolicy, Settings
from resumeforecast.core.errors import RemoteForecastUnavailable
from resumeforecast.core.timeutil import week_key_offset

log = logging.getLogger("remote_forecast")

PREDICT_PATH = "/predict-resume-performance"
HISTORY_POINTS = 4


@dataclass
class RemoteForecastResult:
    ok: bool
    forecasts: List[VariantForecast] = field(default_factory=list)
    error: Optional[str] = None


def remote_trend(pred: RemotePrediction) -> Trend:
    """Trend for remote predictions, which carry no fitted slope."""
    if pred.confidence == "high" and pred.predicted_interview_rate > pred.current_interview_rate:
        return "improving"
    if pred.predicted_interview_rate < pred.current_interview_rate:
        return "declining"
    return "stable"


def remote_recommendation(pred: RemotePrediction) -> str:
    text = pred.recommendation
    if pred.external_factors:
        text += "\n\nExternal Factors: " + ", ".join(pred.external_factors)
    if pred.optimal_timing:
        text += "\n\nOptimal Timing: " + pred.optimal_timing
    return text


def adapt_prediction(
    pred: RemotePrediction,
    history: VariantHistory,
    *,
    now: datetime,
    policy: ForecastPolicy,
) -> VariantForecast:
    """
    Description: Map a remote prediction onto the shared VariantForecast shape.
    Layer: L6
    Input: RemotePrediction + the history sent for it + now + policy
    Output: VariantForecast tagged source="remote"
    """
    current_response = clamp_rate(pred.current_response_rate)
    current_interview = clamp_rate(pred.current_interview_rate)
    predicted_response = clamp_rate(pred.predicted_response_rate)
    predicted_interview = clamp_rate(pred.predicted_interview_rate)

    # The service returns point estimates only, so the chart is flat on both sides.
    chart: List[ForecastPoint] = [
        ForecastPoint.historical(week_key_offset(now, -back), current_response, current_interview)
        for back in range(HISTORY_POINTS, 0, -1)
    ]
    chart.extend(
        ForecastPoint.predicted(week_key_offset(now, ahead), predicted_response, predicted_interview)
        for ahead in range(1, policy.horizon_weeks + 1)
    )

    return VariantForecast(
        variant_id=history.variant_id,
        variant_title=pred.variant_title or history.variant_title,
        current_response_rate=current_response,
        current_interview_rate=current_interview,
        predicted_response_rate=predicted_response,
        predicted_interview_rate=predicted_interview,
        confidence=pred.confidence,
        trend=remote_trend(pred),
        recommendation=remote_recommendation(pred),
        data_points=len(history.records),
        chart=chart,
        source="remote",
    )


class RemoteForecastAdapter:
    """
    Description: Client for the external learned-forecast service.
    Layer: L6
    Input: VariantHistory list for one profile
    Output: RemoteForecastResult (ok + forecasts, or ok=False + error)

    Notes:
      - If forecast_service_url is unset the adapter is always unavailable.
      - Only variants with at least min_raw_applications records are sent.
      - Adoption is all-or-nothing; the caller never mixes remote and local.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        client: Optional[httpx.AsyncClient] = None,
        policy: Optional[ForecastPolicy] = None,
    ) -> None:
        self.s = settings
        self.policy = policy or settings.forecast_policy
        self._client = client

    @property
    def configured(self) -> bool:
        return bool((self.s.forecast_service_url or "").strip())

    async def fetch(self, histories: Sequence[VariantHistory], *, now: datetime) -> RemoteForecastResult:
        """
        Description: Request forecasts for all eligible variants in one call.
        Layer: L6
        Input: histories + now
        Output: RemoteForecastResult; never raises for service failures
        """
        try:
            if not self.configured:
                raise RemoteForecastUnavailable("forecast service not configured")

            eligible = [h for h in histories if len(h.records) >= self.policy.min_raw_applications]
            if not eligible:
                raise RemoteForecastUnavailable("no variants with sufficient data")

            forecasts = await asyncio.wait_for(
                self._request(eligible, now=now),
                timeout=self.s.forecast_timeout_seconds,
            )
        except RemoteForecastUnavailable as e:
            log.warning("Remote forecast unavailable: %s", e)
            return RemoteForecastResult(ok=False, error=str(e))
        except asyncio.TimeoutError:
            log.warning("Remote forecast timed out after %.1fs", self.s.forecast_timeout_seconds)
            return RemoteForecastResult(ok=False, error="timeout")
        except httpx.HTTPError as e:
            log.warning("Remote forecast transport error: %s", e)
            return RemoteForecastResult(ok=False, error=f"transport error: {e}")

        log.info("Remote forecast returned %d variant prediction(s)", len(forecasts))
        return RemoteForecastResult(ok=True, forecasts=forecasts)

    async def _request(self, eligible: List[VariantHistory], *, now: datetime) -> List[VariantForecast]:
        url = self.s.forecast_service_url.rstrip("/") + PREDICT_PATH
        body = RemoteForecastRequest(versions=[RemoteVariantPayload.from_history(h) for h in eligible]).to_wire()
        headers = {"Content-Type": "application/json"}
        if self.s.forecast_service_api_key:
            headers["Authorization"] = f"Bearer {self.s.forecast_service_api_key}"

        log.info("Requesting remote forecasts for %d variant(s)", len(eligible))
        if self._client is not None:
            resp = await self._client.post(url, json=body, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=self.s.forecast_timeout_seconds) as client:
                resp = await client.post(url, json=body, headers=headers)

        if resp.status_code >= 400:
            raise RemoteForecastUnavailable(f"service error: {resp.text[:200]}", status_code=resp.status_code)

        try:
            batch = RemotePredictionBatch.model_validate(resp.json())
        except ValueError as e:
            raise RemoteForecastUnavailable(f"malformed response: {e}") from e

        if not batch.predictions:
            raise RemoteForecastUnavailable("empty prediction batch")

        by_id: Dict[str, VariantHistory] = {h.variant_id: h for h in eligible}
        forecasts: List[VariantForecast] = []
        seen: Set[str] = set()
        for pred in batch.predictions:
            history = by_id.get(pred.variant_id)
            if history is None:
                log.debug("Ignoring prediction for unrequested variant %s", pred.variant_id)
                continue
            # First prediction per variant wins.
            if pred.variant_id in seen:
                log.debug("Ignoring duplicate prediction for variant %s", pred.variant_id)
                continue
            seen.add(pred.variant_id)
            forecasts.append(adapt_prediction(pred, history, now=now, policy=self.policy))

        if not forecasts:
            raise RemoteForecastUnavailable("no predictions matched the requested variants")
        return forecasts
