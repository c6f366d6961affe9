from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from resumeforecast.agents.confidence_classifier_service import classify_confidence
from resumeforecast.agents.forecast_schema import (
    ForecastPoint,
    Trend,
    VariantForecast,
    VariantHistory,
    WeeklyBucket,
)
from resumeforecast.agents.trend_estimator_service import clamp_rate, extrapolate, fit_trend
from resumeforecast.agents.weekly_aggregator_service import aggregate_weekly
from resumeforecast.config import ForecastPolicy
from resumeforecast.core.timeutil import week_key_offset

log = logging.getLogger("assembler")


@dataclass(frozen=True)
class RecommendationContext:
    trend: Trend
    predicted_interview_rate: float
    current_interview_rate: float
    policy: ForecastPolicy


@dataclass(frozen=True)
class RecommendationRule:
    name: str
    condition: Callable[[RecommendationContext], bool]
    template: str


# Evaluated top to bottom; the first match wins. The last rule always matches.
RECOMMENDATION_RULES: Tuple[RecommendationRule, ...] = (
    RecommendationRule(
        name="strong_improving",
        condition=lambda c: c.trend == "improving" and c.predicted_interview_rate > c.policy.strong_interview_rate,
        template="Strong upward trend detected. This version is highly recommended for your next applications.",
    ),
    RecommendationRule(
        name="declining_low",
        condition=lambda c: c.trend == "declining" and c.predicted_interview_rate < c.policy.weak_interview_rate,
        template="Performance is declining. Consider using a different resume version.",
    ),
    RecommendationRule(
        name="predicted_higher",
        condition=lambda c: c.predicted_interview_rate > c.current_interview_rate + c.policy.rate_delta,
        template="Expected to perform better in the coming weeks. Good choice for upcoming applications.",
    ),
    RecommendationRule(
        name="predicted_lower",
        condition=lambda c: c.predicted_interview_rate < c.current_interview_rate - c.policy.rate_delta,
        template="Performance may decline. Monitor closely or consider alternatives.",
    ),
    RecommendationRule(
        name="stable",
        condition=lambda c: True,
        template="Stable performance expected. Suitable for continued use.",
    ),
)


def recommend(context: RecommendationContext) -> str:
    """Return the template of the first matching rule."""
    for rule in RECOMMENDATION_RULES:
        if rule.condition(context):
            return rule.template
    raise AssertionError("recommendation table has no default rule")


def classify_trend(response_slope: float, interview_slope: float, policy: Optional[ForecastPolicy] = None) -> Trend:
    """Average slope above +threshold is improving, below -threshold declining."""
    p = policy or ForecastPolicy()
    avg_slope = (response_slope + interview_slope) / 2
    if avg_slope > p.trend_slope_threshold:
        return "improving"
    if avg_slope < -p.trend_slope_threshold:
        return "declining"
    return "stable"


class ForecastAssemblerService:
    """
    Description: Local forecasting pipeline for a single resume variant.
    Layer: L4
    Input: VariantHistory + reference time
    Output: VariantForecast, or None when there are too few populated weeks
    """

    def __init__(self, policy: Optional[ForecastPolicy] = None) -> None:
        self.policy = policy or ForecastPolicy()

    def assemble(self, history: VariantHistory, *, now: datetime) -> Optional[VariantForecast]:
        """
        Description: Aggregate, fit, classify and compose one variant forecast.
        Layer: L4
        Input: VariantHistory + now
        Output: VariantForecast or None (insufficient data)
        """
        p = self.policy
        buckets = aggregate_weekly(history.records, now=now, lookback_weeks=p.lookback_weeks)
        if len(buckets) < p.min_weeks:
            log.debug(
                "Variant %s has %d populated week(s); need %d",
                history.variant_id, len(buckets), p.min_weeks,
            )
            return None

        response_rates = [b.response_rate for b in buckets]
        interview_rates = [b.interview_rate for b in buckets]

        response_fit = fit_trend(response_rates)
        interview_fit = fit_trend(interview_rates)

        confidence = classify_confidence(response_rates, interview_rates, p)
        trend = classify_trend(response_fit.slope, interview_fit.slope, p)

        n = len(buckets)
        current_response = buckets[-1].response_rate
        current_interview = buckets[-1].interview_rate
        predicted_response = clamp_rate(response_fit.predict(n))
        predicted_interview = clamp_rate(interview_fit.predict(n))

        horizon = range(n, n + p.horizon_weeks)
        chart = self._historical_points(buckets)
        for step, (response, interview) in enumerate(
            zip(extrapolate(response_fit, horizon), extrapolate(interview_fit, horizon)), start=1
        ):
            chart.append(ForecastPoint.predicted(week_key_offset(now, step), response, interview))

        recommendation = recommend(
            RecommendationContext(
                trend=trend,
                predicted_interview_rate=predicted_interview,
                current_interview_rate=current_interview,
                policy=p,
            )
        )

        return VariantForecast(
            variant_id=history.variant_id,
            variant_title=history.variant_title,
            current_response_rate=current_response,
            current_interview_rate=current_interview,
            predicted_response_rate=predicted_response,
            predicted_interview_rate=predicted_interview,
            confidence=confidence,
            trend=trend,
            recommendation=recommendation,
            data_points=n,
            chart=chart,
            source="local",
        )

    @staticmethod
    def _historical_points(buckets: List[WeeklyBucket]) -> List[ForecastPoint]:
        return [ForecastPoint.historical(b.week_key, b.response_rate, b.interview_rate) for b in buckets]
