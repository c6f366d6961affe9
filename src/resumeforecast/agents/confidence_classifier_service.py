from __future__ import annotations

from typing import Optional, Sequence

from resumeforecast.agents.forecast_schema import Confidence
from resumeforecast.config import ForecastPolicy


def population_variance(values: Sequence[float]) -> float:
    """Population variance (divides by n). Empty input has zero variance."""
    if not values:
        return 0.0
    mean = sum(values) / len(values)
    return sum((v - mean) ** 2 for v in values) / len(values)


def classify_confidence(
    response_rates: Sequence[float],
    interview_rates: Sequence[float],
    policy: Optional[ForecastPolicy] = None,
) -> Confidence:
    """
    Description: Score forecast reliability from sample size and scatter.
    Layer: L3
    Input: response and interview rate series (same length) + policy
    Output: "high" | "medium" | "low"

    high:   average variance < 100 and at least 8 weeks
    medium: average variance < 200 and at least 5 weeks
    low:    otherwise
    """
    p = policy or ForecastPolicy()
    n = len(response_rates)
    avg_variance = (population_variance(response_rates) + population_variance(interview_rates)) / 2

    if avg_variance < p.high_variance_max and n >= p.high_min_weeks:
        return "high"
    if avg_variance < p.medium_variance_max and n >= p.medium_min_weeks:
        return "medium"
    return "low"
