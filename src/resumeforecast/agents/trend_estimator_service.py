from __future__ import annotations

from typing import List, Sequence

from resumeforecast.agents.forecast_schema import TrendFit
from resumeforecast.core.errors import DegenerateSeriesError

RATE_MIN = 0.0
RATE_MAX = 100.0


def fit_trend(values: Sequence[float]) -> TrendFit:
    """
    Description: Ordinary least squares over bucket index 0..n-1.
    Layer: L3
    Input: one rate series in bucket order
    Output: TrendFit with raw (unclamped) slope and intercept

    Raises DegenerateSeriesError for fewer than two points.
    """
    n = len(values)
    sum_x = sum_y = sum_xy = sum_xx = 0.0
    for x, y in enumerate(values):
        sum_x += x
        sum_y += y
        sum_xy += x * y
        sum_xx += x * x

    denominator = n * sum_xx - sum_x * sum_x
    if n < 2 or denominator == 0:
        raise DegenerateSeriesError(n)

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return TrendFit(slope=slope, intercept=intercept)


def clamp_rate(value: float) -> float:
    """Clamp a percentage to [0, 100]."""
    return max(RATE_MIN, min(RATE_MAX, value))


def extrapolate(fit: TrendFit, indices: Sequence[int]) -> List[float]:
    """Evaluate the fitted line at each index, clamped to a valid rate."""
    return [clamp_rate(fit.predict(i)) for i in indices]
