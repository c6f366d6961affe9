from __future__ import annotations

from typing import Optional, Sequence

from resumeforecast.agents.forecast_schema import VariantForecast


def select_best_variant(forecasts: Sequence[VariantForecast]) -> Optional[str]:
    """
    Description: Pick the variant with the highest predicted interview rate.
    Layer: L5
    Input: completed forecasts in display order
    Output: winning variant_id, or None when there are no forecasts

    Ties go to the first forecast encountered.
    """
    best: Optional[VariantForecast] = None
    for fc in forecasts:
        if best is None or fc.predicted_interview_rate > best.predicted_interview_rate:
            best = fc
    return best.variant_id if best is not None else None
