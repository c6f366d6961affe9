from resumeforecast.agents.best_variant_service import select_best_variant
from resumeforecast.agents.forecast_schema import VariantForecast


def _forecast(variant_id: str, predicted_interview: float) -> VariantForecast:
    return VariantForecast(
        variant_id=variant_id,
        variant_title=variant_id,
        current_response_rate=20.0,
        current_interview_rate=10.0,
        predicted_response_rate=25.0,
        predicted_interview_rate=predicted_interview,
        confidence="medium",
        trend="stable",
        recommendation="Stable performance expected. Suitable for continued use.",
        data_points=5,
    )


def test_first_maximum_wins_ties() -> None:
    forecasts = [_forecast(v, r) for v, r in zip("ABCD", [20.0, 45.0, 45.0, 10.0])]
    assert select_best_variant(forecasts) == "B"


def test_single_forecast_is_best() -> None:
    assert select_best_variant([_forecast("only", 0.0)]) == "only"


def test_no_forecasts_means_no_winner() -> None:
    assert select_best_variant([]) is None
