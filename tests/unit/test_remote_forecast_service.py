import asyncio
import json

import httpx

from conftest import NOW, build_history
from resumeforecast.agents.forecast_schema import VariantHistory
from resumeforecast.agents.remote_forecast_service import RemoteForecastAdapter
from resumeforecast.config import Settings
from resumeforecast.core.timeutil import week_key_offset


def _settings(**overrides) -> Settings:
    values = {"forecast_service_url": "https://forecast.example.test", "forecast_timeout_seconds": 2.0}
    values.update(overrides)
    return Settings(**values)


def _adapter(handler, **overrides) -> RemoteForecastAdapter:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RemoteForecastAdapter(_settings(**overrides), client=client)


def _prediction(variant_id="A", **fields):
    pred = {
        "versionId": variant_id,
        "versionTitle": f"Resume {variant_id}",
        "currentResponseRate": 30.0,
        "predictedResponseRate": 36.0,
        "currentInterviewRate": 12.0,
        "predictedInterviewRate": 18.0,
        "confidence": "high",
        "recommendation": "Use this version for data roles.",
    }
    pred.update(fields)
    return pred


def _histories():
    return [
        build_history("A", [(4, 2, 1), (4, 2, 1), (4, 3, 1)]),
        build_history("B", [(3, 1, 0), (3, 2, 1), (3, 1, 1)]),
    ]


def test_successful_batch_is_adapted_to_shared_shape() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "predictions": [
                    _prediction(
                        "A",
                        externalFactors=["Q1 hiring surge", "Tech layoffs"],
                        optimalTiming="Apply Tuesday mornings",
                    ),
                    _prediction("B", confidence="medium", predictedInterviewRate=150.0),
                ]
            },
        )

    result = asyncio.run(_adapter(handler, forecast_service_api_key="k-1").fetch(_histories(), now=NOW))

    assert result.ok is True
    assert seen["url"] == "https://forecast.example.test/predict-resume-performance"
    assert seen["auth"] == "Bearer k-1"
    sent = seen["body"]["versions"]
    assert [v["versionId"] for v in sent] == ["A", "B"]
    app = sent[0]["applications"][0]
    assert set(app) == {
        "date", "month", "dayOfWeek", "responseReceived", "interviewGranted",
        "responseTimeHours", "jobTitle", "company",
    }
    assert app["month"] == 1  # February, 0-based
    assert app["jobTitle"] == "Data Engineer"

    a, b = result.forecasts
    assert a.source == "remote"
    assert a.trend == "improving"
    assert a.data_points == 12
    assert a.recommendation == (
        "Use this version for data roles."
        "\n\nExternal Factors: Q1 hiring surge, Tech layoffs"
        "\n\nOptimal Timing: Apply Tuesday mornings"
    )
    assert b.predicted_interview_rate == 100.0
    assert b.trend == "stable"
    assert b.recommendation == "Use this version for data roles."


def test_remote_chart_is_flat_history_then_horizon() -> None:
    def handler(request):
        return httpx.Response(200, json={"predictions": [_prediction("A")]})

    result = asyncio.run(_adapter(handler).fetch(_histories()[:1], now=NOW))
    chart = result.forecasts[0].chart

    assert [p.is_prediction for p in chart] == [False] * 4 + [True] * 4
    assert [p.week_label for p in chart] == [week_key_offset(NOW, i) for i in (-4, -3, -2, -1, 1, 2, 3, 4)]
    assert {p.actual_interview for p in chart[:4]} == {12.0}
    assert {p.predicted_interview for p in chart[4:]} == {18.0}


def test_declining_remote_trend() -> None:
    def handler(request):
        return httpx.Response(200, json={"predictions": [_prediction("A", predictedInterviewRate=8.0)]})

    result = asyncio.run(_adapter(handler).fetch(_histories(), now=NOW))
    assert result.forecasts[0].trend == "declining"


def test_variants_below_minimum_history_are_not_sent() -> None:
    sent_ids = []

    def handler(request):
        sent_ids.extend(v["versionId"] for v in json.loads(request.content)["versions"])
        return httpx.Response(200, json={"predictions": [_prediction("A")]})

    thin = VariantHistory(variant_id="C", records=build_history("C", [(2, 1, 0)]).records)
    asyncio.run(_adapter(handler).fetch(_histories()[:1] + [thin], now=NOW))
    assert sent_ids == ["A"]


def test_unconfigured_service_is_unavailable() -> None:
    result = asyncio.run(RemoteForecastAdapter(Settings(forecast_service_url=None)).fetch(_histories(), now=NOW))
    assert result.ok is False
    assert "not configured" in result.error


def test_no_eligible_variants_is_unavailable() -> None:
    def handler(request):  # pragma: no cover - must not be called
        raise AssertionError("service should not be called")

    thin = build_history("C", [(2, 1, 0)])
    result = asyncio.run(_adapter(handler).fetch([thin], now=NOW))
    assert result.ok is False


def test_http_error_status_is_unavailable() -> None:
    def handler(request):
        return httpx.Response(429, json={"error": "Rate limit exceeded"})

    result = asyncio.run(_adapter(handler).fetch(_histories(), now=NOW))
    assert result.ok is False
    assert "429" in result.error


def test_missing_or_empty_predictions_are_unavailable() -> None:
    for payload in ({"error": "nope"}, {"predictions": []}, {"predictions": [{"versionId": "A"}]}, []):
        result = asyncio.run(_adapter(lambda r, p=payload: httpx.Response(200, json=p)).fetch(_histories(), now=NOW))
        assert result.ok is False, payload


def test_non_json_body_is_unavailable() -> None:
    result = asyncio.run(
        _adapter(lambda r: httpx.Response(200, text="<html>gateway</html>")).fetch(_histories(), now=NOW)
    )
    assert result.ok is False
    assert "malformed" in result.error


def test_predictions_for_unknown_variants_are_ignored() -> None:
    def handler(request):
        return httpx.Response(200, json={"predictions": [_prediction("Z")]})

    result = asyncio.run(_adapter(handler).fetch(_histories(), now=NOW))
    assert result.ok is False


def test_transport_error_is_unavailable() -> None:
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = asyncio.run(_adapter(handler).fetch(_histories(), now=NOW))
    assert result.ok is False
    assert "transport" in result.error


def test_slow_service_times_out() -> None:
    async def handler(request):
        await asyncio.sleep(1.0)
        return httpx.Response(200, json={"predictions": [_prediction("A")]})

    result = asyncio.run(_adapter(handler, forecast_timeout_seconds=0.05).fetch(_histories(), now=NOW))
    assert result.ok is False
    assert result.error == "timeout"


def test_duplicate_predictions_keep_the_first_per_variant() -> None:
    def handler(request):
        return httpx.Response(
            200,
            json={
                "predictions": [
                    _prediction("A", predictedInterviewRate=10.0),
                    _prediction("A", predictedInterviewRate=90.0),
                    _prediction("B"),
                ]
            },
        )

    result = asyncio.run(_adapter(handler).fetch(_histories(), now=NOW))

    assert result.ok is True
    assert [f.variant_id for f in result.forecasts] == ["A", "B"]
    assert result.forecasts[0].predicted_interview_rate == 10.0
