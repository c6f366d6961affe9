from pathlib import Path


def test_imports_do_not_crash():
    # Public modules must import cleanly.
    from resumeforecast.api.main import app  # noqa: F401
    from resumeforecast.services.forecasting_service import ForecastingService  # noqa: F401
    from resumeforecast.agents.remote_forecast_service import RemoteForecastAdapter  # noqa: F401
    from resumeforecast.services.history_service import SqliteHistorySource  # noqa: F401


def test_env_example_contains_no_real_keys():
    # Prevent accidental secrets from being committed
    root = Path(__file__).resolve().parents[2]
    txt = (root / ".env_example").read_text(encoding="utf-8", errors="ignore")
    assert "sk-" not in txt, "Looks like an API key leaked into .env_example"
    for line in txt.splitlines():
        if line.startswith("FORECAST_SERVICE_API_KEY="):
            assert line.strip() == "FORECAST_SERVICE_API_KEY="
