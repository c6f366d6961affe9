"""
src/resumeforecast/api/main.py
==============================
FastAPI surface for resume variant forecasting.
  - /health                           → GET, liveness + remote service configuration
  - /profiles/{profile_id}/forecasts  → GET, per-variant forecasts + best variant
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from resumeforecast import __version__
from resumeforecast.agents.forecast_schema import ForecastReport
from resumeforecast.agents.remote_forecast_service import RemoteForecastAdapter
from resumeforecast.config import get_settings
from resumeforecast.core.errors import HistorySourceError
from resumeforecast.services.forecasting_service import ForecastingService
from resumeforecast.services.history_service import SqliteHistorySource

# ── Logging ──────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=getattr(logging, get_settings().log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
log = logging.getLogger("api")


@lru_cache(maxsize=1)
def get_forecasting_service() -> ForecastingService:
    """
    Description: Build the process-wide ForecastingService from settings.
    Layer: L0
    Input: Settings
    Output: ForecastingService (SQLite history, remote adapter when configured)
    """
    s = get_settings()
    history = SqliteHistorySource(s.database_url)
    history.init_schema()
    remote: Optional[RemoteForecastAdapter] = RemoteForecastAdapter(s) if s.forecast_service_url else None
    return ForecastingService(history=history, remote=remote, policy=s.forecast_policy)


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("ResumeForecast API starting up (env=%s)", get_settings().environment)
    yield
    log.info("ResumeForecast API shutting down")


app = FastAPI(
    title="ResumeForecast API",
    version=__version__,
    description="Resume variant performance forecasting",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Endpoints ─────────────────────────────────────────────────────────────────

@app.get("/health")
async def health():
    return {"status": "ok", "remote_forecast_configured": bool(get_settings().forecast_service_url)}


@app.get("/profiles/{profile_id}/forecasts", response_model=ForecastReport)
async def get_forecasts(profile_id: str, service: ForecastingService = Depends(get_forecasting_service)):
    try:
        report = await service.forecast_profile(profile_id)
    except HistorySourceError as e:
        log.exception("History source failed for profile %s", profile_id)
        raise HTTPException(503, "application history is temporarily unavailable") from e
    log.info(
        "Profile %s: %d forecast(s) via %s, best=%s",
        profile_id, len(report.forecasts), report.source, report.best_variant_id,
    )
    return report
