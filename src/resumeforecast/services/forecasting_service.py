from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from resumeforecast.agents.best_variant_service import select_best_variant
from resumeforecast.agents.forecast_assembler_service import ForecastAssemblerService
from resumeforecast.agents.forecast_schema import ForecastReport, VariantForecast, VariantHistory
from resumeforecast.agents.remote_forecast_service import RemoteForecastAdapter
from resumeforecast.config import ForecastPolicy
from resumeforecast.core.timeutil import ensure_utc, utc_now
from resumeforecast.services.history_service import HistorySource

log = logging.getLogger("forecasting")


class ForecastingService:
    """
    Description: Resume variant forecasting for one candidate profile.
    Layer: L5
    Input: profile_id (history via HistorySource, optional remote adapter)
    Output: ForecastReport with per-variant forecasts and the best variant

    Notes:
      - The remote adapter is tried once per request.
      - If it is unavailable every variant is forecast locally.
      - History source failures propagate to the caller.
    """

    def __init__(
        self,
        *,
        history: HistorySource,
        remote: Optional[RemoteForecastAdapter] = None,
        policy: Optional[ForecastPolicy] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.history = history
        self.remote = remote
        self.policy = policy or ForecastPolicy()
        self.assembler = ForecastAssemblerService(self.policy)
        self._clock = clock

    async def forecast_profile(self, profile_id: str, *, now: Optional[datetime] = None) -> ForecastReport:
        """
        Description: Produce forecasts for every variant of a profile.
        Layer: L5
        Input: profile_id + optional reference time
        Output: ForecastReport
        """
        now = ensure_utc(now or self._clock())
        # History reads are blocking; keep them off the event loop.
        histories = await asyncio.to_thread(
            self.history.load_variants, profile_id, min_records=self.policy.min_raw_applications
        )
        log.info("Forecasting %d variant(s) for profile %s", len(histories), profile_id)

        forecasts: List[VariantForecast] = []
        source = "local"
        if self.remote is not None and histories:
            result = await self.remote.fetch(histories, now=now)
            if result.ok:
                forecasts = result.forecasts
                source = "remote"
            else:
                log.info("Falling back to local forecasts: %s", result.error)

        if source == "local":
            forecasts = self.forecast_local(histories, now=now)

        best = select_best_variant(forecasts)
        return ForecastReport(
            profile_id=profile_id,
            forecasts=forecasts,
            best_variant_id=best,
            source=source,
            generated_at=now,
        )

    def forecast_local(self, histories: Sequence[VariantHistory], *, now: datetime) -> List[VariantForecast]:
        """
        Description: Run the local pipeline for each variant independently.
        Layer: L4
        Input: histories + now
        Output: forecasts for variants with enough populated weeks, input order kept
        """
        out: List[VariantForecast] = []
        for history in histories:
            fc = self.assembler.assemble(history, now=now)
            if fc is not None:
                out.append(fc)
        skipped = len(histories) - len(out)
        if skipped:
            log.info("Skipped %d variant(s) with insufficient weekly data", skipped)
        return out
