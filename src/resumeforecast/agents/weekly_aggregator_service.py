from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from resumeforecast.agents.forecast_schema import OutcomeRecord, WeeklyBucket
from resumeforecast.config import ForecastPolicy
from resumeforecast.core.timeutil import ensure_utc, week_key

log = logging.getLogger("aggregator")


def aggregate_weekly(
    records: Iterable[OutcomeRecord],
    *,
    now: datetime,
    lookback_weeks: Optional[int] = None,
) -> List[WeeklyBucket]:
    """
    Description: Group one variant's outcomes into sparse per-week buckets.
    Layer: L2
    Input: OutcomeRecords (any order) + reference time + lookback window
    Output: WeeklyBuckets sorted ascending by ISO week key

    Weeks without applications produce no bucket. An empty result is valid and
    signals insufficient data to the caller.
    """
    if lookback_weeks is None:
        lookback_weeks = ForecastPolicy().lookback_weeks
    start = ensure_utc(now) - timedelta(weeks=lookback_weeks)

    counts: Dict[str, Dict[str, int]] = {}
    dropped = 0
    for rec in records:
        if rec.applied_at < start:
            dropped += 1
            continue
        key = week_key(rec.applied_at)
        c = counts.setdefault(key, {"total": 0, "responses": 0, "interviews": 0})
        c["total"] += 1
        if rec.response_received:
            c["responses"] += 1
        if rec.interview_granted:
            c["interviews"] += 1

    if dropped:
        log.debug("Dropped %d record(s) older than %d weeks", dropped, lookback_weeks)

    buckets: List[WeeklyBucket] = []
    for key in sorted(counts):
        c = counts[key]
        total = c["total"]
        buckets.append(
            WeeklyBucket(
                week_key=key,
                total=total,
                responses=c["responses"],
                interviews=c["interviews"],
                response_rate=c["responses"] / total * 100.0,
                interview_rate=c["interviews"] / total * 100.0,
            )
        )
    return buckets
