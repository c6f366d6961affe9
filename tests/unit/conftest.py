from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Sequence, Tuple

import pytest

from resumeforecast.agents.forecast_schema import OutcomeRecord, VariantHistory

NOW = datetime(2026, 3, 4, 12, 0, tzinfo=timezone.utc)


def build_records(variant_id: str, weeks: Sequence[Tuple[int, int, int]], *, now: datetime = NOW) -> List[OutcomeRecord]:
    """weeks: (total, responses, interviews) per week, oldest first, newest in the week of `now`."""
    records: List[OutcomeRecord] = []
    last = len(weeks) - 1
    for i, (total, responses, interviews) in enumerate(weeks):
        applied = now - timedelta(weeks=last - i)
        for j in range(total):
            records.append(
                OutcomeRecord(
                    variant_id=variant_id,
                    applied_at=applied - timedelta(minutes=j),
                    response_received=j < responses,
                    interview_granted=j < interviews,
                    job_title="Data Engineer",
                    company="Acme",
                )
            )
    return records


def build_history(variant_id: str, weeks: Sequence[Tuple[int, int, int]], title: str = "", *, now: datetime = NOW) -> VariantHistory:
    return VariantHistory(variant_id=variant_id, variant_title=title or f"Resume {variant_id}", records=build_records(variant_id, weeks, now=now))


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def linear_history() -> VariantHistory:
    # response 10/20/30 %, interview 5/10/15 %
    return build_history("A", [(20, 2, 1), (20, 4, 2), (20, 6, 3)], "Linear")
