"""Exceptions raised by the forecasting core."""

from __future__ import annotations

from typing import Optional


class DegenerateSeriesError(AssertionError):
    """
    Raised when a trend fit is requested for a series with fewer than two
    distinct indices.

    This is a programming error: the assembler refuses to fit series shorter
    than the minimum-weeks policy, so it should never surface at runtime.

    Attributes:
        points: Number of points in the offending series
    """

    def __init__(self, points: int):
        self.points = points
        super().__init__(f"Cannot fit a trend to {points} point(s); at least 2 are required")


class RemoteForecastUnavailable(Exception):
    """
    Raised inside the remote adapter when the learned-forecast service cannot
    be used for this request. Never propagated past the adapter.

    Attributes:
        reason: Short description of why the service was unusable
        status_code: HTTP status when the service answered with an error
    """

    def __init__(self, reason: str, status_code: Optional[int] = None):
        self.reason = reason
        self.status_code = status_code
        message = reason if status_code is None else f"{reason} (HTTP {status_code})"
        super().__init__(message)


class HistorySourceError(RuntimeError):
    """Raised when the raw history store cannot be read."""
