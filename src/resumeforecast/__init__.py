"""ResumeForecast package.

Forecasts per-variant response and interview rates from a candidate's
application history, with an optional remote learned-forecast service and a
local least-squares fallback.
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
