"""Centralized default values for the cost-analysis engine.

Keep these values deterministic and stable across runs. Runtime overrides come
from :class:`infra.config.AnalysisConfig`.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Final

# Cost entries below this amount are treated as noise and never aggregated.
NOISE_FLOOR: Final[Decimal] = Decimal("0.01")

# Share of total cost the significant set must cover. The text summary and the
# chart use different cutoffs; keep them independent.
SUMMARY_SIGNIFICANCE_THRESHOLD: Final[float] = 0.95
CHART_SIGNIFICANCE_THRESHOLD: Final[float] = 0.90

# Trend classification guards.
TREND_MIN_MEAN: Final[Decimal] = Decimal("0.01")
TREND_MIN_PERCENTAGE: Final[Decimal] = Decimal("0.1")

# Two-level groupings list at most this many children under each parent.
MAX_SUB_DIMENSIONS: Final[int] = 10

# Separator used to join two-level group keys ("Amazon EC2, BoxUsage:t3.micro").
COMPOSITE_KEY_SEPARATOR: Final[str] = ", "

NO_DATA_MESSAGE: Final[str] = "No cost data found for the specified period."

OTHER_SERIES_NAME: Final[str] = "Other"
CHART_WIDTH: Final[int] = 800
CHART_HEIGHT: Final[int] = 400

DEFAULT_DAILY_LOOK_BACK: Final[int] = 30
DEFAULT_MONTHLY_LOOK_BACK: Final[int] = 6
