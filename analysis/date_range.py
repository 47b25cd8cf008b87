"""Relative lookback -> absolute reporting window.

All arithmetic happens on UTC calendar dates so that the host timezone never
shifts a window by a day.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from typing import Any

from analysis.defaults import DEFAULT_DAILY_LOOK_BACK, DEFAULT_MONTHLY_LOOK_BACK
from contracts.cost_types import DateRange, Granularity


def _utc_today(now: datetime | None) -> date:
    current = now or datetime.now(UTC)
    if current.tzinfo is None:
        current = current.replace(tzinfo=UTC)
    return current.astimezone(UTC).date()


def month_start(dt: date) -> date:
    """First day of the month for a given date."""
    return date(dt.year, dt.month, 1)


def shift_months(dt: date, months: int) -> date:
    """First day of the month `months` away from `dt` (negative goes back)."""
    index = dt.year * 12 + (dt.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def calculate_date_range(look_back: int, granularity: Any, *, now: datetime | None = None) -> DateRange:
    """Return the absolute window covering `look_back` periods.

    DAILY ends yesterday and spans `look_back` days inclusive; `look_back == 0`
    yields an inverted range (start one day after end), which callers treat
    as "no data". MONTHLY ends on the first day of the current month and
    starts `look_back` months earlier.
    """
    if look_back < 0:
        raise ValueError(f"look_back must be non-negative, got {look_back}")

    gran = Granularity.parse(granularity)
    today = _utc_today(now)

    if gran is Granularity.DAILY:
        end = today - timedelta(days=1)
        start = end - timedelta(days=look_back - 1)
        return DateRange(start=start, end=end)

    end = month_start(today)
    return DateRange(start=shift_months(end, -look_back), end=end)


def default_look_back(granularity: Any) -> int:
    """Default number of periods when the caller gives none."""
    if Granularity.parse(granularity) is Granularity.DAILY:
        return DEFAULT_DAILY_LOOK_BACK
    return DEFAULT_MONTHLY_LOOK_BACK
