"""Trend and dispersion statistics over a dimension's cost series."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from analysis.defaults import TREND_MIN_MEAN, TREND_MIN_PERCENTAGE
from contracts.cost_types import DailyCost, TrendResult


def _slope(values: Sequence[Decimal]) -> Decimal | None:
    # Simple linear regression: cost = a + b * t, t = 0..n-1
    n = len(values)
    sum_t = Decimal(sum(range(n)))
    sum_t2 = Decimal(sum(i * i for i in range(n)))
    sum_cost = sum(values, Decimal("0"))
    sum_t_cost = sum((Decimal(i) * v for i, v in enumerate(values)), Decimal("0"))

    denominator = n * sum_t2 - sum_t * sum_t
    if denominator == 0:
        return None
    return (n * sum_t_cost - sum_t * sum_cost) / denominator


def estimate_trend(daily_costs: Sequence[DailyCost]) -> TrendResult:
    """Least-squares trend expressed as a percentage of the series mean per period."""
    values = [point.cost for point in daily_costs]
    if len(values) < 2:
        return TrendResult.stable()

    slope = _slope(values)
    if slope is None:
        return TrendResult.stable()

    mean = sum(values, Decimal("0")) / len(values)
    if abs(mean) < TREND_MIN_MEAN:
        return TrendResult.stable()

    percentage = slope / mean * 100
    if abs(percentage) < TREND_MIN_PERCENTAGE:
        return TrendResult.stable()

    return TrendResult(
        direction="up" if percentage > 0 else "down",
        percentage_per_period=abs(percentage),
    )


def standard_deviation(costs: Sequence[Decimal]) -> Decimal:
    """Population standard deviation (divides by n)."""
    n = len(costs)
    if n < 2:
        return Decimal("0")
    mean = sum(costs, Decimal("0")) / n
    variance = sum(((c - mean) ** 2 for c in costs), Decimal("0")) / n
    return variance.sqrt()


def min_max(daily_costs: Sequence[DailyCost]) -> tuple[DailyCost | None, DailyCost | None]:
    """Return (max_entry, min_entry); the first occurrence wins on ties."""
    if not daily_costs:
        return None, None
    highest = daily_costs[0]
    lowest = daily_costs[0]
    for point in daily_costs[1:]:
        if point.cost > highest.cost:
            highest = point
        if point.cost < lowest.cost:
            lowest = point
    return highest, lowest
