"""Cumulative-cost cutoff: keep the dimensions that explain most of the spend."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from contracts.cost_types import AggregatedDimension


def _check_ratio(threshold_ratio: float | Decimal) -> Decimal:
    ratio = Decimal(str(threshold_ratio))
    if not (Decimal("0") < ratio <= Decimal("1")):
        raise ValueError(f"threshold_ratio must be in (0, 1], got {threshold_ratio}")
    return ratio


def sort_by_cost(dimensions: Iterable[AggregatedDimension]) -> list[AggregatedDimension]:
    """Descending by total cost; ties keep their input order."""
    return sorted(dimensions, key=lambda d: d.total_cost, reverse=True)


def split_significant(
    dimensions: Iterable[AggregatedDimension],
    threshold_ratio: float | Decimal,
) -> tuple[list[AggregatedDimension], list[AggregatedDimension]]:
    """Return (included, excluded) for the given cumulative share.

    The dimension whose running sum first reaches the target is included.
    When the overall total is zero every dimension is included.
    """
    ratio = _check_ratio(threshold_ratio)
    ordered = sort_by_cost(dimensions)
    total = sum((d.total_cost for d in ordered), Decimal("0"))
    if total == 0:
        return ordered, []

    target = total * ratio
    running = Decimal("0")
    for idx, dim in enumerate(ordered):
        running += dim.total_cost
        if running >= target:
            return ordered[: idx + 1], ordered[idx + 1 :]
    return ordered, []


def select_significant(
    dimensions: Iterable[AggregatedDimension],
    threshold_ratio: float | Decimal,
) -> list[AggregatedDimension]:
    return split_significant(dimensions, threshold_ratio)[0]
