"""
Human-readable cost summaries.

One header line naming the covered period, then one line per significant
dimension:

    EC2: Total cost for 2 days $22.00 (100.0%), average $11.00/day (±$1.00),
    trending up at 18.2% per day, max cost was on 2024-01-02 at $12.00,
    min cost was on 2024-01-01 at $10.00

(wrapped here; each dimension is a single line). Two-level groupings add up to
`max_sub_dimensions` indented child lines under each parent.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from analysis.aggregation import aggregate, group_by_parent, roll_up_parents, total_of
from analysis.defaults import MAX_SUB_DIMENSIONS, NO_DATA_MESSAGE, SUMMARY_SIGNIFICANCE_THRESHOLD
from analysis.significance import select_significant, sort_by_cost
from analysis.trend import estimate_trend, min_max, standard_deviation
from contracts.cost_types import AggregatedDimension, CostRecord, Granularity, TrendResult

_MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

_CENT = Decimal("0.01")
_TENTH = Decimal("0.1")
_SUB_INDENT = "  "


def money(value: Decimal) -> str:
    return str(value.quantize(_CENT, rounding=ROUND_HALF_UP))


def one_decimal(value: Decimal) -> str:
    return str(value.quantize(_TENTH, rounding=ROUND_HALF_UP))


def format_period_date(value: str, granularity: Any) -> str:
    """ISO date for DAILY, "January 2024" for MONTHLY. Unparseable input is returned as is."""
    if Granularity.parse(granularity) is Granularity.DAILY:
        return value
    try:
        parsed = date.fromisoformat(value[:10])
    except (TypeError, ValueError):
        return value
    return f"{_MONTH_NAMES[parsed.month - 1]} {parsed.year}"


def format_header(
    title: str,
    start: str,
    end: str,
    granularity: Any,
    group_by: Sequence[str] | None = None,
) -> str:
    header = (
        f"{title} data range: "
        f"{format_period_date(start, granularity)} - {format_period_date(end, granularity)}"
    )
    if group_by:
        header += f" grouped by {', '.join(group_by)}"
    return header


def format_trend(trend: TrendResult, granularity: Granularity) -> str:
    if trend.direction == "stable":
        return "stable"
    return f"{trend.direction} at {one_decimal(trend.percentage_per_period)}% per {granularity.unit}"


def format_dimension_line(
    dim: AggregatedDimension,
    *,
    total_cost: Decimal,
    period_count: int,
    granularity: Any,
) -> str:
    gran = Granularity.parse(granularity)
    share = dim.total_cost / total_cost * 100 if total_cost else Decimal("0")
    average = dim.total_cost / period_count if period_count else Decimal("0")
    spread = standard_deviation(dim.costs())
    trend = estimate_trend(dim.daily_costs)
    highest, lowest = min_max(dim.daily_costs)

    line = (
        f"{dim.key}: Total cost for {period_count} {gran.unit_plural} ${money(dim.total_cost)} "
        f"({one_decimal(share)}%), average ${money(average)}/{gran.unit} (±${money(spread)}), "
        f"trending {format_trend(trend, gran)}"
    )
    if highest is not None and lowest is not None:
        line += (
            f", max cost was on {format_period_date(highest.date, gran)} at ${money(highest.cost)}"
            f", min cost was on {format_period_date(lowest.date, gran)} at ${money(lowest.cost)}"
        )
    return line


def render_summary(
    significant: Sequence[AggregatedDimension],
    *,
    total_cost: Decimal,
    period_count: int,
    granularity: Any,
    date_range_label: str,
    sub_dimensions: Mapping[str, Sequence[AggregatedDimension]] | None = None,
    max_sub_dimensions: int = MAX_SUB_DIMENSIONS,
) -> str:
    """Render the header and one line per significant dimension.

    `sub_dimensions` maps a parent key to its children, already sorted by cost.
    Child percentages are relative to the parent's total.
    """
    lines = [date_range_label]
    for dim in significant:
        lines.append(
            format_dimension_line(
                dim, total_cost=total_cost, period_count=period_count, granularity=granularity
            )
        )
        if not sub_dimensions:
            continue
        for child in list(sub_dimensions.get(dim.key, ()))[:max_sub_dimensions]:
            child_line = format_dimension_line(
                child, total_cost=dim.total_cost, period_count=period_count, granularity=granularity
            )
            lines.append(_SUB_INDENT + child_line)
    return "\n".join(lines)


def summarize_cost_records(
    records: Sequence[CostRecord],
    granularity: Any,
    *,
    group_by: Sequence[str] | None = None,
    title: str = "Cost",
    threshold: float = SUMMARY_SIGNIFICANCE_THRESHOLD,
    max_sub_dimensions: int = MAX_SUB_DIMENSIONS,
) -> str:
    """Aggregate, filter and render a chronological sequence of cost records."""
    if not records:
        return NO_DATA_MESSAGE

    two_level = bool(group_by) and len(group_by or ()) >= 2
    sub_dimensions: dict[str, list[AggregatedDimension]] | None = None
    if two_level:
        parents = roll_up_parents(records)
        children = group_by_parent(records)
        sub_dimensions = {parent: sort_by_cost(kids.values()) for parent, kids in children.items()}
    else:
        parents = aggregate(records)

    header = format_header(title, records[0].date, records[-1].date, granularity, group_by)
    return render_summary(
        select_significant(parents.values(), threshold),
        total_cost=total_of(parents),
        period_count=len(records),
        granularity=granularity,
        date_range_label=header,
        sub_dimensions=sub_dimensions,
        max_sub_dimensions=max_sub_dimensions,
    )
