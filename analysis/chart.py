"""
Chart specifications (Vega-Lite v5) built from cost records and metric datapoints.

Cost charts are stacked bars, one series per significant dimension plus an
"Other" series for the remainder. Metric charts are single-series lines.
Both return ``{}`` when there is nothing to draw.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from analysis.aggregation import aggregate
from analysis.defaults import (
    CHART_HEIGHT,
    CHART_SIGNIFICANCE_THRESHOLD,
    CHART_WIDTH,
    OTHER_SERIES_NAME,
)
from analysis.significance import split_significant
from contracts.cost_types import AggregatedDimension, CostRecord, Granularity
from contracts.typed_dicts import ChartDatum
from version import CHART_SCHEMA_URL

_SHORT_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def axis_label(value: str, granularity: Any) -> str:
    """Short axis text: "Jan 2024" for MONTHLY, "Jan 05" for DAILY."""
    try:
        parsed = date.fromisoformat(value[:10])
    except (TypeError, ValueError):
        return value
    month = _SHORT_MONTHS[parsed.month - 1]
    if Granularity.parse(granularity) is Granularity.MONTHLY:
        return f"{month} {parsed.year}"
    return f"{month} {parsed.day:02d}"


def series_label(total: Decimal, key: str) -> str:
    """Cost-annotated series name, e.g. "$1,234 Amazon EC2" (rounded half-up)."""
    whole = int(total.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return f"${whole:,} {key}"


def _chart_value(cost: Decimal) -> float:
    return float(cost.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _base_spec(title: str | None, width: int, height: int) -> dict[str, Any]:
    spec: dict[str, Any] = {"$schema": CHART_SCHEMA_URL}
    if title:
        spec["title"] = title
    spec["width"] = width
    spec["height"] = height
    return spec


def cost_chart_rows(
    records: Sequence[CostRecord],
    granularity: Any,
    included: Iterable[AggregatedDimension],
    excluded: Iterable[AggregatedDimension],
) -> list[ChartDatum]:
    """Per-period rows for the included series and the rolled-up remainder."""
    periods = list(dict.fromkeys(record.date for record in records))
    rows: list[ChartDatum] = []

    for dim in included:
        label = series_label(dim.total_cost, dim.key)
        by_period = {point.date: point.cost for point in dim.daily_costs}
        for period in periods:
            if period in by_period:
                rows.append(
                    ChartDatum(
                        date=period,
                        label=axis_label(period, granularity),
                        series=label,
                        value=_chart_value(by_period[period]),
                    )
                )

    excluded = list(excluded)
    if excluded:
        remaining = sum((d.total_cost for d in excluded), Decimal("0"))
        other_label = series_label(remaining, OTHER_SERIES_NAME)
        other_by_period: dict[str, Decimal] = {}
        for dim in excluded:
            for point in dim.daily_costs:
                other_by_period[point.date] = other_by_period.get(point.date, Decimal("0")) + point.cost
        for period in periods:
            cost = other_by_period.get(period, Decimal("0"))
            if cost != 0:
                rows.append(
                    ChartDatum(
                        date=period,
                        label=axis_label(period, granularity),
                        series=other_label,
                        value=_chart_value(cost),
                    )
                )
    return rows


def build_cost_chart(
    records: Sequence[CostRecord],
    granularity: Any,
    *,
    title: str | None = None,
    threshold: float = CHART_SIGNIFICANCE_THRESHOLD,
    width: int = CHART_WIDTH,
    height: int = CHART_HEIGHT,
) -> dict[str, Any]:
    """Stacked bar chart of the significant dimensions over time."""
    if not records:
        return {}
    aggregated = aggregate(records)
    if not aggregated:
        return {}

    included, excluded = split_significant(aggregated.values(), threshold)
    rows = cost_chart_rows(records, granularity, included, excluded)
    if not rows:
        return {}

    spec = _base_spec(title, width, height)
    spec["data"] = {"values": rows}
    spec["mark"] = {"type": "bar"}
    spec["encoding"] = {
        "x": {
            "field": "label",
            "type": "nominal",
            "title": "Date",
            "sort": {"field": "date", "op": "min", "order": "ascending"},
        },
        "y": {"field": "value", "type": "quantitative", "title": "Cost ($)", "stack": "zero"},
        "color": {"field": "series", "type": "nominal", "title": "Dimension"},
        "tooltip": [
            {"field": "date", "type": "nominal", "title": "Date"},
            {"field": "series", "type": "nominal", "title": "Dimension"},
            {"field": "value", "type": "quantitative", "title": "Cost ($)", "format": ",.2f"},
        ],
    }
    return spec


def chart_rows(chart: Mapping[str, Any]) -> list[tuple[str, str, Decimal]]:
    """Read back (date, series, value) triples from a chart's data table."""
    values = (chart.get("data") or {}).get("values") or []
    return [(str(row["date"]), str(row["series"]), Decimal(str(row["value"]))) for row in values]


def _timestamp(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def build_metric_chart(
    datapoints: Sequence[Mapping[str, Any]],
    *,
    label: str,
    title: str | None = None,
    width: int = CHART_WIDTH,
    height: int = CHART_HEIGHT,
) -> dict[str, Any]:
    """Line chart of CloudWatch datapoints ({Timestamp, Value, Unit})."""
    if not datapoints:
        return {}

    unit = str(datapoints[0].get("Unit") or "")
    rows = [
        {
            "date": _timestamp(point.get("Timestamp")),
            "series": label,
            "value": float(point.get("Value") or 0.0),
        }
        for point in datapoints
    ]

    spec = _base_spec(title or label, width, height)
    spec["data"] = {"values": rows}
    spec["mark"] = {"type": "line", "point": True}
    spec["encoding"] = {
        "x": {"field": "date", "type": "temporal", "title": "Time"},
        "y": {"field": "value", "type": "quantitative", "title": unit or "Value"},
        "color": {"field": "series", "type": "nominal", "title": "Metric"},
        "tooltip": [
            {"field": "date", "type": "temporal", "title": "Time", "format": "%Y-%m-%d %H:%M"},
            {"field": "series", "type": "nominal", "title": "Metric"},
            {"field": "value", "type": "quantitative", "title": unit or "Value"},
        ],
    }
    return spec
