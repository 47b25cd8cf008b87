"""Cost Explorer fetch + normalisation shared by the cost tools.

Turns paginated ``get_cost_and_usage`` responses into one chronological
CostRecord per period. Cost Explorer may split one period's groups across
pages; those are merged so every date appears once.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import date, timedelta
from typing import Any, Optional

from agent_tools.aws._common import get_logger, iter_pages
from agent_tools.aws.defaults import CE_COST_METRIC, CE_USAGE_METRIC
from contracts.cost_types import CostRecord, DateRange, Granularity

_LOGGER = get_logger("cost_explorer")

# Maps a group's Keys to a dimension key; None drops the group.
GroupKeyFn = Callable[[Sequence[str]], Optional[str]]

TOTAL_DIMENSION = "Total"


def join_keys(keys: Sequence[str]) -> str | None:
    """Composite key for one- or two-level groupings ("a" or "a, b")."""
    parts = [str(k) for k in keys if k]
    return ", ".join(parts) if parts else None


def query_window(date_range: DateRange, granularity: Granularity) -> tuple[date, date]:
    """Cost Explorer (start, exclusive end) for an inclusive DateRange.

    DAILY ranges end on the last reported day, so the API end moves one day
    forward. MONTHLY ranges already end on the first day of the open month.
    """
    if granularity is Granularity.DAILY:
        return date_range.start, date_range.end + timedelta(days=1)
    return date_range.start, date_range.end


def _amount(metrics: Any, name: str) -> str | None:
    if not isinstance(metrics, dict):
        return None
    metric = metrics.get(name)
    if not isinstance(metric, dict):
        return None
    amount = metric.get("Amount")
    return str(amount) if amount is not None else None


def fetch_cost_records(
    ce: Any,
    *,
    start: date,
    end: date,
    granularity: Granularity,
    group_by: Sequence[str] = (),
    metrics: Sequence[str] = (CE_COST_METRIC,),
    filter_expr: dict[str, Any] | None = None,
    key_fn: GroupKeyFn = join_keys,
    include_totals: bool = False,
) -> list[CostRecord]:
    """Fetch every page for [start, end) and normalise to CostRecords.

    Ungrouped queries report the period total under the ``Total`` dimension.
    `include_totals` also carries the period's AmortizedCost / UsageQuantity
    totals on each record.
    Each grouped key keeps the group's `Keys` in `CostRecord.key_parts`.
    """
    params: dict[str, Any] = {
        "TimePeriod": {"Start": start.isoformat(), "End": end.isoformat()},
        "Granularity": granularity.value,
        "Metrics": list(metrics),
    }
    if group_by:
        params["GroupBy"] = [{"Type": "DIMENSION", "Key": key} for key in group_by]
    if filter_expr:
        params["Filter"] = filter_expr

    periods: dict[str, dict[str, Any]] = {}
    pages = 0
    for page in iter_pages(
        ce,
        "get_cost_and_usage",
        params=params,
        request_token_key="NextPageToken",
        response_token_keys=("NextPageToken",),
    ):
        pages += 1
        for result in page.get("ResultsByTime", []) or []:
            period = str((result.get("TimePeriod") or {}).get("Start") or "")
            if not period:
                continue
            entry = periods.setdefault(
                period, {"dimensions": {}, "parts": {}, "amortized": None, "usage": None}
            )

            total = result.get("Total") or {}
            if group_by:
                for group in result.get("Groups", []) or []:
                    amount = _amount(group.get("Metrics"), CE_COST_METRIC)
                    if amount is None:
                        continue
                    keys = [str(k) for k in group.get("Keys") or []]
                    key = key_fn(keys)
                    if key is not None:
                        entry["dimensions"][key] = amount
                        entry["parts"][key] = tuple(keys)
            else:
                amount = _amount(total, CE_COST_METRIC)
                if amount is not None:
                    entry["dimensions"][TOTAL_DIMENSION] = amount

            if include_totals:
                entry["amortized"] = _amount(total, CE_COST_METRIC) or entry["amortized"]
                entry["usage"] = _amount(total, CE_USAGE_METRIC) or entry["usage"]

    _LOGGER.debug("Fetched %d Cost Explorer page(s), %d period(s)", pages, len(periods))
    return [
        CostRecord(
            date=period,
            dimensions=entry["dimensions"],
            amortized_cost=entry["amortized"] if include_totals else None,
            usage_amount=entry["usage"] if include_totals else None,
            key_parts=entry["parts"],
        )
        for period, entry in sorted(periods.items())
    ]
