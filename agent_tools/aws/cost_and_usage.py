"""agent_tools/aws/cost_and_usage.py

awsGetCostAndUsage: Cost Explorer costs with summary and chart.

Queries AmortizedCost and UsageQuantity for either an explicit
[startDate, endDate) window or a relative lookBack, optionally grouped by up
to two dimensions (composite key "a, b"). Returns the normalised datapoints
alongside a text summary and a stacked bar chart.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field, model_validator

from agent_tools.aws._common import get_logger
from agent_tools.aws._cost_explorer import fetch_cost_records, query_window
from agent_tools.aws.defaults import CE_COST_METRIC, CE_GROUP_BY_DIMENSIONS, CE_MAX_GROUP_BY, CE_USAGE_METRIC
from agent_tools.registry import register_tool
from analysis.chart import build_cost_chart
from analysis.date_range import calculate_date_range
from analysis.defaults import DEFAULT_DAILY_LOOK_BACK, DEFAULT_MONTHLY_LOOK_BACK, NO_DATA_MESSAGE
from analysis.summary import summarize_cost_records
from contracts.cost_types import CostRecord, Granularity
from contracts.tool_pattern import ToolContext, ToolInput
from contracts.typed_dicts import CostToolOutput
from infra.config import Settings

_LOGGER = get_logger("cost_and_usage")

TOOL_NAME = "awsGetCostAndUsage"

GroupByDimension = Enum(  # type: ignore[misc]
    "GroupByDimension",
    [(name, name) for name in CE_GROUP_BY_DIMENSIONS],
    type=str,
)


class CostAndUsageInput(ToolInput):
    start_date: Optional[date] = Field(
        default=None, alias="startDate", description="Start date in YYYY-MM-DD format (inclusive)"
    )
    end_date: Optional[date] = Field(
        default=None, alias="endDate", description="End date in YYYY-MM-DD format (exclusive)"
    )
    look_back: Optional[int] = Field(
        default=None,
        alias="lookBack",
        ge=0,
        description="Days (DAILY) or months (MONTHLY) to look back when no dates are given",
    )
    granularity: Granularity = Field(description="Data granularity")
    group_by: List[GroupByDimension] = Field(
        default_factory=list,
        alias="groupBy",
        max_length=CE_MAX_GROUP_BY,
        description="Grouping dimensions, up to 2.",
    )
    filter: Optional[Dict[str, Any]] = Field(default=None, description="Cost Explorer filter expression")
    chart_title: Optional[str] = Field(
        default=None, alias="chartTitle", description="Title for the chart that will be generated"
    )

    @model_validator(mode="after")
    def _check_window(self) -> CostAndUsageInput:
        if (self.start_date is None) != (self.end_date is None):
            raise ValueError("startDate and endDate must be given together")
        if self.start_date is not None and self.end_date is not None and self.start_date >= self.end_date:
            raise ValueError("startDate must be before endDate")
        return self

    def group_keys(self) -> List[str]:
        return [g.value for g in self.group_by]


class CostAndUsageTool:
    """Cost Explorer query with summary and chart."""

    name = TOOL_NAME
    description = (
        "Retrieve AWS cost and usage data for analysis. "
        "Always use this tool when cost information is needed."
    )
    input_model = CostAndUsageInput

    def __init__(
        self,
        *,
        summary_threshold: float,
        chart_threshold: float,
        max_sub_dimensions: int,
        chart_width: int,
        chart_height: int,
        daily_look_back: int = DEFAULT_DAILY_LOOK_BACK,
        monthly_look_back: int = DEFAULT_MONTHLY_LOOK_BACK,
    ) -> None:
        self._summary_threshold = summary_threshold
        self._chart_threshold = chart_threshold
        self._max_sub_dimensions = max_sub_dimensions
        self._chart_width = chart_width
        self._chart_height = chart_height
        self._daily_look_back = daily_look_back
        self._monthly_look_back = monthly_look_back

    def _window(self, ctx: ToolContext, params: CostAndUsageInput) -> Optional[tuple[date, date]]:
        if params.start_date is not None and params.end_date is not None:
            return params.start_date, params.end_date
        look_back = params.look_back
        if look_back is None:
            daily = params.granularity is Granularity.DAILY
            look_back = self._daily_look_back if daily else self._monthly_look_back
        date_range = calculate_date_range(look_back, params.granularity, now=ctx.now())
        start, end = query_window(date_range, params.granularity)
        if start >= end:
            return None
        return start, end

    def invoke(self, ctx: ToolContext, params: CostAndUsageInput) -> Dict[str, Any]:
        window = self._window(ctx, params)
        if window is None:
            _LOGGER.info("%s: empty lookBack window, skipping Cost Explorer call", self.name)
            return dict(CostToolOutput(summary=NO_DATA_MESSAGE, datapoints=[], chart={}))

        start, end = window
        group_keys = params.group_keys()
        _LOGGER.info(
            "%s: %s %s -> %s grouped by %s",
            self.name,
            params.granularity.value,
            start,
            end,
            group_keys or "-",
        )
        records = fetch_cost_records(
            ctx.require("ce"),
            start=start,
            end=end,
            granularity=params.granularity,
            group_by=group_keys,
            metrics=(CE_COST_METRIC, CE_USAGE_METRIC),
            filter_expr=params.filter,
            include_totals=True,
        )
        return dict(self.shape_output(records, params))

    def shape_output(self, records: List[CostRecord], params: CostAndUsageInput) -> CostToolOutput:
        group_keys = params.group_keys()
        summary = summarize_cost_records(
            records,
            params.granularity,
            group_by=group_keys or None,
            title=self.name,
            threshold=self._summary_threshold,
            max_sub_dimensions=self._max_sub_dimensions,
        )
        chart = build_cost_chart(
            records,
            params.granularity,
            title=params.chart_title,
            threshold=self._chart_threshold,
            width=self._chart_width,
            height=self._chart_height,
        )
        return CostToolOutput(
            summary=summary,
            datapoints=[record.to_wire() for record in records],  # type: ignore[misc]
            chart=chart,
        )


@register_tool(TOOL_NAME)
def _factory(settings: Settings) -> CostAndUsageTool:
    analysis = settings.analysis
    return CostAndUsageTool(
        summary_threshold=analysis.summary_threshold,
        chart_threshold=analysis.chart_threshold,
        max_sub_dimensions=analysis.max_sub_dimensions,
        chart_width=analysis.chart_width,
        chart_height=analysis.chart_height,
        daily_look_back=settings.tools.daily_look_back,
        monthly_look_back=settings.tools.monthly_look_back,
    )
