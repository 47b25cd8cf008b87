"""agent_tools/aws/cloudwatch_metrics.py

awsCloudWatchGetMetrics: one CloudWatch metric as datapoints, summary and line chart.

Issues a single GetMetricData query (Id "m1"), follows NextToken, and returns
datapoints sorted by timestamp.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from agent_tools.aws._common import get_logger, iso_utc, iter_pages, safe_float, utc
from agent_tools.aws.defaults import CW_DEFAULT_REGION, CW_METRIC_QUERY_ID
from agent_tools.registry import register_tool
from analysis.chart import build_metric_chart
from analysis.defaults import CHART_HEIGHT, CHART_WIDTH
from analysis.trend import estimate_trend
from contracts.cost_types import DailyCost
from contracts.tool_pattern import ToolContext, ToolInput
from contracts.typed_dicts import MetricDatapointWireFormat, MetricToolOutput
from infra.config import Settings

_LOGGER = get_logger("cloudwatch_metrics")

TOOL_NAME = "awsCloudWatchGetMetrics"
NO_METRIC_DATA_MESSAGE = "No metric data found for the specified period."

Statistic = Literal["Sum", "Average", "Maximum", "Minimum", "SampleCount"]


class MetricDimension(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    value: str


class CloudWatchMetricsInput(ToolInput):
    namespace: str = Field(min_length=1, description="CloudWatch namespace, e.g. AWS/EC2")
    metric_name: str = Field(alias="metricName", min_length=1, description="Metric name, e.g. CPUUtilization")
    dimensions: List[MetricDimension] = Field(default_factory=list, description="Metric dimensions")
    start_time: datetime = Field(alias="startTime", description="Start time (ISO8601)")
    end_time: datetime = Field(alias="endTime", description="End time (ISO8601)")
    period: int = Field(ge=1, description="Granularity in seconds")
    statistic: Statistic = Field(description="Statistic to retrieve")
    unit: Optional[str] = Field(default=None, description="Metric unit, e.g. Percent")
    region: str = Field(default=CW_DEFAULT_REGION, description="AWS region")
    chart_title: Optional[str] = Field(
        default=None, alias="chartTitle", description="Title for the chart that will be generated"
    )

    @model_validator(mode="after")
    def _check_window(self) -> CloudWatchMetricsInput:
        start = utc(self.start_time)
        end = utc(self.end_time)
        if start is not None and end is not None and start >= end:
            raise ValueError("startTime must be before endTime")
        return self


def _fmt(value: float) -> str:
    return f"{value:,.2f}"


def summarize_metric(
    datapoints: List[MetricDatapointWireFormat],
    *,
    label: str,
    params: CloudWatchMetricsInput,
) -> str:
    if not datapoints:
        return NO_METRIC_DATA_MESSAGE

    first = datapoints[0]["Timestamp"]
    last = datapoints[-1]["Timestamp"]
    values = [point["Value"] for point in datapoints]
    highest = max(datapoints, key=lambda p: p["Value"])
    lowest = min(datapoints, key=lambda p: p["Value"])
    average = sum(values) / len(values)

    series = [DailyCost(date=p["Timestamp"], cost=Decimal(str(p["Value"]))) for p in datapoints]
    trend = estimate_trend(series)
    if trend.direction == "stable":
        trend_text = "stable"
    else:
        pct = trend.percentage_per_period.quantize(Decimal("0.1"))
        trend_text = f"{trend.direction} at {pct}% per period"

    header = f"{TOOL_NAME} data range: {first} - {last}"
    line = (
        f"{label} ({params.namespace}/{params.metric_name}, {params.statistic} per {params.period}s): "
        f"{len(datapoints)} datapoints, average {_fmt(average)}, "
        f"max {_fmt(highest['Value'])} at {highest['Timestamp']}, "
        f"min {_fmt(lowest['Value'])} at {lowest['Timestamp']}, "
        f"trending {trend_text}"
    )
    return "\n".join([header, line])


class CloudWatchMetricsTool:
    name = TOOL_NAME
    description = "Retrieve AWS CloudWatch metrics data for a single metric."
    input_model = CloudWatchMetricsInput

    def __init__(self, *, chart_width: int = CHART_WIDTH, chart_height: int = CHART_HEIGHT) -> None:
        self._chart_width = chart_width
        self._chart_height = chart_height

    def _query(self, params: CloudWatchMetricsInput) -> Dict[str, Any]:
        metric_stat: Dict[str, Any] = {
            "Metric": {
                "Namespace": params.namespace,
                "MetricName": params.metric_name,
                "Dimensions": [{"Name": d.name, "Value": d.value} for d in params.dimensions],
            },
            "Period": params.period,
            "Stat": params.statistic,
        }
        if params.unit:
            metric_stat["Unit"] = params.unit
        return {
            "MetricDataQueries": [
                {"Id": CW_METRIC_QUERY_ID, "MetricStat": metric_stat, "ReturnData": True},
            ],
            "StartTime": utc(params.start_time),
            "EndTime": utc(params.end_time),
            "ScanBy": "TimestampAscending",
        }

    def invoke(self, ctx: ToolContext, params: CloudWatchMetricsInput) -> Dict[str, Any]:
        cloudwatch = ctx.require("cloudwatch", region=params.region)

        label = ""
        points: List[tuple[datetime | str, float]] = []
        for page in iter_pages(cloudwatch, "get_metric_data", params=self._query(params)):
            for result in page.get("MetricDataResults", []) or []:
                if result.get("Id") not in (None, CW_METRIC_QUERY_ID):
                    continue
                label = label or str(result.get("Label") or "")
                timestamps = result.get("Timestamps", []) or []
                values = result.get("Values", []) or []
                points.extend(zip(timestamps, (safe_float(v) for v in values)))

        label = label or params.metric_name
        points.sort(key=lambda p: iso_utc(p[0]))
        datapoints = [
            MetricDatapointWireFormat(Timestamp=iso_utc(ts), Value=value, Unit=params.unit or "")
            for ts, value in points
        ]
        _LOGGER.info("%s: %d datapoint(s) for %s/%s", self.name, len(datapoints), params.namespace, params.metric_name)

        output = MetricToolOutput(
            summary=summarize_metric(datapoints, label=label, params=params),
            datapoints=datapoints,
            label=label,
            namespace=params.namespace,
            metricName=params.metric_name,
            chart=build_metric_chart(
                datapoints,  # type: ignore[arg-type]
                label=label,
                title=params.chart_title,
                width=self._chart_width,
                height=self._chart_height,
            ),
        )
        return dict(output)


@register_tool(TOOL_NAME)
def _factory(settings: Settings) -> CloudWatchMetricsTool:
    return CloudWatchMetricsTool(
        chart_width=settings.analysis.chart_width,
        chart_height=settings.analysis.chart_height,
    )
