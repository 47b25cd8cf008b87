"""
TypedDict definitions for tool wire formats.

These describe the JSON shapes handed back to the calling agent. Core
computations use the dataclasses in :mod:`contracts.cost_types`; conversion to
these shapes happens at the tool boundary.

Usage:
    from contracts.typed_dicts import CostToolOutput, ChartSpec
"""

from __future__ import annotations

from typing import Any, NotRequired, TypedDict


class CostRecordWireFormat(TypedDict):
    """
    One reporting period of costs.

    `dimensions` maps a dimension key to a decimal string (e.g. "12.3456").
    """
    date: str  # ISO date, start of the period
    dimensions: dict[str, str]
    amortizedCost: NotRequired[str]  # period total (awsGetCostAndUsage only)
    usageAmount: NotRequired[str]  # period usage total (awsGetCostAndUsage only)


class ChartDatum(TypedDict):
    """
    One row of a chart data table.
    """
    date: str  # ISO date/timestamp, used for sorting and tooltips
    label: str  # axis display ("Jan 2024", "Jan 05", ...)
    series: str  # "$1,234 Amazon EC2", "$56 Other", metric label, ...
    value: float


class ChartData(TypedDict):
    values: list[ChartDatum]


# Functional form: "$schema" is not a valid identifier.
ChartSpec = TypedDict(
    "ChartSpec",
    {
        "$schema": str,
        "title": str,
        "width": int,
        "height": int,
        "data": ChartData,
        "mark": dict[str, Any],
        "encoding": dict[str, Any],
    },
    total=False,
)
"""Declarative (Vega-Lite v5) chart specification; ``{}`` when there is no data."""


class CostToolOutput(TypedDict):
    """
    Envelope returned by the cost-oriented tools.
    """
    summary: str
    datapoints: list[CostRecordWireFormat]
    chart: NotRequired[ChartSpec]


class MetricDatapointWireFormat(TypedDict):
    Timestamp: str  # ISO8601
    Value: float
    Unit: str


class MetricToolOutput(TypedDict):
    summary: str
    datapoints: list[MetricDatapointWireFormat]
    label: str
    namespace: str
    metricName: str
    chart: ChartSpec


class RecommendationWireFormat(TypedDict):
    id: str
    type: str
    title: str
    description: str
    estimatedMonthlySavings: str
    estimatedAnnualSavings: str
    resourceId: str
    resourceType: str
    region: str
    service: str
    action: str
    reason: str


class SavingsAmount(TypedDict):
    amount: str
    unit: str  # "USD"


class RecommendationSummary(TypedDict):
    totalRecommendations: int
    topRecommendationsReturned: int
    averageSavingsPerRecommendation: str
    highestSavings: str
    lowestSavings: str


class RecommendationToolOutput(TypedDict):
    recommendations: list[RecommendationWireFormat]
    count: int
    totalFetched: int
    totalEstimatedMonthlySavings: SavingsAmount
    summary: RecommendationSummary


class InstanceWireFormat(TypedDict):
    instanceId: str
    instanceName: str
    instanceType: str
    platform: str
    tenancy: str
    region: str
    state: str
    uptimeHours: int
    hourlyPrice: NotRequired[float]  # on-demand USD/hour when resolvable
