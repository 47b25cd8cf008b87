"""agent_tools/aws/cost_optimization_hub.py

awsCostOptimizationHubListRecommendations: top savings opportunities.

Pages through every Cost Optimization Hub recommendation, ranks them by
estimated monthly savings (highest first) and returns the top `maxResults`
with savings totals and a small statistical summary.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Mapping

from pydantic import Field

from agent_tools.aws._common import get_logger, paginate_items
from agent_tools.aws.defaults import COH_CURRENCY, COH_DEFAULT_REGION
from agent_tools.registry import register_tool
from analysis.aggregation import parse_cost
from contracts.tool_pattern import ToolContext, ToolInput
from contracts.typed_dicts import (
    RecommendationSummary,
    RecommendationToolOutput,
    RecommendationWireFormat,
    SavingsAmount,
)
from infra.config import Settings

_LOGGER = get_logger("cost_optimization_hub")

TOOL_NAME = "awsCostOptimizationHubListRecommendations"

_CENT = Decimal("0.01")


class RecommendationsInput(ToolInput):
    region: str = Field(default=COH_DEFAULT_REGION, description="AWS region")
    max_results: int = Field(
        default=50,
        alias="maxResults",
        ge=1,
        le=1000,
        description="Maximum number of recommendations to return",
    )


def _money(value: Decimal) -> str:
    return str(value.quantize(_CENT, rounding=ROUND_HALF_UP))


def savings_value(raw: Any) -> Decimal:
    """Savings amount from either a number or a ``{"value": ...}`` shape."""
    if isinstance(raw, Mapping):
        raw = raw.get("value")
    return parse_cost(raw)


def _description(item: Mapping[str, Any]) -> str:
    if item.get("description"):
        return str(item["description"])
    current = str(item.get("currentResourceSummary") or "")
    recommended = str(item.get("recommendedResourceSummary") or "")
    if current and recommended:
        return f"{current} -> {recommended}"
    return current or recommended


def to_recommendation(item: Mapping[str, Any]) -> RecommendationWireFormat:
    monthly = savings_value(item.get("estimatedMonthlySavings"))
    yearly_raw = item.get("estimatedYearlySavings")
    yearly = savings_value(yearly_raw) if yearly_raw is not None else monthly * 12
    action = str(item.get("actionType") or item.get("action") or "")
    resource_type = str(item.get("currentResourceType") or item.get("resourceType") or "")
    title = str(item.get("name") or f"{action} {resource_type}".strip())
    reason = str(item.get("reason") or "")
    if not reason and item.get("implementationEffort"):
        reason = f"Implementation effort: {item['implementationEffort']}"
    return RecommendationWireFormat(
        id=str(item.get("recommendationId") or ""),
        type=str(item.get("type") or resource_type),
        title=title,
        description=_description(item),
        estimatedMonthlySavings=_money(monthly),
        estimatedAnnualSavings=_money(yearly),
        resourceId=str(item.get("resourceId") or ""),
        resourceType=resource_type,
        region=str(item.get("region") or item.get("awsRegion") or ""),
        service=str(item.get("source") or ""),
        action=action,
        reason=reason,
    )


def rank_recommendations(items: List[Mapping[str, Any]], limit: int) -> List[RecommendationWireFormat]:
    """Highest estimated monthly savings first; ties keep API order."""
    ordered = sorted(items, key=lambda i: savings_value(i.get("estimatedMonthlySavings")), reverse=True)
    return [to_recommendation(item) for item in ordered[:limit]]


def build_output(items: List[Mapping[str, Any]], limit: int) -> RecommendationToolOutput:
    top = rank_recommendations(items, limit)
    savings = [Decimal(r["estimatedMonthlySavings"]) for r in top]
    total = sum(savings, Decimal("0"))
    average = total / len(top) if top else Decimal("0")
    return RecommendationToolOutput(
        recommendations=top,
        count=len(top),
        totalFetched=len(items),
        totalEstimatedMonthlySavings=SavingsAmount(amount=_money(total), unit=COH_CURRENCY),
        summary=RecommendationSummary(
            totalRecommendations=len(items),
            topRecommendationsReturned=len(top),
            averageSavingsPerRecommendation=_money(average),
            highestSavings=_money(max(savings) if savings else Decimal("0")),
            lowestSavings=_money(min(savings) if savings else Decimal("0")),
        ),
    )


class CostOptimizationHubTool:
    name = TOOL_NAME
    description = (
        "List AWS Cost Optimization Hub recommendations ranked by estimated monthly savings."
    )
    input_model = RecommendationsInput

    def __init__(self, *, default_max_results: int = 50) -> None:
        self._default_max_results = default_max_results

    def invoke(self, ctx: ToolContext, params: RecommendationsInput) -> Dict[str, Any]:
        client = ctx.require("cost_optimization_hub", region=params.region)
        limit = params.max_results if "max_results" in params.model_fields_set else self._default_max_results

        items = list(
            paginate_items(
                client,
                "list_recommendations",
                "items",
                request_token_key="nextToken",
                response_token_keys=("nextToken",),
            )
        )
        output = build_output(items, limit)
        _LOGGER.info(
            "%s: %d fetched, returning top %d (monthly savings %s %s)",
            self.name,
            output["totalFetched"],
            output["count"],
            output["totalEstimatedMonthlySavings"]["amount"],
            COH_CURRENCY,
        )
        return dict(output)


@register_tool(TOOL_NAME)
def _factory(settings: Settings) -> CostOptimizationHubTool:
    return CostOptimizationHubTool(default_max_results=settings.tools.max_recommendations)
