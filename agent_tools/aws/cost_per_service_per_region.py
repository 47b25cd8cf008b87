"""agent_tools/aws/cost_per_service_per_region.py

awsCostPerServicePerRegion: simplified cost breakdown by service and region.

Groups AmortizedCost by SERVICE and REGION into keys like
"Amazon EC2 (us-east-1)", excluding credits, tax and EDP discounts. The
reporting window is derived from `lookBack` (default 30 days / 6 months).
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Dict, Optional

from pydantic import Field

from agent_tools.aws._common import get_logger
from agent_tools.aws._cost_explorer import fetch_cost_records, query_window
from agent_tools.aws.defaults import CE_EXCLUDED_RECORD_TYPES
from agent_tools.registry import register_tool
from analysis.aggregation import parse_cost
from analysis.date_range import calculate_date_range
from analysis.defaults import (
    DEFAULT_DAILY_LOOK_BACK,
    DEFAULT_MONTHLY_LOOK_BACK,
    NO_DATA_MESSAGE,
    NOISE_FLOOR,
    SUMMARY_SIGNIFICANCE_THRESHOLD,
)
from analysis.summary import summarize_cost_records
from contracts.cost_types import CostRecord, Granularity
from contracts.tool_pattern import ToolContext, ToolInput
from contracts.typed_dicts import CostToolOutput
from infra.config import Settings

_LOGGER = get_logger("cost_per_service_per_region")

TOOL_NAME = "awsCostPerServicePerRegion"

RECORD_TYPE_FILTER: Dict[str, Any] = {
    "Not": {
        "Dimensions": {
            "Key": "RECORD_TYPE",
            "Values": list(CE_EXCLUDED_RECORD_TYPES),
        }
    }
}


class CostPerServicePerRegionInput(ToolInput):
    look_back: Optional[int] = Field(
        default=None,
        alias="lookBack",
        ge=0,
        description="Number of days (DAILY) or months (MONTHLY) to look back. Default: 30 for DAILY, 6 for MONTHLY",
    )
    granularity: Granularity = Field(description="Data granularity")


def service_region_key(keys: Sequence[str]) -> Optional[str]:
    """Key as "<service> (<region>)"; groups missing either key are dropped."""
    if len(keys) < 2 or not keys[0] or not keys[1]:
        return None
    return f"{keys[0]} ({keys[1]})"


class CostPerServicePerRegionTool:
    name = TOOL_NAME
    description = (
        "Retrieve simplified AWS cost data grouped by service and region. "
        "Use this for basic cost analysis without complex filtering."
    )
    input_model = CostPerServicePerRegionInput

    def __init__(
        self,
        *,
        daily_look_back: int = DEFAULT_DAILY_LOOK_BACK,
        monthly_look_back: int = DEFAULT_MONTHLY_LOOK_BACK,
        summary_threshold: float = SUMMARY_SIGNIFICANCE_THRESHOLD,
    ) -> None:
        self._daily_look_back = daily_look_back
        self._monthly_look_back = monthly_look_back
        self._summary_threshold = summary_threshold

    def invoke(self, ctx: ToolContext, params: CostPerServicePerRegionInput) -> Dict[str, Any]:
        granularity = params.granularity
        look_back = params.look_back
        if look_back is None:
            daily = granularity is Granularity.DAILY
            look_back = self._daily_look_back if daily else self._monthly_look_back

        date_range = calculate_date_range(look_back, granularity, now=ctx.now())
        start, end = query_window(date_range, granularity)
        _LOGGER.debug(
            "%s input: lookBack=%s granularity=%s start=%s end=%s",
            self.name,
            look_back,
            granularity.value,
            start,
            end,
        )
        if start >= end:
            _LOGGER.info("%s: empty lookBack window, skipping Cost Explorer call", self.name)
            return dict(CostToolOutput(summary=NO_DATA_MESSAGE, datapoints=[]))

        records = fetch_cost_records(
            ctx.require("ce"),
            start=start,
            end=end,
            granularity=granularity,
            group_by=("SERVICE", "REGION"),
            filter_expr=RECORD_TYPE_FILTER,
            key_fn=service_region_key,
        )
        # Sub-cent groups are dropped from the datapoints as well as the summary.
        records = [
            CostRecord(
                date=record.date,
                dimensions={k: v for k, v in record.dimensions.items() if parse_cost(v) >= NOISE_FLOOR},
                key_parts=record.key_parts,
            )
            for record in records
        ]

        summary = summarize_cost_records(
            records,
            granularity,
            title=self.name,
            threshold=self._summary_threshold,
        )
        _LOGGER.info("%s: %d period(s) summarised", self.name, len(records))
        return dict(
            CostToolOutput(
                summary=summary,
                datapoints=[record.to_wire() for record in records],  # type: ignore[misc]
            )
        )


@register_tool(TOOL_NAME)
def _factory(settings: Settings) -> CostPerServicePerRegionTool:
    return CostPerServicePerRegionTool(
        daily_look_back=settings.tools.daily_look_back,
        monthly_look_back=settings.tools.monthly_look_back,
        summary_threshold=settings.analysis.summary_threshold,
    )
