"""agent_tools/aws/describe_instances.py

awsDescribeInstances: EC2 inventory with uptime and optional on-demand price.

Flattens Reservations/Instances into one row per instance: Name tag (or
"N/A"), type, platform, tenancy, region (AZ minus its letter), state and
whole hours since launch, measured against the context clock. With
`includePricing` the hourly on-demand price comes from the injected
PricingService.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from agent_tools.aws._common import get_logger, paginate_items, region_from_az, tag_value, utc
from agent_tools.aws.defaults import EC2_MISSING_NAME, EC2_NAME_TAG
from agent_tools.registry import register_tool
from contracts.tool_pattern import ToolContext, ToolInput
from contracts.typed_dicts import InstanceWireFormat
from infra.config import Settings
from services.pricing_service import operating_system_for_platform, pricing_tenancy

_LOGGER = get_logger("describe_instances")

TOOL_NAME = "awsDescribeInstances"

_EC2_PAGE_MIN = 5
_EC2_PAGE_MAX = 1000


class InstanceFilter(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    values: List[str]


class DescribeInstancesInput(ToolInput):
    region: str = Field(min_length=1, description="AWS region")
    instance_ids: List[str] = Field(default_factory=list, alias="instanceIds", description="Instance IDs")
    filters: List[InstanceFilter] = Field(default_factory=list, description="DescribeInstances filters")
    max_results: Optional[int] = Field(
        default=None, alias="maxResults", ge=1, description="Maximum number of instances to return"
    )
    include_pricing: bool = Field(
        default=False, alias="includePricing", description="Add the on-demand hourly price per instance"
    )


def uptime_hours(launch_time: Any, now: datetime) -> int:
    """Whole hours since launch; 0 when unknown or in the future."""
    if not isinstance(launch_time, datetime):
        return 0
    launched = utc(launch_time)
    current = utc(now)
    if launched is None or current is None:
        return 0
    return max(0, int((current - launched).total_seconds() // 3600))


def to_instance(instance: Mapping[str, Any], now: datetime) -> InstanceWireFormat:
    placement = instance.get("Placement") or {}
    return InstanceWireFormat(
        instanceId=str(instance.get("InstanceId") or ""),
        instanceName=tag_value(instance.get("Tags"), EC2_NAME_TAG) or EC2_MISSING_NAME,
        instanceType=str(instance.get("InstanceType") or ""),
        platform=str(instance.get("PlatformDetails") or ""),
        tenancy=str(placement.get("Tenancy") or ""),
        region=region_from_az(str(placement.get("AvailabilityZone") or "")),
        state=str((instance.get("State") or {}).get("Name") or ""),
        uptimeHours=uptime_hours(instance.get("LaunchTime"), now),
    )


def summarize_instances(instances: List[InstanceWireFormat], region: str) -> str:
    if not instances:
        return f"No EC2 instances found in {region}."
    by_type = Counter(i["instanceType"] for i in instances)
    by_state = Counter(i["state"] or "unknown" for i in instances)
    ranked = sorted(by_type.items(), key=lambda kv: (-kv[1], kv[0]))
    types = ", ".join(f"{name} x{count}" for name, count in ranked)
    states = ", ".join(f"{name} {count}" for name, count in sorted(by_state.items()))
    lines = [
        f"{TOOL_NAME}: {len(instances)} instance(s) in {region}",
        f"Types: {types}",
        f"States: {states}",
    ]
    priced = [i for i in instances if "hourlyPrice" in i]
    if priced:
        hourly = sum(i["hourlyPrice"] for i in priced)
        lines.append(f"On-demand price for {len(priced)} priced instance(s): ${hourly:.4f}/hour")
    return "\n".join(lines)


class DescribeInstancesTool:
    name = TOOL_NAME
    description = "Describe EC2 instances in a region with uptime and, optionally, on-demand pricing."
    input_model = DescribeInstancesInput

    def _request(self, params: DescribeInstancesInput) -> Dict[str, Any]:
        req: Dict[str, Any] = {}
        if params.instance_ids:
            req["InstanceIds"] = list(params.instance_ids)
        if params.filters:
            req["Filters"] = [{"Name": f.name, "Values": list(f.values)} for f in params.filters]
        # EC2 rejects MaxResults together with InstanceIds.
        if params.max_results is not None and not params.instance_ids:
            req["MaxResults"] = min(max(params.max_results, _EC2_PAGE_MIN), _EC2_PAGE_MAX)
        return req

    def _add_price(self, ctx: ToolContext, row: InstanceWireFormat, region: str) -> None:
        services = ctx.services_for(region)
        pricing = getattr(services, "pricing", None) if services is not None else None
        if pricing is None or not row["instanceType"]:
            return
        quote = pricing.ec2_instance_hour(
            region=row["region"] or region,
            instance_type=row["instanceType"],
            operating_system=operating_system_for_platform(row["platform"]),
            tenancy=pricing_tenancy(row["tenancy"]),
        )
        if quote is not None:
            row["hourlyPrice"] = float(quote.unit_price_usd)

    def invoke(self, ctx: ToolContext, params: DescribeInstancesInput) -> Dict[str, Any]:
        ec2 = ctx.require("ec2", region=params.region)
        now = ctx.now()

        rows: List[InstanceWireFormat] = []
        for reservation in paginate_items(ec2, "describe_instances", "Reservations", params=self._request(params)):
            for instance in reservation.get("Instances", []) or []:
                if isinstance(instance, dict):
                    rows.append(to_instance(instance, now))
            if params.max_results is not None and len(rows) >= params.max_results:
                break
        if params.max_results is not None:
            rows = rows[: params.max_results]

        if params.include_pricing:
            for row in rows:
                self._add_price(ctx, row, params.region)

        _LOGGER.info("%s: %d instance(s) in %s", self.name, len(rows), params.region)
        return {
            "summary": summarize_instances(rows, params.region),
            "datapoints": rows,
        }


@register_tool(TOOL_NAME)
def _factory(settings: Settings) -> DescribeInstancesTool:
    return DescribeInstancesTool()
