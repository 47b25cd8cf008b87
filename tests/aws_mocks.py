"""Shared AWS test doubles for tool unit tests.

These mocks intentionally avoid boto3 client construction and focus on:
- token-based API pagination (NextPageToken / NextToken / nextToken)
- recording the request parameters each call received
- deterministic pricing lookups
- compact ToolContext construction with a pinned clock
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any

from botocore.exceptions import ClientError

from contracts.services import Services
from contracts.tool_pattern import ToolContext

FIXED_NOW = datetime(2024, 3, 15, 12, 30, tzinfo=timezone.utc)


def make_client_error(
    operation_name: str,
    *,
    code: str = "AccessDeniedException",
    message: str = "Denied",
) -> ClientError:
    """Build a deterministic botocore ClientError payload for tests."""
    return ClientError({"Error": {"Code": code, "Message": message}}, operation_name)


class FakePaginator:
    """Simple paginator over static pages."""

    def __init__(self, pages: list[Mapping[str, Any]]) -> None:
        self._pages = pages

    def paginate(self, **_kwargs: Any) -> Iterable[Mapping[str, Any]]:
        yield from self._pages


class _TokenPagedOperation:
    """Serves pages in order and records every request."""

    def __init__(self, pages: list[Mapping[str, Any]], *, raise_code: str | None = None, op: str = "") -> None:
        self._pages = list(pages)
        self._idx = 0
        self._raise_code = raise_code
        self._op = op
        self.calls: list[dict[str, Any]] = []

    def __call__(self, **kwargs: Any) -> Mapping[str, Any]:
        self.calls.append(dict(kwargs))
        if self._raise_code:
            raise make_client_error(self._op, code=self._raise_code)
        if self._idx >= len(self._pages):
            return {}
        page = self._pages[self._idx]
        self._idx += 1
        return page


class FakeCostExplorer:
    """Cost Explorer fake: get_cost_and_usage pages chained by NextPageToken."""

    def __init__(self, pages: list[Mapping[str, Any]], *, raise_code: str | None = None) -> None:
        self.meta = SimpleNamespace(region_name="us-east-1")
        self.get_cost_and_usage = _TokenPagedOperation(pages, raise_code=raise_code, op="GetCostAndUsage")

    @property
    def calls(self) -> list[dict[str, Any]]:
        return self.get_cost_and_usage.calls


class FakeCloudWatch:
    """CloudWatch fake: get_metric_data pages chained by NextToken."""

    def __init__(self, pages: list[Mapping[str, Any]], *, region: str = "us-east-1") -> None:
        self.meta = SimpleNamespace(region_name=region)
        self.get_metric_data = _TokenPagedOperation(pages, op="GetMetricData")

    @property
    def calls(self) -> list[dict[str, Any]]:
        return self.get_metric_data.calls


class FakeCostOptimizationHub:
    """Cost Optimization Hub fake: list_recommendations pages chained by nextToken."""

    def __init__(self, pages: list[Mapping[str, Any]]) -> None:
        self.meta = SimpleNamespace(region_name="us-east-1")
        self.list_recommendations = _TokenPagedOperation(pages, op="ListRecommendations")

    @property
    def calls(self) -> list[dict[str, Any]]:
        return self.list_recommendations.calls


class FakeEC2:
    """EC2 fake exposing a describe_instances paginator.

    `requests` records the kwargs handed to the paginator.
    """

    def __init__(self, pages: list[Mapping[str, Any]], *, region: str = "eu-west-3") -> None:
        self.meta = SimpleNamespace(region_name=region)
        self._pages = pages
        self.requests: list[dict[str, Any]] = []

    def get_paginator(self, op_name: str) -> Any:
        if op_name != "describe_instances":
            raise KeyError(f"FakeEC2 has no paginator pages configured for {op_name}")
        fake = self

        class _Recorder(FakePaginator):
            def paginate(self, **kwargs: Any) -> Iterable[Mapping[str, Any]]:
                fake.requests.append(dict(kwargs))
                yield from super().paginate(**kwargs)

        return _Recorder(self._pages)


@dataclass(frozen=True)
class FakePriceQuote:
    unit_price_usd: float
    unit: str = "Hrs"
    source: str = "fake"


class FakePricingService:
    """Deterministic ec2_instance_hour lookups keyed by instance type."""

    def __init__(self, prices: Mapping[str, float]) -> None:
        self._prices = dict(prices)
        self.calls: list[dict[str, Any]] = []

    def ec2_instance_hour(self, **kwargs: Any) -> FakePriceQuote | None:
        self.calls.append(dict(kwargs))
        price = self._prices.get(str(kwargs.get("instance_type")))
        return FakePriceQuote(unit_price_usd=price) if price is not None else None


def make_services(**clients: Any) -> Services:
    """Services bag from keyword clients (ce=, cloudwatch=, ec2=, ...)."""
    return Services(**clients)


def make_context(*, now: datetime = FIXED_NOW, **clients: Any) -> ToolContext:
    """ToolContext with a pinned clock and the given fake clients."""
    return ToolContext(
        services=make_services(**clients),
        clock=lambda: now,
        invocation_id="test-invocation",
    )
