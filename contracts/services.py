"""
contracts/services.py

Services container + region-aware factory (DI-friendly).

Goals:
- Tools never construct SDK clients or touch credentials; they receive a
  Services bag with the clients they need.
- Billing APIs (Cost Explorer, Cost Optimization Hub, Pricing) are only served
  from us-east-1, so those clients are shared across regions.
- Tests build Services directly from fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

import boto3
from botocore.config import Config

from services.pricing_service import PricingService, make_pricing_cache


@dataclass(frozen=True)
class Services:
    """
    Bag of SDK clients injected into ToolContext.

    Every client is optional; a tool that needs a missing client raises
    a ToolError naming it.

    `region` is informational (the region the regional clients point at).
    """
    ce: Any = None  # Cost Explorer client (global, us-east-1)
    cloudwatch: Any = None
    ec2: Any = None
    cost_optimization_hub: Any = None
    pricing: Any = None  # PricingService, not the raw client
    region: str = ""


class ServicesFactory:
    """
    Creates and caches AWS SDK clients per region.

    Usage:
      session = boto3.Session()
      factory = ServicesFactory(session=session, sdk_config=SDK_CONFIG)

      svcs = factory.for_region("eu-west-3")
      svcs2 = factory.for_region("eu-west-3")  # cached, same object
    """

    def __init__(
        self,
        *,
        session: boto3.Session,
        sdk_config: Config | None = None,
        pricing_enabled: bool = True,
        pricing_cache_dir: str | Path = Path("data") / ".cache" / "pricing",
        pricing_ttl_days: int = 7,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._session = session
        self._sdk_config = sdk_config
        self._by_region: dict[str, Services] = {}
        self._ce_global: Any | None = None
        self._coh_global: Any | None = None
        self._pricing_service: PricingService | None = None
        if pricing_enabled:
            now = clock or (lambda: datetime.now(timezone.utc))
            cache = make_pricing_cache(base_dir=Path(pricing_cache_dir), ttl_days=pricing_ttl_days, clock=now)
            self._pricing_service = PricingService(
                pricing_client=self._client("pricing", region="us-east-1"),
                cache=cache,
                clock=now,
            )

    def _client(self, service: str, *, region: str | None) -> Any:
        kwargs: dict[str, Any] = {}
        if region:
            kwargs["region_name"] = region
        if self._sdk_config is not None:
            kwargs["config"] = self._sdk_config
        return self._session.client(service, **kwargs)

    def global_ce(self) -> Any:
        """Cost Explorer is a global API; reuse one client."""
        if self._ce_global is None:
            self._ce_global = self._client("ce", region="us-east-1")
        return self._ce_global

    def global_cost_optimization_hub(self) -> Any:
        """Cost Optimization Hub aggregates all regions from us-east-1."""
        if self._coh_global is None:
            self._coh_global = self._client("cost-optimization-hub", region="us-east-1")
        return self._coh_global

    def for_region(self, region: str) -> Services:
        """
        Return cached Services for a given region, creating it if needed.
        """
        reg = str(region or "").strip()
        if not reg:
            raise ValueError("region must be a non-empty string")

        cached = self._by_region.get(reg)
        if cached is not None:
            return cached

        svcs = Services(
            ce=self.global_ce(),
            cloudwatch=self._client("cloudwatch", region=reg),
            ec2=self._client("ec2", region=reg),
            cost_optimization_hub=self.global_cost_optimization_hub(),
            pricing=self._pricing_service,
            region=reg,
        )
        self._by_region[reg] = svcs
        return svcs

    def clear_cache(self) -> None:
        """
        Clears per-region Services cache. (Mostly useful for tests.)
        """
        self._by_region.clear()
