"""
services/pricing_service.py

AWS Pricing Service (cached, injectable)
========================================

Goals:
- Resolve public on-demand unit prices used to enrich instance descriptions
- Avoid repeated Pricing API calls via an explicit cache object owned by the caller
- Be resilient: if the Pricing API fails or a mapping is missing, return None
- No process-wide state: storage and clock are injected, so tests can pin time

Notes:
- AWS Pricing is a global service; in the commercial partition it is accessed
  via us-east-1.
- Pricing filters require "location" like "EU (Paris)", not region code "eu-west-3".
  We ship a mapping for common regions. Unknown regions => None.

Minimal IAM permission:
- pricing:GetProducts
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from botocore.exceptions import BotoCoreError, ClientError

_LOGGER = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# -------------------------
# Region -> "location" mapping (commercial partition)
# -------------------------
_REGION_TO_LOCATION: Dict[str, str] = {
    "us-east-1": "US East (N. Virginia)",
    "us-east-2": "US East (Ohio)",
    "us-west-1": "US West (N. California)",
    "us-west-2": "US West (Oregon)",
    "ca-central-1": "Canada (Central)",
    "sa-east-1": "South America (Sao Paulo)",
    "eu-west-1": "EU (Ireland)",
    "eu-west-2": "EU (London)",
    "eu-west-3": "EU (Paris)",
    "eu-central-1": "EU (Frankfurt)",
    "eu-central-2": "EU (Zurich)",
    "eu-north-1": "EU (Stockholm)",
    "eu-south-1": "EU (Milan)",
    "me-south-1": "Middle East (Bahrain)",
    "af-south-1": "Africa (Cape Town)",
    "ap-northeast-1": "Asia Pacific (Tokyo)",
    "ap-northeast-2": "Asia Pacific (Seoul)",
    "ap-northeast-3": "Asia Pacific (Osaka)",
    "ap-south-1": "Asia Pacific (Mumbai)",
    "ap-southeast-1": "Asia Pacific (Singapore)",
    "ap-southeast-2": "Asia Pacific (Sydney)",
    "ap-southeast-3": "Asia Pacific (Jakarta)",
}

# DescribeInstances PlatformDetails -> Pricing "operatingSystem"
_PLATFORM_TO_OS: Dict[str, str] = {
    "linux/unix": "Linux",
    "red hat enterprise linux": "RHEL",
    "suse linux": "SUSE",
    "windows": "Windows",
    "ubuntu pro": "Ubuntu Pro",
}

# DescribeInstances Placement.Tenancy -> Pricing "tenancy"
_TENANCY: Dict[str, str] = {
    "default": "Shared",
    "dedicated": "Dedicated",
    "host": "Host",
}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _sha1(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8"), usedforsecurity=False).hexdigest()


def _json_dumps_stable(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _safe_float(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def operating_system_for_platform(platform_details: str) -> str:
    """Map EC2 PlatformDetails to the Pricing API operatingSystem value."""
    text = str(platform_details or "").strip().lower()
    for prefix, os_name in _PLATFORM_TO_OS.items():
        if text.startswith(prefix):
            return os_name
    return "Linux"


def pricing_tenancy(tenancy: str) -> str:
    return _TENANCY.get(str(tenancy or "").strip().lower(), "Shared")


@dataclass(frozen=True)
class PriceQuote:
    """
    Represents a single resolved unit price quote.

    - unit_price_usd: e.g. 0.1234
    - unit: e.g. "Hrs", "GB-Mo"
    - source: "pricing_api" or "cache"
    - as_of: timestamp for cache freshness
    """
    unit_price_usd: float
    unit: str
    source: str
    as_of: datetime


class CacheStorage(Protocol):
    """Persistence backend for :class:`PricingCache` items."""

    def load(self) -> Dict[str, Any]:
        ...

    def save(self, items: Mapping[str, Any]) -> None:
        ...


class InMemoryStorage:
    """Storage that lives as long as the object; handy for tests and Lambdas."""

    def __init__(self, items: Optional[Mapping[str, Any]] = None) -> None:
        self._items: Dict[str, Any] = dict(items or {})

    def load(self) -> Dict[str, Any]:
        return dict(self._items)

    def save(self, items: Mapping[str, Any]) -> None:
        self._items = dict(items)


class JsonFileStorage:
    """
    JSON file storage.

    File format:
      {
        "version": 1,
        "items": {
          "<key>": {"value": 0.1234, "unit": "Hrs", "ts": "2026-01-24T12:34:56Z"}
        }
      }
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            _LOGGER.warning("Ignoring unreadable pricing cache %s: %s", self._path, exc)
            return {}
        items = raw.get("items", {}) if isinstance(raw, dict) else {}
        return dict(items) if isinstance(items, dict) else {}

    def save(self, items: Mapping[str, Any]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            payload = {"version": 1, "items": dict(items)}
            self._path.write_text(_json_dumps_stable(payload), encoding="utf-8")
        except OSError as exc:
            # Read-only filesystems are common (Lambda); the cache stays in memory.
            _LOGGER.warning("Could not persist pricing cache %s: %s", self._path, exc)


class PricingCache:
    """
    TTL cache of resolved prices, backed by an injected storage and clock.

    Owned by the caller (typically the services factory); nothing here is
    shared at module level.
    """

    def __init__(self, *, storage: CacheStorage, ttl: timedelta, clock: Clock = _utc_now) -> None:
        self._storage = storage
        self._ttl = ttl
        self._clock = clock
        self._mem: Dict[str, Dict[str, Any]] = {}
        self._loaded = False

    def _load(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        self._mem = {k: v for k, v in self._storage.load().items() if isinstance(v, dict)}

    def get(self, key: str) -> Optional[PriceQuote]:
        self._load()
        item = self._mem.get(key)
        if item is None:
            return None

        ts = item.get("ts")
        unit = str(item.get("unit") or "")
        val = _safe_float(item.get("value"))
        if val is None or not unit or not ts:
            return None

        try:
            as_of = datetime.fromisoformat(str(ts).replace("Z", "+00:00"))
        except ValueError:
            return None

        if self._clock() - as_of > self._ttl:
            return None

        return PriceQuote(unit_price_usd=val, unit=unit, source="cache", as_of=as_of)

    def put(self, key: str, quote: PriceQuote) -> None:
        self._load()
        self._mem[key] = {
            "value": quote.unit_price_usd,
            "unit": quote.unit,
            "ts": quote.as_of.astimezone(timezone.utc).isoformat().replace("+00:00", "Z"),
        }
        self._storage.save(self._mem)


class PricingService:
    """
    Resolves AWS public on-demand prices using the Pricing API.

    The primary method is:
      get_on_demand_unit_price(service_code, filters, unit)
    """

    def __init__(
        self,
        *,
        pricing_client: Any,
        cache: Optional[PricingCache] = None,
        clock: Clock = _utc_now,
        partition: str = "aws",
    ) -> None:
        self._client = pricing_client
        self._cache = cache
        self._clock = clock
        self._partition = partition
        self._memo: Dict[str, PriceQuote] = {}

    def location_for_region(self, region: str) -> Optional[str]:
        return _REGION_TO_LOCATION.get(str(region or "").strip())

    def get_on_demand_unit_price(
        self,
        *,
        service_code: str,
        filters: Sequence[Mapping[str, str]],
        unit: str,
    ) -> Optional[PriceQuote]:
        """
        Return a PriceQuote for the given AWS Pricing query.

        `filters` is a sequence of dicts: {"Field": "...", "Value": "..."}.
        All filters are applied as TERM_MATCH.
        """
        normalized_filters = [
            {"Field": str(f.get("Field") or ""), "Value": str(f.get("Value") or "")}
            for f in filters
            if str(f.get("Field") or "") and str(f.get("Value") or "")
        ]
        key_payload = {
            "partition": self._partition,
            "service_code": service_code,
            "unit": unit,
            "filters": sorted(normalized_filters, key=lambda x: (x["Field"], x["Value"])),
        }
        cache_key = _sha1(_json_dumps_stable(key_payload))

        memo = self._memo.get(cache_key)
        if memo is not None:
            return memo

        if self._cache is not None:
            cached = self._cache.get(cache_key)
            if cached is not None:
                self._memo[cache_key] = cached
                return cached

        try:
            api_quote = self._fetch_from_pricing_api(
                service_code=service_code,
                filters=normalized_filters,
                unit=unit,
            )
        except (ClientError, BotoCoreError, ValueError) as exc:
            _LOGGER.warning("Pricing lookup failed for %s: %s", service_code, exc)
            return None

        if api_quote is None:
            return None

        self._memo[cache_key] = api_quote
        if self._cache is not None:
            self._cache.put(cache_key, api_quote)
        return api_quote

    def ec2_instance_hour(
        self,
        *,
        region: str,
        instance_type: str,
        operating_system: str = "Linux",
        tenancy: str = "Shared",
        capacitystatus: str = "Used",
        preinstalled_sw: str = "NA",
    ) -> Optional[PriceQuote]:
        """
        Best-effort EC2 on-demand hourly price.
        """
        location = self.location_for_region(region)
        if not location or not instance_type:
            return None

        filters: List[Dict[str, str]] = [
            {"Field": "location", "Value": location},
            {"Field": "productFamily", "Value": "Compute Instance"},
            {"Field": "instanceType", "Value": str(instance_type)},
            {"Field": "operatingSystem", "Value": operating_system},
            {"Field": "tenancy", "Value": tenancy},
            {"Field": "capacitystatus", "Value": capacitystatus},
            {"Field": "preInstalledSw", "Value": preinstalled_sw},
        ]
        return self.get_on_demand_unit_price(
            service_code="AmazonEC2",
            filters=filters,
            unit="Hrs",
        )

    def _fetch_from_pricing_api(
        self,
        *,
        service_code: str,
        filters: Sequence[Mapping[str, str]],
        unit: str,
    ) -> Optional[PriceQuote]:
        """
        Calls Pricing:GetProducts, parses first matching on-demand unit price for `unit`.
        """
        api_filters = [
            {"Type": "TERM_MATCH", "Field": str(f["Field"]), "Value": str(f["Value"])}
            for f in filters
        ]

        next_token: Optional[str] = None
        for _ in range(0, 5):  # safety limit
            kwargs: Dict[str, Any] = {
                "ServiceCode": service_code,
                "Filters": api_filters,
                "MaxResults": 100,
            }
            if next_token:
                kwargs["NextToken"] = next_token

            resp = self._client.get_products(**kwargs)
            for item in resp.get("PriceList", []) or []:
                quote = self._parse_price_item(item, expected_unit=unit)
                if quote is not None:
                    return quote

            next_token = resp.get("NextToken")
            if not next_token:
                break

        return None

    def _parse_price_item(self, item: Any, *, expected_unit: str) -> Optional[PriceQuote]:
        """
        Parse a PriceList entry (JSON string or dict): first OnDemand dimension
        whose unit matches and whose USD price is positive.
        """
        if isinstance(item, str):
            try:
                data = json.loads(item)
            except json.JSONDecodeError:
                return None
        elif isinstance(item, dict):
            data = item
        else:
            return None

        terms = data.get("terms", {})
        ondemand = terms.get("OnDemand", {}) if isinstance(terms, dict) else {}
        if not isinstance(ondemand, dict):
            return None

        for term in ondemand.values():
            dims = term.get("priceDimensions", {}) if isinstance(term, dict) else {}
            if not isinstance(dims, dict):
                continue
            for dim in dims.values():
                if not isinstance(dim, dict) or str(dim.get("unit") or "") != expected_unit:
                    continue
                price_per_unit = dim.get("pricePerUnit", {})
                usd = _safe_float(price_per_unit.get("USD")) if isinstance(price_per_unit, dict) else None
                if usd is None or usd <= 0.0:
                    continue
                return PriceQuote(
                    unit_price_usd=usd,
                    unit=expected_unit,
                    source="pricing_api",
                    as_of=self._clock(),
                )

        return None


# -------------------------
# Factory helpers
# -------------------------

def make_pricing_cache(
    *,
    base_dir: Path,
    ttl_days: int = 7,
    filename: str = "aws_pricing_cache.json",
    clock: Clock = _utc_now,
) -> PricingCache:
    return PricingCache(
        storage=JsonFileStorage(Path(base_dir) / filename),
        ttl=timedelta(days=int(ttl_days)),
        clock=clock,
    )
