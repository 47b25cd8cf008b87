"""Unit tests for the cached on-demand pricing service."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

from services.pricing_service import (
    InMemoryStorage,
    JsonFileStorage,
    PriceQuote,
    PricingCache,
    PricingService,
    make_pricing_cache,
    operating_system_for_platform,
    pricing_tenancy,
)
from tests.aws_mocks import make_client_error

_T0 = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def _price_item(usd: str, *, unit: str = "Hrs") -> str:
    return json.dumps(
        {
            "product": {"attributes": {"instanceType": "t3.micro"}},
            "terms": {
                "OnDemand": {
                    "TERM": {
                        "priceDimensions": {
                            "TERM.DIM": {"unit": unit, "pricePerUnit": {"USD": usd}},
                        }
                    }
                }
            },
        }
    )


class _FakePricingClient:
    def __init__(self, pages: list[dict[str, Any]], *, raise_code: str | None = None) -> None:
        self._pages = list(pages)
        self._raise_code = raise_code
        self.calls: list[dict[str, Any]] = []

    def get_products(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(kwargs)
        if self._raise_code:
            raise make_client_error("GetProducts", code=self._raise_code)
        return self._pages.pop(0) if self._pages else {}


class _Clock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def test_ec2_instance_hour_queries_pricing_api() -> None:
    client = _FakePricingClient([{"PriceList": [_price_item("0.0118")]}])
    svc = PricingService(pricing_client=client, clock=lambda: _T0)

    quote = svc.ec2_instance_hour(region="eu-west-3", instance_type="t3.micro")

    assert quote is not None
    assert quote.unit_price_usd == pytest.approx(0.0118)
    assert quote.unit == "Hrs"
    assert quote.source == "pricing_api"
    assert quote.as_of == _T0

    call = client.calls[0]
    assert call["ServiceCode"] == "AmazonEC2"
    assert call["MaxResults"] == 100
    assert {"Type": "TERM_MATCH", "Field": "location", "Value": "EU (Paris)"} in call["Filters"]
    assert {"Type": "TERM_MATCH", "Field": "tenancy", "Value": "Shared"} in call["Filters"]


def test_repeated_lookup_is_memoised() -> None:
    client = _FakePricingClient([{"PriceList": [_price_item("0.0118")]}])
    svc = PricingService(pricing_client=client, clock=lambda: _T0)

    first = svc.ec2_instance_hour(region="eu-west-3", instance_type="t3.micro")
    second = svc.ec2_instance_hour(region="eu-west-3", instance_type="t3.micro")

    assert first is second
    assert len(client.calls) == 1


def test_follows_next_token_and_skips_unusable_items() -> None:
    client = _FakePricingClient(
        [
            {"PriceList": ["{not json", _price_item("0.0")], "NextToken": "p2"},
            {"PriceList": [_price_item("5", unit="Quantity"), _price_item("0.2")]},
        ]
    )
    svc = PricingService(pricing_client=client, clock=lambda: _T0)

    quote = svc.ec2_instance_hour(region="us-east-1", instance_type="m5.large")

    assert quote is not None
    assert quote.unit_price_usd == pytest.approx(0.2)
    assert client.calls[1]["NextToken"] == "p2"


def test_unknown_region_returns_none_without_calling() -> None:
    client = _FakePricingClient([])
    svc = PricingService(pricing_client=client)

    assert svc.ec2_instance_hour(region="mars-1", instance_type="t3.micro") is None
    assert client.calls == []


def test_client_error_returns_none() -> None:
    svc = PricingService(pricing_client=_FakePricingClient([], raise_code="ThrottlingException"))
    assert svc.ec2_instance_hour(region="us-east-1", instance_type="t3.micro") is None


def test_no_match_returns_none() -> None:
    svc = PricingService(pricing_client=_FakePricingClient([{"PriceList": []}]))
    assert svc.ec2_instance_hour(region="us-east-1", instance_type="t3.micro") is None


def test_cache_ttl() -> None:
    clock = _Clock(_T0)
    cache = PricingCache(storage=InMemoryStorage(), ttl=timedelta(days=7), clock=clock)
    cache.put("k", PriceQuote(unit_price_usd=0.5, unit="Hrs", source="pricing_api", as_of=_T0))

    clock.now = _T0 + timedelta(days=6)
    hit = cache.get("k")
    assert hit is not None
    assert hit.source == "cache"
    assert hit.unit_price_usd == 0.5

    clock.now = _T0 + timedelta(days=8)
    assert cache.get("k") is None
    assert cache.get("missing") is None


def test_shared_cache_avoids_second_api_call() -> None:
    storage = InMemoryStorage()
    first_client = _FakePricingClient([{"PriceList": [_price_item("0.0118")]}])
    PricingService(
        pricing_client=first_client,
        cache=PricingCache(storage=storage, ttl=timedelta(days=7), clock=lambda: _T0),
        clock=lambda: _T0,
    ).ec2_instance_hour(region="eu-west-3", instance_type="t3.micro")

    second_client = _FakePricingClient([])
    quote = PricingService(
        pricing_client=second_client,
        cache=PricingCache(storage=storage, ttl=timedelta(days=7), clock=lambda: _T0),
        clock=lambda: _T0,
    ).ec2_instance_hour(region="eu-west-3", instance_type="t3.micro")

    assert quote is not None
    assert quote.source == "cache"
    assert second_client.calls == []


def test_json_file_cache_round_trip(tmp_path: Path) -> None:
    cache = make_pricing_cache(base_dir=tmp_path / "pricing", ttl_days=1, clock=lambda: _T0)
    cache.put("k", PriceQuote(unit_price_usd=0.25, unit="Hrs", source="pricing_api", as_of=_T0))

    path = tmp_path / "pricing" / "aws_pricing_cache.json"
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload == {
        "version": 1,
        "items": {"k": {"value": 0.25, "unit": "Hrs", "ts": "2024-03-15T12:00:00Z"}},
    }

    reloaded = make_pricing_cache(base_dir=tmp_path / "pricing", ttl_days=1, clock=lambda: _T0)
    hit = reloaded.get("k")
    assert hit is not None
    assert hit.unit_price_usd == 0.25


def test_corrupt_cache_file_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / "cache.json"
    path.write_text("{broken", encoding="utf-8")

    assert JsonFileStorage(path).load() == {}


def test_platform_and_tenancy_mapping() -> None:
    assert operating_system_for_platform("Linux/UNIX") == "Linux"
    assert operating_system_for_platform("Windows BYOL") == "Windows"
    assert operating_system_for_platform("Red Hat Enterprise Linux with HA") == "RHEL"
    assert operating_system_for_platform("") == "Linux"
    assert pricing_tenancy("default") == "Shared"
    assert pricing_tenancy("dedicated") == "Dedicated"
    assert pricing_tenancy("") == "Shared"
