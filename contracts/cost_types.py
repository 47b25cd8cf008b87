"""
Typed records flowing through the cost-analysis engine.

- CostRecord: one reporting period (day or month) of per-dimension costs, as
  normalised from a Cost Explorer page. Immutable.
- AggregatedDimension: the per-dimension fold over all CostRecords of one
  invocation (total + chronological per-period series).
- TrendResult: direction/magnitude of the least-squares trend of a series.
- DateRange: absolute [start, end] dates derived from a relative lookback.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Literal

TrendDirection = Literal["up", "down", "stable"]


class Granularity(str, Enum):
    """Reporting bucket size (Cost Explorer naming)."""

    DAILY = "DAILY"
    MONTHLY = "MONTHLY"

    @property
    def unit(self) -> str:
        return "day" if self is Granularity.DAILY else "month"

    @property
    def unit_plural(self) -> str:
        return "days" if self is Granularity.DAILY else "months"

    @classmethod
    def parse(cls, value: Any) -> Granularity:
        if isinstance(value, Granularity):
            return value
        text = str(value or "").strip().upper()
        try:
            return cls(text)
        except ValueError as exc:
            raise ValueError(f"granularity must be DAILY or MONTHLY, got {value!r}") from exc


@dataclass(frozen=True)
class CostRecord:
    """
    Per-period costs keyed by dimension.

    `dimensions` values are the raw decimal strings returned by Cost Explorer.
    Keys are a single dimension value ("Amazon S3") or a comma-joined
    composite for two-level grouping ("Amazon S3, TimedStorage-ByteHrs").

    `key_parts` holds the Cost Explorer `Keys` each dimension key was built
    from. Composite keys are display strings; group values may contain ", "
    themselves, so the parts are the only reliable (parent, child) split.
    """
    date: str
    dimensions: Mapping[str, str] = field(default_factory=dict)
    amortized_cost: str | None = None
    usage_amount: str | None = None
    key_parts: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Freeze the mappings so a record cannot be mutated after construction.
        object.__setattr__(self, "dimensions", MappingProxyType(dict(self.dimensions or {})))
        parts = {str(k): tuple(v) for k, v in (self.key_parts or {}).items()}
        object.__setattr__(self, "key_parts", MappingProxyType(parts))

    def parts(self, key: str) -> tuple[str, ...]:
        """Group values behind `key`; a key without recorded parts stands alone."""
        return self.key_parts.get(key) or (key,)

    def to_wire(self) -> dict[str, Any]:
        out: dict[str, Any] = {"date": self.date, "dimensions": dict(self.dimensions)}
        if self.amortized_cost is not None:
            out["amortizedCost"] = self.amortized_cost
        if self.usage_amount is not None:
            out["usageAmount"] = self.usage_amount
        return out

    @classmethod
    def from_wire(cls, payload: Mapping[str, Any]) -> CostRecord:
        dims = payload.get("dimensions") or {}
        return cls(
            date=str(payload.get("date") or ""),
            dimensions={str(k): str(v) for k, v in dims.items()},
            amortized_cost=payload.get("amortizedCost"),
            usage_amount=payload.get("usageAmount"),
        )


@dataclass(frozen=True)
class DailyCost:
    """One (period, cost) point of a dimension series. Used for months too."""
    date: str
    cost: Decimal


@dataclass
class AggregatedDimension:
    """Running total and chronological series for one dimension key."""
    key: str
    total_cost: Decimal = Decimal("0")
    daily_costs: list[DailyCost] = field(default_factory=list)

    def add(self, period: str, cost: Decimal) -> None:
        self.total_cost += cost
        # At most one entry per date: merge repeated observations.
        for idx, existing in enumerate(self.daily_costs):
            if existing.date == period:
                self.daily_costs[idx] = DailyCost(date=period, cost=existing.cost + cost)
                return
        self.daily_costs.append(DailyCost(date=period, cost=cost))

    def costs(self) -> list[Decimal]:
        return [point.cost for point in self.daily_costs]


@dataclass(frozen=True)
class TrendResult:
    direction: TrendDirection
    percentage_per_period: Decimal = Decimal("0")

    @classmethod
    def stable(cls) -> TrendResult:
        return cls(direction="stable", percentage_per_period=Decimal("0"))


@dataclass(frozen=True)
class DateRange:
    """Inclusive date range; `start > end` encodes an empty range."""
    start: date
    end: date

    @property
    def is_empty(self) -> bool:
        return self.start > self.end

    @property
    def start_date(self) -> str:
        return self.start.isoformat()

    @property
    def end_date(self) -> str:
        return self.end.isoformat()

    def to_dict(self) -> dict[str, str]:
        return {"startDate": self.start_date, "endDate": self.end_date}
