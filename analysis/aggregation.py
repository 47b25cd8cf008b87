"""Fold per-period cost records into per-dimension totals and series."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from analysis.defaults import COMPOSITE_KEY_SEPARATOR, NOISE_FLOOR
from contracts.cost_types import AggregatedDimension, CostRecord

KeyFn = Callable[[CostRecord, str], str]


def parse_cost(value: Any) -> Decimal:
    """Parse a Cost Explorer amount; anything unparseable counts as zero."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        parsed = value
    else:
        try:
            parsed = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return Decimal("0")
    if not parsed.is_finite():
        return Decimal("0")
    return parsed


def parent_key(record: CostRecord, key: str) -> str:
    """First-level group value of `key` in `record`."""
    return record.parts(key)[0]


def child_key(record: CostRecord, key: str) -> str:
    """Second-level group value(s) of `key`; a single-level key is its own child."""
    parts = record.parts(key)
    return COMPOSITE_KEY_SEPARATOR.join(parts[1:]) or parts[0]


def _fold(
    records: Iterable[CostRecord],
    bucket: Callable[[CostRecord, str], tuple[str, str]],
) -> dict[str, dict[str, AggregatedDimension]]:
    out: dict[str, dict[str, AggregatedDimension]] = {}
    for record in records:
        if not record.dimensions:
            continue
        for raw_key, raw_cost in record.dimensions.items():
            cost = parse_cost(raw_cost)
            if cost < NOISE_FLOOR:
                continue
            outer, key = bucket(record, raw_key)
            dims = out.setdefault(outer, {})
            dim = dims.get(key)
            if dim is None:
                dim = AggregatedDimension(key=key)
                dims[key] = dim
            dim.add(record.date, cost)
    return out


def aggregate(
    records: Iterable[CostRecord],
    *,
    key_fn: KeyFn | None = None,
) -> dict[str, AggregatedDimension]:
    """Return one AggregatedDimension per key seen at or above the noise floor.

    `key_fn(record, key)` maps a raw dimension key to the aggregation key (for
    instance :func:`parent_key` to roll two-level keys up to their first level).
    """
    def bucket(record: CostRecord, raw_key: str) -> tuple[str, str]:
        return "", (key_fn(record, raw_key) if key_fn is not None else raw_key)

    return _fold(records, bucket).get("", {})


def roll_up_parents(records: Iterable[CostRecord]) -> dict[str, AggregatedDimension]:
    """Aggregate two-level records by their first key component only."""
    return aggregate(records, key_fn=parent_key)


def group_by_parent(records: Iterable[CostRecord]) -> dict[str, dict[str, AggregatedDimension]]:
    """Aggregate two-level records as {parent: {child: AggregatedDimension}}.

    A key without a child component is listed under itself.
    """
    return _fold(records, lambda record, key: (parent_key(record, key), child_key(record, key)))


def total_of(dimensions: Iterable[AggregatedDimension] | Mapping[str, AggregatedDimension]) -> Decimal:
    values = dimensions.values() if isinstance(dimensions, Mapping) else dimensions
    return sum((d.total_cost for d in values), Decimal("0"))
