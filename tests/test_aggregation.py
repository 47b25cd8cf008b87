"""Unit tests for the per-dimension cost aggregator."""

from __future__ import annotations

from decimal import Decimal

import pytest

from analysis.aggregation import (
    aggregate,
    child_key,
    group_by_parent,
    parent_key,
    parse_cost,
    roll_up_parents,
    total_of,
)
from contracts.cost_types import CostRecord, DailyCost
from tests.factories import make_grouped_records, make_records


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("12.5", Decimal("12.5")),
        (" 3.10 ", Decimal("3.10")),
        (7, Decimal("7")),
        (Decimal("1.25"), Decimal("1.25")),
        (None, Decimal("0")),
        ("", Decimal("0")),
        ("abc", Decimal("0")),
        ("NaN", Decimal("0")),
        ("Infinity", Decimal("0")),
    ],
)
def test_parse_cost(raw: object, expected: Decimal) -> None:
    assert parse_cost(raw) == expected


def test_sub_cent_cost_is_excluded() -> None:
    out = aggregate([CostRecord(date="2024-01-01", dimensions={"S3": "0.009999"})])
    assert "S3" not in out


def test_one_cent_cost_is_included() -> None:
    out = aggregate([CostRecord(date="2024-01-01", dimensions={"S3": "0.01"})])

    assert out["S3"].total_cost == Decimal("0.01")
    assert out["S3"].daily_costs == [DailyCost(date="2024-01-01", cost=Decimal("0.01"))]


def test_totals_and_series_are_chronological() -> None:
    records = make_records(
        [
            ("2024-01-01", {"EC2": "10.00", "S3": "1.50"}),
            ("2024-01-02", {"EC2": "12.00"}),
            ("2024-01-03", {"EC2": "8.00", "S3": "2.50"}),
        ]
    )
    out = aggregate(records)

    assert out["EC2"].total_cost == Decimal("30.00")
    assert [p.date for p in out["EC2"].daily_costs] == ["2024-01-01", "2024-01-02", "2024-01-03"]
    assert out["S3"].costs() == [Decimal("1.50"), Decimal("2.50")]


def test_unparseable_values_count_as_zero_and_are_skipped() -> None:
    out = aggregate([CostRecord(date="2024-01-01", dimensions={"EC2": "n/a", "S3": "4"})])
    assert set(out) == {"S3"}


def test_empty_inputs_are_noops() -> None:
    assert aggregate([]) == {}
    assert aggregate([CostRecord(date="2024-01-01", dimensions={})]) == {}


def test_duplicate_date_is_merged_into_one_entry() -> None:
    records = make_records([("2024-01-01", {"EC2": "1.00"}), ("2024-01-01", {"EC2": "2.00"})])
    out = aggregate(records)

    assert out["EC2"].total_cost == Decimal("3.00")
    assert out["EC2"].daily_costs == [DailyCost(date="2024-01-01", cost=Decimal("3.00"))]


def test_parent_and_child_keys_come_from_recorded_parts() -> None:
    record = CostRecord(
        date="2024-01-01",
        dimensions={"Amazon Web Services, Inc., Amazon EC2": "10", "Amazon S3": "2"},
        key_parts={"Amazon Web Services, Inc., Amazon EC2": ("Amazon Web Services, Inc.", "Amazon EC2")},
    )

    assert parent_key(record, "Amazon Web Services, Inc., Amazon EC2") == "Amazon Web Services, Inc."
    assert child_key(record, "Amazon Web Services, Inc., Amazon EC2") == "Amazon EC2"
    assert parent_key(record, "Amazon S3") == "Amazon S3"
    assert child_key(record, "Amazon S3") == "Amazon S3"


def test_roll_up_parents_and_group_by_parent() -> None:
    records = make_grouped_records(
        [
            ("2024-01-01", {("EC2", "Box"): "3.00", ("EC2", "EBS"): "1.00", ("S3", "Storage"): "2.00"}),
            ("2024-01-02", {("EC2", "Box"): "4.00", ("S3", "Storage"): "2.00"}),
        ]
    )

    parents = roll_up_parents(records)
    assert parents["EC2"].total_cost == Decimal("8.00")
    assert parents["EC2"].costs() == [Decimal("4.00"), Decimal("4.00")]
    assert parents["S3"].total_cost == Decimal("4.00")

    children = group_by_parent(records)
    assert set(children) == {"EC2", "S3"}
    assert children["EC2"]["Box"].total_cost == Decimal("7.00")
    assert children["EC2"]["EBS"].key == "EBS"
    assert children["S3"]["Storage"].costs() == [Decimal("2.00"), Decimal("2.00")]


def test_group_by_parent_does_not_split_comma_bearing_parents() -> None:
    records = make_grouped_records(
        [("2024-01-01", {("Amazon Web Services, Inc.", "Amazon EC2"): "10", ("AWS EMEA SARL", "Amazon S3"): "4"})]
    )

    assert set(roll_up_parents(records)) == {"Amazon Web Services, Inc.", "AWS EMEA SARL"}
    children = group_by_parent(records)
    assert set(children["Amazon Web Services, Inc."]) == {"Amazon EC2"}
    assert children["Amazon Web Services, Inc."]["Amazon EC2"].total_cost == Decimal("10")


def test_total_of_accepts_mappings_and_iterables() -> None:
    out = aggregate(make_records([("2024-01-01", {"A": "1.25", "B": "2.75"})]))
    assert total_of(out) == Decimal("4.00")
    assert total_of(list(out.values())) == Decimal("4.00")
