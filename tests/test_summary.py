"""Unit tests for the human-readable cost summary."""

from __future__ import annotations

from decimal import Decimal

from analysis.defaults import NO_DATA_MESSAGE
from analysis.summary import (
    format_dimension_line,
    format_header,
    format_period_date,
    money,
    summarize_cost_records,
)
from contracts.cost_types import AggregatedDimension
from tests.factories import make_dimension, make_grouped_records, make_records


def test_empty_records_yield_no_data_message() -> None:
    assert summarize_cost_records([], "DAILY") == NO_DATA_MESSAGE


def test_single_dimension_daily_summary_exact_text() -> None:
    records = make_records(
        [
            ("2024-01-01", {"EC2": "10.00", "S3": "0.001"}),
            ("2024-01-02", {"EC2": "12.00"}),
        ]
    )

    text = summarize_cost_records(records, "DAILY")
    lines = text.splitlines()

    assert lines[0] == "Cost data range: 2024-01-01 - 2024-01-02"
    assert lines[1] == (
        "EC2: Total cost for 2 days $22.00 (100.0%), average $11.00/day (±$1.00), "
        "trending up at 18.2% per day, max cost was on 2024-01-02 at $12.00, "
        "min cost was on 2024-01-01 at $10.00"
    )
    assert len(lines) == 2
    assert "S3" not in text


def test_monthly_summary_uses_month_names_and_units() -> None:
    records = make_records([("2024-01-01", {"EC2": "100"}), ("2024-02-01", {"EC2": "200"})])

    lines = summarize_cost_records(records, "MONTHLY", title="awsGetCostAndUsage").splitlines()

    assert lines[0] == "awsGetCostAndUsage data range: January 2024 - February 2024"
    assert lines[1] == (
        "EC2: Total cost for 2 months $300.00 (100.0%), average $150.00/month (±$50.00), "
        "trending up at 66.7% per month, max cost was on February 2024 at $200.00, "
        "min cost was on January 2024 at $100.00"
    )


def test_insignificant_tail_is_omitted() -> None:
    records = make_records([("2024-01-01", {"A": "96", "B": "3", "C": "1"})])

    lines = summarize_cost_records(records, "DAILY").splitlines()

    assert len(lines) == 2
    assert lines[1].startswith("A: Total cost for 1 days $96.00 (96.0%)")


def test_two_level_grouping_renders_children_relative_to_parent() -> None:
    records = make_grouped_records(
        [("2024-01-01", {("S3", "Storage"): "60", ("EC2", "Box"): "30", ("EC2", "EBS"): "10"})]
    )

    text = summarize_cost_records(records, "DAILY", group_by=["SERVICE", "USAGE_TYPE"])
    lines = text.splitlines()

    assert lines[0] == "Cost data range: 2024-01-01 - 2024-01-01 grouped by SERVICE, USAGE_TYPE"
    assert lines[1].startswith("S3: Total cost for 1 days $60.00 (60.0%)")
    assert lines[2].startswith("  Storage: Total cost for 1 days $60.00 (100.0%)")
    assert lines[3].startswith("EC2: Total cost for 1 days $40.00 (40.0%)")
    assert lines[4].startswith("  Box: Total cost for 1 days $30.00 (75.0%)")
    assert lines[5].startswith("  EBS: Total cost for 1 days $10.00 (25.0%)")
    assert len(lines) == 6


def test_children_are_capped_per_parent() -> None:
    dims = {("P", f"c{i:02d}"): str(100 - i) for i in range(12)}
    records = make_grouped_records([("2024-01-01", dims)])

    lines = summarize_cost_records(records, "DAILY", group_by=["SERVICE", "USAGE_TYPE"]).splitlines()
    children = [line for line in lines if line.startswith("  ")]

    assert len(children) == 10
    assert children[0].startswith("  c00:")
    assert not any(line.startswith("  c10:") or line.startswith("  c11:") for line in children)


def test_custom_max_sub_dimensions() -> None:
    records = make_grouped_records([("2024-01-01", {("P", "a"): "5", ("P", "b"): "3", ("P", "c"): "2"})])
    lines = summarize_cost_records(
        records, "DAILY", group_by=["SERVICE", "USAGE_TYPE"], max_sub_dimensions=1
    ).splitlines()
    children = [line for line in lines if line.startswith("  ")]
    assert len(children) == 1
    assert children[0].startswith("  a: Total cost for 1 days $5.00 (50.0%)")


def test_group_values_containing_commas_keep_their_parent() -> None:
    records = make_grouped_records(
        [
            (
                "2024-01-01",
                {
                    ("Amazon Web Services, Inc.", "Amazon EC2"): "10",
                    ("Amazon Web Services, Inc.", "Amazon S3, Glacier"): "5",
                },
            )
        ]
    )

    lines = summarize_cost_records(
        records, "DAILY", group_by=["LEGAL_ENTITY_NAME", "SERVICE"]
    ).splitlines()

    assert lines[1].startswith("Amazon Web Services, Inc.: Total cost for 1 days $15.00 (100.0%)")
    assert lines[2].startswith("  Amazon EC2: Total cost for 1 days $10.00 (66.7%)")
    assert lines[3].startswith("  Amazon S3, Glacier: Total cost for 1 days $5.00 (33.3%)")
    assert len(lines) == 4


def test_zero_total_renders_zero_share() -> None:
    line = format_dimension_line(
        AggregatedDimension(key="X"), total_cost=Decimal("0"), period_count=3, granularity="DAILY"
    )
    assert line == (
        "X: Total cost for 3 days $0.00 (0.0%), average $0.00/day (±$0.00), trending stable"
    )


def test_average_divides_by_period_count() -> None:
    dim = make_dimension("EC2", 30)
    line = format_dimension_line(dim, total_cost=Decimal("30"), period_count=3, granularity="DAILY")
    assert "average $10.00/day" in line


def test_formatting_helpers() -> None:
    assert money(Decimal("2.345")) == "2.35"
    assert money(Decimal("2.344")) == "2.34"
    assert format_period_date("2024-11-01", "MONTHLY") == "November 2024"
    assert format_period_date("not-a-date", "MONTHLY") == "not-a-date"
    assert format_period_date("2024-11-05", "DAILY") == "2024-11-05"
    assert format_header("T", "2024-01-01", "2024-01-31", "DAILY", ["SERVICE"]) == (
        "T data range: 2024-01-01 - 2024-01-31 grouped by SERVICE"
    )
