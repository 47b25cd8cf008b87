"""Centralized default values for AWS tools.

This module contains non-environment-specific defaults used by tools.
Keep these values deterministic and stable across runs.
"""

from __future__ import annotations

from typing import Final

# Cost Explorer
CE_COST_METRIC: Final[str] = "AmortizedCost"
CE_USAGE_METRIC: Final[str] = "UsageQuantity"
CE_MAX_GROUP_BY: Final[int] = 2
CE_GROUP_BY_DIMENSIONS: Final[tuple[str, ...]] = (
    "AZ",
    "INSTANCE_TYPE",
    "LINKED_ACCOUNT",
    "OPERATION",
    "PURCHASE_TYPE",
    "SERVICE",
    "USAGE_TYPE",
    "PLATFORM",
    "TENANCY",
    "RECORD_TYPE",
    "LEGAL_ENTITY_NAME",
    "INVOICING_ENTITY",
    "DEPLOYMENT_OPTION",
    "DATABASE_ENGINE",
    "CACHE_ENGINE",
    "INSTANCE_TYPE_FAMILY",
    "REGION",
    "BILLING_ENTITY",
    "RESERVATION_ID",
    "SAVINGS_PLANS_TYPE",
    "SAVINGS_PLAN_ARN",
    "OPERATING_SYSTEM",
)
# Record types left out of the per-service/per-region breakdown.
CE_EXCLUDED_RECORD_TYPES: Final[tuple[str, ...]] = (
    "Credit",
    "Tax",
    "Enterprise Discount Program Discount",
)

# CloudWatch
CW_METRIC_QUERY_ID: Final[str] = "m1"
CW_DEFAULT_REGION: Final[str] = "us-east-1"

# Cost Optimization Hub
COH_DEFAULT_REGION: Final[str] = "us-east-1"
COH_CURRENCY: Final[str] = "USD"

# EC2
EC2_NAME_TAG: Final[str] = "Name"
EC2_MISSING_NAME: Final[str] = "N/A"
