"""Shared helpers for AWS tools.

The tool layer tends to repeat a few patterns:
- follow continuation tokens until the provider signals the last page
- normalize timestamps to UTC
- pull tag values out of AWS tag lists

Keeping these helpers in one place keeps pagination and logging consistent
across tools.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from botocore.exceptions import OperationNotPageableError


def get_logger(name: str) -> logging.Logger:
    """Module logger under the ``agent_tools.aws`` namespace."""
    return logging.getLogger(f"agent_tools.aws.{name}")


def utc(dt: datetime | None) -> datetime | None:
    """Return ``dt`` converted to timezone-aware UTC (or None)."""

    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def iso_utc(dt: datetime | str | None) -> str:
    """ISO8601 text for a datetime (UTC); strings pass through unchanged."""
    if dt is None:
        return ""
    if isinstance(dt, str):
        return dt
    return (utc(dt) or dt).isoformat()


def safe_float(value: Any, default: float = 0.0) -> float:
    """Best-effort float conversion."""

    try:
        if value is None:
            return float(default)
        return float(value)
    except (TypeError, ValueError):
        return float(default)


def tag_value(tags: Any, key: str) -> str:
    """Value of tag `key` from a ``[{"Key":..., "Value":...}]`` list (case-sensitive)."""
    if not isinstance(tags, list):
        return ""
    for item in tags:
        if isinstance(item, Mapping) and item.get("Key") == key:
            return str(item.get("Value") or "")
    return ""


def region_from_az(availability_zone: str) -> str:
    """``us-east-1a`` -> ``us-east-1``. Empty input gives an empty string."""
    az = str(availability_zone or "")
    return az[:-1] if az else ""


def iter_pages(
    client: Any,
    operation: str,
    *,
    params: dict[str, Any] | None = None,
    request_token_key: str = "NextToken",
    response_token_keys: Sequence[str] = ("NextToken",),
    max_pages: int | None = None,
) -> Iterator[dict[str, Any]]:
    """Yield whole response pages by following a continuation token.

    Cost Explorer names its token ``NextPageToken``; most other APIs use
    ``NextToken``. Stops after `max_pages` pages when given.
    """
    call = getattr(client, operation, None)
    if call is None:
        raise AttributeError(f"client has no operation {operation}")

    params = dict(params or {})
    next_token: str | None = None
    pages = 0
    while True:
        req = dict(params)
        if next_token:
            req[request_token_key] = next_token
        resp = call(**req) if req else call()
        pages += 1
        yield resp

        next_token = None
        for key in response_token_keys:
            token = resp.get(key)
            if token:
                next_token = str(token)
                break
        if not next_token:
            break
        if max_pages is not None and pages >= max_pages:
            break


def paginate_items(
    client: Any,
    operation: str,
    result_key: str,
    *,
    params: dict[str, Any] | None = None,
    request_token_key: str = "NextToken",
    response_token_keys: Sequence[str] = ("NextToken",),
    paginator_fallback_exceptions: tuple[type[Exception], ...] = (
        OperationNotPageableError,
        AttributeError,
        ValueError,
    ),
) -> Iterator[dict[str, Any]]:
    """Yield dict items from paginator when available, else token-loop fallback.

    This keeps tool pagination behavior deterministic while still supporting
    unit-test fakes that do not implement boto3 paginators.
    """
    params = dict(params or {})

    if hasattr(client, "get_paginator"):
        try:
            paginator = client.get_paginator(operation)
        except paginator_fallback_exceptions:
            paginator = None
        if paginator is not None:
            for page in paginator.paginate(**params):
                for item in page.get(result_key, []) or []:
                    if isinstance(item, dict):
                        yield item
            return

    for page in iter_pages(
        client,
        operation,
        params=params,
        request_token_key=request_token_key,
        response_token_keys=response_token_keys,
    ):
        for item in page.get(result_key, []) or []:
            if isinstance(item, dict):
                yield item
