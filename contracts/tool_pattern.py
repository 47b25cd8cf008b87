"""
tool_pattern.py

A standard, low-boilerplate pattern for agent-callable AWS tools.

Goals:
- Tools focus on calling one AWS API and shaping its result.
- Inputs are validated once, by pydantic models, before a tool runs.
- Every invocation is logged with the tool name and an invocation id.
- Transport-agnostic: tools return plain JSON-serialisable dicts.

How to use:
- Implement a tool as a class with `name`, `description`, `input_model` and
  `invoke(ctx, params)`.
- Run it with `run_tool(tool, raw_input, ctx)`, which validates raw input,
  sets the logging context, and wraps validation failures in ToolInputError.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from infra.logging_config import clear_request_context, set_request_context

from .services import Services

_LOGGER = logging.getLogger(__name__)


# -----------------------------
# Errors
# -----------------------------


class ToolError(Exception):
    """Base class for errors raised by the tool layer itself."""


class ToolNotFoundError(ToolError, KeyError):
    """Raised when dispatching to a tool name that is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Tool {name} not found")
        self.name = name

    def __str__(self) -> str:
        return str(self.args[0])


class ToolInputError(ToolError, ValueError):
    """Raised when tool input fails schema validation."""

    def __init__(self, tool_name: str, errors: list[dict[str, Any]]) -> None:
        super().__init__(f"{tool_name}: input validation failed")
        self.tool_name = tool_name
        self.errors = errors


class MissingClientError(ToolError):
    """Raised when the Services bag lacks a client a tool needs."""


# -----------------------------
# Core data structures
# -----------------------------


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class ToolContext:
    """
    Immutable per-invocation context injected into every tool.

    `region_services` resolves a Services bag for another region (typically
    ``ServicesFactory.for_region``); without it every region is served by
    `services`.
    """
    services: Services | None = None
    clock: Callable[[], datetime] = _utc_now
    invocation_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    region_services: Callable[[str], Services] | None = None

    def now(self) -> datetime:
        return self.clock()

    def services_for(self, region: str | None = None) -> Services | None:
        if region and self.region_services is not None:
            if self.services is None or self.services.region != region:
                return self.region_services(region)
        return self.services

    def require(self, client_name: str, *, region: str | None = None) -> Any:
        """Return a client from the Services bag or raise MissingClientError."""
        services = self.services_for(region)
        client = getattr(services, client_name, None) if services is not None else None
        if client is None:
            raise MissingClientError(f"services.{client_name} is required but not configured")
        return client


class ToolInput(BaseModel):
    """
    Base class for tool input models.

    Fields use snake_case in Python and the camelCase wire names as aliases.
    Unknown keys are ignored.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class Tool(Protocol):
    """
    An agent-callable tool.
    """
    name: str
    description: str
    input_model: type[ToolInput]

    def invoke(self, ctx: ToolContext, params: Any) -> dict[str, Any]:
        """
        Call AWS and return a JSON-serialisable result.
        """
        raise NotImplementedError


def input_schema(tool: Tool) -> dict[str, Any]:
    """JSON schema (by wire alias) of a tool's input model."""
    return tool.input_model.model_json_schema(by_alias=True)


def describe_tool(tool: Tool) -> dict[str, Any]:
    return {
        "name": tool.name,
        "description": tool.description,
        "inputSchema": input_schema(tool),
    }


# -----------------------------
# Runner
# -----------------------------


def validate_input(tool: Tool, raw_input: Mapping[str, Any] | None) -> ToolInput:
    """Validate raw input against the tool's model or raise ToolInputError."""
    try:
        return tool.input_model.model_validate(dict(raw_input or {}))
    except PydanticValidationError as exc:
        errors = exc.errors(include_url=False)
        _LOGGER.error("Input validation failed for %s: %s", tool.name, errors)
        raise ToolInputError(tool.name, errors) from exc


def run_tool(tool: Tool, raw_input: Mapping[str, Any] | None, ctx: ToolContext) -> dict[str, Any]:
    """Validate input, invoke the tool, and return its output.

    AWS errors raised by the tool are logged and re-raised unchanged.
    """
    set_request_context(tool=tool.name, invocation_id=ctx.invocation_id)
    try:
        params = validate_input(tool, raw_input)
        _LOGGER.debug("%s input: %s", tool.name, params.model_dump(by_alias=True, exclude_none=True))
        try:
            output = tool.invoke(ctx, params)
        except ToolError:
            raise
        except Exception:
            _LOGGER.exception("%s failed", tool.name)
            raise
        _LOGGER.info("%s finished (invocation %s)", tool.name, ctx.invocation_id)
        return output
    finally:
        clear_request_context()
