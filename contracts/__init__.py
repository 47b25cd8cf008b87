"""Contracts shared by the analysis engine and the tools.

The contracts package defines:
- typed cost records used by the analysis engine
- wire-format TypedDicts returned to the calling agent
- the tool protocol, context, errors and runner
- the Services container for injected AWS clients

Main exports:
- CostRecord, AggregatedDimension, DailyCost, TrendResult, DateRange, Granularity
- Tool, ToolContext, ToolInput, ToolError, ToolInputError, ToolNotFoundError, run_tool
- Services, ServicesFactory
"""

from contracts import cost_types
from contracts import services as services_module
from contracts import tool_pattern

# Explicit re-exports to satisfy ruff F401
__all__ = [
    "AggregatedDimension",
    "CostRecord",
    "DailyCost",
    "DateRange",
    "Granularity",
    "MissingClientError",
    "Services",
    "ServicesFactory",
    "Tool",
    "ToolContext",
    "ToolError",
    "ToolInput",
    "ToolInputError",
    "ToolNotFoundError",
    "TrendResult",
    "run_tool",
]

AggregatedDimension = cost_types.AggregatedDimension
CostRecord = cost_types.CostRecord
DailyCost = cost_types.DailyCost
DateRange = cost_types.DateRange
Granularity = cost_types.Granularity
TrendResult = cost_types.TrendResult

MissingClientError = tool_pattern.MissingClientError
Tool = tool_pattern.Tool
ToolContext = tool_pattern.ToolContext
ToolError = tool_pattern.ToolError
ToolInput = tool_pattern.ToolInput
ToolInputError = tool_pattern.ToolInputError
ToolNotFoundError = tool_pattern.ToolNotFoundError
run_tool = tool_pattern.run_tool

Services = services_module.Services
ServicesFactory = services_module.ServicesFactory
