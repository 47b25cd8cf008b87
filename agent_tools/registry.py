# agent_tools/registry.py
"""
Lightweight tool registry / dispatch.

Importing a tool module registers a factory for its tool under the tool's
wire name (e.g. "awsGetCostAndUsage"). `discover_tools()` imports every
module in :mod:`agent_tools.aws` so callers never list modules by hand.
"""

from __future__ import annotations

import importlib
import pkgutil
from typing import Any, Callable, Dict, List, Mapping, Optional

from contracts.tool_pattern import Tool, ToolContext, ToolNotFoundError, describe_tool, run_tool
from infra.config import Settings, get_settings

ToolFactory = Callable[[Settings], Tool]

_REGISTRY: Dict[str, ToolFactory] = {}
_TOOL_PACKAGE = "agent_tools.aws"


def register_tool(name: str) -> Callable[[ToolFactory], ToolFactory]:
    """Register a factory for a tool.

    name is the wire name the agent dispatches on, e.g. "awsDescribeInstances".
    """
    def _decorator(factory: ToolFactory) -> ToolFactory:
        if name in _REGISTRY:
            raise KeyError(f"Tool factory already registered for '{name}'")
        _REGISTRY[name] = factory
        return factory
    return _decorator


def discover_tools(package: str = _TOOL_PACKAGE) -> List[str]:
    """Import every tool module under `package`; return the registered names."""
    pkg = importlib.import_module(package)
    for info in pkgutil.iter_modules(pkg.__path__, prefix=f"{package}."):
        if info.name.rsplit(".", 1)[-1].startswith("_"):
            continue
        importlib.import_module(info.name)
    return list_tools()


def get_factory(name: str) -> Optional[ToolFactory]:
    return _REGISTRY.get(name)


def list_tools() -> List[str]:
    """All registered tool names in deterministic order."""
    return sorted(_REGISTRY.keys())


def get_tool(name: str, settings: Optional[Settings] = None) -> Tool:
    factory = _REGISTRY.get(name)
    if factory is None:
        raise ToolNotFoundError(name)
    return factory(settings or get_settings())


def describe_tools(settings: Optional[Settings] = None) -> List[Dict[str, Any]]:
    return [describe_tool(get_tool(name, settings)) for name in list_tools()]


def invoke_tool(
    name: str,
    raw_input: Optional[Mapping[str, Any]],
    ctx: ToolContext,
    *,
    settings: Optional[Settings] = None,
) -> Dict[str, Any]:
    """Dispatch to a registered tool by name."""
    return run_tool(get_tool(name, settings), raw_input, ctx)
