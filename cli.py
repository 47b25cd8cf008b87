"""
awstools CLI (flat-layout friendly).

Usage
-----
awstools list
awstools schema awsGetCostAndUsage
awstools invoke awsCostPerServicePerRegion --input '{"granularity": "MONTHLY"}'
awstools invoke awsDescribeInstances --input '{"region": "eu-west-3"}' --region eu-west-3

Results are printed to stdout as JSON; logs go to stderr.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict, List, Optional

from contracts.tool_pattern import ToolContext, ToolError, ToolInputError, describe_tool


def _print_json(payload: Any) -> None:
    sys.stdout.write(json.dumps(payload, indent=2, sort_keys=False, default=str))
    sys.stdout.write("\n")


def _parse_input(raw: Optional[str]) -> Dict[str, Any]:
    if not raw:
        return {}
    if raw.startswith("@"):
        with open(raw[1:], "r", encoding="utf-8") as fh:
            raw = fh.read()
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SystemExit(f"--input is not valid JSON: {exc}") from exc
    if not isinstance(value, dict):
        raise SystemExit("--input must be a JSON object.")
    return value


def cmd_list(args: argparse.Namespace) -> None:  # pylint: disable=unused-argument
    from agent_tools.registry import describe_tools, discover_tools

    discover_tools()
    _print_json([{"name": d["name"], "description": d["description"]} for d in describe_tools()])


def cmd_schema(args: argparse.Namespace) -> None:
    from agent_tools.registry import discover_tools, get_tool

    discover_tools()
    try:
        tool = get_tool(args.tool)
    except ToolError as exc:
        raise SystemExit(str(exc)) from exc
    _print_json(describe_tool(tool))


def _build_context(region: Optional[str]) -> ToolContext:
    import boto3

    from contracts.services import ServicesFactory
    from infra.aws_config import DEFAULT_REGION, SDK_CONFIG
    from infra.config import get_settings

    pricing = get_settings().pricing
    factory = ServicesFactory(
        session=boto3.Session(),
        sdk_config=SDK_CONFIG,
        pricing_enabled=pricing.enabled,
        pricing_cache_dir=pricing.cache_dir,
        pricing_ttl_days=pricing.ttl_days,
    )
    return ToolContext(
        services=factory.for_region(region or DEFAULT_REGION),
        region_services=factory.for_region,
    )


def cmd_invoke(args: argparse.Namespace) -> None:
    from agent_tools.registry import discover_tools, invoke_tool

    discover_tools()
    raw_input = _parse_input(args.input)
    ctx = _build_context(args.region)
    try:
        result = invoke_tool(args.tool, raw_input, ctx)
    except ToolInputError as exc:
        _print_json({"error": str(exc), "details": exc.errors})
        raise SystemExit(2) from exc
    except ToolError as exc:
        raise SystemExit(str(exc)) from exc
    _print_json(result)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="awstools", description="AWS agent tools CLI")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("list", help="List registered tools.")
    sp.set_defaults(func=cmd_list)

    sp = sub.add_parser("schema", help="Print a tool's name, description and input JSON schema.")
    sp.add_argument("tool", help="Tool name, e.g. awsGetCostAndUsage")
    sp.set_defaults(func=cmd_schema)

    sp = sub.add_parser("invoke", help="Invoke a tool and print its JSON result.")
    sp.add_argument("tool", help="Tool name, e.g. awsGetCostAndUsage")
    sp.add_argument("--input", default=None, help="Tool input as a JSON object, or @path/to/file.json")
    sp.add_argument("--region", default=None, help="Region for regional clients (default: AWS_DEFAULT_REGION).")
    sp.set_defaults(func=cmd_invoke)

    return p


def main(argv: Optional[List[str]] = None) -> None:
    from infra.logging_config import setup_logging

    setup_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
