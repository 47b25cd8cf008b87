"""Tests for log rendering and request-context propagation."""

from __future__ import annotations

import json
import logging
from typing import Any

from infra.logging_config import (
    JsonFormatter,
    StructuredLogger,
    TextFormatter,
    clear_request_context,
    get_request_context,
    set_request_context,
    setup_logging,
)


def _record(msg: str = "hello %s", args: tuple[Any, ...] = ("world",), **extra: Any) -> logging.LogRecord:
    record = logging.LogRecord(
        name="agent_tools.aws.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=args,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_merges_extra_and_request_context() -> None:
    set_request_context(tool="awsGetCostAndUsage", invocation_id="abc")
    try:
        line = JsonFormatter(extra_fields={"service": "awstools"}).format(_record(datapoints=3))
    finally:
        clear_request_context()

    payload = json.loads(line)
    assert payload["message"] == "hello world"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "agent_tools.aws.test"
    assert payload["datapoints"] == 3
    assert payload["service"] == "awstools"
    assert payload["tool"] == "awsGetCostAndUsage"
    assert payload["invocation_id"] == "abc"
    assert payload["timestamp"].endswith("Z")


def test_text_formatter_renders_utc_line() -> None:
    line = TextFormatter().format(_record())
    assert line.endswith("| INFO | agent_tools.aws.test | hello world")
    assert "Z |" in line


def test_request_context_set_and_clear() -> None:
    set_request_context(tool="a")
    set_request_context(invocation_id="b")
    assert get_request_context() == {"tool": "a", "invocation_id": "b"}

    clear_request_context()
    assert get_request_context() == {}


def test_structured_logger_passes_fields_as_extra(caplog: Any) -> None:
    logger = StructuredLogger("agent_tools.aws.structured")

    with caplog.at_level(logging.INFO, logger="agent_tools.aws.structured"):
        logger.info("tool_invoke_finished", datapoints=31)

    record = caplog.records[-1]
    assert record.getMessage() == "tool_invoke_finished"
    assert record.event == "tool_invoke_finished"
    assert record.datapoints == 31


def test_setup_logging_override_installs_single_stderr_handler(monkeypatch: Any) -> None:
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    monkeypatch.delenv("AWSTOOLS_LOG_LEVEL", raising=False)
    try:
        setup_logging(level="debug", json_logs=True, override_root_handlers=True)

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        assert logging.getLogger("botocore").level == logging.WARNING
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)
