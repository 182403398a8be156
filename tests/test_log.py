"""Tests for walletage/log.py — structlog configuration."""

from __future__ import annotations

import json

import pytest

from walletage.log import configure_logging, get_logger


@pytest.fixture(autouse=True)
def restore_logging() -> None:
    yield
    configure_logging("WARNING", "console")


def test_json_logs_go_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging("INFO", "json")
    get_logger("walletage.tests").info("chain_lookup_done", chain="base")

    captured = capsys.readouterr()
    assert captured.out == ""
    event = json.loads(captured.err.strip().splitlines()[-1])
    assert event["event"] == "chain_lookup_done"
    assert event["chain"] == "base"
    assert event["level"] == "info"
    assert event["logger_name"] == "walletage.tests"
    assert "timestamp" in event


def test_level_filtering(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging("ERROR", "json")
    logger = get_logger("walletage.tests")
    logger.warning("ignored")
    logger.error("kept")

    lines = capsys.readouterr().err.strip().splitlines()
    assert [json.loads(line)["event"] for line in lines] == ["kept"]


def test_reconfigure_applies_to_existing_loggers(capsys: pytest.CaptureFixture[str]) -> None:
    logger = get_logger("walletage.tests")
    configure_logging("ERROR", "json")
    logger.info("hidden")
    configure_logging("DEBUG", "json")
    logger.debug("shown")

    lines = capsys.readouterr().err.strip().splitlines()
    assert [json.loads(line)["event"] for line in lines] == ["shown"]
