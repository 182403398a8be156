"""
Structured logging for walletage.

structlog with ISO timestamps, log level and logger name. Output goes to
stderr so that stdout stays reserved for command results (JSON, tables, PNG
bytes). Console rendering locally, JSON for aggregation (LOG_FORMAT=json).
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

_DEFAULT_LEVEL = os.getenv("WALLETAGE_LOG_LEVEL", "WARNING").upper()
_DEFAULT_FORMAT = os.getenv("WALLETAGE_LOG_FORMAT", "console").strip().lower()


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    # sys.stderr looked up per call: test runners and CLI harnesses swap it
    return structlog.PrintLogger(file=sys.stderr)


def configure_logging(level: str = _DEFAULT_LEVEL, fmt: str = _DEFAULT_FORMAT) -> None:
    """(Re)configure structlog. Safe to call more than once."""
    level_value = getattr(logging, level.upper(), logging.WARNING)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
        context_class=dict,
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )


# One-time configuration on first import
if not structlog.is_configured():
    configure_logging()


def get_logger(name: str) -> Any:
    """
    Return a structured logger bound to the module name.

        logger = get_logger(__name__)
        logger.warning("chain_lookup_failed", chain="base", error="provider_error")
    """
    return structlog.get_logger(logger_name=name)
