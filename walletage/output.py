"""Output format routing for walletage.

Converts result dicts to the requested format: json or table.

Design rules:
- JSON: 2-space indent, deterministic key order, utf-8
- Table: Rich-formatted; failed chains in red, empty chains dimmed

All functions return strings. The caller writes to stdout.
"""

from __future__ import annotations

import io
import json
from typing import Any

from rich.console import Console
from rich.table import Table
from rich.text import Text

VALID_FORMATS = {"json", "table"}


def format_output(data: Any, fmt: str) -> str:
    """
    Format data for stdout output.

    Args:
        data: Result dict, list, or any JSON-serialisable value.
        fmt: "json" | "table"

    Raises:
        ValueError: If fmt is not a recognised format.
    """
    fmt = fmt.lower()
    if fmt not in VALID_FORMATS:
        raise ValueError(f"Unknown format {fmt!r}. Valid: {sorted(VALID_FORMATS)}")

    if fmt == "table":
        return format_table(data)
    return format_json(data)


# ── JSON ─────────────────────────────────────────────────────────────────────


def format_json(data: Any) -> str:
    """Pretty-print data as JSON (2-space indent)."""
    return json.dumps(data, indent=2, ensure_ascii=False)


# ── Table ────────────────────────────────────────────────────────────────────


def format_table(data: Any) -> str:
    """
    Format as a Rich terminal table.

    Handles:
    - A single activity (dict with 'wallet_age'), with per-chain rows when
      it carries 'chains'
    - A list of activities (dict with 'activities')
    - Generic dict fallback
    """
    buf = io.StringIO()
    console = Console(file=buf, highlight=False, markup=True, width=120)

    if isinstance(data, dict) and "chains" in data:
        _render_activity_table(console, [data])
        _render_outcomes_table(console, data["chains"])
    elif isinstance(data, dict) and "wallet_age" in data:
        _render_activity_table(console, [data])
    elif isinstance(data, dict) and "activities" in data:
        _render_activity_table(console, data["activities"])
    else:
        console.print_json(json.dumps(data))

    return buf.getvalue()


def _status_style(status: str) -> str:
    if status == "failed":
        return "red"
    elif status == "empty":
        return "dim"
    return "green"


def _render_activity_table(console: Console, rows: list[dict[str, Any]]) -> None:
    table = Table(title="Wallet Age", show_header=True, header_style="bold blue")
    table.add_column("Address", style="cyan", no_wrap=True)
    table.add_column("Network", justify="center")
    table.add_column("Years", justify="right")
    table.add_column("Months", justify="right")
    table.add_column("Age", style="bold")

    for row in rows:
        age = row.get("wallet_age", {})
        table.add_row(
            _short_address(row.get("sender_address", "")),
            row.get("network", ""),
            str(age.get("years", 0)),
            str(age.get("months", 0)),
            age.get("display_text", ""),
        )

    console.print(table)


def _render_outcomes_table(console: Console, outcomes: list[dict[str, Any]]) -> None:
    table = Table(title="Per-chain results", show_header=True, header_style="bold blue")
    table.add_column("Chain")
    table.add_column("Status", justify="center")
    table.add_column("First tx (unix)", justify="right")
    table.add_column("Age / error")

    for o in outcomes:
        status = o.get("status", "")
        if o.get("error"):
            detail = f"{o['error'].get('error_code', '')}: {o['error'].get('message', '')}"
        elif o.get("wallet_age"):
            detail = o["wallet_age"].get("display_text", "")
        else:
            detail = "—"
        first_ts = o.get("first_timestamp")
        table.add_row(
            o.get("network", o.get("chain", "")),
            Text(status, style=_status_style(status)),
            str(first_ts) if first_ts is not None else "—",
            detail,
        )

    console.print(table)


def _short_address(address: str) -> str:
    return f"{address[:8]}…{address[-6:]}" if len(address) > 16 else address


# ── Helpers ──────────────────────────────────────────────────────────────────


def mask_api_key(key: str) -> str:
    """
    Mask an API key for safe display.

    'abcdefg123' → 'abcd****'
    '' → '****'
    """
    if not key:
        return "****"
    if len(key) <= 4:
        return "****"
    return key[:4] + "****"
