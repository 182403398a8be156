"""
Wallet age calculation.

Age is a calendar-field difference (year and month numbers in UTC), not an
elapsed duration: day-of-month is ignored, so Jan 31 → Feb 1 counts as one
month while Feb 1 → Feb 28 counts as none. Reported ages depend on this.
"""

from __future__ import annotations

from datetime import datetime, timezone

from walletage.models import WalletAge

DEFAULT_WALLET_AGE = WalletAge(years=0, months=1, display_text="1 month")


def _unit(value: int, unit: str) -> str:
    return f"{value} {unit}{'s' if value > 1 else ''}"


def format_age_text(years: int, months: int) -> str:
    """'2 years', '5 months' or '1 year 3 months'. Zero components are left out."""
    if years == 0:
        return _unit(months, "month")
    if months == 0:
        return _unit(years, "year")
    return f"{_unit(years, 'year')} {_unit(months, 'month')}"


def calculate_wallet_age(timestamp: int | str, now: datetime | None = None) -> WalletAge:
    """
    Age of a wallet whose first transaction happened at `timestamp`.

    Args:
        timestamp: Unix seconds; explorers send these as strings.
        now: Reference time (defaults to the current UTC time).

    Returns:
        WalletAge with years >= 0 and months in 0–11. A first transaction in
        the current calendar month yields the one-month floor.
    """
    first_tx = datetime.fromtimestamp(int(timestamp), tz=timezone.utc)
    if now is None:
        now = datetime.now(tz=timezone.utc)
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc)

    years = now.year - first_tx.year
    months = now.month - first_tx.month
    if months < 0:
        years -= 1
        months += 12

    # first_tx in the current month, or later than `now` (clock skew)
    if years < 0 or (years == 0 and months == 0):
        return DEFAULT_WALLET_AGE

    return WalletAge(years=years, months=months, display_text=format_age_text(years, months))
