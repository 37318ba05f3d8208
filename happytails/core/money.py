# happytails/core/money.py
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

CURRENCY_SYMBOL = "₹"


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves away from zero.

    Python's round() uses banker's rounding (round(2.5) == 2); fees and
    surcharges are whole currency units rounded the conventional way.
    """
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_money(amount: float) -> str:
    """Format an amount with the currency prefix and 2 decimals."""
    return f"{CURRENCY_SYMBOL}{amount:.2f}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC.

    SQLite hands back naive datetimes; everything is stored as UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)
