"""
Value helpers -- timestamps, decimals and user-entered dates.

Responsibility:
    Conversions between the in-memory value types (aware ``datetime``,
    ``Decimal``) and their JSON representations, plus the date check used
    by the integrity checker.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Timestamps are always timezone-aware; naive input is read as UTC.
    - Written timestamps are UTC ISO-8601 with a ``Z`` suffix, the same
      shape the desktop app's JavaScript layer produces.
    - Monetary values never pass through float in either direction; they
      are written as JSON numbers carrying every digit of the Decimal.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from dateutil import parser as date_parser


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an ISO-8601 timestamp (``Z`` or offset suffix) into an aware datetime.

    Raises:
        ValueError: if ``value`` is not a datetime or a parsable string.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Cannot parse timestamp from {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    """Render an aware datetime as UTC ISO-8601 with a ``Z`` suffix."""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def to_decimal(value: Any) -> Decimal:
    """
    Convert a JSON or form value into a finite Decimal.

    Strings are accepted because the form layer stores what the user typed.

    Raises:
        ValueError: for booleans, non-numeric strings, NaN and infinities.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Not a number: {value!r}") from exc
    else:
        raise ValueError(f"Not a number: {value!r}")
    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


def decimal_to_json(value: Decimal) -> int | Decimal:
    """
    Integral decimals become ints; the rest stay Decimal so the JSON
    writer emits their digits unchanged.
    """
    if value == value.to_integral_value():
        return int(value)
    return value


def is_parsable_date(value: str) -> bool:
    """
    True if ``value`` names a real calendar date.

    ISO dates take the fast path; anything else goes through dateutil's
    free-form parser, so "March 3, 2024" and "2024-1-5" are accepted
    the way the desktop app's JavaScript layer accepts them.  Impossible dates
    ("2024-02-30", "2024-13-01") and text with no date in it are rejected.
    """
    text = value.strip()
    try:
        date.fromisoformat(text)
        return True
    except ValueError:
        pass
    try:
        date_parser.parse(text)
    except (ValueError, OverflowError):
        return False
    return True
