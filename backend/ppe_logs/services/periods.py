"""Month (YYYY-MM) and quarter (YYYY-Qn) label helpers."""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")
_QUARTER_RE = re.compile(r"^(\d{4})-Q([1-4])$")


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def parse_month(label: str | None) -> tuple[int, int]:
    match = _MONTH_RE.match((label or "").strip())
    if not match:
        raise ValueError(f"Invalid month label: {label!r} (expected YYYY-MM)")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month label: {label!r} (month must be 01-12)")
    return year, month


def normalize_month(label: str | None) -> str:
    year, month = parse_month(label)
    return format_month(year, month)


def format_month(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def month_of(moment: date | datetime) -> str:
    return format_month(moment.year, moment.month)


def current_month(tz_name: str, *, at: datetime | None = None) -> str:
    moment = (at or now_utc()).astimezone(ZoneInfo(tz_name))
    return month_of(moment)


def parse_quarter(label: str | None) -> tuple[int, int]:
    match = _QUARTER_RE.match((label or "").strip())
    if not match:
        raise ValueError(f"Invalid quarter label: {label!r} (expected YYYY-Qn, n in 1..4)")
    return int(match.group(1)), int(match.group(2))


def normalize_quarter(label: str | None) -> str:
    year, quarter = parse_quarter(label)
    return f"{year:04d}-Q{quarter}"


def quarter_months(label: str) -> list[str]:
    """Decompose a quarter into its three consecutive month labels."""
    year, quarter = parse_quarter(label)
    start = 3 * (quarter - 1) + 1
    return [format_month(year, start + offset) for offset in range(3)]


def quarter_of(month_label: str) -> str:
    year, month = parse_month(month_label)
    return f"{year:04d}-Q{(month - 1) // 3 + 1}"


def recent_quarters(today: date, *, count: int = 8) -> list[str]:
    """Quarter labels from the current quarter backwards."""
    year, quarter = today.year, (today.month - 1) // 3 + 1
    labels: list[str] = []
    for _ in range(max(count, 0)):
        labels.append(f"{year:04d}-Q{quarter}")
        quarter -= 1
        if quarter == 0:
            year, quarter = year - 1, 4
    return labels
