from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from ppe_logs.services.periods import (
    current_month,
    normalize_month,
    normalize_quarter,
    quarter_months,
    quarter_of,
    recent_quarters,
)


@pytest.mark.parametrize("label", ["2026-3", "2026-13", "2026-00", "26-03", "2026/03", "", None])
def test_malformed_month_labels_are_rejected(label) -> None:
    with pytest.raises(ValueError):
        normalize_month(label)


def test_month_label_is_trimmed() -> None:
    assert normalize_month(" 2026-03 ") == "2026-03"


@pytest.mark.parametrize(
    ("quarter", "months"),
    [
        ("2026-Q1", ["2026-01", "2026-02", "2026-03"]),
        ("2026-Q2", ["2026-04", "2026-05", "2026-06"]),
        ("2025-Q4", ["2025-10", "2025-11", "2025-12"]),
    ],
)
def test_quarter_decomposes_into_three_months(quarter: str, months: list[str]) -> None:
    assert quarter_months(quarter) == months


@pytest.mark.parametrize("label", ["2026-Q0", "2026-Q5", "2026Q1", "2026-q1x", ""])
def test_malformed_quarter_labels_are_rejected(label: str) -> None:
    with pytest.raises(ValueError):
        normalize_quarter(label)


def test_quarter_of_month() -> None:
    assert quarter_of("2026-03") == "2026-Q1"
    assert quarter_of("2026-04") == "2026-Q2"
    assert quarter_of("2026-12") == "2026-Q4"


def test_current_month_uses_local_timezone() -> None:
    # 23:30 UTC on 31 May is already June in London (BST).
    at = datetime(2026, 5, 31, 23, 30, tzinfo=timezone.utc)

    assert current_month("Europe/London", at=at) == "2026-06"
    assert current_month("UTC", at=at) == "2026-05"


def test_recent_quarters_walks_back_across_years() -> None:
    assert recent_quarters(date(2026, 2, 10), count=6) == [
        "2026-Q1",
        "2025-Q4",
        "2025-Q3",
        "2025-Q2",
        "2025-Q1",
        "2024-Q4",
    ]
    assert recent_quarters(date(2026, 2, 10), count=0) == []
