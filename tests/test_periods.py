from datetime import datetime

import pytest

from periods import ReportPeriod, fixed_clock, is_closed

NOW = datetime(2026, 10, 19, 12, 0)


@pytest.mark.parametrize(
    ("year", "month", "expected"),
    [
        (2020, 1, True),
        (2025, 12, True),
        (2026, 1, True),
        (2026, 9, True),
        (2026, 10, False),
        (2026, 11, False),
        (2027, 1, False),
    ],
)
def test_is_closed_compares_year_then_month(year: int, month: int, expected: bool) -> None:
    assert is_closed(year, month, NOW) is expected


def test_current_month_stays_open_on_its_last_day() -> None:
    assert is_closed(2026, 10, datetime(2026, 10, 31, 23, 59)) is False
    assert is_closed(2026, 10, datetime(2026, 11, 1, 0, 0)) is True


def test_fixed_clock_returns_same_moment() -> None:
    clock = fixed_clock(NOW)
    assert clock() == NOW
    assert clock() == NOW


def test_report_period_equality_is_structural() -> None:
    assert ReportPeriod(1, 2024, 1) == ReportPeriod(1, 2024, 1)
    assert ReportPeriod(1, 2024, 1) != ReportPeriod(1, 2024, 2)
    assert len({ReportPeriod(1, 2024, 1), ReportPeriod(1, 2024, 1)}) == 1


def test_is_closed_needs_an_explicit_moment() -> None:
    with pytest.raises(TypeError):
        is_closed(2026, 10)
