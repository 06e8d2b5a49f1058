from __future__ import annotations

from datetime import date

import pytest

from app.core.exceptions import ValidationError
from app.services.period_calculator import (
    ScheduledPeriodCalculator,
    StandardPeriodCalculator,
    generate_deal_months_table,
    next_month,
    previous_month,
)


def test_standard_window_covers_first_days_of_month():
    window = StandardPeriodCalculator().get_commitment_dates("March", 2027)

    assert window.commitment_start == date(2027, 3, 1)
    assert window.commitment_end == date(2027, 3, 10)
    assert window.starts_at.tzinfo is not None
    assert window.ends_at.date() == date(2027, 3, 10)


def test_window_days_is_configurable():
    window = StandardPeriodCalculator(window_days=5).get_commitment_dates("june", 2027)

    assert window.commitment_end == date(2027, 6, 5)


@pytest.mark.parametrize(
    ("month", "year", "start", "end"),
    [
        ("July", 2025, date(2025, 6, 29), date(2025, 7, 10)),
        ("December", 2025, date(2025, 12, 2), date(2025, 12, 12)),
        ("January", 2026, date(2025, 12, 29), date(2026, 1, 9)),
        ("May", 2026, date(2026, 4, 30), date(2026, 5, 11)),
        ("December", 2026, date(2026, 12, 1), date(2026, 12, 10)),
    ],
)
def test_scheduled_calculator_uses_published_windows(month, year, start, end):
    window = ScheduledPeriodCalculator().get_commitment_dates(month, year)

    assert (window.commitment_start, window.commitment_end) == (start, end)


def test_scheduled_calculator_falls_back_outside_published_months():
    window = ScheduledPeriodCalculator().get_commitment_dates("February", 2027)

    assert (window.commitment_start, window.commitment_end) == (date(2027, 2, 1), date(2027, 2, 10))


def test_custom_overrides_replace_published_table():
    calculator = ScheduledPeriodCalculator(overrides={("July", 2025): (date(2025, 7, 3), date(2025, 7, 8))})

    assert calculator.get_commitment_dates("July", 2025).commitment_start == date(2025, 7, 3)
    assert calculator.get_commitment_dates("August", 2025).commitment_end == date(2025, 8, 10)


def test_deal_timeframe_and_deadline():
    calculator = StandardPeriodCalculator()

    timeframe = calculator.get_deal_timeframe("February", 2028)

    assert timeframe.timeframe_start == date(2028, 2, 1)
    assert timeframe.timeframe_end == date(2028, 2, 29)
    assert calculator.get_deadline("March", 2027) == date(2027, 2, 26)


def test_month_navigation_wraps_years():
    assert previous_month("January", 2026) == ("December", 2025)
    assert next_month("December", 2025) == ("January", 2026)
    assert next_month("april", 2026) == ("May", 2026)


def test_unknown_month_is_rejected():
    with pytest.raises(ValidationError):
        StandardPeriodCalculator().get_commitment_dates("Smarch", 2026)


def test_months_table_starts_at_current_month():
    rows = generate_deal_months_table(ScheduledPeriodCalculator(), today=date(2026, 10, 19))

    assert rows[0]["month"] == "October"
    assert rows[0]["commitmentEnd"] == "2026-10-11"
    assert rows[-1] == {
        "month": "December",
        "year": 2027,
        "deadline": "2027-11-28",
        "timeframeStart": "2027-12-01",
        "timeframeEnd": "2027-12-31",
        "commitmentStart": "2027-12-01",
        "commitmentEnd": "2027-12-10",
    }
    assert len(rows) == 3 + 12
