"""Monthly deal calendar: commitment windows, deal timeframes and deadlines.

The calendar is an injected strategy. ``StandardPeriodCalculator`` opens the
commitment window on the first days of the deal month;
``ScheduledPeriodCalculator`` layers published per-month overrides on top of
another calculator.
"""

from __future__ import annotations

import calendar
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Protocol
from zoneinfo import ZoneInfo

from app.core.exceptions import ValidationError

MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

DEFAULT_TIMEZONE = "America/Denver"
DEADLINE_LEAD_DAYS = 3


def month_index(month_name: str) -> int:
    """Zero-based index of ``month_name`` (case-insensitive)."""
    normalized = (month_name or "").strip().capitalize()
    if normalized not in MONTHS:
        raise ValidationError(f"Unknown month: {month_name!r}")
    return MONTHS.index(normalized)


def previous_month(month_name: str, year: int) -> tuple[str, int]:
    index = month_index(month_name)
    if index == 0:
        return MONTHS[11], year - 1
    return MONTHS[index - 1], year


def next_month(month_name: str, year: int) -> tuple[str, int]:
    index = month_index(month_name)
    if index == 11:
        return MONTHS[0], year + 1
    return MONTHS[index + 1], year


def _day_start(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def _day_end(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time.max, tzinfo=tz)


def to_utc_naive(value: datetime) -> datetime:
    """Convert an aware datetime to the naive UTC form stored in the database."""
    return value.astimezone(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class CommitmentWindow:
    commitment_start: date
    commitment_end: date
    starts_at: datetime
    ends_at: datetime

    def contains(self, moment: datetime) -> bool:
        return self.starts_at <= moment <= self.ends_at


@dataclass(frozen=True)
class DealTimeframe:
    timeframe_start: date
    timeframe_end: date
    starts_at: datetime
    ends_at: datetime


class PeriodCalculator(Protocol):
    def get_commitment_dates(self, month_name: str, year: int) -> CommitmentWindow: ...

    def get_deal_timeframe(self, month_name: str, year: int) -> DealTimeframe: ...

    def get_deadline(self, month_name: str, year: int) -> date: ...


class StandardPeriodCalculator:
    """Commitment window covers the first ``window_days`` days of the month."""

    def __init__(self, window_days: int = 10, tz: str | ZoneInfo = DEFAULT_TIMEZONE) -> None:
        if window_days < 1 or window_days > 28:
            raise ValidationError("window_days must be between 1 and 28.")
        self.window_days = window_days
        self.tz = tz if isinstance(tz, ZoneInfo) else ZoneInfo(tz)

    def window(self, start: date, end: date) -> CommitmentWindow:
        return CommitmentWindow(
            commitment_start=start,
            commitment_end=end,
            starts_at=_day_start(start, self.tz),
            ends_at=_day_end(end, self.tz),
        )

    def get_commitment_dates(self, month_name: str, year: int) -> CommitmentWindow:
        month = month_index(month_name) + 1
        return self.window(date(year, month, 1), date(year, month, self.window_days))

    def get_deal_timeframe(self, month_name: str, year: int) -> DealTimeframe:
        month = month_index(month_name) + 1
        last_day = calendar.monthrange(year, month)[1]
        start, end = date(year, month, 1), date(year, month, last_day)
        return DealTimeframe(
            timeframe_start=start,
            timeframe_end=end,
            starts_at=_day_start(start, self.tz),
            ends_at=_day_end(end, self.tz),
        )

    def get_deadline(self, month_name: str, year: int) -> date:
        month = month_index(month_name) + 1
        return date(year, month, 1) - timedelta(days=DEADLINE_LEAD_DAYS)


# Published commitment windows that differ from the standard first-ten-days rule.
PUBLISHED_WINDOWS: dict[tuple[str, int], tuple[date, date]] = {
    ("July", 2025): (date(2025, 6, 29), date(2025, 7, 10)),
    ("August", 2025): (date(2025, 8, 1), date(2025, 8, 12)),
    ("September", 2025): (date(2025, 9, 1), date(2025, 9, 10)),
    ("October", 2025): (date(2025, 10, 1), date(2025, 10, 11)),
    ("November", 2025): (date(2025, 11, 1), date(2025, 11, 10)),
    ("December", 2025): (date(2025, 12, 2), date(2025, 12, 12)),
    ("January", 2026): (date(2025, 12, 29), date(2026, 1, 9)),
    ("February", 2026): (date(2026, 2, 2), date(2026, 2, 12)),
    ("March", 2026): (date(2026, 3, 2), date(2026, 3, 12)),
    ("April", 2026): (date(2026, 4, 1), date(2026, 4, 10)),
    ("May", 2026): (date(2026, 4, 30), date(2026, 5, 11)),
    ("June", 2026): (date(2026, 6, 1), date(2026, 6, 11)),
    ("July", 2026): (date(2026, 6, 29), date(2026, 7, 10)),
    ("August", 2026): (date(2026, 8, 1), date(2026, 8, 12)),
    ("September", 2026): (date(2026, 9, 1), date(2026, 9, 10)),
    ("October", 2026): (date(2026, 10, 1), date(2026, 10, 11)),
    ("November", 2026): (date(2026, 11, 1), date(2026, 11, 10)),
    ("December", 2026): (date(2026, 12, 1), date(2026, 12, 10)),
}


class ScheduledPeriodCalculator:
    """Published overrides first, ``fallback`` for every other month."""

    def __init__(
        self,
        overrides: Mapping[tuple[str, int], tuple[date, date]] | None = None,
        fallback: StandardPeriodCalculator | None = None,
    ) -> None:
        self.overrides = dict(PUBLISHED_WINDOWS if overrides is None else overrides)
        self.fallback = fallback or StandardPeriodCalculator()

    def get_commitment_dates(self, month_name: str, year: int) -> CommitmentWindow:
        key = (MONTHS[month_index(month_name)], year)
        if key in self.overrides:
            start, end = self.overrides[key]
            return self.fallback.window(start, end)
        return self.fallback.get_commitment_dates(month_name, year)

    def get_deal_timeframe(self, month_name: str, year: int) -> DealTimeframe:
        return self.fallback.get_deal_timeframe(month_name, year)

    def get_deadline(self, month_name: str, year: int) -> date:
        return self.fallback.get_deadline(month_name, year)


def generate_deal_months_table(calculator: PeriodCalculator, today: date, years: int = 2) -> list[dict]:
    """Schedule rows from the current month through the end of the following year(s)."""
    rows: list[dict] = []
    for year in range(today.year, today.year + years):
        for index, month in enumerate(MONTHS):
            if year == today.year and index < today.month - 1:
                continue
            timeframe = calculator.get_deal_timeframe(month, year)
            window = calculator.get_commitment_dates(month, year)
            rows.append(
                {
                    "month": month,
                    "year": year,
                    "deadline": calculator.get_deadline(month, year).isoformat(),
                    "timeframeStart": timeframe.timeframe_start.isoformat(),
                    "timeframeEnd": timeframe.timeframe_end.isoformat(),
                    "commitmentStart": window.commitment_start.isoformat(),
                    "commitmentEnd": window.commitment_end.isoformat(),
                }
            )
    return rows
