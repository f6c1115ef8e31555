"""meeting_calendar.py — candidate meeting dates on a fixed two-weekday cadence.

Meetings happen on two fixed weekdays (Tuesday and Friday by default). The
candidate stream alternates between them forever; a finite, filtered slice
of it is what the scheduler assigns samples to. Dates in the exclusion set
(public holidays plus user cancellations) are skipped without consuming a
slot.

Typical usage::

    from svi_scheduler.meeting_calendar import build_exclusions, next_meeting_dates

    exclusions = build_exclusions(cancellations, config, today)
    dates      = next_meeting_dates(config, exclusions, count=25, today=today)
"""
from __future__ import annotations

__all__ = [
    "CalendarExhaustedError",
    "NYSEHolidayCalendar",
    "holiday_dates",
    "build_exclusions",
    "iter_meeting_dates",
    "generate_meeting_dates",
    "search_start",
    "next_meeting_dates",
]

import logging
from datetime import date, timedelta
from itertools import islice
from typing import Iterable, Iterator

import pandas as pd
from pandas.tseries.holiday import (
    AbstractHolidayCalendar,
    GoodFriday,
    Holiday,
    USFederalHolidayCalendar,
    USLaborDay,
    USMartinLutherKingJr,
    USMemorialDay,
    USPresidentsDay,
    USThanksgivingDay,
    nearest_workday,
    sunday_to_monday,
)

from svi_scheduler.config import SchedulerConfig

logger = logging.getLogger(__name__)


class CalendarExhaustedError(RuntimeError):
    """Raised when exclusions leave fewer meeting dates than were requested."""


class NYSEHolidayCalendar(AbstractHolidayCalendar):
    """US stock-market holidays (the exchange closure calendar)."""

    rules = [
        # A Saturday New Year's Day is not observed on the preceding Friday
        Holiday("New Year's Day", month=1, day=1, observance=sunday_to_monday),
        USMartinLutherKingJr,
        USPresidentsDay,
        GoodFriday,
        USMemorialDay,
        Holiday("Juneteenth", month=6, day=19, start_date="2022-01-01", observance=nearest_workday),
        Holiday("Independence Day", month=7, day=4, observance=nearest_workday),
        USLaborDay,
        USThanksgivingDay,
        Holiday("Christmas Day", month=12, day=25, observance=nearest_workday),
    ]


_CALENDARS: dict[str, type[AbstractHolidayCalendar]] = {
    "nyse": NYSEHolidayCalendar,
    "federal": USFederalHolidayCalendar,
}


def holiday_dates(calendar: str, years: Iterable[int]) -> frozenset[date]:
    """Return the holidays of *calendar* (``"nyse"``, ``"federal"``, ``"none"``) in *years*."""
    if calendar == "none":
        return frozenset()
    try:
        cal = _CALENDARS[calendar]()
    except KeyError:
        raise ValueError(f"Unknown holiday calendar: {calendar!r}") from None
    result: set[date] = set()
    for year in years:
        index = cal.holidays(start=pd.Timestamp(year, 1, 1), end=pd.Timestamp(year, 12, 31))
        result.update(ts.date() for ts in index)
    return frozenset(result)


def build_exclusions(
    cancellations: Iterable[date],
    config: SchedulerConfig,
    today: date,
) -> frozenset[date]:
    """Union of user cancellations and holidays for this year and the next ``holiday_years_ahead``."""
    years = range(today.year, today.year + config.holiday_years_ahead + 1)
    holidays = holiday_dates(config.holiday_calendar, years)
    cancelled = frozenset(cancellations)
    logger.debug(
        "Exclusion set: %d holiday(s) for %s, %d cancellation(s)",
        len(holidays), list(years), len(cancelled),
    )
    return holidays | cancelled


def iter_meeting_dates(start: date, weekdays: tuple[int, int] = (1, 4)) -> Iterator[date]:
    """Yield meeting-day candidates strictly after *start*, forever.

    *weekdays* are ``date.weekday()`` numbers (Monday = 0). The first
    candidate is whichever of the two weekdays comes first after *start*;
    from then on the stream alternates, e.g. Tue → Fri (+3) → Tue (+4).
    """
    first, second = weekdays
    gap = (second - first) % 7

    def days_until(weekday: int) -> int:
        return (weekday - start.weekday()) % 7 or 7

    current = start + timedelta(days=min(days_until(first), days_until(second)))
    while True:
        yield current
        current += timedelta(days=gap if current.weekday() == first else 7 - gap)


def generate_meeting_dates(
    start: date,
    exclusions: Iterable[date],
    count: int,
    weekdays: tuple[int, int] = (1, 4),
    buffer: int = 40,
) -> list[date]:
    """Return the first *count* non-excluded meeting dates after *start*.

    ``count + buffer`` candidates are drawn from :func:`iter_meeting_dates`
    and excluded dates are dropped.

    Raises
    ------
    CalendarExhaustedError
        If fewer than *count* candidates survive the exclusion filter.
        A short list is never returned.
    ValueError
        If *count* is negative.
    """
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")
    if count == 0:
        return []

    excluded = frozenset(exclusions)
    candidates = list(islice(iter_meeting_dates(start, weekdays), count + buffer))
    dates = []
    for candidate in candidates:
        if candidate in excluded:
            logger.debug("Skipping excluded meeting date %s", candidate)
            continue
        dates.append(candidate)

    if len(dates) < count:
        raise CalendarExhaustedError(
            f"Requested {count} meeting date(s) after {start} but only {len(dates)} of "
            f"{len(candidates)} candidates (buffer {buffer}) are not excluded. "
            "Increase calendar_buffer or review the cancellation list."
        )
    return dates[:count]


def search_start(today: date) -> date:
    """Return the date the candidate search starts after: the day before *today*.

    A meeting can therefore land on *today* itself when it is a meeting weekday.
    """
    return today - timedelta(days=1)


def next_meeting_dates(
    config: SchedulerConfig,
    exclusions: Iterable[date],
    count: int,
    today: date,
) -> list[date]:
    """:func:`generate_meeting_dates` with *config*'s weekdays and buffer, searching from *today*."""
    return generate_meeting_dates(
        search_start(today),
        exclusions,
        count,
        weekdays=config.weekday_numbers,
        buffer=config.calendar_buffer,
    )
