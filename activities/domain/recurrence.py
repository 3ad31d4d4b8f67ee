"""Recurrence expansion and the display horizon.

Everything here is pure: the same rule and window always produce the same
ordered list, and "now" only ever enters through an explicit argument.
"""

from collections.abc import Iterator
from datetime import date, datetime, timedelta
from itertools import islice

from activities.domain.models import Activity, ActivityKind, Frequency, Occurrence, RecurrenceRule

ONE_DAY = timedelta(days=1)
DEFAULT_HORIZON_DAYS = 30
NEXT_OCCURRENCE_SEARCH_DAYS = 366


def weekday_of(day: date) -> int:
    """Weekday with 0 = Sunday through 6 = Saturday."""
    return day.isoweekday() % 7


def _matches(rule: RecurrenceRule, day: date) -> bool:
    if rule.frequency is Frequency.WEEKLY:
        return weekday_of(day) in rule.days_of_week
    if rule.frequency is Frequency.MONTHLY:
        # Day 31 in a 30-day month never matches: no clamping.
        return day.day in rule.days_of_month
    return True


def _matching_dates(rule: RecurrenceRule, first: date, last: date) -> Iterator[date]:
    if first > last:
        return
    day = first
    while True:
        if _matches(rule, day):
            yield day
        # Stop before stepping past ``last``, which may be date.max.
        if day == last:
            return
        day += ONE_DAY


def _occurrence_dates(rule: RecurrenceRule, window_start: date, window_end: date) -> Iterator[date]:
    start = max(rule.start_date, window_start)
    end = window_end if rule.end_date is None else min(rule.end_date, window_end)
    if start > end:
        return iter(())
    if rule.occurrence_limit is None:
        return _matching_dates(rule, start, end)
    first_n = islice(_matching_dates(rule, rule.start_date, end), rule.occurrence_limit)
    return (day for day in first_n if day >= start)


def expand(rule: RecurrenceRule, window_start: date, window_end: date) -> list[Occurrence]:
    """Return the occurrences of ``rule`` inside ``[window_start, window_end]``.

    ``occurrence_limit`` counts from ``rule.start_date`` regardless of the
    window, so a window that starts late can see fewer (or zero) of the
    first N occurrences.
    """
    return [
        Occurrence(occurrence_date=day, time_of_day=rule.time_of_day)
        for day in _occurrence_dates(rule, window_start, window_end)
    ]


def occurs_on(rule: RecurrenceRule, day: date) -> bool:
    """Whether ``rule`` generates an occurrence on ``day``."""
    return bool(expand(rule, day, day))


def occurs_between(activity: Activity, start: date, end: date) -> bool:
    """Whether the activity has at least one occurrence in ``[start, end]``.

    Stops at the first match, so open-ended windows are fine.
    """
    if activity.kind is ActivityKind.SINGLE:
        return start <= activity.scheduled_date <= end
    return next(_occurrence_dates(activity.recurrence, start, end), None) is not None


def display_window(now: datetime, horizon_days: int = DEFAULT_HORIZON_DAYS) -> tuple[date, date]:
    """Dates shown to participants: yesterday through today + ``horizon_days``.

    ``now`` must already be in local time; yesterday is included so events in
    progress around midnight stay visible.
    """
    today = now.date()
    return today - ONE_DAY, today + timedelta(days=horizon_days)


def is_within_display_horizon(
    now: datetime, day: date, horizon_days: int = DEFAULT_HORIZON_DAYS
) -> bool:
    start, end = display_window(now, horizon_days)
    return start <= day <= end


def next_occurrence(activity: Activity, now: datetime) -> Occurrence | None:
    """First occurrence on or after today, or None if the series is over."""
    if activity.is_deleted:
        return None
    today = now.date()
    if activity.kind is ActivityKind.SINGLE:
        if activity.scheduled_date >= today:
            return Occurrence(activity.scheduled_date, activity.scheduled_time)
        return None
    upcoming = expand(
        activity.recurrence, today, today + timedelta(days=NEXT_OCCURRENCE_SEARCH_DAYS)
    )
    return upcoming[0] if upcoming else None
