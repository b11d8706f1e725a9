"""Unit tests for the weekly calendar and the window matcher."""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone

import pytest

from apps.scooters.domain.availability import (
    DailyAvailability,
    DurationClass,
    RentalTerms,
    WeeklyAvailability,
    is_available_at,
    money,
    supports_window,
)
from shared.domain.exceptions import InvalidAvailability, InvalidDurationClass

# 2030-01-07 is a Monday
MONDAY = datetime(2030, 1, 7, tzinfo=timezone.utc)


def monday_only(open_time=time(9, 0), close_time=time(17, 0)) -> WeeklyAvailability:
    return WeeklyAvailability.from_mapping({
        0: DailyAvailability(is_open=True, open_time=open_time, close_time=close_time),
    })


def terms(**overrides) -> RentalTerms:
    values = {
        "allow_six_hour": True,
        "allow_full_day": True,
        "six_hour_price": money("6.00"),
        "full_day_price": money("20.00"),
        "availability": monday_only(),
        "timezone": "UTC",
    }
    values.update(overrides)
    return RentalTerms(**values)


@pytest.mark.parametrize(
    "hour,minute,expected",
    [
        (8, 59, False),
        (9, 0, True),
        (12, 30, True),
        (17, 0, True),
        (17, 1, False),
    ],
)
def test_opening_hours_are_inclusive_at_minute_precision(hour, minute, expected):
    instant = MONDAY.replace(hour=hour, minute=minute)
    assert is_available_at(monday_only(), instant, "UTC") is expected


def test_seconds_are_ignored_at_closing_time():
    instant = MONDAY.replace(hour=17, minute=0, second=45)
    assert is_available_at(monday_only(), instant, "UTC")


def test_closed_day_accepts_nothing():
    tuesday_noon = MONDAY.replace(hour=12) + timedelta(days=1)
    assert not is_available_at(monday_only(), tuesday_noon, "UTC")


def test_instant_is_read_in_scooter_time_zone():
    calendar = monday_only()
    # January: New York is UTC-5
    assert is_available_at(calendar, MONDAY.replace(hour=14), "America/New_York")
    assert not is_available_at(calendar, MONDAY.replace(hour=13), "America/New_York")


def test_naive_instant_is_local_wall_clock():
    naive = datetime(2030, 1, 7, 9, 30)
    assert is_available_at(monday_only(), naive, "Asia/Tokyo")


def test_open_day_needs_open_before_close():
    with pytest.raises(InvalidAvailability):
        DailyAvailability(is_open=True, open_time=time(18, 0), close_time=time(9, 0))


def test_open_day_needs_both_times():
    with pytest.raises(InvalidAvailability):
        DailyAvailability(is_open=True, open_time=time(9, 0))


def test_week_has_exactly_seven_days():
    with pytest.raises(InvalidAvailability):
        WeeklyAvailability.from_days([DailyAvailability.closed()] * 6)


def test_unknown_time_zone_is_rejected():
    with pytest.raises(InvalidAvailability):
        is_available_at(monday_only(), MONDAY, "Mars/Olympus_Mons")


def test_duration_class_parse():
    assert DurationClass.parse("6") is DurationClass.SIX_HOURS
    assert DurationClass.parse(24) is DurationClass.FULL_DAY
    assert DurationClass.FULL_DAY.duration == timedelta(hours=24)
    with pytest.raises(InvalidDurationClass):
        DurationClass.parse(12)


def test_window_requires_duration_flag():
    start = MONDAY.replace(hour=10)
    assert supports_window(terms(), start, 6)
    assert not supports_window(terms(allow_six_hour=False), start, 6)
    assert supports_window(terms(allow_six_hour=False), start, 24)


def test_window_end_is_checked_only_when_asked():
    start = MONDAY.replace(hour=12)
    # Returns at 18:00, after closing
    assert supports_window(terms(), start, DurationClass.SIX_HOURS)
    assert not supports_window(terms(), start, DurationClass.SIX_HOURS, check_end=True)
    early = MONDAY.replace(hour=9)
    assert supports_window(terms(), early, DurationClass.SIX_HOURS, check_end=True)


def test_price_for_class():
    listing = terms()
    assert listing.price_for_class(DurationClass.SIX_HOURS) == money("6.00")
    assert listing.price_for_class(DurationClass.FULL_DAY) == money("20.00")
