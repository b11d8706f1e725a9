"""
Availability Calendar

Owner-defined weekly opening hours and the pure matching rules built on
them:
- DurationClass: the only rental lengths offered (6 and 24 hours)
- DailyAvailability / WeeklyAvailability: local wall-clock hours, Mon..Sun
- RentalTerms: what a listing offers (flags, prices, calendar, time zone)
- is_available_at / supports_window: the matcher

Nothing here touches the database; the scooters app maps its rows onto
these objects.
"""

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from decimal import Decimal
from enum import IntEnum
from typing import Mapping, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from shared.domain.base import ValueObject
from shared.domain.exceptions import InvalidAvailability, InvalidDurationClass
from shared.domain.value_objects import Money

WEEKDAYS = (
    'monday',
    'tuesday',
    'wednesday',
    'thursday',
    'friday',
    'saturday',
    'sunday',
)


class DurationClass(IntEnum):
    """Rental length in hours"""
    SIX_HOURS = 6
    FULL_DAY = 24

    @classmethod
    def parse(cls, value) -> 'DurationClass':
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            raise InvalidDurationClass(duration_class=value)

    @property
    def duration(self) -> timedelta:
        return timedelta(hours=int(self))


def _to_minute(value: time | None) -> time | None:
    if value is None:
        return None
    return value.replace(second=0, microsecond=0, tzinfo=None)


@dataclass(frozen=True)
class DailyAvailability(ValueObject):
    """
    Opening hours of one weekday

    Both bounds are inclusive at minute precision: a day open until 17:00
    still accepts a pickup at 17:00 (but not at 17:01).
    """
    is_open: bool = False
    open_time: time | None = None
    close_time: time | None = None

    def __post_init__(self):
        object.__setattr__(self, 'open_time', _to_minute(self.open_time))
        object.__setattr__(self, 'close_time', _to_minute(self.close_time))

        if not self.is_open:
            return
        if self.open_time is None or self.close_time is None:
            raise InvalidAvailability("An open day needs both an open and a close time")
        if self.open_time > self.close_time:
            raise InvalidAvailability(
                "Open time must not be after close time",
                open_time=self.open_time,
                close_time=self.close_time,
            )

    @classmethod
    def closed(cls) -> 'DailyAvailability':
        return cls(is_open=False)

    def covers(self, moment: time) -> bool:
        if not self.is_open:
            return False
        moment = _to_minute(moment)
        return self.open_time <= moment <= self.close_time


@dataclass(frozen=True)
class WeeklyAvailability(ValueObject):
    """Exactly seven days, Monday first"""
    days: tuple

    def __post_init__(self):
        days = tuple(self.days)
        if len(days) != len(WEEKDAYS):
            raise InvalidAvailability(
                f"Weekly availability needs {len(WEEKDAYS)} days, got {len(days)}"
            )
        if not all(isinstance(day, DailyAvailability) for day in days):
            raise InvalidAvailability("Every weekday entry must be a DailyAvailability")
        object.__setattr__(self, 'days', days)

    @classmethod
    def closed(cls) -> 'WeeklyAvailability':
        return cls(tuple(DailyAvailability.closed() for _ in WEEKDAYS))

    @classmethod
    def from_days(cls, days: Sequence[DailyAvailability]) -> 'WeeklyAvailability':
        return cls(tuple(days))

    @classmethod
    def from_mapping(cls, mapping: Mapping[int, DailyAvailability]) -> 'WeeklyAvailability':
        """Build from a weekday index -> day mapping; missing weekdays are closed"""
        unknown = set(mapping) - set(range(len(WEEKDAYS)))
        if unknown:
            raise InvalidAvailability(f"Unknown weekday index: {sorted(unknown)}")
        return cls(tuple(
            mapping.get(index, DailyAvailability.closed())
            for index in range(len(WEEKDAYS))
        ))

    def for_weekday(self, weekday: int) -> DailyAvailability:
        return self.days[weekday]


def resolve_timezone(tz) -> ZoneInfo:
    if isinstance(tz, ZoneInfo):
        return tz
    try:
        return ZoneInfo(str(tz))
    except (ZoneInfoNotFoundError, ValueError):
        raise InvalidAvailability(f"Unknown time zone: {tz}")


def is_available_at(calendar: WeeklyAvailability, instant: datetime, tz) -> bool:
    """
    Whether the scooter accepts a pickup at ``instant``

    The instant is converted to the scooter's local time; a naive instant
    is read as local wall-clock time already.
    """
    zone = resolve_timezone(tz)
    if instant.tzinfo is None or instant.utcoffset() is None:
        local = instant.replace(tzinfo=zone)
    else:
        local = instant.astimezone(zone)

    day = calendar.for_weekday(local.weekday())
    return day.covers(local.time())


@dataclass(frozen=True)
class RentalTerms(ValueObject):
    """What a listing offers to renters"""
    allow_six_hour: bool
    allow_full_day: bool
    six_hour_price: Money
    full_day_price: Money
    availability: WeeklyAvailability
    timezone: str = 'UTC'

    def allows(self, duration_class: DurationClass) -> bool:
        if duration_class == DurationClass.SIX_HOURS:
            return self.allow_six_hour
        return self.allow_full_day

    def price_for_class(self, duration_class: DurationClass) -> Money:
        if duration_class == DurationClass.SIX_HOURS:
            return self.six_hour_price
        return self.full_day_price


def supports_window(
    terms: RentalTerms,
    start: datetime,
    duration_class,
    *,
    check_end: bool = False,
) -> bool:
    """
    Matcher: can this listing be rented for ``duration_class`` from ``start``

    Only the pickup instant is checked against the calendar unless
    ``check_end`` is set, in which case the return instant (inclusive,
    minute precision) must fall inside opening hours too.
    """
    duration_class = DurationClass.parse(duration_class)
    if not terms.allows(duration_class):
        return False
    if not is_available_at(terms.availability, start, terms.timezone):
        return False
    if check_end:
        end = start + duration_class.duration
        return is_available_at(terms.availability, end, terms.timezone)
    return True


def price_for_class(terms: RentalTerms, duration_class) -> Money:
    return terms.price_for_class(DurationClass.parse(duration_class))


def money(value) -> Money:
    """Listing prices are stored as decimals in USD"""
    return Money(Decimal(str(value)))
