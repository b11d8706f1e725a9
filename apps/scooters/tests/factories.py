"""Test data builders shared by the app test suites."""

from __future__ import annotations

from datetime import datetime, time, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

from django.contrib.auth import get_user_model
from django.utils import timezone

from apps.payments.models import PayoutAccount
from apps.scooters.models import Scooter, ScooterAvailability

User = get_user_model()

WEEKDAY_HOURS = {0: (time(9, 0), time(17, 0))}


def make_user(username: str, **extra):
    return User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password="ScootPass123",
        **extra,
    )


def make_scooter(owner, *, hours=None, tz: str = "UTC", **fields) -> Scooter:
    """Scooter with weekly hours given as {weekday: (open, close)}; other days closed."""

    hours = WEEKDAY_HOURS if hours is None else hours
    defaults = {
        "name": "Razor E300",
        "location": "Santa Monica",
        "six_hour_price": Decimal("6.00"),
        "full_day_price": Decimal("20.00"),
        "top_speed": 15,
        "timezone": tz,
    }
    defaults.update(fields)
    scooter = Scooter.objects.create(owner=owner, **defaults)
    ScooterAvailability.objects.bulk_create([
        ScooterAvailability(
            scooter=scooter,
            weekday=weekday,
            is_open=weekday in hours,
            open_time=hours[weekday][0] if weekday in hours else None,
            close_time=hours[weekday][1] if weekday in hours else None,
        )
        for weekday in range(7)
    ])
    return scooter


def onboard(owner, account_id: str | None = None) -> PayoutAccount:
    return PayoutAccount.objects.create(
        owner=owner,
        stripe_account_id=account_id or f"acct_test_{owner.pk}",
        charges_enabled=True,
        payouts_enabled=True,
        details_submitted=True,
        onboarded_at=timezone.now(),
    )


def next_weekday(weekday: int, at: time, tz: str = "UTC") -> datetime:
    """Next future occurrence of ``weekday`` at local time ``at``."""

    zone = ZoneInfo(tz)
    today = timezone.now().astimezone(zone).date() + timedelta(days=1)
    days_ahead = (weekday - today.weekday()) % 7
    day = today + timedelta(days=days_ahead)
    return datetime.combine(day, at, tzinfo=zone)
