"""Scooter listing models for Scootal."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from .domain.availability import (
    WEEKDAYS,
    DailyAvailability,
    RentalTerms,
    WeeklyAvailability,
    money,
)


class Scooter(models.Model):
    """Scooter listed for peer-to-peer rental."""

    class Exclusivity(models.TextChoices):
        NONE = "none", _("Free")
        CLAIMED = "claimed", _("Claimed by a requested booking")
        ACTIVE = "active", _("Rented out")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="scooters",
    )
    name = models.CharField(max_length=120)
    location = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    brand = models.CharField(max_length=80, blank=True)
    model_name = models.CharField(max_length=80, blank=True)
    top_speed = models.PositiveSmallIntegerField(null=True, blank=True, help_text=_("mph"))
    is_electric = models.BooleanField(default=True)
    range_miles = models.PositiveSmallIntegerField(null=True, blank=True)
    safety_notes = models.TextField(blank=True)

    allow_six_hour = models.BooleanField(default=True)
    allow_full_day = models.BooleanField(default=True)
    six_hour_price = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    full_day_price = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    timezone = models.CharField(
        max_length=64,
        default="UTC",
        help_text=_("IANA time zone the weekly availability is expressed in."),
    )
    is_active = models.BooleanField(default=True, help_text=_("Listed for rent."))

    # Ledger state, written only through apps.reservations.ledger
    exclusivity = models.CharField(
        max_length=10,
        choices=Exclusivity.choices,
        default=Exclusivity.NONE,
    )
    claimed_by = models.UUIDField(null=True, blank=True, help_text=_("Booking holding the claim."))
    version = models.PositiveIntegerField(default=0)

    is_featured = models.BooleanField(default=False)
    featured_at = models.DateTimeField(null=True, blank=True)
    feature_charge_id = models.CharField(max_length=255, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Scooter")
        verbose_name_plural = _("Scooters")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(exclusivity="none", claimed_by__isnull=True)
                    | models.Q(exclusivity__in=["claimed", "active"], claimed_by__isnull=False)
                ),
                name="scooter_claim_matches_exclusivity",
            ),
        ]
        indexes = [
            models.Index(fields=["exclusivity", "is_active"], name="scooters_sc_exclusi_5b1e0c_idx"),
            models.Index(fields=["is_featured"], name="scooters_sc_is_feat_a1d3f2_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"

    def weekly_availability(self) -> WeeklyAvailability:
        """Calendar built from the availability rows; missing weekdays are closed."""

        return WeeklyAvailability.from_mapping({
            row.weekday: DailyAvailability(
                is_open=row.is_open,
                open_time=row.open_time,
                close_time=row.close_time,
            )
            for row in self.availability.all()
        })

    def rental_terms(self) -> RentalTerms:
        return RentalTerms(
            allow_six_hour=self.allow_six_hour,
            allow_full_day=self.allow_full_day,
            six_hour_price=money(self.six_hour_price),
            full_day_price=money(self.full_day_price),
            availability=self.weekly_availability(),
            timezone=self.timezone,
        )


class ScooterAvailability(models.Model):
    """Opening hours of a scooter on one weekday (local wall clock)."""

    WEEKDAY_CHOICES = [(index, name.title()) for index, name in enumerate(WEEKDAYS)]

    scooter = models.ForeignKey(
        Scooter,
        on_delete=models.CASCADE,
        related_name="availability",
    )
    weekday = models.PositiveSmallIntegerField(choices=WEEKDAY_CHOICES)
    is_open = models.BooleanField(default=False)
    open_time = models.TimeField(null=True, blank=True)
    close_time = models.TimeField(null=True, blank=True)

    class Meta:
        verbose_name = _("Scooter availability")
        verbose_name_plural = _("Scooter availability")
        ordering = ["scooter", "weekday"]
        constraints = [
            models.UniqueConstraint(fields=["scooter", "weekday"], name="unique_scooter_weekday"),
            models.CheckConstraint(condition=models.Q(weekday__lte=6), name="availability_valid_weekday"),
            models.CheckConstraint(
                condition=(
                    models.Q(is_open=False)
                    | models.Q(
                        open_time__isnull=False,
                        close_time__isnull=False,
                        open_time__lte=models.F("close_time"),
                    )
                ),
                name="availability_open_before_close",
            ),
        ]

    def __str__(self) -> str:
        if not self.is_open:
            return f"{WEEKDAYS[self.weekday].title()}: closed"
        return f"{WEEKDAYS[self.weekday].title()}: {self.open_time:%H:%M}-{self.close_time:%H:%M}"
