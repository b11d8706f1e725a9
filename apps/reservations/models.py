"""Booking models for Scootal."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.infrastructure.fields import EncryptedCharField


class Booking(models.Model):
    """A renter's reservation of a scooter for one 6 or 24 hour window."""

    class Status(models.TextChoices):
        REQUESTED = "requested", _("Requested")
        ACCEPTED = "accepted", _("Accepted")
        ACTIVE = "active", _("Active")
        REJECTED = "rejected", _("Rejected")
        COMPLETED = "completed", _("Completed")

    OPEN_STATUSES = (Status.REQUESTED, Status.ACCEPTED, Status.ACTIVE)

    class DurationClass(models.IntegerChoices):
        SIX_HOURS = 6, _("6 hours")
        FULL_DAY = 24, _("24 hours")

    class RejectionSource(models.TextChoices):
        OWNER = "owner", _("Owner")
        RENTER = "renter", _("Renter")
        SYSTEM = "system", _("System")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking_number = models.CharField(max_length=24, unique=True, editable=False)
    scooter = models.ForeignKey(
        "scooters.Scooter",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    renter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="rentals",
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="owner_bookings",
    )
    start = models.DateTimeField()
    end = models.DateTimeField()
    duration_class = models.PositiveSmallIntegerField(choices=DurationClass.choices)

    base_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    unlock_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    fees_and_taxes = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    total_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="USD")

    confirmation_code = EncryptedCharField(max_length=6, blank=True)
    failed_code_attempts = models.PositiveSmallIntegerField(default=0)

    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.REQUESTED,
    )
    version = models.PositiveIntegerField(default=0)
    expires_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text=_("A request still open at this time is expired by the system."),
    )
    rejection_source = models.CharField(max_length=10, choices=RejectionSource.choices, blank=True)
    rejection_reason = models.CharField(max_length=255, blank=True)

    accepted_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            # At most one open booking per scooter, whatever the ledger says
            models.UniqueConstraint(
                fields=["scooter"],
                condition=models.Q(status__in=["requested", "accepted", "active"]),
                name="one_open_booking_per_scooter",
            ),
            models.CheckConstraint(
                condition=models.Q(end__gt=models.F("start")),
                name="booking_valid_window",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "expires_at"], name="reservation_status_e0f1a2_idx"),
            models.Index(fields=["renter", "status"], name="reservation_renter__3c4d5e_idx"),
            models.Index(fields=["owner", "status"], name="reservation_owner_i_6f7a8b_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.booking_number} for {self.scooter_id}"

    @property
    def is_open(self) -> bool:
        return self.status in self.OPEN_STATUSES
