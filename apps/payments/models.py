"""Payment models for Scootal."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class PaymentRecord(models.Model):
    """Split payment of one booking: platform fee plus the owner's payout."""

    class Status(models.TextChoices):
        CREATED = "created", _("Created")
        CAPTURED = "captured", _("Captured")
        FAILED = "failed", _("Failed")
        REFUNDED = "refunded", _("Refunded")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.OneToOneField(
        "reservations.Booking",
        on_delete=models.PROTECT,
        related_name="payment",
    )
    intent_id = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
        help_text=_("Processor payment intent, set once authorized."),
    )
    client_secret = models.CharField(max_length=255, blank=True)
    destination_account = models.CharField(max_length=255, blank=True)
    amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    platform_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="usd")
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.CREATED)
    failure_reason = models.CharField(max_length=255, blank=True)
    refund_id = models.CharField(max_length=255, blank=True)
    authorized_at = models.DateTimeField(null=True, blank=True)
    captured_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Payment record")
        verbose_name_plural = _("Payment records")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="payments_pa_status_9a8b7c_idx"),
        ]

    def __str__(self) -> str:
        return f"Payment {self.intent_id or self.id} ({self.status})"

    @property
    def owner_payout(self) -> Decimal:
        return self.amount - self.platform_fee


class PayoutAccount(models.Model):
    """Owner's connected account at the processor."""

    owner = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="payout_account",
    )
    stripe_account_id = models.CharField(max_length=255, unique=True)
    charges_enabled = models.BooleanField(default=False)
    payouts_enabled = models.BooleanField(default=False)
    details_submitted = models.BooleanField(default=False)
    onboarded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Payout account")
        verbose_name_plural = _("Payout accounts")

    def __str__(self) -> str:
        return f"{self.stripe_account_id} for {self.owner_id}"

    @property
    def is_onboarded(self) -> bool:
        return self.charges_enabled and self.details_submitted


class ProcessorEvent(models.Model):
    """Every processor callback received, keyed by the processor's event id."""

    event_id = models.CharField(max_length=255, unique=True)
    event_type = models.CharField(max_length=100)
    payload = models.JSONField(default=dict)
    processed_at = models.DateTimeField(null=True, blank=True)
    received_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Processor event")
        verbose_name_plural = _("Processor events")
        ordering = ["-received_at"]

    def __str__(self) -> str:
        return f"{self.event_type} {self.event_id}"
