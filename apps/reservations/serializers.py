"""Serializers for the reservations domain."""

from __future__ import annotations

from django.utils import timezone  # type: ignore
from rest_framework import serializers  # type: ignore

from apps.payments.models import PaymentRecord
from apps.scooters.domain.availability import DurationClass, resolve_timezone
from apps.scooters.models import Scooter

from .models import Booking


class PaymentSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentRecord
        fields = ["status", "amount", "platform_fee", "currency", "intent_id"]
        read_only_fields = fields


class BookingSerializer(serializers.ModelSerializer):
    """Booking as seen by its renter or owner."""

    scooter_name = serializers.ReadOnlyField(source="scooter.name")
    confirmation_code = serializers.SerializerMethodField()
    payment = PaymentSummarySerializer(read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "booking_number",
            "scooter",
            "scooter_name",
            "renter",
            "owner",
            "start",
            "end",
            "duration_class",
            "base_price",
            "unlock_fee",
            "fees_and_taxes",
            "total_price",
            "currency",
            "status",
            "confirmation_code",
            "expires_at",
            "rejection_source",
            "rejection_reason",
            "accepted_at",
            "rejected_at",
            "completed_at",
            "payment",
            "created_at",
        ]
        read_only_fields = fields

    def get_confirmation_code(self, obj: Booking) -> str | None:
        # Only the renter holds the code; the owner has to ask for it on return
        request = self.context.get("request")
        if request is None or request.user.id != obj.renter_id:
            return None
        return obj.confirmation_code or None


class ScooterLocalDateTimeField(serializers.DateTimeField):
    """Leaves naive input naive so it can be read in the scooter's own time zone."""

    def enforce_timezone(self, value):  # type: ignore
        if timezone.is_naive(value):
            return value
        return super().enforce_timezone(value)


class BookingCreateSerializer(serializers.Serializer):
    """Renter's booking request."""

    scooter = serializers.UUIDField()
    start = ScooterLocalDateTimeField(
        help_text="Pickup time. Without a UTC offset it is local time at the scooter.",
    )
    duration_class = serializers.ChoiceField(choices=[int(c) for c in DurationClass])

    def validate(self, attrs):  # type: ignore
        start = attrs["start"]
        if timezone.is_naive(start):
            tz_name = Scooter.objects.filter(pk=attrs["scooter"]).values_list("timezone", flat=True).first()
            if tz_name is None:
                # Unknown scooters are reported as not found by the request itself
                return attrs
            start = start.replace(tzinfo=resolve_timezone(tz_name))
            attrs["start"] = start
        if start < timezone.now():
            raise serializers.ValidationError({"start": "Pickup time cannot be in the past."})
        return attrs


class BookingRejectSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class VerifyReturnSerializer(serializers.Serializer):
    code = serializers.RegexField(r"^\d{6}$", error_messages={"invalid": "Enter the 6-digit confirmation code."})
