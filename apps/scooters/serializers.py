"""Serializers for the scooters domain."""

from __future__ import annotations

from django.db import transaction  # type: ignore
from rest_framework import serializers  # type: ignore

from shared.domain.exceptions import InvalidAvailability

from .domain.availability import (
    WEEKDAYS,
    DailyAvailability,
    DurationClass,
    WeeklyAvailability,
    resolve_timezone,
)
from .models import Scooter, ScooterAvailability
from .services import ListingSort


class ScooterAvailabilitySerializer(serializers.ModelSerializer):
    weekday_name = serializers.SerializerMethodField()

    class Meta:
        model = ScooterAvailability
        fields = ["weekday", "weekday_name", "is_open", "open_time", "close_time"]

    def get_weekday_name(self, obj: ScooterAvailability) -> str:
        return WEEKDAYS[obj.weekday]


class ScooterSerializer(serializers.ModelSerializer):
    owner = serializers.ReadOnlyField(source="owner_id")
    availability = ScooterAvailabilitySerializer(many=True, read_only=True)

    class Meta:
        model = Scooter
        fields = [
            "id",
            "owner",
            "name",
            "location",
            "description",
            "brand",
            "model_name",
            "top_speed",
            "is_electric",
            "range_miles",
            "safety_notes",
            "allow_six_hour",
            "allow_full_day",
            "six_hour_price",
            "full_day_price",
            "timezone",
            "is_active",
            "exclusivity",
            "is_featured",
            "featured_at",
            "availability",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BiddableScooterSerializer(ScooterSerializer):
    """Listing card for a renter's query, priced for the requested duration."""

    price = serializers.SerializerMethodField()

    class Meta(ScooterSerializer.Meta):
        fields = ScooterSerializer.Meta.fields + ["price"]
        read_only_fields = fields

    def get_price(self, obj: Scooter) -> str:
        duration_class = self.context.get("duration_class", DurationClass.SIX_HOURS)
        return str(obj.rental_terms().price_for_class(duration_class).round2().amount)


class AvailabilityWriteSerializer(serializers.Serializer):
    weekday = serializers.IntegerField(min_value=0, max_value=6)
    is_open = serializers.BooleanField()
    open_time = serializers.TimeField(required=False, allow_null=True)
    close_time = serializers.TimeField(required=False, allow_null=True)


class ScooterWriteSerializer(serializers.ModelSerializer):
    """Create or update a listing; the weekly calendar is replaced as a whole."""

    availability = AvailabilityWriteSerializer(many=True, required=False)

    class Meta:
        model = Scooter
        fields = [
            "name",
            "location",
            "description",
            "brand",
            "model_name",
            "top_speed",
            "is_electric",
            "range_miles",
            "safety_notes",
            "allow_six_hour",
            "allow_full_day",
            "six_hour_price",
            "full_day_price",
            "timezone",
            "is_active",
            "availability",
        ]

    def validate_timezone(self, value: str) -> str:
        try:
            resolve_timezone(value)
        except InvalidAvailability as exc:
            raise serializers.ValidationError(exc.message)
        return value

    def validate_availability(self, value):  # type: ignore
        weekdays = [entry["weekday"] for entry in value]
        if sorted(weekdays) != list(range(len(WEEKDAYS))):
            raise serializers.ValidationError("Provide exactly one entry for each weekday (0=Monday .. 6=Sunday).")
        try:
            WeeklyAvailability.from_mapping({
                entry["weekday"]: DailyAvailability(
                    is_open=entry["is_open"],
                    open_time=entry.get("open_time"),
                    close_time=entry.get("close_time"),
                )
                for entry in value
            })
        except InvalidAvailability as exc:
            raise serializers.ValidationError(exc.message)
        return value

    def validate(self, attrs):  # type: ignore
        allow_six = attrs.get("allow_six_hour", getattr(self.instance, "allow_six_hour", True))
        allow_full = attrs.get("allow_full_day", getattr(self.instance, "allow_full_day", True))
        if not (allow_six or allow_full):
            raise serializers.ValidationError("Allow at least one rental duration.")
        return attrs

    def _replace_availability(self, scooter: Scooter, entries) -> None:
        scooter.availability.all().delete()
        ScooterAvailability.objects.bulk_create([
            ScooterAvailability(
                scooter=scooter,
                weekday=entry["weekday"],
                is_open=entry["is_open"],
                open_time=entry.get("open_time") if entry["is_open"] else None,
                close_time=entry.get("close_time") if entry["is_open"] else None,
            )
            for entry in entries
        ])

    def create(self, validated_data):  # type: ignore
        entries = validated_data.pop("availability", None)
        with transaction.atomic():
            scooter = Scooter.objects.create(owner=self.context["request"].user, **validated_data)
            self._replace_availability(scooter, entries or [
                {"weekday": index, "is_open": False} for index in range(len(WEEKDAYS))
            ])
        return scooter

    def update(self, instance, validated_data):  # type: ignore
        entries = validated_data.pop("availability", None)
        with transaction.atomic():
            for attr, value in validated_data.items():
                setattr(instance, attr, value)
            # Claim and feature columns belong to the ledger and the escrow
            instance.save(update_fields=[*validated_data, "updated_at"])
            if entries is not None:
                self._replace_availability(instance, entries)
        instance.refresh_from_db()
        return instance

    def to_representation(self, instance):  # type: ignore
        return ScooterSerializer(instance, context=self.context).data


class BiddableQuerySerializer(serializers.Serializer):
    start = serializers.DateTimeField()
    duration_class = serializers.ChoiceField(choices=[int(c) for c in DurationClass])
    location = serializers.CharField(required=False, allow_blank=True)
    search = serializers.CharField(required=False, allow_blank=True)
    sort = serializers.ChoiceField(choices=ListingSort.choices, default=ListingSort.RELEVANCE)

    def validate_duration_class(self, value) -> DurationClass:
        return DurationClass.parse(value)


class FeaturePurchaseSerializer(serializers.Serializer):
    payment_method = serializers.CharField(max_length=255)
