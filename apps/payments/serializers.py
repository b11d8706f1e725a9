"""Serializers for the payments domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import PayoutAccount


class PayoutAccountSerializer(serializers.ModelSerializer):
    is_onboarded = serializers.BooleanField(read_only=True)

    class Meta:
        model = PayoutAccount
        fields = [
            "stripe_account_id",
            "charges_enabled",
            "payouts_enabled",
            "details_submitted",
            "is_onboarded",
            "onboarded_at",
        ]
        read_only_fields = fields


class OnboardingRequestSerializer(serializers.Serializer):
    email = serializers.EmailField(required=False, allow_blank=True)
