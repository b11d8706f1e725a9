"""Admin registration for payments."""

from __future__ import annotations

from django.contrib import admin

from .models import PaymentRecord, PayoutAccount, ProcessorEvent


@admin.register(PaymentRecord)
class PaymentRecordAdmin(admin.ModelAdmin):
    list_display = ("booking", "intent_id", "status", "amount", "platform_fee", "currency", "created_at")
    list_filter = ("status", "currency")
    search_fields = ("intent_id", "refund_id", "booking__booking_number")
    exclude = ("client_secret",)
    readonly_fields = (
        "booking",
        "intent_id",
        "destination_account",
        "amount",
        "platform_fee",
        "currency",
        "status",
        "failure_reason",
        "refund_id",
        "authorized_at",
        "captured_at",
        "refunded_at",
        "created_at",
        "updated_at",
    )


@admin.register(PayoutAccount)
class PayoutAccountAdmin(admin.ModelAdmin):
    list_display = ("owner", "stripe_account_id", "charges_enabled", "payouts_enabled", "details_submitted", "onboarded_at")
    list_filter = ("charges_enabled", "payouts_enabled", "details_submitted")
    search_fields = ("stripe_account_id", "owner__email")


@admin.register(ProcessorEvent)
class ProcessorEventAdmin(admin.ModelAdmin):
    list_display = ("event_id", "event_type", "processed_at", "received_at")
    list_filter = ("event_type",)
    search_fields = ("event_id",)
    readonly_fields = ("event_id", "event_type", "payload", "processed_at", "received_at")
