"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_number",
        "scooter",
        "renter",
        "owner",
        "status",
        "duration_class",
        "start",
        "total_price",
        "created_at",
    )
    list_filter = ("status", "duration_class", "rejection_source")
    search_fields = ("booking_number", "scooter__name", "renter__email", "owner__email")
    exclude = ("confirmation_code",)
    readonly_fields = (
        "booking_number",
        "scooter",
        "renter",
        "owner",
        "start",
        "end",
        "duration_class",
        "base_price",
        "unlock_fee",
        "fees_and_taxes",
        "total_price",
        "status",
        "version",
        "failed_code_attempts",
        "expires_at",
        "accepted_at",
        "rejected_at",
        "completed_at",
        "created_at",
        "updated_at",
    )

    def has_add_permission(self, request):  # type: ignore
        # Bookings are only created through the ledger
        return False
