"""Admin registration for scooters."""

from __future__ import annotations

from django.contrib import admin

from .models import Scooter, ScooterAvailability


class ScooterAvailabilityInline(admin.TabularInline):
    model = ScooterAvailability
    extra = 0
    max_num = 7


@admin.register(Scooter)
class ScooterAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "owner",
        "location",
        "exclusivity",
        "is_featured",
        "is_active",
        "six_hour_price",
        "full_day_price",
        "created_at",
    )
    list_filter = ("exclusivity", "is_featured", "is_active", "allow_six_hour", "allow_full_day")
    search_fields = ("name", "location", "owner__email", "owner__username")
    readonly_fields = (
        "exclusivity",
        "claimed_by",
        "version",
        "featured_at",
        "feature_charge_id",
        "created_at",
        "updated_at",
    )
    inlines = [ScooterAvailabilityInline]
