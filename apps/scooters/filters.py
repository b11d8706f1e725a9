"""FilterSet definitions for scooter listings."""

from __future__ import annotations

import django_filters  # type: ignore
from django.db.models import Q  # type: ignore

from .models import Scooter


class ScooterFilterSet(django_filters.FilterSet):
    """Filters for the plain listing endpoint (not time-window aware)."""

    location = django_filters.CharFilter(field_name="location", lookup_expr="icontains")
    search = django_filters.CharFilter(method="filter_search")
    brand = django_filters.CharFilter(field_name="brand", lookup_expr="iexact")
    min_speed = django_filters.NumberFilter(field_name="top_speed", lookup_expr="gte")
    max_six_hour_price = django_filters.NumberFilter(field_name="six_hour_price", lookup_expr="lte")
    max_full_day_price = django_filters.NumberFilter(field_name="full_day_price", lookup_expr="lte")

    class Meta:
        model = Scooter
        fields = [
            "location",
            "brand",
            "is_electric",
            "allow_six_hour",
            "allow_full_day",
            "is_featured",
            "exclusivity",
        ]

    def filter_search(self, queryset, name, value):  # type: ignore
        if not value:
            return queryset
        term = value.strip()
        return queryset.filter(Q(name__icontains=term) | Q(location__icontains=term))
