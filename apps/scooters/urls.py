"""URL routing for the scooters domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import SimpleRouter  # type: ignore

from .views import ScooterViewSet

router = SimpleRouter()
router.register(r"", ScooterViewSet, basename="scooter")

urlpatterns = [
    path("", include(router.urls)),
]
