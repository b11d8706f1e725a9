"""Scooter API views."""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.filters import OrderingFilter  # type: ignore
from rest_framework.response import Response  # type: ignore

from .filters import ScooterFilterSet
from .models import Scooter
from .serializers import (
    BiddableQuerySerializer,
    BiddableScooterSerializer,
    FeaturePurchaseSerializer,
    ScooterSerializer,
    ScooterWriteSerializer,
)
from .services import list_biddable, purchase_feature


class IsScooterOwnerOrReadOnly(permissions.BasePermission):
    """Listings are public; only their owner (or staff) may change them."""

    def has_object_permission(self, request, view, obj: Scooter):  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        user = request.user
        if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
            return True
        return obj.owner_id == user.id


class ScooterViewSet(viewsets.ModelViewSet):
    """Viewset for scooter listings and the renter-facing biddable query."""

    queryset = Scooter.objects.select_related("owner").prefetch_related("availability")
    permission_classes = [permissions.IsAuthenticatedOrReadOnly, IsScooterOwnerOrReadOnly]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = ScooterFilterSet
    ordering_fields = ["six_hour_price", "full_day_price", "top_speed", "created_at", "is_featured"]
    lookup_value_regex = "[0-9a-f-]{36}"

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        user = self.request.user
        if self.action in {"list", "retrieve"}:
            if user.is_authenticated and self.request.query_params.get("mine"):
                return qs.filter(owner=user)
            return qs.filter(is_active=True)
        return qs

    def get_serializer_class(self):  # type: ignore
        if self.action in {"create", "update", "partial_update"}:
            return ScooterWriteSerializer
        return ScooterSerializer

    def perform_destroy(self, instance: Scooter) -> None:
        # Bookings keep referencing the scooter; unlisting is enough
        instance.is_active = False
        instance.save(update_fields=["is_active", "updated_at"])

    @action(detail=False, methods=["get"], permission_classes=[permissions.AllowAny])
    def biddable(self, request):  # type: ignore
        query = BiddableQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        scooters = list_biddable(
            params["start"],
            params["duration_class"],
            location=params.get("location") or None,
            search=params.get("search") or None,
            sort=params["sort"],
        )
        serializer = BiddableScooterSerializer(
            scooters,
            many=True,
            context={**self.get_serializer_context(), "duration_class": params["duration_class"]},
        )
        return Response(serializer.data)

    @action(detail=True, methods=["post"], permission_classes=[permissions.IsAuthenticated])
    def feature(self, request, pk=None):  # type: ignore
        serializer = FeaturePurchaseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        scooter = purchase_feature(
            pk,
            request.user.id,
            serializer.validated_data["payment_method"],
            idempotency_key=request.headers.get("Idempotency-Key"),
        )
        return Response(ScooterSerializer(scooter).data, status=status.HTTP_200_OK)
