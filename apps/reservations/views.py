"""API views for the reservations domain."""

from __future__ import annotations

from django.db.models import Q  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from shared.application.message_bus import message_bus
from shared.domain.exceptions import NotBookingRenter

from .application.command_handlers import (
    AcceptBookingCommand,
    CancelBookingCommand,
    RejectBookingCommand,
    VerifyReturnCommand,
)
from .models import Booking
from .serializers import (
    BookingCreateSerializer,
    BookingRejectSerializer,
    BookingSerializer,
    VerifyReturnSerializer,
)
from .services import authorize_booking, request_booking


class BookingViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Viewset for requesting bookings and driving them through their life cycle."""

    queryset = Booking.objects.select_related("scooter", "payment")
    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = "[0-9a-f-]{36}"

    def get_queryset(self):  # type: ignore
        user = self.request.user
        qs = super().get_queryset()
        if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
            return qs
        qs = qs.filter(Q(renter=user) | Q(owner=user))
        role = self.request.query_params.get("role")
        if role == "renter":
            qs = qs.filter(renter=user)
        elif role == "owner":
            qs = qs.filter(owner=user)
        status_filter = self.request.query_params.get("status")
        if status_filter:
            qs = qs.filter(status=status_filter)
        return qs

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return BookingCreateSerializer
        return BookingSerializer

    def _booking_response(self, booking_id, http_status=status.HTTP_200_OK, **extra) -> Response:
        booking = self.get_queryset().get(pk=booking_id)
        data = BookingSerializer(booking, context=self.get_serializer_context()).data
        data.update(extra)
        return Response(data, status=http_status)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        params = serializer.validated_data

        result = request_booking(
            params["scooter"],
            request.user.id,
            params["start"],
            params["duration_class"],
        )
        extra = {"client_secret": result.payment.client_secret if result.payment else None}
        if result.payment_error is not None:
            extra["payment_error"] = result.payment_error.to_dict()
        return self._booking_response(result.booking.id, status.HTTP_201_CREATED, **extra)

    @action(detail=True, methods=["post"])
    def accept(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        message_bus.handle_command(AcceptBookingCommand(booking_id=booking.id, acting_owner_id=request.user.id))
        return self._booking_response(booking.id)

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = BookingRejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message_bus.handle_command(RejectBookingCommand(
            booking_id=booking.id,
            acting_owner_id=request.user.id,
            reason=serializer.validated_data["reason"],
        ))
        return self._booking_response(booking.id)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = BookingRejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message_bus.handle_command(CancelBookingCommand(
            booking_id=booking.id,
            acting_renter_id=request.user.id,
            reason=serializer.validated_data["reason"],
        ))
        return self._booking_response(booking.id)

    @action(detail=True, methods=["post"], url_path="verify-return")
    def verify_return(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = VerifyReturnSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message_bus.handle_command(VerifyReturnCommand(
            booking_id=booking.id,
            acting_owner_id=request.user.id,
            code=serializer.validated_data["code"],
        ))
        return self._booking_response(booking.id)

    @action(detail=True, methods=["post"])
    def authorize(self, request, pk=None):  # type: ignore
        """Retry payment setup after the processor was unavailable."""
        booking = self.get_object()
        if booking.renter_id != request.user.id:
            raise NotBookingRenter(booking_id=booking.id)
        payment = authorize_booking(booking.id)
        return self._booking_response(booking.id, client_secret=payment.client_secret)
