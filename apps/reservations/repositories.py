"""
Booking Repository

Maps the Booking aggregate onto the ``reservations.Booking`` row.
Saves are optimistic: the UPDATE only matches the version that was loaded,
and a lost race surfaces as ConcurrencyConflict.
"""

from __future__ import annotations

import logging
from uuid import UUID

from django.db import IntegrityError  # type: ignore
from django.db.models import F  # type: ignore

from apps.scooters.domain.availability import DurationClass, money
from shared.domain.exceptions import AlreadyBooked, ConcurrencyConflict, NotFound
from shared.domain.value_objects import TimeWindow

from .domain.entities import Booking, BookingStatus, PriceQuote, RejectionSource
from .models import Booking as BookingModel

logger = logging.getLogger(__name__)


class DjangoBookingRepository:

    def get(self, booking_id: UUID) -> Booking:
        try:
            row = BookingModel.objects.get(pk=booking_id)
        except BookingModel.DoesNotExist:
            raise NotFound("Booking not found", booking_id=booking_id)
        return self._to_domain(row)

    def add(self, booking: Booking) -> None:
        try:
            BookingModel.objects.create(
                id=booking.id,
                booking_number=booking.booking_number,
                scooter_id=booking.scooter_id,
                renter_id=booking.renter_id,
                owner_id=booking.owner_id,
                start=booking.window.start,
                end=booking.window.end,
                duration_class=int(booking.duration_class),
                base_price=booking.quote.base.amount,
                unlock_fee=booking.quote.unlock_fee.amount,
                fees_and_taxes=booking.quote.fees_and_taxes.amount,
                total_price=booking.quote.total.amount,
                currency=booking.quote.total.currency,
                confirmation_code=booking.confirmation_code,
                status=booking.status.value,
                version=booking.version,
                expires_at=booking.expires_at,
            )
        except IntegrityError:
            # Partial unique index on open bookings per scooter
            logger.warning("Open booking already exists for scooter %s", booking.scooter_id)
            raise AlreadyBooked(scooter_id=booking.scooter_id)

    def save(self, booking: Booking) -> None:
        updated = BookingModel.objects.filter(pk=booking.id, version=booking.version).update(
            status=booking.status.value,
            confirmation_code=booking.confirmation_code,
            failed_code_attempts=booking.failed_code_attempts,
            expires_at=booking.expires_at,
            rejection_source=booking.rejection_source.value if booking.rejection_source else '',
            rejection_reason=booking.rejection_reason,
            accepted_at=booking.accepted_at,
            rejected_at=booking.rejected_at,
            completed_at=booking.completed_at,
            updated_at=booking.updated_at,
            version=F('version') + 1,
        )
        if not updated:
            logger.warning("Version conflict saving booking %s (v%s)", booking.id, booking.version)
            raise ConcurrencyConflict(booking_id=booking.id)
        booking.version += 1

    def _to_domain(self, row: BookingModel) -> Booking:
        duration_class = DurationClass(row.duration_class)
        return Booking(
            id=row.id,
            booking_number=row.booking_number,
            scooter_id=row.scooter_id,
            renter_id=row.renter_id,
            owner_id=row.owner_id,
            window=TimeWindow(row.start, duration_class.duration),
            duration_class=duration_class,
            quote=PriceQuote(
                base=money(row.base_price),
                unlock_fee=money(row.unlock_fee),
                fees_and_taxes=money(row.fees_and_taxes),
                total=money(row.total_price),
            ),
            confirmation_code=row.confirmation_code or '',
            failed_code_attempts=row.failed_code_attempts,
            status=BookingStatus(row.status),
            version=row.version,
            expires_at=row.expires_at,
            rejection_source=RejectionSource(row.rejection_source) if row.rejection_source else None,
            rejection_reason=row.rejection_reason,
            accepted_at=row.accepted_at,
            rejected_at=row.rejected_at,
            completed_at=row.completed_at,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
