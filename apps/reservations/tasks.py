"""Celery tasks for the reservations domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.utils import timezone  # type: ignore

from shared.application.message_bus import message_bus
from shared.domain.exceptions import DomainError

from .application.command_handlers import ExpireBookingCommand
from .models import Booking

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (run by Celery Beat)
# ============================================================================

@shared_task(name="reservations.expire_stale_requests")
def expire_stale_requests() -> dict[str, int]:
    """
    Close booking requests nobody answered in time.

    Finds REQUESTED bookings whose expires_at has passed and expires them,
    releasing the scooter; captured payments are refunded by the
    BookingExpired subscriber.

    Runs every minute through Celery Beat.

    Returns:
        dict: {"expired": number of expired bookings, "skipped": lost races}
    """
    now = timezone.now()
    expired_count = 0
    skipped_count = 0

    stale_ids = list(
        Booking.objects.filter(
            status=Booking.Status.REQUESTED,
            expires_at__lte=now,
        ).values_list("id", flat=True)
    )

    for booking_id in stale_ids:
        try:
            message_bus.handle_command(ExpireBookingCommand(booking_id=booking_id))
            expired_count += 1
        except DomainError as e:
            # Owner or renter acted between the query and the transition
            skipped_count += 1
            logger.info(f"Booking {booking_id} not expired: {e.code}")

    if expired_count > 0:
        logger.info(f"Expired {expired_count} stale booking requests")

    return {"expired": expired_count, "skipped": skipped_count}
