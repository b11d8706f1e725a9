"""Application services for booking workflows that span apps."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from apps.payments.models import PaymentRecord
from apps.payments.services import payout_orchestrator
from shared.application.message_bus import message_bus
from shared.domain.exceptions import (
    PaymentDeclined,
    PaymentProcessorError,
    ProviderNotOnboarded,
    TransientProcessorError,
)

from .application.command_handlers import CancelBookingCommand, RequestBookingCommand
from .domain.entities import Booking

logger = logging.getLogger(__name__)


@dataclass
class BookingRequestResult:
    booking: Booking
    payment: PaymentRecord | None
    # Set when the processor was unreachable; the booking stays requested
    payment_error: TransientProcessorError | None = None


def authorize_booking(booking_id: UUID) -> PaymentRecord:
    """
    Set up the split payment of a requested booking.

    A terminal failure (owner not onboarded, declined, processor rejected
    the intent) cancels the booking so the scooter returns to the pool,
    then the original error propagates. A transient failure propagates
    with the booking left requested, so the renter can retry.
    """

    try:
        return payout_orchestrator.authorize(booking_id)
    except TransientProcessorError:
        raise
    except (ProviderNotOnboarded, PaymentDeclined, PaymentProcessorError) as exc:
        logger.warning("Authorization of booking %s failed (%s), cancelling request", booking_id, exc.code)
        message_bus.handle_command(CancelBookingCommand(
            booking_id=booking_id,
            acting_renter_id=None,
            reason=f"Payment setup failed: {exc.code}",
        ))
        raise


def request_booking(scooter_id: UUID, renter_id: int, start: datetime, duration_class) -> BookingRequestResult:
    """
    Request a scooter and set up its payment.

    The claim and the booking are committed first; authorization follows
    outside the transaction. When the processor is unreachable the booking
    stays requested and the error is returned alongside it; the request
    timeout closes it if authorization is never retried.
    """

    booking = message_bus.handle_command(RequestBookingCommand(
        scooter_id=scooter_id,
        renter_id=renter_id,
        start=start,
        duration_class=duration_class,
    ))

    try:
        payment = authorize_booking(booking.id)
    except TransientProcessorError as exc:
        logger.warning("Authorization of booking %s deferred: %s", booking.booking_number, exc.message)
        return BookingRequestResult(booking=booking, payment=None, payment_error=exc)

    return BookingRequestResult(booking=booking, payment=payment)
