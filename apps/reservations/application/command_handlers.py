"""
Booking Command Handlers

These are the use cases for the reservations domain. Each one runs a
single transition inside one DjangoUnitOfWork: the booking row, the
scooter's ledger state and the payment record either all change or none
of them does. Domain events are published after commit.

Commands:
- RequestBookingCommand: Claim a scooter and open a booking request
- AcceptBookingCommand: Owner accepts a paid request
- RejectBookingCommand: Owner rejects a request
- CancelBookingCommand: Renter (or the system) withdraws a request
- ExpireBookingCommand: Close a request nobody answered in time
- VerifyReturnCommand: Owner enters the renter's code on return
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID, uuid4
import logging

from django.conf import settings

from apps.reservations.domain.entities import Booking, BookingStatus, PriceQuote
from apps.reservations.ledger import ClaimResult, ReservationLedger, ledger as default_ledger
from apps.reservations.repositories import DjangoBookingRepository
from apps.scooters.domain.availability import DurationClass, resolve_timezone, supports_window
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import (
    AlreadyBooked,
    AssetUnavailable,
    CodeMismatch,
    ConcurrencyConflict,
    NotFound,
)

logger = logging.getLogger(__name__)


def _setting(name, default):
    return getattr(settings, name, default)


# ===== Commands =====

@dataclass
class RequestBookingCommand:
    """
    Command to request a scooter for one window

    This is the primary entry point for renters.
    """
    scooter_id: UUID
    renter_id: int
    start: datetime
    duration_class: int


@dataclass
class AcceptBookingCommand:
    booking_id: UUID
    acting_owner_id: int


@dataclass
class RejectBookingCommand:
    booking_id: UUID
    acting_owner_id: int
    reason: str = ''


@dataclass
class CancelBookingCommand:
    """acting_renter_id None means a system cancellation"""
    booking_id: UUID
    acting_renter_id: int | None
    reason: str = ''


@dataclass
class ExpireBookingCommand:
    booking_id: UUID


@dataclass
class VerifyReturnCommand:
    booking_id: UUID
    acting_owner_id: int
    code: str


# ===== Command Handlers =====

class BookingTransitionHandler:
    """
    Base for handlers of an existing booking

    A transition that loses a version race is retried from a fresh read,
    up to RESERVATIONS_MAX_WRITE_RETRIES attempts; each attempt is its
    own unit of work.
    """

    def __init__(self, booking_repo=None, ledger: ReservationLedger | None = None):
        self.booking_repo = booking_repo or DjangoBookingRepository()
        self.ledger = ledger or default_ledger

    def __call__(self, command) -> Booking:
        return self.handle(command)

    def handle(self, command) -> Booking:
        attempts = max(1, int(_setting('RESERVATIONS_MAX_WRITE_RETRIES', 3)))
        for attempt in range(1, attempts + 1):
            try:
                with DjangoUnitOfWork() as uow:
                    booking = self.booking_repo.get(command.booking_id)
                    self.apply(booking, command)
                    self.booking_repo.save(booking)
                    self.after_save(booking, command)
                    uow.collect_events(booking)
                return booking
            except ConcurrencyConflict:
                if attempt == attempts:
                    logger.warning(
                        "%s for booking %s gave up after %d attempts",
                        type(command).__name__, command.booking_id, attempts,
                    )
                    raise
                logger.info(
                    "Retrying %s for booking %s (attempt %d)",
                    type(command).__name__, command.booking_id, attempt + 1,
                )

    def apply(self, booking: Booking, command):
        raise NotImplementedError

    def after_save(self, booking: Booking, command):
        """Writes that belong to the same transaction, e.g. ledger state"""
        pass


class RequestBookingHandler:
    """
    Handler for RequestBooking command

    1. Validate duration class and window against the calendar (no writes)
    2. Start transaction
    3. Claim the scooter in the ledger (conditional UPDATE)
    4. Create Booking(requested) with its price quote and confirmation code
    5. Create the PaymentRecord(created) the orchestrator will authorize
    6. Commit, then publish BookingRequested

    Payment authorization is not part of this handler: processor calls
    never run inside a database transaction.
    """

    def __init__(self, booking_repo=None, ledger: ReservationLedger | None = None):
        self.booking_repo = booking_repo or DjangoBookingRepository()
        self.ledger = ledger or default_ledger

    def __call__(self, command: RequestBookingCommand) -> Booking:
        return self.handle(command)

    def handle(self, command: RequestBookingCommand) -> Booking:
        from apps.payments.models import PaymentRecord
        from apps.scooters.models import Scooter

        duration_class = DurationClass.parse(command.duration_class)

        try:
            scooter = Scooter.objects.prefetch_related('availability').get(
                pk=command.scooter_id,
                is_active=True,
            )
        except Scooter.DoesNotExist:
            raise NotFound("Scooter not found", scooter_id=command.scooter_id)

        if scooter.owner_id == command.renter_id:
            raise AssetUnavailable("Owners cannot rent their own scooter", scooter_id=scooter.id)

        start = command.start
        if start.tzinfo is None or start.utcoffset() is None:
            # Naive pickup times are wall-clock times at the scooter
            start = start.replace(tzinfo=resolve_timezone(scooter.timezone))

        terms = scooter.rental_terms()
        check_end = bool(_setting('SCOOTERS_VALIDATE_WINDOW_END', False))
        if not supports_window(terms, start, duration_class, check_end=check_end):
            raise AssetUnavailable(
                scooter_id=scooter.id,
                start=start.isoformat(),
                duration_class=int(duration_class),
            )

        quote = PriceQuote.for_base(
            terms.price_for_class(duration_class),
            fee_rate=Decimal(str(_setting('RESERVATIONS_FEES_AND_TAXES_RATE', '0.15'))),
            unlock_fee=Decimal(str(_setting('UNLOCK_FEE', '1.00'))),
        )
        platform_fee = _platform_fee(quote)

        logger.info(
            "Requesting scooter %s for renter %s at %s (%sh)",
            scooter.id, command.renter_id, start.isoformat(), int(duration_class),
        )

        booking_id = uuid4()
        with DjangoUnitOfWork() as uow:
            if self.ledger.try_claim(scooter.id, booking_id) is ClaimResult.ALREADY_CLAIMED:
                raise AlreadyBooked(scooter_id=scooter.id)

            booking = Booking.request(
                booking_id=booking_id,
                scooter_id=scooter.id,
                renter_id=command.renter_id,
                owner_id=scooter.owner_id,
                start=start,
                duration_class=duration_class,
                quote=quote,
                ttl=_setting('RESERVATIONS_REQUEST_TTL', timedelta(hours=24)),
            )
            self.booking_repo.add(booking)
            PaymentRecord.objects.create(
                booking_id=booking.id,
                amount=quote.total.amount,
                platform_fee=platform_fee.amount,
                currency=str(_setting('PAYMENTS_CURRENCY', 'usd')).lower(),
            )
            uow.collect_events(booking)

        logger.info(
            "Booking %s requested (ID: %s), total %s",
            booking.booking_number, booking.id, quote.total,
        )
        return booking


def _platform_fee(quote: PriceQuote):
    from apps.payments.services import platform_fee_for

    return platform_fee_for(quote.total)


class AcceptBookingHandler(BookingTransitionHandler):
    """Owner accepts: requires a captured payment; scooter becomes active"""

    def apply(self, booking: Booking, command: AcceptBookingCommand):
        from apps.payments.models import PaymentRecord

        captured = PaymentRecord.objects.filter(
            booking_id=booking.id,
            status=PaymentRecord.Status.CAPTURED,
        ).exists()
        booking.accept(command.acting_owner_id, payment_captured=captured)

    def after_save(self, booking: Booking, command):
        self.ledger.activate(booking.scooter_id, booking.id)
        logger.info("Booking %s accepted and active", booking.booking_number)


class _ReleasingHandler(BookingTransitionHandler):
    """Transitions that close a booking give the scooter back"""

    def after_save(self, booking: Booking, command):
        self.ledger.release(booking.scooter_id, booking.id)
        logger.info(
            "Booking %s closed by %s, scooter %s released",
            booking.booking_number, type(command).__name__, booking.scooter_id,
        )


class RejectBookingHandler(_ReleasingHandler):
    def apply(self, booking: Booking, command: RejectBookingCommand):
        booking.reject(command.acting_owner_id, command.reason)


class CancelBookingHandler(_ReleasingHandler):
    def apply(self, booking: Booking, command: CancelBookingCommand):
        booking.cancel(command.acting_renter_id, command.reason)


class ExpireBookingHandler(_ReleasingHandler):
    def apply(self, booking: Booking, command: ExpireBookingCommand):
        booking.expire()


class VerifyReturnHandler(_ReleasingHandler):
    """
    Handler for VerifyReturn command

    A wrong code is persisted as a failed attempt and then reported as
    CodeMismatch; the booking stays active.
    """

    def handle(self, command: VerifyReturnCommand) -> Booking:
        booking = super().handle(command)
        if booking.status != BookingStatus.COMPLETED:
            logger.warning(
                "Wrong confirmation code for booking %s (%d failed attempts)",
                booking.booking_number, booking.failed_code_attempts,
            )
            raise CodeMismatch(booking_id=booking.id, attempts=booking.failed_code_attempts)
        return booking

    def apply(self, booking: Booking, command: VerifyReturnCommand):
        booking.verify_return(
            command.acting_owner_id,
            command.code,
            max_attempts=int(_setting('RESERVATIONS_MAX_CODE_ATTEMPTS', 5)),
        )

    def after_save(self, booking: Booking, command):
        if booking.status == BookingStatus.COMPLETED:
            super().after_save(booking, command)


request_booking_handler = RequestBookingHandler()
accept_booking_handler = AcceptBookingHandler()
reject_booking_handler = RejectBookingHandler()
cancel_booking_handler = CancelBookingHandler()
expire_booking_handler = ExpireBookingHandler()
verify_return_handler = VerifyReturnHandler()


def register_handlers(bus) -> None:
    bus.register_command_handler(RequestBookingCommand, request_booking_handler)
    bus.register_command_handler(AcceptBookingCommand, accept_booking_handler)
    bus.register_command_handler(RejectBookingCommand, reject_booking_handler)
    bus.register_command_handler(CancelBookingCommand, cancel_booking_handler)
    bus.register_command_handler(ExpireBookingCommand, expire_booking_handler)
    bus.register_command_handler(VerifyReturnCommand, verify_return_handler)
