"""
Booking Domain Entities

Core business entities for the reservations domain:
- Booking: Aggregate root driving the rental life cycle
- BookingStatus: FSM states
- PriceQuote: Price breakdown fixed at request time
"""

import hmac
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from apps.scooters.domain.availability import DurationClass
from shared.domain.base import Aggregate, ValueObject, utcnow
from shared.domain.exceptions import (
    CodeLockedOut,
    InvalidTransition,
    NotBookingOwner,
    NotBookingRenter,
    PaymentNotCaptured,
)
from shared.domain.value_objects import Money, TimeWindow

DEFAULT_FEE_RATE = Decimal('0.15')
DEFAULT_UNLOCK_FEE = Decimal('1.00')


class BookingStatus(Enum):
    """
    Booking Status Finite State Machine

    State transitions:
    - REQUESTED -> ACCEPTED -> ACTIVE (owner accepted a paid request, one step)
    - REQUESTED -> REJECTED (owner rejected, renter cancelled, or timed out)
    - ACTIVE -> COMPLETED (scooter returned with the right code)
    """
    REQUESTED = 'requested'
    ACCEPTED = 'accepted'
    ACTIVE = 'active'
    REJECTED = 'rejected'
    COMPLETED = 'completed'

    @property
    def is_open(self) -> bool:
        return self in (BookingStatus.REQUESTED, BookingStatus.ACCEPTED, BookingStatus.ACTIVE)

    @property
    def is_terminal(self) -> bool:
        return not self.is_open


class RejectionSource(Enum):
    OWNER = 'owner'
    RENTER = 'renter'
    SYSTEM = 'system'


@dataclass(frozen=True)
class PriceQuote(ValueObject):
    """Price breakdown shown to the renter"""
    base: Money
    unlock_fee: Money
    fees_and_taxes: Money
    total: Money

    @classmethod
    def for_base(
        cls,
        base: Money,
        fee_rate: Decimal = DEFAULT_FEE_RATE,
        unlock_fee: Decimal = DEFAULT_UNLOCK_FEE,
    ) -> 'PriceQuote':
        """
        Fees and taxes are ``fee_rate`` of the base price; the total is
        rounded to cents once, over the unrounded parts.
        """
        unlock = Money(unlock_fee, base.currency)
        fees = base * fee_rate
        total = (base + unlock + fees).round2()
        return cls(base=base.round2(), unlock_fee=unlock.round2(), fees_and_taxes=fees.round2(), total=total)


def generate_confirmation_code() -> str:
    """Six digits, 100000-999999"""
    return f"{100000 + secrets.randbelow(900000)}"


def generate_booking_number() -> str:
    """Human-readable booking number: SC{timestamp}{random}"""
    timestamp = utcnow().strftime('%Y%m%d%H%M%S')
    return f"SC{timestamp}{uuid4().hex[:6].upper()}"


@dataclass(eq=False, kw_only=True)
class Booking(Aggregate):
    """
    Booking Aggregate Root

    Key invariants:
    - Only the owner accepts or rejects, only the renter cancels
    - Accepting requires a captured payment
    - The confirmation code is single-use and cleared on completion
    - Terminal states (rejected, completed) accept no further transition
    """

    booking_number: str
    scooter_id: UUID
    renter_id: int
    owner_id: int
    window: TimeWindow
    duration_class: DurationClass
    quote: PriceQuote

    confirmation_code: str = ''
    failed_code_attempts: int = 0

    status: BookingStatus = BookingStatus.REQUESTED
    expires_at: datetime | None = None

    rejection_source: RejectionSource | None = None
    rejection_reason: str = ''

    accepted_at: datetime | None = None
    rejected_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def request(
        cls,
        *,
        scooter_id: UUID,
        renter_id: int,
        owner_id: int,
        start: datetime,
        duration_class: DurationClass,
        quote: PriceQuote,
        ttl: timedelta,
        booking_id: UUID | None = None,
        now: datetime | None = None,
    ) -> 'Booking':
        """
        Open a new request (-> REQUESTED)

        Events: BookingRequested
        """
        from apps.reservations.domain.events import BookingRequested

        now = now or utcnow()
        booking = cls(
            id=booking_id or uuid4(),
            booking_number=generate_booking_number(),
            scooter_id=scooter_id,
            renter_id=renter_id,
            owner_id=owner_id,
            window=TimeWindow(start, duration_class.duration),
            duration_class=duration_class,
            quote=quote,
            confirmation_code=generate_confirmation_code(),
            expires_at=now + ttl,
            created_at=now,
            updated_at=now,
        )
        booking.record(BookingRequested(
            booking_id=booking.id,
            scooter_id=scooter_id,
            renter_id=renter_id,
            owner_id=owner_id,
            total_price=quote.total,
        ), now)
        return booking

    def _require_status(self, expected: BookingStatus, action: str):
        if self.status != expected:
            raise InvalidTransition(
                f"Cannot {action} a booking in status {self.status.value}",
                booking_id=self.id,
                status=self.status.value,
            )

    def accept(self, acting_owner_id: int, payment_captured: bool):
        """
        Accept (REQUESTED -> ACCEPTED -> ACTIVE)

        The intermediate ACCEPTED state is never persisted: a paid, accepted
        rental starts right away.
        Events: BookingAccepted
        """
        if acting_owner_id != self.owner_id:
            raise NotBookingOwner(booking_id=self.id)
        self._require_status(BookingStatus.REQUESTED, 'accept')
        if not payment_captured:
            raise PaymentNotCaptured(booking_id=self.id)

        from apps.reservations.domain.events import BookingAccepted

        now = utcnow()
        self.status = BookingStatus.ACCEPTED
        self.accepted_at = now
        self.status = BookingStatus.ACTIVE
        self.expires_at = None

        self.record(BookingAccepted(
            booking_id=self.id,
            scooter_id=self.scooter_id,
            renter_id=self.renter_id,
        ), now)

    def _close_request(self, source: RejectionSource, reason: str):
        from apps.reservations.domain.events import BookingRejected

        now = utcnow()
        self.status = BookingStatus.REJECTED
        self.rejection_source = source
        self.rejection_reason = reason
        self.rejected_at = now
        self.expires_at = None

        self.record(BookingRejected(
            booking_id=self.id,
            scooter_id=self.scooter_id,
            source=source.value,
            reason=reason,
        ), now)

    def reject(self, acting_owner_id: int, reason: str = ''):
        """
        Owner rejects (REQUESTED -> REJECTED)

        Events: BookingRejected
        """
        if acting_owner_id != self.owner_id:
            raise NotBookingOwner(booking_id=self.id)
        self._require_status(BookingStatus.REQUESTED, 'reject')
        self._close_request(RejectionSource.OWNER, reason)

    def cancel(self, acting_renter_id: int | None, reason: str = ''):
        """
        Withdraw a request before it is active (REQUESTED -> REJECTED)

        ``acting_renter_id`` None means the system cancels, e.g. when the
        payment could not be set up.
        Events: BookingRejected
        """
        if acting_renter_id is not None and acting_renter_id != self.renter_id:
            raise NotBookingRenter(booking_id=self.id)
        if self.status not in (BookingStatus.REQUESTED, BookingStatus.ACCEPTED):
            raise InvalidTransition(
                f"Cannot cancel a booking in status {self.status.value}",
                booking_id=self.id,
                status=self.status.value,
            )
        source = RejectionSource.SYSTEM if acting_renter_id is None else RejectionSource.RENTER
        self._close_request(source, reason)

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.status != BookingStatus.REQUESTED or self.expires_at is None:
            return False
        return (now or utcnow()) >= self.expires_at

    def expire(self, now: datetime | None = None):
        """
        Request timed out (REQUESTED -> REJECTED)

        Events: BookingExpired
        """
        self._require_status(BookingStatus.REQUESTED, 'expire')
        if not self.is_expired(now):
            raise InvalidTransition(
                "Booking request has not expired yet",
                booking_id=self.id,
                expires_at=self.expires_at,
            )

        from apps.reservations.domain.events import BookingExpired

        now = now or utcnow()
        self.status = BookingStatus.REJECTED
        self.rejection_source = RejectionSource.SYSTEM
        self.rejection_reason = 'Request expired'
        self.rejected_at = now
        self.expires_at = None

        self.record(BookingExpired(
            booking_id=self.id,
            scooter_id=self.scooter_id,
        ), now)

    def verify_return(self, acting_owner_id: int, code: str, max_attempts: int) -> bool:
        """
        Check the renter's confirmation code (ACTIVE -> COMPLETED on match)

        A mismatch only counts the failed attempt and returns False; the
        caller persists the counter before reporting the mismatch.
        Events: BookingCompleted
        """
        if acting_owner_id != self.owner_id:
            raise NotBookingOwner(booking_id=self.id)
        self._require_status(BookingStatus.ACTIVE, 'verify the return of')
        if self.failed_code_attempts >= max_attempts:
            raise CodeLockedOut(booking_id=self.id, attempts=self.failed_code_attempts)

        supplied = (code or '').strip()
        if not self.confirmation_code or not hmac.compare_digest(
            supplied.encode(), self.confirmation_code.encode()
        ):
            self.failed_code_attempts += 1
            self.touch()
            return False

        from apps.reservations.domain.events import BookingCompleted

        now = utcnow()
        self.status = BookingStatus.COMPLETED
        self.confirmation_code = ''
        self.completed_at = now

        self.record(BookingCompleted(
            booking_id=self.id,
            scooter_id=self.scooter_id,
            renter_id=self.renter_id,
            owner_id=self.owner_id,
        ), now)
        return True
