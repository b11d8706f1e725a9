"""Unit tests for the Booking aggregate state machine."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from apps.reservations.domain.entities import (
    Booking,
    BookingStatus,
    PriceQuote,
    RejectionSource,
    generate_confirmation_code,
)
from apps.reservations.domain.events import (
    BookingAccepted,
    BookingCompleted,
    BookingExpired,
    BookingRejected,
    BookingRequested,
)
from apps.scooters.domain.availability import DurationClass, money
from shared.domain.exceptions import (
    CodeLockedOut,
    InvalidTransition,
    NotBookingOwner,
    NotBookingRenter,
    PaymentNotCaptured,
)

OWNER = 1
RENTER = 2
START = datetime(2030, 1, 7, 12, 0, tzinfo=timezone.utc)


def new_booking(**overrides) -> Booking:
    values = {
        "scooter_id": uuid.uuid4(),
        "renter_id": RENTER,
        "owner_id": OWNER,
        "start": START,
        "duration_class": DurationClass.SIX_HOURS,
        "quote": PriceQuote.for_base(money("6.00")),
        "ttl": timedelta(hours=24),
        "now": START - timedelta(days=1),
    }
    values.update(overrides)
    return Booking.request(**values)


def active_booking() -> Booking:
    booking = new_booking()
    booking.accept(OWNER, payment_captured=True)
    booking.clear_events()
    return booking


def test_quote_breakdown():
    quote = PriceQuote.for_base(money("6.00"), fee_rate=Decimal("0.15"), unlock_fee=Decimal("1.00"))

    assert quote.base.amount == Decimal("6.00")
    assert quote.unlock_fee.amount == Decimal("1.00")
    assert quote.fees_and_taxes.amount == Decimal("0.90")
    assert quote.total.amount == Decimal("7.90")


def test_total_is_rounded_once():
    quote = PriceQuote.for_base(money("3.33"))

    # 3.33 + 1.00 + 0.4995
    assert quote.fees_and_taxes.amount == Decimal("0.50")
    assert quote.total.amount == Decimal("4.83")


def test_request_opens_booking():
    booking = new_booking()

    assert booking.status is BookingStatus.REQUESTED
    assert booking.window.end == START + timedelta(hours=6)
    assert booking.expires_at == START
    assert len(booking.confirmation_code) == 6
    assert booking.booking_number.startswith("SC")
    assert [type(e) for e in booking.events] == [BookingRequested]


def test_confirmation_code_range():
    for _ in range(50):
        assert 100000 <= int(generate_confirmation_code()) <= 999999


def test_accept_requires_captured_payment():
    booking = new_booking()

    with pytest.raises(PaymentNotCaptured):
        booking.accept(OWNER, payment_captured=False)
    assert booking.status is BookingStatus.REQUESTED


def test_accept_by_owner_activates():
    booking = new_booking()
    booking.clear_events()

    booking.accept(OWNER, payment_captured=True)

    assert booking.status is BookingStatus.ACTIVE
    assert booking.accepted_at is not None
    assert booking.expires_at is None
    assert [type(e) for e in booking.events] == [BookingAccepted]


def test_only_owner_accepts_or_rejects():
    booking = new_booking()

    with pytest.raises(NotBookingOwner):
        booking.accept(RENTER, payment_captured=True)
    with pytest.raises(NotBookingOwner):
        booking.reject(RENTER)


def test_reject_is_terminal():
    booking = new_booking()
    booking.clear_events()

    booking.reject(OWNER, "Maintenance")

    assert booking.status is BookingStatus.REJECTED
    assert booking.rejection_source is RejectionSource.OWNER
    assert booking.events[0].reason == "Maintenance"
    with pytest.raises(InvalidTransition):
        booking.accept(OWNER, payment_captured=True)
    with pytest.raises(InvalidTransition):
        booking.cancel(RENTER)


def test_only_renter_cancels():
    booking = new_booking()

    with pytest.raises(NotBookingRenter):
        booking.cancel(OWNER)

    booking.cancel(RENTER, "Changed plans")
    assert booking.rejection_source is RejectionSource.RENTER


def test_system_cancel():
    booking = new_booking()
    booking.clear_events()

    booking.cancel(None, "Payment setup failed")

    assert booking.rejection_source is RejectionSource.SYSTEM
    assert isinstance(booking.events[0], BookingRejected)
    assert booking.events[0].source == "system"


def test_active_booking_cannot_be_cancelled():
    booking = active_booking()

    with pytest.raises(InvalidTransition):
        booking.cancel(RENTER)


def test_expire_only_after_deadline():
    booking = new_booking()
    booking.clear_events()

    with pytest.raises(InvalidTransition):
        booking.expire(now=START - timedelta(hours=1))

    booking.expire(now=START)
    assert booking.status is BookingStatus.REJECTED
    assert booking.rejection_source is RejectionSource.SYSTEM
    assert [type(e) for e in booking.events] == [BookingExpired]
    assert booking.updated_at == START


def test_wrong_code_counts_attempt():
    booking = active_booking()
    wrong = "000000" if booking.confirmation_code != "000000" else "111111"

    assert booking.verify_return(OWNER, wrong, max_attempts=5) is False

    assert booking.failed_code_attempts == 1
    assert booking.status is BookingStatus.ACTIVE
    assert booking.events == []


def test_right_code_completes_and_clears_code():
    booking = active_booking()

    assert booking.verify_return(OWNER, booking.confirmation_code, max_attempts=5) is True

    assert booking.status is BookingStatus.COMPLETED
    assert booking.confirmation_code == ""
    assert booking.completed_at is not None
    assert [type(e) for e in booking.events] == [BookingCompleted]
    with pytest.raises(InvalidTransition):
        booking.verify_return(OWNER, "123456", max_attempts=5)


def test_code_locks_after_max_attempts():
    booking = active_booking()
    code = booking.confirmation_code
    wrong = "000000" if code != "000000" else "111111"

    for _ in range(3):
        booking.verify_return(OWNER, wrong, max_attempts=3)

    with pytest.raises(CodeLockedOut):
        booking.verify_return(OWNER, code, max_attempts=3)
    assert booking.status is BookingStatus.ACTIVE


def test_only_owner_verifies_return():
    booking = active_booking()

    with pytest.raises(NotBookingOwner):
        booking.verify_return(RENTER, booking.confirmation_code, max_attempts=5)


def test_return_needs_active_booking():
    booking = new_booking()

    with pytest.raises(InvalidTransition):
        booking.verify_return(OWNER, booking.confirmation_code, max_attempts=5)


def test_recorded_events_are_stamped_with_the_booking():
    requested_at = START - timedelta(days=1)
    booking = new_booking(now=requested_at)

    event = booking.events[0]
    assert event.aggregate_id == booking.id
    assert booking.updated_at == requested_at

    envelope = event.to_dict()
    assert envelope["event_type"] == "BookingRequested"
    assert envelope["aggregate_id"] == str(booking.id)
    assert envelope["payload"] == {
        "booking_id": str(booking.id),
        "scooter_id": str(booking.scooter_id),
        "renter_id": RENTER,
        "owner_id": OWNER,
        "total_price": "$7.90",
    }
