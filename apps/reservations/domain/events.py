"""
Booking Domain Events

Events that represent things that have happened to a booking.
These are published after successful transaction commits.
"""

from dataclasses import dataclass
from uuid import UUID

from shared.domain.base import DomainEvent
from shared.domain.value_objects import Money


@dataclass(kw_only=True)
class BookingRequested(DomainEvent):
    """
    Event: A renter requested a scooter and the ledger granted the claim

    Triggers:
    - Payment authorization for the booking total
    """
    booking_id: UUID
    scooter_id: UUID
    renter_id: int
    owner_id: int
    total_price: Money


@dataclass(kw_only=True)
class BookingAccepted(DomainEvent):
    """Event: Owner accepted a paid request, the rental is active"""
    booking_id: UUID
    scooter_id: UUID
    renter_id: int


@dataclass(kw_only=True)
class BookingRejected(DomainEvent):
    """
    Event: Request closed without a rental (owner rejected or renter cancelled)

    Triggers:
    - Refund of a captured payment
    """
    booking_id: UUID
    scooter_id: UUID
    source: str
    reason: str = ''


@dataclass(kw_only=True)
class BookingExpired(DomainEvent):
    """
    Event: Nobody answered the request in time

    Triggers:
    - Refund of a captured payment
    """
    booking_id: UUID
    scooter_id: UUID


@dataclass(kw_only=True)
class BookingCompleted(DomainEvent):
    """Event: Scooter returned with the right confirmation code"""
    booking_id: UUID
    scooter_id: UUID
    renter_id: int
    owner_id: int
