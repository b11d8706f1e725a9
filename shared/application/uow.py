"""
Unit of Work Pattern

Wraps one state transition in a single database transaction and
publishes the domain events it produced only after commit.
"""

from abc import ABC, abstractmethod
from typing import List
import logging

from django.db import transaction

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(ABC):
    """Abstract Unit of Work"""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    @abstractmethod
    def commit(self):
        pass

    @abstractmethod
    def rollback(self):
        pass

    @abstractmethod
    def collect_events(self, aggregate):
        pass


class DjangoUnitOfWork(AbstractUnitOfWork):
    """
    Django implementation of Unit of Work

    Every write made inside the block (booking, scooter, payment record)
    lands in one ``transaction.atomic()``; if any of them raises, all of
    them roll back and the collected events are dropped.

    Usage:
        with DjangoUnitOfWork() as uow:
            booking = booking_repo.get(booking_id)
            booking.accept(owner_id, payment_status)
            booking_repo.save(booking)
            uow.collect_events(booking)
        # BookingAccepted is published here, after commit
    """

    def __init__(self):
        self._events: List[DomainEvent] = []
        self._transaction = None

    def __enter__(self):
        self._transaction = transaction.atomic()
        self._transaction.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        finally:
            if self._transaction:
                self._transaction.__exit__(exc_type, exc_val, exc_tb)

    def commit(self):
        """Schedule event publishing for when the outermost transaction commits"""
        events = self._events.copy()
        self._events.clear()
        logger.debug("Committing unit of work with %d events", len(events))

        if events:
            transaction.on_commit(lambda: self._publish_events(events))

    def rollback(self):
        if self._events:
            logger.warning("Rolling back unit of work, discarding %d events", len(self._events))
        self._events.clear()

    def collect_events(self, aggregate):
        """Move pending events from the aggregate into this unit of work"""
        new_events = getattr(aggregate, 'events', None)
        if new_events:
            self._events.extend(new_events)
            aggregate.clear_events()
            logger.debug(
                "Collected %d events from %s (ID: %s)",
                len(new_events), aggregate.__class__.__name__, aggregate.id,
            )

    def _publish_events(self, events: List[DomainEvent]):
        from shared.application.message_bus import message_bus

        logger.info("Publishing %d domain events after commit", len(events))
        message_bus.publish_events(events)
