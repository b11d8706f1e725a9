"""
Base Domain Classes

Building blocks shared by every domain context:
- Entity: Objects with unique identity
- ValueObject: Immutable objects compared by value
- Aggregate: Versioned consistency boundaries that record domain events
- DomainEvent: Something that happened and other contexts may react to
"""

from abc import ABC
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, List
from uuid import UUID, uuid4


def utcnow() -> datetime:
    """Timezone-aware current time in UTC"""
    return datetime.now(timezone.utc)


@dataclass
class Entity(ABC):
    """
    Base class for all entities

    Two entities are equal if their IDs are equal.
    """
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __eq__(self, other):
        if not isinstance(other, self.__class__):
            return False
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)

    def touch(self, now: datetime | None = None) -> datetime:
        self.updated_at = now or utcnow()
        return self.updated_at


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects

    Immutable, no identity, equal when all attributes are equal.
    """
    pass


@dataclass(eq=False)
class Aggregate(Entity):
    """
    Base class for aggregate roots

    ``version`` is the optimistic concurrency token: repositories only
    write a row whose stored version still matches it and bump both on
    success. Recorded events are handed to the unit of work, which
    publishes them only after the transaction commits.
    """
    version: int = field(default=0, kw_only=True)
    _events: List['DomainEvent'] = field(default_factory=list, repr=False, init=False)

    def record(self, event: 'DomainEvent', now: datetime | None = None) -> 'DomainEvent':
        """Stamp the event with this aggregate and mark the aggregate changed"""
        event.aggregate_id = self.id
        self.touch(now or event.occurred_at)
        self._events.append(event)
        return event

    def clear_events(self):
        self._events.clear()

    @property
    def events(self) -> List['DomainEvent']:
        """Copy of collected events"""
        return self._events.copy()


def _plain(value: Any) -> Any:
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, ValueObject):
        return str(value)
    return value


@dataclass
class DomainEvent:
    """
    Base class for domain events

    Subclasses add their payload fields as keyword-only dataclass fields.
    """
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=utcnow)
    aggregate_id: UUID | None = None

    _ENVELOPE = ('event_id', 'occurred_at', 'aggregate_id')

    @property
    def event_type(self) -> str:
        return self.__class__.__name__

    def payload(self) -> dict:
        """Subclass fields as JSON-friendly values"""
        return {
            f.name: _plain(getattr(self, f.name))
            for f in fields(self)
            if f.name not in self._ENVELOPE
        }

    def to_dict(self) -> dict:
        """Serializable envelope of the event"""
        return {
            'event_id': str(self.event_id),
            'event_type': self.event_type,
            'occurred_at': self.occurred_at.isoformat(),
            'aggregate_id': str(self.aggregate_id) if self.aggregate_id else None,
            'payload': self.payload(),
        }
