"""
Common Value Objects

Value objects used across multiple domains:
- Money: Monetary amount with currency, rounded to cents on demand
- TimeWindow: Half-open rental window [start, start + duration)
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP

from shared.domain.base import ValueObject

CENT = Decimal('0.01')
SUPPORTED_CURRENCIES = ('USD',)


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Arithmetic keeps full precision; call round2() where a value is quoted
    or persisted.
    """
    amount: Decimal
    currency: str = 'USD'

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")
        if self.currency not in SUPPORTED_CURRENCIES:
            raise ValueError(f"Unsupported currency: {self.currency}")

    @classmethod
    def zero(cls, currency: str = 'USD') -> 'Money':
        return cls(Decimal('0'), currency)

    def __add__(self, other: 'Money') -> 'Money':
        if not isinstance(other, Money):
            raise TypeError("Can only add Money to Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot add different currencies: {self.currency} and {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        if not isinstance(other, Money):
            raise TypeError("Can only subtract Money from Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot subtract different currencies: {self.currency} and {other.currency}")
        return Money(self.amount - other.amount, self.currency)

    def __mul__(self, factor) -> 'Money':
        if not isinstance(factor, (int, float, Decimal)):
            raise TypeError("Can only multiply Money by number")
        return Money(self.amount * Decimal(str(factor)), self.currency)

    def round2(self) -> 'Money':
        """Round half-up to whole cents"""
        return Money(self.amount.quantize(CENT, rounding=ROUND_HALF_UP), self.currency)

    @property
    def cents(self) -> int:
        """Amount in minor units, as payment processors expect"""
        return int((self.amount * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))

    @classmethod
    def from_cents(cls, cents: int, currency: str = 'USD') -> 'Money':
        return cls(Decimal(cents) / 100, currency)

    def __str__(self):
        return f"${self.amount:,.2f}"

    def __repr__(self):
        return f"Money({self.amount}, '{self.currency}')"


@dataclass(frozen=True)
class TimeWindow(ValueObject):
    """
    Rental window value object

    Start is inclusive, end is exclusive. The start must be timezone-aware
    so that it can be interpreted in the scooter's local time.
    """
    start: datetime
    duration: timedelta

    def __post_init__(self):
        if self.start.tzinfo is None or self.start.utcoffset() is None:
            raise ValueError("Window start must be timezone-aware")
        if self.duration <= timedelta(0):
            raise ValueError("Window duration must be positive")

    @classmethod
    def of_hours(cls, start: datetime, hours: int) -> 'TimeWindow':
        return cls(start, timedelta(hours=hours))

    @property
    def end(self) -> datetime:
        return self.start + self.duration

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end

    def overlaps_with(self, other: 'TimeWindow') -> bool:
        """Adjacent windows do not overlap"""
        return self.start < other.end and self.end > other.start

    def __str__(self):
        return f"{self.start.isoformat()} - {self.end.isoformat()}"
