"""
Reservation Ledger

Grants a scooter to at most one open booking. Every write is a single
conditional UPDATE, so two requests racing for the same scooter are
arbitrated by the database: exactly one of them matches the row.

Ledger writes do not open their own transaction; callers run them inside
the unit of work of the booking transition they belong to.
"""

from __future__ import annotations

import logging
from enum import Enum
from uuid import UUID

from django.db.models import F  # type: ignore

from apps.scooters.models import Scooter
from shared.domain.exceptions import ConcurrencyConflict, NotFound

logger = logging.getLogger(__name__)


class ClaimResult(Enum):
    CLAIMED = "claimed"
    ALREADY_CLAIMED = "already_claimed"


class ReservationLedger:
    """Exclusivity state of scooters: none -> claimed -> active -> none"""

    def try_claim(self, scooter_id: UUID, booking_id: UUID) -> ClaimResult:
        updated = Scooter.objects.filter(
            pk=scooter_id,
            exclusivity=Scooter.Exclusivity.NONE,
        ).update(
            exclusivity=Scooter.Exclusivity.CLAIMED,
            claimed_by=booking_id,
            version=F("version") + 1,
        )
        if updated:
            logger.info("Scooter %s claimed by booking %s", scooter_id, booking_id)
            return ClaimResult.CLAIMED

        if not Scooter.objects.filter(pk=scooter_id).exists():
            raise NotFound("Scooter not found", scooter_id=scooter_id)

        logger.warning("Scooter %s already claimed, booking %s loses", scooter_id, booking_id)
        return ClaimResult.ALREADY_CLAIMED

    def activate(self, scooter_id: UUID, booking_id: UUID) -> None:
        """claimed -> active, only for the booking that holds the claim"""
        updated = Scooter.objects.filter(
            pk=scooter_id,
            exclusivity=Scooter.Exclusivity.CLAIMED,
            claimed_by=booking_id,
        ).update(
            exclusivity=Scooter.Exclusivity.ACTIVE,
            version=F("version") + 1,
        )
        if not updated:
            raise ConcurrencyConflict(
                "Scooter is not claimed by this booking",
                scooter_id=scooter_id,
                booking_id=booking_id,
            )
        logger.info("Scooter %s is now active for booking %s", scooter_id, booking_id)

    def release(self, scooter_id: UUID, booking_id: UUID | None = None) -> bool:
        """
        Return the scooter to the biddable pool

        Idempotent. With ``booking_id`` only that booking's claim is
        cleared, so a stale release can never free someone else's claim.
        Returns whether anything changed.
        """
        queryset = Scooter.objects.filter(pk=scooter_id).exclude(exclusivity=Scooter.Exclusivity.NONE)
        if booking_id is not None:
            queryset = queryset.filter(claimed_by=booking_id)

        updated = queryset.update(
            exclusivity=Scooter.Exclusivity.NONE,
            claimed_by=None,
            version=F("version") + 1,
        )
        if updated:
            logger.info("Scooter %s released (booking %s)", scooter_id, booking_id)
        return bool(updated)


ledger = ReservationLedger()
