"""Domain services for scooter listings: matching and featured listings."""

from __future__ import annotations

import logging
from datetime import datetime

from django.conf import settings  # type: ignore
from django.db.models import F, Q  # type: ignore
from django.utils import timezone  # type: ignore

from apps.payments import gateway
from shared.domain.exceptions import NotFound, NotScooterOwner, PaymentDeclined
from shared.domain.value_objects import Money

from .domain.availability import DurationClass, supports_window
from .models import Scooter

logger = logging.getLogger(__name__)


class ListingSort:
    RELEVANCE = "relevance"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    SPEED = "speed"

    choices = (RELEVANCE, PRICE_ASC, PRICE_DESC, SPEED)


def _price_field(duration_class: DurationClass) -> str:
    if duration_class == DurationClass.SIX_HOURS:
        return "six_hour_price"
    return "full_day_price"


def _ordering(sort: str, duration_class: DurationClass):
    price = _price_field(duration_class)
    if sort == ListingSort.RELEVANCE:
        return [F("is_featured").desc(), F("featured_at").desc(nulls_last=True), "-created_at"]
    if sort == ListingSort.PRICE_ASC:
        return [price, "-is_featured"]
    if sort == ListingSort.PRICE_DESC:
        return [F(price).desc(), "-is_featured"]
    if sort == ListingSort.SPEED:
        return [F("top_speed").desc(nulls_last=True), "-is_featured"]
    raise ValueError(f"Unknown sort order: {sort}")


def validate_window_end() -> bool:
    return bool(getattr(settings, "SCOOTERS_VALIDATE_WINDOW_END", False))


def list_biddable(
    start: datetime,
    duration_class,
    *,
    location: str | None = None,
    search: str | None = None,
    sort: str = ListingSort.RELEVANCE,
) -> list[Scooter]:
    """
    Scooters a renter can request for ``duration_class`` starting at ``start``.

    The ledger state is the first filter (only unclaimed scooters), then the
    duration flag, then the weekly calendar in each scooter's local time.
    """

    duration_class = DurationClass.parse(duration_class)
    flag = "allow_six_hour" if duration_class == DurationClass.SIX_HOURS else "allow_full_day"

    queryset = (
        Scooter.objects.filter(is_active=True, exclusivity=Scooter.Exclusivity.NONE, **{flag: True})
        .prefetch_related("availability")
        .order_by(*_ordering(sort, duration_class))
    )
    if location:
        queryset = queryset.filter(location__icontains=location.strip())
    if search:
        term = search.strip()
        queryset = queryset.filter(Q(name__icontains=term) | Q(location__icontains=term))

    check_end = validate_window_end()
    biddable = [
        scooter
        for scooter in queryset
        if supports_window(scooter.rental_terms(), start, duration_class, check_end=check_end)
    ]
    logger.info(
        "Listed %d biddable scooters for %s (%sh, sort=%s)",
        len(biddable), start.isoformat(), int(duration_class), sort,
    )
    return biddable


def purchase_feature(
    scooter_id,
    acting_owner_id,
    payment_method: str,
    *,
    idempotency_key: str | None = None,
) -> Scooter:
    """
    Charge the owner the flat feature price and mark the listing featured.

    The charge runs outside any transaction; the flag flips only after a
    succeeded charge, with a conditional update. A scooter that is already
    featured is returned without charging again.
    """

    try:
        scooter = Scooter.objects.get(pk=scooter_id)
    except Scooter.DoesNotExist:
        raise NotFound("Scooter not found", scooter_id=scooter_id)

    if scooter.owner_id != acting_owner_id:
        raise NotScooterOwner(scooter_id=scooter_id)

    if scooter.is_featured:
        logger.info("Scooter %s is already featured, no charge made", scooter.id)
        return scooter

    price = Money(getattr(settings, "FEATURE_LISTING_PRICE", "1.00"))
    charge = gateway.create_charge(
        amount=price,
        payment_method=payment_method,
        description=f"Featured listing for {scooter.name}",
        metadata={"scooter_id": str(scooter.id), "purpose": "feature_listing"},
        idempotency_key=idempotency_key,
    )

    if not charge.succeeded:
        logger.warning(
            "Feature charge %s for scooter %s ended with status %s",
            charge.id, scooter.id, charge.status,
        )
        raise PaymentDeclined("Feature listing charge did not succeed", charge_status=charge.status)

    updated = Scooter.objects.filter(pk=scooter.pk, is_featured=False).update(
        is_featured=True,
        featured_at=timezone.now(),
        feature_charge_id=charge.id,
    )
    if not updated:
        logger.warning("Scooter %s was featured concurrently, refunding charge %s", scooter.id, charge.id)
        gateway.refund(charge.id, idempotency_key=f"refund-{charge.id}", reason="duplicate")
        scooter.refresh_from_db()
        return scooter

    logger.info("Scooter %s featured with charge %s", scooter.id, charge.id)
    scooter.refresh_from_db()
    return scooter
