"""Tests for the biddable listing query and featured listings."""

from __future__ import annotations

import uuid
from datetime import datetime, time, timezone
from decimal import Decimal

import pytest

from apps.payments import gateway
from apps.scooters.models import Scooter
from apps.scooters.services import list_biddable, purchase_feature
from shared.domain.exceptions import NotScooterOwner, PaymentDeclined

from .factories import make_scooter, make_user

MONDAY_NOON = datetime(2030, 1, 7, 12, 0, tzinfo=timezone.utc)

pytestmark = pytest.mark.django_db


@pytest.fixture
def owner():
    return make_user("owner")


def test_only_unclaimed_open_scooters_are_biddable(owner):
    free = make_scooter(owner, name="Free")
    claimed = make_scooter(owner, name="Claimed")
    Scooter.objects.filter(pk=claimed.pk).update(exclusivity=Scooter.Exclusivity.CLAIMED, claimed_by=uuid.uuid4())
    make_scooter(owner, name="Closed on Monday", hours={1: (time(9, 0), time(17, 0))})
    make_scooter(owner, name="Unlisted", is_active=False)
    make_scooter(owner, name="Day rentals only", allow_six_hour=False)

    result = list_biddable(MONDAY_NOON, 6)

    assert [scooter.id for scooter in result] == [free.id]


def test_full_day_query_uses_full_day_flag(owner):
    make_scooter(owner, name="Six hours only", allow_full_day=False)
    day = make_scooter(owner, name="Any duration")

    assert [scooter.id for scooter in list_biddable(MONDAY_NOON, 24)] == [day.id]


def test_sort_by_price_uses_requested_duration(owner):
    cheap_day = make_scooter(owner, name="A", six_hour_price=Decimal("9.00"), full_day_price=Decimal("15.00"))
    cheap_six = make_scooter(owner, name="B", six_hour_price=Decimal("5.00"), full_day_price=Decimal("30.00"))

    assert [s.id for s in list_biddable(MONDAY_NOON, 6, sort="price_asc")] == [cheap_six.id, cheap_day.id]
    assert [s.id for s in list_biddable(MONDAY_NOON, 24, sort="price_asc")] == [cheap_day.id, cheap_six.id]
    assert [s.id for s in list_biddable(MONDAY_NOON, 24, sort="price_desc")] == [cheap_six.id, cheap_day.id]


def test_relevance_puts_featured_first(owner):
    plain = make_scooter(owner, name="Plain")
    featured = make_scooter(owner, name="Featured")
    Scooter.objects.filter(pk=featured.pk).update(is_featured=True, featured_at=MONDAY_NOON)

    result = list_biddable(MONDAY_NOON, 6)

    assert [s.id for s in result] == [featured.id, plain.id]


def test_location_and_search_filters(owner):
    venice = make_scooter(owner, name="Segway Ninebot", location="Venice Beach")
    make_scooter(owner, name="Razor", location="Downtown")

    assert [s.id for s in list_biddable(MONDAY_NOON, 6, location="venice")] == [venice.id]
    assert [s.id for s in list_biddable(MONDAY_NOON, 6, search="ninebot")] == [venice.id]


def test_window_end_check_follows_setting(owner, settings):
    make_scooter(owner)

    assert len(list_biddable(MONDAY_NOON, 6)) == 1
    settings.SCOOTERS_VALIDATE_WINDOW_END = True
    # 12:00 + 6h is after the 17:00 close
    assert list_biddable(MONDAY_NOON, 6) == []


def test_purchase_feature_flips_flag(owner):
    scooter = make_scooter(owner)

    result = purchase_feature(scooter.id, owner.id, "pm_card_visa")

    assert result.is_featured
    assert result.featured_at is not None
    assert result.feature_charge_id.startswith("pi_")


def test_failed_feature_charge_leaves_listing_unfeatured(owner, monkeypatch):
    scooter = make_scooter(owner)
    monkeypatch.setattr(
        gateway,
        "create_charge",
        lambda **kwargs: gateway.ChargeResult(id="pi_pending", status="requires_action", amount_cents=100),
    )

    with pytest.raises(PaymentDeclined):
        purchase_feature(scooter.id, owner.id, "pm_card_threeDSecure2Required")

    scooter.refresh_from_db()
    assert not scooter.is_featured
    assert scooter.feature_charge_id == ""


def test_already_featured_listing_is_not_charged_again(owner, monkeypatch):
    scooter = make_scooter(owner, is_featured=True, featured_at=MONDAY_NOON)

    def fail(**kwargs):
        raise AssertionError("charged twice")

    monkeypatch.setattr(gateway, "create_charge", fail)

    assert purchase_feature(scooter.id, owner.id, "pm_card_visa").is_featured


def test_only_owner_can_feature(owner):
    scooter = make_scooter(owner)
    stranger = make_user("stranger")

    with pytest.raises(NotScooterOwner):
        purchase_feature(scooter.id, stranger.id, "pm_card_visa")


def test_feature_charge_amount(owner, monkeypatch, settings):
    settings.FEATURE_LISTING_PRICE = Decimal("1.00")
    scooter = make_scooter(owner)
    calls = []

    def charge(**kwargs):
        calls.append(kwargs)
        return gateway.ChargeResult(id="pi_feature", status="succeeded", amount_cents=kwargs["amount"].cents)

    monkeypatch.setattr(gateway, "create_charge", charge)

    purchase_feature(scooter.id, owner.id, "pm_card_visa", idempotency_key="feature-1")

    assert calls[0]["amount"].cents == 100
    assert calls[0]["idempotency_key"] == "feature-1"
    assert calls[0]["metadata"]["scooter_id"] == str(scooter.id)
