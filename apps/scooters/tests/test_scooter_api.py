"""Integration tests for scooter API endpoints."""

from __future__ import annotations

from datetime import time

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.scooters.models import Scooter
from apps.scooters.serializers import ScooterWriteSerializer

from .factories import make_scooter, make_user, next_weekday


def week(open_days=(0,), open_time="09:00", close_time="17:00") -> list[dict]:
    return [
        {"weekday": day, "is_open": True, "open_time": open_time, "close_time": close_time}
        if day in open_days
        else {"weekday": day, "is_open": False}
        for day in range(7)
    ]


class ScooterAPITests(APITestCase):
    """Covers listing management and the biddable query."""

    def setUp(self) -> None:
        self.owner = make_user("owner")
        self.renter = make_user("renter")
        self.list_url = reverse("scooter-list")

    def _payload(self, **overrides) -> dict:
        payload = {
            "name": "Segway Ninebot Max",
            "location": "Venice Beach",
            "brand": "Segway",
            "top_speed": 18,
            "six_hour_price": "6.00",
            "full_day_price": "20.00",
            "timezone": "America/Los_Angeles",
            "availability": week(),
        }
        payload.update(overrides)
        return payload

    def test_owner_can_create_listing_with_weekly_hours(self) -> None:
        self.client.force_authenticate(self.owner)

        response = self.client.post(self.list_url, self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        scooter = Scooter.objects.get()
        self.assertEqual(scooter.owner, self.owner)
        self.assertEqual(scooter.availability.count(), 7)
        monday = scooter.availability.get(weekday=0)
        self.assertTrue(monday.is_open)
        self.assertEqual(monday.open_time, time(9, 0))
        self.assertEqual(response.data["exclusivity"], "none")

    def test_week_must_have_seven_days(self) -> None:
        self.client.force_authenticate(self.owner)

        response = self.client.post(self.list_url, self._payload(availability=week()[:6]), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertIn("availability", response.data)

    def test_open_time_after_close_is_rejected(self) -> None:
        self.client.force_authenticate(self.owner)
        payload = self._payload(availability=week(open_time="18:00", close_time="09:00"))

        response = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)

    def test_unknown_time_zone_is_rejected(self) -> None:
        self.client.force_authenticate(self.owner)

        response = self.client.post(self.list_url, self._payload(timezone="Nowhere/Land"), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertIn("timezone", response.data)

    def test_listing_needs_a_rental_duration(self) -> None:
        self.client.force_authenticate(self.owner)
        payload = self._payload(allow_six_hour=False, allow_full_day=False)

        response = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)

    def test_only_owner_can_update(self) -> None:
        scooter = make_scooter(self.owner)
        url = reverse("scooter-detail", args=[scooter.id])

        self.client.force_authenticate(self.renter)
        response = self.client.patch(url, {"name": "Mine now"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN, response.data)

        self.client.force_authenticate(self.owner)
        response = self.client.patch(url, {"name": "Renamed"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        scooter.refresh_from_db()
        self.assertEqual(scooter.name, "Renamed")

    def test_edit_from_stale_copy_keeps_feature(self) -> None:
        scooter = make_scooter(self.owner)
        Scooter.objects.filter(pk=scooter.pk).update(
            is_featured=True, featured_at=timezone.now(), feature_charge_id="pi_feature",
        )

        serializer = ScooterWriteSerializer(scooter, data={"location": "Santa Monica"}, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()

        scooter.refresh_from_db()
        self.assertEqual(scooter.location, "Santa Monica")
        self.assertTrue(scooter.is_featured)
        self.assertEqual(scooter.feature_charge_id, "pi_feature")
        self.assertTrue(serializer.data["is_featured"])

    def test_delete_unlists_scooter(self) -> None:
        scooter = make_scooter(self.owner)
        self.client.force_authenticate(self.owner)

        response = self.client.delete(reverse("scooter-detail", args=[scooter.id]))

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        scooter.refresh_from_db()
        self.assertFalse(scooter.is_active)

    def test_biddable_query_is_public_and_priced(self) -> None:
        scooter = make_scooter(self.owner)
        start = next_weekday(0, time(10, 0))

        response = self.client.get(
            reverse("scooter-biddable"),
            {"start": start.isoformat(), "duration_class": 6},
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]["id"], str(scooter.id))
        self.assertEqual(response.data[0]["price"], "6.00")

    def test_biddable_query_rejects_other_durations(self) -> None:
        make_scooter(self.owner)
        start = next_weekday(0, time(10, 0))

        response = self.client.get(
            reverse("scooter-biddable"),
            {"start": start.isoformat(), "duration_class": 12},
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)

    def test_owner_can_feature_listing(self) -> None:
        scooter = make_scooter(self.owner)
        self.client.force_authenticate(self.owner)

        response = self.client.post(
            reverse("scooter-feature", args=[scooter.id]),
            {"payment_method": "pm_card_visa"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(response.data["is_featured"])

    def test_renter_cannot_feature_listing(self) -> None:
        scooter = make_scooter(self.owner)
        self.client.force_authenticate(self.renter)

        response = self.client.post(
            reverse("scooter-feature", args=[scooter.id]),
            {"payment_method": "pm_card_visa"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN, response.data)
        self.assertEqual(response.data["code"], "not_scooter_owner")
